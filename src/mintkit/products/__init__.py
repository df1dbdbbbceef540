from __future__ import annotations

from typing import TYPE_CHECKING

from ..constants import APP_ID_TO_KIND, ProductKind
from ..errors import InvalidInputError
from .base import (
    BaseProduct,
    Media,
    OnchainData,
    ProductInventory,
    ProductMetadata,
    ProductProvenance,
    ProductRules,
)
from .blind_mint import BlindMintProduct, Tier, TokenVariation
from .edition import EditionProduct

if TYPE_CHECKING:
    from ..api.models import CatalogInstance
    from ..context import ClientContext

PRODUCT_TYPES: dict[ProductKind, type[BaseProduct]] = {
    ProductKind.EDITION: EditionProduct,
    ProductKind.BLIND_MINT: BlindMintProduct,
}


def create_product(context: ClientContext, instance: CatalogInstance) -> BaseProduct:
    kind = APP_ID_TO_KIND.get(instance.app_id)
    if kind is None:
        raise InvalidInputError(
            f"Unsupported product type (app ID {instance.app_id})",
            details={"instance_id": str(instance.id), "app_id": instance.app_id},
        )
    return PRODUCT_TYPES[kind](context, instance)


__all__ = [
    "PRODUCT_TYPES",
    "BaseProduct",
    "BlindMintProduct",
    "EditionProduct",
    "Media",
    "OnchainData",
    "ProductInventory",
    "ProductMetadata",
    "ProductProvenance",
    "ProductRules",
    "Tier",
    "TokenVariation",
    "create_product",
]
