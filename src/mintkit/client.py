from __future__ import annotations

import logging
from typing import Any

from .accounts.local import LocalSigningAccount
from .context import ClientContext
from .errors import InvalidInputError, UnsupportedNetworkError
from .products import BaseProduct, create_product
from .purchase import PurchaseOrchestrator
from .settings import ClientSettings
from .validation import resolve_instance_id

logger = logging.getLogger(__name__)


class Client:
    """Entry point: resolves products and hands out purchase machinery.

    All state (rate cache, currency metadata) lives in the client's context
    and is released by ``close()`` or by leaving ``async with``.
    """

    def __init__(self, context: ClientContext):
        self.context = context
        self.orchestrator = PurchaseOrchestrator(context)

    @property
    def settings(self) -> ClientSettings:
        return self.context.settings

    async def get_product(self, instance_id_or_url: str | int) -> BaseProduct:
        """Resolve a product by instance id or shareable URL.

        Raises:
            InvalidInputError: Malformed id/URL or unsupported product type
            ApiError: The catalog lookup failed
        """
        instance_id = resolve_instance_id(str(instance_id_or_url))
        instance = await self.context.catalog.get_instance(instance_id)
        product = create_product(self.context, instance)
        logger.debug("Resolved %s as %s", instance_id, product.kind.value)
        return product

    def local_account(self, network_id: int) -> LocalSigningAccount:
        """Signing account for the configured private key on ``network_id``."""
        if self.settings.private_key is None:
            raise InvalidInputError("No private key configured (set MINTKIT_PRIVATE_KEY)")
        urls = self.settings.rpc_urls_for(network_id)
        if not urls:
            raise UnsupportedNetworkError(
                f"No RPC URL configured for network {network_id}",
                details={"network_id": network_id},
            )
        return LocalSigningAccount(
            self.settings.private_key.get_secret_value(),
            urls[0],
            poll_interval=self.settings.confirmation_poll_interval,
            confirmation_timeout=self.settings.confirmation_timeout,
        )

    def close(self) -> None:
        self.context.close()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


def create_client(settings: ClientSettings | None = None, **overrides: Any) -> Client:
    """Build a client from settings (environment, .env and TOML when omitted)."""
    if settings is None:
        settings = ClientSettings(**overrides)
    elif overrides:
        settings = settings.model_copy(update=overrides)
    return Client(ClientContext.from_settings(settings))
