"""Input validation for addresses, product identifiers and quantities."""

from __future__ import annotations

import re

from eth_utils import is_hex_address, to_checksum_address

from .errors import InvalidInputError

_INSTANCE_ID_RE = re.compile(r"^\d+$")
_PRODUCT_URL_RE = re.compile(r"manifold\.xyz/@[\w-]+/id/(\d+)")


def is_valid_address(address: str) -> bool:
    """True for a 0x-prefixed 40 hex character address (checksum not enforced)."""
    return isinstance(address, str) and is_hex_address(address)


def require_address(address: str, field: str = "address") -> str:
    """Validate an address and return its checksummed form.

    Raises:
        InvalidInputError: If the address is malformed
    """
    if not is_valid_address(address):
        raise InvalidInputError(
            f"Invalid {field.replace('_', ' ')}", details={field: address}
        )
    return to_checksum_address(address)


def require_quantity(quantity: int) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidInputError(
            "Quantity must be a positive integer", details={"quantity": quantity}
        )
    return quantity


def is_valid_instance_id(instance_id: str) -> bool:
    return bool(_INSTANCE_ID_RE.match(instance_id))


def parse_product_url(url: str) -> str | None:
    """Extract the instance id from a shareable product URL.

    ``https://manifold.xyz/@creator/id/4150231280`` -> ``"4150231280"``
    """
    match = _PRODUCT_URL_RE.search(url)
    return match.group(1) if match else None


def resolve_instance_id(instance_id_or_url: str) -> str:
    """Accept either a numeric instance id or a shareable product URL."""
    value = instance_id_or_url.strip()
    if "manifold.xyz" in value:
        parsed = parse_product_url(value)
        if parsed is None:
            raise InvalidInputError("Invalid product URL format", details={"url": value})
        return parsed
    if not is_valid_instance_id(value):
        raise InvalidInputError(
            "Invalid instance ID format", details={"instance_id": value}
        )
    return value
