"""Gas limit helpers."""

from __future__ import annotations

import logging
from fractions import Fraction

from .domain import TransactionRequest
from .errors import InvalidInputError
from .providers.reader import ChainReader

logger = logging.getLogger(__name__)


def apply_gas_buffer(units: int, multiplier: float | str | Fraction = 0) -> int:
    """Add ``multiplier`` extra headroom to a gas estimate.

    ``apply_gas_buffer(100_000, 0.25) == 125_000``. The extra is floored so the
    result is always an integer number of gas units.
    """
    factor = Fraction(str(multiplier)) if not isinstance(multiplier, Fraction) else multiplier
    if factor < 0:
        raise InvalidInputError(f"Gas buffer multiplier cannot be negative: {multiplier}")
    extra = units * factor.numerator // factor.denominator
    return units + extra


async def estimate_gas_or_fallback(
    reader: ChainReader,
    network_id: int,
    request: TransactionRequest,
    sender: str,
    fallback: int,
) -> int:
    try:
        return await reader.estimate_gas(network_id, request, sender)
    except Exception as e:
        logger.warning(
            "Gas estimation failed for call to %s, using fallback %d: %s",
            request.to,
            fallback,
            e,
        )
        return fallback
