from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from ..errors import (
    EndedError,
    InvalidInputError,
    NotEligibleError,
    NotStartedError,
    SoldOutError,
)
from .models import BuyerLimit, EligibilityResult, ProductStatus, SaleState

logger = logging.getLogger(__name__)

BuyerLimitLookup = Callable[[], Awaitable[BuyerLimit]]

NOT_STARTED_REASON = "Sale has not started"
ENDED_REASON = "Sale has ended"
SOLD_OUT_REASON = "Product is sold out"
NO_MINTS_REASON = "No mints available"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _min_quantity(a: int | None, b: int | None) -> int | None:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


class EligibilityChecker:
    """Decides whether a recipient may buy, checking in a fixed order.

    1. sale window started
    2. sale window not ended
    3. supply remaining
    4. recipient limit (allowlist slots, per-wallet maximum)

    The first failing check wins. The recipient limit is looked up only when
    the first three pass.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock

    def sale_status(self, sale: SaleState) -> ProductStatus:
        now = self._clock()
        if sale.start is not None and now < sale.start:
            return ProductStatus.UPCOMING
        if sale.end is not None and now > sale.end:
            return ProductStatus.ENDED
        if sale.remaining == 0:
            return ProductStatus.SOLD_OUT
        return ProductStatus.ACTIVE

    async def evaluate(
        self, sale: SaleState, buyer_limit: BuyerLimitLookup
    ) -> EligibilityResult:
        """Eligibility of a recipient. Never raises for eligibility reasons."""
        status = self.sale_status(sale)
        if status is ProductStatus.UPCOMING:
            return EligibilityResult(False, NOT_STARTED_REASON, 0)
        if status is ProductStatus.ENDED:
            return EligibilityResult(False, ENDED_REASON, 0)
        if status is ProductStatus.SOLD_OUT:
            return EligibilityResult(False, SOLD_OUT_REASON, 0)

        limit = await buyer_limit()
        quantity = _min_quantity(sale.remaining, limit.quantity)
        if quantity == 0:
            return EligibilityResult(False, limit.reason or NO_MINTS_REASON, 0)
        return EligibilityResult(True, None, quantity)

    async def ensure_eligible(
        self, sale: SaleState, buyer_limit: BuyerLimitLookup, quantity: int
    ) -> EligibilityResult:
        """Like ``evaluate`` but raises the typed error for the first failing check.

        Raises:
            NotStartedError, EndedError, SoldOutError: Sale window or supply
            NotEligibleError: The recipient may not buy any unit
            InvalidInputError: ``quantity`` exceeds the recipient's allocation
        """
        status = self.sale_status(sale)
        details = {"status": status.value}
        if status is ProductStatus.UPCOMING:
            raise NotStartedError(NOT_STARTED_REASON, details=details)
        if status is ProductStatus.ENDED:
            raise EndedError(ENDED_REASON, details=details)
        if status is ProductStatus.SOLD_OUT:
            raise SoldOutError(SOLD_OUT_REASON, details=details)

        result = await self.evaluate(sale, buyer_limit)
        if not result.is_eligible:
            raise NotEligibleError(
                result.reason or "Not eligible", details={"quantity": result.quantity}
            )
        if result.quantity is not None and quantity > result.quantity:
            raise InvalidInputError(
                "Quantity exceeds available allocation",
                details={"requested": quantity, "available": result.quantity},
            )
        logger.debug("Eligible for %d (allocation %s)", quantity, result.quantity)
        return result
