from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from mintkit.errors import (
    EndedError,
    InvalidInputError,
    NotEligibleError,
    NotStartedError,
    SoldOutError,
)
from mintkit.purchase import (
    UNLIMITED,
    BuyerLimit,
    EligibilityChecker,
    ProductStatus,
    SaleState,
)

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
HOUR = timedelta(hours=1)


@pytest.fixture
def checker():
    return EligibilityChecker(clock=lambda: NOW)


def limit(quantity=UNLIMITED, reason=None) -> AsyncMock:
    return AsyncMock(return_value=BuyerLimit(quantity, reason))


@pytest.mark.parametrize(
    "sale,expected",
    [
        (SaleState(NOW + HOUR, None, None), ProductStatus.UPCOMING),
        (SaleState(None, NOW - HOUR, None), ProductStatus.ENDED),
        (SaleState(None, None, 10, 10), ProductStatus.SOLD_OUT),
        (SaleState(NOW - HOUR, NOW + HOUR, 10, 3), ProductStatus.ACTIVE),
        (SaleState(None, None, None, 1_000_000), ProductStatus.ACTIVE),
    ],
)
def test_sale_status(checker, sale, expected):
    assert checker.sale_status(sale) is expected


@pytest.mark.asyncio
async def test_window_is_checked_before_supply_and_recipient(checker):
    lookup = limit(0, "You are not on the allowlist")
    sale = SaleState(NOW + HOUR, None, 10, 10)

    result = await checker.evaluate(sale, lookup)

    assert result.is_eligible is False
    assert result.reason == "Sale has not started"
    assert result.quantity == 0
    lookup.assert_not_awaited()


@pytest.mark.asyncio
async def test_ended_sale(checker):
    result = await checker.evaluate(SaleState(None, NOW - HOUR, None), limit())
    assert (result.is_eligible, result.reason, result.quantity) == (
        False,
        "Sale has ended",
        0,
    )


@pytest.mark.asyncio
async def test_sold_out_is_checked_before_recipient(checker):
    lookup = limit(5)

    result = await checker.evaluate(SaleState(None, None, 3, 3), lookup)

    assert result.reason == "Product is sold out"
    lookup.assert_not_awaited()


@pytest.mark.asyncio
async def test_recipient_reason_is_reported(checker):
    result = await checker.evaluate(
        SaleState(None, None, None), limit(0, "You are not on the allowlist")
    )
    assert result.is_eligible is False
    assert result.reason == "You are not on the allowlist"
    assert result.quantity == 0


@pytest.mark.asyncio
async def test_zero_limit_without_reason_uses_generic_reason(checker):
    result = await checker.evaluate(SaleState(None, None, None), limit(0))
    assert result.reason == "No mints available"


@pytest.mark.asyncio
async def test_quantity_is_bounded_by_supply_and_recipient(checker):
    sale = SaleState(None, None, 10, 7)

    assert (await checker.evaluate(sale, limit(5))).quantity == 3
    assert (await checker.evaluate(sale, limit(2))).quantity == 2
    assert (await checker.evaluate(sale, limit())).quantity == 3


@pytest.mark.asyncio
async def test_open_edition_without_cap_is_unlimited(checker):
    result = await checker.evaluate(SaleState(None, None, None), limit())
    assert result.is_eligible is True
    assert result.is_unlimited


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "sale,error",
    [
        (SaleState(NOW + HOUR, None, None), NotStartedError),
        (SaleState(None, NOW - HOUR, None), EndedError),
        (SaleState(None, None, 1, 1), SoldOutError),
    ],
)
async def test_ensure_eligible_raises_typed_errors(checker, sale, error):
    with pytest.raises(error):
        await checker.ensure_eligible(sale, limit(), 1)


@pytest.mark.asyncio
async def test_ensure_eligible_not_eligible_carries_reason(checker):
    with pytest.raises(NotEligibleError, match="maximum per wallet"):
        await checker.ensure_eligible(
            SaleState(None, None, None),
            limit(0, "You have reached the maximum per wallet"),
            1,
        )


@pytest.mark.asyncio
async def test_ensure_eligible_rejects_quantity_above_allocation(checker):
    with pytest.raises(InvalidInputError, match="exceeds available allocation"):
        await checker.ensure_eligible(SaleState(None, None, 10, 8), limit(), 3)


@pytest.mark.asyncio
async def test_ensure_eligible_returns_result(checker):
    result = await checker.ensure_eligible(SaleState(None, None, None), limit(4), 4)
    assert result.is_eligible
    assert result.quantity == 4
