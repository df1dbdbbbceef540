import asyncio
from decimal import Decimal

import pytest

from fakes import BASE, TOKEN
from mintkit.domain import TransactionRequest
from mintkit.money import Money
from mintkit.purchase import CostCalculator, GasBuffer, StepKind, TransactionStep


DAI_TOKEN = "0x" + "7" * 40


def usdc(value: int) -> Money:
    return Money(value=value, decimals=6, address=TOKEN, symbol="USDC", network_id=BASE)


def eth(value: int) -> Money:
    return Money.native(value, BASE)


def step(gas: int | None) -> TransactionStep:
    return TransactionStep(
        id="mint",
        name="Mint",
        kind=StepKind.PURCHASE,
        network_id=BASE,
        transaction=TransactionRequest(to=TOKEN, data="0x", chain_id=BASE, gas_limit=gas),
    )


class SlowOracle:
    oracle_name = "slow"

    async def get_usd_rate(self, symbol, token_address=None, network_id=None):
        await asyncio.sleep(5)
        return Decimal("1")


class BrokenOracle:
    oracle_name = "broken"

    async def get_usd_rate(self, symbol, token_address=None, network_id=None):
        raise ConnectionError("oracle offline")


def test_line_items_scale_by_quantity():
    product, fee = CostCalculator.line_items(usdc(2_000_000), eth(500), 3)
    assert product.value == 6_000_000
    assert fee.value == 1_500


def test_group_by_currency_sums_and_drops_zeros():
    grouped = CostCalculator.group_by_currency(eth(10), usdc(0), eth(5), usdc(7))
    assert [m.value for m in grouped.values()] == [15, 7]
    assert list(grouped) == [eth(0).currency_key, usdc(0).currency_key]


@pytest.mark.asyncio
async def test_native_price_and_fee_share_one_total(context):
    costs = CostCalculator(context)

    breakdown = await costs.build(eth(10**18), eth(5 * 10**14), BASE)

    assert breakdown.total_native.value == 10**18 + 5 * 10**14
    assert breakdown.total_erc20s == ()
    assert breakdown.product.formatted_usd == "3000.00"
    assert breakdown.platform_fee.formatted_usd == "1.50"
    assert breakdown.total_usd == "3001.50"
    assert breakdown.gas is None


@pytest.mark.asyncio
async def test_erc20_price_with_native_fee(context):
    costs = CostCalculator(context)

    breakdown = await costs.build(usdc(25_000_000), eth(5 * 10**14), BASE)

    assert breakdown.total_native.value == 5 * 10**14
    assert [m.value for m in breakdown.total_erc20s] == [25_000_000]
    assert [m.symbol for m in breakdown.totals] == ["ETH", "USDC"]
    assert breakdown.total_usd == "26.50"


@pytest.mark.asyncio
async def test_free_item_totals_zero(context):
    costs = CostCalculator(context)

    breakdown = await costs.build(eth(0), eth(0), BASE)

    assert breakdown.total_native.is_zero()
    assert breakdown.totals == ()
    assert breakdown.total_usd == "0.00"


@pytest.mark.asyncio
async def test_slow_oracle_leaves_usd_unset(context):
    context.settings.price_rate_timeout = 0.01
    context.price_oracle = SlowOracle()
    costs = CostCalculator(context)

    breakdown = await costs.build(usdc(1_000_000), eth(0), BASE)

    assert breakdown.product.formatted_usd is None
    assert breakdown.total_usd is None
    assert breakdown.total_erc20s[0].value == 1_000_000


@pytest.mark.asyncio
async def test_failing_oracle_leaves_usd_unset(context):
    context.price_oracle = BrokenOracle()

    priced = await CostCalculator(context).with_usd(eth(10**18))

    assert priced.formatted_usd is None
    assert len(context.rate_cache) == 0


@pytest.mark.asyncio
async def test_rates_are_cached(context, oracle):
    costs = CostCalculator(context)

    await costs.with_usd(eth(1))
    await costs.with_usd(eth(2))

    assert oracle.lookups == ["ETH"]


@pytest.mark.asyncio
async def test_unquoted_currency_is_cached_as_miss(context, oracle):
    costs = CostCalculator(context)
    dai = Money(value=1, decimals=18, address=DAI_TOKEN, symbol="DAI", network_id=BASE)

    assert await costs.usd_rate(dai) is None
    assert await costs.usd_rate(dai) is None
    assert oracle.lookups == ["DAI"]


@pytest.mark.asyncio
async def test_usd_estimate_is_none_when_any_amount_unpriced(context):
    costs = CostCalculator(context)
    dai = Money(value=1, decimals=18, address=DAI_TOKEN, symbol="DAI", network_id=BASE)

    assert await costs.usd_estimate([eth(10**18), usdc(1_000_000)]) == "3001.00"
    assert await costs.usd_estimate([eth(10**18), dai]) is None


@pytest.mark.asyncio
async def test_gas_cost_applies_buffer(context, provider):
    provider.price = 2
    costs = CostCalculator(context)

    gas = await costs.estimate_gas_cost(
        BASE, [step(100_000), step(60_000), step(None)], GasBuffer(0.5)
    )

    assert gas == Money.native((150_000 + 90_000) * 2, BASE)


@pytest.mark.asyncio
async def test_gas_price_failure_leaves_gas_unset(context, provider):
    provider.price = ConnectionError("rpc down")

    breakdown = await CostCalculator(context).build(
        eth(10**18), eth(0), BASE, steps=[step(100_000)]
    )

    assert breakdown.gas is None
    assert breakdown.total_native.value == 10**18


@pytest.mark.asyncio
async def test_gas_is_reported_apart_from_payable_total(context, provider):
    provider.price = 1

    breakdown = await CostCalculator(context).build(
        eth(1_000), eth(0), BASE, steps=[step(21_000)]
    )

    assert breakdown.total_native.value == 1_000
    assert breakdown.gas.value == 21_000
    assert breakdown.estimated_native_total().value == 22_000
