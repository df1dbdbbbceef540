from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, Sequence

from ..gas import apply_gas_buffer
from ..money import Money, calculate_usd_value
from .models import CostBreakdown, GasBuffer, TransactionStep

if TYPE_CHECKING:
    from ..context import ClientContext

logger = logging.getLogger(__name__)

CurrencyKey = tuple[int, str, int]


def _sum_usd(amounts: Iterable[Money]) -> str | None:
    total = Decimal("0.00")
    for amount in amounts:
        if amount.formatted_usd is None:
            return None
        total += Decimal(amount.formatted_usd)
    return str(total.quantize(Decimal("0.01")))


class CostCalculator:
    """Computes the cost of buying ``quantity`` units, grouped by currency.

    Payable totals are exact. USD figures and gas are best-effort: a slow or
    failing price oracle or gas price read leaves them unset instead of
    failing the quote.
    """

    def __init__(self, context: ClientContext):
        self.context = context

    @staticmethod
    def line_items(
        unit_price: Money, unit_fee: Money, quantity: int
    ) -> tuple[Money, Money]:
        return unit_price.multiply_int(quantity), unit_fee.multiply_int(quantity)

    @staticmethod
    def group_by_currency(*amounts: Money) -> dict[CurrencyKey, Money]:
        """Sum amounts per currency, in first-seen order. Zero amounts are dropped."""
        grouped: dict[CurrencyKey, Money] = {}
        for amount in amounts:
            if amount.is_zero():
                continue
            existing = grouped.get(amount.currency_key)
            grouped[amount.currency_key] = (
                existing.add(amount) if existing is not None else amount
            )
        return grouped

    async def usd_rate(self, amount: Money) -> Decimal | None:
        key = (amount.network_id, amount.address.lower())
        found, rate = self.context.rate_cache.get(key)
        if found:
            return rate

        try:
            async with asyncio.timeout(self.context.settings.price_rate_timeout):
                rate = await self.context.price_oracle.get_usd_rate(
                    amount.symbol,
                    None if amount.is_native() else amount.address,
                    amount.network_id,
                )
        except TimeoutError:
            logger.warning("Timed out fetching %s/USD rate", amount.symbol)
            return None
        except Exception as e:
            logger.warning("Failed to fetch %s/USD rate: %s", amount.symbol, e)
            return None

        self.context.rate_cache.put(key, rate)
        return rate

    async def with_usd(self, amount: Money) -> Money:
        if amount.is_zero():
            return amount.with_usd("0.00")
        rate = await self.usd_rate(amount)
        if rate is None:
            return amount
        return amount.with_usd(calculate_usd_value(amount.value, amount.decimals, rate))

    async def usd_estimate(self, amounts: Iterable[Money]) -> str | None:
        """USD sum of ``amounts``, or None when any non-zero amount cannot be priced."""
        priced = await asyncio.gather(*(self.with_usd(a) for a in amounts))
        return _sum_usd(priced)

    async def estimate_gas_cost(
        self,
        network_id: int,
        steps: Sequence[TransactionStep],
        gas_buffer: GasBuffer | None = None,
    ) -> Money | None:
        """Native cost of the steps' gas estimates at the current gas price."""
        multiplier = (
            gas_buffer.multiplier
            if gas_buffer is not None
            else self.context.settings.gas_buffer_multiplier
        )
        units = sum(
            apply_gas_buffer(step.gas_estimate, multiplier)
            for step in steps
            if step.gas_estimate is not None
        )
        try:
            price = await self.context.reader.gas_price(network_id)
        except Exception as e:
            logger.warning("Could not read gas price on network %d: %s", network_id, e)
            return None
        return Money.native(units * price, network_id)

    async def build(
        self,
        product: Money,
        platform_fee: Money,
        network_id: int,
        steps: Sequence[TransactionStep] = (),
        gas_buffer: GasBuffer | None = None,
    ) -> CostBreakdown:
        grouped = self.group_by_currency(product, platform_fee)
        native = next((m for m in grouped.values() if m.is_native()), None)
        erc20s = tuple(m for m in grouped.values() if m.is_erc20())

        product, platform_fee = await asyncio.gather(
            self.with_usd(product), self.with_usd(platform_fee)
        )
        total_usd = _sum_usd((product, platform_fee))

        gas = await self.estimate_gas_cost(network_id, steps, gas_buffer) if steps else None

        return CostBreakdown(
            product=product,
            platform_fee=platform_fee,
            total_native=native if native is not None else Money.native(0, network_id),
            total_erc20s=erc20s,
            gas=gas,
            total_usd=total_usd,
        )
