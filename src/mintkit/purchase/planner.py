from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Sequence

from ..abi import encode_call, load_erc20_abi
from ..constants import FALLBACK_APPROVE_GAS, FALLBACK_PURCHASE_GAS
from ..domain import TransactionRequest
from ..errors import InsufficientFundsError
from ..gas import apply_gas_buffer, estimate_gas_or_fallback
from ..money import Money, format_units
from .models import GasBuffer, StepKind, TransactionStep

if TYPE_CHECKING:
    from ..accounts.base import SigningAccount
    from ..context import ClientContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseCall:
    """How a product builds its purchase transaction.

    ``build`` returns the contract call for a given sender address; the
    planner sets its native value. ``preflight``, when set, runs right before
    the purchase step executes and raises if the quote has gone stale.
    """

    step_id: str
    name: str
    description: str
    build: Callable[[str], Awaitable[TransactionRequest]]
    preflight: Optional[Callable[[str], Awaitable[None]]] = None


def _insufficient(required: Money, balance: int) -> InsufficientFundsError:
    return InsufficientFundsError(
        f"Insufficient {required.symbol} balance. Need {required.formatted} "
        f"but have {format_units(balance, required.decimals)}",
        details={
            "currency": required.symbol,
            "required": str(required.value),
            "balance": str(balance),
        },
    )


class StepPlanner:
    """Turns per-currency totals into the ordered transaction steps of a purchase.

    Each ERC-20 total gets an approval step for the exact amount unless the
    current allowance already covers it. Exactly one purchase step follows,
    carrying the native total as its value.
    """

    def __init__(self, context: ClientContext):
        self.context = context

    @property
    def reader(self):
        return self.context.reader

    async def plan(
        self,
        *,
        network_id: int,
        buyer: str,
        spender: str,
        totals: Sequence[Money],
        call: PurchaseCall,
        gas_buffer: GasBuffer | None = None,
    ) -> list[TransactionStep]:
        """Plan the steps for paying ``totals`` to ``spender`` from ``buyer``.

        Raises:
            InsufficientFundsError: If the buyer cannot cover an ERC-20 or native total
        """
        multiplier = (
            gas_buffer.multiplier
            if gas_buffer is not None
            else self.context.settings.gas_buffer_multiplier
        )
        steps: list[TransactionStep] = []
        native_value = 0

        for required in totals:
            if required.is_zero():
                continue
            if required.is_erc20():
                approval = await self._plan_erc20(
                    network_id, buyer, spender, required, multiplier
                )
                if approval is not None:
                    steps.append(approval)
            else:
                await self._check_native_balance(network_id, buyer, required)
                native_value += required.value

        steps.append(
            await self._plan_purchase(
                network_id, buyer, call, native_value, totals, multiplier
            )
        )
        return steps

    async def check_balances(
        self, network_id: int, owner: str, totals: Sequence[Money]
    ) -> None:
        """Raise InsufficientFundsError if ``owner`` cannot cover every total.

        ERC-20 balances must be readable; an unreadable native balance is
        skipped with a warning.
        """
        for required in totals:
            if required.is_zero():
                continue
            if required.is_erc20():
                await self._check_erc20_balance(network_id, owner, required)
            else:
                await self._check_native_balance(network_id, owner, required)

    async def _check_erc20_balance(
        self, network_id: int, owner: str, required: Money
    ) -> None:
        balance = await self.reader.erc20_balance(network_id, required.address, owner)
        if balance < required.value:
            raise _insufficient(required, balance)

    async def _plan_erc20(
        self,
        network_id: int,
        buyer: str,
        spender: str,
        required: Money,
        multiplier: float,
    ) -> TransactionStep | None:
        await self._check_erc20_balance(network_id, buyer, required)

        allowance = await self.reader.erc20_allowance(
            network_id, required.address, buyer, spender
        )
        if allowance >= required.value:
            logger.debug(
                "Allowance %d covers %s %s; no approval needed",
                allowance,
                required.formatted,
                required.symbol,
            )
            return None

        request = TransactionRequest(
            to=required.address,
            data=encode_call(
                required.address, load_erc20_abi(), "approve", [spender, required.value]
            ),
            chain_id=network_id,
        )
        gas = await estimate_gas_or_fallback(
            self.reader, network_id, request, buyer, FALLBACK_APPROVE_GAS
        )

        async def build(account: SigningAccount) -> TransactionRequest:
            units = await self.reader.estimate_gas(network_id, request, account.address)
            return request.with_gas_limit(apply_gas_buffer(units, multiplier))

        return TransactionStep(
            id=f"approve-{required.address.lower()}",
            name=f"Approve {required.symbol} Spending",
            kind=StepKind.APPROVE,
            network_id=network_id,
            transaction=request.with_gas_limit(gas),
            description=f"Approve {required.formatted} {required.symbol}",
            cost=(required,),
            builder=build,
        )

    async def _check_native_balance(
        self, network_id: int, buyer: str, required: Money
    ) -> None:
        try:
            balance = await self.reader.get_balance(network_id, buyer)
        except Exception as e:
            logger.warning(
                "Unable to fetch native balance, skipping balance check: %s", e
            )
            return
        if balance < required.value:
            raise _insufficient(required, balance)

    async def _plan_purchase(
        self,
        network_id: int,
        buyer: str,
        call: PurchaseCall,
        native_value: int,
        totals: Sequence[Money],
        multiplier: float,
    ) -> TransactionStep:
        request = replace(await call.build(buyer), value=native_value)
        gas = await estimate_gas_or_fallback(
            self.reader, network_id, request, buyer, FALLBACK_PURCHASE_GAS
        )

        async def build(account: SigningAccount) -> TransactionRequest:
            sender = account.address
            if call.preflight is not None:
                await call.preflight(sender)
            fresh = replace(await call.build(sender), value=native_value)
            units = await self.reader.estimate_gas(network_id, fresh, sender)
            return fresh.with_gas_limit(apply_gas_buffer(units, multiplier))

        return TransactionStep(
            id=call.step_id,
            name=call.name,
            kind=StepKind.PURCHASE,
            network_id=network_id,
            transaction=request.with_gas_limit(gas),
            description=call.description,
            cost=tuple(m for m in totals if m.is_positive()),
            builder=build,
        )
