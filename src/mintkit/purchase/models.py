"""Data models for purchase preparation and execution."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from ..domain import TransactionRequest
from ..errors import InvalidInputError
from ..money import Money

if TYPE_CHECKING:
    from ..accounts.base import SigningAccount

# Quantity sentinel meaning "no limit"
UNLIMITED = None


@dataclass(frozen=True)
class GasBuffer:
    """Extra gas headroom applied at execution; 0.25 means +25%."""

    multiplier: float = 0.0

    def __post_init__(self) -> None:
        if self.multiplier < 0:
            raise InvalidInputError(
                f"Gas buffer multiplier cannot be negative: {self.multiplier}"
            )


class StepKind(str, Enum):
    APPROVE = "approve"
    PURCHASE = "purchase"
    BRIDGE = "bridge"


StepBuilder = Callable[["SigningAccount"], Awaitable[TransactionRequest]]


@dataclass(frozen=True)
class TransactionStep:
    """One on-chain transaction of a purchase, in submission order.

    ``transaction`` is the request as planned for the buyer (with a gas
    estimate). ``build_request`` produces the request actually submitted for a
    given signer; steps without a builder submit the planned request as-is.
    """

    id: str
    name: str
    kind: StepKind
    network_id: int
    transaction: TransactionRequest
    description: str = ""
    cost: tuple[Money, ...] = ()
    builder: Optional[StepBuilder] = field(default=None, repr=False, compare=False)

    @property
    def gas_estimate(self) -> int | None:
        return self.transaction.gas_limit

    async def build_request(self, account: SigningAccount) -> TransactionRequest:
        if self.builder is None:
            return self.transaction
        return await self.builder(account)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "network_id": self.network_id,
            "description": self.description,
            "to": self.transaction.to,
            "value": str(self.transaction.value),
            "gas_estimate": self.gas_estimate,
            "cost": [m.to_dict() for m in self.cost],
        }


@dataclass(frozen=True)
class CostBreakdown:
    """Itemized and per-currency costs of a purchase.

    ``total_native`` and ``total_erc20s`` are what the buyer pays the
    contracts (product plus platform fee). Gas is reported on its own in
    ``gas``; ``estimated_native_total()`` adds it to the native total.
    """

    product: Money
    platform_fee: Money
    total_native: Money
    total_erc20s: tuple[Money, ...] = ()
    gas: Money | None = None
    total_usd: str | None = None

    @property
    def totals(self) -> tuple[Money, ...]:
        """Every non-zero payable total, native first."""
        native = (self.total_native,) if self.total_native.is_positive() else ()
        return native + self.total_erc20s

    def estimated_native_total(self) -> Money:
        if self.gas is None:
            return self.total_native
        return self.total_native.add(self.gas)

    def to_dict(self) -> dict[str, Any]:
        return {
            "product": self.product.to_dict(),
            "platform_fee": self.platform_fee.to_dict(),
            "total_native": self.total_native.to_dict(),
            "total_erc20s": [m.to_dict() for m in self.total_erc20s],
            "gas": self.gas.to_dict() if self.gas is not None else None,
            "total_usd": self.total_usd,
        }


@dataclass(frozen=True)
class EligibilityResult:
    is_eligible: bool
    reason: str | None = None
    quantity: int | None = UNLIMITED

    @property
    def is_unlimited(self) -> bool:
        return self.quantity is UNLIMITED


class ProductStatus(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    SOLD_OUT = "sold-out"
    ENDED = "ended"


@dataclass(frozen=True)
class SaleState:
    """On-chain sale window and supply, as read from the product contract."""

    start: datetime | None
    end: datetime | None
    total_max: int | None
    total_minted: int = 0

    @property
    def remaining(self) -> int | None:
        if self.total_max is None:
            return UNLIMITED
        return max(0, self.total_max - self.total_minted)


@dataclass(frozen=True)
class BuyerLimit:
    """How many units a specific recipient may still buy, and why when zero."""

    quantity: int | None = UNLIMITED
    reason: str | None = None


@dataclass(frozen=True)
class PreparedPurchase:
    """A time-bound quote: the ordered steps plus the cost and eligibility they were built from."""

    steps: tuple[TransactionStep, ...]
    cost: CostBreakdown
    eligibility: EligibilityResult
    network_id: int
    buyer: str
    recipient: str
    quantity: int
    prepared_at: datetime

    @property
    def purchase_step(self) -> TransactionStep:
        return next(s for s in self.steps if s.kind is StepKind.PURCHASE)

    @property
    def approval_steps(self) -> tuple[TransactionStep, ...]:
        return tuple(s for s in self.steps if s.kind is StepKind.APPROVE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "network_id": self.network_id,
            "buyer": self.buyer,
            "recipient": self.recipient,
            "quantity": self.quantity,
            "prepared_at": self.prepared_at.isoformat(),
            "eligibility": {
                "is_eligible": self.eligibility.is_eligible,
                "reason": self.eligibility.reason,
                "quantity": self.eligibility.quantity,
            },
            "cost": self.cost.to_dict(),
            "steps": [s.to_dict() for s in self.steps],
        }


@dataclass(frozen=True)
class Receipt:
    step_id: str
    step_name: str
    network_id: int
    tx_hash: str
    confirmations: int
    block_number: int | None = None
    gas_used: int | None = None


class OrderStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Order:
    """Outcome of an automatic purchase. Status is derived from receipt coverage."""

    steps: tuple[TransactionStep, ...]
    receipts: tuple[Receipt, ...] = ()

    @property
    def status(self) -> OrderStatus:
        done = {r.step_id for r in self.receipts}
        if self.steps and all(s.id in done for s in self.steps):
            return OrderStatus.COMPLETED
        if done:
            return OrderStatus.PARTIAL
        return OrderStatus.PENDING

    @property
    def tx_hashes(self) -> list[str]:
        return [r.tx_hash for r in self.receipts]


class PurchaseObserver:
    """Progress hooks for step execution. Subclass and override what you need."""

    def on_step_started(self, step: TransactionStep) -> None:
        pass

    def on_step_submitted(self, step: TransactionStep, tx_hash: str) -> None:
        pass

    def on_step_confirmed(self, step: TransactionStep, receipt: Receipt) -> None:
        pass

    def on_step_failed(self, step: TransactionStep, error: BaseException) -> None:
        pass
