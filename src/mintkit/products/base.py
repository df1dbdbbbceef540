from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Sequence

from ..constants import ProductKind
from ..errors import (
    ApiError,
    EndedError,
    InvalidInputError,
    MintkitError,
    NotStartedError,
    SoldOutError,
)
from ..money import Money
from ..purchase import (
    BuyerLimit,
    CostCalculator,
    EligibilityChecker,
    EligibilityResult,
    GasBuffer,
    Order,
    PreparedPurchase,
    ProductStatus,
    PurchaseCall,
    PurchaseObserver,
    PurchaseOrchestrator,
    Receipt,
    SaleState,
    StepPlanner,
    TransactionStep,
)
from ..validation import require_address, require_quantity

if TYPE_CHECKING:
    from ..accounts.base import SigningAccount
    from ..api.models import CatalogInstance, ContractInfo, Creator
    from ..context import ClientContext

logger = logging.getLogger(__name__)


def from_unix(seconds: int) -> datetime | None:
    """Contract timestamp to an aware datetime; 0 means "not set"."""
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc) if seconds else None


@dataclass(frozen=True)
class OnchainData:
    sale: SaleState
    unit_price: Money
    platform_fee: Money
    wallet_max: int | None = None
    audience: str = "none"

    @property
    def is_allowlist(self) -> bool:
        return self.audience == "allowlist"


@dataclass(frozen=True)
class ProductInventory:
    total_supply: int | None
    total_purchased: int

    @property
    def remaining(self) -> int | None:
        if self.total_supply is None:
            return None
        return max(0, self.total_supply - self.total_purchased)


@dataclass(frozen=True)
class ProductRules:
    start: datetime | None
    end: datetime | None
    audience_restriction: str
    max_per_wallet: int | None


@dataclass(frozen=True)
class ProductProvenance:
    creator: Creator
    contract: ContractInfo
    network_id: int


@dataclass(frozen=True)
class ProductMetadata:
    name: str
    description: str


@dataclass(frozen=True)
class Media:
    image: str | None = None
    image_preview: str | None = None
    animation: str | None = None
    animation_preview: str | None = None


class BaseProduct(ABC):
    """A purchasable product resolved from the catalog.

    Subclasses read their contract's sale configuration and describe how a
    purchase call is built; preparation, eligibility and execution are shared.
    """

    kind: ClassVar[ProductKind]
    app_id: ClassVar[int]

    def __init__(self, context: ClientContext, instance: CatalogInstance):
        if instance.app_id != self.app_id:
            raise InvalidInputError(
                f"Invalid app ID for {self.kind.value}. "
                f"Expected {self.app_id}, received {instance.app_id}",
                details={"instance_id": str(instance.id)},
            )
        self.context = context
        self.instance = instance
        self.id = instance.id
        self.network_id = instance.public_data.network
        self.onchain_data: OnchainData | None = None

        self.eligibility = EligibilityChecker()
        self.costs = CostCalculator(context)
        self.planner = StepPlanner(context)
        self.orchestrator = PurchaseOrchestrator(context)

    @property
    def name(self) -> str:
        return self.instance.public_data.display_name

    @property
    def creator_contract(self) -> str:
        return self.instance.public_data.contract.contract_address

    @property
    @abstractmethod
    def spender(self) -> str:
        """Contract that receives payment and must be approved for ERC-20 spending."""
        ...

    @abstractmethod
    async def _read_onchain(self) -> OnchainData: ...

    @abstractmethod
    async def _buyer_limit(self, recipient: str, data: OnchainData) -> BuyerLimit: ...

    @abstractmethod
    def _unit_fee(self, data: OnchainData) -> Money: ...

    @abstractmethod
    async def _purchase_call(
        self, recipient: str, quantity: int, data: OnchainData
    ) -> PurchaseCall: ...

    async def fetch_onchain_data(self, force: bool = False) -> OnchainData:
        """Read (and cache) the product's on-chain sale configuration.

        Raises:
            ApiError: If the contract reads fail
        """
        if self.onchain_data is not None and not force:
            return self.onchain_data
        try:
            data = await self._read_onchain()
        except MintkitError:
            raise
        except Exception as e:
            raise ApiError(
                "Failed to fetch onchain data",
                details={"instance_id": str(self.id), "error": str(e)},
            ) from e
        self.onchain_data = data
        return data

    async def get_status(self) -> ProductStatus:
        data = await self.fetch_onchain_data()
        return self.eligibility.sale_status(data.sale)

    async def get_allocation(self, recipient: str) -> EligibilityResult:
        recipient = require_address(recipient, "recipient")
        data = await self.fetch_onchain_data()
        return await self.eligibility.evaluate(
            data.sale, lambda: self._buyer_limit(recipient, data)
        )

    async def get_inventory(self) -> ProductInventory:
        data = await self.fetch_onchain_data()
        return ProductInventory(
            total_supply=data.sale.total_max, total_purchased=data.sale.total_minted
        )

    async def get_rules(self) -> ProductRules:
        data = await self.fetch_onchain_data()
        return ProductRules(
            start=data.sale.start,
            end=data.sale.end,
            audience_restriction=data.audience,
            max_per_wallet=data.wallet_max,
        )

    def get_provenance(self) -> ProductProvenance:
        """Creator and contract the product was published from."""
        return ProductProvenance(
            creator=self.instance.creator,
            contract=self.instance.public_data.contract,
            network_id=self.network_id,
        )

    def get_metadata(self) -> ProductMetadata:
        public = self.instance.public_data
        preview = self.instance.preview_data
        return ProductMetadata(
            name=public.display_name or preview.title,
            description=public.description or preview.description,
        )

    def get_preview_media(self) -> Media | None:
        """Artwork for display; the catalog thumbnail stands in for missing images."""
        asset = self.instance.public_data.asset
        thumbnail = self.instance.preview_data.thumbnail
        if asset is None:
            if thumbnail is None:
                return None
            return Media(image=thumbnail, image_preview=thumbnail)
        return Media(
            image=asset.image or thumbnail,
            image_preview=asset.image_preview or thumbnail,
            animation=asset.animation,
            animation_preview=asset.animation_preview,
        )

    async def prepare_purchase(
        self,
        buyer: str,
        quantity: int = 1,
        recipient: str | None = None,
        gas_buffer: GasBuffer | None = None,
    ) -> PreparedPurchase:
        """Check eligibility, price the purchase and plan its steps.

        Args:
            buyer: Wallet that signs and pays
            quantity: Units to buy
            recipient: Wallet receiving the items (defaults to ``buyer``)
            gas_buffer: Extra gas headroom applied at execution

        Raises:
            InvalidInputError: Malformed address or quantity, or quantity above the allocation
            NotStartedError, EndedError, SoldOutError, NotEligibleError: Not purchasable
            InsufficientFundsError: The buyer cannot cover a total
        """
        buyer = require_address(buyer, "buyer")
        recipient = require_address(recipient or buyer, "recipient")
        require_quantity(quantity)

        data = await self.fetch_onchain_data(force=True)
        eligibility = await self.eligibility.ensure_eligible(
            data.sale, lambda: self._buyer_limit(recipient, data), quantity
        )

        product, platform_fee = CostCalculator.line_items(
            data.unit_price, self._unit_fee(data), quantity
        )
        totals = list(CostCalculator.group_by_currency(product, platform_fee).values())

        call = await self._purchase_call(recipient, quantity, data)
        call = replace(call, preflight=self._stale_quote_check(quantity, totals))
        steps = await self.planner.plan(
            network_id=self.network_id,
            buyer=buyer,
            spender=self.spender,
            totals=totals,
            call=call,
            gas_buffer=gas_buffer,
        )
        cost = await self.costs.build(
            product, platform_fee, self.network_id, steps, gas_buffer
        )
        logger.info(
            "Prepared purchase of %d x %s: %d step(s), %s",
            quantity,
            self.id,
            len(steps),
            cost.total_native.to_display_string(),
        )
        return PreparedPurchase(
            steps=tuple(steps),
            cost=cost,
            eligibility=eligibility,
            network_id=self.network_id,
            buyer=buyer,
            recipient=recipient,
            quantity=quantity,
            prepared_at=datetime.now(timezone.utc),
        )

    def _stale_quote_check(self, quantity: int, totals: Sequence[Money]):
        async def preflight(sender: str) -> None:
            data = await self.fetch_onchain_data(force=True)
            status = self.eligibility.sale_status(data.sale)
            if status is ProductStatus.UPCOMING:
                raise NotStartedError("Sale has not started")
            if status is ProductStatus.ENDED:
                raise EndedError("Sale has ended")
            remaining = data.sale.remaining
            if remaining is not None and remaining < quantity:
                raise SoldOutError(
                    "Product is sold out" if remaining == 0 else f"Only {remaining} remaining",
                    details={"requested": quantity, "remaining": remaining},
                )
            await self.planner.check_balances(self.network_id, sender, totals)

        return preflight

    async def execute_step(
        self,
        step: TransactionStep,
        account: SigningAccount,
        observer: PurchaseObserver | None = None,
        confirmations: int | None = None,
    ) -> Receipt:
        return await self.orchestrator.execute_step(step, account, observer, confirmations)

    async def purchase(
        self,
        account: SigningAccount,
        prepared: PreparedPurchase,
        observer: PurchaseObserver | None = None,
        confirmations: int | None = None,
    ) -> Order:
        return await self.orchestrator.purchase(account, prepared, observer, confirmations)
