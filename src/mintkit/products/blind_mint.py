from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..abi import decode_struct, encode_call, load_gacha_extension_abi
from ..api.models import Asset
from ..constants import AppId, ProductKind
from ..domain import TransactionRequest
from ..errors import InvalidInputError
from ..money import Money
from ..purchase import (
    UNLIMITED,
    BuyerLimit,
    GasBuffer,
    PreparedPurchase,
    PurchaseCall,
    SaleState,
)
from .base import BaseProduct, OnchainData, from_unix

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlindMintOnchainData(OnchainData):
    starting_token_id: int = 0
    token_variations: int = 0
    payment_receiver: str | None = None


@dataclass(frozen=True)
class UserMints:
    reserved: int
    delivered: int

    @property
    def pending(self) -> int:
        return max(0, self.reserved - self.delivered)


DEFAULT_TIER = "Common"


@dataclass(frozen=True)
class TokenVariation:
    token_id: int
    metadata: Asset
    tier: str


@dataclass(frozen=True)
class Tier:
    name: str
    probability: float
    token_indices: tuple[int, ...]


class BlindMintProduct(BaseProduct):
    """Randomized mint: buyers reserve units and the token variation is revealed on delivery.

    There is no allowlist or per-wallet cap; units are always delivered to
    the purchasing wallet.
    """

    kind = ProductKind.BLIND_MINT
    app_id = AppId.BLIND_MINT_1155

    @property
    def spender(self) -> str:
        extension = self.instance.public_data.extension_address_1155
        if extension is None:
            raise InvalidInputError(
                "Blind mint is missing its extension address",
                details={"instance_id": str(self.id)},
            )
        return extension.value

    async def _read(self, function_name: str, *args):
        return await self.context.reader.read_contract(
            self.network_id,
            self.spender,
            load_gacha_extension_abi(),
            function_name,
            list(args),
        )

    async def _read_onchain(self) -> BlindMintOnchainData:
        raw_claim, mint_fee = await asyncio.gather(
            self._read("getClaim", self.creator_contract, self.id),
            self._read("MINT_FEE"),
        )
        claim = decode_struct(load_gacha_extension_abi(), "getClaim", raw_claim)
        unit_price = await self.context.currencies.money(
            self.network_id, claim["erc20"], claim["cost"]
        )
        return BlindMintOnchainData(
            sale=SaleState(
                start=from_unix(claim["startDate"]),
                end=from_unix(claim["endDate"]),
                total_max=int(claim["totalMax"]) or UNLIMITED,
                total_minted=int(claim["total"]),
            ),
            unit_price=unit_price,
            platform_fee=Money.native(int(mint_fee), self.network_id),
            starting_token_id=int(claim["startingTokenId"]),
            token_variations=int(claim["tokenVariations"]),
            payment_receiver=claim.get("paymentReceiver"),
        )

    def _unit_fee(self, data: OnchainData) -> Money:
        return data.platform_fee

    async def _buyer_limit(self, recipient: str, data: OnchainData) -> BuyerLimit:
        return BuyerLimit(UNLIMITED)

    def get_tier_probabilities(self) -> list[Tier]:
        return [
            Tier(name=t.group, probability=t.rate, token_indices=tuple(t.indices))
            for t in self.instance.public_data.tier_probabilities
        ]

    def _tier_for_index(self, index: int) -> str:
        for tier in self.instance.public_data.tier_probabilities:
            if index in tier.indices:
                return tier.group
        return DEFAULT_TIER

    async def get_token_variations(self) -> list[TokenVariation]:
        """Every token a reservation can reveal, with its tier.

        Pool series indices are 1-based and map onto consecutive token ids
        from the claim's starting token id.
        """
        data = await self.fetch_onchain_data()
        assert isinstance(data, BlindMintOnchainData)
        return [
            TokenVariation(
                token_id=data.starting_token_id + item.series_index - 1,
                metadata=item.metadata,
                tier=self._tier_for_index(item.series_index - 1),
            )
            for item in self.instance.public_data.pool
        ]

    async def get_claimable_tokens(self, wallet: str) -> list[TokenVariation]:
        """Tokens ``wallet`` could receive; empty when it cannot purchase."""
        allocation = await self.get_allocation(wallet)
        if not allocation.is_eligible:
            return []
        return await self.get_token_variations()

    async def get_user_mints(self, wallet: str) -> UserMints:
        """Units ``wallet`` has reserved and how many of them were delivered."""
        raw = await self._read("getUserMints", wallet, self.creator_contract, self.id)
        fields = decode_struct(load_gacha_extension_abi(), "getUserMints", raw)
        return UserMints(
            reserved=int(fields["reservedCount"]),
            delivered=int(fields["deliveredCount"]),
        )

    async def prepare_purchase(
        self,
        buyer: str,
        quantity: int = 1,
        recipient: str | None = None,
        gas_buffer: GasBuffer | None = None,
    ) -> PreparedPurchase:
        if recipient is not None and recipient.lower() != buyer.lower():
            raise InvalidInputError(
                "Blind mints are delivered to the purchasing wallet",
                details={"buyer": buyer, "recipient": recipient},
            )
        return await super().prepare_purchase(buyer, quantity, None, gas_buffer)

    async def _purchase_call(
        self, recipient: str, quantity: int, data: OnchainData
    ) -> PurchaseCall:
        async def build(sender: str) -> TransactionRequest:
            calldata = encode_call(
                self.spender,
                load_gacha_extension_abi(),
                "mintReserve",
                [self.creator_contract, self.id, quantity],
            )
            return TransactionRequest(
                to=self.spender, data=calldata, chain_id=self.network_id
            )

        logger.debug("Reserving %d blind mint(s) of %s", quantity, self.id)
        return PurchaseCall(
            step_id="mint",
            name="Reserve Blind Mint",
            description=f"Reserve {quantity} blind mint(s)",
            build=build,
        )
