from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from web3 import Web3

from ..abi import decode_struct, encode_call, load_edition_claim_abi
from ..constants import ZERO_HASH, AppId, ProductKind
from ..domain import TransactionRequest
from ..errors import InvalidInputError
from ..money import Money
from ..purchase import UNLIMITED, BuyerLimit, PurchaseCall, SaleState
from .base import BaseProduct, OnchainData, from_unix

logger = logging.getLogger(__name__)

USED_ALL_SLOTS_REASON = "You have used up all your allotted slots"
WALLET_MAX_REASON = "You have reached the maximum per wallet"
NOT_ON_ALLOWLIST_REASON = "You are not on the allowlist"


def _to_hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    return str(value).lower()


@dataclass(frozen=True)
class EditionOnchainData(OnchainData):
    merkle_platform_fee: Money | None = None
    merkle_root: str = ZERO_HASH
    token_id: int | None = None
    payment_receiver: str | None = None


@dataclass(frozen=True)
class ClaimableSlots:
    """Unused allowlist slots of a wallet, with their merkle proofs."""

    mint_indices: list[int]
    merkle_proofs: list[list[str]]
    is_on_allowlist: bool


class EditionProduct(BaseProduct):
    """Fixed or open edition sold through an Edition claim extension.

    Sales may be public (optionally capped per wallet) or restricted to an
    allowlist, in which case each unit consumes one merkle slot.
    """

    kind = ProductKind.EDITION
    app_id = AppId.EDITION

    @property
    def spec(self) -> str:
        return self.instance.public_data.contract.spec.lower()

    @property
    def spender(self) -> str:
        public = self.instance.public_data
        if self.spec == "erc721" and public.extension_address_721 is not None:
            return public.extension_address_721.value
        if self.spec == "erc1155" and public.extension_address_1155 is not None:
            return public.extension_address_1155.value
        raise InvalidInputError(
            f"Unsupported contract spec: {self.spec}",
            details={"instance_id": str(self.id)},
        )

    @property
    def abi(self) -> list[dict]:
        return load_edition_claim_abi(self.spec)

    @property
    def merkle_tree_id(self) -> int | None:
        allowlist = self.instance.public_data.instance_allowlist
        return allowlist.merkle_tree_id if allowlist is not None else None

    async def _read(self, function_name: str, *args):
        return await self.context.reader.read_contract(
            self.network_id, self.spender, self.abi, function_name, list(args)
        )

    async def _read_onchain(self) -> EditionOnchainData:
        raw_claim, mint_fee, merkle_fee = await asyncio.gather(
            self._read("getClaim", self.creator_contract, self.id),
            self._read("MINT_FEE"),
            self._read("MINT_FEE_MERKLE"),
        )
        claim = decode_struct(self.abi, "getClaim", raw_claim)

        unit_price = await self.context.currencies.money(
            self.network_id, claim["erc20"], claim["cost"]
        )
        merkle_root = _to_hex(claim["merkleRoot"])
        total_max = int(claim["totalMax"])
        wallet_max = int(claim["walletMax"])

        return EditionOnchainData(
            sale=SaleState(
                start=from_unix(claim["startDate"]),
                end=from_unix(claim["endDate"]),
                total_max=total_max or UNLIMITED,
                total_minted=int(claim["total"]),
            ),
            unit_price=unit_price,
            platform_fee=Money.native(int(mint_fee), self.network_id),
            wallet_max=wallet_max or None,
            audience="allowlist" if merkle_root != ZERO_HASH else "none",
            merkle_platform_fee=Money.native(int(merkle_fee), self.network_id),
            merkle_root=merkle_root,
            token_id=int(claim["tokenId"]) if "tokenId" in claim else None,
            payment_receiver=claim.get("paymentReceiver"),
        )

    def _unit_fee(self, data: OnchainData) -> Money:
        if isinstance(data, EditionOnchainData) and data.is_allowlist:
            return data.merkle_platform_fee or data.platform_fee
        return data.platform_fee

    async def claimable_slots(self, wallet: str) -> ClaimableSlots:
        """Allowlist slots of ``wallet`` not yet minted."""
        tree_id = self.merkle_tree_id
        if tree_id is None:
            return ClaimableSlots([], [], False)

        entries = await self.context.catalog.get_merkle_info(tree_id, wallet, self.app_id)
        assigned = [e for e in entries if e.value is not None]
        minted: list[bool] = []
        if assigned:
            minted = list(
                await self._read(
                    "checkMintIndices",
                    self.creator_contract,
                    self.id,
                    [e.value for e in assigned],
                )
            )
        claimable = [e for e, used in zip(assigned, minted) if not used]
        logger.debug("%s has %d claimable allowlist slot(s)", wallet, len(claimable))
        return ClaimableSlots(
            mint_indices=[e.value for e in claimable],  # type: ignore[misc]
            merkle_proofs=[e.merkle_proof for e in claimable],
            is_on_allowlist=len(entries) > 0,
        )

    async def _buyer_limit(self, recipient: str, data: OnchainData) -> BuyerLimit:
        if data.is_allowlist and self.merkle_tree_id is not None:
            slots = await self.claimable_slots(recipient)
            available = len(slots.mint_indices)
            if available == 0:
                reason = (
                    USED_ALL_SLOTS_REASON
                    if slots.is_on_allowlist
                    else NOT_ON_ALLOWLIST_REASON
                )
                return BuyerLimit(0, reason)
            return BuyerLimit(available)

        if data.wallet_max:
            minted = int(
                await self._read(
                    "getTotalMints", recipient, self.creator_contract, self.id
                )
            )
            available = max(0, data.wallet_max - minted)
            return BuyerLimit(available, WALLET_MAX_REASON if available == 0 else None)

        return BuyerLimit(UNLIMITED)

    async def _mint_proofs(
        self, recipient: str, quantity: int, data: OnchainData
    ) -> tuple[list[int], list[list[str]]]:
        if not data.is_allowlist:
            return [], []
        slots = await self.claimable_slots(recipient)
        return slots.mint_indices[:quantity], slots.merkle_proofs[:quantity]

    async def _purchase_call(
        self, recipient: str, quantity: int, data: OnchainData
    ) -> PurchaseCall:
        async def build(sender: str) -> TransactionRequest:
            mint_indices, merkle_proofs = await self._mint_proofs(
                recipient, quantity, data
            )
            calldata = encode_call(
                self.spender,
                self.abi,
                "mintProxy",
                [
                    self.creator_contract,
                    self.id,
                    quantity,
                    mint_indices,
                    merkle_proofs,
                    recipient,
                ],
            )
            return TransactionRequest(
                to=self.spender, data=calldata, chain_id=self.network_id
            )

        return PurchaseCall(
            step_id="mint",
            name="Mint Edition NFTs",
            description=f"Mint {quantity} NFT(s)",
            build=build,
        )
