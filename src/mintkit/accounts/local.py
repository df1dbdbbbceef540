from __future__ import annotations

import asyncio
import logging
import time

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import URI
from web3 import Web3

from ..domain import TransactionConfirmation, TransactionRequest
from .base import SigningAccount

logger = logging.getLogger(__name__)


class LocalSigningAccount(SigningAccount):
    """Signs with an in-process private key and broadcasts through one RPC endpoint.

    The account is bound to the endpoint's network and cannot switch.
    """

    def __init__(
        self,
        private_key: str,
        rpc_url: str | None = None,
        *,
        w3: Web3 | None = None,
        poll_interval: float = 2.0,
        confirmation_timeout: float = 300.0,
    ):
        if w3 is None and rpc_url is None:
            raise ValueError("Either rpc_url or w3 is required")
        self._account: LocalAccount = Account.from_key(private_key)
        self.w3 = w3 or Web3(Web3.HTTPProvider(URI(rpc_url)))  # type: ignore[arg-type]
        self._poll_interval = poll_interval
        self._confirmation_timeout = confirmation_timeout

    @property
    def address(self) -> str:
        return self._account.address

    async def get_chain_id(self) -> int:
        return int(await asyncio.to_thread(lambda: self.w3.eth.chain_id))

    def _build_tx(self, request: TransactionRequest) -> dict:
        tx: dict = {
            "from": self.address,
            "to": Web3.to_checksum_address(request.to),
            "data": request.data,
            "value": request.value,
            "chainId": request.chain_id,
            "nonce": self.w3.eth.get_transaction_count(self.address, "pending"),
        }
        latest = self.w3.eth.get_block("latest")
        base_fee = latest.get("baseFeePerGas")
        if base_fee is not None:
            priority = self.w3.eth.max_priority_fee
            tx["maxPriorityFeePerGas"] = priority
            tx["maxFeePerGas"] = base_fee * 2 + priority
        else:
            tx["gasPrice"] = self.w3.eth.gas_price
        tx["gas"] = (
            request.gas_limit
            if request.gas_limit is not None
            else self.w3.eth.estimate_gas(tx)  # type: ignore[arg-type]
        )
        return tx

    def _sign_and_send(self, request: TransactionRequest) -> str:
        tx = self._build_tx(request)
        signed = self._account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)

    async def send_transaction(self, request: TransactionRequest) -> str:
        tx_hash = await asyncio.to_thread(self._sign_and_send, request)
        logger.info("Submitted transaction %s from %s", tx_hash, self.address)
        return tx_hash

    async def wait_for_confirmation(
        self, tx_hash: str, confirmations: int = 1
    ) -> TransactionConfirmation:
        receipt = await asyncio.to_thread(
            self.w3.eth.wait_for_transaction_receipt,
            tx_hash,
            timeout=self._confirmation_timeout,
            poll_latency=self._poll_interval,
        )
        if receipt["status"] != 1:
            raise RuntimeError(f"Transaction {tx_hash} reverted")

        mined_block = int(receipt["blockNumber"])
        deadline = time.monotonic() + self._confirmation_timeout
        while True:
            head = int(await asyncio.to_thread(lambda: self.w3.eth.block_number))
            depth = head - mined_block + 1
            if depth >= confirmations:
                break
            if time.monotonic() > deadline:
                raise TimeoutError(
                    f"Transaction {tx_hash} reached {depth}/{confirmations} confirmations before timeout"
                )
            await asyncio.sleep(self._poll_interval)

        return TransactionConfirmation(
            tx_hash=tx_hash,
            network_id=int(receipt.get("chainId") or await self.get_chain_id()),
            confirmations=depth,
            block_number=mined_block,
            gas_used=int(receipt["gasUsed"]),
            status=int(receipt["status"]),
        )
