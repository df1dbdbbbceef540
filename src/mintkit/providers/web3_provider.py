from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence
from urllib.parse import urlparse

from eth_typing import URI
from web3 import Web3

from ..domain import TransactionRequest
from .base import ReadProvider

logger = logging.getLogger(__name__)


class Web3ReadProvider(ReadProvider):
    """ReadProvider backed by a web3 HTTP endpoint.

    web3's HTTP provider is blocking, so every call is pushed to a worker
    thread to keep the event loop free.
    """

    def __init__(self, rpc_url: str, timeout: float = 15.0, w3: Web3 | None = None):
        self._rpc_url = rpc_url
        self.w3 = w3 or Web3(
            Web3.HTTPProvider(URI(rpc_url), request_kwargs={"timeout": timeout})
        )
        self._chain_id: int | None = None

    @property
    def name(self) -> str:
        return urlparse(self._rpc_url).hostname or "web3"

    async def get_chain_id(self) -> int:
        # An endpoint's chain never changes, so one lookup is enough
        if self._chain_id is None:
            self._chain_id = int(await asyncio.to_thread(lambda: self.w3.eth.chain_id))
        return self._chain_id

    async def read_contract(
        self,
        address: str,
        abi: list[dict],
        function_name: str,
        args: Sequence[Any] = (),
    ) -> Any:
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(address), abi=abi
        )
        fn = contract.get_function_by_name(function_name)(*args)
        return await asyncio.to_thread(fn.call)

    async def get_balance(self, address: str) -> int:
        checksum = Web3.to_checksum_address(address)
        return int(await asyncio.to_thread(self.w3.eth.get_balance, checksum))

    async def estimate_gas(self, request: TransactionRequest, sender: str) -> int:
        tx = request.to_call_dict(sender=Web3.to_checksum_address(sender))
        tx["to"] = Web3.to_checksum_address(request.to)
        return int(await asyncio.to_thread(self.w3.eth.estimate_gas, tx))  # type: ignore[arg-type]

    async def get_gas_price(self) -> int:
        return int(await asyncio.to_thread(lambda: self.w3.eth.gas_price))

    async def get_block_number(self) -> int:
        return int(await asyncio.to_thread(lambda: self.w3.eth.block_number))
