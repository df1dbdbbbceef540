from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping, Sequence, TypeVar

from ..abi import load_erc20_abi
from ..domain import TransactionRequest
from .base import ReadProvider
from .fallback import execute_with_provider_fallback

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _chain_id(provider: ReadProvider) -> int:
    return await provider.get_chain_id()


class ChainReader:
    """Read access to every configured network, with per-network provider fallback.

    Each network maps to an ordered list of redundant endpoints (primary
    first). Reads never switch a provider's network; endpoints reporting the
    wrong chain are skipped.
    """

    def __init__(self, providers: Mapping[int, Sequence[ReadProvider]]):
        self._providers = {int(k): list(v) for k, v in providers.items()}

    def providers_for(self, network_id: int) -> list[ReadProvider]:
        return list(self._providers.get(network_id, []))

    @property
    def networks(self) -> list[int]:
        return sorted(self._providers)

    async def call(
        self, network_id: int, operation: Callable[[ReadProvider], Awaitable[T]]
    ) -> T:
        return await execute_with_provider_fallback(
            network_id=network_id,
            providers=self.providers_for(network_id),
            get_chain_id=_chain_id,
            operation=operation,
        )

    async def read_contract(
        self,
        network_id: int,
        address: str,
        abi: list[dict],
        function_name: str,
        args: Sequence[Any] = (),
    ) -> Any:
        return await self.call(
            network_id,
            lambda p: p.read_contract(address, abi, function_name, args),
        )

    async def get_balance(self, network_id: int, address: str) -> int:
        return await self.call(network_id, lambda p: p.get_balance(address))

    async def erc20_balance(self, network_id: int, token: str, owner: str) -> int:
        result = await self.read_contract(
            network_id, token, load_erc20_abi(), "balanceOf", [owner]
        )
        return int(result)

    async def erc20_allowance(
        self, network_id: int, token: str, owner: str, spender: str
    ) -> int:
        result = await self.read_contract(
            network_id, token, load_erc20_abi(), "allowance", [owner, spender]
        )
        return int(result)

    async def estimate_gas(
        self, network_id: int, request: TransactionRequest, sender: str
    ) -> int:
        return await self.call(network_id, lambda p: p.estimate_gas(request, sender))

    async def gas_price(self, network_id: int) -> int:
        return await self.call(network_id, lambda p: p.get_gas_price())

    async def block_number(self, network_id: int) -> int:
        return await self.call(network_id, lambda p: p.get_block_number())
