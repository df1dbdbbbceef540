"""Resolve currency metadata (symbol, decimals) for native and ERC-20 amounts."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .abi import load_erc20_abi
from .constants import NATIVE_DECIMALS, NATIVE_SYMBOLS, ZERO_ADDRESS
from .money import Money
from .providers.reader import ChainReader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrencyInfo:
    address: str
    symbol: str
    decimals: int
    network_id: int

    @property
    def is_native(self) -> bool:
        return self.address.lower() == ZERO_ADDRESS


class CurrencyResolver:
    """Builds Money values, reading ERC-20 metadata once per token and network."""

    def __init__(self, reader: ChainReader):
        self.reader = reader
        self._cache: dict[tuple[int, str], CurrencyInfo] = {}

    async def resolve(self, network_id: int, address: str | None) -> CurrencyInfo:
        address = address or ZERO_ADDRESS
        key = (network_id, address.lower())
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        if key[1] == ZERO_ADDRESS:
            info = CurrencyInfo(
                address=ZERO_ADDRESS,
                symbol=NATIVE_SYMBOLS.get(network_id, "ETH"),
                decimals=NATIVE_DECIMALS,
                network_id=network_id,
            )
        else:
            abi = load_erc20_abi()
            symbol, decimals = await asyncio.gather(
                self.reader.read_contract(network_id, address, abi, "symbol"),
                self.reader.read_contract(network_id, address, abi, "decimals"),
            )
            info = CurrencyInfo(
                address=address,
                symbol=str(symbol),
                decimals=int(decimals),
                network_id=network_id,
            )
            logger.debug(
                "Resolved token %s on %d: %s (%d decimals)",
                address,
                network_id,
                info.symbol,
                info.decimals,
            )

        self._cache[key] = info
        return info

    async def money(self, network_id: int, address: str | None, value: int) -> Money:
        info = await self.resolve(network_id, address)
        return Money(
            value=int(value),
            decimals=info.decimals,
            address=info.address,
            symbol=info.symbol,
            network_id=network_id,
        )

    def clear(self) -> None:
        self._cache.clear()
