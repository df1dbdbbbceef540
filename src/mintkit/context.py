"""Client context: the settings and shared collaborators passed through every operation."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable

from .adapters.price_oracles import BasePriceOracle, default_price_oracle
from .api.catalog import CatalogClient
from .constants import DEFAULT_RPC_URLS
from .currency import CurrencyResolver
from .providers.reader import ChainReader
from .providers.web3_provider import Web3ReadProvider
from .settings import ClientSettings

RateKey = tuple[int, str]


class PriceRateCache:
    """USD rates keyed by (network, token address), expiring after ``ttl`` seconds.

    Misses (None rates) are cached too so a currency an oracle cannot quote is
    not looked up again until the entry expires.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[RateKey, tuple[float, Decimal | None]] = {}

    def get(self, key: RateKey) -> tuple[bool, Decimal | None]:
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        stored_at, rate = entry
        if self._clock() - stored_at > self.ttl:
            del self._entries[key]
            return False, None
        return True, rate

    def put(self, key: RateKey, rate: Decimal | None) -> None:
        if self.ttl <= 0:
            return
        self._entries[key] = (self._clock(), rate)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def build_reader(settings: ClientSettings) -> ChainReader:
    networks = set(settings.rpc_urls)
    if settings.use_default_rpcs:
        networks |= set(DEFAULT_RPC_URLS)
    return ChainReader(
        {
            network_id: [
                Web3ReadProvider(url, timeout=settings.rpc_timeout)
                for url in settings.rpc_urls_for(network_id)
            ]
            for network_id in networks
        }
    )


@dataclass
class ClientContext:
    """Container for client-wide state and dependencies.

    Passed to products and purchase components to avoid global state and
    enable testing.
    """

    settings: ClientSettings
    logger: logging.Logger
    reader: ChainReader
    price_oracle: BasePriceOracle
    catalog: CatalogClient
    rate_cache: PriceRateCache = field(init=False)
    currencies: CurrencyResolver = field(init=False)

    def __post_init__(self) -> None:
        self.rate_cache = PriceRateCache(self.settings.price_rate_cache_ttl)
        self.currencies = CurrencyResolver(self.reader)

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        *,
        reader: ChainReader | None = None,
        price_oracle: BasePriceOracle | None = None,
        catalog: CatalogClient | None = None,
    ) -> ClientContext:
        return cls(
            settings=settings,
            logger=logging.getLogger("mintkit"),
            reader=reader or build_reader(settings),
            price_oracle=price_oracle or default_price_oracle(settings),
            catalog=catalog
            or CatalogClient(settings.catalog_api_url, timeout=settings.catalog_timeout),
        )

    def close(self) -> None:
        self.rate_cache.clear()
        self.currencies.clear()
