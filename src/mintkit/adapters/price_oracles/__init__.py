from __future__ import annotations

from ...settings import ClientSettings
from .base import BasePriceOracle
from .chained import ChainedPriceOracle
from .coinbase import CoinbasePriceOracle
from .coingecko import CoinGeckoPriceOracle

PRICE_ORACLES = [
    CoinbasePriceOracle,
    CoinGeckoPriceOracle,
]


def default_price_oracle(settings: ClientSettings) -> BasePriceOracle:
    return ChainedPriceOracle(settings, [cls(settings) for cls in PRICE_ORACLES])


__all__ = [
    "PRICE_ORACLES",
    "BasePriceOracle",
    "ChainedPriceOracle",
    "CoinGeckoPriceOracle",
    "CoinbasePriceOracle",
    "default_price_oracle",
]
