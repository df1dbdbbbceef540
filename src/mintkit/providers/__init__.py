from __future__ import annotations

from .base import ReadProvider
from .fallback import execute_with_provider_fallback
from .reader import ChainReader
from .web3_provider import Web3ReadProvider

__all__ = [
    "ChainReader",
    "ReadProvider",
    "Web3ReadProvider",
    "execute_with_provider_fallback",
]
