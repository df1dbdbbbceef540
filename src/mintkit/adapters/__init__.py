from __future__ import annotations

from .price_oracles import PRICE_ORACLES

__all__ = ["PRICE_ORACLES"]
