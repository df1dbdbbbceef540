from __future__ import annotations

import logging
from decimal import Decimal
from typing import Sequence

from ...settings import ClientSettings
from .base import BasePriceOracle

logger = logging.getLogger(__name__)


class ChainedPriceOracle(BasePriceOracle):
    """Asks each oracle in turn and returns the first rate found."""

    def __init__(self, settings: ClientSettings, oracles: Sequence[BasePriceOracle]):
        super().__init__(settings)
        self.oracles = list(oracles)

    @property
    def oracle_name(self) -> str:
        return "chained(" + ",".join(o.oracle_name for o in self.oracles) + ")"

    async def get_usd_rate(
        self,
        symbol: str,
        token_address: str | None = None,
        network_id: int | None = None,
    ) -> Decimal | None:
        for oracle in self.oracles:
            try:
                rate = await oracle.get_usd_rate(symbol, token_address, network_id)
            except Exception as e:
                logger.warning(
                    "%s failed to quote %s/USD: %s", oracle.oracle_name, symbol, e
                )
                continue
            if rate is not None:
                return rate
        return None
