from __future__ import annotations

import logging
from decimal import Decimal

from ...constants import COINBASE_COMMON_TOKENS
from .base import BasePriceOracle, get_json_with_retry, parse_rate

logger = logging.getLogger(__name__)


class CoinbasePriceOracle(BasePriceOracle):
    """Spot prices from the public Coinbase API.

    Native currencies are always looked up; ERC-20 tokens only when Coinbase
    lists the symbol directly.
    """

    @property
    def oracle_name(self) -> str:
        return "coinbase"

    def quotes(self, symbol: str, token_address: str | None) -> bool:
        return token_address is None or symbol.upper() in COINBASE_COMMON_TOKENS

    async def get_usd_rate(
        self,
        symbol: str,
        token_address: str | None = None,
        network_id: int | None = None,
    ) -> Decimal | None:
        if not self.quotes(symbol, token_address):
            return None

        url = f"{self.settings.coinbase_api_url.rstrip('/')}/prices/{symbol.upper()}-USD/spot"
        payload = await get_json_with_retry(
            url, timeout=self.settings.price_rate_timeout
        )
        rate = parse_rate((payload.get("data") or {}).get("amount"))
        logger.debug("Coinbase %s-USD: %s", symbol, rate)
        return rate
