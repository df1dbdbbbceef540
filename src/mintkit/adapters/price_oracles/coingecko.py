from __future__ import annotations

import logging
from decimal import Decimal

from ...constants import COINGECKO_IDS, COINGECKO_PLATFORMS, NetworkId
from .base import BasePriceOracle, get_json_with_retry, parse_rate

logger = logging.getLogger(__name__)


class CoinGeckoPriceOracle(BasePriceOracle):
    """Prices from the public CoinGecko API.

    Tokens are looked up by contract address on the token's platform when the
    address is known, otherwise by CoinGecko coin id.
    """

    @property
    def oracle_name(self) -> str:
        return "coingecko"

    async def get_usd_rate(
        self,
        symbol: str,
        token_address: str | None = None,
        network_id: int | None = None,
    ) -> Decimal | None:
        base_url = self.settings.coingecko_api_url.rstrip("/")
        timeout = self.settings.price_rate_timeout

        if token_address is not None:
            platform = COINGECKO_PLATFORMS.get(
                network_id if network_id is not None else NetworkId.MAINNET
            )
            if platform is None:
                return None
            key = token_address.lower()
            payload = await get_json_with_retry(
                f"{base_url}/simple/token_price/{platform}",
                params={"contract_addresses": key, "vs_currencies": "usd"},
                timeout=timeout,
            )
            rate = parse_rate((payload.get(key) or {}).get("usd"))
            if rate is not None:
                return rate

        coin_id = COINGECKO_IDS.get(symbol.upper())
        if coin_id is None:
            return None
        payload = await get_json_with_retry(
            f"{base_url}/simple/price",
            params={"ids": coin_id, "vs_currencies": "usd"},
            timeout=timeout,
        )
        rate = parse_rate((payload.get(coin_id) or {}).get("usd"))
        logger.debug("CoinGecko %s (%s): %s", symbol, coin_id, rate)
        return rate
