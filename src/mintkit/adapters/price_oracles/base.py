from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any

import backoff
import requests

from ...settings import ClientSettings

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


def _giveup(e: Exception) -> bool:
    return (
        isinstance(e, requests.exceptions.HTTPError)
        and e.response is not None
        and e.response.status_code not in RETRYABLE_STATUS
    )


@backoff.on_exception(
    backoff.expo,
    (requests.exceptions.RequestException, requests.exceptions.HTTPError),
    max_tries=3,
    giveup=_giveup,
    jitter=backoff.full_jitter,
)
async def get_json_with_retry(
    url: str, params: dict[str, Any] | None = None, timeout: float = 5.0
) -> Any:
    response = await asyncio.to_thread(
        requests.get, url, params=params, timeout=timeout
    )
    response.raise_for_status()
    return response.json()


def parse_rate(raw: Any) -> Decimal | None:
    """Turn an API price field into a positive Decimal, or None."""
    if raw is None:
        return None
    try:
        rate = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None
    if not rate.is_finite() or rate <= 0:
        return None
    return rate


class BasePriceOracle(ABC):
    """Abstract base class for USD price oracles."""

    def __init__(self, settings: ClientSettings):
        self.settings = settings

    @property
    @abstractmethod
    def oracle_name(self) -> str:
        """Return the name of this oracle."""
        ...

    @abstractmethod
    async def get_usd_rate(
        self,
        symbol: str,
        token_address: str | None = None,
        network_id: int | None = None,
    ) -> Decimal | None:
        """USD price of one whole unit of ``symbol``.

        Args:
            symbol: Currency symbol, e.g. ``ETH`` or ``USDC``
            token_address: Token contract for ERC-20 currencies, None for native
            network_id: Network the token lives on

        Returns:
            The rate, or None when this oracle does not quote the currency.
            Transport failures propagate.
        """
        ...
