"""Run an operation against the first provider connected to the target network."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from ..errors import UnsupportedNetworkError

logger = logging.getLogger(__name__)

P = TypeVar("P")
T = TypeVar("T")


async def execute_with_provider_fallback(
    network_id: int,
    providers: Sequence[P],
    get_chain_id: Callable[[P], Awaitable[int]],
    operation: Callable[[P], Awaitable[T]],
    switch_network: Optional[Callable[[P, int], Awaitable[bool]]] = None,
) -> T:
    """Execute ``operation`` with automatic fallback to alternative providers.

    Providers are tried in order. For each one:
    1. Its chain id is read; a mismatch without a usable ``switch_network``
       (absent, returned False, or raised) skips the provider untouched.
    2. The operation runs; the first result that does not raise is returned.
    3. Any exception moves on to the next provider.

    Args:
        network_id: Chain id the operation must run against
        providers: Candidates in priority order
        get_chain_id: Reads a provider's active chain id
        operation: The work to run against a provider
        switch_network: Optional hook asking a provider to change network

    Returns:
        The result of the first successful operation

    Raises:
        UnsupportedNetworkError: No candidates, or none on (or switchable to) the network
        Exception: The last error observed when every candidate failed
    """
    if not providers:
        raise UnsupportedNetworkError(
            f"No provider configured for network {network_id}",
            details={"network_id": network_id},
        )

    last_error: Exception | None = None

    for index, provider in enumerate(providers):
        if provider is None:
            continue

        try:
            chain_id = await get_chain_id(provider)

            if chain_id != network_id:
                if switch_network is None:
                    logger.debug(
                        "Provider #%d is on network %d, expected %d; skipping",
                        index,
                        chain_id,
                        network_id,
                    )
                    continue
                try:
                    switched = await switch_network(provider, network_id)
                except Exception as e:
                    logger.debug("Provider #%d failed to switch network: %s", index, e)
                    continue
                if not switched:
                    logger.debug("Provider #%d declined network switch", index)
                    continue

            return await operation(provider)
        except Exception as e:
            logger.debug("Provider #%d failed for network %d: %s", index, network_id, e)
            last_error = e

    if last_error is not None:
        raise last_error

    raise UnsupportedNetworkError(
        f"No provider reachable for network {network_id}",
        details={"network_id": network_id, "candidates": len(providers)},
    )
