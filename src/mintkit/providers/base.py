from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from ..domain import TransactionRequest


class ReadProvider(ABC):
    """Read-only access to a single chain endpoint."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short label used in logs (never the full RPC URL, which may embed keys)."""
        ...

    @abstractmethod
    async def get_chain_id(self) -> int: ...

    @abstractmethod
    async def read_contract(
        self,
        address: str,
        abi: list[dict],
        function_name: str,
        args: Sequence[Any] = (),
    ) -> Any:
        """Call a view function and return its decoded result."""
        ...

    @abstractmethod
    async def get_balance(self, address: str) -> int:
        """Native balance in wei."""
        ...

    @abstractmethod
    async def estimate_gas(self, request: TransactionRequest, sender: str) -> int: ...

    @abstractmethod
    async def get_gas_price(self) -> int: ...

    @abstractmethod
    async def get_block_number(self) -> int: ...
