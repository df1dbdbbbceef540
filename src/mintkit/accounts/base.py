from __future__ import annotations

from abc import ABC, abstractmethod

from ..domain import TransactionConfirmation, TransactionRequest


class SigningAccount(ABC):
    """A wallet able to sign and submit transactions.

    Concrete adapters wrap a specific signing library; mintkit only relies on
    this surface.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Checksummed address of the signer."""
        ...

    @abstractmethod
    async def get_chain_id(self) -> int:
        """Chain id the signer is currently connected to."""
        ...

    async def switch_network(self, network_id: int) -> bool:
        """Ask the wallet to move to ``network_id``.

        Returns:
            True when the wallet is now on that network. The default
            implementation cannot switch and returns False.
        """
        return False

    @abstractmethod
    async def send_transaction(self, request: TransactionRequest) -> str:
        """Sign and broadcast ``request``; return the transaction hash."""
        ...

    @abstractmethod
    async def wait_for_confirmation(
        self, tx_hash: str, confirmations: int = 1
    ) -> TransactionConfirmation:
        """Block until ``tx_hash`` is mined and buried under ``confirmations`` blocks.

        Raises:
            RuntimeError: If the transaction reverted
            TimeoutError: If the depth is not reached in time
        """
        ...
