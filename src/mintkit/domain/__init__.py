"""Chain-level transaction models shared by providers and accounts."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class TransactionRequest:
    """An unsigned contract call ready to be submitted by a signing account."""

    to: str
    data: str
    chain_id: int
    value: int = 0
    gas_limit: int | None = None

    def with_gas_limit(self, gas_limit: int) -> TransactionRequest:
        return replace(self, gas_limit=gas_limit)

    def to_call_dict(self, sender: str | None = None) -> dict[str, object]:
        """Render as a web3 transaction dict (for eth_call / eth_estimateGas)."""
        tx: dict[str, object] = {
            "to": self.to,
            "data": self.data,
            "value": self.value,
            "chainId": self.chain_id,
        }
        if sender is not None:
            tx["from"] = sender
        if self.gas_limit is not None:
            tx["gas"] = self.gas_limit
        return tx


@dataclass(frozen=True)
class TransactionConfirmation:
    """What a signing account reports once a transaction reached the requested depth."""

    tx_hash: str
    network_id: int
    confirmations: int
    block_number: int | None = None
    gas_used: int | None = None
    status: int = 1
