from __future__ import annotations

from .catalog import CatalogClient
from .models import (
    Asset,
    CatalogInstance,
    ContractInfo,
    Creator,
    InstancePreview,
    MerkleEntry,
    PoolItem,
    TierProbability,
)

__all__ = [
    "Asset",
    "CatalogClient",
    "CatalogInstance",
    "ContractInfo",
    "Creator",
    "InstancePreview",
    "MerkleEntry",
    "PoolItem",
    "TierProbability",
]
