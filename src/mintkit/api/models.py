"""Catalog response models."""

from __future__ import annotations

from typing import Annotated

from eth_utils import is_hex_address, to_checksum_address
from pydantic import AfterValidator, BaseModel, ConfigDict, Field


class _CatalogModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def _checksum(value: str) -> str:
    return to_checksum_address(value) if is_hex_address(value) else value


Address = Annotated[str, AfterValidator(_checksum)]


class Creator(_CatalogModel):
    id: int
    slug: str = ""
    address: str = ""
    name: str = ""


class VersionedAddress(_CatalogModel):
    value: Address
    version: int = 0


class ContractInfo(_CatalogModel):
    contract_address: Address = Field(alias="contractAddress")
    spec: str = "erc1155"
    name: str = ""
    symbol: str = ""
    network_id: int | None = Field(default=None, alias="networkId")

    @property
    def is_erc721(self) -> bool:
        return self.spec.lower() == "erc721"


class Asset(_CatalogModel):
    """Token or product artwork as published by the creator."""

    name: str = ""
    description: str = ""
    image: str | None = None
    image_url: str | None = None
    image_preview: str | None = None
    animation: str | None = None
    animation_preview: str | None = None


class PoolItem(_CatalogModel):
    series_index: int = Field(alias="seriesIndex")
    metadata: Asset = Field(default_factory=Asset)


class TierProbability(_CatalogModel):
    group: str
    indices: list[int] = Field(default_factory=list)
    rate: float = 0


class InstancePreview(_CatalogModel):
    title: str = ""
    description: str = ""
    thumbnail: str | None = None


class InstanceAllowlist(_CatalogModel):
    merkle_tree_id: int | None = Field(default=None, alias="merkleTreeId")


class PublicData(_CatalogModel):
    title: str = ""
    name: str = ""
    description: str = ""
    network: int
    contract: ContractInfo
    extension_address_721: VersionedAddress | None = Field(
        default=None, alias="extensionAddress721"
    )
    extension_address_1155: VersionedAddress | None = Field(
        default=None, alias="extensionAddress1155"
    )
    instance_allowlist: InstanceAllowlist | None = Field(
        default=None, alias="instanceAllowlist"
    )
    asset: Asset | None = None
    pool: list[PoolItem] = Field(default_factory=list)
    tier_probabilities: list[TierProbability] = Field(
        default_factory=list, alias="tierProbabilities"
    )

    @property
    def display_name(self) -> str:
        return self.title or self.name


class CatalogInstance(_CatalogModel):
    id: int
    app_id: int = Field(alias="appId")
    creator: Creator
    public_data: PublicData = Field(alias="publicData")
    preview_data: InstancePreview = Field(
        default_factory=InstancePreview, alias="previewData"
    )


class MerkleEntry(_CatalogModel):
    """One allowlist slot: the mint index (None when unassigned) and its proof."""

    value: int | None = None
    merkle_proof: list[str] = Field(default_factory=list, alias="merkleProof")
