from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

from web3 import Web3

ABIS_DIR = Path(__file__).parent / "abis"

ERC20_ABI_PATH = ABIS_DIR / "ERC20.json"
EDITION_CLAIM_721_ABI_PATH = ABIS_DIR / "EditionClaim721.json"
EDITION_CLAIM_1155_ABI_PATH = ABIS_DIR / "EditionClaim1155.json"
GACHA_EXTENSION_1155_ABI_PATH = ABIS_DIR / "GachaExtension1155.json"


@lru_cache(maxsize=None)
def _load_abi_cached(path: str) -> tuple[dict, ...]:
    with Path(path).open() as f:
        data = json.load(f)
    return tuple(data["abi"])


def load_abi(path: str | Path) -> list[dict]:
    """Load an ABI from a JSON file and return its "abi" field.

    Args:
        path: Path to the JSON file containing an "abi" field.

    Returns:
        ABI as a list of dictionaries.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        KeyError: If the JSON does not contain an "abi" field.
    """
    return list(_load_abi_cached(str(path)))


def load_erc20_abi() -> list[dict]:
    """Load the ERC20 ABI."""
    return load_abi(ERC20_ABI_PATH)


def load_edition_claim_abi(spec: str) -> list[dict]:
    """Load the Edition claim extension ABI for an ``erc721`` or ``erc1155`` contract."""
    if spec.lower() == "erc721":
        return load_abi(EDITION_CLAIM_721_ABI_PATH)
    return load_abi(EDITION_CLAIM_1155_ABI_PATH)


def load_gacha_extension_abi() -> list[dict]:
    return load_abi(GACHA_EXTENSION_1155_ABI_PATH)


def encode_call(
    address: str, abi: list[dict], function_name: str, args: Sequence[Any]
) -> str:
    """Encode calldata for ``function_name`` without touching the network.

    Returns:
        0x-prefixed hex calldata.
    """
    w3 = Web3()
    contract = w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)
    return contract.encode_abi(abi_element_identifier=function_name, args=list(args))


def decode_struct(
    abi: list[dict], function_name: str, result: Any
) -> dict[str, Any]:
    """Name the fields of a single-struct return value.

    web3 returns a struct output as a plain tuple; this zips it with the
    component names declared in ``abi``.
    """
    if isinstance(result, dict):
        return dict(result)
    for item in abi:
        if item.get("type") == "function" and item.get("name") == function_name:
            components = item["outputs"][0].get("components", [])
            return {c["name"]: value for c, value in zip(components, result)}
    raise KeyError(f"Function {function_name} not found in ABI")
