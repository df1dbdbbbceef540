"""Network, contract and product constants."""

from enum import Enum, IntEnum

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_HASH = "0x" + "00" * 32

NATIVE_DECIMALS = 18


class NetworkId(IntEnum):
    MAINNET = 1
    OPTIMISM = 10
    POLYGON = 137
    SHAPE = 360
    BASE = 8453
    ARBITRUM = 42161
    SEPOLIA = 11155111


NATIVE_SYMBOLS: dict[int, str] = {
    NetworkId.MAINNET: "ETH",
    NetworkId.OPTIMISM: "ETH",
    NetworkId.POLYGON: "POL",
    NetworkId.SHAPE: "ETH",
    NetworkId.BASE: "ETH",
    NetworkId.ARBITRUM: "ETH",
    NetworkId.SEPOLIA: "ETH",
}

DEFAULT_RPC_URLS: dict[int, str] = {
    NetworkId.MAINNET: "https://eth.drpc.org",
    NetworkId.OPTIMISM: "https://mainnet.optimism.io",
    NetworkId.POLYGON: "https://polygon-rpc.com",
    NetworkId.BASE: "https://mainnet.base.org",
    NetworkId.ARBITRUM: "https://arb1.arbitrum.io/rpc",
    NetworkId.SEPOLIA: "https://sepolia.drpc.org",
}


class AppId(IntEnum):
    """Catalog application ids for the supported product kinds."""

    BLIND_MINT_1155 = 2526777015
    EDITION = 2522713783


class ProductKind(str, Enum):
    EDITION = "edition"
    BLIND_MINT = "blind-mint"


APP_ID_TO_KIND: dict[int, ProductKind] = {
    AppId.EDITION: ProductKind.EDITION,
    AppId.BLIND_MINT_1155: ProductKind.BLIND_MINT,
}

# Gas limits used when estimation fails at planning time
FALLBACK_APPROVE_GAS = 60_000
FALLBACK_PURCHASE_GAS = 250_000

# Price oracle symbols that Coinbase quotes directly
COINBASE_COMMON_TOKENS = frozenset(
    {"USDC", "USDT", "DAI", "WBTC", "LINK", "UNI", "AAVE", "COMP", "MKR", "SNX"}
)

COINGECKO_IDS: dict[str, str] = {
    "USDC": "usd-coin",
    "USDT": "tether",
    "DAI": "dai",
    "WETH": "weth",
    "WBTC": "wrapped-bitcoin",
    "LINK": "chainlink",
    "UNI": "uniswap",
    "AAVE": "aave",
    "COMP": "compound-governance-token",
    "MKR": "maker",
    "SNX": "synthetix-network-token",
}

COINGECKO_PLATFORMS: dict[int, str] = {
    NetworkId.MAINNET: "ethereum",
    NetworkId.OPTIMISM: "optimistic-ethereum",
    NetworkId.POLYGON: "polygon-pos",
    NetworkId.BASE: "base",
    NetworkId.ARBITRUM: "arbitrum-one",
}
