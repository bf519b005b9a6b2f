"""
WalletSDK - Constants

Centralized configuration constants for the SDK.
"""

# =============================================================================
# Assets and Denominations
# =============================================================================

ETH = "eth"
WEI = "wei"
GWEI = "gwei"
USDC = "usdc"
WETH = "weth"
SOL = "sol"
LAMPORT = "lamport"

# Decimal precision of each known asset id, relative to the atomic unit
# of its primary denomination.
ASSET_DECIMALS = {
    ETH: 18,
    GWEI: 9,
    WEI: 0,
    USDC: 6,
    WETH: 18,
    SOL: 9,
    LAMPORT: 0,
}

# Sub-unit aliases and the primary denomination used in wire requests
PRIMARY_DENOMINATIONS = {
    GWEI: ETH,
    WEI: ETH,
    LAMPORT: SOL,
}


# =============================================================================
# Lifecycle Defaults
# =============================================================================

DEFAULT_INTERVAL_SECONDS = 0.2
DEFAULT_TIMEOUT_SECONDS = 10

# Staking operations may take several multi-step rounds to settle
DEFAULT_STAKING_TIMEOUT_SECONDS = 600

# Page size used when draining cursor-paginated listings
DEFAULT_PAGE_SIZE = 100

# Safety cap for historical balance listings
MAX_HISTORICAL_BALANCES = 1000


# =============================================================================
# Network URLs
# =============================================================================

DEFAULT_API_URL = "https://api.developer.coinbase.com/platform"

BASE_SEPOLIA = "base-sepolia"
BASE_MAINNET = "base-mainnet"
ETHEREUM_HOLESKY = "ethereum-holesky"
ETHEREUM_MAINNET = "ethereum-mainnet"

EXPLORER_TX_URLS = {
    BASE_SEPOLIA: "https://sepolia.basescan.org/tx/",
    BASE_MAINNET: "https://basescan.org/tx/",
    ETHEREUM_HOLESKY: "https://holesky.etherscan.io/tx/",
    ETHEREUM_MAINNET: "https://etherscan.io/tx/",
}

DEFAULT_NODE_URLS = {
    BASE_SEPOLIA: "https://sepolia.base.org",
    BASE_MAINNET: "https://mainnet.base.org",
}


# =============================================================================
# Key Derivation
# =============================================================================

# BIP-44 path prefix for EVM addresses
ADDRESS_PATH_PREFIX = "m/44'/60'/0'/0"
