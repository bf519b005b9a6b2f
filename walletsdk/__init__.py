"""
WalletSDK - Wallet Platform Client SDK

A Python SDK for wallets, addresses and on-chain operations backed by the
wallet platform API, with local transaction signing.

Usage:
    from walletsdk import WalletClient, EnvKeyProvider

    client = WalletClient.from_config("client_config.json",
                                      key_provider=EnvKeyProvider())

    address = await client.get_address(wallet_id, address_id)
    transfer = await address.transfer("0.5", "eth", "0xRecipient...")
    print(transfer.get_status(), transfer.get_transaction_link())

Server signer:
    client = WalletClient(ClientConfig(api_key_name="...", use_server_signer=True))
"""

from .client import WalletClient
from .config import ClientConfig
from .wallet import Wallet
from .address import WalletAddress

# Operations
from .operations import (
    Operation,
    Transfer,
    Trade,
    ContractInvocation,
    StakingOperation,
    SmartContractDeployment,
    FaucetTransaction,
    PayloadSignature,
)
from .transaction import TransactionEnvelope, SponsoredSend
from .lifecycle import OperationLifecycle, wait_until

# Amounts and balances
from .amounts import AmountNormalizer, to_atomic_units, from_atomic_units, format_atomic
from .balances import BalanceAggregator, BalanceMap, BalanceScope
from .staking import StakingContext
from .models import (
    Asset,
    Balance,
    HistoricalBalance,
    StakingBalances,
    StakingReward,
    StakingRewardFormat,
    TransactionStatus,
    StakingOperationStatus,
    SponsoredSendStatus,
    PayloadSignatureStatus,
    StakeOptionsMode,
    OperationKind,
    SmartContractType,
)
from .payload import TransactionRequest, decode as decode_unsigned_payload

# Key providers
from .providers import (
    KeyProvider,
    EnvKeyProvider,
    MemoryKeyProvider,
    FileKeyProvider,
    SeedKeyProvider,
)

# Error types
from .errors import (
    WalletSDKError,
    ConfigurationError,
    MissingConfigError,
    ArgumentError,
    InsufficientFundsError,
    UnsupportedAssetError,
    InvalidUnsignedPayloadError,
    SigningError,
    MissingSignerError,
    NotSignedError,
    TimeoutError,
    NetworkError,
    APIError,
    NodeRPCError,
)

# Event hooks
from .events import EventEmitter, EventType, Event

# Logging
from .logging import StructuredLogger, LifecycleRecord

__version__ = "0.1.0"
__all__ = [
    # Core
    "WalletClient",
    "ClientConfig",
    "Wallet",
    "WalletAddress",

    # Operations
    "Operation",
    "Transfer",
    "Trade",
    "ContractInvocation",
    "StakingOperation",
    "SmartContractDeployment",
    "FaucetTransaction",
    "PayloadSignature",
    "TransactionEnvelope",
    "SponsoredSend",
    "OperationLifecycle",
    "wait_until",

    # Amounts and Balances
    "AmountNormalizer",
    "to_atomic_units",
    "from_atomic_units",
    "format_atomic",
    "BalanceAggregator",
    "BalanceMap",
    "BalanceScope",
    "StakingContext",
    "Asset",
    "Balance",
    "HistoricalBalance",
    "StakingBalances",
    "StakingReward",
    "StakingRewardFormat",
    "TransactionStatus",
    "StakingOperationStatus",
    "SponsoredSendStatus",
    "PayloadSignatureStatus",
    "StakeOptionsMode",
    "OperationKind",
    "SmartContractType",
    "TransactionRequest",
    "decode_unsigned_payload",

    # Key Providers
    "KeyProvider",
    "EnvKeyProvider",
    "MemoryKeyProvider",
    "FileKeyProvider",
    "SeedKeyProvider",

    # Errors
    "WalletSDKError",
    "ConfigurationError",
    "MissingConfigError",
    "ArgumentError",
    "InsufficientFundsError",
    "UnsupportedAssetError",
    "InvalidUnsignedPayloadError",
    "SigningError",
    "MissingSignerError",
    "NotSignedError",
    "TimeoutError",
    "NetworkError",
    "APIError",
    "NodeRPCError",

    # Events
    "EventEmitter",
    "EventType",
    "Event",

    # Logging
    "StructuredLogger",
    "LifecycleRecord",
]
