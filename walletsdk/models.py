"""
WalletSDK - Data Models

Core data structures used throughout the SDK.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from .amounts import Amount, to_atomic_units, from_atomic_units
from .constants import ASSET_DECIMALS, PRIMARY_DENOMINATIONS
from .errors import InternalError, UnsupportedAssetError


class TransactionStatus(Enum):
    """On-chain transaction status."""
    PENDING = "pending"          # Created, not yet broadcast
    SIGNED = "signed"            # Signed locally or by the server signer
    BROADCAST = "broadcast"      # Submitted, not yet in a block
    COMPLETE = "complete"        # Included in a block, succeeded
    FAILED = "failed"            # Reverted or rejected
    UNSPECIFIED = "unspecified"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TransactionStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls((value or "pending").lower())
        except ValueError:
            return cls.UNSPECIFIED

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionStatus.COMPLETE, TransactionStatus.FAILED)


class StakingOperationStatus(Enum):
    """Status of a (possibly multi-transaction) staking operation."""
    INITIALIZED = "initialized"
    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"
    UNSPECIFIED = "unspecified"

    @classmethod
    def parse(cls, value: Optional[str]) -> "StakingOperationStatus":
        try:
            return cls((value or "initialized").lower())
        except ValueError:
            return cls.UNSPECIFIED


class StakeOptionsMode(Enum):
    """Staking modes."""
    DEFAULT = "default"          # Let the platform pick
    PARTIAL = "partial"          # Shared (pooled) staking
    NATIVE = "native"            # Dedicated validator staking


class OperationKind(Enum):
    """Operation kinds and their REST collection names."""
    TRANSFER = "transfers"
    TRADE = "trades"
    CONTRACT_INVOCATION = "contract_invocations"
    STAKING_OPERATION = "staking_operations"
    SMART_CONTRACT = "smart_contracts"
    PAYLOAD_SIGNATURE = "payload_signatures"

    @property
    def broadcast_action(self) -> str:
        if self is OperationKind.SMART_CONTRACT:
            return "deploy"
        return "broadcast"


class SmartContractType(Enum):
    """Smart contract templates deployable through the platform."""
    ERC20 = "erc20"
    ERC721 = "erc721"
    ERC1155 = "erc1155"
    CUSTOM = "custom"


class SponsoredSendStatus(Enum):
    """Status of a gasless transfer relayed by the platform."""
    PENDING = "pending"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    COMPLETE = "complete"
    FAILED = "failed"
    UNSPECIFIED = "unspecified"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SponsoredSendStatus":
        try:
            return cls((value or "pending").lower())
        except ValueError:
            return cls.UNSPECIFIED

    @property
    def transaction_status(self) -> TransactionStatus:
        """Equivalent transfer status."""
        return {
            SponsoredSendStatus.PENDING: TransactionStatus.PENDING,
            SponsoredSendStatus.SIGNED: TransactionStatus.PENDING,
            SponsoredSendStatus.SUBMITTED: TransactionStatus.BROADCAST,
            SponsoredSendStatus.COMPLETE: TransactionStatus.COMPLETE,
            SponsoredSendStatus.FAILED: TransactionStatus.FAILED,
        }.get(self, TransactionStatus.UNSPECIFIED)


class PayloadSignatureStatus(Enum):
    PENDING = "pending"
    SIGNED = "signed"
    FAILED = "failed"
    UNSPECIFIED = "unspecified"

    @classmethod
    def parse(cls, value: Optional[str]) -> "PayloadSignatureStatus":
        try:
            return cls((value or "pending").lower())
        except ValueError:
            return cls.UNSPECIFIED

    @property
    def is_terminal(self) -> bool:
        return self in (PayloadSignatureStatus.SIGNED, PayloadSignatureStatus.FAILED)


class StakingRewardFormat(Enum):
    USD = "usd"
    NATIVE = "native"


@dataclass(frozen=True)
class Asset:
    """
    An asset on a network, with fixed decimal precision.

    ``decimals`` is relative to the atomic unit of the primary
    denomination, so ``gwei`` has 9 and ``eth`` has 18, both scaling to Wei.
    """
    network_id: str
    asset_id: str
    decimals: int
    contract_address: Optional[str] = None

    def __post_init__(self):
        if self.decimals is None or self.decimals < 0:
            raise UnsupportedAssetError(self.asset_id, self.network_id)

    @classmethod
    def from_model(cls, model: dict, asset_id: Optional[str] = None) -> "Asset":
        """
        Build an Asset from an API asset model.

        Args:
            model: Asset model with ``network_id``, ``asset_id``, ``decimals``.
            asset_id: Requested id; when it is a sub-unit alias of the model's
                asset, the alias' precision is used.

        Raises:
            UnsupportedAssetError: If no precision can be resolved.
        """
        model_asset_id = (model.get("asset_id") or "").lower()
        network_id = model.get("network_id", "")
        decimals = model.get("decimals")
        contract_address = model.get("contract_address")

        if asset_id and asset_id.lower() != model_asset_id:
            requested = asset_id.lower()
            if PRIMARY_DENOMINATIONS.get(requested) != model_asset_id:
                raise UnsupportedAssetError(requested, network_id)
            return cls(network_id, requested, ASSET_DECIMALS[requested], contract_address)

        if decimals is None:
            if model_asset_id not in ASSET_DECIMALS:
                raise UnsupportedAssetError(model_asset_id, network_id)
            decimals = ASSET_DECIMALS[model_asset_id]

        return cls(network_id, model_asset_id, int(decimals), contract_address)

    @property
    def primary_denomination(self) -> str:
        return PRIMARY_DENOMINATIONS.get(self.asset_id, self.asset_id)

    def to_atomic_amount(self, whole_amount: Amount) -> int:
        return to_atomic_units(whole_amount, self.decimals)

    def from_atomic_amount(self, atomic_amount) -> Decimal:
        return from_atomic_units(atomic_amount, self.decimals)


def _non_negative(amount: Decimal, asset_id: str) -> Decimal:
    if amount < 0:
        raise InternalError(f"Negative balance reported for {asset_id}: {amount}", {"asset_id": asset_id})
    return amount


@dataclass(frozen=True)
class Balance:
    """An asset balance in whole units; never negative."""
    asset_id: str
    amount: Decimal
    asset: Optional[Asset] = None

    @classmethod
    def from_model(cls, model: dict, asset_id: Optional[str] = None) -> "Balance":
        """
        Convert an API balance model (atomic ``amount`` + ``asset``).

        Raises:
            InternalError: If the platform reports a negative amount.
        """
        asset = Asset.from_model(model["asset"], asset_id)
        amount = asset.from_atomic_amount(model.get("amount") or 0)
        return cls(asset.asset_id, _non_negative(amount, asset.asset_id), asset)


@dataclass(frozen=True)
class HistoricalBalance:
    """A balance observed at a given block."""
    asset_id: str
    amount: Decimal
    block_height: int
    block_hash: str

    @classmethod
    def from_model(cls, model: dict) -> "HistoricalBalance":
        asset = Asset.from_model(model["asset"])
        return cls(
            asset_id=asset.asset_id,
            amount=_non_negative(asset.from_atomic_amount(model.get("amount") or 0), asset.asset_id),
            block_height=int(model.get("block_height") or 0),
            block_hash=model.get("block_hash", ""),
        )


@dataclass(frozen=True)
class StakingBalances:
    """Stakeable, unstakeable and claimable amounts in whole units."""
    stakeable: Decimal
    unstakeable: Decimal
    claimable: Decimal


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True)
class StakingReward:
    """
    Reward earned by one address on one day.

    In USD format the server reports cents; in native format it reports
    atomic units of the staked asset.
    """
    address_id: str
    date: Optional[datetime]
    amount: Decimal
    format: StakingRewardFormat
    usd_value: Decimal
    conversion_price: Decimal
    conversion_time: Optional[datetime]

    @classmethod
    def from_model(cls, model: dict, asset: Asset, reward_format: StakingRewardFormat) -> "StakingReward":
        raw_amount = model.get("amount") or "0"
        if reward_format is StakingRewardFormat.USD:
            amount = Decimal(raw_amount) / 100
        else:
            amount = asset.from_atomic_amount(raw_amount)

        usd = model.get("usd_value") or {}
        return cls(
            address_id=model.get("address_id", ""),
            date=_parse_time(model.get("date")),
            amount=amount,
            format=reward_format,
            usd_value=Decimal(usd.get("amount") or "0") / 100,
            conversion_price=Decimal(usd.get("conversion_price") or "0"),
            conversion_time=_parse_time(usd.get("conversion_time")),
        )
