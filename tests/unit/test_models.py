"""
Unit tests for SDK data models.
"""

import pytest
from decimal import Decimal

from walletsdk.errors import InternalError, UnsupportedAssetError
from walletsdk.models import (
    Asset,
    Balance,
    HistoricalBalance,
    OperationKind,
    PayloadSignatureStatus,
    SponsoredSendStatus,
    StakingOperationStatus,
    StakingReward,
    StakingRewardFormat,
    TransactionStatus,
)


class TestTransactionStatus:
    """Tests for TransactionStatus."""

    @pytest.mark.unit
    def test_parse_missing_is_pending(self):
        assert TransactionStatus.parse(None) is TransactionStatus.PENDING

    @pytest.mark.unit
    def test_parse_case_insensitive(self):
        assert TransactionStatus.parse("COMPLETE") is TransactionStatus.COMPLETE

    @pytest.mark.unit
    def test_parse_unknown(self):
        assert TransactionStatus.parse("exploded") is TransactionStatus.UNSPECIFIED

    @pytest.mark.unit
    def test_terminal_states(self):
        terminal = {s for s in TransactionStatus if s.is_terminal}
        assert terminal == {TransactionStatus.COMPLETE, TransactionStatus.FAILED}


class TestStakingOperationStatus:

    @pytest.mark.unit
    def test_parse_missing_is_initialized(self):
        assert StakingOperationStatus.parse(None) is StakingOperationStatus.INITIALIZED

    @pytest.mark.unit
    def test_parse_unknown(self):
        assert StakingOperationStatus.parse("???") is StakingOperationStatus.UNSPECIFIED


class TestOperationKind:

    @pytest.mark.unit
    def test_smart_contracts_deploy(self):
        assert OperationKind.SMART_CONTRACT.broadcast_action == "deploy"

    @pytest.mark.unit
    def test_others_broadcast(self):
        assert OperationKind.TRANSFER.broadcast_action == "broadcast"
        assert OperationKind.STAKING_OPERATION.broadcast_action == "broadcast"


class TestAsset:
    """Tests for Asset model."""

    @pytest.mark.unit
    def test_from_model(self):
        asset = Asset.from_model({"network_id": "base-sepolia", "asset_id": "USDC", "decimals": 6,
                                  "contract_address": "0xabc"})
        assert asset.asset_id == "usdc"
        assert asset.decimals == 6
        assert asset.contract_address == "0xabc"

    @pytest.mark.unit
    def test_from_model_alias_uses_alias_precision(self):
        asset = Asset.from_model({"network_id": "base-sepolia", "asset_id": "eth", "decimals": 18}, "gwei")
        assert asset.asset_id == "gwei"
        assert asset.decimals == 9
        assert asset.primary_denomination == "eth"

    @pytest.mark.unit
    def test_from_model_mismatch(self):
        with pytest.raises(UnsupportedAssetError):
            Asset.from_model({"network_id": "base-sepolia", "asset_id": "eth", "decimals": 18}, "usdc")

    @pytest.mark.unit
    def test_from_model_known_without_decimals(self):
        asset = Asset.from_model({"network_id": "base-sepolia", "asset_id": "eth"})
        assert asset.decimals == 18

    @pytest.mark.unit
    def test_from_model_unknown_without_decimals(self):
        with pytest.raises(UnsupportedAssetError):
            Asset.from_model({"network_id": "base-sepolia", "asset_id": "mystery"})

    @pytest.mark.unit
    def test_negative_decimals(self):
        with pytest.raises(UnsupportedAssetError):
            Asset("base-sepolia", "bad", -1)

    @pytest.mark.unit
    def test_immutable(self):
        asset = Asset("base-sepolia", "eth", 18)
        with pytest.raises(AttributeError):
            asset.decimals = 6

    @pytest.mark.unit
    def test_conversions(self):
        asset = Asset("base-sepolia", "usdc", 6)
        assert asset.to_atomic_amount("5") == 5000000
        assert asset.from_atomic_amount("5000000") == Decimal(5)


class TestBalance:

    @pytest.mark.unit
    def test_from_model(self):
        balance = Balance.from_model({
            "amount": "1500000000000000000",
            "asset": {"network_id": "base-sepolia", "asset_id": "eth", "decimals": 18},
        })
        assert balance.asset_id == "eth"
        assert balance.amount == Decimal("1.5")

    @pytest.mark.unit
    def test_from_model_gwei(self):
        balance = Balance.from_model({
            "amount": "1500000000000000000",
            "asset": {"network_id": "base-sepolia", "asset_id": "eth", "decimals": 18},
        }, "gwei")
        assert balance.amount == Decimal(1500000000)

    @pytest.mark.unit
    def test_historical(self):
        balance = HistoricalBalance.from_model({
            "amount": "1000000",
            "block_height": "12345",
            "block_hash": "0xblock",
            "asset": {"network_id": "base-sepolia", "asset_id": "usdc", "decimals": 6},
        })
        assert balance.amount == Decimal(1)
        assert balance.block_height == 12345

    @pytest.mark.unit
    def test_negative_amount_rejected(self):
        with pytest.raises(InternalError):
            Balance.from_model({
                "amount": "-1",
                "asset": {"network_id": "base-sepolia", "asset_id": "eth", "decimals": 18},
            })

    @pytest.mark.unit
    def test_negative_historical_rejected(self):
        with pytest.raises(InternalError):
            HistoricalBalance.from_model({
                "amount": "-1000000",
                "block_height": "1",
                "asset": {"network_id": "base-sepolia", "asset_id": "usdc", "decimals": 6},
            })


class TestSponsoredSendStatus:

    @pytest.mark.unit
    @pytest.mark.parametrize("raw,expected", [
        ("pending", TransactionStatus.PENDING),
        ("signed", TransactionStatus.PENDING),
        ("submitted", TransactionStatus.BROADCAST),
        ("complete", TransactionStatus.COMPLETE),
        ("failed", TransactionStatus.FAILED),
        ("relayed", TransactionStatus.UNSPECIFIED),
    ])
    def test_transaction_status(self, raw, expected):
        assert SponsoredSendStatus.parse(raw).transaction_status is expected

    @pytest.mark.unit
    def test_parse_missing_is_pending(self):
        assert SponsoredSendStatus.parse(None) is SponsoredSendStatus.PENDING


class TestPayloadSignatureStatus:

    @pytest.mark.unit
    def test_terminal_states(self):
        assert PayloadSignatureStatus.parse("SIGNED").is_terminal
        assert PayloadSignatureStatus.parse("failed").is_terminal
        assert not PayloadSignatureStatus.parse("pending").is_terminal
        assert PayloadSignatureStatus.parse("bogus") is PayloadSignatureStatus.UNSPECIFIED


class TestStakingReward:
    ETH = Asset("ethereum-holesky", "eth", 18)

    @pytest.mark.unit
    def test_usd_cents(self):
        reward = StakingReward.from_model(
            {"address_id": "0xabc", "date": "2024-05-01T00:00:00Z", "amount": "1234",
             "usd_value": {"amount": "1234", "conversion_price": "2999.99"}},
            self.ETH, StakingRewardFormat.USD,
        )
        assert reward.amount == Decimal("12.34")
        assert reward.usd_value == Decimal("12.34")
        assert reward.conversion_price == Decimal("2999.99")
        assert reward.conversion_time is None
        assert reward.date.year == 2024

    @pytest.mark.unit
    def test_native_atomic_units(self):
        reward = StakingReward.from_model({"amount": "500000000000000000"}, self.ETH, StakingRewardFormat.NATIVE)
        assert reward.amount == Decimal("0.5")
        assert reward.usd_value == Decimal(0)

    @pytest.mark.unit
    def test_empty_amount_is_zero(self):
        reward = StakingReward.from_model({"amount": ""}, self.ETH, StakingRewardFormat.USD)
        assert reward.amount == Decimal(0)
        assert reward.date is None
