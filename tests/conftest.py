"""
WalletSDK Test Configuration

Shared fixtures and test utilities.
"""

import pytest
from unittest.mock import AsyncMock
from pathlib import Path
import sys

# Ensure walletsdk is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from walletsdk.lifecycle import OperationLifecycle
from walletsdk.payload import encode
from walletsdk.providers import MemoryKeyProvider


WALLET_ID = "wallet-1"
ADDRESS_ID = "0x14dc79964da2c08b23698b3d3cc7ca32193d9955"
DESTINATION = "0x4d9e4f3f4d1a8b5f4f7b1f5b5c7b8d6b2b3b1b0b"
TX_HASH = "0x" + "ab" * 32


# =============================================================================
# Payload Helpers
# =============================================================================

def unsigned_payload(**overrides) -> str:
    """Hex unsigned payload in the platform's format."""
    fields = {
        "type": "0x2",
        "chainId": "0x14a34",
        "nonce": "0x0",
        "to": DESTINATION,
        "gas": "0x5208",
        "gasPrice": None,
        "maxPriorityFeePerGas": "0x59682f00",
        "maxFeePerGas": "0x59682f00",
        "value": "0x6f05b59d3b20000",
        "input": "0x",
        "accessList": [],
        "v": "0x0",
        "r": "0x0",
        "s": "0x0",
    }
    fields.update(overrides)
    return encode(fields)


def transaction_model(status="pending", **overrides) -> dict:
    model = {
        "network_id": "base-sepolia",
        "from_address_id": ADDRESS_ID,
        "to_address_id": DESTINATION,
        "unsigned_payload": unsigned_payload(),
        "status": status,
    }
    model.update(overrides)
    return model


def transfer_model(status="pending", amount="500000000000000000", **tx_overrides) -> dict:
    return {
        "transfer_id": "transfer-1",
        "wallet_id": WALLET_ID,
        "address_id": ADDRESS_ID,
        "network_id": "base-sepolia",
        "destination": DESTINATION,
        "asset_id": "eth",
        "amount": amount,
        "asset": {"network_id": "base-sepolia", "asset_id": "eth", "decimals": 18},
        "transaction": transaction_model(status, **tx_overrides),
    }


TYPED_DATA = {
    "types": {
        "EIP712Domain": [
            {"name": "name", "type": "string"},
            {"name": "version", "type": "string"},
            {"name": "chainId", "type": "uint256"},
            {"name": "verifyingContract", "type": "address"},
        ],
        "TransferWithAuthorization": [
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
            {"name": "value", "type": "uint256"},
            {"name": "validAfter", "type": "uint256"},
            {"name": "validBefore", "type": "uint256"},
            {"name": "nonce", "type": "bytes32"},
        ],
    },
    "primaryType": "TransferWithAuthorization",
    "domain": {
        "name": "USD Coin",
        "version": "2",
        "chainId": 84532,
        "verifyingContract": "0x036cbd53842c5426634e7929541ec2318f3dcf7e",
    },
    "message": {
        "from": ADDRESS_ID,
        "to": DESTINATION,
        "value": 1000000,
        "validAfter": 0,
        "validBefore": 4102444800,
        "nonce": "0x" + "00" * 32,
    },
}


def sponsored_transfer_model(status="pending", **overrides) -> dict:
    """Gasless transfer: a sponsored send takes the place of the transaction."""
    sponsored = {
        "typed_data_hash": "0x" + "11" * 32,
        "raw_typed_data": encode(TYPED_DATA),
        "status": status,
    }
    sponsored.update(overrides)
    model = transfer_model(amount="1000000")
    del model["transaction"]
    model.update({
        "asset_id": "usdc",
        "asset": {"network_id": "base-sepolia", "asset_id": "usdc", "decimals": 6},
        "gasless": True,
        "sponsored_send": sponsored,
    })
    return model


def balance_model(amount: str, asset_id="eth", decimals=18) -> dict:
    return {
        "amount": amount,
        "asset": {"network_id": "base-sepolia", "asset_id": asset_id, "decimals": decimals},
    }


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def mock_api():
    """Mock LedgerAPI for isolated testing; every method is awaitable."""
    api = AsyncMock()
    api.get_balance.return_value = balance_model("1000000000000000000")
    return api


@pytest.fixture
def mock_node():
    """Mock NodeRPC for isolated testing."""
    return AsyncMock()


@pytest.fixture
def address_model():
    return {
        "wallet_id": WALLET_ID,
        "network_id": "base-sepolia",
        "address_id": ADDRESS_ID,
        "index": 0,
    }


@pytest.fixture
def lifecycle(key_provider):
    """Lifecycle with a local signer and fast polling."""
    return OperationLifecycle(key_provider=key_provider, interval_seconds=0.01, timeout_seconds=1)


# =============================================================================
# Test Keys (DO NOT USE IN PRODUCTION)
# =============================================================================

@pytest.fixture
def test_private_key():
    """Test private key - DO NOT USE IN PRODUCTION."""
    return "0000000000000000000000000000000000000000000000000000000000000001"


@pytest.fixture
def test_address():
    """Checksummed address for test_private_key."""
    return "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"


@pytest.fixture
def key_provider(test_private_key):
    return MemoryKeyProvider(test_private_key)


# =============================================================================
# Marker Helpers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (mocked services)")
    config.addinivalue_line("markers", "security: Security-focused tests")
