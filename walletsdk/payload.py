"""
WalletSDK - Unsigned Payload Codec

Decodes the hex-encoded JSON transaction payloads issued by the platform
into structured transaction requests ready for local signing.
"""

import json
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Optional, Union

from eth_utils import to_checksum_address

from .errors import InvalidUnsignedPayloadError

EIP1559_TX_TYPE = 2


def _quantity(value: Union[str, int, None], field: str) -> int:
    """Parse an integer field that may be a 0x-prefixed hex quantity."""
    if value is None:
        raise InvalidUnsignedPayloadError(f"Unsigned payload is missing {field}")
    if isinstance(value, bool):
        raise InvalidUnsignedPayloadError(f"Unsigned payload has invalid {field}")
    if isinstance(value, int):
        return value
    try:
        text = str(value).strip()
        if text.lower().startswith("0x"):
            return int(text, 16) if len(text) > 2 else 0
        return int(text)
    except ValueError:
        raise InvalidUnsignedPayloadError(f"Unsigned payload has invalid {field}: {value!r}")


@dataclass(frozen=True)
class TransactionRequest:
    """A decoded EIP-1559 transaction awaiting signature."""
    chain_id: int
    nonce: int
    gas_limit: int
    max_priority_fee_per_gas: int
    max_fee_per_gas: int
    to: Optional[str]
    value: int
    data: str
    tx_type: int = EIP1559_TX_TYPE

    def to_signable(self) -> Dict[str, Any]:
        """Transaction dict in the shape ``eth_account`` signs."""
        tx = {
            "type": self.tx_type,
            "chainId": self.chain_id,
            "nonce": self.nonce,
            "gas": self.gas_limit,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
            "maxFeePerGas": self.max_fee_per_gas,
            "value": self.value,
            "data": self.data,
            "accessList": [],
        }
        if self.to:
            tx["to"] = to_checksum_address(self.to)
        return tx


def _split_hex(payload: str) -> bytes:
    text = payload[2:] if payload.startswith("0x") else payload
    if not text or len(text) % 2 != 0:
        raise InvalidUnsignedPayloadError("Unable to parse unsigned payload")
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise InvalidUnsignedPayloadError("Unable to parse unsigned payload")


@lru_cache(maxsize=256)
def decode(payload: str) -> TransactionRequest:
    """
    Decode a hex-encoded, JSON-serialized unsigned transaction.

    Args:
        payload: Hex string of the UTF-8 JSON transaction.

    Returns:
        TransactionRequest. Results are memoised; identical input yields
        the same (immutable) object.

    Raises:
        InvalidUnsignedPayloadError: If the hex, UTF-8 or JSON is invalid.
    """
    if not isinstance(payload, str):
        raise InvalidUnsignedPayloadError("Unsigned payload must be a hex string")

    raw = _split_hex(payload)
    try:
        parsed = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise InvalidUnsignedPayloadError("Unable to decode unsigned payload JSON")

    if not isinstance(parsed, dict):
        raise InvalidUnsignedPayloadError("Unsigned payload JSON must be an object")

    tx_type = parsed.get("type")
    return TransactionRequest(
        chain_id=_quantity(parsed.get("chainId"), "chainId"),
        nonce=_quantity(parsed.get("nonce"), "nonce"),
        gas_limit=_quantity(parsed.get("gas", parsed.get("gasLimit")), "gas"),
        max_priority_fee_per_gas=_quantity(parsed.get("maxPriorityFeePerGas"), "maxPriorityFeePerGas"),
        max_fee_per_gas=_quantity(parsed.get("maxFeePerGas"), "maxFeePerGas"),
        to=parsed.get("to") or None,
        value=_quantity(parsed.get("value", "0x0"), "value"),
        data=parsed.get("input") or parsed.get("data") or "0x",
        tx_type=_quantity(tx_type, "type") if tx_type is not None else EIP1559_TX_TYPE,
    )


def decode_typed_data(payload: str) -> Dict[str, Any]:
    """
    Decode hex-encoded EIP-712 typed data as issued for gasless transfers.

    Raises:
        InvalidUnsignedPayloadError: If the hex, UTF-8 or JSON is invalid.
    """
    raw = _split_hex(payload or "")
    try:
        parsed = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise InvalidUnsignedPayloadError("Unable to decode typed data JSON")
    if not isinstance(parsed, dict):
        raise InvalidUnsignedPayloadError("Typed data JSON must be an object")
    return parsed


def encode(fields: Dict[str, Any]) -> str:
    """Hex-encode a JSON transaction dict the way the platform issues it."""
    return json.dumps(fields, separators=(",", ":")).encode("utf-8").hex()
