"""
WalletSDK - Transaction Envelope

Wraps a single on-chain transaction through its signing, broadcast and
confirmation states.

State machine:
    PENDING -> BROADCAST -> COMPLETE | FAILED

COMPLETE and FAILED are terminal: once reached, neither server reloads nor
node queries change the envelope again.
"""

from typing import Optional

from .constants import EXPLORER_TX_URLS
from .errors import InternalError, MissingSignerError, SigningError
from .models import SponsoredSendStatus, TransactionStatus
from .payload import TransactionRequest, decode, decode_typed_data


def _strip_hex_prefix(value: str) -> str:
    return value[2:] if value.startswith("0x") else value


def _receipt_status(receipt: dict) -> int:
    status = receipt.get("status")
    if isinstance(status, str):
        return int(status, 16) if status.startswith("0x") else int(status)
    return int(status or 0)


class TransactionEnvelope:
    """
    A representation of an on-chain transaction.

    Envelopes are built from server transaction models by the operation
    that owns them; they are never shared between operations.
    """

    def __init__(self, model: dict):
        if not model:
            raise InternalError("Transaction model cannot be empty")
        self._model = dict(model)
        self._status = TransactionStatus.parse(model.get("status"))
        self._signed_payload: Optional[str] = model.get("signed_payload") or None
        self._raw: Optional[TransactionRequest] = None

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def unsigned_payload(self) -> str:
        return self._model.get("unsigned_payload", "")

    @property
    def signed_payload(self) -> Optional[str]:
        return self._signed_payload

    @property
    def network_id(self) -> Optional[str]:
        return self._model.get("network_id")

    @property
    def from_address_id(self) -> Optional[str]:
        return self._model.get("from_address_id")

    @property
    def to_address_id(self) -> Optional[str]:
        return self._model.get("to_address_id")

    @property
    def block_hash(self) -> Optional[str]:
        return self._model.get("block_hash")

    @property
    def block_height(self) -> Optional[str]:
        return self._model.get("block_height")

    def get_transaction_hash(self) -> Optional[str]:
        return self._model.get("transaction_hash") or None

    def get_status(self) -> TransactionStatus:
        """Locally cached status; refreshed only by ``update``/``sync_status``."""
        return self._status

    def is_terminal(self) -> bool:
        return self._status.is_terminal

    def is_signed(self) -> bool:
        return self._signed_payload is not None

    def get_transaction_link(self) -> Optional[str]:
        """Block explorer URL, or None before a hash is assigned."""
        if self._model.get("transaction_link"):
            return self._model["transaction_link"]
        tx_hash = self.get_transaction_hash()
        base = EXPLORER_TX_URLS.get(self.network_id or "")
        if not tx_hash or not base:
            return None
        return f"{base}{tx_hash}"

    def raw_transaction(self) -> TransactionRequest:
        """
        Decoded unsigned transaction.

        Raises:
            InvalidUnsignedPayloadError: If the payload cannot be decoded.
        """
        if self._raw is None:
            self._raw = decode(self.unsigned_payload)
        return self._raw

    # =========================================================================
    # State transitions
    # =========================================================================

    def sign(self, key_provider) -> str:
        """
        Sign the transaction locally.

        Args:
            key_provider: KeyProvider holding the sender's key.

        Returns:
            Hex signed payload without the ``0x`` prefix, as broadcast.

        Raises:
            MissingSignerError: If no key provider is given.
            InvalidUnsignedPayloadError: If the payload cannot be decoded.
        """
        if self._signed_payload is not None:
            return self._signed_payload
        if key_provider is None:
            raise MissingSignerError("sign transaction")

        request = self.raw_transaction()
        try:
            signed = key_provider.sign_transaction(request)
        except (TypeError, ValueError) as e:
            raise SigningError(f"Failed to sign transaction: {e}")

        self._signed_payload = _strip_hex_prefix(signed)
        return self._signed_payload

    def update(self, model: dict) -> None:
        """Refresh from a server model; a terminal envelope stays as it is."""
        if self.is_terminal() or not model:
            return

        if model.get("unsigned_payload") != self.unsigned_payload:
            self._raw = None
        local_signature = self._signed_payload
        self._model = dict(model)
        self._status = TransactionStatus.parse(model.get("status"))
        self._signed_payload = model.get("signed_payload") or local_signature

    async def sync_status(self, node) -> TransactionStatus:
        """
        Resolve status from a chain node by transaction hash.

        Unknown to the node -> PENDING; known but not in a block ->
        BROADCAST; mined -> COMPLETE if the receipt succeeded, else FAILED.
        """
        tx_hash = self.get_transaction_hash()
        if self.is_terminal() or not tx_hash:
            return self._status

        tx = await node.get_transaction(tx_hash)
        if not tx:
            self._status = TransactionStatus.PENDING
            return self._status
        if not tx.get("blockHash"):
            self._status = TransactionStatus.BROADCAST
            return self._status

        receipt = await node.get_transaction_receipt(tx_hash)
        if not receipt:
            self._status = TransactionStatus.BROADCAST
            return self._status

        self._model["block_hash"] = receipt.get("blockHash") or tx.get("blockHash")
        self._model["block_height"] = receipt.get("blockNumber") or tx.get("blockNumber")
        if _receipt_status(receipt) == 1:
            self._status = TransactionStatus.COMPLETE
        else:
            self._status = TransactionStatus.FAILED
        return self._status

    def __str__(self) -> str:
        return (
            f"TransactionEnvelope{{transaction_hash: '{self.get_transaction_hash()}', "
            f"status: '{self._status.value}'}}"
        )

    __repr__ = __str__


class SponsoredSend:
    """
    A gasless transfer relayed by the platform.

    The sender signs EIP-712 typed data instead of a transaction; the
    platform submits it on chain and pays the gas.

    State machine:
        PENDING -> SIGNED -> SUBMITTED -> COMPLETE | FAILED
    """

    def __init__(self, model: dict):
        if not model:
            raise InternalError("Sponsored send model cannot be empty")
        self._model = dict(model)
        self._status = SponsoredSendStatus.parse(model.get("status"))

    @property
    def typed_data_hash(self) -> str:
        return self._model.get("typed_data_hash", "")

    @property
    def signature(self) -> Optional[str]:
        return self._model.get("signature") or None

    def raw_typed_data(self) -> dict:
        """
        Raises:
            InvalidUnsignedPayloadError: If the typed data cannot be decoded.
        """
        return decode_typed_data(self._model.get("raw_typed_data", ""))

    def get_transaction_hash(self) -> Optional[str]:
        return self._model.get("transaction_hash") or None

    def get_transaction_link(self) -> Optional[str]:
        return self._model.get("transaction_link") or None

    def get_status(self) -> SponsoredSendStatus:
        return self._status

    def is_terminal(self) -> bool:
        return self._status in (SponsoredSendStatus.COMPLETE, SponsoredSendStatus.FAILED)

    def is_signed(self) -> bool:
        return self.signature is not None

    def sign(self, key_provider) -> str:
        """
        Sign the typed data locally.

        Returns:
            0x-prefixed signature, as broadcast.

        Raises:
            MissingSignerError: If no key provider is given.
            InvalidUnsignedPayloadError: If the typed data cannot be decoded.
        """
        if self.is_signed():
            return self.signature
        if key_provider is None:
            raise MissingSignerError("sign sponsored send")

        typed_data = self.raw_typed_data()
        try:
            signature = key_provider.sign_typed_data(typed_data)
        except (TypeError, ValueError, KeyError) as e:
            raise SigningError(f"Failed to sign typed data: {e}")

        self._model["signature"] = signature
        return signature

    def update(self, model: dict) -> None:
        if self.is_terminal() or not model:
            return
        local_signature = self.signature
        self._model = dict(model)
        if not self._model.get("signature") and local_signature:
            self._model["signature"] = local_signature
        self._status = SponsoredSendStatus.parse(model.get("status"))

    def __str__(self) -> str:
        return (
            f"SponsoredSend{{transaction_hash: '{self.get_transaction_hash()}', "
            f"status: '{self._status.value}', typed_data_hash: '{self.typed_data_hash}'}}"
        )

    __repr__ = __str__
