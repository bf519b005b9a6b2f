"""
WalletSDK - Operations

Client-side views of server operations: transfers, trades, contract
invocations, staking operations, smart contract deployments, faucet
fundings and payload signatures.

Each operation owns one or more TransactionEnvelopes and is mutated only
by ``sign()``, ``broadcast()`` and ``reload()``.
"""

import json
from decimal import Decimal
from typing import Any, List, Optional

from .amounts import AmountNormalizer, from_atomic_units
from .constants import (
    ASSET_DECIMALS,
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_STAKING_TIMEOUT_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    ETH,
)
from .errors import InternalError, NotSignedError
from .lifecycle import wait_until
from .models import (
    Asset,
    OperationKind,
    PayloadSignatureStatus,
    SmartContractType,
    StakingOperationStatus,
    TransactionStatus,
)
from .transaction import SponsoredSend, TransactionEnvelope


def _awaiting_broadcast(envelope: TransactionEnvelope) -> bool:
    return envelope.is_signed() and envelope.get_status() in (TransactionStatus.PENDING, TransactionStatus.SIGNED)


class Operation:
    """
    Base class for operations backed by the platform API.

    Subclasses set ``kind``, the model field holding the operation id and
    the model field holding the acting address.
    """

    kind: OperationKind
    id_field: str = "id"
    address_field: str = "address_id"
    default_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def __init__(self, model: dict, api, node=None, normalizer: Optional[AmountNormalizer] = None):
        if not model:
            raise InternalError(f"{type(self).__name__} model cannot be empty")
        self._model = model
        self._api = api
        self._node = node
        self._normalizer = normalizer or AmountNormalizer()
        self._envelopes: List[TransactionEnvelope] = [
            TransactionEnvelope(tx) for tx in self._transaction_models(model)
        ]

    def _transaction_models(self, model: dict) -> List[dict]:
        tx = model.get("transaction")
        return [tx] if tx else []

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def id(self) -> str:
        return self._model.get(self.id_field, "")

    @property
    def wallet_id(self) -> str:
        return self._model.get("wallet_id", "")

    @property
    def address_id(self) -> str:
        return self._model.get(self.address_field, "")

    @property
    def network_id(self) -> str:
        return self._model.get("network_id", "")

    @property
    def envelopes(self) -> List[TransactionEnvelope]:
        return list(self._envelopes)

    @property
    def transaction(self) -> Optional[TransactionEnvelope]:
        return self._envelopes[0] if self._envelopes else None

    def unsigned_envelopes(self) -> List[TransactionEnvelope]:
        """Envelopes that still need a local signature."""
        return [
            env for env in self._envelopes
            if env.unsigned_payload and not env.is_signed() and not env.is_terminal()
        ]

    def needs_signature(self) -> bool:
        return bool(self.unsigned_envelopes())

    def get_status(self):
        if self.transaction is None:
            return TransactionStatus.PENDING
        return self.transaction.get_status()

    def is_terminal(self) -> bool:
        return self.get_status().is_terminal

    def get_transaction_hash(self) -> Optional[str]:
        return self.transaction.get_transaction_hash() if self.transaction else None

    def get_transaction_link(self) -> Optional[str]:
        return self.transaction.get_transaction_link() if self.transaction else None

    # =========================================================================
    # Mutations
    # =========================================================================

    def sign(self, key_provider) -> "Operation":
        """Sign every envelope still awaiting a signature."""
        for envelope in self.unsigned_envelopes():
            envelope.sign(key_provider)
        return self

    def _broadcast_body(self) -> dict:
        return {"signed_payload": self.transaction.signed_payload}

    async def broadcast(self) -> "Operation":
        """
        Submit the signed transaction.

        Raises:
            NotSignedError: If the transaction has not been signed.
        """
        if self.transaction is None or not self.transaction.is_signed():
            raise NotSignedError(f"Cannot broadcast unsigned {type(self).__name__}")

        model = await self._api.broadcast_operation(
            self.kind, self.wallet_id, self.address_id, self.id, self._broadcast_body()
        )
        self._update(model)
        return self

    async def reload(self) -> "Operation":
        """Refresh from the platform API, then from the chain node if one is set."""
        model = await self._api.get_operation(self.kind, self.wallet_id, self.address_id, self.id)
        self._update(model)
        if self._node is not None:
            for envelope in self._envelopes:
                await envelope.sync_status(self._node)
        return self

    async def wait(
        self,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        timeout_seconds: Optional[float] = None,
    ) -> "Operation":
        """
        Poll until terminal.

        Raises:
            TimeoutError: If the operation does not settle in time.
        """
        await wait_until(
            self.reload,
            self.is_terminal,
            interval_seconds,
            timeout_seconds or self.default_timeout_seconds,
            self.id,
        )
        return self

    def _update(self, model: Optional[dict]) -> None:
        if not model:
            return
        self._model = model
        for index, tx_model in enumerate(self._transaction_models(model)):
            if index < len(self._envelopes):
                self._envelopes[index].update(tx_model)
            else:
                self._envelopes.append(TransactionEnvelope(tx_model))

    def __str__(self) -> str:
        return (
            f"{type(self).__name__}{{id: '{self.id}', network_id: '{self.network_id}', "
            f"status: '{self.get_status().value}', transaction_hash: '{self.get_transaction_hash()}'}}"
        )

    __repr__ = __str__


class Transfer(Operation):
    """
    A transfer of an asset from an address to a destination.

    A gasless transfer carries a ``SponsoredSend`` instead of a
    transaction; signing, broadcast and status then go through it.
    """

    kind = OperationKind.TRANSFER
    id_field = "transfer_id"

    def __init__(self, model: dict, api, node=None, normalizer: Optional[AmountNormalizer] = None):
        super().__init__(model, api, node, normalizer)
        sponsored = model.get("sponsored_send")
        self._sponsored_send = SponsoredSend(sponsored) if sponsored and self.transaction is None else None

    @property
    def asset_id(self) -> str:
        return self._model.get("asset_id", "")

    @property
    def destination_address_id(self) -> str:
        return self._model.get("destination", "")

    @property
    def gasless(self) -> bool:
        return self._sponsored_send is not None

    @property
    def sponsored_send(self) -> Optional[SponsoredSend]:
        return self._sponsored_send

    @property
    def amount(self) -> Decimal:
        """
        Amount in whole units of ``asset_id``.

        Raises:
            UnsupportedAssetError: If the asset's precision is unknown.
        """
        asset_model = self._model.get("asset")
        atomic = self._model.get("amount") or 0
        if asset_model:
            return Asset.from_model(asset_model).from_atomic_amount(atomic)
        return self._normalizer.from_atomic_units(self.asset_id, atomic)

    def needs_signature(self) -> bool:
        if self._sponsored_send is not None:
            return not self._sponsored_send.is_signed() and not self._sponsored_send.is_terminal()
        return super().needs_signature()

    def get_status(self) -> TransactionStatus:
        if self._sponsored_send is not None:
            return self._sponsored_send.get_status().transaction_status
        return super().get_status()

    def get_transaction_hash(self) -> Optional[str]:
        if self._sponsored_send is not None:
            return self._sponsored_send.get_transaction_hash()
        return super().get_transaction_hash()

    def get_transaction_link(self) -> Optional[str]:
        if self._sponsored_send is not None:
            return self._sponsored_send.get_transaction_link()
        return super().get_transaction_link()

    def sign(self, key_provider) -> "Transfer":
        if self._sponsored_send is not None:
            self._sponsored_send.sign(key_provider)
            return self
        return super().sign(key_provider)

    async def broadcast(self) -> "Transfer":
        if self._sponsored_send is None:
            return await super().broadcast()
        if not self._sponsored_send.is_signed():
            raise NotSignedError("Cannot broadcast unsigned Transfer")

        body = {"signed_payload": self._sponsored_send.signature}
        model = await self._api.broadcast_operation(self.kind, self.wallet_id, self.address_id, self.id, body)
        self._update(model)
        return self

    def _update(self, model: Optional[dict]) -> None:
        super()._update(model)
        if model and self._sponsored_send is not None:
            self._sponsored_send.update(model.get("sponsored_send") or {})


class Trade(Operation):
    """
    A swap between two assets.

    May carry an ERC-20 approve transaction that is signed and broadcast
    together with the trade transaction.
    """

    kind = OperationKind.TRADE
    id_field = "trade_id"

    def _transaction_models(self, model: dict) -> List[dict]:
        models = super()._transaction_models(model)
        if model.get("approve_transaction"):
            models.append(model["approve_transaction"])
        return models

    @property
    def approve_transaction(self) -> Optional[TransactionEnvelope]:
        return self._envelopes[1] if len(self._envelopes) > 1 else None

    @property
    def from_asset_id(self) -> str:
        return self._model.get("from_asset", {}).get("asset_id", "")

    @property
    def to_asset_id(self) -> str:
        return self._model.get("to_asset", {}).get("asset_id", "")

    @property
    def from_amount(self) -> Decimal:
        return Asset.from_model(self._model["from_asset"]).from_atomic_amount(self._model.get("from_amount") or 0)

    @property
    def to_amount(self) -> Decimal:
        return Asset.from_model(self._model["to_asset"]).from_atomic_amount(self._model.get("to_amount") or 0)

    def _broadcast_body(self) -> dict:
        body = super()._broadcast_body()
        if self.approve_transaction is not None:
            if not self.approve_transaction.is_signed():
                raise NotSignedError("Cannot broadcast trade with unsigned approve transaction")
            body["approve_transaction_signed_payload"] = self.approve_transaction.signed_payload
        return body


class ContractInvocation(Operation):
    """A call to a method on a deployed contract."""

    kind = OperationKind.CONTRACT_INVOCATION
    id_field = "contract_invocation_id"

    @property
    def contract_address(self) -> str:
        return self._model.get("contract_address", "")

    @property
    def method(self) -> str:
        return self._model.get("method", "")

    @property
    def args(self) -> Any:
        return json.loads(self._model.get("args") or "{}")

    @property
    def abi(self) -> Optional[Any]:
        if not self._model.get("abi"):
            return None
        return json.loads(self._model["abi"])

    @property
    def amount(self) -> Decimal:
        """Native value sent with the call, in ETH."""
        return from_atomic_units(self._model.get("amount") or 0, ASSET_DECIMALS[ETH])


class SmartContractDeployment(Operation):
    """Deployment of a token, NFT or multi-token contract."""

    kind = OperationKind.SMART_CONTRACT
    id_field = "smart_contract_id"
    address_field = "deployer_address"

    @property
    def contract_address(self) -> str:
        return self._model.get("contract_address", "")

    @property
    def type(self) -> SmartContractType:
        return SmartContractType(self._model.get("type", "custom").lower())

    @property
    def options(self) -> dict:
        return self._model.get("options") or {}

    @property
    def abi(self) -> Optional[Any]:
        if not self._model.get("abi"):
            return None
        return json.loads(self._model["abi"])


class StakingOperation(Operation):
    """
    A stake, unstake or claim operation.

    May span several transactions that the platform issues over time;
    new unsigned transactions appear on reload and are broadcast by index.
    A broadcast answered with no transactions (every step was a no-op)
    completes the operation. A freshly created operation without
    transactions is still waiting for the platform to build them.
    """

    kind = OperationKind.STAKING_OPERATION
    default_timeout_seconds = DEFAULT_STAKING_TIMEOUT_SECONDS

    def __init__(self, model: dict, api, node=None, normalizer: Optional[AmountNormalizer] = None):
        super().__init__(model, api, node, normalizer)
        self._no_op = False

    def _transaction_models(self, model: dict) -> List[dict]:
        return list(model.get("transactions") or [])

    def get_status(self) -> StakingOperationStatus:
        status = StakingOperationStatus.parse(self._model.get("status"))
        if self._no_op and status is not StakingOperationStatus.FAILED:
            return StakingOperationStatus.COMPLETE
        return status

    def is_terminal(self) -> bool:
        return self.get_status() in (StakingOperationStatus.COMPLETE, StakingOperationStatus.FAILED)

    async def broadcast(self) -> "StakingOperation":
        """
        Submit every signed transaction not yet broadcast.

        Raises:
            NotSignedError: If transactions remain but none is signed.
        """
        pending = [(i, env) for i, env in enumerate(self._envelopes) if _awaiting_broadcast(env)]
        if not pending:
            if self.unsigned_envelopes():
                raise NotSignedError("Cannot broadcast unsigned StakingOperation")
            return self

        for index, envelope in pending:
            body = {"signed_payload": envelope.signed_payload, "transaction_index": index}
            model = await self._api.broadcast_operation(
                self.kind, self.wallet_id, self.address_id, self.id, body
            )
            if model and not self._transaction_models(model):
                self._no_op = True
            self._update(model)
        return self


class FaucetTransaction:
    """A testnet faucet funding transaction."""

    def __init__(self, model: dict, api=None, node=None):
        tx_model = model.get("transaction") or {
            "transaction_hash": model.get("transaction_hash"),
            "transaction_link": model.get("transaction_link"),
            "status": TransactionStatus.BROADCAST.value,
        }
        self._model = model
        self._api = api
        self._node = node
        self.transaction = TransactionEnvelope(tx_model)

    @property
    def transaction_hash(self) -> Optional[str]:
        return self._model.get("transaction_hash") or self.transaction.get_transaction_hash()

    @property
    def transaction_link(self) -> Optional[str]:
        return self._model.get("transaction_link") or self.transaction.get_transaction_link()

    @property
    def network_id(self) -> Optional[str]:
        return self.transaction.network_id

    @property
    def address_id(self) -> Optional[str]:
        return self.transaction.to_address_id

    def get_status(self) -> TransactionStatus:
        return self.transaction.get_status()

    def is_terminal(self) -> bool:
        return self.transaction.is_terminal()

    async def reload(self) -> "FaucetTransaction":
        model = await self._api.get_faucet_transaction(self.network_id, self.address_id, self.transaction_hash)
        if model:
            self._model = model
            self.transaction.update(model.get("transaction") or {})
        if self._node is not None:
            await self.transaction.sync_status(self._node)
        return self

    async def wait(
        self,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> "FaucetTransaction":
        await wait_until(self.reload, self.is_terminal, interval_seconds, timeout_seconds, self.transaction_hash)
        return self

    def __str__(self) -> str:
        return f"FaucetTransaction{{transaction_hash: '{self.transaction_hash}', status: '{self.get_status().value}'}}"

    __repr__ = __str__


class PayloadSignature:
    """
    A signature over an arbitrary 32-byte payload, produced locally or by
    the server signer.
    """

    kind = OperationKind.PAYLOAD_SIGNATURE

    def __init__(self, model: dict, api=None):
        if not model:
            raise InternalError("PayloadSignature model cannot be empty")
        self._model = model
        self._api = api

    @property
    def id(self) -> str:
        return self._model.get("payload_signature_id", "")

    @property
    def wallet_id(self) -> str:
        return self._model.get("wallet_id", "")

    @property
    def address_id(self) -> str:
        return self._model.get("address_id", "")

    @property
    def unsigned_payload(self) -> str:
        return self._model.get("unsigned_payload", "")

    @property
    def signature(self) -> Optional[str]:
        return self._model.get("signature") or None

    def get_status(self) -> PayloadSignatureStatus:
        return PayloadSignatureStatus.parse(self._model.get("status"))

    def is_terminal(self) -> bool:
        return self.get_status().is_terminal

    async def reload(self) -> "PayloadSignature":
        model = await self._api.get_operation(self.kind, self.wallet_id, self.address_id, self.id)
        if model:
            self._model = model
        return self

    async def wait(
        self,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> "PayloadSignature":
        """
        Poll until SIGNED or FAILED.

        Raises:
            TimeoutError: If the signature does not settle in time.
        """
        await wait_until(self.reload, self.is_terminal, interval_seconds, timeout_seconds, self.id)
        return self

    def __str__(self) -> str:
        return (
            f"PayloadSignature{{id: '{self.id}', status: '{self.get_status().value}', "
            f"unsigned_payload: '{self.unsigned_payload}', signature: '{self.signature}'}}"
        )

    __repr__ = __str__
