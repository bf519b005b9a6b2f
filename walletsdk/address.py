"""
WalletSDK - Wallet Address

An address belonging to a wallet, and the caller-facing entry point for
every operation it can perform.
"""

import json
from decimal import Decimal
from typing import Any, List, Optional, Union

from .amounts import Amount, AmountNormalizer, format_atomic, to_decimal
from .balances import BalanceAggregator, BalanceMap, BalanceScope
from .constants import DEFAULT_STAKING_TIMEOUT_SECONDS, ETH
from .errors import ArgumentError, InsufficientFundsError, InternalError, SigningError, UnsupportedAssetError
from .infra.api import drain_pages
from .lifecycle import OperationLifecycle
from .models import (
    Asset,
    HistoricalBalance,
    OperationKind,
    SmartContractType,
    StakeOptionsMode,
    StakingBalances,
    StakingReward,
    StakingRewardFormat,
)
from .operations import (
    ContractInvocation,
    FaucetTransaction,
    Operation,
    PayloadSignature,
    SmartContractDeployment,
    StakingOperation,
    Trade,
    Transfer,
)
from .staking import StakingContext

Destination = Union[str, "WalletAddress", Any]


class WalletAddress:
    """
    A wallet address able to transfer, trade, invoke contracts, stake and
    deploy contracts.

    Every operation method creates the operation on the platform, signs and
    broadcasts it (locally or via the server signer) and waits until it is
    terminal.

    Example:
        transfer = await address.transfer("0.5", "eth", "0xRecipient...")
        print(transfer.get_status(), transfer.get_transaction_link())
    """

    def __init__(
        self,
        model: dict,
        api,
        lifecycle: OperationLifecycle,
        node=None,
        normalizer: Optional[AmountNormalizer] = None,
    ):
        if not model:
            raise InternalError("Address model cannot be empty")
        self._model = model
        self.api = api
        self.lifecycle = lifecycle
        self.node = node
        self.normalizer = normalizer or AmountNormalizer()
        self.balances = BalanceAggregator(api, self.normalizer)
        self.staking = StakingContext(api, self.normalizer)

    @property
    def wallet_id(self) -> str:
        return self._model.get("wallet_id", "")

    @property
    def network_id(self) -> str:
        return self._model.get("network_id", "")

    @property
    def address_id(self) -> str:
        return self._model.get("address_id", "")

    @property
    def index(self) -> Optional[int]:
        return self._model.get("index")

    @property
    def scope(self) -> BalanceScope:
        return BalanceScope.for_address(self.wallet_id, self.address_id, self.network_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _asset_for(self, asset_id: str) -> Asset:
        """Asset with precision from the built-in table, or from the platform."""
        asset_id = asset_id.lower()
        try:
            decimals = self.normalizer.decimals_for(asset_id)
        except UnsupportedAssetError:
            primary = self.normalizer.resolve_primary_asset_id(asset_id)
            asset = Asset.from_model(await self.api.get_asset(self.network_id, primary), asset_id)
            self.normalizer.register(asset)
            return asset
        return Asset(self.network_id, asset_id, decimals)

    def _destination_id(self, destination: Destination) -> str:
        """
        Raises:
            ArgumentError: If the destination is on another network or is
                not an address.
        """
        if isinstance(destination, str):
            return destination

        network_id = getattr(destination, "network_id", None)
        if network_id and network_id != self.network_id:
            raise ArgumentError(
                "Transfer must be on the same network",
                {"source_network_id": self.network_id, "destination_network_id": network_id},
            )
        if hasattr(destination, "address_id"):
            return destination.address_id
        default_address = getattr(destination, "default_address", None)
        if default_address is not None:
            return default_address.address_id
        raise ArgumentError(f"Invalid destination: {destination!r}")

    async def _ensure_sufficient(self, amount: Amount, asset_id: str) -> None:
        requested = to_decimal(amount)
        available = await self.get_balance(asset_id)
        if requested > available:
            raise InsufficientFundsError(requested, available)

    async def _create(self, kind: OperationKind, body: dict, operation_cls) -> Operation:
        model = await self.api.create_operation(kind, self.wallet_id, self.address_id, body)
        return operation_cls(model, self.api, self.node, self.normalizer)

    async def _run(self, kind: OperationKind, body: dict, operation_cls, interval_seconds=None, timeout_seconds=None):
        return await self.lifecycle.execute(
            lambda: self._create(kind, body, operation_cls),
            interval_seconds=interval_seconds,
            timeout_seconds=timeout_seconds,
        )

    # =========================================================================
    # Transfers and Trades
    # =========================================================================

    async def transfer(
        self,
        amount: Amount,
        asset_id: str,
        destination: Destination,
        *,
        gasless: bool = False,
        skip_batching: bool = False,
        interval_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
    ) -> Transfer:
        """
        Send ``amount`` whole units of ``asset_id`` to ``destination``.

        Args:
            amount: Amount in whole units of ``asset_id``.
            asset_id: Asset or denomination alias (``eth``, ``gwei``, ``usdc``...).
            destination: Address id string, WalletAddress or Wallet.
            gasless: Let the platform pay the gas; the sender signs typed
                data instead of a transaction.
            skip_batching: Submit a gasless transfer immediately instead of
                batching it. Requires ``gasless``.

        Raises:
            ArgumentError: If the amount is negative or too precise, the
                destination is on another network, or ``skip_batching`` is
                set without ``gasless``.
            InsufficientFundsError: If the balance does not cover ``amount``.
            MissingSignerError: If no signer is available.
            TimeoutError: If the transfer does not settle in time.
        """
        if skip_batching and not gasless:
            raise ArgumentError("skip_batching requires gasless to be true")
        destination_id = self._destination_id(destination)

        asset = await self._asset_for(asset_id)
        atomic = asset.to_atomic_amount(amount)
        await self._ensure_sufficient(amount, asset_id)

        body = {
            "network_id": self.network_id,
            "asset_id": asset.primary_denomination,
            "amount": format_atomic(atomic),
            "destination": destination_id,
            "gasless": gasless,
            "skip_batching": skip_batching,
        }
        return await self._run(OperationKind.TRANSFER, body, Transfer, interval_seconds, timeout_seconds)

    async def trade(
        self,
        amount: Amount,
        from_asset_id: str,
        to_asset_id: str,
        *,
        interval_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
    ) -> Trade:
        """Swap ``amount`` of ``from_asset_id`` into ``to_asset_id``."""
        from_asset = await self._asset_for(from_asset_id)
        atomic = from_asset.to_atomic_amount(amount)
        await self._ensure_sufficient(amount, from_asset_id)

        body = {
            "amount": format_atomic(atomic),
            "from_asset_id": from_asset.primary_denomination,
            "to_asset_id": self.normalizer.resolve_primary_asset_id(to_asset_id),
        }
        return await self._run(OperationKind.TRADE, body, Trade, interval_seconds, timeout_seconds)

    async def list_transfers(self) -> List[Transfer]:
        return await self._list_operations(OperationKind.TRANSFER, Transfer)

    async def list_trades(self) -> List[Trade]:
        return await self._list_operations(OperationKind.TRADE, Trade)

    async def _list_operations(self, kind: OperationKind, operation_cls) -> list:
        models = await drain_pages(
            lambda page: self.api.list_operations(kind, self.wallet_id, self.address_id, page=page)
        )
        return [operation_cls(model, self.api, self.node, self.normalizer) for model in models]

    # =========================================================================
    # Contracts
    # =========================================================================

    async def invoke_contract(
        self,
        contract_address: str,
        method: str,
        args: Optional[dict] = None,
        abi: Optional[list] = None,
        amount: Optional[Amount] = None,
        asset_id: Optional[str] = None,
        *,
        interval_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
    ) -> ContractInvocation:
        """
        Call ``method`` on ``contract_address``.

        ``amount``/``asset_id`` attach native value to payable methods; both
        must be given together.
        """
        body = {
            "contract_address": contract_address,
            "method": method,
            "args": json.dumps(args or {}),
        }
        if abi is not None:
            body["abi"] = json.dumps(abi)

        if amount is not None or asset_id is not None:
            if amount is None or asset_id is None:
                raise ArgumentError("amount and asset_id must be provided together")
            asset = await self._asset_for(asset_id)
            atomic = asset.to_atomic_amount(amount)
            await self._ensure_sufficient(amount, asset_id)
            body["amount"] = format_atomic(atomic)

        return await self._run(
            OperationKind.CONTRACT_INVOCATION, body, ContractInvocation, interval_seconds, timeout_seconds
        )

    async def deploy_token(self, name: str, symbol: str, total_supply: Amount, **wait_options) -> SmartContractDeployment:
        """Deploy an ERC-20 token."""
        options = {"name": name, "symbol": symbol, "total_supply": str(to_decimal(total_supply))}
        return await self._deploy(SmartContractType.ERC20, options, **wait_options)

    async def deploy_nft(self, name: str, symbol: str, base_uri: str, **wait_options) -> SmartContractDeployment:
        """Deploy an ERC-721 collection."""
        options = {"name": name, "symbol": symbol, "base_uri": base_uri}
        return await self._deploy(SmartContractType.ERC721, options, **wait_options)

    async def deploy_multi_token(self, uri: str, **wait_options) -> SmartContractDeployment:
        """Deploy an ERC-1155 multi-token contract."""
        return await self._deploy(SmartContractType.ERC1155, {"uri": uri}, **wait_options)

    async def _deploy(self, contract_type: SmartContractType, options: dict,
                      interval_seconds: Optional[float] = None,
                      timeout_seconds: Optional[float] = None) -> SmartContractDeployment:
        body = {"type": contract_type.value, "options": options}
        return await self._run(
            OperationKind.SMART_CONTRACT, body, SmartContractDeployment, interval_seconds, timeout_seconds
        )

    # =========================================================================
    # Staking
    # =========================================================================

    async def stake(self, amount: Amount, asset_id: str = ETH,
                    mode: StakeOptionsMode = StakeOptionsMode.DEFAULT,
                    options: Optional[dict] = None, **wait_options) -> StakingOperation:
        """
        Raises:
            InsufficientFundsError: If ``amount`` exceeds the stakeable balance.
        """
        await self.staking.validate_can_stake(self, amount, asset_id, mode, options)
        return await self._staking_operation("stake", amount, asset_id, mode, options, **wait_options)

    async def unstake(self, amount: Amount, asset_id: str = ETH,
                      mode: StakeOptionsMode = StakeOptionsMode.DEFAULT,
                      options: Optional[dict] = None, **wait_options) -> StakingOperation:
        """
        Raises:
            InsufficientFundsError: If ``amount`` exceeds the unstakeable balance.
        """
        await self.staking.validate_can_unstake(self, amount, asset_id, mode, options)
        return await self._staking_operation("unstake", amount, asset_id, mode, options, **wait_options)

    async def claim_stake(self, amount: Amount, asset_id: str = ETH,
                          mode: StakeOptionsMode = StakeOptionsMode.DEFAULT,
                          options: Optional[dict] = None, **wait_options) -> StakingOperation:
        """
        Raises:
            ArgumentError: For ETH in native mode.
            InsufficientFundsError: If ``amount`` exceeds the claimable balance.
        """
        await self.staking.validate_can_claim_stake(self, amount, asset_id, mode, options)
        return await self._staking_operation("claim_stake", amount, asset_id, mode, options, **wait_options)

    async def _staking_operation(self, action: str, amount: Amount, asset_id: str,
                                 mode: StakeOptionsMode, options: Optional[dict],
                                 interval_seconds: Optional[float] = None,
                                 timeout_seconds: Optional[float] = None) -> StakingOperation:
        asset = await self._asset_for(asset_id)
        request_options = self.staking.build_options(asset_id, mode, options)
        request_options["amount"] = format_atomic(asset.to_atomic_amount(amount))

        body = {
            "network_id": self.network_id,
            "asset_id": asset.primary_denomination,
            "action": action,
            "options": request_options,
        }
        return await self._run(
            OperationKind.STAKING_OPERATION,
            body,
            StakingOperation,
            interval_seconds,
            timeout_seconds or DEFAULT_STAKING_TIMEOUT_SECONDS,
        )

    async def staking_balances(self, asset_id: str = ETH,
                               mode: StakeOptionsMode = StakeOptionsMode.DEFAULT,
                               options: Optional[dict] = None) -> StakingBalances:
        return await self.staking.get_balances(self, asset_id, mode, options)

    async def stakeable_balance(self, asset_id: str = ETH,
                                mode: StakeOptionsMode = StakeOptionsMode.DEFAULT,
                                options: Optional[dict] = None) -> Decimal:
        return (await self.staking_balances(asset_id, mode, options)).stakeable

    async def unstakeable_balance(self, asset_id: str = ETH,
                                  mode: StakeOptionsMode = StakeOptionsMode.DEFAULT,
                                  options: Optional[dict] = None) -> Decimal:
        return (await self.staking_balances(asset_id, mode, options)).unstakeable

    async def claimable_balance(self, asset_id: str = ETH,
                                mode: StakeOptionsMode = StakeOptionsMode.DEFAULT,
                                options: Optional[dict] = None) -> Decimal:
        return (await self.staking_balances(asset_id, mode, options)).claimable

    async def staking_rewards(self, asset_id: str, start_time: str, end_time: str,
                              reward_format: StakingRewardFormat = StakingRewardFormat.USD) -> List[StakingReward]:
        """Daily staking rewards of this address between two ISO-8601 times."""
        asset = await self._asset_for(asset_id)
        return await self.staking.list_rewards(
            self.network_id, asset, [self.address_id], start_time, end_time, reward_format
        )

    # =========================================================================
    # Payload Signatures
    # =========================================================================

    async def sign_payload(self, unsigned_payload: str, *,
                           interval_seconds: Optional[float] = None,
                           timeout_seconds: Optional[float] = None) -> PayloadSignature:
        """
        Sign a 32-byte hex payload, locally or with the server signer, and
        wait until the platform records the signature.

        Raises:
            MissingSignerError: If no signer is available.
            SigningError: If the payload is not a 32-byte hex string.
            TimeoutError: If the signature does not settle in time.
        """
        self.lifecycle.require_signer("sign payload")

        body = {"unsigned_payload": unsigned_payload}
        if self.lifecycle.signs_locally:
            try:
                body["signature"] = self.lifecycle.key_provider.sign_hash(unsigned_payload)
            except ValueError as e:
                raise SigningError(f"Failed to sign payload: {e}")

        model = await self.api.create_operation(OperationKind.PAYLOAD_SIGNATURE, self.wallet_id, self.address_id, body)
        signature = PayloadSignature(model, self.api)
        return await signature.wait(
            interval_seconds or self.lifecycle.interval_seconds,
            timeout_seconds or self.lifecycle.timeout_seconds,
        )

    async def get_payload_signature(self, payload_signature_id: str) -> PayloadSignature:
        model = await self.api.get_operation(
            OperationKind.PAYLOAD_SIGNATURE, self.wallet_id, self.address_id, payload_signature_id
        )
        return PayloadSignature(model, self.api)

    async def list_payload_signatures(self) -> List[PayloadSignature]:
        models = await drain_pages(
            lambda page: self.api.list_operations(OperationKind.PAYLOAD_SIGNATURE, self.wallet_id,
                                                  self.address_id, page=page)
        )
        return [PayloadSignature(model, self.api) for model in models]

    # =========================================================================
    # Balances and Faucet
    # =========================================================================

    async def list_balances(self) -> BalanceMap:
        return await self.balances.list_balances(self.scope)

    async def get_balance(self, asset_id: str) -> Decimal:
        """Balance in whole units of ``asset_id``; zero if the platform has no record."""
        return await self.balances.get_balance(self.scope, asset_id)

    async def list_historical_balances(self, asset_id: str, limit: Optional[int] = None) -> List[HistoricalBalance]:
        return await self.balances.list_historical_balances(self.scope, asset_id, limit)

    async def faucet(self, asset_id: Optional[str] = None) -> FaucetTransaction:
        """Request testnet funds for this address."""
        model = await self.api.request_faucet_funds(self.wallet_id, self.address_id, asset_id)
        return FaucetTransaction(model, self.api, self.node)

    def __str__(self) -> str:
        return f"WalletAddress{{address_id: '{self.address_id}', network_id: '{self.network_id}'}}"

    __repr__ = __str__
