"""
WalletSDK - Wallet

A wallet groups addresses on one network. Operations on the wallet act
through its default address; balances can be read across all addresses.
"""

from decimal import Decimal
from typing import List, Optional

from .amounts import AmountNormalizer
from .address import WalletAddress
from .balances import BalanceAggregator, BalanceMap, BalanceScope
from .errors import InternalError
from .infra.api import drain_pages
from .lifecycle import OperationLifecycle
from .operations import FaucetTransaction


class Wallet:
    """
    A wallet and its addresses.

    Example:
        wallet = await client.get_wallet(wallet_id)
        balances = await wallet.list_balances()
        transfer = await wallet.transfer("0.01", "eth", other_wallet)
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
            raise InternalError("Wallet model cannot be empty")
        self._model = model
        self.api = api
        self.lifecycle = lifecycle
        self.node = node
        self.normalizer = normalizer or AmountNormalizer()
        self.balances = BalanceAggregator(api, self.normalizer)

    @property
    def id(self) -> str:
        return self._model.get("id", "")

    @property
    def network_id(self) -> str:
        return self._model.get("network_id", "")

    @property
    def default_address(self) -> Optional[WalletAddress]:
        model = self._model.get("default_address")
        return self._address(model) if model else None

    @property
    def scope(self) -> BalanceScope:
        return BalanceScope.for_wallet(self.id, self.network_id)

    def _address(self, model: dict) -> WalletAddress:
        return WalletAddress(model, self.api, self.lifecycle, self.node, self.normalizer)

    def _require_default_address(self) -> WalletAddress:
        address = self.default_address
        if address is None:
            raise InternalError("Wallet has no default address", {"wallet_id": self.id})
        return address

    async def list_addresses(self) -> List[WalletAddress]:
        models = await drain_pages(lambda page: self.api.list_addresses(self.id, page))
        return [self._address(model) for model in models]

    async def get_address(self, address_id: str) -> WalletAddress:
        return self._address(await self.api.get_address(self.id, address_id))

    # =========================================================================
    # Balances
    # =========================================================================

    async def list_balances(self) -> BalanceMap:
        """Balances summed across every address of the wallet."""
        return await self.balances.list_balances(self.scope)

    async def get_balance(self, asset_id: str) -> Decimal:
        return await self.balances.get_balance(self.scope, asset_id)

    # =========================================================================
    # Default address operations
    # =========================================================================

    async def transfer(self, amount, asset_id: str, destination, **kwargs):
        return await self._require_default_address().transfer(amount, asset_id, destination, **kwargs)

    async def trade(self, amount, from_asset_id: str, to_asset_id: str, **kwargs):
        return await self._require_default_address().trade(amount, from_asset_id, to_asset_id, **kwargs)

    async def invoke_contract(self, contract_address: str, method: str, **kwargs):
        return await self._require_default_address().invoke_contract(contract_address, method, **kwargs)

    async def stake(self, amount, asset_id: str = "eth", **kwargs):
        return await self._require_default_address().stake(amount, asset_id, **kwargs)

    async def unstake(self, amount, asset_id: str = "eth", **kwargs):
        return await self._require_default_address().unstake(amount, asset_id, **kwargs)

    async def claim_stake(self, amount, asset_id: str = "eth", **kwargs):
        return await self._require_default_address().claim_stake(amount, asset_id, **kwargs)

    async def deploy_token(self, name: str, symbol: str, total_supply, **kwargs):
        return await self._require_default_address().deploy_token(name, symbol, total_supply, **kwargs)

    async def deploy_nft(self, name: str, symbol: str, base_uri: str, **kwargs):
        return await self._require_default_address().deploy_nft(name, symbol, base_uri, **kwargs)

    async def deploy_multi_token(self, uri: str, **kwargs):
        return await self._require_default_address().deploy_multi_token(uri, **kwargs)

    async def staking_rewards(self, asset_id: str, start_time: str, end_time: str, **kwargs):
        return await self._require_default_address().staking_rewards(asset_id, start_time, end_time, **kwargs)

    async def sign_payload(self, unsigned_payload: str, **kwargs):
        return await self._require_default_address().sign_payload(unsigned_payload, **kwargs)

    async def faucet(self, asset_id: Optional[str] = None) -> FaucetTransaction:
        return await self._require_default_address().faucet(asset_id)

    def __str__(self) -> str:
        default = self.default_address
        return (
            f"Wallet{{wallet_id: '{self.id}', network_id: '{self.network_id}', "
            f"default_address: '{default.address_id if default else None}'}}"
        )

    __repr__ = __str__
