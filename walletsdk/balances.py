"""
WalletSDK - Balance Aggregation

Collects paginated balance listings into whole-unit maps keyed by asset id.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from .amounts import AmountNormalizer
from .constants import MAX_HISTORICAL_BALANCES
from .errors import ArgumentError
from .infra.api import drain_pages
from .models import Balance, HistoricalBalance


@dataclass(frozen=True)
class BalanceScope:
    """Either a single address of a wallet, or the whole wallet."""
    wallet_id: str
    address_id: Optional[str] = None
    network_id: Optional[str] = None

    @classmethod
    def for_address(cls, wallet_id: str, address_id: str, network_id: Optional[str] = None) -> "BalanceScope":
        return cls(wallet_id, address_id, network_id)

    @classmethod
    def for_wallet(cls, wallet_id: str, network_id: Optional[str] = None) -> "BalanceScope":
        return cls(wallet_id, None, network_id)

    @property
    def is_address(self) -> bool:
        return self.address_id is not None


class BalanceMap(dict):
    """
    Asset id -> whole-unit Decimal.

    Assets without a balance read as zero.
    """

    def __missing__(self, asset_id: str) -> Decimal:
        return Decimal(0)

    def add(self, balance: Balance) -> None:
        self[balance.asset_id.lower()] = balance.amount

    def __str__(self) -> str:
        return "BalanceMap{" + ", ".join(f"{k}: '{v}'" for k, v in self.items()) + "}"


class BalanceAggregator:
    """
    Reads balances for a BalanceScope.

    Example:
        aggregator = BalanceAggregator(api)
        balances = await aggregator.list_balances(BalanceScope.for_wallet(wallet_id))
        balances["eth"]   # Decimal("1.5")
    """

    def __init__(self, api, normalizer: Optional[AmountNormalizer] = None):
        self.api = api
        self.normalizer = normalizer or AmountNormalizer()

    async def list_balances(self, scope: BalanceScope) -> BalanceMap:
        """All balances in the scope; a later entry for the same asset wins."""
        models = await drain_pages(
            lambda page: self.api.list_balances(scope.wallet_id, scope.address_id, page)
        )

        balances = BalanceMap()
        for model in models:
            balance = Balance.from_model(model)
            self.normalizer.register(balance.asset)
            balances.add(balance)
        return balances

    async def get_balance(self, scope: BalanceScope, asset_id: str) -> Decimal:
        """
        Balance of one asset in whole units of ``asset_id``.

        Sub-unit aliases query their primary asset and are converted with
        the alias' precision. No record on the server reads as zero.
        """
        primary = self.normalizer.resolve_primary_asset_id(asset_id)
        model = await self.api.get_balance(scope.wallet_id, primary, scope.address_id)
        if not model:
            return Decimal(0)
        return Balance.from_model(model, asset_id).amount

    async def list_historical_balances(
        self,
        scope: BalanceScope,
        asset_id: str,
        limit: Optional[int] = None,
    ) -> List[HistoricalBalance]:
        """
        Balance history of one asset, newest first, at most 1000 entries.

        Raises:
            ArgumentError: If the scope is not a single address on a network.
        """
        if not scope.is_address or not scope.network_id:
            raise ArgumentError("Historical balances require an address scope with a network id")

        cap = min(limit, MAX_HISTORICAL_BALANCES) if limit else MAX_HISTORICAL_BALANCES
        primary = self.normalizer.resolve_primary_asset_id(asset_id)
        models = await drain_pages(
            lambda page: self.api.list_historical_balances(
                scope.network_id, scope.address_id, primary, page=page
            ),
            limit=cap,
        )
        return [HistoricalBalance.from_model(model) for model in models]
