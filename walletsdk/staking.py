"""
WalletSDK - Staking Context

Staking balances, rewards and pre-flight validation for stake, unstake
and claim.
"""

from typing import List, Optional

from .amounts import Amount, AmountNormalizer, to_decimal
from .constants import ETH
from .errors import ArgumentError, InsufficientFundsError
from .infra.api import drain_pages
from .models import Asset, StakeOptionsMode, StakingBalances, StakingReward, StakingRewardFormat


class StakingContext:
    """
    Reads stakeable, unstakeable and claimable balances for an address.

    ``address`` arguments are any object exposing ``network_id`` and
    ``address_id``.
    """

    def __init__(self, api, normalizer: Optional[AmountNormalizer] = None):
        self.api = api
        self.normalizer = normalizer or AmountNormalizer()

    def build_options(
        self,
        asset_id: str,
        mode: StakeOptionsMode = StakeOptionsMode.DEFAULT,
        options: Optional[dict] = None,
    ) -> dict:
        """Request options carrying the caller's mode; the platform resolves ``default``."""
        opts = dict(options or {})
        opts["mode"] = mode.value
        return opts

    async def get_balances(
        self,
        address,
        asset_id: str,
        mode: StakeOptionsMode = StakeOptionsMode.DEFAULT,
        options: Optional[dict] = None,
    ) -> StakingBalances:
        """Fetch all three staking balances in one call, in units of ``asset_id``."""
        body = {
            "network_id": address.network_id,
            "address_id": address.address_id,
            "asset_id": self.normalizer.resolve_primary_asset_id(asset_id),
            "options": self.build_options(asset_id, mode, options),
        }
        response = await self.api.get_staking_context(body) or {}
        context = response.get("context") or {}

        def amount(key: str):
            return self.normalizer.from_atomic_units(asset_id, (context.get(key) or {}).get("amount") or 0)

        return StakingBalances(
            stakeable=amount("stakeable_balance"),
            unstakeable=amount("unstakeable_balance"),
            claimable=amount("claimable_balance"),
        )

    async def validate_can_stake(self, address, amount: Amount, asset_id: str,
                                 mode: StakeOptionsMode = StakeOptionsMode.DEFAULT,
                                 options: Optional[dict] = None) -> None:
        """
        Raises:
            InsufficientFundsError: If ``amount`` exceeds the stakeable balance.
        """
        balances = await self.get_balances(address, asset_id, mode, options)
        self._check(amount, balances.stakeable, "stake")

    async def validate_can_unstake(self, address, amount: Amount, asset_id: str,
                                   mode: StakeOptionsMode = StakeOptionsMode.DEFAULT,
                                   options: Optional[dict] = None) -> None:
        """
        Raises:
            InsufficientFundsError: If ``amount`` exceeds the unstakeable balance.
        """
        balances = await self.get_balances(address, asset_id, mode, options)
        self._check(amount, balances.unstakeable, "unstake")

    async def validate_can_claim_stake(self, address, amount: Amount, asset_id: str,
                                       mode: StakeOptionsMode = StakeOptionsMode.DEFAULT,
                                       options: Optional[dict] = None) -> None:
        """
        Raises:
            ArgumentError: For ETH in native mode, which has no claim step.
            InsufficientFundsError: If ``amount`` exceeds the claimable balance.
        """
        if self.normalizer.resolve_primary_asset_id(asset_id) == ETH and mode is StakeOptionsMode.NATIVE:
            raise ArgumentError("Claiming stake for ETH is not supported in native mode")

        balances = await self.get_balances(address, asset_id, mode, options)
        self._check(amount, balances.claimable, "claim")

    @staticmethod
    def _check(amount: Amount, available, action: str) -> None:
        requested = to_decimal(amount)
        if requested > available:
            raise InsufficientFundsError(
                requested,
                available,
                f"Insufficient funds to {action}: {requested} requested, but only {available} available",
            )

    async def list_rewards(
        self,
        network_id: str,
        asset: Asset,
        address_ids: List[str],
        start_time: str,
        end_time: str,
        reward_format: StakingRewardFormat = StakingRewardFormat.USD,
    ) -> List[StakingReward]:
        """
        Daily staking rewards for ``address_ids`` between two ISO-8601 times.

        Every page is fetched; amounts are whole units of ``asset`` in
        native format and dollars in USD format.
        """
        body = {
            "network_id": network_id,
            "asset_id": asset.primary_denomination,
            "address_ids": list(address_ids),
            "start_time": start_time,
            "end_time": end_time,
            "format": reward_format.value,
        }
        models = await drain_pages(lambda page: self.api.search_staking_rewards(body, page=page))
        return [StakingReward.from_model(model, asset, reward_format) for model in models]
