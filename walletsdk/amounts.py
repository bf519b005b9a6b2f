"""
WalletSDK - Amount Normalization

Exact conversion between whole-unit decimal amounts and atomic integer
units, plus resolution of denomination aliases to primary asset ids.
"""

from decimal import Decimal, InvalidOperation, localcontext
from typing import Dict, Optional, Union

from .constants import ASSET_DECIMALS, PRIMARY_DENOMINATIONS
from .errors import ArgumentError, UnsupportedAssetError

Amount = Union[Decimal, int, str, float]


def to_decimal(amount: Amount) -> Decimal:
    """
    Parse a caller-supplied amount into a Decimal.

    Floats go through ``str()`` so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.

    Raises:
        ArgumentError: If the amount is not a finite number or is negative.
    """
    if isinstance(amount, bool):
        raise ArgumentError(f"Invalid amount: {amount!r}")
    if isinstance(amount, float):
        amount = str(amount)
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise ArgumentError(f"Invalid amount: {amount!r}")

    if not value.is_finite():
        raise ArgumentError(f"Invalid amount: {amount!r}")
    if value < 0:
        raise ArgumentError(f"Amount must not be negative: {amount}")
    return value


def _context_precision(value: Decimal, decimals: int) -> int:
    # Enough significant digits that scaling never rounds
    digits = len(value.as_tuple().digits)
    return max(28, digits + decimals + 2)


def to_atomic_units(amount: Amount, decimals: int) -> int:
    """
    Convert a whole-unit amount to atomic units.

    Args:
        amount: Amount in whole units (e.g. ETH).
        decimals: Decimal precision of the asset.

    Returns:
        Exact integer amount in atomic units (e.g. Wei).

    Raises:
        ArgumentError: If negative, or finer than the asset's precision.
    """
    if decimals < 0:
        raise ArgumentError(f"Decimals must not be negative: {decimals}")
    value = to_decimal(amount)

    with localcontext() as ctx:
        ctx.prec = _context_precision(value, decimals)
        scaled = value.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ArgumentError(
                f"Amount {value} has more precision than the asset supports ({decimals} decimals)"
            )
        return int(scaled)


def from_atomic_units(atomic_amount: Union[int, str, Decimal], decimals: int) -> Decimal:
    """
    Convert an atomic-unit amount to whole units.

    Args:
        atomic_amount: Integer amount in atomic units (int or digit string).
        decimals: Decimal precision of the asset.

    Returns:
        Exact Decimal amount in whole units.
    """
    if decimals < 0:
        raise ArgumentError(f"Decimals must not be negative: {decimals}")
    try:
        value = Decimal(atomic_amount)
    except (InvalidOperation, TypeError, ValueError):
        raise ArgumentError(f"Invalid atomic amount: {atomic_amount!r}")
    if not value:
        return Decimal(0)

    with localcontext() as ctx:
        ctx.prec = _context_precision(value, decimals)
        return value.scaleb(-decimals)


def format_atomic(atomic_amount: int) -> str:
    """Render an atomic amount as a plain base-10 digit string for the wire."""
    return str(int(atomic_amount))


class AmountNormalizer:
    """
    Converts amounts for known assets and resolves denomination aliases.

    Decimal precision comes from the built-in table or from assets
    registered at runtime (typically loaded from the platform API).

    Example:
        normalizer = AmountNormalizer()
        normalizer.to_atomic_units("eth", "0.5")    # 500000000000000000
        normalizer.resolve_primary_asset_id("gwei")  # "eth"
    """

    def __init__(self, decimals: Optional[Dict[str, int]] = None):
        self._decimals: Dict[str, int] = dict(ASSET_DECIMALS)
        if decimals:
            self._decimals.update({k.lower(): v for k, v in decimals.items()})

    def register(self, asset) -> None:
        """Record the decimal precision of an Asset."""
        self._decimals[asset.asset_id.lower()] = asset.decimals

    def decimals_for(self, asset) -> int:
        """
        Resolve decimal precision for an Asset or an asset id string.

        Raises:
            UnsupportedAssetError: If no precision is known.
        """
        if hasattr(asset, "decimals"):
            return asset.decimals

        asset_id = str(asset).lower()
        if asset_id not in self._decimals:
            raise UnsupportedAssetError(asset_id)
        return self._decimals[asset_id]

    @staticmethod
    def resolve_primary_asset_id(asset_id: str) -> str:
        """Map a sub-unit alias to its primary asset id; others pass through."""
        normalized = asset_id.lower()
        return PRIMARY_DENOMINATIONS.get(normalized, normalized)

    def to_atomic_units(self, asset, whole_amount: Amount) -> int:
        return to_atomic_units(whole_amount, self.decimals_for(asset))

    def from_atomic_units(self, asset, atomic_amount) -> Decimal:
        return from_atomic_units(atomic_amount, self.decimals_for(asset))

    def to_wire_amount(self, asset, whole_amount: Amount) -> str:
        """Atomic amount as the digit string sent in API requests."""
        return format_atomic(self.to_atomic_units(asset, whole_amount))
