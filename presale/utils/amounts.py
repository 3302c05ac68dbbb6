from decimal import Decimal, ROUND_DOWN

from presale.conf import settings


def to_base_units(value: Decimal | int | str, decimals: int | None = None) -> int:
    """Convert a human amount ("0.1") into integer base units.

    Raises ValueError if the amount has more precision than `decimals` allows.
    """
    if decimals is None:
        decimals = settings.COLLATERAL_DECIMALS
    scaled = Decimal(value).scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{value} has more than {decimals} decimal places")
    return int(scaled)


def from_base_units(amount: int, decimals: int | None = None) -> Decimal:
    """Convert integer base units back into a human amount, truncating."""
    if decimals is None:
        decimals = settings.COLLATERAL_DECIMALS
    quantum = Decimal(1).scaleb(-decimals)
    return Decimal(amount).scaleb(-decimals).quantize(quantum, rounding=ROUND_DOWN)
