"""
Unit conversion between human-readable decimals and base units.

The ledger only ever sees integers; these helpers exist for the CLI and
any presentation layer that accepts "196.4" and means 196.4 * 10**18.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

DEFAULT_DECIMALS = 18


def parse_units(value: Union[str, int], decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Convert a decimal string to an integer amount of base units.

    Args:
        value: Decimal string ("1.5") or int (whole units)
        decimals: Number of decimal places in one whole unit

    Returns:
        Amount in base units

    Raises:
        ValueError: If the value is malformed, negative, or has more
            fractional digits than ``decimals`` allows
    """
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")

    if not number.is_finite() or number < 0:
        raise ValueError(f"Invalid amount: {value!r}")

    scaled = number.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Too many decimal places in {value!r} (max {decimals})")

    return int(scaled)


def format_units(amount: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """
    Convert base units to a decimal string without trailing zeros.

    >>> format_units(196_400_000_000_000_000_000)
    '196.4'
    """
    if decimals == 0:
        return str(amount)

    sign = "-" if amount < 0 else ""
    whole, frac = divmod(abs(amount), 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0")
    if frac_str:
        return f"{sign}{whole}.{frac_str}"
    return f"{sign}{whole}"
