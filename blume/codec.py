"""
Decimal codec

Converts between human entered decimal strings and the integer base units used by the ledger.
Conversions are exact - floating point is never used.

>>> to_base_units("1.5", 18)
1500000000000000000
>>> to_display(1500000000000000000, 18)
'1.5'
"""

import re
from typing import Protocol

from blume.errors import InvalidAmount

_DECIMAL_LITERAL = re.compile(r"^(?P<whole>[0-9]*)(?:\.(?P<fraction>[0-9]*))?$")


class HasDecimals(Protocol):
    decimals: int


def _decimals(asset: HasDecimals | int) -> int:
    decimals = asset if isinstance(asset, int) else asset.decimals
    if decimals < 0:
        raise ValueError(f"decimals must not be negative: {decimals}")
    return decimals


def to_base_units(display: str, asset: HasDecimals | int) -> int:
    """
    Converts a display amount to base units.

    :param display: non-negative decimal literal, e.g., '12', '0.5', '.5', '3.'
    :param asset: asset, or the asset's number of fractional digits
    :raises InvalidAmount: if `display` is not a non-negative decimal literal, or has more fractional digits than the
                           asset supports
    """
    decimals = _decimals(asset)
    if not isinstance(display, str):
        raise InvalidAmount(f"amount must be a string: {display!r}")

    match = _DECIMAL_LITERAL.match(display.strip())
    if match is None:
        raise InvalidAmount(f"invalid amount: {display!r}")

    whole = match.group("whole")
    fraction = match.group("fraction") or ""
    if not whole and not fraction:
        raise InvalidAmount(f"invalid amount: {display!r}")
    if len(fraction) > decimals:
        raise InvalidAmount(
            f"amount has more than {decimals} fractional digits: {display!r}"
        )

    return int(whole or "0") * 10**decimals + int(fraction.ljust(decimals, "0") or "0")


def to_display(base_units: int, asset: HasDecimals | int) -> str:
    """
    Converts base units to the display amount. Trailing fractional zeros are dropped.

    :raises ValueError: if base_units is negative
    """
    decimals = _decimals(asset)
    if base_units < 0:
        raise ValueError(f"base units must not be negative: {base_units}")

    whole, fraction = divmod(int(base_units), 10**decimals)
    if fraction == 0:
        return str(whole)
    return f"{whole}.{str(fraction).rjust(decimals, '0').rstrip('0')}"


def format_amount(base_units: int, asset: HasDecimals | int, places: int = 4) -> str:
    """
    Fixed place rendering used for summary figures, e.g., 1.23456 -> '1.2345'.
    Digits beyond `places` are truncated.
    """
    decimals = _decimals(asset)
    if base_units < 0:
        raise ValueError(f"base units must not be negative: {base_units}")

    whole, fraction = divmod(int(base_units), 10**decimals)
    if places == 0:
        return str(whole)
    digits = str(fraction).rjust(decimals, "0")[:places].ljust(places, "0")
    return f"{whole}.{digits}"
