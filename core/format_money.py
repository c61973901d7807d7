# PATH: core/format_money.py
"""
Safe money formatting utilities for DUET.

No float money: all values are str or Decimal. Formatting never raises
on valid numeric input.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Union

MoneyLike = Union[str, Decimal, int, float, None]


def _to_decimal(value: MoneyLike) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        # bool is a subclass of int
        return Decimal(1 if value else 0)
    if isinstance(value, str):
        if not value.strip():
            return Decimal("0")
        return Decimal(value.strip())
    return Decimal(str(value))


def format_money(value: MoneyLike, decimals: int = 6) -> str:
    """
    Format a money value with a fixed number of decimal places.

    Uses ROUND_HALF_UP. Unparseable input formats as zero.

    Example:
        >>> format_money("123.45")
        '123.450000'
        >>> format_money(None, 2)
        '0.00'
    """
    zero = f"0.{'0' * decimals}" if decimals > 0 else "0"
    try:
        dec_value = _to_decimal(value)
        if not dec_value.is_finite():
            return zero
        with localcontext() as ctx:
            ctx.prec = 60
            quantum = Decimal(1).scaleb(-decimals)
            rounded = dec_value.quantize(quantum, rounding=ROUND_HALF_UP)
        return f"{rounded:.{decimals}f}"
    except (InvalidOperation, ValueError, TypeError):
        return zero


def format_price(value: MoneyLike) -> str:
    """
    Format a price with precision by magnitude.

    < 0.01 -> 6 decimals, < 1 -> 4 decimals, otherwise 2 decimals.
    """
    try:
        dec_value = _to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return format_money(None, 2)
    if not dec_value.is_finite():
        return format_money(None, 2)

    magnitude = abs(dec_value)
    if magnitude < Decimal("0.01"):
        return format_money(dec_value, 6)
    if magnitude < 1:
        return format_money(dec_value, 4)
    return format_money(dec_value, 2)


def format_pct(value: MoneyLike, decimals: int = 4) -> str:
    """Percentage value, 4 decimals by default (0.2008 -> '0.2008')."""
    return format_money(value, decimals=decimals)


def format_signed_pct(value: MoneyLike, decimals: int = 2) -> str:
    """Percentage with explicit sign ('+1.25' / '-0.40')."""
    text = format_money(value, decimals=decimals)
    if text.startswith("-"):
        return text
    return f"+{text}"
