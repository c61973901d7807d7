# PATH: core/math.py
"""
Unit scaling for DUET.

Bridges human-readable amounts and raw on-chain integer units.

CONTRACTS:
- to_raw_units(): floors fractional raw units (never over-spends)
- to_human_units(): exact, fixed-point string
- scale_price(): floor(price * PRICE_MULTIPLIER)
- Invalid input raises ValidationError(INVALID_AMOUNT); nothing is
  silently clamped to zero except by the floor itself.

No float arithmetic: floats are accepted at the boundary only and go
through str() before becoming Decimal.
"""

from decimal import (
    Context,
    Decimal,
    InvalidOperation,
    ROUND_FLOOR,
    localcontext,
)
from typing import Union

from core.constants import BPS_DENOMINATOR, MAX_TOKEN_DECIMALS, PRICE_MULTIPLIER
from core.exceptions import ErrorCode, ValidationError

Numeric = Union[str, int, float, Decimal]

# Wide enough for 10^32 scaling of 40+ digit amounts without rounding
_SCALER_CONTEXT = Context(prec=96, rounding=ROUND_FLOOR)


def parse_amount(value: Numeric, field: str = "amount") -> Decimal:
    """
    Parse a human amount into a finite, non-negative Decimal.

    Raises:
        ValidationError(INVALID_AMOUNT): bool, non-numeric, NaN, infinite
        or negative input.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(
            f"{field} must be numeric, got {value!r}",
            details={"field": field, "value": repr(value)},
            code=ErrorCode.INVALID_AMOUNT,
        )

    try:
        if isinstance(value, Decimal):
            parsed = value
        elif isinstance(value, str):
            parsed = Decimal(value.strip())
        else:
            parsed = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(
            f"{field} is not a number: {value!r}",
            details={"field": field, "value": repr(value)},
            code=ErrorCode.INVALID_AMOUNT,
        )

    if not parsed.is_finite():
        raise ValidationError(
            f"{field} must be finite, got {value!r}",
            details={"field": field, "value": repr(value)},
            code=ErrorCode.INVALID_AMOUNT,
        )

    if parsed < 0:
        raise ValidationError(
            f"{field} must be non-negative, got {value!r}",
            details={"field": field, "value": repr(value)},
            code=ErrorCode.INVALID_AMOUNT,
        )

    return parsed


def parse_raw(value: Union[str, int], field: str = "raw_amount") -> int:
    """Parse a raw integer amount (int or decimal digit string)."""
    if isinstance(value, bool):
        raise ValidationError(
            f"{field} must be an integer, got {value!r}",
            details={"field": field},
            code=ErrorCode.INVALID_AMOUNT,
        )
    if isinstance(value, int):
        raw = value
    elif isinstance(value, str):
        try:
            raw = int(value.strip())
        except ValueError:
            raise ValidationError(
                f"{field} is not an integer: {value!r}",
                details={"field": field, "value": value},
                code=ErrorCode.INVALID_AMOUNT,
            )
    else:
        raise ValidationError(
            f"{field} must be int or str, got {type(value).__name__}",
            details={"field": field},
            code=ErrorCode.INVALID_AMOUNT,
        )

    if raw < 0:
        raise ValidationError(
            f"{field} must be non-negative, got {raw}",
            details={"field": field, "value": raw},
            code=ErrorCode.INVALID_AMOUNT,
        )
    return raw


def validate_decimals(decimals: int) -> int:
    """Token decimals must be a small non-negative integer."""
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise ValidationError(
            f"decimals must be an integer, got {decimals!r}",
            details={"decimals": repr(decimals)},
            code=ErrorCode.INVALID_DECIMALS,
        )
    if decimals < 0 or decimals > MAX_TOKEN_DECIMALS:
        raise ValidationError(
            f"decimals out of range [0, {MAX_TOKEN_DECIMALS}]: {decimals}",
            details={"decimals": decimals},
            code=ErrorCode.INVALID_DECIMALS,
        )
    return decimals


def to_raw_units(amount: Numeric, decimals: int) -> str:
    """
    Convert a human amount to raw on-chain units.

    Example:
        to_raw_units("1.5", 8) -> "150000000"
        to_raw_units("0.123456789", 6) -> "123456"  (floored)
    """
    value = parse_amount(amount)
    validate_decimals(decimals)

    with localcontext(_SCALER_CONTEXT):
        raw = value.scaleb(decimals).to_integral_value(rounding=ROUND_FLOOR)

    return str(int(raw))


def to_human_units(raw_amount: Union[str, int], decimals: int) -> str:
    """
    Convert raw on-chain units to a human decimal string.

    Example:
        to_human_units("150000000", 8) -> "1.50000000"
    """
    raw = parse_raw(raw_amount)
    validate_decimals(decimals)

    with localcontext(_SCALER_CONTEXT):
        value = Decimal(raw).scaleb(-decimals)

    return format(value, "f")


def human_decimal(raw_amount: Union[str, int], decimals: int) -> Decimal:
    """Raw units as a Decimal in human units."""
    return Decimal(to_human_units(raw_amount, decimals))


def scale_price(price: Numeric) -> int:
    """
    Scale a human price with the fixed 6-decimal multiplier.

    Example:
        scale_price("12.475") -> 12475000
    """
    value = parse_amount(price, field="price")
    with localcontext(_SCALER_CONTEXT):
        scaled = (value * PRICE_MULTIPLIER).to_integral_value(rounding=ROUND_FLOOR)
    return int(scaled)


def unscale_price(raw_price: Union[str, int]) -> Decimal:
    """Inverse of scale_price (exact)."""
    raw = parse_raw(raw_price, field="raw_price")
    with localcontext(_SCALER_CONTEXT):
        return Decimal(raw) / PRICE_MULTIPLIER


def validate_slippage(slippage_pct: Numeric) -> Decimal:
    """Slippage tolerance must lie in [0, 100)."""
    try:
        pct = parse_amount(slippage_pct, field="slippage_pct")
    except ValidationError as e:
        raise ValidationError(e.message, details=e.details, code=ErrorCode.INVALID_SLIPPAGE)
    if pct >= 100:
        raise ValidationError(
            f"slippage_pct must be below 100, got {pct}",
            details={"slippage_pct": str(pct)},
            code=ErrorCode.INVALID_SLIPPAGE,
        )
    return pct


def apply_slippage(amount_raw: int, slippage_pct: Numeric) -> int:
    """
    Minimum acceptable raw output after slippage.

    Example:
        apply_slippage(10_000, "0.5") -> 9950
    """
    raw = parse_raw(amount_raw)
    pct = validate_slippage(slippage_pct)
    with localcontext(_SCALER_CONTEXT):
        minimum = (Decimal(raw) * (100 - pct) / 100).to_integral_value(rounding=ROUND_FLOOR)
    return int(minimum)


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole * 100, or 0 when whole is zero."""
    if whole == 0:
        return Decimal("0")
    return part / whole * 100


def bps_to_fraction(bps: Union[int, Decimal]) -> Decimal:
    """Convert basis points to a fraction (5 bps -> 0.0005)."""
    return Decimal(bps) / Decimal(BPS_DENOMINATOR)
