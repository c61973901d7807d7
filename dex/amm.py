"""
dex/amm.py - Constant-product AMM price model.

Local estimates only. The invariant itself is enforced on-chain; here
reserve_x * reserve_y is assumed constant between refreshes.

PRICE CONTRACT:
- mid_price() is quote-per-base with base = token_x, adjusted for decimals
- price_of(pool, base) flips to token_y as base when asked
- an empty pool has no price (None), never zero
"""

from decimal import Decimal
from math import isqrt
from typing import Optional

from core.constants import BPS_DENOMINATOR
from core.exceptions import ErrorCode, RoutingError, ValidationError
from core.math import human_decimal, parse_amount, parse_raw
from core.models import PoolSnapshot


def mid_price(pool: PoolSnapshot) -> Optional[Decimal]:
    """
    Price of token_x in token_y (human units).

    Example:
        reserve_x=1_000_000, reserve_y=1_045_000, equal decimals -> 1.045
    """
    if pool.is_empty:
        return None
    x = human_decimal(pool.reserve_x, pool.decimals_x)
    y = human_decimal(pool.reserve_y, pool.decimals_y)
    return y / x


def price_of(pool: PoolSnapshot, base: str) -> Optional[Decimal]:
    """Price of `base` expressed in the other pool token."""
    if base not in (pool.token_x, pool.token_y):
        raise ValidationError(
            f"{base} is not a token of pool {pool.key.pair_key}",
            details={"base": base, "pool": pool.key.pair_key},
            code=ErrorCode.UNKNOWN_TOKEN,
        )
    price = mid_price(pool)
    if price is None:
        return None
    if base == pool.token_x:
        return price
    return Decimal(1) / price


def quote_exact_in(pool: PoolSnapshot, amount_in_raw: int, x_to_y: bool) -> int:
    """
    Expected raw output for an exact-input swap, fee taken from input.

    out = r_out * in_after_fee // (r_in + in_after_fee)
    """
    amount_in = parse_raw(amount_in_raw, field="amount_in_raw")
    if pool.is_empty:
        raise RoutingError(
            ErrorCode.INSUFFICIENT_LIQUIDITY,
            "Pool has no liquidity",
            {"pool": pool.key.pair_key, "fee_tier": pool.fee_tier},
        )

    reserve_in, reserve_out = (
        (pool.reserve_x, pool.reserve_y) if x_to_y else (pool.reserve_y, pool.reserve_x)
    )
    in_after_fee = amount_in * (BPS_DENOMINATOR - pool.fee_tier) // BPS_DENOMINATOR
    if in_after_fee == 0:
        return 0
    return reserve_out * in_after_fee // (reserve_in + in_after_fee)


def price_impact_percent(pool: PoolSnapshot, amount_in_raw: int, x_to_y: bool) -> Optional[Decimal]:
    """
    Percent difference between the pool mid price and the execution price
    of a swap of amount_in_raw (fee excluded).
    """
    amount_in = parse_raw(amount_in_raw, field="amount_in_raw")
    if pool.is_empty or amount_in == 0:
        return None

    reserve_in, reserve_out = (
        (pool.reserve_x, pool.reserve_y) if x_to_y else (pool.reserve_y, pool.reserve_x)
    )
    spot = Decimal(reserve_out) / Decimal(reserve_in)
    out_no_fee = Decimal(reserve_out * amount_in) / Decimal(reserve_in + amount_in)
    execution = out_no_fee / Decimal(amount_in)
    return (spot - execution) / spot * 100


def expected_liquidity(amount_x_raw: int, amount_y_raw: int) -> int:
    """LP tokens expected for a deposit: floor(sqrt(x * y))."""
    x = parse_raw(amount_x_raw, field="amount_x_raw")
    y = parse_raw(amount_y_raw, field="amount_y_raw")
    return isqrt(x * y)


def liquidity_to_remove(liquidity: int, percent) -> int:
    """
    LP tokens to burn for a partial removal.

    Example:
        liquidity_to_remove(1000, 25) -> 250
    """
    total = parse_raw(liquidity, field="liquidity")
    pct = parse_amount(percent, field="percent")
    if pct > 100:
        raise ValidationError(
            f"percent must be at most 100, got {pct}",
            details={"percent": str(pct)},
            code=ErrorCode.INVALID_AMOUNT,
        )
    return int(Decimal(total) * pct / 100)
