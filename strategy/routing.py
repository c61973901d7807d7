"""
strategy/routing.py - Swap route selection.

Modes:
  amm-direct          amm::swap_exact_in on one pool
  router-single-hop   router::swap_exact_input_single on one pool
  router-multi-hop    router::swap_exact_input_multihop via an intermediate token
  split-execution     router::split_order_execution, CLOB level 1 first, AMM the rest

DIRECTION CONTRACT (applies to every single-pool mode):
  Pool identity is the lexicographically sorted pair (token_x < token_y).
  x_to_y is True exactly when token_in is token_x. Selecting the same two
  tokens in the opposite order yields the same pool and the inverted flag.
  Multi-hop routes carry the first hop (token_in -> intermediate) here.

MIN-OUT CONTRACT:
  Every route carries min_amount_out_raw derived from an off-chain
  estimate and a slippage tolerance. No estimate (or a zero estimate)
  means no route: RoutingError(NO_QUOTE) instead of a zero-guard trade.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR
from typing import Optional, Tuple, Union

from core.constants import (
    DEFAULT_SLIPPAGE_PCT,
    ArbitrageDirection,
    OrderSide,
    RouteMode,
)
from core.exceptions import ErrorCode, RoutingError, ValidationError
from core.logging import get_logger
from core.math import apply_slippage, human_decimal, parse_raw, scale_price, to_raw_units
from core.models import ArbitrageOpportunity, OrderBookSnapshot, PoolKey, PoolSnapshot
from core.validators import validate_distinct_tokens, validate_fee_tier, validate_token_id
from dex import amm, orderbook

logger = get_logger(__name__)


@dataclass(frozen=True)
class SplitPlan:
    """How a split order divides between CLOB level 1 and the AMM."""
    amm_portion_raw: int
    clob_portion_raw: int
    clob_side: OrderSide
    clob_price_raw: int
    expected_out_raw: int

    @property
    def total_raw(self) -> int:
        return self.amm_portion_raw + self.clob_portion_raw


@dataclass(frozen=True)
class RouteDescriptor:
    """Everything the payload builder needs for one swap."""
    mode: RouteMode
    token_in: str
    token_out: str
    token_x: str
    token_y: str
    x_to_y: bool
    fee_tier: int
    amount_in_raw: int
    expected_out_raw: int
    min_amount_out_raw: int
    intermediate: Optional[str] = None
    fee_tier_2: Optional[int] = None
    split: Optional[SplitPlan] = None

    @property
    def pool_key(self) -> PoolKey:
        return PoolKey(token_x=self.token_x, token_y=self.token_y, fee_tier=self.fee_tier)

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "token_in": self.token_in,
            "token_out": self.token_out,
            "token_x": self.token_x,
            "token_y": self.token_y,
            "x_to_y": self.x_to_y,
            "fee_tier": self.fee_tier,
            "amount_in_raw": str(self.amount_in_raw),
            "expected_out_raw": str(self.expected_out_raw),
            "min_amount_out_raw": str(self.min_amount_out_raw),
            "intermediate": self.intermediate,
            "fee_tier_2": self.fee_tier_2,
        }


@dataclass(frozen=True)
class ArbitrageLeg:
    """Raw, scaled arguments for router::arbitrage_amm_clob."""
    token_x: str
    token_y: str
    amm_fee_tier: int
    clob_side: OrderSide
    clob_price_raw: int
    amount_raw: int


# =============================================================================
# ORDERING AND GUARDS
# =============================================================================

def canonical_order(token_in: str, token_out: str) -> Tuple[str, str, bool]:
    """
    Canonical pool tokens and the direction flag for a swap.

    Example:
        canonical_order("0xBBB", "0xAAA") -> ("0xAAA", "0xBBB", False)
        canonical_order("0xAAA", "0xBBB") -> ("0xAAA", "0xBBB", True)
    """
    validate_distinct_tokens(token_in, token_out)
    if token_in < token_out:
        return token_in, token_out, True
    return token_out, token_in, False


def min_amount_out(
    expected_out_raw: Optional[int],
    slippage_pct: Union[str, Decimal] = DEFAULT_SLIPPAGE_PCT,
) -> int:
    """Slippage-guarded minimum output. Refuses without a usable quote."""
    if expected_out_raw is None or expected_out_raw <= 0:
        raise RoutingError(
            ErrorCode.NO_QUOTE,
            "No quote estimate available; refusing to build a route",
            {"expected_out_raw": expected_out_raw},
        )
    return apply_slippage(expected_out_raw, slippage_pct)


def _require_positive(amount_raw: int, field: str) -> int:
    amount = parse_raw(amount_raw, field=field)
    if amount == 0:
        raise ValidationError(
            f"{field} must be positive",
            details={"field": field},
            code=ErrorCode.INVALID_AMOUNT,
        )
    return amount


def _require_pool(pool: PoolSnapshot, token_in: str, token_out: str) -> None:
    if {token_in, token_out} != {pool.token_x, pool.token_y}:
        raise RoutingError(
            ErrorCode.ROUTE_UNSUPPORTED,
            "Pool does not trade the requested pair",
            {"pool": pool.key.pair_key, "token_in": token_in, "token_out": token_out},
        )


# =============================================================================
# OFF-CHAIN ESTIMATES
# =============================================================================

def estimate_single(pool: PoolSnapshot, token_in: str, token_out: str, amount_in_raw: int) -> int:
    """Constant-product estimate for a one-pool swap."""
    _require_pool(pool, token_in, token_out)
    _, _, x_to_y = canonical_order(token_in, token_out)
    return amm.quote_exact_in(pool, amount_in_raw, x_to_y)


def estimate_multihop(
    first: PoolSnapshot,
    second: PoolSnapshot,
    token_in: str,
    intermediate: str,
    token_out: str,
    amount_in_raw: int,
) -> int:
    mid_out = estimate_single(first, token_in, intermediate, amount_in_raw)
    return estimate_single(second, intermediate, token_out, mid_out)


def plan_split(
    pool: PoolSnapshot,
    book: OrderBookSnapshot,
    token_in: str,
    amount_in_raw: int,
) -> SplitPlan:
    """
    Fill what CLOB level 1 can absorb, send the rest to the AMM.

    Selling base hits the best bid; spending quote lifts the best ask.
    """
    amount_in = _require_positive(amount_in_raw, "amount_in_raw")
    if {book.base, book.quote} != {pool.token_x, pool.token_y}:
        raise RoutingError(
            ErrorCode.ROUTE_UNSUPPORTED,
            "Pool and book are for different pairs",
            {"pool": pool.key.pair_key, "book": book.pair_key},
        )
    if token_in not in (book.base, book.quote):
        raise RoutingError(
            ErrorCode.ROUTE_UNSUPPORTED,
            "token_in is not part of the market",
            {"token_in": token_in, "book": book.pair_key},
        )

    base_decimals = book.base_decimals
    quote_decimals = pool.decimals_x if book.quote == pool.token_x else pool.decimals_y
    selling_base = token_in == book.base
    token_out = book.quote if selling_base else book.base

    level = orderbook.best_bid(book) if selling_base else orderbook.best_ask(book)
    if level is None or level.price_raw == 0:
        clob_portion = 0
        clob_out = 0
        clob_price_raw = 0
    else:
        clob_price_raw = level.price_raw
        if selling_base:
            clob_portion = min(amount_in, level.size_raw)
            clob_out_human = human_decimal(clob_portion, base_decimals) * level.price
            clob_out = int(to_raw_units(clob_out_human, quote_decimals))
        else:
            # Quote needed to take the whole level, in quote raw units
            level_cost = human_decimal(level.size_raw, base_decimals) * level.price
            capacity = int(to_raw_units(level_cost, quote_decimals))
            clob_portion = min(amount_in, capacity)
            spent_human = human_decimal(clob_portion, quote_decimals)
            bought = (spent_human / level.price).quantize(Decimal(1).scaleb(-base_decimals), rounding=ROUND_FLOOR)
            clob_out = int(to_raw_units(bought, base_decimals))

    amm_portion = amount_in - clob_portion
    amm_out = estimate_single(pool, token_in, token_out, amm_portion) if amm_portion else 0

    return SplitPlan(
        amm_portion_raw=amm_portion,
        clob_portion_raw=clob_portion,
        clob_side=OrderSide.SELL if selling_base else OrderSide.BUY,
        clob_price_raw=clob_price_raw,
        expected_out_raw=clob_out + amm_out,
    )


# =============================================================================
# ROUTE SELECTION
# =============================================================================

def choose_route(
    token_in: str,
    token_out: str,
    fee_tier: int,
    amount_in_raw: int,
    mode: Union[str, RouteMode],
    expected_out_raw: Optional[int] = None,
    slippage_pct: Union[str, Decimal] = DEFAULT_SLIPPAGE_PCT,
    intermediate: Optional[str] = None,
    fee_tier_2: Optional[int] = None,
    split: Optional[SplitPlan] = None,
) -> RouteDescriptor:
    """
    Build the route descriptor for a swap request.

    Args:
        token_in / token_out: On-chain identifiers in the user's order
        fee_tier: Pool fee tier (first hop for multi-hop)
        amount_in_raw: Input in raw units (already scaled)
        mode: One of RouteMode
        expected_out_raw: Off-chain estimate; split mode falls back to the plan
        slippage_pct: Tolerance used for min_amount_out_raw
        intermediate / fee_tier_2: Multi-hop only
        split: Split-execution only (see plan_split)

    Raises:
        ValidationError: bad tokens, fee tier or amount
        RoutingError: unknown mode, missing hop/split data, or no quote
    """
    try:
        route_mode = RouteMode(mode)
    except ValueError:
        raise RoutingError(
            ErrorCode.ROUTE_UNSUPPORTED,
            f"Unknown route mode: {mode!r}",
            {"mode": str(mode), "allowed": [m.value for m in RouteMode]},
        )

    validate_token_id(token_in, field="token_in")
    validate_token_id(token_out, field="token_out")
    fee_tier = validate_fee_tier(fee_tier)
    amount_in = _require_positive(amount_in_raw, "amount_in_raw")
    token_x, token_y, x_to_y = canonical_order(token_in, token_out)

    second_tier: Optional[int] = None
    if route_mode == RouteMode.ROUTER_MULTI_HOP:
        if intermediate is None:
            raise RoutingError(
                ErrorCode.ROUTE_UNSUPPORTED,
                "Multi-hop route needs an intermediate token",
                {"token_in": token_in, "token_out": token_out},
            )
        validate_token_id(intermediate, field="intermediate")
        validate_distinct_tokens(token_in, intermediate)
        validate_distinct_tokens(intermediate, token_out)
        second_tier = validate_fee_tier(fee_tier if fee_tier_2 is None else fee_tier_2)
        # pool_key names the first hop; there is no token_in/token_out pool
        token_x, token_y, x_to_y = canonical_order(token_in, intermediate)

    if route_mode == RouteMode.SPLIT_EXECUTION:
        if split is None:
            raise RoutingError(
                ErrorCode.ROUTE_UNSUPPORTED,
                "Split execution needs a split plan",
                {"token_in": token_in, "token_out": token_out},
            )
        if split.total_raw != amount_in:
            raise RoutingError(
                ErrorCode.ROUTE_UNSUPPORTED,
                "Split plan does not cover the requested amount",
                {"amount_in_raw": amount_in, "split_total_raw": split.total_raw},
            )
        if expected_out_raw is None:
            expected_out_raw = split.expected_out_raw

    minimum = min_amount_out(expected_out_raw, slippage_pct)

    route = RouteDescriptor(
        mode=route_mode,
        token_in=token_in,
        token_out=token_out,
        token_x=token_x,
        token_y=token_y,
        x_to_y=x_to_y,
        fee_tier=fee_tier,
        amount_in_raw=amount_in,
        expected_out_raw=int(expected_out_raw),
        min_amount_out_raw=minimum,
        intermediate=intermediate if route_mode == RouteMode.ROUTER_MULTI_HOP else None,
        fee_tier_2=second_tier,
        split=split if route_mode == RouteMode.SPLIT_EXECUTION else None,
    )

    logger.info(
        f"Route chosen: {route_mode.value}",
        extra={"context": route.to_dict()},
    )
    return route


def arbitrage_leg(
    opportunity: ArbitrageOpportunity,
    base_decimals: int,
    amm_fee_tier: Optional[int] = None,
) -> ArbitrageLeg:
    """
    Raw arguments for executing an opportunity through the router.

    Buying on the AMM means selling on the CLOB and vice versa. The CLOB
    price is scaled with PRICE_MULTIPLIER and the amount goes through the
    unit scaler; nothing human-scaled leaves this function.

    router::arbitrage_amm_clob reads [token_x, token_y] both as the AMM
    pool and as the CLOB base/quote market, so only markets whose base
    sorts before the quote can be executed (POOL_NOT_CANONICAL otherwise).
    """
    token_x, token_y, base_is_x = canonical_order(opportunity.base, opportunity.quote)
    if not base_is_x:
        raise RoutingError(
            ErrorCode.POOL_NOT_CANONICAL,
            "Market base sorts after its quote; the router cannot address this pool",
            {"opportunity": opportunity.id, "base": opportunity.base, "quote": opportunity.quote},
        )

    side = (
        OrderSide.SELL
        if opportunity.direction == ArbitrageDirection.BUY_AMM_SELL_CLOB
        else OrderSide.BUY
    )
    amount_raw = int(to_raw_units(opportunity.recommended_amount, base_decimals))
    if amount_raw == 0:
        raise ValidationError(
            "Recommended amount rounds to zero raw units",
            details={"opportunity": opportunity.id},
            code=ErrorCode.INVALID_AMOUNT,
        )

    return ArbitrageLeg(
        token_x=token_x,
        token_y=token_y,
        amm_fee_tier=validate_fee_tier(opportunity.fee_tier if amm_fee_tier is None else amm_fee_tier),
        clob_side=side,
        clob_price_raw=scale_price(opportunity.clob_price),
        amount_raw=amount_raw,
    )
