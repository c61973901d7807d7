"""
strategy/arbitrage.py - Cross-venue (AMM vs CLOB) opportunity engine.

Compares the AMM mid price with the CLOB mid price for the same pair,
explains the gap (margin, direction, size, profit) and ranks the results.
Turning an opportunity into a transaction is routing's job.

CONTRACTS:
- margin_pct = |clob_mid - amm_mid| / amm_mid * 100
- direction = buy-amm-sell-clob if amm_mid < clob_mid, else buy-clob-sell-amm
- recommended_amount = min(notional_cap / amm_mid, shallow level-1 size),
  floored to the base token's raw precision
- profit_potential = recommended_amount * |clob_mid - amm_mid|
- ranking: profit_potential descending, ties keep input order
- pairs without a two-sided book or a priced pool are skipped, not errors
- identical input and stamp -> identical output (no randomness in ranking);
  without an explicit stamp results are stamped with the current time
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from core.constants import (
    ARBITRAGE_REFRESH_SECONDS,
    DEFAULT_MIN_MARGIN_PCT,
    DEFAULT_NOTIONAL_CAP,
    MARGIN_BAND_HIGH_PCT,
    MARGIN_BAND_MEDIUM_PCT,
    ArbitrageDirection,
    MarginBand,
)
from core.logging import get_logger
from core.math import human_decimal, to_human_units, to_raw_units
from core.models import ArbitrageOpportunity, OrderBookSnapshot, PoolSnapshot
from core.time import is_fresh, now_ms
from dex import orderbook
from dex.venue import AmmVenue, ClobVenue

logger = get_logger(__name__)


@dataclass(frozen=True)
class MarketPair:
    """AMM pool and CLOB book for the same base/quote pair."""
    pool: Optional[PoolSnapshot]
    book: Optional[OrderBookSnapshot]
    label: str = ""

    @property
    def pair(self) -> str:
        if self.label:
            return self.label
        if self.book is not None:
            return self.book.pair_key
        if self.pool is not None:
            return self.pool.key.pair_key
        return ""


PairInput = Union[MarketPair, Tuple[Optional[PoolSnapshot], Optional[OrderBookSnapshot]]]


@dataclass(frozen=True)
class OpportunityStats:
    count: int
    total_profit: Decimal
    average_margin_pct: Decimal
    best: Optional[ArbitrageOpportunity]

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "total_profit": str(self.total_profit),
            "average_margin_pct": str(self.average_margin_pct),
            "best": self.best.to_dict() if self.best else None,
        }


# =============================================================================
# PRIMITIVES
# =============================================================================

def compute_margin(amm_price: Decimal, clob_price: Decimal) -> Decimal:
    """
    Percent gap between venues, relative to the AMM price.

    Example:
        compute_margin(Decimal("12.45"), Decimal("12.475")) -> ~0.2008
    """
    if amm_price <= 0:
        return Decimal("0")
    return abs(clob_price - amm_price) / amm_price * 100


def arbitrage_direction(amm_price: Decimal, clob_price: Decimal) -> ArbitrageDirection:
    if amm_price < clob_price:
        return ArbitrageDirection.BUY_AMM_SELL_CLOB
    return ArbitrageDirection.BUY_CLOB_SELL_AMM


def recommend_amount(
    amm_price: Decimal,
    book: OrderBookSnapshot,
    notional_cap: Decimal = DEFAULT_NOTIONAL_CAP,
) -> Decimal:
    """
    Base-token size bounded by the notional cap and by the thinner side
    of the book at level 1.
    """
    bid, ask = orderbook.best_bid(book), orderbook.best_ask(book)
    if bid is None or ask is None or amm_price <= 0:
        return Decimal("0")

    shallow = human_decimal(min(bid.size_raw, ask.size_raw), book.base_decimals)
    capped = notional_cap / amm_price
    amount = min(capped, shallow)

    # Floor to what the base token can represent on-chain
    return Decimal(to_human_units(to_raw_units(amount, book.base_decimals), book.base_decimals))


def margin_band(margin_pct: Decimal) -> MarginBand:
    """Display band: > 0.1% high, > 0.05% medium, otherwise low."""
    if margin_pct > MARGIN_BAND_HIGH_PCT:
        return MarginBand.HIGH
    if margin_pct > MARGIN_BAND_MEDIUM_PCT:
        return MarginBand.MEDIUM
    return MarginBand.LOW


# =============================================================================
# DETECTION
# =============================================================================

def _as_pair(item: PairInput) -> MarketPair:
    if isinstance(item, MarketPair):
        return item
    pool, book = item
    return MarketPair(pool=pool, book=book)


def evaluate_pair(
    pair: MarketPair,
    notional_cap: Decimal = DEFAULT_NOTIONAL_CAP,
    min_margin_pct: Decimal = DEFAULT_MIN_MARGIN_PCT,
    detected_at_ms: Optional[int] = None,
) -> Optional[ArbitrageOpportunity]:
    """Opportunity for one pair, or None when there is nothing actionable."""
    pool, book = pair.pool, pair.book
    if pool is None or book is None:
        return None

    if {book.base, book.quote} != {pool.token_x, pool.token_y}:
        logger.warning(
            "Pool and book are for different pairs",
            extra={"context": {"pool": pool.key.pair_key, "book": book.pair_key}},
        )
        return None

    amm_price = AmmVenue(pool=pool, base=book.base).mid_price()
    clob_price = ClobVenue(book=book).mid_price()
    if amm_price is None or clob_price is None:
        return None

    margin = compute_margin(amm_price, clob_price)
    if margin <= 0 or margin <= min_margin_pct:
        return None

    amount = recommend_amount(amm_price, book, notional_cap)
    if amount <= 0:
        return None

    return ArbitrageOpportunity(
        pair=pair.pair,
        base=book.base,
        quote=book.quote,
        fee_tier=pool.fee_tier,
        amm_price=amm_price,
        clob_price=clob_price,
        margin_pct=margin,
        direction=arbitrage_direction(amm_price, clob_price),
        recommended_amount=amount,
        profit_potential=amount * abs(clob_price - amm_price),
        detected_at_ms=now_ms() if detected_at_ms is None else detected_at_ms,
    )


def rank_opportunities(opportunities: Iterable[ArbitrageOpportunity]) -> List[ArbitrageOpportunity]:
    """Profit descending; sorted() is stable so ties keep input order."""
    return sorted(opportunities, key=lambda opp: opp.profit_potential, reverse=True)


def detect_opportunities(
    pairs: Sequence[PairInput],
    notional_cap: Decimal = DEFAULT_NOTIONAL_CAP,
    min_margin_pct: Decimal = DEFAULT_MIN_MARGIN_PCT,
    detected_at_ms: Optional[int] = None,
) -> List[ArbitrageOpportunity]:
    """
    Evaluate every (pool, book) pair and return the ranked opportunities.

    Args:
        pairs: MarketPair items or (PoolSnapshot, OrderBookSnapshot) tuples
        notional_cap: Max trade notional in quote units
        min_margin_pct: Opportunities at or below this margin are dropped
        detected_at_ms: Stamp written on every result (defaults to now)

    Returns:
        Opportunities sorted by profit_potential descending
    """
    stamp = now_ms() if detected_at_ms is None else detected_at_ms
    found = []
    for item in pairs:
        opp = evaluate_pair(_as_pair(item), notional_cap, min_margin_pct, stamp)
        if opp is not None:
            found.append(opp)

    ranked = rank_opportunities(found)
    logger.debug(
        "Opportunities ranked",
        extra={"context": {"pairs": len(pairs), "found": len(ranked)}},
    )
    return ranked


def best_opportunity(opportunities: Sequence[ArbitrageOpportunity]) -> Optional[ArbitrageOpportunity]:
    """Head of a ranked sequence, or None."""
    return opportunities[0] if opportunities else None


def summarize_opportunities(opportunities: Sequence[ArbitrageOpportunity]) -> OpportunityStats:
    if not opportunities:
        return OpportunityStats(
            count=0,
            total_profit=Decimal("0"),
            average_margin_pct=Decimal("0"),
            best=None,
        )

    total_profit = sum((opp.profit_potential for opp in opportunities), Decimal("0"))
    total_margin = sum((opp.margin_pct for opp in opportunities), Decimal("0"))
    best = max(opportunities, key=lambda opp: opp.profit_potential)
    return OpportunityStats(
        count=len(opportunities),
        total_profit=total_profit,
        average_margin_pct=total_margin / len(opportunities),
        best=best,
    )


# =============================================================================
# BOARD (last ranking + staleness)
# =============================================================================

@dataclass(frozen=True)
class OpportunityBoard:
    """
    Last ranked result and when it was computed.

    Past max_age_ms the ranking is stale: readers get nothing and must
    wait for the next refresh. Updates return a new board.
    """
    opportunities: Tuple[ArbitrageOpportunity, ...] = ()
    computed_at_ms: Optional[int] = None
    max_age_ms: int = int(ARBITRAGE_REFRESH_SECONDS * 1000)

    def is_stale(self, current_ms: Optional[int] = None) -> bool:
        if self.computed_at_ms is None:
            return True
        return not is_fresh(self.computed_at_ms, self.max_age_ms, current_ms)

    def current(self, current_ms: Optional[int] = None) -> Tuple[ArbitrageOpportunity, ...]:
        if self.is_stale(current_ms):
            return ()
        return self.opportunities

    def best(self, current_ms: Optional[int] = None) -> Optional[ArbitrageOpportunity]:
        return best_opportunity(self.current(current_ms))

    def updated(
        self,
        opportunities: Sequence[ArbitrageOpportunity],
        computed_at_ms: Optional[int] = None,
    ) -> "OpportunityBoard":
        stamp = now_ms() if computed_at_ms is None else computed_at_ms
        return replace(
            self,
            opportunities=tuple(rank_opportunities(opportunities)),
            computed_at_ms=stamp,
        )

    def without(self, opportunity_id: str) -> "OpportunityBoard":
        """Board with an executed opportunity removed."""
        remaining = tuple(opp for opp in self.opportunities if opp.id != opportunity_id)
        return replace(self, opportunities=remaining)
