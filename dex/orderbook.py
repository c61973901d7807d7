"""
dex/orderbook.py - CLOB depth and best bid/ask derivation.

An empty side means "no market" on that side: best price is None and
spread is zero. Callers check for None instead of catching errors.

Depth beyond the requested level count is never computed.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from core.constants import DEFAULT_DEPTH_LEVELS, OrderSide
from core.exceptions import ValidationError
from core.math import human_decimal
from core.models import OrderBookLevel, OrderBookSnapshot


@dataclass(frozen=True)
class DepthRow:
    """One display row of the depth table."""
    price: Decimal
    size: Decimal
    total: Decimal
    bar_percent: Decimal


@dataclass(frozen=True)
class PriceClick:
    """Order intent produced by clicking a price level."""
    side: OrderSide
    price: Decimal


def best_bid(book: OrderBookSnapshot) -> Optional[OrderBookLevel]:
    return book.bids[0] if book.bids else None


def best_ask(book: OrderBookSnapshot) -> Optional[OrderBookLevel]:
    return book.asks[0] if book.asks else None


def has_market(book: OrderBookSnapshot) -> bool:
    """Both sides quoted."""
    return bool(book.bids) and bool(book.asks)


def spread(book: OrderBookSnapshot) -> Decimal:
    """best ask - best bid; zero when either side is empty."""
    if not has_market(book):
        return Decimal("0")
    return book.asks[0].price - book.bids[0].price


def spread_percent(book: OrderBookSnapshot) -> Decimal:
    """
    spread / best bid * 100.

    Example:
        bid 1.0450 / ask 1.0451 -> ~0.0096
    """
    if not has_market(book):
        return Decimal("0")
    bid = book.bids[0].price
    if bid == 0:
        return Decimal("0")
    return spread(book) / bid * 100


def mid_price(book: OrderBookSnapshot) -> Optional[Decimal]:
    """(best bid + best ask) / 2, or None without a two-sided market."""
    if not has_market(book):
        return None
    return (book.bids[0].price + book.asks[0].price) / 2


def cumulative_total(levels: Sequence[OrderBookLevel], index: int) -> int:
    """Sum of raw sizes for levels[0..index] inclusive."""
    if index < 0:
        return 0
    return sum(level.size_raw for level in levels[: index + 1])


def depth_rows(
    levels: Sequence[OrderBookLevel],
    count: int = DEFAULT_DEPTH_LEVELS,
    base_decimals: int = 8,
) -> List[DepthRow]:
    """
    Display rows for the first `count` levels.

    bar_percent is each level's size relative to the largest visible
    level (0-100).
    """
    if count < 0:
        raise ValidationError(f"count must be non-negative, got {count}", details={"count": count})

    visible = list(levels[:count])
    if not visible:
        return []

    max_size = max(level.size_raw for level in visible)
    rows: List[DepthRow] = []
    running = 0
    for level in visible:
        running += level.size_raw
        bar = Decimal(level.size_raw) / Decimal(max_size) * 100 if max_size else Decimal("0")
        rows.append(
            DepthRow(
                price=level.price,
                size=human_decimal(level.size_raw, base_decimals),
                total=human_decimal(running, base_decimals),
                bar_percent=bar,
            )
        )
    return rows


def price_click(book: OrderBookSnapshot, book_side: str, index: int) -> Optional[PriceClick]:
    """
    Order intent for a click on a depth row.

    book_side is "ask" or "bid". Clicking an ask pre-fills a SELL at that
    price, clicking a bid pre-fills a BUY. Out-of-range index -> None.
    """
    if book_side == "ask":
        levels, side = book.asks, OrderSide.SELL
    elif book_side == "bid":
        levels, side = book.bids, OrderSide.BUY
    else:
        raise ValidationError(
            f"book_side must be 'ask' or 'bid', got {book_side!r}",
            details={"book_side": book_side},
        )
    if index < 0 or index >= len(levels):
        return None
    return PriceClick(side=side, price=levels[index].price)
