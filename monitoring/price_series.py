# PATH: monitoring/price_series.py
"""
Price history for one token: change between the last two points and
timeframe windows. Points are (timestamp_ms, price) in time order.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Sequence, Tuple

from core.format_money import format_price, format_signed_pct
from core.math import percent_of
from core.time import now_ms


class Timeframe(str, Enum):
    HOUR = "1H"
    DAY = "24H"
    WEEK = "7D"

    @property
    def window_ms(self) -> int:
        return {
            Timeframe.HOUR: 60 * 60 * 1000,
            Timeframe.DAY: 24 * 60 * 60 * 1000,
            Timeframe.WEEK: 7 * 24 * 60 * 60 * 1000,
        }[self]


@dataclass(frozen=True)
class PricePoint:
    timestamp_ms: int
    price: Decimal
    volume: Decimal = Decimal("0")


@dataclass(frozen=True)
class PriceChange:
    current: Decimal
    previous: Decimal
    change: Decimal
    change_percent: Decimal

    @property
    def is_positive(self) -> bool:
        return self.change >= 0

    def describe(self) -> str:
        """'+0.0500 (+0.40%)' style label."""
        sign = "+" if self.is_positive else ""
        return f"{sign}{format_price(self.change)} ({format_signed_pct(self.change_percent)}%)"


def price_change(points: Sequence[PricePoint]) -> PriceChange:
    """
    Change between the last two points.

    One point -> zero change; no points -> everything zero.
    """
    if not points:
        zero = Decimal("0")
        return PriceChange(current=zero, previous=zero, change=zero, change_percent=zero)

    current = points[-1].price
    previous = points[-2].price if len(points) > 1 else current
    change = current - previous
    return PriceChange(
        current=current,
        previous=previous,
        change=change,
        change_percent=percent_of(change, previous),
    )


def in_timeframe(
    points: Sequence[PricePoint],
    timeframe: Timeframe,
    current_ms: Optional[int] = None,
) -> Tuple[PricePoint, ...]:
    """Points no older than the timeframe window."""
    cutoff = (now_ms() if current_ms is None else current_ms) - timeframe.window_ms
    return tuple(p for p in points if p.timestamp_ms >= cutoff)
