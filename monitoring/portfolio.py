# PATH: monitoring/portfolio.py
"""
Portfolio valuation for the connected wallet.

VALUATION RULES:
- token value = human balance * unit price (unknown price -> 0)
- LP value = liquidity * lp_unit_value (flat placeholder; pools do not
  expose a per-share price yet)
- distribution is sorted by value, largest first, with each entry's
  share of the total in percent (all zero when the total is zero)
- pnl percent = pnl / total value * 100 (0 when the total is zero)

Everything is Decimal. No I/O here: balances, prices, positions and
orders are passed in.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Mapping, Optional, Sequence, Tuple

from core.constants import OrderStatus
from core.math import parse_amount, percent_of
from core.models import LiquidityPosition, Order

# Placeholder value of one LP unit, in quote terms
DEFAULT_LP_UNIT_VALUE = Decimal("2.45")


@dataclass(frozen=True)
class Holding:
    """One slice of the portfolio distribution."""
    name: str
    value: Decimal
    percentage: Decimal

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "value": str(self.value),
            "percentage": str(self.percentage),
        }


@dataclass(frozen=True)
class PortfolioSummary:
    total_value: Decimal
    distribution: Tuple[Holding, ...]
    open_orders: int
    pnl: Decimal
    pnl_percent: Decimal

    def to_dict(self) -> dict:
        return {
            "total_value": str(self.total_value),
            "distribution": [h.to_dict() for h in self.distribution],
            "open_orders": self.open_orders,
            "pnl": str(self.pnl),
            "pnl_percent": str(self.pnl_percent),
        }


def token_value(symbol: str, amount, prices: Mapping[str, Decimal]) -> Decimal:
    """Human amount times unit price; tokens without a price are worth 0."""
    price = prices.get(symbol)
    if price is None:
        return Decimal("0")
    return parse_amount(amount, field=f"balance {symbol}") * Decimal(price)


def position_value(position: LiquidityPosition, lp_unit_value: Decimal = DEFAULT_LP_UNIT_VALUE) -> Decimal:
    return Decimal(position.liquidity) * lp_unit_value


def position_name(position: LiquidityPosition, symbols: Optional[Mapping[str, str]] = None) -> str:
    symbols = symbols or {}
    x = symbols.get(position.pool.token_x, position.pool.token_x)
    y = symbols.get(position.pool.token_y, position.pool.token_y)
    return f"{x}-{y} LP"


def total_value(
    balances: Mapping[str, object],
    prices: Mapping[str, Decimal],
    positions: Sequence[LiquidityPosition] = (),
    lp_unit_value: Decimal = DEFAULT_LP_UNIT_VALUE,
) -> Decimal:
    total = sum((token_value(s, a, prices) for s, a in balances.items()), Decimal("0"))
    total += sum((position_value(p, lp_unit_value) for p in positions), Decimal("0"))
    return total


def distribution(
    balances: Mapping[str, object],
    prices: Mapping[str, Decimal],
    positions: Sequence[LiquidityPosition] = (),
    lp_unit_value: Decimal = DEFAULT_LP_UNIT_VALUE,
    symbols: Optional[Mapping[str, str]] = None,
) -> Tuple[Holding, ...]:
    """Holdings sorted by value descending."""
    values: Dict[str, Decimal] = {}
    for symbol, amount in balances.items():
        values[symbol] = token_value(symbol, amount, prices)
    for position in positions:
        values[position_name(position, symbols)] = position_value(position, lp_unit_value)

    total = sum(values.values(), Decimal("0"))
    holdings = [
        Holding(name=name, value=value, percentage=percent_of(value, total))
        for name, value in values.items()
    ]
    holdings.sort(key=lambda h: h.value, reverse=True)
    return tuple(holdings)


def open_order_count(orders: Sequence[Order]) -> int:
    return sum(1 for order in orders if order.status == OrderStatus.OPEN)


def pnl_percent(pnl: Decimal, total: Decimal) -> Decimal:
    return percent_of(pnl, total)


def summarize_portfolio(
    balances: Mapping[str, object],
    prices: Mapping[str, Decimal],
    positions: Sequence[LiquidityPosition] = (),
    orders: Sequence[Order] = (),
    pnl: Decimal = Decimal("0"),
    lp_unit_value: Decimal = DEFAULT_LP_UNIT_VALUE,
    symbols: Optional[Mapping[str, str]] = None,
) -> PortfolioSummary:
    """
    Full portfolio view.

    Args:
        balances: symbol -> human amount
        prices: symbol -> unit price
        positions: LP positions held
        orders: client-side orders (only OPEN ones are counted)
        pnl: realized + unrealized pnl in quote terms
        symbols: token address -> symbol, for LP labels
    """
    total = total_value(balances, prices, positions, lp_unit_value)
    return PortfolioSummary(
        total_value=total,
        distribution=distribution(balances, prices, positions, lp_unit_value, symbols),
        open_orders=open_order_count(orders),
        pnl=pnl,
        pnl_percent=pnl_percent(pnl, total),
    )
