# PATH: monitoring/__init__.py
"""
Monitoring package for DUET: portfolio valuation and price series.
"""

from monitoring.portfolio import (
    DEFAULT_LP_UNIT_VALUE,
    Holding,
    PortfolioSummary,
    summarize_portfolio,
)
from monitoring.price_series import (
    PriceChange,
    PricePoint,
    Timeframe,
    in_timeframe,
    price_change,
)

__all__ = [
    "DEFAULT_LP_UNIT_VALUE",
    "Holding",
    "PortfolioSummary",
    "summarize_portfolio",
    "PriceChange",
    "PricePoint",
    "Timeframe",
    "in_timeframe",
    "price_change",
]
