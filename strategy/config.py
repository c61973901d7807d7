"""
strategy/config.py - Strategy configuration.

Arbitrage and routing thresholds, refresh cadence and watched markets.
Values are Decimal where they touch money or percentages.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

from config import load_strategy
from core.constants import (
    ARBITRAGE_REFRESH_SECONDS,
    DEFAULT_DEPTH_LEVELS,
    DEFAULT_MIN_MARGIN_PCT,
    DEFAULT_NOTIONAL_CAP,
    DEFAULT_SLIPPAGE_PCT,
    ORDER_BOOK_REFRESH_SECONDS,
    PRICE_CHART_REFRESH_SECONDS,
)
from core.exceptions import ValidationError
from core.math import parse_amount, validate_slippage
from core.validators import validate_fee_tier


@dataclass
class Thresholds:
    """Numeric thresholds."""

    # Routing
    slippage_pct: Decimal = DEFAULT_SLIPPAGE_PCT

    # Arbitrage sizing and filtering
    notional_cap: Decimal = DEFAULT_NOTIONAL_CAP
    min_margin_pct: Decimal = DEFAULT_MIN_MARGIN_PCT

    # Order book display
    depth_levels: int = DEFAULT_DEPTH_LEVELS


@dataclass
class RefreshIntervals:
    """Polling cadence in seconds."""
    order_book_seconds: float = ORDER_BOOK_REFRESH_SECONDS
    arbitrage_seconds: float = ARBITRAGE_REFRESH_SECONDS
    price_chart_seconds: float = PRICE_CHART_REFRESH_SECONDS


@dataclass
class MarketConfig:
    """One watched market, by token symbol."""
    base: str
    quote: str
    fee_tier: int

    @property
    def label(self) -> str:
        return f"{self.base}/{self.quote}"


@dataclass
class StrategyConfig:
    """Full strategy configuration."""

    thresholds: Thresholds = field(default_factory=Thresholds)
    refresh: RefreshIntervals = field(default_factory=RefreshIntervals)
    markets: list[MarketConfig] = field(default_factory=list)


def _parse_thresholds(data: dict[str, Any]) -> Thresholds:
    defaults = Thresholds()
    depth_levels = int(data.get("depth_levels", defaults.depth_levels))
    if depth_levels < 0:
        raise ValidationError(
            f"depth_levels must be non-negative, got {depth_levels}",
            details={"depth_levels": depth_levels},
        )
    return Thresholds(
        slippage_pct=validate_slippage(data.get("slippage_pct", defaults.slippage_pct)),
        notional_cap=parse_amount(data.get("notional_cap", defaults.notional_cap), field="notional_cap"),
        min_margin_pct=parse_amount(data.get("min_margin_pct", defaults.min_margin_pct), field="min_margin_pct"),
        depth_levels=depth_levels,
    )


def _parse_refresh(data: dict[str, Any]) -> RefreshIntervals:
    defaults = RefreshIntervals()
    intervals = RefreshIntervals(
        order_book_seconds=float(data.get("order_book_seconds", defaults.order_book_seconds)),
        arbitrage_seconds=float(data.get("arbitrage_seconds", defaults.arbitrage_seconds)),
        price_chart_seconds=float(data.get("price_chart_seconds", defaults.price_chart_seconds)),
    )
    for name, value in vars(intervals).items():
        if value <= 0:
            raise ValidationError(
                f"{name} must be positive, got {value}",
                details={name: value},
            )
    return intervals


def _parse_markets(data: list[dict[str, Any]]) -> list[MarketConfig]:
    markets = []
    for entry in data:
        markets.append(
            MarketConfig(
                base=str(entry["base"]),
                quote=str(entry["quote"]),
                fee_tier=validate_fee_tier(int(entry.get("fee_tier", 5))),
            )
        )
    return markets


def load_strategy_config(config_path: Path | None = None) -> StrategyConfig:
    """
    Load strategy configuration from YAML file.

    Args:
        config_path: Path to strategy.yaml (default: config/strategy.yaml)

    Returns:
        StrategyConfig; built-in defaults for anything missing
    """
    data = load_strategy(config_path)

    return StrategyConfig(
        thresholds=_parse_thresholds(data.get("defaults") or {}),
        refresh=_parse_refresh(data.get("refresh") or {}),
        markets=_parse_markets(data.get("markets") or []),
    )
