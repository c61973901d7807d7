"""
core - Core utilities and models for DUET.

This package contains:
- models.py: Data models (Token, PoolSnapshot, OrderBookSnapshot, Order, ...)
- constants.py: Enums and constants
- exceptions.py: Typed exceptions with error codes
- math.py: Unit scaler (human <-> raw units, fixed-point prices)
- validators.py: Input validation run before any external call
- format_money.py: Display formatting for money and prices
- time.py: Freshness rules
- logging.py: Structured JSON logging
"""

from core.constants import (
    FEE_TIERS,
    PRICE_MULTIPLIER,
    ArbitrageDirection,
    FeeTier,
    OrderSide,
    OrderStatus,
    OrderType,
    RouteMode,
    WorkflowKind,
    WorkflowStatus,
)
from core.exceptions import (
    DuetError,
    ErrorCode,
    ExecutionError,
    InfraError,
    RoutingError,
    SnapshotError,
    ValidationError,
)
from core.logging import get_logger, setup_logging
from core.math import scale_price, to_human_units, to_raw_units
from core.models import (
    ArbitrageOpportunity,
    CoinInfo,
    LiquidityPosition,
    Order,
    OrderBookLevel,
    OrderBookSnapshot,
    PoolKey,
    PoolSnapshot,
    Token,
    TxReceipt,
    TxRequest,
    ViewRequest,
)

__all__ = [
    # Constants
    "FEE_TIERS",
    "PRICE_MULTIPLIER",
    "ArbitrageDirection",
    "FeeTier",
    "OrderSide",
    "OrderStatus",
    "OrderType",
    "RouteMode",
    "WorkflowKind",
    "WorkflowStatus",
    # Exceptions
    "DuetError",
    "ErrorCode",
    "ExecutionError",
    "InfraError",
    "RoutingError",
    "SnapshotError",
    "ValidationError",
    # Unit scaler
    "scale_price",
    "to_human_units",
    "to_raw_units",
    # Models
    "ArbitrageOpportunity",
    "CoinInfo",
    "LiquidityPosition",
    "Order",
    "OrderBookLevel",
    "OrderBookSnapshot",
    "PoolKey",
    "PoolSnapshot",
    "Token",
    "TxReceipt",
    "TxRequest",
    "ViewRequest",
    # Logging
    "get_logger",
    "setup_logging",
]
