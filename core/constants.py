# PATH: core/constants.py
"""
Constants for DUET.

Contains enums, defaults, and configuration constants shared by the
venue model, the arbitrage engine, routing and the workflow trackers.
"""

from decimal import Decimal
from enum import Enum, IntEnum
from typing import Final, Tuple


# =============================================================================
# VENUE CONSTANTS
# =============================================================================

class FeeTier(IntEnum):
    """AMM fee tiers, in basis points."""
    LOW = 5     # 0.05%
    HIGH = 30   # 0.30%


FEE_TIERS: Final[Tuple[int, ...]] = tuple(tier.value for tier in FeeTier)


class OrderSide(IntEnum):
    """CLOB order side as encoded on-chain."""
    BUY = 0
    SELL = 1


# Fixed-point multiplier for CLOB prices (6 decimals)
PRICE_MULTIPLIER: Final[int] = 1_000_000

# Token decimals accepted by the unit scaler
MAX_TOKEN_DECIMALS: Final[int] = 32
DEFAULT_TOKEN_DECIMALS: Final[int] = 8

BPS_DENOMINATOR: Final[int] = 10_000


# =============================================================================
# STATUS ENUMS
# =============================================================================

class OrderStatus(str, Enum):
    """Client-side order lifecycle."""
    PENDING_SUBMISSION = "PENDING_SUBMISSION"
    OPEN = "OPEN"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


class OrderType(str, Enum):
    LIMIT = "LIMIT"
    MARKET = "MARKET"


class WorkflowStatus(str, Enum):
    """Status of a tracked multi-step request."""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class WorkflowKind(str, Enum):
    POOL_CREATION = "POOL_CREATION"
    TOKEN_CREATION = "TOKEN_CREATION"
    ADD_LIQUIDITY = "ADD_LIQUIDITY"
    REMOVE_LIQUIDITY = "REMOVE_LIQUIDITY"


class StepStatus(str, Enum):
    """Outcome of one step inside a workflow."""
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    FAILED_NON_FATAL = "FAILED_NON_FATAL"


class RouteMode(str, Enum):
    """Swap execution modes."""
    AMM_DIRECT = "amm-direct"
    ROUTER_SINGLE_HOP = "router-single-hop"
    ROUTER_MULTI_HOP = "router-multi-hop"
    SPLIT_EXECUTION = "split-execution"


class ArbitrageDirection(str, Enum):
    BUY_AMM_SELL_CLOB = "buy-amm-sell-clob"
    BUY_CLOB_SELL_AMM = "buy-clob-sell-amm"


class VenueKind(str, Enum):
    AMM = "AMM"
    CLOB = "CLOB"


class MarginBand(str, Enum):
    """Display band for an opportunity margin."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


# =============================================================================
# DEFAULTS
# =============================================================================

# Refresh cadence (seconds)
ORDER_BOOK_REFRESH_SECONDS: Final[float] = 5.0
ARBITRAGE_REFRESH_SECONDS: Final[float] = 10.0
PRICE_CHART_REFRESH_SECONDS: Final[float] = 30.0

# Slippage tolerance (percent)
DEFAULT_SLIPPAGE_PCT: Final[Decimal] = Decimal("0.5")

# Arbitrage sizing (quote-token units)
DEFAULT_NOTIONAL_CAP: Final[Decimal] = Decimal("5000")
DEFAULT_MIN_MARGIN_PCT: Final[Decimal] = Decimal("0")

# Margin display bands (percent)
MARGIN_BAND_HIGH_PCT: Final[Decimal] = Decimal("0.1")
MARGIN_BAND_MEDIUM_PCT: Final[Decimal] = Decimal("0.05")

DEFAULT_DEPTH_LEVELS: Final[int] = 10

# Minimum LP tokens accepted on add_liquidity
DEFAULT_MIN_LIQUIDITY: Final[int] = 1

# Deployed module address (overridable from config/contracts.yaml)
DEFAULT_MODULE_ADDRESS: Final[str] = (
    "0x1bb7e129d639ef1ca7e0d66a8d9af8f4af3ac2c40e0e3132a19a18ad85469a56"
)
