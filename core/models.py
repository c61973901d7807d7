# PATH: core/models.py
"""
Core data models for DUET.

All models are frozen dataclasses. Updates go through
dataclasses.replace() so readers never observe a half-written record.

REPRESENTATION CONTRACT
=======================
Human values and raw values never share a field name:
  - *_raw fields are integer on-chain units (token base units, or
    prices scaled by PRICE_MULTIPLIER)
  - price / amount fields without the suffix are human Decimals

POOL IDENTITY CONTRACT
======================
A pool is identified by (token_x, token_y, fee_tier) with
token_x < token_y (lexicographic on the on-chain identifier).
PoolKey refuses any other order.
Label: sorted symbols + fee percent, e.g. "APT-USDC-0.05%".

ORDER BOOK CONTRACT
===================
  - bids: price non-increasing, asks: price non-decreasing
  - best bid < best ask, otherwise the snapshot is rejected
  - either side may be empty ("no market" on that side)
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from core.constants import (
    DEFAULT_TOKEN_DECIMALS,
    ArbitrageDirection,
    OrderSide,
    OrderStatus,
    OrderType,
)
from core.exceptions import ErrorCode, SnapshotError, ValidationError
from core.math import unscale_price, validate_decimals
from core.validators import validate_distinct_tokens, validate_fee_tier, validate_token_id


def pool_label(symbol_a: str, symbol_b: str, fee_tier: int) -> str:
    """
    Human pool label.

    Example:
        pool_label("USDC", "APT", 5) -> "APT-USDC-0.05%"
    """
    first, second = sorted([symbol_a, symbol_b])
    fee_pct = Decimal(fee_tier) / 100
    return f"{first}-{second}-{fee_pct:.2f}%"


# ============================================================================
# TOKENS AND POOLS
# ============================================================================

@dataclass(frozen=True)
class Token:
    """Registered token. Identity is the on-chain address/type."""
    symbol: str
    name: str
    address: str
    decimals: int = DEFAULT_TOKEN_DECIMALS

    def __post_init__(self):
        validate_token_id(self.address, field=f"token {self.symbol}")
        validate_decimals(self.decimals)

    def __hash__(self) -> int:
        return hash(self.address)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return False
        return self.address == other.address

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "address": self.address,
            "decimals": self.decimals,
        }


@dataclass(frozen=True)
class PoolKey:
    """Canonical AMM pool identity."""
    token_x: str
    token_y: str
    fee_tier: int

    def __post_init__(self):
        validate_fee_tier(self.fee_tier)
        validate_distinct_tokens(self.token_x, self.token_y)
        if self.token_x > self.token_y:
            raise ValidationError(
                "Pool tokens are not in canonical order",
                details={"token_x": self.token_x, "token_y": self.token_y},
                code=ErrorCode.POOL_NOT_CANONICAL,
            )

    @classmethod
    def from_pair(cls, token_a: str, token_b: str, fee_tier: int) -> "PoolKey":
        """Build the key for an unordered pair."""
        validate_distinct_tokens(token_a, token_b)
        token_x, token_y = sorted([token_a, token_b])
        return cls(token_x=token_x, token_y=token_y, fee_tier=fee_tier)

    @property
    def pair_key(self) -> str:
        return f"{self.token_x}/{self.token_y}"

    def label(self, symbol_x: str, symbol_y: str) -> str:
        return pool_label(symbol_x, symbol_y, self.fee_tier)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token_x": self.token_x,
            "token_y": self.token_y,
            "fee_tier": self.fee_tier,
        }


@dataclass(frozen=True)
class PoolSnapshot:
    """AMM pool reserves at one point in time (raw units)."""
    key: PoolKey
    reserve_x: int
    reserve_y: int
    decimals_x: int = DEFAULT_TOKEN_DECIMALS
    decimals_y: int = DEFAULT_TOKEN_DECIMALS
    timestamp_ms: int = 0

    def __post_init__(self):
        for name in ("reserve_x", "reserve_y"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise SnapshotError(
                    ErrorCode.SNAPSHOT_MALFORMED,
                    f"{name} must be a non-negative integer, got {value!r}",
                    {"field": name},
                )
        validate_decimals(self.decimals_x)
        validate_decimals(self.decimals_y)

    @property
    def token_x(self) -> str:
        return self.key.token_x

    @property
    def token_y(self) -> str:
        return self.key.token_y

    @property
    def fee_tier(self) -> int:
        return self.key.fee_tier

    @property
    def is_empty(self) -> bool:
        return self.reserve_x == 0 or self.reserve_y == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.key.to_dict(),
            "reserve_x": str(self.reserve_x),
            "reserve_y": str(self.reserve_y),
            "decimals_x": self.decimals_x,
            "decimals_y": self.decimals_y,
            "timestamp_ms": self.timestamp_ms,
        }


# ============================================================================
# ORDER BOOK
# ============================================================================

@dataclass(frozen=True)
class OrderBookLevel:
    """One aggregated price level. price_raw is scaled by PRICE_MULTIPLIER."""
    price_raw: int
    size_raw: int

    def __post_init__(self):
        for name in ("price_raw", "size_raw"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise SnapshotError(
                    ErrorCode.SNAPSHOT_MALFORMED,
                    f"{name} must be a non-negative integer, got {value!r}",
                    {"field": name},
                )

    @property
    def price(self) -> Decimal:
        return unscale_price(self.price_raw)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "price": str(self.price),
            "price_raw": self.price_raw,
            "size_raw": str(self.size_raw),
        }


@dataclass(frozen=True)
class OrderBookSnapshot:
    """CLOB market state: bids best-first (descending), asks best-first (ascending)."""
    base: str
    quote: str
    bids: Tuple[OrderBookLevel, ...] = ()
    asks: Tuple[OrderBookLevel, ...] = ()
    base_decimals: int = DEFAULT_TOKEN_DECIMALS
    timestamp_ms: int = 0

    def __post_init__(self):
        object.__setattr__(self, "bids", tuple(self.bids))
        object.__setattr__(self, "asks", tuple(self.asks))
        validate_decimals(self.base_decimals)

        for prev, nxt in zip(self.bids, self.bids[1:]):
            if nxt.price_raw > prev.price_raw:
                raise SnapshotError(
                    ErrorCode.BOOK_UNORDERED,
                    "Bid levels must be sorted by price descending",
                    {"base": self.base, "quote": self.quote},
                )
        for prev, nxt in zip(self.asks, self.asks[1:]):
            if nxt.price_raw < prev.price_raw:
                raise SnapshotError(
                    ErrorCode.BOOK_UNORDERED,
                    "Ask levels must be sorted by price ascending",
                    {"base": self.base, "quote": self.quote},
                )

        if self.bids and self.asks and self.bids[0].price_raw >= self.asks[0].price_raw:
            raise SnapshotError(
                ErrorCode.BOOK_CROSSED,
                "Crossed book: best bid is not below best ask",
                {
                    "best_bid_raw": self.bids[0].price_raw,
                    "best_ask_raw": self.asks[0].price_raw,
                },
            )

    @property
    def pair_key(self) -> str:
        return f"{self.base}/{self.quote}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base": self.base,
            "quote": self.quote,
            "bids": [level.to_dict() for level in self.bids],
            "asks": [level.to_dict() for level in self.asks],
            "timestamp_ms": self.timestamp_ms,
        }


# ============================================================================
# ORDERS, POSITIONS, COINS
# ============================================================================

@dataclass(frozen=True)
class Order:
    """
    Client-side copy of a CLOB order.

    id is local until the venue confirms; venue_order_id is set from the
    venue. The client copy is a best-effort cache of on-chain truth.
    """
    id: str
    base: str
    quote: str
    side: OrderSide
    order_type: OrderType
    size_raw: int
    price: Optional[Decimal] = None
    filled_size_raw: int = 0
    status: OrderStatus = OrderStatus.PENDING_SUBMISSION
    timestamp_ms: int = 0
    venue_order_id: Optional[str] = None
    tx_hash: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def market(self) -> str:
        return f"{self.base}/{self.quote}"

    @property
    def remaining_raw(self) -> int:
        return max(self.size_raw - self.filled_size_raw, 0)

    @property
    def is_terminal(self) -> bool:
        return self.status in (OrderStatus.FILLED, OrderStatus.CANCELLED, OrderStatus.FAILED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "market": self.market,
            "side": self.side.name.lower(),
            "order_type": self.order_type.value,
            "size_raw": str(self.size_raw),
            "price": str(self.price) if self.price is not None else None,
            "filled_size_raw": str(self.filled_size_raw),
            "status": self.status.value,
            "timestamp_ms": self.timestamp_ms,
            "venue_order_id": self.venue_order_id,
            "tx_hash": self.tx_hash,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class LiquidityPosition:
    """LP position in one pool. Dropped when liquidity reaches zero."""
    pool: PoolKey
    liquidity: int
    rewards: Decimal = Decimal("0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.pool.to_dict(),
            "liquidity": str(self.liquidity),
            "rewards": str(self.rewards),
        }


@dataclass(frozen=True)
class CoinInfo:
    """Result of the get_coin_info view."""
    name: str
    symbol: str
    decimals: int
    supply: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "supply": str(self.supply) if self.supply is not None else None,
        }


# ============================================================================
# ARBITRAGE
# ============================================================================

@dataclass(frozen=True)
class ArbitrageOpportunity:
    """
    Derived cross-venue opportunity. Recomputed every refresh, never stored.

    amm_price / clob_price are quote-per-base human prices.
    recommended_amount is base-token human units; it must pass through
    the unit scaler before it is embedded in a transaction.
    """
    pair: str
    base: str
    quote: str
    fee_tier: int
    amm_price: Decimal
    clob_price: Decimal
    margin_pct: Decimal
    direction: ArbitrageDirection
    recommended_amount: Decimal
    profit_potential: Decimal
    detected_at_ms: int = 0

    @property
    def id(self) -> str:
        return f"opp_{self.base}_{self.quote}_{self.fee_tier}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pair": self.pair,
            "fee_tier": self.fee_tier,
            "amm_price": str(self.amm_price),
            "clob_price": str(self.clob_price),
            "margin_pct": str(self.margin_pct),
            "direction": self.direction.value,
            "recommended_amount": str(self.recommended_amount),
            "profit_potential": str(self.profit_potential),
            "detected_at_ms": self.detected_at_ms,
        }


# ============================================================================
# COLLABORATOR BOUNDARY
# ============================================================================

@dataclass(frozen=True)
class TxRequest:
    """Entry-function call handed to the external signer."""
    function: str
    type_arguments: Tuple[str, ...] = ()
    function_arguments: Tuple[Any, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "type_arguments", tuple(self.type_arguments))
        object.__setattr__(self, "function_arguments", tuple(self.function_arguments))

    def to_payload(self) -> Dict[str, Any]:
        """Wallet adapter payload shape."""
        return {
            "data": {
                "function": self.function,
                "typeArguments": list(self.type_arguments),
                "functionArguments": list(self.function_arguments),
            }
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "function": self.function,
            "type_arguments": list(self.type_arguments),
            "function_arguments": list(self.function_arguments),
        }


@dataclass(frozen=True)
class ViewRequest:
    """Read-only view-function call."""
    function: str
    type_arguments: Tuple[str, ...] = ()
    function_arguments: Tuple[Any, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "type_arguments", tuple(self.type_arguments))
        object.__setattr__(self, "function_arguments", tuple(self.function_arguments))

    def to_body(self) -> Dict[str, Any]:
        """Node REST body for POST /view."""
        return {
            "function": self.function,
            "type_arguments": list(self.type_arguments),
            "arguments": list(self.function_arguments),
        }


@dataclass(frozen=True)
class TxReceipt:
    """What the signer reports back: at least a hash and an outcome."""
    tx_hash: str
    success: bool
    vm_status: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tx_hash": self.tx_hash,
            "success": self.success,
            "vm_status": self.vm_status,
        }
