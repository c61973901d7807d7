"""
dex/adapters/views.py - Coerce untyped view results into typed snapshots.

View calls return JSON arrays of Move return values. Nothing here raises:
malformed or missing data means "unavailable" and the parser returns None
after a warning log. Callers suppress dependent actions on None.

Accepted shapes:
  get_pool_reserves      [reserve_x, reserve_y, ...] or [{"reserve_x", "reserve_y"}]
  get_order_book_depth   [bids, asks] or [{"bids", "asks"}], level = {"price", "size"}
                         or [price, size]; price scaled by PRICE_MULTIPLIER
  get_best_bid_ask       [bid_raw, ask_raw], 0 = empty side
  get_coin_info          [name, symbol, decimals(, supply)] or [{...}]
  scalar views           [value] or value
"""

from typing import Any, List, Optional, Tuple

from core.constants import DEFAULT_TOKEN_DECIMALS
from core.exceptions import DuetError
from core.logging import get_logger
from core.models import (
    CoinInfo,
    OrderBookLevel,
    OrderBookSnapshot,
    PoolKey,
    PoolSnapshot,
)

logger = get_logger(__name__)


def _unavailable(view: str, reason: str, raw: Any) -> None:
    logger.warning(
        f"View result unavailable: {view}",
        extra={"context": {"view": view, "reason": reason, "raw": repr(raw)[:200]}},
    )
    return None


def _to_int(value: Any) -> Optional[int]:
    """u64/u128 come back as decimal strings; ints are accepted too."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str):
        text = value.strip()
        # isdigit() alone admits non-ASCII digits such as superscripts
        if text.isascii() and text.isdigit():
            return int(text)
    return None


def _unwrap(result: Any) -> Any:
    """A single struct/value return comes back as a one-element list."""
    if isinstance(result, list) and len(result) == 1:
        return result[0]
    return result


def parse_scalar_u64(result: Any, view: str = "u64") -> Optional[int]:
    value = _to_int(_unwrap(result))
    if value is None:
        return _unavailable(view, "not a non-negative integer", result)
    return value


def parse_bool(result: Any, view: str = "bool") -> Optional[bool]:
    value = _unwrap(result)
    if isinstance(value, bool):
        return value
    return _unavailable(view, "not a boolean", result)


def parse_pool_reserves(
    result: Any,
    key: PoolKey,
    decimals_x: int = DEFAULT_TOKEN_DECIMALS,
    decimals_y: int = DEFAULT_TOKEN_DECIMALS,
    timestamp_ms: int = 0,
) -> Optional[PoolSnapshot]:
    view = "get_pool_reserves"
    body = _unwrap(result)

    if isinstance(body, dict):
        raw_x, raw_y = body.get("reserve_x"), body.get("reserve_y")
    elif isinstance(body, list) and len(body) >= 2:
        raw_x, raw_y = body[0], body[1]
    else:
        return _unavailable(view, "unexpected shape", result)

    reserve_x, reserve_y = _to_int(raw_x), _to_int(raw_y)
    if reserve_x is None or reserve_y is None:
        return _unavailable(view, "reserves missing or not integers", result)

    try:
        return PoolSnapshot(
            key=key,
            reserve_x=reserve_x,
            reserve_y=reserve_y,
            decimals_x=decimals_x,
            decimals_y=decimals_y,
            timestamp_ms=timestamp_ms,
        )
    except DuetError as e:
        return _unavailable(view, str(e), result)


def _parse_levels(raw_levels: Any) -> Optional[List[OrderBookLevel]]:
    if not isinstance(raw_levels, list):
        return None

    levels: List[OrderBookLevel] = []
    for raw in raw_levels:
        if isinstance(raw, dict):
            price, size = _to_int(raw.get("price")), _to_int(raw.get("size"))
        elif isinstance(raw, (list, tuple)) and len(raw) == 2:
            price, size = _to_int(raw[0]), _to_int(raw[1])
        else:
            return None
        if price is None or size is None:
            return None
        levels.append(OrderBookLevel(price_raw=price, size_raw=size))
    return levels


def parse_order_book_depth(
    result: Any,
    base: str,
    quote: str,
    base_decimals: int = DEFAULT_TOKEN_DECIMALS,
    timestamp_ms: int = 0,
) -> Optional[OrderBookSnapshot]:
    """
    Build an OrderBookSnapshot. Crossed or unordered books are treated as
    stale and come back as None.
    """
    view = "get_order_book_depth"
    body = _unwrap(result)

    if isinstance(body, dict):
        raw_bids, raw_asks = body.get("bids"), body.get("asks")
    elif isinstance(body, list) and len(body) == 2:
        raw_bids, raw_asks = body[0], body[1]
    else:
        return _unavailable(view, "unexpected shape", result)

    bids, asks = _parse_levels(raw_bids), _parse_levels(raw_asks)
    if bids is None or asks is None:
        return _unavailable(view, "malformed levels", result)

    try:
        return OrderBookSnapshot(
            base=base,
            quote=quote,
            bids=tuple(bids),
            asks=tuple(asks),
            base_decimals=base_decimals,
            timestamp_ms=timestamp_ms,
        )
    except DuetError as e:
        return _unavailable(view, str(e), result)


def parse_best_bid_ask(result: Any) -> Optional[Tuple[Optional[int], Optional[int]]]:
    """(best_bid_raw, best_ask_raw); a zero price means the side is empty."""
    view = "get_best_bid_ask"
    if not isinstance(result, list) or len(result) != 2:
        return _unavailable(view, "expected [bid, ask]", result)

    bid, ask = _to_int(result[0]), _to_int(result[1])
    if bid is None or ask is None:
        return _unavailable(view, "prices missing or not integers", result)

    bid_opt = bid or None
    ask_opt = ask or None
    if bid_opt is not None and ask_opt is not None and bid_opt >= ask_opt:
        return _unavailable(view, "crossed best bid/ask", result)
    return bid_opt, ask_opt


def _decode_text(value: Any) -> Optional[str]:
    """Move String comes back as str; vector<u8> as 0x-hex or list of ints."""
    if isinstance(value, str):
        if value.startswith("0x") and len(value) % 2 == 0:
            try:
                return bytes.fromhex(value[2:]).decode("utf-8")
            except (ValueError, UnicodeDecodeError):
                return value
        return value
    if isinstance(value, list) and all(isinstance(b, int) and 0 <= b < 256 for b in value):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            return None
    return None


def parse_coin_info(result: Any) -> Optional[CoinInfo]:
    view = "get_coin_info"
    body = result
    if isinstance(result, list) and len(result) == 1 and isinstance(result[0], (dict, list)):
        body = result[0]

    supply_raw: Any = None
    if isinstance(body, dict):
        name_raw, symbol_raw, decimals_raw = body.get("name"), body.get("symbol"), body.get("decimals")
        supply_raw = body.get("supply")
    elif isinstance(body, list) and len(body) >= 3:
        name_raw, symbol_raw, decimals_raw = body[0], body[1], body[2]
        if len(body) >= 4:
            supply_raw = body[3]
    else:
        return _unavailable(view, "unexpected shape", result)

    name, symbol, decimals = _decode_text(name_raw), _decode_text(symbol_raw), _to_int(decimals_raw)
    if not name or not symbol or decimals is None:
        return _unavailable(view, "name, symbol or decimals missing", result)

    if isinstance(supply_raw, dict):
        # Option<u128> is serialized as {"vec": []} or {"vec": ["123"]}
        supply_raw = supply_raw.get("vec") or None
    supply = _to_int(_unwrap(supply_raw)) if supply_raw is not None else None
    return CoinInfo(name=name, symbol=symbol, decimals=decimals, supply=supply)
