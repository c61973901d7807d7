# PATH: core/time.py
"""
Time utilities for DUET.

Freshness rules for venue snapshots and ranked opportunities.
"""

import time
from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """Get current UTC datetime as ISO string."""
    return now_utc().isoformat()


def now_ms() -> int:
    """Get current Unix timestamp in milliseconds."""
    return int(time.time() * 1000)


def age_ms(timestamp_ms: int, current_ms: Optional[int] = None) -> int:
    current = now_ms() if current_ms is None else current_ms
    return current - timestamp_ms


def is_fresh(
    timestamp_ms: int,
    max_age_ms: int,
    current_ms: Optional[int] = None,
) -> bool:
    """
    Check if a millisecond timestamp is within max_age_ms.

    Args:
        timestamp_ms: Timestamp to check
        max_age_ms: Maximum allowed age
        current_ms: Current time (defaults to now)

    Returns:
        True if timestamp is fresh. A timestamp from the future is
        treated as fresh.
    """
    return age_ms(timestamp_ms, current_ms) <= max_age_ms
