# PATH: core/exceptions.py
"""
Typed exceptions for DUET.

Three failure classes are kept apart:
- input validation (raised before any external call)
- external-call failures (submission rejected, view call errors)
- stale or malformed venue data
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Error codes carried by every DuetError."""
    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_DECIMALS = "INVALID_DECIMALS"
    INVALID_PRICE = "INVALID_PRICE"
    INVALID_FEE_TIER = "INVALID_FEE_TIER"
    INVALID_SLIPPAGE = "INVALID_SLIPPAGE"
    IDENTICAL_TOKENS = "IDENTICAL_TOKENS"
    UNKNOWN_TOKEN = "UNKNOWN_TOKEN"
    TOKEN_CONFLICT = "TOKEN_CONFLICT"
    WALLET_NOT_CONNECTED = "WALLET_NOT_CONNECTED"

    # Venue data
    SNAPSHOT_MALFORMED = "SNAPSHOT_MALFORMED"
    BOOK_CROSSED = "BOOK_CROSSED"
    BOOK_UNORDERED = "BOOK_UNORDERED"
    POOL_NOT_CANONICAL = "POOL_NOT_CANONICAL"
    OPPORTUNITY_STALE = "OPPORTUNITY_STALE"

    # Routing
    NO_QUOTE = "NO_QUOTE"
    ROUTE_UNSUPPORTED = "ROUTE_UNSUPPORTED"
    INSUFFICIENT_LIQUIDITY = "INSUFFICIENT_LIQUIDITY"

    # Execution
    SUBMISSION_FAILED = "SUBMISSION_FAILED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    WORKFLOW_STEP_FAILED = "WORKFLOW_STEP_FAILED"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    POSITION_NOT_FOUND = "POSITION_NOT_FOUND"

    # Infrastructure
    INFRA_HTTP_ERROR = "INFRA_HTTP_ERROR"
    INFRA_TIMEOUT = "INFRA_TIMEOUT"
    VIEW_CALL_FAILED = "VIEW_CALL_FAILED"

    UNKNOWN = "UNKNOWN"


class DuetError(Exception):
    """Base exception for DUET."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.UNKNOWN,
        message: str = "",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DuetError):
    """Rejected input. Never reaches an external collaborator."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(code=code, message=message, details=details)


class SnapshotError(DuetError):
    """Venue snapshot is malformed, crossed, or stale."""
    pass


class RoutingError(DuetError):
    """No executable route for the request."""
    pass


class ExecutionError(DuetError):
    """Submission or workflow failure."""
    pass


class InfraError(DuetError):
    """Node/network errors (HTTP, timeouts)."""
    pass
