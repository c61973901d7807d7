# PATH: core/validators.py
"""
Input validators for DUET.

Everything here runs BEFORE any external call. A rejected input never
reaches the signer or the node.

CONTRACTS:
- validate_fee_tier(): only tiers in FEE_TIERS
- validate_token_id(): 0x-address, optionally followed by ::module::Struct
- validate_distinct_tokens(): a pool needs two different tokens
- require_wallet(): connected account address or WALLET_NOT_CONNECTED

USAGE:
    from core.validators import validate_fee_tier, validate_distinct_tokens

    fee_tier = validate_fee_tier(5)
    validate_distinct_tokens(token_a, token_b)
"""

import re
from typing import Optional, Union

from core.constants import FEE_TIERS, OrderSide
from core.exceptions import ErrorCode, ValidationError

# 0x-prefixed account address, optional ::module::Struct suffix (coin type)
TOKEN_ID_PATTERN = re.compile(
    r"^0x[0-9a-fA-F]{1,64}(::[A-Za-z_][A-Za-z0-9_]*::[A-Za-z_][A-Za-z0-9_]*)?$"
)

ACCOUNT_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{1,64}$")


def validate_fee_tier(fee_tier: int) -> int:
    """Fee tier must be one of FEE_TIERS (basis points)."""
    if isinstance(fee_tier, bool) or not isinstance(fee_tier, int) or fee_tier not in FEE_TIERS:
        raise ValidationError(
            f"Unsupported fee tier: {fee_tier!r}",
            details={"fee_tier": repr(fee_tier), "allowed": list(FEE_TIERS)},
            code=ErrorCode.INVALID_FEE_TIER,
        )
    return int(fee_tier)


def validate_token_id(token_id: str, field: str = "token") -> str:
    """Validate an on-chain token identifier (address or coin type)."""
    if not isinstance(token_id, str) or not TOKEN_ID_PATTERN.match(token_id):
        raise ValidationError(
            f"Invalid token identifier for {field}: {token_id!r}",
            details={"field": field, "value": repr(token_id)},
        )
    return token_id


def validate_account_address(address: str, field: str = "address") -> str:
    if not isinstance(address, str) or not ACCOUNT_ADDRESS_PATTERN.match(address):
        raise ValidationError(
            f"Invalid account address for {field}: {address!r}",
            details={"field": field, "value": repr(address)},
        )
    return address


def validate_distinct_tokens(token_a: str, token_b: str) -> None:
    """Reject a pair made of the same token twice."""
    if token_a == token_b:
        raise ValidationError(
            "Cannot use the same token on both sides",
            details={"token_a": token_a, "token_b": token_b},
            code=ErrorCode.IDENTICAL_TOKENS,
        )


def validate_order_side(side: Union[int, OrderSide]) -> OrderSide:
    """Order side must be 0 (buy) or 1 (sell)."""
    if isinstance(side, bool):
        raise ValidationError(f"Invalid order side: {side!r}", details={"side": repr(side)})
    try:
        return OrderSide(side)
    except ValueError:
        raise ValidationError(
            f"Invalid order side: {side!r}",
            details={"side": repr(side), "allowed": [s.value for s in OrderSide]},
        )


def require_wallet(address: Optional[str]) -> str:
    """Return the connected account address or raise WALLET_NOT_CONNECTED."""
    if not address:
        raise ValidationError(
            "Wallet is not connected",
            code=ErrorCode.WALLET_NOT_CONNECTED,
        )
    return validate_account_address(address, field="wallet")
