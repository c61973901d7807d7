"""
discovery/registry.py - Token registry.

Known tokens come from config/tokens.yaml; tokens created by a completed
token-creation workflow are added at runtime.

Rules:
1. Identity is the on-chain address (coin type)
2. Adding returns a new registry; the old one is never mutated
3. Re-adding the same token is a no-op
4. A different token under an existing address or symbol is a conflict
"""

from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

from config import load_tokens_config
from core.constants import DEFAULT_TOKEN_DECIMALS
from core.exceptions import ErrorCode, ValidationError
from core.logging import get_logger
from core.models import Token

logger = get_logger(__name__)


class TokenRegistry:
    """
    Immutable set of known tokens.

    Usage:
        registry = load_token_registry()
        registry = registry.add(new_token)
        apt = registry.by_symbol("APT")
    """

    def __init__(self, tokens: Tuple[Token, ...] = ()):
        self._tokens: Tuple[Token, ...] = ()
        self._by_address: Dict[str, Token] = {}
        self._by_symbol: Dict[str, Token] = {}
        for token in tokens:
            self._insert(token)

    def _insert(self, token: Token) -> bool:
        existing = self._by_address.get(token.address)
        if existing is not None:
            if (existing.symbol, existing.name, existing.decimals) != (token.symbol, token.name, token.decimals):
                raise ValidationError(
                    f"Token {token.address} already registered with different metadata",
                    details={"existing": existing.to_dict(), "new": token.to_dict()},
                    code=ErrorCode.TOKEN_CONFLICT,
                )
            return False

        symbol_key = token.symbol.upper()
        if symbol_key in self._by_symbol:
            raise ValidationError(
                f"Symbol {token.symbol} already used by another token",
                details={"symbol": token.symbol, "address": self._by_symbol[symbol_key].address},
                code=ErrorCode.TOKEN_CONFLICT,
            )

        self._tokens = self._tokens + (token,)
        self._by_address[token.address] = token
        self._by_symbol[symbol_key] = token
        return True

    @property
    def tokens(self) -> Tuple[Token, ...]:
        return self._tokens

    def add(self, token: Token) -> "TokenRegistry":
        """Return a registry that also contains token."""
        if self._by_address.get(token.address) == token:
            self._insert(token)  # raises on metadata conflict
            return self
        registry = TokenRegistry(self._tokens + (token,))
        logger.info(
            f"Token registered: {token.symbol}",
            extra={"context": {"address": token.address, "decimals": token.decimals}},
        )
        return registry

    def get(self, address: str) -> Optional[Token]:
        return self._by_address.get(address)

    def by_symbol(self, symbol: str) -> Optional[Token]:
        return self._by_symbol.get(symbol.upper())

    def require(self, symbol: str) -> Token:
        token = self.by_symbol(symbol)
        if token is None:
            raise ValidationError(
                f"Unknown token symbol: {symbol}",
                details={"symbol": symbol},
                code=ErrorCode.UNKNOWN_TOKEN,
            )
        return token

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Token):
            return item.address in self._by_address
        return item in self._by_address


def load_token_registry(path: Optional[Path] = None) -> TokenRegistry:
    """
    Build a registry from tokens.yaml.

    Args:
        path: Explicit tokens file (default: config/tokens.yaml)
    """
    data = load_tokens_config(path)
    tokens = []
    for entry in data.get("tokens") or []:
        tokens.append(
            Token(
                symbol=str(entry["symbol"]),
                name=str(entry.get("name", entry["symbol"])),
                address=str(entry["address"]),
                decimals=int(entry.get("decimals", DEFAULT_TOKEN_DECIMALS)),
            )
        )
    registry = TokenRegistry(tuple(tokens))
    logger.debug(f"Loaded {len(registry)} tokens")
    return registry
