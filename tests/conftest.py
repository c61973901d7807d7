# PATH: tests/conftest.py
"""
Pytest configuration and fixtures for DUET tests.
"""

import sys
from itertools import count
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.models import OrderBookLevel, OrderBookSnapshot, PoolKey, PoolSnapshot, Token, TxReceipt  # noqa: E402

APT_TYPE = "0x1::aptos_coin::AptosCoin"
USDC_ADDR = "0xbae207659db88bea0cbead6da0ed00aac12edcdda169e591cd41c94180b46f3b"
WALLET = "0x" + "ab" * 32


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


def make_book(base, quote, bids=(), asks=(), base_decimals=8):
    """Book from (price_str, size_raw) pairs."""
    from core.math import scale_price

    return OrderBookSnapshot(
        base=base,
        quote=quote,
        bids=tuple(OrderBookLevel(scale_price(p), s) for p, s in bids),
        asks=tuple(OrderBookLevel(scale_price(p), s) for p, s in asks),
        base_decimals=base_decimals,
    )


def make_pool(token_a, token_b, reserve_a, reserve_b, fee_tier=30, decimals_a=8, decimals_b=8):
    """Pool snapshot from an unordered pair; reserves follow the given order."""
    key = PoolKey.from_pair(token_a, token_b, fee_tier)
    if key.token_x == token_a:
        return PoolSnapshot(key, reserve_a, reserve_b, decimals_a, decimals_b)
    return PoolSnapshot(key, reserve_b, reserve_a, decimals_b, decimals_a)


@pytest.fixture
def apt():
    return Token(symbol="APT", name="Aptos Coin", address=APT_TYPE, decimals=8)


@pytest.fixture
def usdc():
    return Token(symbol="USDC", name="USD Coin", address=USDC_ADDR, decimals=6)


@pytest.fixture
def wallet():
    return WALLET


@pytest.fixture
def signer():
    """Signer whose every submission succeeds with a fresh hash."""
    hashes = count(1)
    mock = AsyncMock()
    mock.sign_and_submit.side_effect = lambda request: TxReceipt(
        tx_hash=f"0xhash{next(hashes)}", success=True
    )
    return mock
