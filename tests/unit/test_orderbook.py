"""
tests/unit/test_orderbook.py - Tests for dex/orderbook.py
"""

import pytest
from decimal import Decimal

from conftest import make_book
from core.constants import OrderSide
from core.exceptions import ValidationError
from core.models import OrderBookLevel
from dex import orderbook


@pytest.fixture
def book():
    return make_book(
        "0xAAA",
        "0xBBB",
        bids=[("1.0450", 300), ("1.0440", 100), ("1.0430", 600)],
        asks=[("1.0451", 200), ("1.0460", 400)],
    )


class TestBestPrices:
    def test_best_bid_ask(self, book):
        assert orderbook.best_bid(book).price == Decimal("1.045")
        assert orderbook.best_ask(book).price == Decimal("1.0451")

    def test_spread(self, book):
        assert orderbook.spread(book) == Decimal("0.0001")

    def test_spread_percent(self, book):
        """bid 1.0450 / ask 1.0451 -> ~0.0096%."""
        pct = orderbook.spread_percent(book)
        assert abs(pct - Decimal("0.0096")) < Decimal("0.0001")

    def test_mid_price(self, book):
        assert orderbook.mid_price(book) == Decimal("1.04505")

    def test_empty_side_means_no_market(self):
        one_sided = make_book("0xAAA", "0xBBB", bids=[("1.0", 10)])
        assert orderbook.best_ask(one_sided) is None
        assert not orderbook.has_market(one_sided)
        assert orderbook.spread(one_sided) == Decimal("0")
        assert orderbook.spread_percent(one_sided) == Decimal("0")
        assert orderbook.mid_price(one_sided) is None


class TestDepth:
    def test_cumulative_total(self, book):
        assert orderbook.cumulative_total(book.bids, 0) == 300
        assert orderbook.cumulative_total(book.bids, 2) == 1000
        assert orderbook.cumulative_total(book.bids, -1) == 0

    def test_depth_rows_bars_relative_to_largest_visible(self, book):
        rows = orderbook.depth_rows(book.bids, count=2, base_decimals=0)
        assert len(rows) == 2
        assert rows[0].bar_percent == Decimal("100")
        assert rows[1].bar_percent == Decimal(100) / Decimal(300) * 100
        assert rows[1].total == Decimal("400")

    def test_depth_rows_never_past_count(self, book):
        assert len(orderbook.depth_rows(book.bids, count=10)) == 3
        assert orderbook.depth_rows(book.bids, count=0) == []

    def test_depth_rows_zero_sizes(self):
        rows = orderbook.depth_rows([OrderBookLevel(1_000_000, 0)], count=5)
        assert rows[0].bar_percent == Decimal("0")

    def test_negative_count_rejected(self, book):
        with pytest.raises(ValidationError):
            orderbook.depth_rows(book.bids, count=-1)


class TestPriceClick:
    def test_ask_click_prefills_sell(self, book):
        click = orderbook.price_click(book, "ask", 1)
        assert click.side == OrderSide.SELL
        assert click.price == Decimal("1.046")

    def test_bid_click_prefills_buy(self, book):
        click = orderbook.price_click(book, "bid", 0)
        assert click.side == OrderSide.BUY
        assert click.price == Decimal("1.045")

    def test_out_of_range(self, book):
        assert orderbook.price_click(book, "ask", 5) is None

    def test_unknown_side(self, book):
        with pytest.raises(ValidationError):
            orderbook.price_click(book, "middle", 0)
