"""
tests/unit/test_amm.py - Tests for dex/amm.py and dex/venue.py
"""

import pytest
from decimal import Decimal

from conftest import make_book, make_pool
from core.constants import VenueKind
from core.exceptions import ErrorCode, RoutingError, ValidationError
from dex import amm
from dex.venue import AmmVenue, ClobVenue, venue_for


@pytest.fixture
def pool():
    # 1000 X against 1045 Y, both 8 decimals
    return make_pool("0xAAA", "0xBBB", 1000 * 10**8, 1045 * 10**8, fee_tier=30)


class TestMidPrice:
    def test_y_per_x(self, pool):
        assert amm.mid_price(pool) == Decimal("1.045")

    def test_decimals_adjusted(self):
        # 10 X (8 dec) against 125 Y (6 dec)
        pool = make_pool("0xAAA", "0xBBB", 10 * 10**8, 125 * 10**6, decimals_a=8, decimals_b=6)
        assert amm.mid_price(pool) == Decimal("12.5")

    def test_empty_pool_has_no_price(self):
        assert amm.mid_price(make_pool("0xAAA", "0xBBB", 0, 100)) is None

    def test_price_of_inverts_for_token_y(self, pool):
        assert amm.price_of(pool, "0xAAA") == Decimal("1.045")
        assert amm.price_of(pool, "0xBBB") == Decimal(1) / Decimal("1.045")

    def test_price_of_unknown_token(self, pool):
        with pytest.raises(ValidationError) as exc_info:
            amm.price_of(pool, "0xCCC")
        assert exc_info.value.code == ErrorCode.UNKNOWN_TOKEN


class TestQuote:
    def test_constant_product_with_fee(self):
        pool = make_pool("0xAAA", "0xBBB", 1_000_000, 1_000_000, fee_tier=30)
        # in_after_fee = 997; out = 1_000_000 * 997 // 1_000_997
        assert amm.quote_exact_in(pool, 1000, x_to_y=True) == 996

    def test_direction(self):
        pool = make_pool("0xAAA", "0xBBB", 1_000_000, 2_000_000, fee_tier=5)
        x_to_y = amm.quote_exact_in(pool, 1000, x_to_y=True)
        y_to_x = amm.quote_exact_in(pool, 1000, x_to_y=False)
        assert x_to_y > y_to_x

    def test_dust_after_fee(self):
        pool = make_pool("0xAAA", "0xBBB", 1_000_000, 1_000_000, fee_tier=30)
        assert amm.quote_exact_in(pool, 1, x_to_y=True) == 0

    def test_empty_pool_raises(self):
        pool = make_pool("0xAAA", "0xBBB", 0, 0)
        with pytest.raises(RoutingError) as exc_info:
            amm.quote_exact_in(pool, 1000, x_to_y=True)
        assert exc_info.value.code == ErrorCode.INSUFFICIENT_LIQUIDITY

    def test_price_impact(self):
        pool = make_pool("0xAAA", "0xBBB", 1_000_000, 1_000_000)
        impact = amm.price_impact_percent(pool, 1000, x_to_y=True)
        assert Decimal("0.099") < impact < Decimal("0.1")

    def test_price_impact_zero_amount(self, pool):
        assert amm.price_impact_percent(pool, 0, x_to_y=True) is None


class TestLiquidityMath:
    def test_expected_liquidity_geometric_mean(self):
        assert amm.expected_liquidity(100, 400) == 200
        assert amm.expected_liquidity(2, 3) == 2

    def test_liquidity_to_remove(self):
        assert amm.liquidity_to_remove(1000, 25) == 250
        assert amm.liquidity_to_remove(1000, "33.3") == 333
        assert amm.liquidity_to_remove(1000, 100) == 1000

    def test_liquidity_to_remove_over_100(self):
        with pytest.raises(ValidationError):
            amm.liquidity_to_remove(1000, 101)


class TestVenue:
    def test_amm_venue(self, pool):
        venue = venue_for(pool)
        assert isinstance(venue, AmmVenue)
        assert venue.kind == VenueKind.AMM
        assert venue.mid_price() == Decimal("1.045")

    def test_amm_venue_with_base(self, pool):
        assert AmmVenue(pool, base="0xBBB").mid_price() == Decimal(1) / Decimal("1.045")

    def test_clob_venue(self):
        book = make_book("0xAAA", "0xBBB", bids=[("12.45", 1)], asks=[("12.50", 1)])
        venue = venue_for(book)
        assert isinstance(venue, ClobVenue)
        assert venue.kind == VenueKind.CLOB
        assert venue.mid_price() == Decimal("12.475")

    def test_not_a_snapshot(self):
        with pytest.raises(TypeError):
            venue_for("pool")
