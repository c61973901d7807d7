"""
tests/unit/test_price_series.py - Tests for monitoring/price_series.py
"""

from decimal import Decimal

from monitoring.price_series import PricePoint, Timeframe, in_timeframe, price_change

HOUR_MS = 60 * 60 * 1000


def points(*prices):
    return [PricePoint(timestamp_ms=i * HOUR_MS, price=Decimal(p)) for i, p in enumerate(prices)]


class TestPriceChange:
    def test_last_two_points(self):
        change = price_change(points("12.00", "12.40", "12.45"))
        assert change.current == Decimal("12.45")
        assert change.previous == Decimal("12.40")
        assert change.change == Decimal("0.05")
        assert change.is_positive
        assert change.describe() == "+0.0500 (+0.40%)"

    def test_negative(self):
        change = price_change(points("12.45", "12.40"))
        assert not change.is_positive
        assert change.describe() == "-0.0500 (-0.40%)"

    def test_single_point(self):
        change = price_change(points("12.45"))
        assert change.change == Decimal("0")
        assert change.change_percent == Decimal("0")

    def test_empty(self):
        change = price_change([])
        assert (change.current, change.previous, change.change) == (0, 0, 0)

    def test_zero_previous(self):
        assert price_change(points("0", "1")).change_percent == Decimal("0")


class TestTimeframe:
    def test_labels(self):
        assert [t.value for t in Timeframe] == ["1H", "24H", "7D"]
        assert Timeframe.DAY.window_ms == 24 * HOUR_MS

    def test_window(self):
        series = [PricePoint(timestamp_ms=t, price=Decimal("1")) for t in (0, 30 * HOUR_MS, 47 * HOUR_MS)]
        recent = in_timeframe(series, Timeframe.DAY, current_ms=48 * HOUR_MS)
        assert [p.timestamp_ms for p in recent] == [30 * HOUR_MS, 47 * HOUR_MS]
        assert len(in_timeframe(series, Timeframe.WEEK, current_ms=48 * HOUR_MS)) == 3
        assert in_timeframe(series, Timeframe.HOUR, current_ms=48 * HOUR_MS)[0].timestamp_ms == 47 * HOUR_MS
