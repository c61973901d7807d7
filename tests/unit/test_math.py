"""
tests/unit/test_math.py - Tests for core/math.py

Critical tests for:
- Human <-> raw unit scaling (floor, exactness)
- Price fixed-point scaling
- Slippage guard
- Input rejection (negative, non-numeric, bad decimals)
"""

import pytest
from decimal import Decimal

from core.exceptions import ErrorCode, ValidationError
from core.math import (
    apply_slippage,
    bps_to_fraction,
    human_decimal,
    parse_amount,
    parse_raw,
    percent_of,
    scale_price,
    to_human_units,
    to_raw_units,
    unscale_price,
    validate_decimals,
    validate_slippage,
)


class TestToRawUnits:
    """Human -> raw conversion."""

    def test_whole_and_fraction(self):
        assert to_raw_units("1.5", 8) == "150000000"

    def test_floors_excess_precision(self):
        """Fractional raw units are floored, never rounded up."""
        assert to_raw_units("0.123456789", 6) == "123456"
        assert to_raw_units("0.9999999", 6) == "999999"

    def test_zero_decimals(self):
        assert to_raw_units("42.9", 0) == "42"

    def test_int_and_decimal_input(self):
        assert to_raw_units(3, 6) == "3000000"
        assert to_raw_units(Decimal("0.01"), 2) == "1"

    def test_large_amount_is_exact(self):
        """No float precision loss on long amounts."""
        assert to_raw_units("123456789012345678.12345678", 8) == "12345678901234567812345678"

    def test_max_decimals(self):
        assert to_raw_units("1", 32) == "1" + "0" * 32

    def test_negative_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            to_raw_units("-1", 8)
        assert exc_info.value.code == ErrorCode.INVALID_AMOUNT

    @pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity", None, True])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(ValidationError) as exc_info:
            to_raw_units(value, 8)
        assert exc_info.value.code == ErrorCode.INVALID_AMOUNT

    @pytest.mark.parametrize("decimals", [-1, 33, 1.5, "8"])
    def test_bad_decimals_rejected(self, decimals):
        with pytest.raises(ValidationError) as exc_info:
            to_raw_units("1", decimals)
        assert exc_info.value.code == ErrorCode.INVALID_DECIMALS


class TestToHumanUnits:
    """Raw -> human conversion."""

    def test_fixed_point_string(self):
        assert to_human_units("150000000", 8) == "1.50000000"

    def test_zero_decimals(self):
        assert to_human_units(42, 0) == "42"

    def test_small_raw(self):
        assert to_human_units(1, 6) == "0.000001"

    def test_negative_raw_rejected(self):
        with pytest.raises(ValidationError):
            to_human_units(-5, 6)

    def test_human_decimal(self):
        assert human_decimal(1_045_000, 6) == Decimal("1.045")


class TestRoundTrip:
    """to_human(to_raw(a)) recovers a within one floor unit."""

    @pytest.mark.parametrize(
        "amount,decimals",
        [("1.5", 8), ("0.123456789", 6), ("1000000", 0), ("0.00000001", 8), ("7.77", 2)],
    )
    def test_recovers_within_one_unit(self, amount, decimals):
        back = Decimal(to_human_units(to_raw_units(amount, decimals), decimals))
        unit = Decimal(1).scaleb(-decimals)
        assert back <= Decimal(amount)
        assert Decimal(amount) - back < unit


class TestPriceScaling:
    def test_scale_price(self):
        assert scale_price("12.475") == 12_475_000

    def test_scale_price_floors(self):
        assert scale_price("1.0000009") == 1_000_000

    def test_unscale_price_exact(self):
        assert unscale_price(1_045_100) == Decimal("1.0451")

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            scale_price("-1")


class TestSlippage:
    def test_apply_slippage(self):
        assert apply_slippage(10_000, "0.5") == 9950

    def test_apply_slippage_floors(self):
        assert apply_slippage(999, "0.5") == 994

    def test_zero_slippage(self):
        assert apply_slippage(1234, 0) == 1234

    @pytest.mark.parametrize("pct", ["100", "150", "-0.1", "abc"])
    def test_out_of_range_rejected(self, pct):
        with pytest.raises(ValidationError) as exc_info:
            validate_slippage(pct)
        assert exc_info.value.code == ErrorCode.INVALID_SLIPPAGE


class TestHelpers:
    def test_parse_amount_accepts_str(self):
        assert parse_amount(" 1.25 ") == Decimal("1.25")

    def test_parse_raw_rejects_fraction_string(self):
        with pytest.raises(ValidationError):
            parse_raw("1.5")

    def test_validate_decimals(self):
        assert validate_decimals(8) == 8

    def test_percent_of_zero_whole(self):
        assert percent_of(Decimal("5"), Decimal("0")) == Decimal("0")

    def test_percent_of(self):
        assert percent_of(Decimal("1"), Decimal("4")) == Decimal("25")

    def test_bps_to_fraction(self):
        assert bps_to_fraction(5) == Decimal("0.0005")
        assert bps_to_fraction(30) == Decimal("0.003")
