"""Unit tests for integer minor-unit arithmetic."""

from decimal import Decimal

from src.domain.money import apply_rate, format_minor_units, percentage_of, round_half_up


class TestRoundHalfUp:
    def test_exact_division(self):
        assert round_half_up(1500, 1) == 1500

    def test_half_rounds_up(self):
        assert round_half_up(5, 2) == 3  # 2.5 -> 3, not banker's 2

    def test_below_half_rounds_down(self):
        assert round_half_up(Decimal("1077.49")) == 1077

    def test_accepts_strings(self):
        assert round_half_up("1077.5") == 1078


class TestApplyRate:
    def test_rounding_boundary(self):
        # 10.777 mi at 100p/mi = 1077.7 -> 1078
        assert apply_rate(10.777, 100) == 1078

    def test_surge_multiplier(self):
        assert apply_rate(1500, 1.875) == 2813  # 2812.5 -> 2813

    def test_float_rate_has_no_binary_noise(self):
        # 2.675 * 100 is 267.49999999999997 in binary floating point
        assert apply_rate(2.675, 100) == 268

    def test_zero_quantity(self):
        assert apply_rate(0, 10) == 0


class TestPercentageOf:
    def test_return_discount(self):
        assert percentage_of(1500, 15) == 225

    def test_rounds_half_up(self):
        assert percentage_of(1005, 10) == 101  # 100.5 -> 101


class TestFormat:
    def test_pounds(self):
        assert format_minor_units(1500) == "£15.00"

    def test_pence_only(self):
        assert format_minor_units(5, "GBP") == "£0.05"

    def test_unknown_currency_uses_code(self):
        assert format_minor_units(1234, "CHF") == "CHF 12.34"
