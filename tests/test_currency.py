"""
Unit tests for rate resolution and amount conversion.
"""

import math

import pytest

from currency_swap.currency import (
    CURRENCY_OPTIONS,
    CURRENCY_RATE,
    convert_forward,
    convert_inverse,
    format_output_amount,
    parse_amount,
    resolve_rate,
)


class TestResolveRate:
    def test_same_currency_is_one_without_lookup(self):
        assert resolve_rate("XXX", "XXX", {}) == 1

    def test_quotient_of_table_rates(self):
        rate = resolve_rate("MYR", "EUR", CURRENCY_RATE)
        assert rate == pytest.approx(0.899038 / 4.375)

    def test_missing_currency_is_unavailable(self):
        assert resolve_rate("MYR", "XXX", CURRENCY_RATE) is None
        assert resolve_rate("XXX", "MYR", CURRENCY_RATE) is None

    def test_non_positive_rate_is_unavailable(self):
        assert resolve_rate("A", "B", {"A": 0.0, "B": 2.0}) is None
        assert resolve_rate("A", "B", {"A": 1.0, "B": -2.0}) is None

    @pytest.mark.parametrize("a", CURRENCY_OPTIONS)
    def test_inverse_consistency(self, a):
        for b in CURRENCY_OPTIONS:
            product = resolve_rate(a, b, CURRENCY_RATE) * resolve_rate(b, a, CURRENCY_RATE)
            assert product == pytest.approx(1.0)


class TestFormatOutputAmount:
    @pytest.mark.parametrize("value, expected", [
        (0.0, ""),
        (100.0, "100"),
        (1.5, "1.5"),
        (1 / 3, "0.333333"),
        (2.0000004, "2"),
        (1e-9, "0"),
        (math.nan, ""),
        (math.inf, ""),
    ])
    def test_formatting(self, value, expected):
        assert format_output_amount(value) == expected

    def test_large_integer_has_no_exponent(self):
        assert format_output_amount(1e20) == "100000000000000000000"


class TestParseAmount:
    def test_empty_is_zero(self):
        assert parse_amount("") == 0

    def test_partial_decimal(self):
        assert parse_amount("12.") == 12

    def test_lone_point_is_nan(self):
        assert math.isnan(parse_amount("."))


class TestConvert:
    def test_forward_myr_to_eur(self):
        # 100 MYR → USD → EUR
        result = convert_forward("100", "MYR", "EUR", CURRENCY_RATE)
        assert float(result) == pytest.approx(100 / 4.375 * 0.899038, abs=1e-6)

    def test_inverse_myr_to_eur(self):
        result = convert_inverse("100", "MYR", "EUR", CURRENCY_RATE)
        assert float(result) == pytest.approx(100 / 0.899038 * 4.375, abs=1e-6)

    def test_empty_and_zero_convert_to_empty(self):
        assert convert_forward("", "MYR", "EUR", CURRENCY_RATE) == ""
        assert convert_forward("0", "MYR", "EUR", CURRENCY_RATE) == ""

    def test_unavailable_rate_returns_none(self):
        assert convert_forward("100", "MYR", "XXX", CURRENCY_RATE) is None
        assert convert_inverse("100", "MYR", "XXX", CURRENCY_RATE) is None

    def test_unparseable_text_returns_none(self):
        assert convert_forward(".", "MYR", "EUR", CURRENCY_RATE) is None

    def test_round_trip(self):
        forward = convert_forward("250", "MYR", "IDR", CURRENCY_RATE)
        back = convert_inverse(forward, "MYR", "IDR", CURRENCY_RATE)
        assert float(back) == pytest.approx(250, abs=1e-5)

    def test_very_large_amount_stays_finite(self):
        result = convert_forward("1000000000", "MYR", "EUR", CURRENCY_RATE)
        assert math.isfinite(float(result))
