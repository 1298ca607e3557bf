"""
Test Group: Decimal Utilities

Parse-or-zero conversion, two-decimal form formatting, summation and the
date formats used by saved forms and the XML return.
"""

import pytest
from datetime import date
from decimal import Decimal

from dpfo.utils.type_utils import (
    ZERO, format_amount, format_date_sk, parse_date, safe_decimal, sum_decimals, to_decimal,
)

D = Decimal


class TestSafeDecimal:
    """Tolerant conversion with an explicit default."""

    @pytest.mark.parametrize("raw,expected", [
        ("12.34", D("12.34")),
        ("12,34", D("12.34")),
        ("1,234.56", D("1234.56")),
        ("1.234,56", D("1234.56")),
        ("1.234.567,8", D("1234567.8")),
        (" 1 234,56 ", D("1234.56")),
        ("1 234,56", D("1234.56")),
        (15, D("15")),
        (0.1, D("0.1")),
    ])
    def test_parses_common_notations(self, raw, expected):
        assert safe_decimal(raw) == expected

    def test_returns_default_for_garbage(self):
        assert safe_decimal("abc", default=D("7")) == D("7")
        assert safe_decimal("", default=ZERO) == ZERO
        assert safe_decimal(None) is None

    def test_booleans_are_not_amounts(self):
        assert safe_decimal(True, default=ZERO) == ZERO

    def test_raise_error_propagates(self):
        from decimal import InvalidOperation
        with pytest.raises(InvalidOperation):
            safe_decimal("12abc", raise_error=True)


class TestToDecimal:
    """The single parse-or-zero boundary function."""

    @pytest.mark.parametrize("raw", ["", None, "abc", "NaN", "Infinity", "-inf"])
    def test_invalid_or_non_finite_is_zero(self, raw):
        assert to_decimal(raw) == ZERO

    def test_keeps_full_precision(self):
        assert to_decimal("0.123456789") == D("0.123456789")


class TestFormatAmount:
    """Form amounts: exactly two decimals, half-up, never -0.00."""

    @pytest.mark.parametrize("raw,expected", [
        (D("2.345"), "2.35"),
        (D("2.344"), "2.34"),
        ("1,5", "1.50"),
        (D("1000"), "1000.00"),
        (D("-12.5"), "-12.50"),
        ("", "0.00"),
        ("garbage", "0.00"),
    ])
    def test_formatting(self, raw, expected):
        assert format_amount(raw) == expected

    def test_negative_zero_is_normalized(self):
        assert format_amount(D("-0.001")) == "0.00"
        assert format_amount(D("-0")) == "0.00"

    def test_no_exponent_notation(self):
        assert format_amount(D("1E+3")) == "1000.00"


class TestSumDecimals:
    def test_sums_and_skips_unparsable(self):
        items = [{"a": "1"}, {"a": "x"}, {"a": "2.5"}, {"a": None}]
        assert sum_decimals(items, lambda item: item["a"]) == D("3.5")

    def test_empty_is_zero(self):
        assert sum_decimals([], lambda item: item) == ZERO


class TestDates:
    @pytest.mark.parametrize("raw", ["2023-12-31", "31.12.2023", "20231231", "2023-12-31T10:00:00"])
    def test_parse_date_formats(self, raw):
        assert parse_date(raw) == date(2023, 12, 31)

    def test_parse_date_invalid_returns_default(self):
        assert parse_date("not a date") is None
        assert parse_date("", default=date(2025, 1, 1)) == date(2025, 1, 1)

    def test_parse_date_passes_dates_through(self):
        assert parse_date(date(2024, 2, 15)) == date(2024, 2, 15)

    def test_format_date_sk(self):
        assert format_date_sk(date(2024, 3, 1)) == "01.03.2024"
        assert format_date_sk(None) == ""
