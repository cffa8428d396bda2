"""Unit tests for parsers module."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from src.services.parsers import parse_amount, parse_iso_date


class TestParseAmount:
    """Tests for parse_amount function."""

    def test_parse_integer(self):
        assert parse_amount(50) == Decimal("50.00")

    def test_parse_decimal_string(self):
        assert parse_amount("50.00") == Decimal("50.00")

    def test_parse_comma_decimal_separator(self):
        assert parse_amount("2,5") == Decimal("2.50")

    def test_parse_with_thousand_spaces(self):
        """Regular and non-breaking spaces are thousand separators."""
        assert parse_amount("1 000,25") == Decimal("1000.25")
        assert parse_amount("1\xa0000.25") == Decimal("1000.25")

    def test_parse_float_keeps_short_representation(self):
        assert parse_amount(0.1) == Decimal("0.10")

    def test_rounds_half_up(self):
        assert parse_amount("10.005") == Decimal("10.01")
        assert parse_amount("10.004") == Decimal("10.00")

    def test_parse_negative(self):
        """Sign checks are left to callers."""
        assert parse_amount("-5") == Decimal("-5.00")

    @pytest.mark.parametrize("value", [None, "", "   ", True])
    def test_empty_input_returns_none(self, value):
        assert parse_amount(value) is None

    @pytest.mark.parametrize("value", ["abc", "12.3.4", "NaN", "Infinity"])
    def test_invalid_input(self, value):
        with pytest.raises(ValueError, match="Cannot parse amount"):
            parse_amount(value)


class TestParseIsoDate:
    """Tests for parse_iso_date function."""

    def test_parse_valid_date(self):
        assert parse_iso_date("2025-12-31") == date(2025, 12, 31)

    def test_parse_strips_whitespace(self):
        assert parse_iso_date(" 2025-06-23 ") == date(2025, 6, 23)

    def test_date_passes_through(self):
        assert parse_iso_date(date(2025, 1, 2)) == date(2025, 1, 2)

    def test_datetime_reduced_to_date(self):
        assert parse_iso_date(datetime(2025, 1, 2, 15, 30)) == date(2025, 1, 2)

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_input_returns_none(self, value):
        assert parse_iso_date(value) is None

    def test_parse_wrong_format(self):
        """Test parsing DD.MM.YYYY raises ValueError."""
        with pytest.raises(ValueError, match="Cannot parse date"):
            parse_iso_date("23.06.2025")

    def test_parse_impossible_date(self):
        with pytest.raises(ValueError, match="Cannot parse date"):
            parse_iso_date("2025-02-30")

    def test_parse_non_string(self):
        with pytest.raises(ValueError, match="Cannot parse date"):
            parse_iso_date(20251231)
