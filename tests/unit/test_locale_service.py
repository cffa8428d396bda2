"""Tests for amount/date formatting and translation lookup (LOCALE=en_US)."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from src.services.locale_service import LOCALE, format_amount, format_local_date, get_currency_code
from src.services.localizer import LANGUAGE, t


class TestFormatting:
    """Tests for babel-based formatting."""

    def test_locale_pinned_for_tests(self):
        assert LOCALE == "en_US"
        assert get_currency_code() == "USD"

    @pytest.mark.parametrize(
        "amount,expected",
        [
            (Decimal("30"), "$30.00"),
            (Decimal("1234.5"), "$1,234.50"),
            (Decimal("-30.00"), "-$30.00"),
            (Decimal("0"), "$0.00"),
        ],
    )
    def test_currency_amounts(self, amount, expected):
        assert format_amount(amount, "USD") == expected

    def test_zero_decimal_currency_still_shows_cents(self):
        assert format_amount(Decimal("500"), "JPY").endswith("500.00")

    def test_amount_without_currency(self):
        assert format_amount(Decimal("1234.5")) == "1,234.50"

    def test_date(self):
        assert format_local_date(date(2025, 3, 5)) == "Mar 5, 2025"

    def test_datetime_uses_date_part(self):
        assert format_local_date(datetime(2025, 3, 5, 23, 0, tzinfo=timezone.utc)) == "Mar 5, 2025"


class TestTranslations:
    """Tests for the t() lookup."""

    def test_language(self):
        assert LANGUAGE == "en"

    def test_placeholder_substitution(self):
        assert t("notifications.greeting", member_name="Ana") == "Hello Ana,"

    def test_monthly_fee_description(self):
        assert t("charges.monthly_fee", period="2025-03") == "Monthly fee 2025-03"

    def test_missing_key_returns_key(self):
        assert t("notifications.does_not_exist") == "notifications.does_not_exist"

    def test_non_string_value_returns_key(self):
        assert t("notifications") == "notifications"

    def test_missing_placeholder_returns_template(self):
        assert t("notifications.greeting") == "Hello {member_name},"
