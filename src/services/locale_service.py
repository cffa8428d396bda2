"""Centralized locale service for currency and date formatting.

Single source of truth for locale-related operations in billing messages.
Uses babel library.

Configuration:
    LOCALE env var (default: en_US) - determines number/date formatting and
    the translation catalog language

Example:
    >>> from src.services.locale_service import format_amount
    >>> format_amount(Decimal("1234.5"), "USD")
    '$1,234.50'
"""

import logging
import os
from datetime import date, datetime
from decimal import Decimal

from babel import Locale, UnknownLocaleError
from babel.dates import format_date as babel_format_date
from babel.numbers import format_currency as babel_format_currency
from babel.numbers import format_decimal as babel_format_decimal
from babel.numbers import get_territory_currencies

logger = logging.getLogger(__name__)

# Default locale if LOCALE env var is invalid or missing
DEFAULT_LOCALE = "en_US"

# Amounts are always shown with exactly two fractional digits,
# whatever the currency's own minor unit is
AMOUNT_PATTERN = "#,##0.00"
CURRENCY_PATTERN = "¤" + AMOUNT_PATTERN


def _get_locale() -> str:
    """Get locale from environment with validation and fallback.

    Returns:
        Valid locale string (e.g., 'en_US')
    """
    locale_str = os.getenv("LOCALE", DEFAULT_LOCALE)
    try:
        Locale.parse(locale_str)
        return locale_str
    except (UnknownLocaleError, ValueError) as e:
        logger.warning(f"Invalid LOCALE '{locale_str}': {e}. Falling back to '{DEFAULT_LOCALE}'")
        return DEFAULT_LOCALE


def _get_currency_from_locale(locale_str: str) -> str:
    """Derive currency code from locale territory, USD if it has none."""
    try:
        territory = Locale.parse(locale_str).territory
        if territory:
            currencies = get_territory_currencies(territory)
            if currencies:
                return currencies[0]
    except (UnknownLocaleError, ValueError) as e:
        logger.warning(f"Could not derive currency from locale '{locale_str}': {e}")
    return "USD"


# Module-level constants (computed once at import)
LOCALE = _get_locale()
CURRENCY = _get_currency_from_locale(LOCALE)


def get_currency_code() -> str:
    """Get currency code derived from locale.

    Returns:
        ISO 4217 currency code (e.g., 'USD')
    """
    return CURRENCY


def format_amount(amount: Decimal, currency_code: str | None = None) -> str:
    """Format monetary amount with exactly two decimals.

    Args:
        amount: Amount to format
        currency_code: ISO 4217 code; when None the amount is shown without symbol

    Returns:
        Formatted string (e.g., '$1,234.50' or '1,234.50')

    Example:
        >>> format_amount(Decimal("30"), "USD")
        '$30.00'
        >>> format_amount(Decimal("30"))
        '30.00'
    """
    if currency_code:
        return babel_format_currency(
            amount,
            currency_code,
            format=CURRENCY_PATTERN,
            locale=LOCALE,
            currency_digits=False,
        )
    return babel_format_decimal(amount, format=AMOUNT_PATTERN, locale=LOCALE)


def format_local_date(value: date | datetime, format: str = "medium") -> str:
    """Format a date according to locale.

    Args:
        value: date or datetime (only the date part is shown)
        format: One of 'full', 'long', 'medium', 'short' or custom pattern

    Example:
        >>> format_local_date(date(2025, 3, 5))
        'Mar 5, 2025'
    """
    if isinstance(value, datetime):
        value = value.date()
    return babel_format_date(value, format=format, locale=LOCALE)


__all__ = [
    "LOCALE",
    "CURRENCY",
    "get_currency_code",
    "format_amount",
    "format_local_date",
]
