"""Input parsing utilities for amounts and dates coming from forms and API calls.

Handles:
- Amounts as Decimal, int, float or string ("50", "50.00", "1 000,25")
- Due dates as date objects or ISO strings ("2025-12-31")

Example:
    >>> parse_amount("1 000,25")
    Decimal('1000.25')

    >>> parse_amount(50)
    Decimal('50.00')

    >>> parse_iso_date("2025-12-31")
    datetime.date(2025, 12, 31)
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from src.models.billing import quantize_amount

AmountInput = Union[Decimal, int, float, str, None]
DateInput = Union[date, str, None]


def parse_amount(value: AmountInput) -> Optional[Decimal]:
    """
    Parse a monetary amount to a Decimal rounded to 2 places.

    Strings may use a comma as decimal separator and spaces as thousand
    separators. Floats go through str() so 0.1 stays 0.10.

    Args:
        value: Amount as Decimal/int/float/str, or None/empty

    Returns:
        Decimal with two fractional digits, or None if input is empty

    Raises:
        ValueError: If value cannot be parsed as a finite number

    Examples:
        >>> parse_amount("50")
        Decimal('50.00')
        >>> parse_amount("2,5")
        Decimal('2.50')
        >>> parse_amount("")
        None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        # Handle both regular spaces and non-breaking spaces (U+00A0)
        value = value.replace(" ", "").replace("\xa0", "").replace(",", ".")
    elif isinstance(value, float):
        value = str(value)

    try:
        amount = Decimal(value)
    except (ValueError, InvalidOperation) as e:
        raise ValueError(f"Cannot parse amount '{value}': {e}") from e

    if not amount.is_finite():
        raise ValueError(f"Cannot parse amount '{value}': not a finite number")

    return quantize_amount(amount)


def parse_iso_date(value: DateInput) -> Optional[date]:
    """Parse an ISO calendar date.

    Handles format: "YYYY-MM-DD" (e.g., "2025-12-31"). datetime values are
    reduced to their date part.

    Args:
        value: date object, "YYYY-MM-DD" string, or None/empty

    Returns:
        datetime.date object or None if input is empty

    Raises:
        ValueError: If date format is invalid

    Examples:
        >>> parse_iso_date("2025-06-23")
        datetime.date(2025, 6, 23)
        >>> parse_iso_date("")
        None
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Cannot parse date {value!r} (expected YYYY-MM-DD)")

    value = value.strip()
    if not value:
        return None

    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValueError(f"Cannot parse date '{value}' (expected YYYY-MM-DD): {e}") from e
