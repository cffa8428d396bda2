"""Custom exception classes for the billing engine.

Validation errors carry a stable ``code`` so callers can show them to the
user directly. Storage errors are a separate branch: generation can be
retried safely, custom charges cannot (they have no idempotency key).
"""


class BillingError(Exception):
    """Base exception for billing errors."""

    code = "billing_error"

    def __init__(self, message: str | None = None):
        self.message = message or self.__doc__.strip().splitlines()[0]
        super().__init__(self.message)


class BillingValidationError(BillingError):
    """Input failed validation."""

    code = "validation_error"


class InvalidAmount(BillingValidationError):
    """Amount must be a positive number."""

    code = "invalid_amount"


class MissingDescription(BillingValidationError):
    """Description is required."""

    code = "missing_description"


class MissingDueDate(BillingValidationError):
    """Due date is required."""

    code = "missing_due_date"


class InvalidDateFormat(BillingValidationError):
    """Due date must be a calendar date in YYYY-MM-DD format."""

    code = "invalid_date_format"


class NoMembersSelected(BillingValidationError):
    """At least one member must be selected."""

    code = "no_members_selected"


class NoActiveMonths(BillingValidationError):
    """Fee settings are inactive or have no active months."""

    code = "no_active_months"


class EmptyMemberList(BillingValidationError):
    """No eligible members to bill."""

    code = "empty_member_list"


class InvalidMonths(BillingValidationError):
    """Active months must be unique values between 1 and 12."""

    code = "invalid_months"


class InvalidCurrency(BillingValidationError):
    """Currency code must be three letters."""

    code = "invalid_currency"


class InvalidYear(BillingValidationError):
    """Year is out of range."""

    code = "invalid_year"


class NotFoundError(BillingError):
    """Requested record does not exist."""

    code = "not_found"


class FeeSettingsNotFound(NotFoundError):
    """Club has no fee settings."""

    code = "fee_settings_not_found"


class ChargeNotFound(NotFoundError):
    """Charge not found for this member."""

    code = "charge_not_found"


class StorageError(BillingError):
    """Storage backend failed (connection, unexpected constraint violation, etc.)."""

    code = "storage_error"


__all__ = [
    "BillingError",
    "BillingValidationError",
    "InvalidAmount",
    "MissingDescription",
    "MissingDueDate",
    "InvalidDateFormat",
    "NoMembersSelected",
    "NoActiveMonths",
    "EmptyMemberList",
    "InvalidMonths",
    "InvalidCurrency",
    "InvalidYear",
    "NotFoundError",
    "FeeSettingsNotFound",
    "ChargeNotFound",
    "StorageError",
]
