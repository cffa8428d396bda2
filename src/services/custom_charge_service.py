"""One-off charges against all or a subset of club members.

"Apply to all" is resolved into an explicit member-id snapshot before the
charge is created; the stored charge never refers to "all", so later roster
changes do not alter who owes it.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from src.models.billing import Charge, Member
from src.models.charge import ChargeKind
from src.services.charge_store import ChargeStore
from src.services.errors import (
    InvalidAmount,
    InvalidCurrency,
    InvalidDateFormat,
    MissingDescription,
    MissingDueDate,
    NoMembersSelected,
)
from src.services.fee_settings_store import CURRENCY_RE, FeeSettingsStore
from src.services.parsers import AmountInput, DateInput, parse_amount, parse_iso_date

logger = logging.getLogger(__name__)


class CustomChargeManager:
    """Create custom charges."""

    def __init__(
        self,
        charge_store: ChargeStore,
        fee_settings_store: Optional[FeeSettingsStore] = None,
        default_currency: str = "USD",
    ):
        """Initialize custom charge manager.

        Args:
            charge_store: Store the charges are written to
            fee_settings_store: Used to default the currency to the club's fee currency
            default_currency: Currency used when the club has no fee settings
        """
        self.charge_store = charge_store
        self.fee_settings_store = fee_settings_store
        self.default_currency = default_currency

    @staticmethod
    def resolve_target_user_ids(
        members: Iterable[Member],
        selected_user_ids: Optional[Iterable[str]] = None,
        apply_to_all: bool = False,
    ) -> frozenset[str]:
        """Resolve the member selection into an explicit id set.

        Args:
            members: Current roster
            selected_user_ids: Explicit selection (ignored when apply_to_all)
            apply_to_all: Snapshot every eligible roster member

        Returns:
            Frozen set of member ids
        """
        if apply_to_all:
            return frozenset(member.id for member in members if member.is_eligible)
        return frozenset(selected_user_ids or ())

    def _currency_for(self, club_id: str, currency_code: Optional[str]) -> str:
        if currency_code:
            if not CURRENCY_RE.fullmatch(currency_code):
                raise InvalidCurrency(f"Invalid currency code: {currency_code!r}")
            return currency_code.upper()
        if self.fee_settings_store is not None:
            settings = self.fee_settings_store.find(club_id)
            if settings is not None:
                return settings.currency_code
        return self.default_currency

    def create_custom_charge(
        self,
        club_id: str,
        description: Optional[str],
        amount: AmountInput,
        due_date: DateInput,
        target_user_ids: Iterable[str],
        created_by: str,
        currency_code: Optional[str] = None,
    ) -> Charge:
        """Create a one-off charge for the given members.

        Validation runs in order: amount, description, due date, targets.

        Args:
            club_id: Club the charge belongs to
            description: Human-readable description
            amount: Positive amount owed by each target member
            due_date: date or "YYYY-MM-DD"
            target_user_ids: Explicit member ids ("apply to all" already resolved)
            created_by: User creating the charge
            currency_code: Defaults to the club fee currency

        Returns:
            Stored Charge

        Raises:
            InvalidAmount, MissingDescription, MissingDueDate,
            InvalidDateFormat, NoMembersSelected: Validation failures
            StorageError: Store failure (not safe to retry blindly)
        """
        try:
            parsed_amount = parse_amount(amount)
        except ValueError as e:
            raise InvalidAmount(str(e)) from e
        if parsed_amount is None or parsed_amount <= Decimal(0):
            raise InvalidAmount("Charge amount must be positive")

        if description is None or not description.strip():
            raise MissingDescription()

        if due_date is None or (isinstance(due_date, str) and not due_date.strip()):
            raise MissingDueDate()
        try:
            parsed_due_date: date = parse_iso_date(due_date)
        except ValueError as e:
            raise InvalidDateFormat(str(e)) from e

        targets = frozenset(str(user_id) for user_id in target_user_ids)
        if not targets:
            raise NoMembersSelected()

        charge = self.charge_store.add_charge(
            Charge(
                club_id=club_id,
                kind=ChargeKind.CUSTOM,
                description=description.strip(),
                amount=parsed_amount,
                currency_code=self._currency_for(club_id, currency_code),
                due_date=parsed_due_date,
                target_user_ids=targets,
                created_by=created_by,
            )
        )
        logger.info(
            f"Created custom charge: id={charge.id}, club_id={club_id}, "
            f"amount={charge.amount} {charge.currency_code}, members={len(targets)}"
        )
        return charge


__all__ = ["CustomChargeManager"]
