"""Payment service for recording member payments and listing club ledgers.

Provides methods for:
- Recording payments (append-only, optionally linked to a charge)
- Listing club charges (all, recurring or custom; per year)
- Listing a member's payments
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional

from src.models.billing import Charge, Payment, as_utc
from src.models.charge import ChargeKind
from src.services.charge_store import ChargeStore
from src.services.errors import ChargeNotFound, InvalidAmount
from src.services.parsers import AmountInput, parse_amount

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PaymentService:
    """Payment ledger operations."""

    def __init__(self, charge_store: ChargeStore, clock: Callable[[], datetime] = utc_now):
        """Initialize payment service.

        Args:
            charge_store: Store holding charges and payments
            clock: Returns the current time (injected for tests)
        """
        self.charge_store = charge_store
        self.clock = clock

    def record_payment(
        self,
        club_id: str,
        user_id: str,
        amount: AmountInput,
        paid_at: Optional[datetime] = None,
        charge_id: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Payment:
        """Record a member payment.

        Args:
            club_id: Club receiving the payment
            user_id: Paying member
            amount: Positive amount paid
            paid_at: When it was paid (default: now); naive times are taken as UTC
            charge_id: Charge being settled, or None for general credit
            note: Optional notes

        Returns:
            Stored Payment

        Raises:
            InvalidAmount: If amount is not positive
            ChargeNotFound: If charge_id is not a charge of this club owed by the member
        """
        try:
            parsed_amount = parse_amount(amount)
        except ValueError as e:
            raise InvalidAmount(str(e)) from e
        if parsed_amount is None or parsed_amount <= Decimal(0):
            logger.error(f"Invalid payment amount: {amount}")
            raise InvalidAmount("Payment amount must be positive")

        if charge_id is not None:
            charge = self.charge_store.get_charge(charge_id)
            if charge is None or charge.club_id != club_id or not charge.applies_to(user_id):
                logger.error(f"Charge {charge_id} not found for user {user_id} in club {club_id}")
                raise ChargeNotFound(f"Charge {charge_id} not found for member {user_id}")

        payment = self.charge_store.add_payment(
            Payment(
                club_id=club_id,
                user_id=user_id,
                amount=parsed_amount,
                paid_at=as_utc(paid_at or self.clock()),
                charge_id=charge_id,
                note=note,
            )
        )
        logger.info(
            f"Recorded payment: user_id={user_id}, amount={parsed_amount}, "
            f"club_id={club_id}, charge_id={charge_id}, payment_id={payment.id}"
        )
        return payment

    def list_club_charges(
        self, club_id: str, kind: Optional[ChargeKind] = None, year: Optional[int] = None
    ) -> List[Charge]:
        """List charges of a club sorted by due date.

        Args:
            club_id: Club ID
            kind: Only recurring or only custom charges
            year: Only charges due in this year
        """
        return self.charge_store.list_charges(club_id, kind=kind, year=year)

    def list_member_payments(self, club_id: str, user_id: str) -> List[Payment]:
        """List a member's payments in a club, oldest first."""
        payments = self.charge_store.payments_for_user(user_id, club_id=club_id)
        return sorted(payments, key=lambda p: p.paid_at)


__all__ = ["PaymentService", "utc_now"]
