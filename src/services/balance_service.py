"""Balance calculation service for computing member balances.

Balance Formula: Paid - Owed
- total_owed: sum of every charge the member is a target of
- total_paid: sum of every payment made by the member
- negative balance = member owes money

Payment application (decides what is overdue vs pending):
1. A payment linked to a charge settles that charge first, up to its amount
2. Unlinked payments and any linked overflow form a credit pool applied to
   the oldest-due outstanding charge first (ties: created_at, then id)

overdue_charges is the unpaid remainder of charges due before today;
pending_charges is the unpaid remainder of the others. Nothing is cached:
every call recomputes from the stored charges and payments.
"""

import logging
from datetime import date
from typing import Callable, Dict, Iterable, Optional

from src.models.billing import ZERO, Charge, MemberBalance, Payment
from src.services.charge_store import ChargeStore

logger = logging.getLogger(__name__)


def _application_order(charge: Charge):
    return (charge.due_date, charge.created_at, charge.id)


def compute_member_balance(
    user_id: str,
    charges: Iterable[Charge],
    payments: Iterable[Payment],
    today: date,
    club_id: Optional[str] = None,
) -> MemberBalance:
    """Reduce a member's charges and payments to a balance.

    Args:
        user_id: Member ID
        charges: Charges the member is a target of
        payments: Payments made by the member
        today: Charges due strictly before this date are overdue
        club_id: Recorded on the result

    Returns:
        MemberBalance
    """
    ordered = sorted(charges, key=_application_order)
    payments = list(payments)

    outstanding = {charge.id: charge.amount for charge in ordered}
    total_owed = sum((charge.amount for charge in ordered), ZERO)
    total_paid = sum((payment.amount for payment in payments), ZERO)

    credit = ZERO
    for payment in payments:
        if payment.charge_id in outstanding:
            applied = min(payment.amount, outstanding[payment.charge_id])
            outstanding[payment.charge_id] -= applied
            credit += payment.amount - applied
        else:
            credit += payment.amount

    for charge in ordered:
        if credit <= ZERO:
            break
        applied = min(credit, outstanding[charge.id])
        outstanding[charge.id] -= applied
        credit -= applied

    overdue = sum((outstanding[c.id] for c in ordered if c.due_date < today), ZERO)
    pending = sum((outstanding[c.id] for c in ordered if c.due_date >= today), ZERO)
    last_payment = max((payment.paid_at for payment in payments), default=None)

    return MemberBalance(
        user_id=user_id,
        club_id=club_id,
        total_owed=total_owed,
        total_paid=total_paid,
        overdue_charges=overdue,
        pending_charges=pending,
        last_payment_date=last_payment,
    )


class BalanceService:
    """Calculate member balances from the charge store."""

    def __init__(self, charge_store: ChargeStore, today: Callable[[], date] = date.today):
        """Initialize with charge store and clock.

        Args:
            charge_store: Store holding charges and payments
            today: Returns the current date (injected for tests)
        """
        self.charge_store = charge_store
        self.today = today

    def get_member_balance(self, user_id: str, club_id: Optional[str] = None) -> MemberBalance:
        """Calculate balance for a member.

        Args:
            user_id: Member ID
            club_id: Restrict to one club (default: all clubs)

        Returns:
            MemberBalance (positive balance = credit, negative = debt)
        """
        charges = self.charge_store.charges_for_user(user_id, club_id=club_id)
        payments = self.charge_store.payments_for_user(user_id, club_id=club_id)
        balance = compute_member_balance(user_id, charges, payments, self.today(), club_id)
        logger.debug(
            f"Balance for user_id={user_id} club_id={club_id}: {balance.balance} "
            f"(overdue={balance.overdue_charges})"
        )
        return balance

    def get_all_members_balances(
        self, club_id: str, user_ids: Iterable[str]
    ) -> Dict[str, MemberBalance]:
        """Calculate balances for many members from one snapshot read.

        Args:
            club_id: Club ID
            user_ids: Members to include (members without records get a zero balance)

        Returns:
            Dict mapping user_id to MemberBalance
        """
        user_ids = list(dict.fromkeys(user_ids))
        snapshot = self.charge_store.club_snapshot(club_id)
        today = self.today()

        charges: Dict[str, list[Charge]] = {user_id: [] for user_id in user_ids}
        for charge in snapshot.charges:
            for user_id in charge.target_user_ids:
                if user_id in charges:
                    charges[user_id].append(charge)

        payments: Dict[str, list[Payment]] = {user_id: [] for user_id in user_ids}
        for payment in snapshot.payments:
            if payment.user_id in payments:
                payments[payment.user_id].append(payment)

        balances = {
            user_id: compute_member_balance(
                user_id, charges[user_id], payments[user_id], today, club_id
            )
            for user_id in user_ids
        }
        logger.debug(
            f"Calculated {len(balances)} balances for club_id={club_id} "
            f"from {len(snapshot.charges)} charges and {len(snapshot.payments)} payments"
        )
        return balances


__all__ = ["BalanceService", "compute_member_balance"]
