"""Billing value objects shared by the stores and services.

These are plain dataclasses, independent of the storage backend. The
database store maps ORM rows to them; the in-memory store keeps them as-is.

Exports:
  - ApprovalStatus: Roster approval state
  - Member: Roster entry passed in by callers
  - ClubFeeSettings: Recurring fee configuration
  - Charge: Recurring or custom charge
  - Payment: Append-only payment record
  - MemberBalance: Derived financial position of a member
  - LedgerSnapshot: Charges and payments read together
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from src.models.charge import ChargeKind

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_amount(value: Decimal) -> Decimal:
    """Round a monetary amount to two decimal places (half up)."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return value as an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ApprovalStatus(str, Enum):
    """Membership approval state."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Member:
    """Club member as provided by the roster collaborator."""

    id: str
    name: str
    email: Optional[str] = None
    whatsapp_number: Optional[str] = None
    is_active: bool = True
    approval_status: ApprovalStatus = ApprovalStatus.APPROVED

    @property
    def is_eligible(self) -> bool:
        """Active and approved members are billed."""
        return self.is_active and self.approval_status == ApprovalStatus.APPROVED


@dataclass(frozen=True)
class ClubFeeSettings:
    """Recurring membership fee configuration for a club."""

    monthly_amount: Decimal
    currency_code: str
    active_months: tuple[int, ...] = ()
    is_active: bool = True
    last_notification_at: Optional[datetime] = None


@dataclass(frozen=True)
class Charge:
    """Amount owed by each member in target_user_ids."""

    club_id: str
    kind: ChargeKind
    description: str
    amount: Decimal
    currency_code: str
    due_date: date
    target_user_ids: frozenset[str]
    created_by: str
    period_key: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def applies_to(self, user_id: str) -> bool:
        return user_id in self.target_user_ids


@dataclass(frozen=True)
class Payment:
    """Payment received from a member, optionally linked to a charge."""

    club_id: str
    user_id: str
    amount: Decimal
    paid_at: datetime
    charge_id: Optional[str] = None
    note: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class MemberBalance:
    """Financial position of a member, recomputed on every read."""

    user_id: str
    total_owed: Decimal = ZERO
    total_paid: Decimal = ZERO
    overdue_charges: Decimal = ZERO
    pending_charges: Decimal = ZERO
    club_id: Optional[str] = None
    last_payment_date: Optional[datetime] = None

    @property
    def balance(self) -> Decimal:
        """Paid minus owed; negative means the member owes money."""
        return self.total_paid - self.total_owed


@dataclass(frozen=True)
class LedgerSnapshot:
    """Charges and payments of a club read in one consistent pass."""

    charges: tuple[Charge, ...] = field(default_factory=tuple)
    payments: tuple[Payment, ...] = field(default_factory=tuple)
