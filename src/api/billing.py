"""Billing API endpoints.

Handles financial operations for a club:
- Fee settings (get/replace)
- Monthly fee generation
- Custom charges and charge listing
- Payment recording
- Member balances (single and batch)
- Balance reminder texts (delivery is up to the caller)
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field

from src.models.billing import (
    ApprovalStatus,
    Charge,
    ClubFeeSettings,
    Member,
    MemberBalance,
    Payment,
)
from src.models.charge import ChargeKind
from src.services.billing import BillingEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/clubs/{club_id}", tags=["billing"])


def get_billing_engine(request: Request) -> BillingEngine:
    """Billing engine created at application start-up."""
    return request.app.state.billing_engine


# Amounts stay raw so the services report invalid_amount, not a 422
AmountField = Union[Decimal, str, None]


# Request schemas
class MemberSchema(BaseModel):
    """Roster entry supplied by the caller."""

    id: str
    name: str = ""
    email: Optional[str] = None
    whatsapp_number: Optional[str] = None
    is_active: bool = True
    approval_status: ApprovalStatus = ApprovalStatus.APPROVED

    def to_member(self) -> Member:
        return Member(**self.model_dump())


class FeeSettingsRequest(BaseModel):
    """Fee settings payload; the amount is parsed and validated by the store."""

    monthly_amount: AmountField = None
    currency_code: Optional[str] = None
    active_months: list[int] = Field(default_factory=list)
    is_active: bool = True
    last_notification_at: Optional[datetime] = None


class FeeSettingsSchema(BaseModel):
    """Fee settings response."""

    monthly_amount: Decimal
    currency_code: str
    active_months: list[int] = Field(default_factory=list)
    is_active: bool = True
    last_notification_at: Optional[datetime] = None

    @classmethod
    def from_settings(cls, settings: ClubFeeSettings) -> "FeeSettingsSchema":
        return cls(
            monthly_amount=settings.monthly_amount,
            currency_code=settings.currency_code,
            active_months=list(settings.active_months),
            is_active=settings.is_active,
            last_notification_at=settings.last_notification_at,
        )


class GenerateFeesRequest(BaseModel):
    year: int
    members: list[MemberSchema]


class GenerateFeesResponse(BaseModel):
    created: int
    skipped: int


class CustomChargeRequest(BaseModel):
    """Custom charge payload; apply_to_all snapshots the eligible members given."""

    description: Optional[str] = None
    amount: AmountField = None
    due_date: Optional[str] = None
    target_user_ids: list[str] = Field(default_factory=list)
    apply_to_all: bool = False
    members: list[MemberSchema] = Field(default_factory=list)
    created_by: str
    currency_code: Optional[str] = None


class ChargeResponse(BaseModel):
    id: str
    club_id: str
    kind: ChargeKind
    description: str
    amount: Decimal
    currency_code: str
    due_date: date
    target_user_ids: list[str]
    period_key: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_charge(cls, charge: Charge) -> "ChargeResponse":
        return cls(
            id=charge.id,
            club_id=charge.club_id,
            kind=charge.kind,
            description=charge.description,
            amount=charge.amount,
            currency_code=charge.currency_code,
            due_date=charge.due_date,
            target_user_ids=sorted(charge.target_user_ids),
            period_key=charge.period_key,
            created_by=charge.created_by,
            created_at=charge.created_at,
        )


class PaymentRequest(BaseModel):
    user_id: str
    amount: AmountField = None
    paid_at: Optional[datetime] = None
    charge_id: Optional[str] = None
    note: Optional[str] = None


class PaymentResponse(BaseModel):
    id: str
    club_id: str
    user_id: str
    amount: Decimal
    paid_at: datetime
    charge_id: Optional[str] = None
    note: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentResponse":
        return cls.model_validate(payment)


class BalanceResponse(BaseModel):
    user_id: str
    club_id: Optional[str] = None
    total_owed: Decimal
    total_paid: Decimal
    balance: Decimal
    overdue_charges: Decimal
    pending_charges: Decimal
    last_payment_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_balance(cls, balance: MemberBalance) -> "BalanceResponse":
        return cls.model_validate(balance)


class BalancesRequest(BaseModel):
    user_ids: list[str]


class NotificationsRequest(BaseModel):
    members: list[MemberSchema]


class NotificationsResponse(BaseModel):
    messages: dict[str, str]


# ---------------------------------------------------------------------------
# Fee settings
# ---------------------------------------------------------------------------


@router.get("/fee-settings", response_model=FeeSettingsSchema)
def get_fee_settings(club_id: str, engine: BillingEngine = Depends(get_billing_engine)):
    """Get the club's recurring fee settings."""
    return FeeSettingsSchema.from_settings(engine.fee_settings_store.get(club_id))


@router.put("/fee-settings", response_model=FeeSettingsSchema)
def put_fee_settings(
    club_id: str,
    payload: FeeSettingsRequest,
    engine: BillingEngine = Depends(get_billing_engine),
):
    """Replace the club's recurring fee settings."""
    settings = ClubFeeSettings(
        monthly_amount=payload.monthly_amount,
        currency_code=payload.currency_code or "",
        active_months=tuple(payload.active_months),
        is_active=payload.is_active,
        last_notification_at=payload.last_notification_at,
    )
    return FeeSettingsSchema.from_settings(engine.fee_settings_store.put(club_id, settings))


# ---------------------------------------------------------------------------
# Charges
# ---------------------------------------------------------------------------


@router.post("/fees/generate", response_model=GenerateFeesResponse)
def generate_fees(
    club_id: str,
    payload: GenerateFeesRequest,
    engine: BillingEngine = Depends(get_billing_engine),
):
    """Generate recurring monthly charges for a year (idempotent)."""
    settings = engine.fee_settings_store.get(club_id)
    result = engine.fee_generator.generate_monthly_fees(
        club_id, [m.to_member() for m in payload.members], settings, payload.year
    )
    return GenerateFeesResponse(created=result.created, skipped=result.skipped)


@router.post("/charges", response_model=ChargeResponse, status_code=201)
def create_charge(
    club_id: str,
    payload: CustomChargeRequest,
    engine: BillingEngine = Depends(get_billing_engine),
):
    """Create a custom charge for selected members or everyone in the roster."""
    targets = engine.custom_charges.resolve_target_user_ids(
        [m.to_member() for m in payload.members],
        selected_user_ids=payload.target_user_ids,
        apply_to_all=payload.apply_to_all,
    )
    charge = engine.custom_charges.create_custom_charge(
        club_id,
        payload.description,
        payload.amount,
        payload.due_date,
        targets,
        payload.created_by,
        currency_code=payload.currency_code,
    )
    return ChargeResponse.from_charge(charge)


@router.get("/charges", response_model=list[ChargeResponse])
def list_charges(
    club_id: str,
    kind: Optional[ChargeKind] = Query(None),
    year: Optional[int] = Query(None),
    engine: BillingEngine = Depends(get_billing_engine),
):
    """List club charges by due date."""
    charges = engine.payments.list_club_charges(club_id, kind=kind, year=year)
    return [ChargeResponse.from_charge(c) for c in charges]


# ---------------------------------------------------------------------------
# Payments and balances
# ---------------------------------------------------------------------------


@router.post("/payments", response_model=PaymentResponse, status_code=201)
def record_payment(
    club_id: str,
    payload: PaymentRequest,
    engine: BillingEngine = Depends(get_billing_engine),
):
    """Record a member payment."""
    payment = engine.payments.record_payment(
        club_id,
        payload.user_id,
        payload.amount,
        paid_at=payload.paid_at,
        charge_id=payload.charge_id,
        note=payload.note,
    )
    return PaymentResponse.from_payment(payment)


@router.get("/members/{user_id}/payments", response_model=list[PaymentResponse])
def list_member_payments(
    club_id: str, user_id: str, engine: BillingEngine = Depends(get_billing_engine)
):
    """List a member's payments."""
    return [
        PaymentResponse.from_payment(p)
        for p in engine.payments.list_member_payments(club_id, user_id)
    ]


@router.get("/members/{user_id}/balance", response_model=BalanceResponse)
def get_member_balance(
    club_id: str, user_id: str, engine: BillingEngine = Depends(get_billing_engine)
):
    """Get a member's balance in the club."""
    return BalanceResponse.from_balance(engine.balances.get_member_balance(user_id, club_id))


@router.post("/balances", response_model=dict[str, BalanceResponse])
def get_balances(
    club_id: str,
    payload: BalancesRequest,
    engine: BillingEngine = Depends(get_billing_engine),
):
    """Get balances of many members from one snapshot."""
    balances = engine.balances.get_all_members_balances(club_id, payload.user_ids)
    return {user_id: BalanceResponse.from_balance(b) for user_id, b in balances.items()}


@router.post("/notifications", response_model=NotificationsResponse)
def compose_notifications(
    club_id: str,
    payload: NotificationsRequest,
    engine: BillingEngine = Depends(get_billing_engine),
):
    """Compose balance reminders for the given members and stamp the run time."""
    members = [m.to_member() for m in payload.members]
    settings = engine.fee_settings_store.find(club_id)
    currency_code = (
        settings.currency_code if settings else engine.custom_charges.default_currency
    )

    balances = engine.balances.get_all_members_balances(club_id, [m.id for m in members])
    messages = engine.notifications.compose_for_members(balances, members, currency_code)

    if settings is not None:
        engine.fee_settings_store.put(
            club_id, replace(settings, last_notification_at=engine.payments.clock())
        )
    logger.info(f"Composed {len(messages)} notifications for club_id={club_id}")
    return NotificationsResponse(messages=messages)
