"""Unit tests for PaymentService."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from src.models.charge import ChargeKind
from src.services.errors import ChargeNotFound, InvalidAmount
from src.services.payment_service import PaymentService

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def payments(charge_store):
    return PaymentService(charge_store, clock=lambda: NOW)


@pytest.fixture
def camp_fee(billing_engine, club_id):
    return billing_engine.custom_charges.create_custom_charge(
        club_id, "Camp fee", "50", "2025-12-31", ["u1", "u2"], created_by="admin"
    )


class TestRecordPayment:
    """Test PaymentService.record_payment."""

    def test_record_unlinked_payment(self, payments, charge_store, club_id):
        payment = payments.record_payment(club_id, "u1", "30", note="cash")

        assert payment.id is not None
        assert payment.amount == Decimal("30.00")
        assert payment.paid_at == NOW
        assert payment.charge_id is None
        assert payment.note == "cash"
        assert charge_store.payments_for_user("u1", club_id=club_id) == [payment]

    def test_explicit_paid_at(self, payments, club_id):
        paid_at = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)

        payment = payments.record_payment(club_id, "u1", 10, paid_at=paid_at)

        assert payment.paid_at == paid_at

    def test_naive_paid_at_is_taken_as_utc(self, payments, club_id):
        payment = payments.record_payment(club_id, "u1", 10, paid_at=datetime(2025, 3, 1, 9, 0))

        assert payment.paid_at == datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
        assert payment.paid_at.tzinfo is not None

    def test_mixed_naive_and_aware_payments(self, billing_engine, club_id):
        service = billing_engine.payments
        service.record_payment(club_id, "u1", 10)
        service.record_payment(club_id, "u1", 20, paid_at=datetime(2025, 6, 1, 10, 0))

        listed = service.list_member_payments(club_id, "u1")
        balance = billing_engine.balances.get_member_balance("u1", club_id)

        assert [p.amount for p in listed] == [Decimal("20.00"), Decimal("10.00")]
        assert balance.last_payment_date == NOW

    def test_linked_payment(self, payments, club_id, camp_fee):
        payment = payments.record_payment(club_id, "u2", "50", charge_id=camp_fee.id)
        assert payment.charge_id == camp_fee.id

    @pytest.mark.parametrize("amount", [0, "-10", "0.001"])
    def test_non_positive_amount(self, payments, club_id, amount):
        with pytest.raises(InvalidAmount):
            payments.record_payment(club_id, "u1", amount)

    def test_missing_amount(self, payments, club_id):
        with pytest.raises(InvalidAmount):
            payments.record_payment(club_id, "u1", None)

    def test_unparseable_amount(self, payments, club_id):
        with pytest.raises(InvalidAmount):
            payments.record_payment(club_id, "u1", "ten")

    def test_unknown_charge(self, payments, club_id):
        with pytest.raises(ChargeNotFound):
            payments.record_payment(club_id, "u1", 10, charge_id="missing")

    def test_charge_of_other_member(self, payments, club_id, camp_fee):
        with pytest.raises(ChargeNotFound):
            payments.record_payment(club_id, "u3", 10, charge_id=camp_fee.id)

    def test_charge_of_other_club(self, payments, camp_fee):
        with pytest.raises(ChargeNotFound):
            payments.record_payment("club-2", "u1", 10, charge_id=camp_fee.id)

    def test_rejected_payment_is_not_stored(self, payments, charge_store, club_id):
        with pytest.raises(InvalidAmount):
            payments.record_payment(club_id, "u1", 0)

        assert charge_store.payments_for_user("u1") == []


class TestListings:
    """Tests for charge and payment listings."""

    def test_list_member_payments_oldest_first(self, payments, club_id):
        later = payments.record_payment(
            club_id, "u1", 10, paid_at=datetime(2025, 5, 1, tzinfo=timezone.utc)
        )
        earlier = payments.record_payment(
            club_id, "u1", 20, paid_at=datetime(2025, 2, 1, tzinfo=timezone.utc)
        )
        payments.record_payment(club_id, "u2", 5)
        payments.record_payment("club-2", "u1", 5)

        assert payments.list_member_payments(club_id, "u1") == [earlier, later]

    def test_list_club_charges_by_kind_and_year(
        self, billing_engine, club_id, roster, fee_settings, camp_fee
    ):
        billing_engine.fee_generator.generate_monthly_fees(club_id, roster, fee_settings, 2025)
        billing_engine.custom_charges.create_custom_charge(
            club_id, "Uniforms", 20, date(2026, 2, 1), ["u1"], created_by="admin"
        )
        service = billing_engine.payments

        assert len(service.list_club_charges(club_id)) == 17
        assert len(service.list_club_charges(club_id, kind=ChargeKind.RECURRING)) == 15
        assert service.list_club_charges(club_id, kind=ChargeKind.CUSTOM, year=2025) == [camp_fee]
        assert [c.description for c in service.list_club_charges(club_id, year=2026)] == [
            "Uniforms"
        ]

    def test_list_club_charges_sorted_by_due_date(self, billing_engine, club_id):
        create = billing_engine.custom_charges.create_custom_charge
        create(club_id, "Late", 10, "2025-09-01", ["u1"], "admin")
        create(club_id, "Early", 10, "2025-02-01", ["u1"], "admin")

        charges = billing_engine.payments.list_club_charges(club_id)

        assert [c.description for c in charges] == ["Early", "Late"]
