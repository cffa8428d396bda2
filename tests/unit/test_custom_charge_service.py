"""Unit tests for custom charge creation."""

from datetime import date
from decimal import Decimal

import pytest

from src.models.billing import ClubFeeSettings
from src.models.charge import ChargeKind
from src.services.custom_charge_service import CustomChargeManager
from src.services.errors import (
    InvalidAmount,
    InvalidCurrency,
    InvalidDateFormat,
    MissingDescription,
    MissingDueDate,
    NoMembersSelected,
)


@pytest.fixture
def manager(charge_store, fee_settings_store):
    return CustomChargeManager(charge_store, fee_settings_store, default_currency="USD")


class TestResolveTargetUserIds:
    """Tests for the "apply to all" snapshot."""

    def test_apply_to_all_uses_eligible_roster(self, mixed_roster):
        targets = CustomChargeManager.resolve_target_user_ids(mixed_roster, apply_to_all=True)
        assert targets == frozenset({"u1", "u2", "u3", "u4", "u5"})

    def test_apply_to_all_ignores_selection(self, roster):
        targets = CustomChargeManager.resolve_target_user_ids(
            roster, selected_user_ids=["u1"], apply_to_all=True
        )
        assert len(targets) == 5

    def test_explicit_selection(self, roster):
        targets = CustomChargeManager.resolve_target_user_ids(roster, selected_user_ids=["u2", "u4"])
        assert targets == frozenset({"u2", "u4"})

    def test_nothing_selected(self, roster):
        assert CustomChargeManager.resolve_target_user_ids(roster) == frozenset()


class TestCreateCustomCharge:
    """Test CustomChargeManager.create_custom_charge."""

    def test_camp_fee_for_all_members(self, manager, charge_store, club_id, roster):
        """Empty selection + apply to all resolves to the 5-member roster."""
        targets = manager.resolve_target_user_ids(roster, selected_user_ids=[], apply_to_all=True)

        charge = manager.create_custom_charge(
            club_id, "Camp fee", Decimal("50.00"), "2025-12-31", targets, created_by="admin"
        )

        assert charge.kind == ChargeKind.CUSTOM
        assert charge.target_user_ids == frozenset({"u1", "u2", "u3", "u4", "u5"})
        assert charge.amount == Decimal("50.00")
        assert charge.due_date == date(2025, 12, 31)
        assert charge.period_key is None
        assert charge.created_by == "admin"
        assert charge.id is not None
        assert charge_store.get_charge(charge.id) == charge

    def test_roster_change_does_not_alter_existing_charge(
        self, manager, charge_store, club_id, roster
    ):
        targets = manager.resolve_target_user_ids(roster, apply_to_all=True)
        charge = manager.create_custom_charge(
            club_id, "Camp fee", "50", "2025-12-31", targets, created_by="admin"
        )

        roster.pop()

        assert len(charge_store.get_charge(charge.id).target_user_ids) == 5

    def test_zero_amount(self, manager, club_id):
        with pytest.raises(InvalidAmount):
            manager.create_custom_charge(club_id, "Camp fee", 0, "2025-12-31", ["u1"], "admin")

    def test_negative_amount(self, manager, club_id):
        with pytest.raises(InvalidAmount):
            manager.create_custom_charge(club_id, "Camp fee", "-1", "2025-12-31", ["u1"], "admin")

    def test_non_numeric_amount(self, manager, club_id):
        with pytest.raises(InvalidAmount):
            manager.create_custom_charge(club_id, "Camp fee", "abc", "2025-12-31", ["u1"], "admin")

    @pytest.mark.parametrize("description", [None, "", "   "])
    def test_missing_description(self, manager, club_id, description):
        with pytest.raises(MissingDescription):
            manager.create_custom_charge(club_id, description, 10, "2025-12-31", ["u1"], "admin")

    @pytest.mark.parametrize("due_date", [None, "", "  "])
    def test_missing_due_date(self, manager, club_id, due_date):
        with pytest.raises(MissingDueDate):
            manager.create_custom_charge(club_id, "Camp fee", 10, due_date, ["u1"], "admin")

    @pytest.mark.parametrize("due_date", ["31/12/2025", "2025-13-01", "2025-02-30", "tomorrow"])
    def test_invalid_date_format(self, manager, club_id, due_date):
        with pytest.raises(InvalidDateFormat):
            manager.create_custom_charge(club_id, "Camp fee", 10, due_date, ["u1"], "admin")

    def test_no_members_selected(self, manager, club_id):
        with pytest.raises(NoMembersSelected):
            manager.create_custom_charge(club_id, "Camp fee", 10, "2025-12-31", [], "admin")

    def test_validation_order_amount_first(self, manager, club_id):
        """Every field is invalid: the amount error is reported."""
        with pytest.raises(InvalidAmount):
            manager.create_custom_charge(club_id, "", 0, None, [], "admin")

    def test_validation_order_description_before_date(self, manager, club_id):
        with pytest.raises(MissingDescription):
            manager.create_custom_charge(club_id, " ", 10, None, [], "admin")

    def test_validation_order_date_before_members(self, manager, club_id):
        with pytest.raises(InvalidDateFormat):
            manager.create_custom_charge(club_id, "Camp fee", 10, "bad", [], "admin")

    def test_accepts_date_object_and_strips_description(self, manager, club_id):
        charge = manager.create_custom_charge(
            club_id, "  Uniforms  ", "25.5", date(2025, 9, 1), ["u1"], "admin"
        )
        assert charge.description == "Uniforms"
        assert charge.amount == Decimal("25.50")
        assert charge.due_date == date(2025, 9, 1)

    def test_currency_defaults_to_configured_currency(self, manager, club_id):
        charge = manager.create_custom_charge(club_id, "Camp fee", 10, "2025-12-31", ["u1"], "admin")
        assert charge.currency_code == "USD"

    def test_currency_follows_club_fee_settings(self, manager, fee_settings_store, club_id):
        fee_settings_store.put(
            club_id,
            ClubFeeSettings(monthly_amount=Decimal("50"), currency_code="MXN", active_months=(1,)),
        )
        charge = manager.create_custom_charge(club_id, "Camp fee", 10, "2025-12-31", ["u1"], "admin")
        assert charge.currency_code == "MXN"

    def test_explicit_currency(self, manager, club_id):
        charge = manager.create_custom_charge(
            club_id, "Camp fee", 10, "2025-12-31", ["u1"], "admin", currency_code="eur"
        )
        assert charge.currency_code == "EUR"

    @pytest.mark.parametrize("currency", ["EURO", "ÄÖÜ", "US1"])
    def test_invalid_explicit_currency(self, manager, club_id, currency):
        with pytest.raises(InvalidCurrency):
            manager.create_custom_charge(
                club_id, "Camp fee", 10, "2025-12-31", ["u1"], "admin", currency_code=currency
            )

    def test_each_call_creates_a_new_charge(self, manager, charge_store, club_id):
        """No idempotency key: two identical calls give two charges."""
        for _ in range(2):
            manager.create_custom_charge(club_id, "Camp fee", 10, "2025-12-31", ["u1"], "admin")

        assert len(charge_store.list_charges(club_id, kind=ChargeKind.CUSTOM)) == 2
