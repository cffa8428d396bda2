"""Tests for billing engine wiring from configuration."""

from datetime import date

from src.config.billing_config import BillingConfig
from src.services.billing import create_billing_engine
from src.services.charge_store import InMemoryChargeStore, SqlChargeStore
from src.services.fee_settings_store import InMemoryFeeSettingsStore, SqlFeeSettingsStore


def make_config(**overrides):
    values = {"store_backend": "memory", "default_currency": "EUR", "log_file": ""}
    values.update(overrides)
    return BillingConfig(_env_file=None, **values)


def test_memory_backend():
    engine = create_billing_engine(make_config())

    assert isinstance(engine.charge_store, InMemoryChargeStore)
    assert isinstance(engine.fee_settings_store, InMemoryFeeSettingsStore)
    assert engine.custom_charges.default_currency == "EUR"


def test_services_share_one_store():
    engine = create_billing_engine(make_config())

    assert engine.fee_generator.charge_store is engine.charge_store
    assert engine.payments.charge_store is engine.charge_store
    assert engine.balances.charge_store is engine.charge_store


def test_sqlite_backend_creates_schema(tmp_path, roster, fee_settings):
    config = make_config(
        store_backend="database", database_url=f"sqlite:///{tmp_path / 'billing.db'}"
    )

    engine = create_billing_engine(config, today=lambda: date(2025, 6, 15))

    assert isinstance(engine.charge_store, SqlChargeStore)
    assert isinstance(engine.fee_settings_store, SqlFeeSettingsStore)
    engine.fee_settings_store.put("club-1", fee_settings)
    result = engine.fee_generator.generate_monthly_fees("club-1", roster, fee_settings, 2025)
    assert result.created == 15
    assert engine.balances.get_member_balance("u1", "club-1").overdue_charges == 150


def test_custom_charge_uses_config_currency_without_settings():
    engine = create_billing_engine(make_config())

    charge = engine.custom_charges.create_custom_charge(
        "club-1", "Camp fee", 10, "2025-12-31", ["u1"], created_by="admin"
    )

    assert charge.currency_code == "EUR"
