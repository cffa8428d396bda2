"""Billing engine wiring.

Builds the stores and services once at process start. The backend (memory
or database) is decided by configuration here and injected everywhere
else.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from src.config.billing_config import BillingConfig
from src.models import Base
from src.services import create_db_engine, create_session_factory
from src.services.balance_service import BalanceService
from src.services.charge_store import ChargeStore, InMemoryChargeStore, SqlChargeStore
from src.services.custom_charge_service import CustomChargeManager
from src.services.fee_generator import FeeGenerator
from src.services.fee_settings_store import (
    FeeSettingsStore,
    InMemoryFeeSettingsStore,
    SqlFeeSettingsStore,
)
from src.services.notification_service import NotificationComposer
from src.services.payment_service import PaymentService, utc_now

logger = logging.getLogger(__name__)


@dataclass
class BillingEngine:
    """Stores and services of one billing engine instance."""

    charge_store: ChargeStore
    fee_settings_store: FeeSettingsStore
    fee_generator: FeeGenerator
    custom_charges: CustomChargeManager
    payments: PaymentService
    balances: BalanceService
    notifications: NotificationComposer


def build_billing_engine(
    charge_store: ChargeStore,
    fee_settings_store: FeeSettingsStore,
    default_currency: str = "USD",
    today: Callable[[], date] = date.today,
    clock=utc_now,
) -> BillingEngine:
    """Assemble services around the given stores."""
    return BillingEngine(
        charge_store=charge_store,
        fee_settings_store=fee_settings_store,
        fee_generator=FeeGenerator(charge_store),
        custom_charges=CustomChargeManager(
            charge_store, fee_settings_store, default_currency=default_currency
        ),
        payments=PaymentService(charge_store, clock=clock),
        balances=BalanceService(charge_store, today=today),
        notifications=NotificationComposer(),
    )


def create_billing_engine(
    config: BillingConfig, today: Optional[Callable[[], date]] = None
) -> BillingEngine:
    """Create billing engine for the configured store backend.

    Args:
        config: Billing configuration
        today: Optional clock override (default: date.today)
    """
    if config.store_backend == "memory":
        logger.info("Using in-memory billing stores")
        charge_store: ChargeStore = InMemoryChargeStore()
        fee_settings_store: FeeSettingsStore = InMemoryFeeSettingsStore()
    else:
        engine = create_db_engine(config.database_url)
        if engine.dialect.name == "sqlite":
            # Local SQLite databases are created on first use; others go through Alembic
            Base.metadata.create_all(engine)
        session_factory = create_session_factory(engine)
        logger.info(f"Using database billing stores ({engine.dialect.name})")
        charge_store = SqlChargeStore(session_factory)
        fee_settings_store = SqlFeeSettingsStore(session_factory)

    return build_billing_engine(
        charge_store,
        fee_settings_store,
        default_currency=config.default_currency,
        today=today or date.today,
    )


__all__ = ["BillingEngine", "build_billing_engine", "create_billing_engine"]
