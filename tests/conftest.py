"""Pytest configuration for tests - shared stores, roster and clock fixtures."""

import os

# Pin locale BEFORE any imports from src: the translation catalog and
# number formats are chosen once at import time
os.environ["LOCALE"] = "en_US"

from datetime import date, datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.models import Base  # noqa: E402
from src.models.billing import ApprovalStatus, ClubFeeSettings, Member  # noqa: E402
from src.services.billing import build_billing_engine  # noqa: E402
from src.services.charge_store import InMemoryChargeStore  # noqa: E402
from src.services.fee_settings_store import InMemoryFeeSettingsStore  # noqa: E402

TODAY = date(2025, 6, 15)
NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
CLUB_ID = "club-1"


@pytest.fixture
def today() -> date:
    """Fixed current date used by balance calculations."""
    return TODAY


@pytest.fixture
def club_id() -> str:
    return CLUB_ID


@pytest.fixture
def roster() -> list[Member]:
    """Five active, approved members."""
    names = ["Ana", "Bruno", "Carla", "Diego", "Elena"]
    return [
        Member(id=f"u{i}", name=name, email=f"{name.lower()}@example.com")
        for i, name in enumerate(names, start=1)
    ]


@pytest.fixture
def mixed_roster(roster) -> list[Member]:
    """Eligible roster plus members that must never be billed."""
    return roster + [
        Member(id="u6", name="Fabio", is_active=False),
        Member(id="u7", name="Gina", approval_status=ApprovalStatus.PENDING),
        Member(id="u8", name="Hugo", approval_status=ApprovalStatus.REJECTED),
    ]


@pytest.fixture
def fee_settings() -> ClubFeeSettings:
    """Active settings: 50.00 MXN in January, February and March."""
    return ClubFeeSettings(
        monthly_amount=Decimal("50.00"),
        currency_code="MXN",
        active_months=(1, 2, 3),
        is_active=True,
    )


@pytest.fixture
def charge_store() -> InMemoryChargeStore:
    return InMemoryChargeStore()


@pytest.fixture
def fee_settings_store() -> InMemoryFeeSettingsStore:
    return InMemoryFeeSettingsStore()


@pytest.fixture
def billing_engine(charge_store, fee_settings_store):
    """Billing engine over in-memory stores with a fixed clock."""
    return build_billing_engine(
        charge_store,
        fee_settings_store,
        default_currency="USD",
        today=lambda: TODAY,
        clock=lambda: NOW,
    )


@pytest.fixture
def session_factory():
    """Session factory for a fresh in-memory SQLite database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()
