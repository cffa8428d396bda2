"""SQLAlchemy tables of the billing database.

Rows here are persistence only; services work with the dataclasses in
src.models.billing and the SQL stores translate between the two.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseModel:
    """Surrogate integer key plus creation/update timestamps (UTC)."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


# Table modules import Base from here, so they are registered last
from src.models.charge import ChargeKind, ChargeRow, ChargeTargetRow  # noqa: E402
from src.models.fee_settings import FeeSettingsRow  # noqa: E402
from src.models.payment import PaymentRow  # noqa: E402

__all__ = [
    "Base",
    "BaseModel",
    "ChargeKind",
    "ChargeRow",
    "ChargeTargetRow",
    "FeeSettingsRow",
    "PaymentRow",
]
