"""Club fee settings model - recurring fee configuration per club."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models import Base, BaseModel


class FeeSettingsRow(Base, BaseModel):
    """Recurring membership fee configuration (one row per club)."""

    __tablename__ = "club_fee_settings"

    club_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    monthly_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2), nullable=False
    )
    currency_code: Mapped[str] = mapped_column(String(3), nullable=False)
    active_months: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_notification_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<FeeSettingsRow(club_id={self.club_id}, monthly_amount={self.monthly_amount})>"
