"""Charge models - recurring and custom charges with their target members."""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class ChargeKind(str, Enum):
    """Charge kind enumeration."""

    RECURRING = "recurring"
    CUSTOM = "custom"


class ChargeRow(Base, BaseModel):
    """Charge owed by one or more members of a club.

    Attributes:
        club_id: Club the charge belongs to
        kind: RECURRING (generated from fee settings) or CUSTOM (one-off)
        description: Human-readable description
        amount: Amount owed by each target member
        currency_code: ISO 4217 currency code
        due_date: Date the charge becomes due
        period_key: "YYYY-MM" for recurring charges, None for custom ones
        created_by: Identifier of the user or process that created the charge
    """

    __tablename__ = "charges"

    club_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    kind: Mapped[ChargeKind] = mapped_column(SQLEnum(ChargeKind), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)
    currency_code: Mapped[str] = mapped_column(String(3), nullable=False)
    due_date: Mapped[date] = mapped_column(nullable=False)
    period_key: Mapped[str | None] = mapped_column(String(7), nullable=True)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)

    # Relationships
    targets: Mapped[list["ChargeTargetRow"]] = relationship(
        "ChargeTargetRow",
        back_populates="charge",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<ChargeRow(id={self.id}, club_id={self.club_id}, kind={self.kind.value}, amount={self.amount})>"


class ChargeTargetRow(Base, BaseModel):
    """Member a charge applies to.

    period_key is copied from the charge so the database can enforce one
    recurring charge per (club, member, period). Custom charges carry NULL,
    which unique constraints treat as distinct.
    """

    __tablename__ = "charge_targets"
    __table_args__ = (
        UniqueConstraint(
            "club_id", "user_id", "period_key", name="uq_charge_targets_club_user_period"
        ),
        Index("ix_charge_targets_club_id_user_id", "club_id", "user_id"),
    )

    charge_id: Mapped[int] = mapped_column(ForeignKey("charges.id"), nullable=False)
    club_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    period_key: Mapped[str | None] = mapped_column(String(7), nullable=True)

    charge: Mapped["ChargeRow"] = relationship("ChargeRow", back_populates="targets")

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<ChargeTargetRow(charge_id={self.charge_id}, user_id={self.user_id})>"
