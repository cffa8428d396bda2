"""Payment model - append-only member payments."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models import Base, BaseModel


class PaymentRow(Base, BaseModel):
    """Payment received from a member.

    Attributes:
        club_id: Club that received the payment
        user_id: Member who paid
        charge_id: Charge the payment settles, or None for general credit
        amount: Amount paid
        paid_at: When the payment was received
        note: Optional free-text note
    """

    __tablename__ = "payments"
    __table_args__ = (Index("ix_payments_club_id_user_id", "club_id", "user_id"),)

    club_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    charge_id: Mapped[int | None] = mapped_column(ForeignKey("charges.id"), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)
    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    note: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<PaymentRow(id={self.id}, user_id={self.user_id}, amount={self.amount})>"
