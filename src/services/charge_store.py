"""Charge and payment persistence.

Two implementations of the same interface, chosen once at start-up:

- InMemoryChargeStore: process-local, used for development and tests
- SqlChargeStore: SQLAlchemy-backed, used against DATABASE_URL

Both make the recurring-charge existence check atomic: a second insert for
the same (club_id, user_id, period_key) is reported as "already exists"
(None) rather than raised.
"""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.models.billing import Charge, LedgerSnapshot, Payment, as_utc
from src.models.charge import ChargeKind, ChargeRow, ChargeTargetRow
from src.models.payment import PaymentRow
from src.services.errors import StorageError

logger = logging.getLogger(__name__)


class ChargeStore(ABC):
    """Persistence interface for charges and payments."""

    @abstractmethod
    def add_recurring_charge(self, charge: Charge) -> Optional[Charge]:
        """Insert a recurring charge unless one exists for its member and period.

        Returns:
            Stored charge, or None if the period was already generated
        """

    @abstractmethod
    def recurring_charge_exists(self, club_id: str, user_id: str, period_key: str) -> bool:
        """Check whether a recurring charge exists for a member and period."""

    @abstractmethod
    def add_charge(self, charge: Charge) -> Charge:
        """Insert a custom charge."""

    @abstractmethod
    def add_payment(self, payment: Payment) -> Payment:
        """Append a payment."""

    @abstractmethod
    def get_charge(self, charge_id: str) -> Optional[Charge]:
        """Get charge by ID, or None."""

    @abstractmethod
    def list_charges(
        self, club_id: str, kind: Optional[ChargeKind] = None, year: Optional[int] = None
    ) -> list[Charge]:
        """List club charges, optionally filtered by kind and due-date year."""

    @abstractmethod
    def charges_for_user(self, user_id: str, club_id: Optional[str] = None) -> list[Charge]:
        """List charges whose targets include the user."""

    @abstractmethod
    def payments_for_user(self, user_id: str, club_id: Optional[str] = None) -> list[Payment]:
        """List payments made by the user."""

    @abstractmethod
    def club_snapshot(self, club_id: str) -> LedgerSnapshot:
        """Read all charges and payments of a club in one consistent pass."""


def _year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


class InMemoryChargeStore(ChargeStore):
    """Process-local charge store guarded by a single lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._charges: dict[str, Charge] = {}
        self._payments: list[Payment] = []
        self._recurring_index: set[tuple[str, str, str]] = set()

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex

    def _stamp(self, charge: Charge) -> Charge:
        return replace(charge, id=self._new_id(), created_at=datetime.now(timezone.utc))

    def add_recurring_charge(self, charge: Charge) -> Optional[Charge]:
        keys = {(charge.club_id, user_id, charge.period_key) for user_id in charge.target_user_ids}
        with self._lock:
            if keys & self._recurring_index:
                return None
            stored = self._stamp(charge)
            self._charges[stored.id] = stored
            self._recurring_index.update(keys)
        return stored

    def recurring_charge_exists(self, club_id: str, user_id: str, period_key: str) -> bool:
        with self._lock:
            return (club_id, user_id, period_key) in self._recurring_index

    def add_charge(self, charge: Charge) -> Charge:
        stored = self._stamp(charge)
        with self._lock:
            self._charges[stored.id] = stored
        return stored

    def add_payment(self, payment: Payment) -> Payment:
        stored = replace(payment, id=self._new_id())
        with self._lock:
            self._payments.append(stored)
        return stored

    def get_charge(self, charge_id: str) -> Optional[Charge]:
        with self._lock:
            return self._charges.get(charge_id)

    def list_charges(
        self, club_id: str, kind: Optional[ChargeKind] = None, year: Optional[int] = None
    ) -> list[Charge]:
        with self._lock:
            charges = [c for c in self._charges.values() if c.club_id == club_id]
        if kind is not None:
            charges = [c for c in charges if c.kind == kind]
        if year is not None:
            charges = [c for c in charges if c.due_date.year == year]
        return sorted(charges, key=lambda c: (c.due_date, c.created_at))

    def charges_for_user(self, user_id: str, club_id: Optional[str] = None) -> list[Charge]:
        with self._lock:
            return [
                c
                for c in self._charges.values()
                if c.applies_to(user_id) and (club_id is None or c.club_id == club_id)
            ]

    def payments_for_user(self, user_id: str, club_id: Optional[str] = None) -> list[Payment]:
        with self._lock:
            return [
                p
                for p in self._payments
                if p.user_id == user_id and (club_id is None or p.club_id == club_id)
            ]

    def club_snapshot(self, club_id: str) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                charges=tuple(c for c in self._charges.values() if c.club_id == club_id),
                payments=tuple(p for p in self._payments if p.club_id == club_id),
            )

    def clear(self) -> None:
        """Drop all charges and payments (testing helper)."""
        with self._lock:
            self._charges.clear()
            self._payments.clear()
            self._recurring_index.clear()


class SqlChargeStore(ChargeStore):
    """SQLAlchemy-backed charge store."""

    def __init__(self, session_factory: sessionmaker):
        """Initialize with a session factory.

        Args:
            session_factory: sessionmaker bound to the billing database
        """
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _to_charge(row: ChargeRow) -> Charge:
        return Charge(
            id=str(row.id),
            club_id=row.club_id,
            kind=row.kind,
            description=row.description,
            amount=row.amount,
            currency_code=row.currency_code,
            due_date=row.due_date,
            target_user_ids=frozenset(t.user_id for t in row.targets),
            created_by=row.created_by,
            period_key=row.period_key,
            created_at=as_utc(row.created_at),
        )

    @staticmethod
    def _to_payment(row: PaymentRow) -> Payment:
        return Payment(
            id=str(row.id),
            club_id=row.club_id,
            user_id=row.user_id,
            amount=row.amount,
            paid_at=as_utc(row.paid_at),
            charge_id=str(row.charge_id) if row.charge_id is not None else None,
            note=row.note,
        )

    @staticmethod
    def _to_row(charge: Charge) -> ChargeRow:
        return ChargeRow(
            club_id=charge.club_id,
            kind=charge.kind,
            description=charge.description,
            amount=charge.amount,
            currency_code=charge.currency_code,
            due_date=charge.due_date,
            period_key=charge.period_key,
            created_by=charge.created_by,
            targets=[
                ChargeTargetRow(
                    club_id=charge.club_id, user_id=user_id, period_key=charge.period_key
                )
                for user_id in sorted(charge.target_user_ids)
            ],
        )

    @staticmethod
    def _row_id(charge_id: Optional[str]) -> Optional[int]:
        if charge_id is None:
            return None
        try:
            return int(charge_id)
        except (TypeError, ValueError):
            return None

    def _insert_charge(self, charge: Charge) -> Charge:
        with self._session_factory() as session, session.begin():
            row = self._to_row(charge)
            session.add(row)
            session.flush()
            return self._to_charge(row)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_recurring_charge(self, charge: Charge) -> Optional[Charge]:
        try:
            return self._insert_charge(charge)
        except IntegrityError as e:
            if all(
                self.recurring_charge_exists(charge.club_id, user_id, charge.period_key)
                for user_id in charge.target_user_ids
            ):
                logger.debug(
                    f"Recurring charge already generated: club_id={charge.club_id}, "
                    f"period={charge.period_key}, users={sorted(charge.target_user_ids)}"
                )
                return None
            logger.error(f"Unexpected constraint violation inserting recurring charge: {e}")
            raise StorageError(f"Failed to store recurring charge: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Failed to store recurring charge: {e}")
            raise StorageError(f"Failed to store recurring charge: {e}") from e

    def add_charge(self, charge: Charge) -> Charge:
        try:
            return self._insert_charge(charge)
        except SQLAlchemyError as e:
            logger.error(f"Failed to store charge: {e}")
            raise StorageError(f"Failed to store charge: {e}") from e

    def add_payment(self, payment: Payment) -> Payment:
        try:
            with self._session_factory() as session, session.begin():
                row = PaymentRow(
                    club_id=payment.club_id,
                    user_id=payment.user_id,
                    charge_id=self._row_id(payment.charge_id),
                    amount=payment.amount,
                    paid_at=payment.paid_at,
                    note=payment.note,
                )
                session.add(row)
                session.flush()
                return self._to_payment(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to store payment: {e}")
            raise StorageError(f"Failed to store payment: {e}") from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _read(self, fn):
        try:
            with self._session_factory() as session:
                return fn(session)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read charges: {e}")
            raise StorageError(f"Failed to read charges: {e}") from e

    def recurring_charge_exists(self, club_id: str, user_id: str, period_key: str) -> bool:
        stmt = (
            select(ChargeTargetRow.id)
            .where(
                ChargeTargetRow.club_id == club_id,
                ChargeTargetRow.user_id == user_id,
                ChargeTargetRow.period_key == period_key,
            )
            .limit(1)
        )
        return self._read(lambda session: session.execute(stmt).first() is not None)

    def get_charge(self, charge_id: str) -> Optional[Charge]:
        row_id = self._row_id(charge_id)
        if row_id is None:
            return None

        def fetch(session: Session) -> Optional[Charge]:
            row = session.get(ChargeRow, row_id)
            return self._to_charge(row) if row else None

        return self._read(fetch)

    def list_charges(
        self, club_id: str, kind: Optional[ChargeKind] = None, year: Optional[int] = None
    ) -> list[Charge]:
        stmt = select(ChargeRow).where(ChargeRow.club_id == club_id)
        if kind is not None:
            stmt = stmt.where(ChargeRow.kind == kind)
        if year is not None:
            start, end = _year_bounds(year)
            stmt = stmt.where(ChargeRow.due_date >= start, ChargeRow.due_date <= end)
        stmt = stmt.order_by(ChargeRow.due_date, ChargeRow.id)
        return self._read(lambda session: self._charges(session, stmt))

    def charges_for_user(self, user_id: str, club_id: Optional[str] = None) -> list[Charge]:
        stmt = (
            select(ChargeRow)
            .join(ChargeTargetRow, ChargeTargetRow.charge_id == ChargeRow.id)
            .where(ChargeTargetRow.user_id == user_id)
        )
        if club_id is not None:
            stmt = stmt.where(ChargeTargetRow.club_id == club_id)
        stmt = stmt.order_by(ChargeRow.id)
        return self._read(lambda session: self._charges(session, stmt))

    def payments_for_user(self, user_id: str, club_id: Optional[str] = None) -> list[Payment]:
        stmt = select(PaymentRow).where(PaymentRow.user_id == user_id)
        if club_id is not None:
            stmt = stmt.where(PaymentRow.club_id == club_id)
        stmt = stmt.order_by(PaymentRow.id)
        return self._read(lambda session: self._payments(session, stmt))

    def club_snapshot(self, club_id: str) -> LedgerSnapshot:
        charges_stmt = select(ChargeRow).where(ChargeRow.club_id == club_id).order_by(ChargeRow.id)
        payments_stmt = (
            select(PaymentRow).where(PaymentRow.club_id == club_id).order_by(PaymentRow.id)
        )

        def fetch(session: Session) -> LedgerSnapshot:
            # Both reads run in the session's single transaction
            if session.get_bind().dialect.name != "sqlite":
                session.connection(execution_options={"isolation_level": "REPEATABLE READ"})
            return LedgerSnapshot(
                charges=tuple(self._charges(session, charges_stmt)),
                payments=tuple(self._payments(session, payments_stmt)),
            )

        return self._read(fetch)

    def _charges(self, session: Session, stmt) -> list[Charge]:
        return [self._to_charge(row) for row in session.execute(stmt).scalars().unique()]

    def _payments(self, session: Session, stmt) -> list[Payment]:
        return [self._to_payment(row) for row in session.execute(stmt).scalars()]


__all__ = [
    "ChargeStore",
    "InMemoryChargeStore",
    "SqlChargeStore",
]
