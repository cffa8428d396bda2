"""Per-club recurring fee configuration storage.

put() validates and replaces the whole settings object; there is no merge.
Settings are created lazily on the first put() for a club.
"""

import logging
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from src.models.billing import ClubFeeSettings, as_utc
from src.models.fee_settings import FeeSettingsRow
from src.services.errors import (
    FeeSettingsNotFound,
    InvalidAmount,
    InvalidCurrency,
    InvalidMonths,
    NoActiveMonths,
    StorageError,
)
from src.services.parsers import parse_amount

logger = logging.getLogger(__name__)

MIN_MONTHLY_AMOUNT = Decimal("0.01")
CURRENCY_RE = re.compile(r"[A-Za-z]{3}")


def validate_fee_settings(settings: ClubFeeSettings) -> ClubFeeSettings:
    """Validate settings and return a normalized copy.

    Normalization: amount rounded to 2 places, currency upper-cased,
    months sorted.

    Raises:
        InvalidAmount: monthly_amount missing, not numeric or below 0.01
        InvalidCurrency: currency_code is not three letters
        InvalidMonths: duplicate months or values outside 1-12
        NoActiveMonths: settings are active but no month is selected
    """
    try:
        amount = parse_amount(settings.monthly_amount)
    except ValueError as e:
        raise InvalidAmount(str(e)) from e
    if amount is None or amount < MIN_MONTHLY_AMOUNT:
        raise InvalidAmount(f"Monthly fee must be at least {MIN_MONTHLY_AMOUNT}")

    currency = settings.currency_code or ""
    if not CURRENCY_RE.fullmatch(currency):
        raise InvalidCurrency(f"Invalid currency code: {currency!r}")

    months = list(settings.active_months)
    if len(set(months)) != len(months):
        raise InvalidMonths(f"Duplicate active months: {months}")
    for month in months:
        if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
            raise InvalidMonths(f"Invalid month: {month!r}")

    if settings.is_active and not months:
        raise NoActiveMonths("Active fee settings need at least one month")

    return replace(
        settings,
        monthly_amount=amount,
        currency_code=currency.upper(),
        active_months=tuple(sorted(months)),
    )


class FeeSettingsStore(ABC):
    """Storage interface for club fee settings."""

    def get(self, club_id: str) -> ClubFeeSettings:
        """Get settings for a club.

        Raises:
            FeeSettingsNotFound: If the club has never saved settings
        """
        settings = self._load(club_id)
        if settings is None:
            raise FeeSettingsNotFound(f"No fee settings for club {club_id}")
        return settings

    def find(self, club_id: str) -> ClubFeeSettings | None:
        """Get settings for a club, or None."""
        return self._load(club_id)

    def put(self, club_id: str, settings: ClubFeeSettings) -> ClubFeeSettings:
        """Validate and replace the settings of a club.

        Returns:
            The normalized settings as stored
        """
        normalized = validate_fee_settings(settings)
        self._save(club_id, normalized)
        logger.info(
            f"Saved fee settings: club_id={club_id}, amount={normalized.monthly_amount} "
            f"{normalized.currency_code}, months={list(normalized.active_months)}, "
            f"active={normalized.is_active}"
        )
        return normalized

    @abstractmethod
    def _load(self, club_id: str) -> ClubFeeSettings | None: ...

    @abstractmethod
    def _save(self, club_id: str, settings: ClubFeeSettings) -> None: ...


class InMemoryFeeSettingsStore(FeeSettingsStore):
    """Process-local fee settings store."""

    def __init__(self):
        self._lock = threading.Lock()
        self._settings: dict[str, ClubFeeSettings] = {}

    def _load(self, club_id: str) -> ClubFeeSettings | None:
        with self._lock:
            return self._settings.get(club_id)

    def _save(self, club_id: str, settings: ClubFeeSettings) -> None:
        with self._lock:
            self._settings[club_id] = settings


class SqlFeeSettingsStore(FeeSettingsStore):
    """SQLAlchemy-backed fee settings store."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @staticmethod
    def _to_settings(row: FeeSettingsRow) -> ClubFeeSettings:
        return ClubFeeSettings(
            monthly_amount=row.monthly_amount,
            currency_code=row.currency_code,
            active_months=tuple(row.active_months or ()),
            is_active=row.is_active,
            last_notification_at=as_utc(row.last_notification_at),
        )

    def _load(self, club_id: str) -> ClubFeeSettings | None:
        try:
            with self._session_factory() as session:
                row = session.execute(
                    select(FeeSettingsRow).where(FeeSettingsRow.club_id == club_id)
                ).scalar_one_or_none()
                return self._to_settings(row) if row else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load fee settings for club {club_id}: {e}")
            raise StorageError(f"Failed to load fee settings: {e}") from e

    def _save(self, club_id: str, settings: ClubFeeSettings) -> None:
        try:
            with self._session_factory() as session, session.begin():
                row = session.execute(
                    select(FeeSettingsRow).where(FeeSettingsRow.club_id == club_id)
                ).scalar_one_or_none()
                if row is None:
                    row = FeeSettingsRow(club_id=club_id)
                    session.add(row)
                row.monthly_amount = settings.monthly_amount
                row.currency_code = settings.currency_code
                row.active_months = list(settings.active_months)
                row.is_active = settings.is_active
                row.last_notification_at = settings.last_notification_at
        except SQLAlchemyError as e:
            logger.error(f"Failed to save fee settings for club {club_id}: {e}")
            raise StorageError(f"Failed to save fee settings: {e}") from e


__all__ = [
    "FeeSettingsStore",
    "InMemoryFeeSettingsStore",
    "CURRENCY_RE",
    "SqlFeeSettingsStore",
    "validate_fee_settings",
]
