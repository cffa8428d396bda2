"""Recurring membership fee generation.

Expands a club's fee settings into one recurring charge per eligible member
and active month. Generation is idempotent: the (club, member, period)
existence check in the charge store is the only guard, so re-running it
after a duplicate click, a partial failure or from a second process never
creates duplicates.
"""

import logging
from datetime import date
from typing import Iterable, NamedTuple

from src.models.billing import Charge, ClubFeeSettings, Member
from src.models.charge import ChargeKind
from src.services.charge_store import ChargeStore
from src.services.errors import EmptyMemberList, InvalidYear, NoActiveMonths
from src.services.fee_settings_store import validate_fee_settings
from src.services.localizer import t

logger = logging.getLogger(__name__)

SYSTEM_CREATOR = "fee-generator"


class GenerationResult(NamedTuple):
    """Outcome of a fee generation run."""

    created: int
    skipped: int


def period_key(year: int, month: int) -> str:
    """Encode a billing period as "YYYY-MM"."""
    return f"{year:04d}-{month:02d}"


class FeeGenerator:
    """Generate recurring monthly fee charges."""

    def __init__(self, charge_store: ChargeStore):
        """Initialize with charge store.

        Args:
            charge_store: Store the charges are written to
        """
        self.charge_store = charge_store

    def generate_monthly_fees(
        self,
        club_id: str,
        members: Iterable[Member],
        settings: ClubFeeSettings,
        year: int,
        created_by: str = SYSTEM_CREATOR,
    ) -> GenerationResult:
        """Create one recurring charge per eligible member and active month.

        Args:
            club_id: Club to bill
            members: Roster; only active and approved members are billed
            settings: Club fee settings
            year: Calendar year to generate
            created_by: Recorded as the creator of every charge

        Returns:
            GenerationResult with created and skipped (already existing) counts

        Raises:
            EmptyMemberList: No eligible member in the roster
            NoActiveMonths: Settings inactive or without months
            InvalidAmount, InvalidCurrency, InvalidMonths: Settings fail validation
            InvalidYear: Year outside 1-9999
            StorageError: Store failure; retrying is safe
        """
        # Keyed by id so a member listed twice is billed once
        eligible = list(
            {member.id: member for member in members if member.is_eligible}.values()
        )
        if not eligible:
            raise EmptyMemberList("No active, approved members to bill")
        settings = validate_fee_settings(settings)
        if not settings.is_active or not settings.active_months:
            raise NoActiveMonths("Fee settings are inactive or have no active months")
        if not 1 <= year <= 9999:
            raise InvalidYear(f"Invalid year: {year}")

        logger.info(
            f"Generating monthly fees: club_id={club_id}, year={year}, "
            f"members={len(eligible)}, months={sorted(settings.active_months)}"
        )

        created = 0
        skipped = 0
        for month in settings.active_months:
            key = period_key(year, month)
            for member in eligible:
                if self.charge_store.recurring_charge_exists(club_id, member.id, key):
                    skipped += 1
                    continue

                charge = Charge(
                    club_id=club_id,
                    kind=ChargeKind.RECURRING,
                    description=t("charges.monthly_fee", period=key),
                    amount=settings.monthly_amount,
                    currency_code=settings.currency_code,
                    due_date=date(year, month, 1),
                    target_user_ids=frozenset({member.id}),
                    created_by=created_by,
                    period_key=key,
                )
                # A concurrent run may win between the check and the insert
                if self.charge_store.add_recurring_charge(charge) is None:
                    skipped += 1
                else:
                    created += 1

        logger.info(
            f"Generated monthly fees: club_id={club_id}, year={year}, "
            f"created={created}, skipped={skipped}"
        )
        return GenerationResult(created=created, skipped=skipped)


__all__ = ["FeeGenerator", "GenerationResult", "period_key"]
