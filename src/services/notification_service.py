"""Notification text for member balance reminders.

Builds the message only; delivery (push, WhatsApp) is done by the caller.
"""

import logging
from typing import Dict, Iterable, Mapping, Optional

from src.models.billing import ZERO, Member, MemberBalance
from src.services.locale_service import format_amount, format_local_date
from src.services.localizer import t

logger = logging.getLogger(__name__)


class NotificationComposer:
    """Compose balance reminder messages for members."""

    def get_notification_message(
        self,
        balance: MemberBalance,
        member_name: str,
        currency_code: Optional[str] = None,
    ) -> str:
        """Build the reminder text for one member.

        Every message carries an account status block (total owed, total
        paid) followed by the balance line for its state:
        - balance > 0: credit in favor of the member
        - balance == 0: paid up
        - balance < 0: amount owed, then the overdue amount with a late-fee
          warning, or the pending amount when nothing is overdue yet

        Args:
            balance: Member balance snapshot
            member_name: Name used in the greeting
            currency_code: Currency for amounts (no symbol when None)

        Returns:
            Message text, one line per sentence
        """

        def money(value):
            return format_amount(value, currency_code)

        lines = [
            t("notifications.greeting", member_name=member_name),
            t("notifications.account_status"),
            t("notifications.total_owed", amount=money(balance.total_owed)),
            t("notifications.total_paid", amount=money(balance.total_paid)),
        ]

        if balance.balance > ZERO:
            lines.append(t("notifications.balance_credit", amount=money(balance.balance)))
        elif balance.balance == ZERO:
            lines.append(t("notifications.balance_paid_up"))
        else:
            lines.append(t("notifications.balance_owes", amount=money(-balance.balance)))
            if balance.overdue_charges > ZERO:
                lines.append(t("notifications.overdue", amount=money(balance.overdue_charges)))
                lines.append(t("notifications.overdue_warning"))
            else:
                lines.append(t("notifications.pending", amount=money(balance.pending_charges)))

        if balance.last_payment_date:
            lines.append(
                t("notifications.last_payment", date=format_local_date(balance.last_payment_date))
            )

        lines.append(t("notifications.thank_you"))
        lines.append(t("notifications.automated"))
        return "\n".join(lines)

    def compose_for_members(
        self,
        balances: Mapping[str, MemberBalance],
        members: Iterable[Member],
        currency_code: Optional[str] = None,
    ) -> Dict[str, str]:
        """Build reminder texts for every member that has a balance.

        Returns:
            Dict mapping member id to message text
        """
        messages = {}
        for member in members:
            balance = balances.get(member.id)
            if balance is None:
                logger.debug(f"No balance for member {member.id}, skipping notification")
                continue
            messages[member.id] = self.get_notification_message(
                balance, member.name, currency_code
            )
        logger.info(f"Composed {len(messages)} balance notifications")
        return messages


__all__ = ["NotificationComposer"]
