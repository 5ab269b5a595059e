from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from src.config import get_settings
from src.errors import SendFailure
from src.models.user import User
from src.notifications.formatter import format_contest_reminder, format_test_email
from src.notifications.mailer import EmailSender
from src.reminders.matcher import ReminderMatch

# (收件人, 比賽名稱, {"subject", "body"})
Outgoing = Tuple[str, Optional[str], Dict[str, str]]


@dataclass
class DispatchResult:
    sent: int = 0
    failed: int = 0
    failures: List[SendFailure] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.sent + self.failed


class ReminderDispatcher:
    """Sends reminder emails, one per (contest, user) match.

    Sends run one at a time with ``send_delay_seconds`` between them to stay
    under the mail provider's rate limit. A failed send is logged and counted
    and the rest of the batch still goes out.
    """

    def __init__(
        self,
        sender: Optional[EmailSender] = None,
        send_delay_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = get_settings()
        self.sender = sender or EmailSender()
        self.send_delay_seconds = (
            self.settings.send_delay_seconds
            if send_delay_seconds is None
            else send_delay_seconds
        )
        self.sleep = sleep

    def dispatch(self, matches: Sequence[ReminderMatch]) -> DispatchResult:
        if not matches:
            return DispatchResult()

        if not self.settings.notification_enabled:
            logger.info("Notifications are disabled, skipping dispatch")
            return DispatchResult()

        outgoing = [
            (
                match.user.email,
                match.contest.name,
                format_contest_reminder(
                    match.contest, match.user, self.settings.display_timezone
                ),
            )
            for match in matches
        ]
        result = self._send_all(outgoing)
        logger.info(f"Reminder dispatch finished: {result.sent} sent, {result.failed} failed")
        return result

    def send_test_emails(self, users: Sequence[User]) -> DispatchResult:
        """Send the mailing test message to every user.

        Runs even when reminders are disabled; it is an explicit operator action.
        """
        result = self._send_all([(user.email, None, format_test_email(user)) for user in users])
        logger.info(f"Test email broadcast finished: {result.sent} sent, {result.failed} failed")
        return result

    def _send_all(self, outgoing: Sequence[Outgoing]) -> DispatchResult:
        result = DispatchResult()
        for index, (email, contest_name, message) in enumerate(outgoing):
            if index > 0 and self.send_delay_seconds > 0:
                self.sleep(self.send_delay_seconds)

            try:
                self.sender.send(email, message["subject"], message["body"])
            except SendFailure as e:
                e.contest_name = contest_name
                self._record_failure(result, e)
                continue
            except Exception as e:
                self._record_failure(
                    result, SendFailure(email, repr(e), contest_name=contest_name)
                )
                continue

            result.sent += 1
            logger.info(f"{message['subject']!r} sent to {email}")
        return result

    @staticmethod
    def _record_failure(result: DispatchResult, failure: SendFailure) -> None:
        result.failed += 1
        result.failures.append(failure)
        logger.error(f"Failed to send email to {failure.recipient}: {failure}")
