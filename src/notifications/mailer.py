from __future__ import annotations

import smtplib
from email.mime.text import MIMEText

from loguru import logger

from src.config import get_settings
from src.errors import SendFailure
from src.notifications.formatter import TEST_EMAIL_SUBJECT

SEND_MESSAGE_TIMEOUT = 10  # seconds


class EmailSender:
    """Send plain-text email through an SMTP server with STARTTLS."""

    def __init__(self):
        settings = get_settings()
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_username
        self.password = settings.smtp_password
        self.sender = settings.email_from or settings.smtp_username

    @classmethod
    def is_configured(cls) -> bool:
        """Check if SMTP credentials are set."""
        settings = get_settings()
        return bool(settings.smtp_host and settings.smtp_username and settings.smtp_password)

    def build_message(self, to: str, subject: str, body: str) -> MIMEText:
        message = MIMEText(body, "plain", "utf-8")
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        return message

    def send(self, to: str, subject: str, body: str) -> None:
        """Send one message.

        Raises:
            SendFailure: the SMTP server rejected the message or was unreachable.
        """
        message = self.build_message(to, subject, body)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=SEND_MESSAGE_TIMEOUT) as server:
                server.starttls()
                server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise SendFailure(to, str(e)) from e

        logger.info(f"Email sent to {to}")


def send_test_email(to: str) -> bool:
    sender = EmailSender()
    try:
        sender.send(
            to,
            TEST_EMAIL_SUBJECT,
            "This is a test email to verify if the mailing system is working correctly.",
        )
        return True
    except SendFailure as e:
        logger.error(f"Error sending test email: {e}")
        return False
