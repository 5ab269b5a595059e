import smtplib
from unittest.mock import MagicMock, patch

import pytest

from src.errors import SendFailure
from src.notifications.mailer import EmailSender, send_test_email


def _settings(**overrides):
    values = dict(
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_username="bot@example.com",
        smtp_password="secret",
        email_from="alerts@example.com",
    )
    values.update(overrides)
    return MagicMock(**values)


def _mock_smtp(mock_smtp_cls):
    server = MagicMock()
    mock_smtp_cls.return_value.__enter__.return_value = server
    mock_smtp_cls.return_value.__exit__.return_value = False
    return server


class TestEmailSender:
    @patch("src.notifications.mailer.get_settings")
    def test_is_configured_true(self, mock_settings):
        mock_settings.return_value = _settings()
        assert EmailSender.is_configured() is True

    @patch("src.notifications.mailer.get_settings")
    def test_is_configured_false(self, mock_settings):
        mock_settings.return_value = _settings(smtp_password="")
        assert EmailSender.is_configured() is False

    @patch("src.notifications.mailer.smtplib.SMTP")
    @patch("src.notifications.mailer.get_settings")
    def test_send_success(self, mock_settings, mock_smtp_cls):
        mock_settings.return_value = _settings()
        server = _mock_smtp(mock_smtp_cls)

        EmailSender().send("ada@example.com", "Subject", "Body")

        mock_smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=10)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bot@example.com", "secret")
        message = server.send_message.call_args.args[0]
        assert message["From"] == "alerts@example.com"
        assert message["To"] == "ada@example.com"
        assert message["Subject"] == "Subject"

    @patch("src.notifications.mailer.get_settings")
    def test_sender_defaults_to_username(self, mock_settings):
        mock_settings.return_value = _settings(email_from="")
        message = EmailSender().build_message("ada@example.com", "S", "B")
        assert message["From"] == "bot@example.com"

    @patch("src.notifications.mailer.smtplib.SMTP")
    @patch("src.notifications.mailer.get_settings")
    def test_smtp_error_raises_send_failure(self, mock_settings, mock_smtp_cls):
        mock_settings.return_value = _settings()
        server = _mock_smtp(mock_smtp_cls)
        server.send_message.side_effect = smtplib.SMTPRecipientsRefused(
            {"bad@example.com": (550, b"no such user")}
        )

        with pytest.raises(SendFailure) as exc_info:
            EmailSender().send("bad@example.com", "Subject", "Body")

        assert exc_info.value.recipient == "bad@example.com"

    @patch("src.notifications.mailer.smtplib.SMTP")
    @patch("src.notifications.mailer.get_settings")
    def test_connection_error_raises_send_failure(self, mock_settings, mock_smtp_cls):
        mock_settings.return_value = _settings()
        mock_smtp_cls.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(SendFailure):
            EmailSender().send("ada@example.com", "Subject", "Body")


@patch("src.notifications.mailer.smtplib.SMTP")
@patch("src.notifications.mailer.get_settings")
def test_send_test_email(mock_settings, mock_smtp_cls):
    mock_settings.return_value = _settings()
    server = _mock_smtp(mock_smtp_cls)

    assert send_test_email("ada@example.com") is True
    assert server.send_message.call_args.args[0]["Subject"] == "Test Email from Contest Alert"


@patch("src.notifications.mailer.smtplib.SMTP")
@patch("src.notifications.mailer.get_settings")
def test_send_test_email_failure(mock_settings, mock_smtp_cls):
    mock_settings.return_value = _settings()
    mock_smtp_cls.side_effect = smtplib.SMTPConnectError(421, "busy")

    assert send_test_email("ada@example.com") is False
