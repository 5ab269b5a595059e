from __future__ import annotations

from typing import Optional


class ContestAlertError(Exception):
    """Base class for contest alert errors."""


class TransientFetchError(ContestAlertError):
    """External contest source unreachable or returned malformed data."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class SendFailure(ContestAlertError):
    """A single reminder email could not be delivered to the mail server."""

    def __init__(self, recipient: str, message: str, contest_name: Optional[str] = None):
        super().__init__(f"{recipient}: {message}")
        self.recipient = recipient
        self.contest_name = contest_name


class StoreError(ContestAlertError):
    """A repository operation failed; the stored data was left unchanged."""


class ConfigurationError(ContestAlertError):
    pass
