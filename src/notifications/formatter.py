from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger

from src.models.contest import Contest
from src.models.user import User

CLOSING_LINE = "Good luck!\n\nBest,\nContest Alert Team"
START_TIME_FORMAT = "%Y-%m-%d %H:%M %Z"
TEST_EMAIL_SUBJECT = "Test Email from Contest Alert"


def _zone(tz_name: str):
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {tz_name!r}, falling back to UTC")
        return timezone.utc


def format_start_time(start_time: int, tz_name: str = "UTC") -> str:
    start = datetime.fromtimestamp(start_time, tz=timezone.utc)
    return start.astimezone(_zone(tz_name)).strftime(START_TIME_FORMAT)


def format_contest_reminder(contest: Contest, user: User, tz_name: str = "UTC") -> Dict[str, str]:
    """Format a reminder email.

    Returns:
        dict with keys "subject" and "body".
    """
    starts_at = format_start_time(contest.start_time, tz_name)
    subject = f"Reminder: {contest.name} is starting soon!"
    body = (
        f"Hi {user.name},\n\n"
        f"Reminder: {contest.name} starts at {starts_at}.\n\n"
        f"{CLOSING_LINE}"
    )
    return {"subject": subject, "body": body}


def format_test_email(user: User) -> Dict[str, str]:
    body = (
        f"Hi {user.name},\n\n"
        "This is a test email to verify if the mailing system is working "
        "correctly for all users.\n\n"
        "Best,\nContest Alert Team"
    )
    return {"subject": TEST_EMAIL_SUBJECT, "body": body}
