"""LeetCode contest schedule.

LeetCode does not expose a public contest API, so upcoming contests are
computed from their fixed calendar:

  - Weekly Contest   - every Sunday at 14:30 UTC
  - Biweekly Contest - every other Saturday at 14:30 UTC, anchored on
    2022-01-08 14:30 UTC

All functions are pure: the same ``now`` always yields the same contests.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import islice
from typing import Iterator, List, Optional

from loguru import logger

from src.fetchers.base import BaseContestFetcher, ContestResult, FetchResult
from src.models.contest import ContestPlatform, as_utc

WEEKLY_NAME = "LeetCode Weekly Contest"
BIWEEKLY_NAME = "LeetCode Biweekly Contest"

SUNDAY = 6  # datetime.weekday()
WEEKLY_HOUR = 14
WEEKLY_MINUTE = 30
WEEKLY_PERIOD = timedelta(days=7)

BIWEEKLY_ANCHOR = datetime(2022, 1, 8, 14, 30, tzinfo=timezone.utc)
BIWEEKLY_PERIOD = timedelta(days=14)

CONTEST_DURATION = 5400  # seconds
MAX_UPCOMING = 3


def next_weekly_contest(now: datetime) -> datetime:
    """下一場週賽；若今天是週日且尚未過 14:30（含剛好 14:30），就是今天"""
    now = as_utc(now)
    slot_today = now.replace(
        hour=WEEKLY_HOUR, minute=WEEKLY_MINUTE, second=0, microsecond=0
    )
    days_until_sunday = (SUNDAY - now.weekday()) % 7
    if days_until_sunday == 0 and now > slot_today:
        days_until_sunday = 7
    return slot_today + timedelta(days=days_until_sunday)


def next_biweekly_contest(now: datetime) -> datetime:
    """下一場雙週賽，一定嚴格晚於 now"""
    now = as_utc(now)
    periods_passed = (now - BIWEEKLY_ANCHOR) // BIWEEKLY_PERIOD
    candidate = BIWEEKLY_ANCHOR + periods_passed * BIWEEKLY_PERIOD
    if candidate <= now:
        candidate += BIWEEKLY_PERIOD
    return candidate


def _contest(name: str, start: datetime) -> ContestResult:
    return ContestResult(
        platform=ContestPlatform.leetcode,
        name=name,
        start_time=int(start.timestamp()),
        duration=CONTEST_DURATION,
    )


def iter_upcoming_leetcode_contests(
    now: datetime, limit: int = MAX_UPCOMING
) -> Iterator[ContestResult]:
    """Yield the next upcoming LeetCode contests in start order.

    Takes the next two occurrences of each series, sorts them and yields only
    those starting strictly after ``now``, at most ``limit`` of them.
    """
    now = as_utc(now)
    weekly = next_weekly_contest(now)
    biweekly = next_biweekly_contest(now)
    candidates = [
        _contest(WEEKLY_NAME, weekly),
        _contest(WEEKLY_NAME, weekly + WEEKLY_PERIOD),
        _contest(BIWEEKLY_NAME, biweekly),
        _contest(BIWEEKLY_NAME, biweekly + BIWEEKLY_PERIOD),
    ]
    candidates.sort(key=lambda c: c.start_time)

    now_seconds = int(now.timestamp())
    upcoming = (c for c in candidates if c.start_time > now_seconds)
    return islice(upcoming, limit)


def compute_upcoming_leetcode_contests(
    now: datetime, limit: int = MAX_UPCOMING
) -> List[ContestResult]:
    return list(iter_upcoming_leetcode_contests(now, limit))


class LeetCodeScheduleFetcher(BaseContestFetcher):
    source = "leetcode"

    def fetch(self, now: Optional[datetime] = None) -> FetchResult:
        if now is None:
            now = datetime.now(timezone.utc)
        contests = compute_upcoming_leetcode_contests(now)
        logger.info(f"Computed {len(contests)} upcoming LeetCode contests")
        return FetchResult(source=self.source, contests=contests)
