from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, FrozenSet, Iterable, List

from loguru import logger

from src.models.contest import Contest, as_utc
from src.models.user import ContestCategory, User, categories_for_platform

DEFAULT_LEAD_SECONDS = 20 * 60
DEFAULT_TOLERANCE_SECONDS = 60

SubscriberLookup = Callable[[FrozenSet[ContestCategory]], List[User]]


@dataclass(frozen=True)
class ReminderMatch:
    contest: Contest
    user: User


class ReminderMatcher:
    """Selects contests entering the notification window and their subscribers.

    A contest is due when its start lies within ``tolerance_seconds`` of
    ``now + lead_seconds`` (both ends inclusive). Nothing records which
    reminders were already sent, so a contest is due on every tick that
    falls inside its window.
    """

    def __init__(
        self,
        lead_seconds: int = DEFAULT_LEAD_SECONDS,
        tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
    ):
        if lead_seconds < 0 or tolerance_seconds < 0:
            raise ValueError("lead and tolerance must be non-negative")
        self.lead_seconds = lead_seconds
        self.tolerance_seconds = tolerance_seconds

    @property
    def band_width_seconds(self) -> int:
        return 2 * self.tolerance_seconds

    def window(self, now: datetime):
        target = int(as_utc(now).timestamp()) + self.lead_seconds
        return target - self.tolerance_seconds, target + self.tolerance_seconds

    def find_due_contests(self, now: datetime, contests: Iterable[Contest]) -> List[Contest]:
        window_start, window_end = self.window(now)
        return [c for c in contests if window_start <= c.start_time <= window_end]

    def match(
        self,
        now: datetime,
        contests: Iterable[Contest],
        find_subscribers: SubscriberLookup,
    ) -> List[ReminderMatch]:
        matches: List[ReminderMatch] = []
        for contest in self.find_due_contests(now, contests):
            categories = categories_for_platform(contest.platform)
            if not categories:
                logger.warning(f"No reminder categories for platform {contest.platform}")
                continue

            users = find_subscribers(categories)
            logger.info(f"{contest.name} is due: {len(users)} subscribers")
            matches.extend(ReminderMatch(contest=contest, user=user) for user in users)
        return matches
