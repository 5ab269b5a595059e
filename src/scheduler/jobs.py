from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List

from loguru import logger

from src.errors import StoreError
from src.fetchers.base import BaseContestFetcher, ContestResult, FetchResult
from src.notifications.dispatcher import DispatchResult, ReminderDispatcher
from src.reminders.matcher import ReminderMatcher
from src.repositories.contests import ContestRepository
from src.repositories.users import UserRepository


@dataclass
class AggregationResult:
    source_counts: Dict[str, int] = field(default_factory=dict)
    failed_sources: List[str] = field(default_factory=list)
    stored: int = 0
    store_ok: bool = True

    @property
    def fetched(self) -> int:
        return sum(self.source_counts.values())


def merge_contests(results: Iterable[FetchResult]) -> List[ContestResult]:
    """合併所有來源的比賽（重複的 platform + start_time 由 repository 去除）"""
    merged: List[ContestResult] = []
    for result in results:
        merged.extend(result.contests)
    return merged


def _fetch(fetcher: BaseContestFetcher, now: datetime) -> FetchResult:
    try:
        return fetcher.fetch(now)
    except Exception as e:
        logger.error(f"Error fetching contests from {fetcher.source}: {e}")
        return FetchResult.failed(fetcher.source, str(e))


def run_contest_aggregation(
    fetchers: Iterable[BaseContestFetcher],
    repository: ContestRepository,
    now: datetime,
) -> AggregationResult:
    """One merge cycle: fetch every source and replace the stored contest set."""
    logger.info(f"Starting contest aggregation at {now.isoformat()}")

    aggregation = AggregationResult()
    results = []
    for fetcher in fetchers:
        result = _fetch(fetcher, now)
        results.append(result)
        aggregation.source_counts[result.source] = len(result.contests)
        if not result.ok:
            aggregation.failed_sources.append(result.source)

    try:
        aggregation.stored = repository.replace_all(merge_contests(results))
    except StoreError as e:
        aggregation.store_ok = False
        logger.error(f"Contest aggregation aborted, keeping previous contests: {e}")
        return aggregation

    logger.info(
        f"Contest aggregation completed: {aggregation.stored} stored, "
        f"failed sources: {aggregation.failed_sources or 'none'}"
    )
    return aggregation


def run_reminder_check(
    contests: ContestRepository,
    users: UserRepository,
    matcher: ReminderMatcher,
    dispatcher: ReminderDispatcher,
    now: datetime,
) -> DispatchResult:
    """One reminder tick: email subscribers of every contest that is due."""
    try:
        stored = contests.list_ordered_by_start()
        matches = matcher.match(now, stored, users.find_subscribers)
    except StoreError as e:
        logger.error(f"Reminder check skipped: {e}")
        return DispatchResult()

    if not matches:
        logger.debug(f"No reminders due at {now.isoformat()}")
        return DispatchResult()

    logger.info(f"Dispatching {len(matches)} reminders")
    return dispatcher.dispatch(matches)


def run_test_email_broadcast(
    users: UserRepository,
    dispatcher: ReminderDispatcher,
) -> DispatchResult:
    """寄測試信給所有使用者，確認郵件設定可用"""
    recipients = users.list_all()
    if not recipients:
        logger.warning("No users to send test email to")
        return DispatchResult()

    logger.info(f"Sending test email to {len(recipients)} users")
    return dispatcher.send_test_emails(recipients)
