from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from apscheduler.schedulers.background import BackgroundScheduler
from loguru import logger

from src.config import Settings, get_settings
from src.errors import ConfigurationError
from src.fetchers import get_default_fetchers
from src.fetchers.base import BaseContestFetcher
from src.notifications.dispatcher import DispatchResult, ReminderDispatcher
from src.reminders.matcher import ReminderMatcher
from src.repositories import (
    ContestRepository,
    UserRepository,
    get_contest_repository,
    get_user_repository,
)
from src.scheduler.jobs import (
    AggregationResult,
    run_contest_aggregation,
    run_reminder_check,
)

Clock = Callable[[], datetime]

REMINDER_TICK_JOB_ID = "reminder_tick"
AGGREGATION_JOB_ID = "contest_aggregation"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def check_tick_interval(tick_interval_seconds: int, matcher: ReminderMatcher) -> None:
    """The tick must not be wider than the due window or contests get skipped.

    A tick narrower than the window means one contest can be due on more
    than one tick; there is no sent-reminder ledger to stop the repeat.
    """
    band = matcher.band_width_seconds
    if tick_interval_seconds <= 0:
        raise ConfigurationError("tick interval must be positive")
    if tick_interval_seconds > band:
        raise ConfigurationError(
            f"tick interval {tick_interval_seconds}s exceeds reminder window {band}s; "
            "some contests would never be reminded"
        )
    if tick_interval_seconds < band:
        logger.warning(
            f"tick interval {tick_interval_seconds}s is shorter than reminder window "
            f"{band}s; a contest may be reminded on more than one tick"
        )


class ContestAlertScheduler:
    """Owns the aggregation trigger and the reminder tick driver."""

    def __init__(
        self,
        contests: ContestRepository,
        users: UserRepository,
        fetchers: Optional[Sequence[BaseContestFetcher]] = None,
        matcher: Optional[ReminderMatcher] = None,
        dispatcher: Optional[ReminderDispatcher] = None,
        clock: Clock = utc_now,
        settings: Optional[Settings] = None,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        self.settings = settings or get_settings()
        self.contests = contests
        self.users = users
        self.fetchers = list(fetchers) if fetchers is not None else get_default_fetchers()
        self.matcher = matcher or ReminderMatcher(
            lead_seconds=self.settings.reminder_lead_minutes * 60,
            tolerance_seconds=self.settings.reminder_tolerance_seconds,
        )
        self.dispatcher = dispatcher or ReminderDispatcher()
        self.clock = clock
        self.tick_interval_seconds = self.settings.tick_interval_seconds
        check_tick_interval(self.tick_interval_seconds, self.matcher)
        self.scheduler = scheduler or BackgroundScheduler(timezone=timezone.utc)
        self._configured = False

    def aggregate(self) -> Optional[AggregationResult]:
        try:
            return run_contest_aggregation(self.fetchers, self.contests, self.clock())
        except Exception:
            logger.exception("Unexpected error in contest aggregation")
            return None

    def tick(self) -> Optional[DispatchResult]:
        try:
            return run_reminder_check(
                self.contests, self.users, self.matcher, self.dispatcher, self.clock()
            )
        except Exception:
            logger.exception("Unexpected error in reminder tick")
            return None

    def configure(self) -> BackgroundScheduler:
        if self._configured:
            return self.scheduler

        # 每分鐘檢查即將開始的比賽；上一次還沒跑完就不啟動新的
        self.scheduler.add_job(
            self.tick,
            "interval",
            seconds=self.tick_interval_seconds,
            id=REMINDER_TICK_JOB_ID,
            name="Reminder Tick",
            max_instances=1,
            coalesce=True,
        )

        # 定期更新比賽列表，啟動時先跑一次
        self.scheduler.add_job(
            self.aggregate,
            "interval",
            minutes=self.settings.aggregation_interval_minutes,
            id=AGGREGATION_JOB_ID,
            name="Contest Aggregation",
            max_instances=1,
            coalesce=True,
            next_run_time=utc_now(),
        )

        self._configured = True
        logger.info("Scheduler configured with jobs")
        return self.scheduler

    def start(self) -> None:
        self.configure()
        self.scheduler.start()
        logger.info("Scheduler started")

    def shutdown(self, wait: bool = False) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
            logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return bool(self.scheduler.running)

    def status(self) -> Dict[str, Any]:
        jobs: List[Dict[str, Any]] = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append(
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run": str(next_run) if next_run else None,
                }
            )
        return {"scheduler_running": self.running, "jobs": jobs}


def create_scheduler(clock: Clock = utc_now) -> ContestAlertScheduler:
    return ContestAlertScheduler(
        contests=get_contest_repository(),
        users=get_user_repository(),
        clock=clock,
    )


def start_scheduler() -> ContestAlertScheduler:
    scheduler = create_scheduler()
    scheduler.start()
    return scheduler
