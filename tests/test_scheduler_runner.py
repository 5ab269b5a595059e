from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from src.config import Settings
from src.errors import ConfigurationError
from src.reminders.matcher import ReminderMatcher
from src.scheduler.runner import (
    AGGREGATION_JOB_ID,
    REMINDER_TICK_JOB_ID,
    ContestAlertScheduler,
    check_tick_interval,
)

FIXED_NOW = datetime(2024, 6, 2, 14, 10, tzinfo=timezone.utc)


def _settings(**overrides):
    return Settings(_env_file=None, **overrides)


def _scheduler(**kwargs):
    params = dict(
        contests=MagicMock(),
        users=MagicMock(),
        fetchers=[],
        dispatcher=MagicMock(),
        clock=lambda: FIXED_NOW,
        settings=_settings(),
        scheduler=BackgroundScheduler(timezone=timezone.utc),
    )
    params.update(kwargs)
    return ContestAlertScheduler(**params)


class TestCheckTickInterval:
    def test_tick_wider_than_band_is_rejected(self):
        with pytest.raises(ConfigurationError):
            check_tick_interval(121, ReminderMatcher(tolerance_seconds=60))

    def test_tick_equal_to_band_is_accepted(self):
        check_tick_interval(120, ReminderMatcher(tolerance_seconds=60))

    def test_default_tick_is_accepted(self):
        check_tick_interval(60, ReminderMatcher(tolerance_seconds=60))

    def test_non_positive_tick_is_rejected(self):
        with pytest.raises(ConfigurationError):
            check_tick_interval(0, ReminderMatcher())


class TestContestAlertScheduler:
    def test_misconfigured_tick_rejected_on_construction(self):
        with pytest.raises(ConfigurationError):
            _scheduler(settings=_settings(tick_interval_seconds=300))

    def test_matcher_built_from_settings(self):
        scheduler = _scheduler(
            settings=_settings(reminder_lead_minutes=15, reminder_tolerance_seconds=90)
        )
        assert scheduler.matcher.lead_seconds == 900
        assert scheduler.matcher.tolerance_seconds == 90

    def test_tick_uses_injected_clock(self):
        contests = MagicMock()
        contests.list_ordered_by_start.return_value = []
        matcher = MagicMock(band_width_seconds=120)
        matcher.match.return_value = []
        scheduler = _scheduler(contests=contests, matcher=matcher)

        result = scheduler.tick()

        assert result.attempted == 0
        assert matcher.match.call_args.args[:2] == (FIXED_NOW, [])
        scheduler.dispatcher.dispatch.assert_not_called()

    def test_tick_survives_unexpected_errors(self):
        contests = MagicMock()
        contests.list_ordered_by_start.side_effect = RuntimeError("boom")
        scheduler = _scheduler(contests=contests)

        assert scheduler.tick() is None

    def test_aggregate_passes_clock_to_fetchers(self):
        fetcher = MagicMock()
        fetcher.source = "codeforces"
        fetcher.fetch.return_value = MagicMock(source="codeforces", contests=[], ok=True)
        contests = MagicMock()
        contests.replace_all.return_value = 0
        scheduler = _scheduler(contests=contests, fetchers=[fetcher])

        result = scheduler.aggregate()

        fetcher.fetch.assert_called_once_with(FIXED_NOW)
        contests.replace_all.assert_called_once_with([])
        assert result.store_ok is True

    def test_aggregate_survives_unexpected_errors(self):
        contests = MagicMock()
        contests.replace_all.side_effect = RuntimeError("boom")
        scheduler = _scheduler(contests=contests)

        assert scheduler.aggregate() is None

    def test_configure_registers_jobs(self):
        scheduler = _scheduler()

        scheduler.configure()
        scheduler.configure()

        jobs = {job.id: job for job in scheduler.scheduler.get_jobs()}
        assert set(jobs) == {REMINDER_TICK_JOB_ID, AGGREGATION_JOB_ID}
        assert jobs[REMINDER_TICK_JOB_ID].max_instances == 1
        assert jobs[REMINDER_TICK_JOB_ID].trigger.interval.total_seconds() == 60

    def test_status_before_start(self):
        scheduler = _scheduler()
        scheduler.configure()

        status = scheduler.status()

        assert status["scheduler_running"] is False
        assert {job["id"] for job in status["jobs"]} == {
            REMINDER_TICK_JOB_ID,
            AGGREGATION_JOB_ID,
        }

    def test_shutdown_when_not_running_is_noop(self):
        scheduler = _scheduler()
        scheduler.shutdown()
        assert scheduler.running is False
