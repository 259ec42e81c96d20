"""Tests for the APScheduler timer backend."""

from datetime import datetime, timedelta, timezone

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from schoollib.announcements.timers import APSchedulerTimers, NullTimers


@pytest.fixture
def timers():
    """Timer service on a scheduler that is never started."""
    service = APSchedulerTimers(BackgroundScheduler(timezone=timezone.utc))
    yield service
    service.shutdown()


def _later(minutes: int = 5) -> datetime:
    return datetime.now(timezone.utc) + timedelta(minutes=minutes)


class TestAPSchedulerTimers:
    """Tests for arming and cancelling timers."""

    def test_arm_registers_job(self, timers):
        timers.arm("42", _later(), lambda: None)

        assert timers.pending() == ["42"]
        assert len(timers._scheduler.get_jobs()) == 1

    def test_rearm_replaces_job(self, timers):
        """Test arming a key again leaves a single job."""
        timers.arm("42", _later(5), lambda: None)
        timers.arm("42", _later(10), lambda: None)

        jobs = timers._scheduler.get_jobs()
        assert timers.pending() == ["42"]
        assert len(jobs) == 1
        assert jobs[0].id.startswith("42:")

    def test_cancel(self, timers):
        timers.arm("42", _later(), lambda: None)

        assert timers.cancel("42") is True
        assert timers.pending() == []
        assert timers._scheduler.get_jobs() == []

    def test_cancel_unknown(self, timers):
        assert timers.cancel("nope") is False

    def test_shutdown_clears(self, timers):
        timers.arm("1", _later(), lambda: None)

        timers.shutdown()

        assert timers.pending() == []

    def test_every_adds_interval_job(self, timers):
        """Test interval jobs run alongside one-shot timers without being listed."""
        timers.every("sync", 30, lambda: None)

        jobs = timers._scheduler.get_jobs()
        assert [job.id for job in jobs] == ["every:sync"]
        assert jobs[0].trigger.interval == timedelta(seconds=30)
        assert timers.pending() == []


class TestNullTimers:
    """Tests for the timer service that arms nothing."""

    def test_arm_is_ignored(self):
        timers = NullTimers()

        timers.arm("42", _later(), lambda: None)

        assert timers.pending() == []
        assert timers.cancel("42") is False
