"""Fixtures for scheduler tests: a simulated clock and timer backend."""

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from schoollib.announcements.manager import AnnouncementScheduler


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now


class FakeTimers:
    """In-memory TimerService driven by a FakeClock."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.timers: dict[str, tuple[datetime, Callable[[], None]]] = {}
        self.shut_down = False

    def arm(self, key: str, fire_at: datetime, callback: Callable[[], None]) -> None:
        self.timers[key] = (fire_at, callback)

    def cancel(self, key: str) -> bool:
        return self.timers.pop(key, None) is not None

    def pending(self) -> list[str]:
        return list(self.timers)

    def shutdown(self) -> None:
        self.timers.clear()
        self.shut_down = True

    def advance(self, ms: int) -> None:
        """Move the clock forward, firing due timers in instant order."""
        target = self.clock.now + timedelta(milliseconds=ms)
        while True:
            due = [
                (fire_at, key)
                for key, (fire_at, _) in self.timers.items()
                if fire_at <= target
            ]
            if not due:
                break
            fire_at, key = min(due)
            _, callback = self.timers.pop(key)
            self.clock.now = max(self.clock.now, fire_at)
            callback()
        self.clock.now = target


START = datetime(2026, 3, 10, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(START)


@pytest.fixture
def timers(clock) -> FakeTimers:
    return FakeTimers(clock)


@pytest.fixture
def scheduler(db, gateway, timers, clock) -> AnnouncementScheduler:
    """Scheduler on UTC with a mocked gateway and simulated time."""
    return AnnouncementScheduler(db, gateway=gateway, timers=timers, clock=clock, tz=timezone.utc)


@pytest.fixture
def make_timers(clock) -> Callable[[], FakeTimers]:
    """Factory for fresh timer backends sharing the simulated clock."""
    return lambda: FakeTimers(clock)
