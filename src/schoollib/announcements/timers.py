"""Timer backends for announcement dispatch.

The scheduler only needs to arm a one-shot callback for an instant and to
cancel it again. ``APSchedulerTimers`` does this with APScheduler's
background scheduler; tests supply their own ``TimerService``.
"""

import itertools
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

logger = logging.getLogger(__name__)


class TimerService(Protocol):
    """One-shot timers keyed by caller-chosen strings."""

    def arm(self, key: str, fire_at: datetime, callback: Callable[[], None]) -> None:
        """Arm (or re-arm) the timer for ``key``."""
        ...

    def cancel(self, key: str) -> bool:
        """Cancel the timer for ``key``; False if none was pending."""
        ...

    def pending(self) -> list[str]:
        """Keys with an armed timer."""
        ...

    def shutdown(self) -> None:
        """Stop the backend and drop all timers."""
        ...


class APSchedulerTimers:
    """Timer service backed by an APScheduler scheduler."""

    def __init__(self, scheduler: Optional[BaseScheduler] = None):
        """Initialize the timer service.

        Args:
            scheduler: Scheduler to use (default: a UTC BackgroundScheduler)
        """
        self._scheduler = scheduler or BackgroundScheduler(timezone=timezone.utc)
        self._jobs: dict[str, str] = {}
        self._lock = threading.Lock()
        self._counter = itertools.count(1)

    def start(self) -> None:
        """Start the underlying scheduler if it is not running."""
        if not self._scheduler.running:
            self._scheduler.start()

    def arm(self, key: str, fire_at: datetime, callback: Callable[[], None]) -> None:
        """Add a one-shot date job for ``key``, replacing any earlier one."""
        # A fresh job id per arming: a callback re-arming its own key must not
        # collide with the job APScheduler is still retiring.
        job_id = f"{key}:{next(self._counter)}"

        def run() -> None:
            with self._lock:
                if self._jobs.get(key) == job_id:
                    del self._jobs[key]
            callback()

        with self._lock:
            previous = self._jobs.pop(key, None)
            if previous:
                self._remove(previous)
            self._scheduler.add_job(
                run,
                trigger="date",
                run_date=fire_at,
                id=job_id,
                misfire_grace_time=None,
            )
            self._jobs[key] = job_id
        logger.debug("Armed timer %s for %s", key, fire_at.isoformat())

    def every(self, key: str, seconds: int, callback: Callable[[], None]) -> None:
        """Run ``callback`` every ``seconds`` until shutdown.

        Interval jobs are not listed by ``pending()``.
        """
        self._scheduler.add_job(
            callback,
            trigger="interval",
            seconds=seconds,
            id=f"every:{key}",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    def cancel(self, key: str) -> bool:
        """Remove the job for ``key``; False if none was pending."""
        with self._lock:
            job_id = self._jobs.pop(key, None)
            if not job_id:
                return False
            return self._remove(job_id)

    def pending(self) -> list[str]:
        """Keys with an armed one-shot job."""
        with self._lock:
            return list(self._jobs)

    def shutdown(self) -> None:
        """Drop all timers and stop the scheduler."""
        with self._lock:
            self._jobs.clear()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    def _remove(self, job_id: str) -> bool:
        try:
            self._scheduler.remove_job(job_id)
        except JobLookupError:
            return False
        return True


class NullTimers:
    """Timer service that arms nothing.

    For short-lived processes that only write tasks; a running scheduler
    picks the rows up on its next ``sync()``.
    """

    def arm(self, key: str, fire_at: datetime, callback: Callable[[], None]) -> None:
        """Ignore the timer."""
        logger.debug("Not arming %s in this process", key)

    def cancel(self, key: str) -> bool:
        """Nothing is ever pending."""
        return False

    def pending(self) -> list[str]:
        """Always empty."""
        return []

    def shutdown(self) -> None:
        """Nothing to stop."""
        pass
