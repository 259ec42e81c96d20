"""Announcement scheduler.

Lifecycle of a task:

    scheduled --fire--> overdue (non-repeating, terminal)
    scheduled --fire--> scheduled again at fire instant + 24h (daily)
    any       --stop--> inactive, timer cancelled, row kept
    any       --delete-> row removed, timer cancelled

Timers live in the process, but every armed instant is persisted in
``next_run_at`` so ``restore()`` can re-arm them after a restart. A running
scheduler calls ``sync()`` periodically to pick up rows written by other
processes.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone, tzinfo
from functools import partial
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..api.gateway import GatewayClient, GatewayError
from ..db.sqlite import Database, get_db
from .models import ScheduledTask
from .schemas import RepeatOption, ScheduledTaskCreate
from .timers import APSchedulerTimers, TimerService

logger = logging.getLogger(__name__)

DAILY_INTERVAL = timedelta(hours=24)


class ScheduleValidationError(ValueError):
    """Raised when an announcement cannot be scheduled."""

    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnnouncementScheduler:
    """Schedules, dispatches and re-arms announcements."""

    def __init__(
        self,
        db: Optional[Database] = None,
        gateway: Optional[GatewayClient] = None,
        timers: Optional[TimerService] = None,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None,
    ):
        """Initialize the scheduler.

        Args:
            db: Database instance
            gateway: Dispatch channel; without one, fires are only logged
            timers: Timer backend (default: APScheduler, started on demand)
            clock: Returns the current timezone-aware instant
            tz: Timezone form dates and times are entered in (default: local)
        """
        self.db = db or get_db()
        self.gateway = gateway
        self.timers = timers or APSchedulerTimers()
        self._clock = clock or _utcnow
        self.tz = tz or datetime.now().astimezone().tzinfo
        self._lock = threading.RLock()

    def _now(self) -> datetime:
        return self._clock()

    # -------------------------------------------------------------------------
    # Create / Stop / Delete
    # -------------------------------------------------------------------------

    def create(self, data: ScheduledTaskCreate) -> ScheduledTask:
        """Persist a new announcement and arm its timer.

        Args:
            data: Validated form data

        Returns:
            Created task

        Raises:
            ScheduleValidationError: If the resolved instant is in the past
        """
        now = self._now()
        fire_at = data.resolve_instant(now, self.tz).astimezone(timezone.utc)

        if fire_at < now:
            raise ScheduleValidationError("Scheduled date cannot be in the past.")

        with self.db.get_session() as session:
            task = ScheduledTask(
                id=self._new_id(session, now),
                description=data.description,
                telegram=data.telegram,
                discord=data.discord,
                repeat_option=data.repeat_option.value,
                scheduled_date=fire_at.isoformat(),
                next_run_at=fire_at.isoformat(),
                active=True,
                overdue=False,
            )
            session.add(task)
            session.commit()
            session.refresh(task)
            session.expunge(task)

        self._arm(task.id, fire_at)
        logger.info("Scheduled announcement %s for %s", task.id, fire_at.isoformat())
        return task

    def stop(self, task_id: int) -> Optional[ScheduledTask]:
        """Cancel a task's timer and mark it inactive.

        Returns:
            Updated task or None
        """
        self.timers.cancel(str(task_id))

        with self.db.get_session() as session:
            task = session.get(ScheduledTask, task_id)
            if not task:
                return None
            task.active = False
            task.next_run_at = None
            session.commit()
            session.refresh(task)
            session.expunge(task)

        logger.info("Stopped announcement %s", task_id)
        return task

    def delete(self, task_id: int) -> bool:
        """Cancel a task's timer and remove it.

        Returns:
            True if deleted
        """
        self.timers.cancel(str(task_id))

        with self.db.get_session() as session:
            task = session.get(ScheduledTask, task_id)
            if not task:
                return False
            session.delete(task)
            session.commit()

        logger.info("Deleted announcement %s", task_id)
        return True

    # -------------------------------------------------------------------------
    # Firing
    # -------------------------------------------------------------------------

    def fire(self, task_id: int) -> Optional[ScheduledTask]:
        """Dispatch a task and advance its state.

        Daily tasks are re-armed for the firing instant plus 24 hours even
        when the dispatch fails. Non-repeating tasks whose instant has
        passed become overdue and inactive.

        Returns:
            Updated task, or None if it was stopped or deleted meanwhile
        """
        with self._lock:
            return self._fire(task_id)

    def _fire(self, task_id: int) -> Optional[ScheduledTask]:
        fired_at = self._now()

        with self.db.get_session() as session:
            task = session.get(ScheduledTask, task_id)
            if not task or not task.active:
                logger.info("Announcement %s no longer active; skipping fire", task_id)
                return None
            description = task.description
            telegram, discord = task.telegram, task.discord

        self._dispatch(task_id, description, telegram, discord)

        rearm_at: Optional[datetime] = None
        with self.db.get_session() as session:
            task = session.get(ScheduledTask, task_id)
            if not task:
                return None

            task.last_fired_at = fired_at.isoformat()
            if task.is_daily:
                if task.active:
                    rearm_at = fired_at + DAILY_INTERVAL
                    task.next_run_at = rearm_at.isoformat()
            elif task.scheduled_at <= self._now():
                task.overdue = True
                task.active = False
                task.next_run_at = None

            session.commit()
            session.refresh(task)
            session.expunge(task)

        if rearm_at:
            self._arm(task_id, rearm_at)
        return task

    def _dispatch(self, task_id: int, description: str, telegram: bool, discord: bool) -> bool:
        if not self.gateway:
            logger.warning("No gateway configured; announcement %s not dispatched", task_id)
            return False
        try:
            self.gateway.send_announcement(description, telegram=telegram, discord=discord)
        except GatewayError as e:
            logger.error("Error sending announcement %s: %s", task_id, e)
            return False
        logger.info("Announcement %s sent: %s", task_id, description)
        return True

    def _arm(self, task_id: int, fire_at: datetime) -> None:
        self.timers.arm(str(task_id), fire_at, partial(self.fire, task_id))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_task(self, task_id: int) -> Optional[ScheduledTask]:
        """Get a task by ID."""
        with self.db.get_session() as session:
            task = session.get(ScheduledTask, task_id)
            if task:
                session.expunge(task)
            return task

    def list_tasks(
        self,
        repeat_option: Optional[RepeatOption] = None,
        active_only: bool = False,
    ) -> list[ScheduledTask]:
        """List tasks, newest first.

        Args:
            repeat_option: Only tasks with this recurrence
            active_only: Only active tasks
        """
        with self.db.get_session() as session:
            stmt = select(ScheduledTask)
            if repeat_option:
                stmt = stmt.where(ScheduledTask.repeat_option == repeat_option.value)
            if active_only:
                stmt = stmt.where(ScheduledTask.active.is_(True))
            stmt = stmt.order_by(ScheduledTask.id.desc())

            tasks = list(session.execute(stmt).scalars().all())
            for t in tasks:
                session.expunge(t)
            return tasks

    # -------------------------------------------------------------------------
    # Startup recovery
    # -------------------------------------------------------------------------

    def restore(self) -> int:
        """Re-arm timers for every active task after a restart.

        Non-repeating tasks whose instant already passed are marked overdue
        instead; their dispatch is not replayed.

        Returns:
            Number of timers armed
        """
        now = self._now()
        to_arm: list[tuple[int, datetime]] = []

        with self.db.get_session() as session:
            stmt = select(ScheduledTask).where(ScheduledTask.active.is_(True))
            for task in session.execute(stmt).scalars().all():
                if task.is_daily:
                    fire_at = task.next_run
                    if fire_at is None or fire_at < now:
                        fire_at = self._next_daily_occurrence(task.scheduled_at, now)
                    task.next_run_at = fire_at.isoformat()
                    to_arm.append((task.id, fire_at))
                elif task.scheduled_at < now:
                    task.overdue = True
                    task.active = False
                    task.next_run_at = None
                    logger.warning("Announcement %s missed while not running; marked overdue", task.id)
                else:
                    to_arm.append((task.id, task.scheduled_at))
            session.commit()

        for task_id, fire_at in to_arm:
            self._arm(task_id, fire_at)

        logger.info("Restored %d announcement timer(s)", len(to_arm))
        return len(to_arm)

    def sync(self) -> int:
        """Reconcile armed timers with the table.

        Arms active tasks that have no timer in this process, firing
        one-shot tasks whose instant already passed right away. Cancels
        timers whose task was stopped or deleted elsewhere.

        Returns:
            Number of timers armed
        """
        with self._lock:
            now = self._now()
            armed = set(self.timers.pending())
            active: set[str] = set()
            to_arm: list[tuple[int, datetime]] = []

            with self.db.get_session() as session:
                stmt = select(ScheduledTask).where(ScheduledTask.active.is_(True))
                for task in session.execute(stmt).scalars().all():
                    key = str(task.id)
                    active.add(key)
                    if key in armed:
                        continue
                    if task.is_daily:
                        fire_at = task.next_run
                        if fire_at is None or fire_at < now:
                            fire_at = self._next_daily_occurrence(task.scheduled_at, now)
                    else:
                        fire_at = max(task.scheduled_at, now)
                    task.next_run_at = fire_at.isoformat()
                    to_arm.append((task.id, fire_at))
                session.commit()

            for key in armed - active:
                self.timers.cancel(key)
                logger.info("Announcement %s no longer active; timer cancelled", key)

            for task_id, fire_at in to_arm:
                self._arm(task_id, fire_at)

        if to_arm:
            logger.info("Picked up %d announcement(s)", len(to_arm))
        return len(to_arm)

    def _next_daily_occurrence(self, anchor: datetime, now: datetime) -> datetime:
        """Next instant at the anchor's local time of day, strictly after now."""
        local_now = now.astimezone(self.tz)
        local_time = anchor.astimezone(self.tz).timetz().replace(tzinfo=None)
        candidate = datetime.combine(local_now.date(), local_time).replace(tzinfo=self.tz)
        if candidate <= local_now:
            candidate = candidate + DAILY_INTERVAL
        return candidate.astimezone(timezone.utc)

    def _new_id(self, session: Session, now: datetime) -> int:
        """Millisecond timestamp id, bumped past any existing row."""
        task_id = int(now.timestamp() * 1000)
        while session.get(ScheduledTask, task_id) is not None:
            task_id += 1
        return task_id

    def start(self) -> int:
        """Start the timer backend and re-arm persisted tasks.

        Returns:
            Number of timers armed
        """
        if isinstance(self.timers, APSchedulerTimers):
            self.timers.start()
        return self.restore()

    def shutdown(self) -> None:
        """Stop the timer backend."""
        self.timers.shutdown()
