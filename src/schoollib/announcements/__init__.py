"""Scheduled announcement module.

Provides functionality for:
- Scheduling one-off and daily announcements
- Dispatching them to Telegram/Discord through the gateway
- Overdue tracking and restart recovery
"""

from .manager import AnnouncementScheduler, ScheduleValidationError
from .models import ScheduledTask
from .schemas import RepeatOption, ScheduledTaskCreate, ScheduledTaskResponse
from .timers import APSchedulerTimers, NullTimers, TimerService

__all__ = [
    "AnnouncementScheduler",
    "ScheduleValidationError",
    "ScheduledTask",
    "RepeatOption",
    "ScheduledTaskCreate",
    "ScheduledTaskResponse",
    "APSchedulerTimers",
    "NullTimers",
    "TimerService",
]
