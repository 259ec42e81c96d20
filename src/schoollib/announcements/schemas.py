"""Pydantic schemas for scheduled announcements."""

from datetime import date, datetime, time, tzinfo
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class RepeatOption(str, Enum):
    """How often an announcement fires."""

    NONE = "none"
    DAILY = "daily"


class ScheduledTaskCreate(BaseModel):
    """Schema for the announcement form.

    A date is required unless the task repeats daily; daily tasks are
    anchored to today at the chosen time.
    """

    description: str = Field(..., min_length=1, description="Prompt to announce")
    scheduled_date: Optional[date] = None
    scheduled_time: time
    repeat_option: RepeatOption = RepeatOption.NONE
    telegram: bool = False
    discord: bool = False

    @model_validator(mode="after")
    def check_required_fields(self) -> "ScheduledTaskCreate":
        """Require a description and, unless daily, a date."""
        if not self.description.strip():
            raise ValueError("description is required")
        if self.repeat_option == RepeatOption.NONE and self.scheduled_date is None:
            raise ValueError("scheduled_date is required unless the task repeats daily")
        return self

    def resolve_instant(self, now: datetime, tz: tzinfo) -> datetime:
        """Resolve the first fire instant in ``tz``.

        Args:
            now: Current instant (timezone-aware)
            tz: Timezone the form date and time are expressed in
        """
        if self.repeat_option == RepeatOption.DAILY:
            day = now.astimezone(tz).date()
        else:
            day = self.scheduled_date
        naive = datetime.combine(day, self.scheduled_time.replace(second=0, microsecond=0))
        return naive.replace(tzinfo=tz)


class ScheduledTaskResponse(BaseModel):
    """Schema for scheduled task responses."""

    id: int
    description: str
    telegram: bool
    discord: bool
    repeat_option: RepeatOption
    scheduled_date: datetime
    next_run_at: Optional[datetime]
    last_fired_at: Optional[datetime]
    active: bool
    overdue: bool

    model_config = {"from_attributes": True}
