"""Tests for announcement form validation."""

from datetime import date, datetime, time, timedelta, timezone

import pytest
from pydantic import ValidationError

from schoollib.announcements.schemas import RepeatOption, ScheduledTaskCreate


class TestScheduledTaskCreate:
    """Tests for ScheduledTaskCreate."""

    def test_one_shot_requires_date(self):
        """Test a non-repeating task needs a date."""
        with pytest.raises(ValidationError, match="scheduled_date is required"):
            ScheduledTaskCreate(description="Quiz", scheduled_time=time(9, 0))

    def test_daily_without_date(self):
        form = ScheduledTaskCreate(
            description="Quiz", scheduled_time=time(9, 0), repeat_option=RepeatOption.DAILY
        )

        assert form.scheduled_date is None

    def test_description_required(self):
        with pytest.raises(ValidationError):
            ScheduledTaskCreate(description="   ", scheduled_date=date(2026, 1, 1), scheduled_time=time(9, 0))

    def test_time_required(self):
        with pytest.raises(ValidationError):
            ScheduledTaskCreate(description="Quiz", scheduled_date=date(2026, 1, 1))

    def test_parses_form_strings(self):
        """Test date and time strings from the command line are accepted."""
        form = ScheduledTaskCreate(
            description="Quiz", scheduled_date="2026-04-01", scheduled_time="14:30"
        )

        assert form.scheduled_date == date(2026, 4, 1)
        assert form.scheduled_time == time(14, 30)

    def test_channels_default_off(self):
        form = ScheduledTaskCreate(
            description="Quiz", scheduled_date=date(2026, 1, 1), scheduled_time=time(9, 0)
        )

        assert form.telegram is False
        assert form.discord is False


class TestResolveInstant:
    """Tests for resolving the first fire instant."""

    def test_one_shot_uses_date(self):
        form = ScheduledTaskCreate(
            description="Quiz", scheduled_date=date(2026, 4, 1), scheduled_time=time(14, 30, 15)
        )
        now = datetime(2026, 3, 1, tzinfo=timezone.utc)

        assert form.resolve_instant(now, timezone.utc) == datetime(
            2026, 4, 1, 14, 30, tzinfo=timezone.utc
        )

    def test_daily_uses_today_in_zone(self):
        """Test 'today' is taken in the form's time zone."""
        form = ScheduledTaskCreate(
            description="Quiz", scheduled_time=time(9, 0), repeat_option=RepeatOption.DAILY
        )
        tz = timezone(timedelta(hours=5, minutes=30))
        now = datetime(2026, 3, 1, 20, 0, tzinfo=timezone.utc)

        instant = form.resolve_instant(now, tz)

        assert instant.date() == date(2026, 3, 2)
        assert instant.utcoffset() == timedelta(hours=5, minutes=30)
