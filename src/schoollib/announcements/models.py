"""SQLAlchemy models for scheduled announcements."""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, utcnow_iso


class ScheduledTask(Base):
    """An announcement prompt dispatched at a scheduled instant."""

    __tablename__ = "scheduled_tasks"

    # Millisecond timestamp assigned at creation
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Channels
    telegram: Mapped[bool] = mapped_column(Boolean, default=False)
    discord: Mapped[bool] = mapped_column(Boolean, default=False)

    repeat_option: Mapped[str] = mapped_column(String(10), default="none", index=True)

    # ISO instants (UTC)
    scheduled_date: Mapped[str] = mapped_column(String(32), nullable=False)
    next_run_at: Mapped[Optional[str]] = mapped_column(String(32))
    last_fired_at: Mapped[Optional[str]] = mapped_column(String(32))

    active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    overdue: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[str] = mapped_column(String(32), default=utcnow_iso)

    def __repr__(self) -> str:
        return (
            f"<ScheduledTask(id={self.id}, repeat={self.repeat_option}, "
            f"active={self.active}, overdue={self.overdue})>"
        )

    @property
    def is_daily(self) -> bool:
        """Check if the task repeats every day."""
        return self.repeat_option == "daily"

    @property
    def scheduled_at(self) -> datetime:
        """The scheduled instant as a datetime."""
        return datetime.fromisoformat(self.scheduled_date)

    @property
    def next_run(self) -> Optional[datetime]:
        """The persisted next fire instant, if armed."""
        return datetime.fromisoformat(self.next_run_at) if self.next_run_at else None
