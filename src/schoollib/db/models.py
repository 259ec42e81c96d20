"""SQLAlchemy ORM models for the library store.

Tables:
- books: Catalogue records and their circulation status
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .schemas import BookStatus


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utcnow_iso() -> str:
    """Current UTC instant as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


class Book(Base):
    """Book model - a catalogued copy and who currently holds it."""

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Core fields
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    category: Mapped[Optional[str]] = mapped_column(String(200), index=True)
    isbn: Mapped[Optional[str]] = mapped_column(String(17), index=True)
    about: Mapped[Optional[str]] = mapped_column(Text)
    cover: Mapped[Optional[str]] = mapped_column(Text)  # URL

    # Circulation
    status: Mapped[str] = mapped_column(
        String(20), default=BookStatus.AVAILABLE.value, index=True
    )
    issued_to: Mapped[Optional[str]] = mapped_column(String(200))  # Student name

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utcnow_iso)
    updated_at: Mapped[str] = mapped_column(String(32), default=utcnow_iso, onupdate=utcnow_iso)

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', status={self.status})>"

    @property
    def is_available(self) -> bool:
        """Check if the book can be issued."""
        return self.status == BookStatus.AVAILABLE.value

    @property
    def is_issued(self) -> bool:
        """Check if the book is currently issued."""
        return self.status == BookStatus.ISSUED.value
