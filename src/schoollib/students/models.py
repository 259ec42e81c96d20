"""SQLAlchemy models for student records.

Tables:
- students: Enrolled students and the titles they hold or have held
"""

import json
from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, utcnow_iso


class Student(Base):
    """Student model."""

    __tablename__ = "students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    roll: Mapped[Optional[str]] = mapped_column(String(50))
    class_name: Mapped[Optional[str]] = mapped_column("class", String(50))
    section: Mapped[Optional[str]] = mapped_column(String(20))
    email: Mapped[Optional[str]] = mapped_column(String(200))

    # Auth user this record belongs to (student self-service)
    uid: Mapped[Optional[str]] = mapped_column(String(36), index=True)

    # Ordered title lists, JSON arrays
    issued_books: Mapped[Optional[str]] = mapped_column(Text)
    issued_history: Mapped[Optional[str]] = mapped_column(Text)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utcnow_iso)
    updated_at: Mapped[str] = mapped_column(String(32), default=utcnow_iso, onupdate=utcnow_iso)

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, name='{self.name}')>"

    def get_issued_books(self) -> list[str]:
        """Get titles currently held."""
        if self.issued_books:
            return json.loads(self.issued_books)
        return []

    def set_issued_books(self, titles: list[str]) -> None:
        """Set titles currently held."""
        self.issued_books = json.dumps(titles)

    def get_issued_history(self) -> list[str]:
        """Get titles previously returned, oldest first."""
        if self.issued_history:
            return json.loads(self.issued_history)
        return []

    def set_issued_history(self, titles: list[str]) -> None:
        """Set returned titles."""
        self.issued_history = json.dumps(titles)

    @property
    def books_held(self) -> int:
        """Number of books currently held."""
        return len(self.get_issued_books())
