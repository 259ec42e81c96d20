"""SQLAlchemy models for the lending ledger.

Tables:
- issued: One append-only row per issue, stamped on return
"""

from typing import Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, utcnow_iso


class IssueRecord(Base):
    """Issue record - a single lending of a book to a student."""

    __tablename__ = "issued"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Surrogate links; the names below are kept as they were at issue time
    book_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("books.id", ondelete="SET NULL"), index=True
    )
    student_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("students.id", ondelete="SET NULL"), index=True
    )

    student_name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    book_title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[Optional[str]] = mapped_column(String(500))

    issue_date: Mapped[str] = mapped_column(String(32), default=utcnow_iso, index=True)
    return_date: Mapped[Optional[str]] = mapped_column(String(32))

    def __repr__(self) -> str:
        return (
            f"<IssueRecord(id={self.id}, book='{self.book_title}', "
            f"student='{self.student_name}', returned={self.is_returned})>"
        )

    @property
    def is_returned(self) -> bool:
        """Check if the book has come back."""
        return self.return_date is not None
