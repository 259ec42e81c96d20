"""Pydantic schemas for lending."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class IssueRecordResponse(BaseModel):
    """Schema for issue ledger rows."""

    id: int
    book_id: Optional[int]
    student_id: Optional[int]
    student_name: str
    book_title: str
    author: Optional[str]
    issue_date: datetime
    return_date: Optional[datetime]

    model_config = {"from_attributes": True}


class IssueRecordFilter(BaseModel):
    """Filters for the issue ledger view."""

    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = Field(None, ge=1900, le=9999)
    book_title: Optional[str] = None
    student_name: Optional[str] = None
    author: Optional[str] = None
    open_only: bool = False

    @field_validator("book_title", "student_name", "author")
    @classmethod
    def blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank filter text as no filter."""
        if v is not None and not v.strip():
            return None
        return v


class LibraryOverview(BaseModel):
    """Dashboard statistics."""

    year: int
    total_books: int
    issued_books: int
    available_books: int
    total_students: int
    issued_by_month: list[int] = Field(default_factory=lambda: [0] * 12)

    @property
    def issued_in_year(self) -> int:
        """Total issues during the year."""
        return sum(self.issued_by_month)


class StudentBooks(BaseModel):
    """What a student holds now and has returned before."""

    student_id: int
    student_name: str
    current: list[str]
    history: list[str]
