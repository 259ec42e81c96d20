"""Pydantic schemas for student records."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _required_name(v: Optional[str]) -> str:
    if v is None:
        raise ValueError("cannot be cleared")
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


class StudentBase(BaseModel):
    """Base student fields."""

    name: str = Field(..., min_length=1, max_length=200)
    roll: Optional[str] = Field(None, max_length=50)
    class_name: Optional[str] = Field(None, max_length=50)
    section: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=200)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Strip surrounding whitespace from the name."""
        return _required_name(v)


class StudentCreate(StudentBase):
    """Schema for enrolling a student."""

    uid: Optional[str] = None


class StudentUpdate(BaseModel):
    """Schema for profile edits."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    roll: Optional[str] = Field(None, max_length=50)
    class_name: Optional[str] = Field(None, max_length=50)
    section: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=200)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: Optional[str]) -> str:
        """Strip the name; an explicit None would clear a required column."""
        return _required_name(v)


class StudentResponse(StudentBase):
    """Schema for student responses."""

    id: int
    uid: Optional[str] = None
    issued_books: list[str] = Field(default_factory=list)
    issued_history: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_student(cls, student) -> "StudentResponse":
        """Build a response from a Student row."""
        return cls(
            id=student.id,
            name=student.name,
            roll=student.roll,
            class_name=student.class_name,
            section=student.section,
            email=student.email,
            uid=student.uid,
            issued_books=student.get_issued_books(),
            issued_history=student.get_issued_history(),
            created_at=student.created_at,
            updated_at=student.updated_at,
        )
