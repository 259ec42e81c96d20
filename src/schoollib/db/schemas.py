"""Pydantic schemas for catalogue data validation."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class BookStatus(str, Enum):
    """Circulation status of a catalogued book."""

    AVAILABLE = "available"
    ISSUED = "issued"


def _required_text(v: Optional[str]) -> str:
    if v is None:
        raise ValueError("cannot be cleared")
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


# ============================================================================
# Book Schemas
# ============================================================================


class BookBase(BaseModel):
    """Base book fields common to create/update operations."""

    title: str = Field(..., min_length=1, max_length=500, description="Book title")
    author: str = Field(..., min_length=1, max_length=500, description="Primary author")
    category: Optional[str] = Field(None, max_length=200)
    isbn: Optional[str] = Field(None, max_length=17)
    about: Optional[str] = Field(None, description="Descriptive text")
    cover: Optional[str] = Field(None, description="Cover image URL")

    @field_validator("title", "author")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip surrounding whitespace from required text fields."""
        return _required_text(v)


class BookCreate(BookBase):
    """Schema for adding a book to the catalogue."""

    pass


class BookUpdate(BaseModel):
    """Schema for editing catalogue fields.

    Circulation fields (status, issued_to) are owned by the lending
    workflow and cannot be set here.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    author: Optional[str] = Field(None, min_length=1, max_length=500)
    category: Optional[str] = Field(None, max_length=200)
    isbn: Optional[str] = Field(None, max_length=17)
    about: Optional[str] = None
    cover: Optional[str] = None

    @field_validator("title", "author")
    @classmethod
    def check_required(cls, v: Optional[str]) -> str:
        """Strip title/author; an explicit None would clear a required column."""
        return _required_text(v)


class BookResponse(BookBase):
    """Schema for book responses."""

    id: int
    status: BookStatus
    issued_to: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
