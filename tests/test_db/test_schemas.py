"""Tests for catalogue schemas."""

import pytest
from pydantic import ValidationError

from schoollib.db.schemas import BookCreate, BookStatus, BookUpdate


class TestBookCreate:
    """Tests for BookCreate validation."""

    def test_minimal(self):
        """Test that title and author are enough."""
        book = BookCreate(title="Dune", author="Frank Herbert")

        assert book.category is None
        assert book.isbn is None

    def test_strips_whitespace(self):
        """Test required text fields are stripped."""
        book = BookCreate(title="  Dune ", author=" Frank Herbert ")

        assert book.title == "Dune"
        assert book.author == "Frank Herbert"

    def test_blank_title_rejected(self):
        """Test a whitespace-only title is rejected."""
        with pytest.raises(ValidationError):
            BookCreate(title="   ", author="Frank Herbert")

    def test_missing_author_rejected(self):
        """Test author is required."""
        with pytest.raises(ValidationError):
            BookCreate(title="Dune")

    def test_isbn_length(self):
        """Test overly long ISBNs are rejected."""
        with pytest.raises(ValidationError):
            BookCreate(title="Dune", author="Frank Herbert", isbn="9" * 18)


class TestBookUpdate:
    """Tests for BookUpdate."""

    def test_partial(self):
        """Test only set fields are dumped."""
        update = BookUpdate(category="Classics")

        assert update.model_dump(exclude_unset=True) == {"category": "Classics"}

    def test_strips_title(self):
        update = BookUpdate(title="  Dune (2nd ed.) ")

        assert update.title == "Dune (2nd ed.)"

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError):
            BookUpdate(title="   ")

    def test_explicit_none_rejected_for_required_fields(self):
        """Test title and author cannot be cleared."""
        with pytest.raises(ValidationError):
            BookUpdate(title=None)
        with pytest.raises(ValidationError):
            BookUpdate(author=None)

    def test_optional_fields_can_be_cleared(self):
        update = BookUpdate(category=None)

        assert update.model_dump(exclude_unset=True) == {"category": None}

    def test_status_not_editable(self):
        """Test circulation fields are not part of the edit schema."""
        assert "status" not in BookUpdate.model_fields
        assert "issued_to" not in BookUpdate.model_fields


class TestBookStatus:
    """Tests for BookStatus values."""

    def test_values(self):
        assert BookStatus.AVAILABLE.value == "available"
        assert BookStatus.ISSUED.value == "issued"
