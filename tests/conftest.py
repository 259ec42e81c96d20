"""Pytest configuration and shared fixtures.

Provides in-memory databases, sample catalogue and student data, and a
mocked gateway client.
"""

from unittest.mock import MagicMock

import pytest

from schoollib.api.gateway import GatewayClient
from schoollib.config import reset_config
from schoollib.db.models import Book
from schoollib.db.schemas import BookCreate
from schoollib.db.sqlite import Database, reset_db
from schoollib.students.manager import StudentManager
from schoollib.students.models import Student
from schoollib.students.schemas import StudentCreate


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def db() -> Database:
    """Create an in-memory database for testing."""
    reset_db()
    reset_config()
    database = Database(":memory:")
    database.create_tables()
    return database


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_book(db: Database) -> Book:
    """Create an available book."""
    return db.create_book(
        BookCreate(title="Dune", author="Frank Herbert", category="Science Fiction")
    )


@pytest.fixture
def multiple_books(db: Database) -> list[Book]:
    """Create several books across categories."""
    books_data = [
        BookCreate(title="Dune", author="Frank Herbert", category="Science Fiction"),
        BookCreate(title="Emma", author="Jane Austen", category="Classics"),
        BookCreate(title="Persuasion", author="Jane Austen", category="Classics"),
        BookCreate(title="Hyperion", author="Dan Simmons", category="Science Fiction"),
        BookCreate(title="Matilda", author="Roald Dahl", category="Children"),
    ]
    return [db.create_book(data) for data in books_data]


@pytest.fixture
def sample_student(db: Database) -> Student:
    """Enrol a student."""
    return StudentManager(db).create_student(
        StudentCreate(name="Ann", roll="12", class_name="8", section="B")
    )


# ============================================================================
# Gateway Fixtures
# ============================================================================


@pytest.fixture
def gateway() -> MagicMock:
    """A gateway client mock with the real client's interface."""
    return MagicMock(spec=GatewayClient)
