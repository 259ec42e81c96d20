"""SQLite database operations.

Handles database connection, session management, and catalogue CRUD.
"""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, func, or_, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base, Book, utcnow_iso
from .schemas import BookCreate, BookStatus, BookUpdate


class Database:
    """Database connection and operations manager."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses
                     SCHOOLLIB_DB_PATH env var or default location.
        """
        if db_path is None:
            db_path = os.environ.get(
                "SCHOOLLIB_DB_PATH",
                str(Path.home() / ".schoollib" / "library.db"),
            )

        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # For in-memory databases, use StaticPool to reuse the same connection
        # This ensures all sessions share the same in-memory database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False},
            )
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        # Import feature models to register them with Base
        from ..students.models import Student  # noqa: F401
        from ..lending.models import IssueRecord  # noqa: F401
        from ..announcements.models import ScheduledTask  # noqa: F401
        from ..auth.models import User, AuthSession  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager.

        Commits on normal exit and rolls back everything done in the
        session if the block raises.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ========================================================================
    # Book Operations
    # ========================================================================

    def create_book(self, book: BookCreate, session: Optional[Session] = None) -> Book:
        """Add a book to the catalogue as available."""

        def _create(s: Session) -> Book:
            db_book = Book(
                title=book.title,
                author=book.author,
                category=book.category,
                isbn=book.isbn,
                about=book.about,
                cover=book.cover,
                status=BookStatus.AVAILABLE.value,
            )
            s.add(db_book)
            s.flush()
            return db_book

        if session:
            return _create(session)
        else:
            with self.get_session() as s:
                book = _create(s)
                s.expunge(book)
                return book

    def get_book(self, book_id: int, session: Optional[Session] = None) -> Optional[Book]:
        """Get a book by ID."""

        def _get(s: Session) -> Optional[Book]:
            return s.get(Book, book_id)

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                book = _get(s)
                if book:
                    s.expunge(book)
                return book

    def get_book_by_title(
        self, title: str, session: Optional[Session] = None
    ) -> Optional[Book]:
        """Get the first book whose title matches case-insensitively."""

        def _get(s: Session) -> Optional[Book]:
            stmt = (
                select(Book)
                .where(func.lower(Book.title) == title.lower())
                .order_by(Book.id)
                .limit(1)
            )
            return s.execute(stmt).scalar_one_or_none()

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                book = _get(s)
                if book:
                    s.expunge(book)
                return book

    def list_books(
        self,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
        status: Optional[BookStatus] = None,
    ) -> tuple[list[Book], int]:
        """List one page of the catalogue.

        Args:
            search: Case-insensitive substring over title, author and category
            page: 1-based page number
            page_size: Books per page
            status: Only books with this circulation status

        Returns:
            Tuple of (books on the page, total matching books)
        """
        if page < 1:
            raise ValueError("page must be >= 1")

        with self.get_session() as s:
            stmt = select(Book)
            if search:
                pattern = f"%{search}%"
                stmt = stmt.where(
                    or_(
                        Book.title.ilike(pattern),
                        Book.author.ilike(pattern),
                        Book.category.ilike(pattern),
                    )
                )
            if status:
                stmt = stmt.where(Book.status == status.value)

            total = s.execute(
                select(func.count()).select_from(stmt.subquery())
            ).scalar() or 0

            stmt = stmt.order_by(Book.id).offset((page - 1) * page_size).limit(page_size)
            books = list(s.execute(stmt).scalars().all())
            for book in books:
                s.expunge(book)
            return books, total

    def get_all_books(self, status: Optional[BookStatus] = None) -> list[Book]:
        """Get all books, optionally filtered by status."""
        with self.get_session() as s:
            stmt = select(Book).order_by(Book.title)
            if status:
                stmt = stmt.where(Book.status == status.value)
            books = list(s.execute(stmt).scalars().all())
            for book in books:
                s.expunge(book)
            return books

    def count_books(self, status: Optional[BookStatus] = None) -> int:
        """Count catalogued books, optionally by status."""
        with self.get_session() as s:
            stmt = select(func.count()).select_from(Book)
            if status:
                stmt = stmt.where(Book.status == status.value)
            return s.execute(stmt).scalar() or 0

    def update_book(
        self, book_id: int, update: BookUpdate, session: Optional[Session] = None
    ) -> Optional[Book]:
        """Update catalogue fields of a book."""

        def _update(s: Session) -> Optional[Book]:
            book = s.get(Book, book_id)
            if not book:
                return None

            for field, value in update.model_dump(exclude_unset=True).items():
                setattr(book, field, value)

            book.updated_at = utcnow_iso()
            s.flush()
            return book

        if session:
            return _update(session)
        else:
            with self.get_session() as s:
                book = _update(s)
                if book:
                    s.expunge(book)
                return book

    def delete_book(self, book_id: int, session: Optional[Session] = None) -> bool:
        """Delete a book record."""

        def _delete(s: Session) -> bool:
            book = s.get(Book, book_id)
            if not book:
                return False
            s.delete(book)
            return True

        if session:
            return _delete(session)
        else:
            with self.get_session() as s:
                return _delete(s)


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    _db = None
