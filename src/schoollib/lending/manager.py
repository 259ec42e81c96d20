"""Lending manager for issue and return operations.

A book is either ``available`` or ``issued`` to one student. Issuing and
returning touch three rows (the book, the student and the issue ledger)
and each runs inside a single database session, so a failure at any step
rolls the whole transition back.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..api.gateway import GatewayClient
from ..db.models import Book, utcnow_iso
from ..db.schemas import BookCreate, BookStatus
from ..db.sqlite import Database, get_db
from ..students.manager import StudentManager
from ..students.models import Student
from .models import IssueRecord
from .schemas import IssueRecordFilter, LibraryOverview, StudentBooks

logger = logging.getLogger(__name__)


class LendingManager:
    """Manages the book lending lifecycle."""

    def __init__(
        self,
        db: Optional[Database] = None,
        gateway: Optional[GatewayClient] = None,
    ):
        """Initialize lending manager.

        Args:
            db: Database instance
            gateway: When given, catalogue additions and deletions go
                through the hosted store first
        """
        self.db = db or get_db()
        self.gateway = gateway

    # -------------------------------------------------------------------------
    # Catalogue mutations
    # -------------------------------------------------------------------------

    def add_book(self, data: BookCreate) -> Book:
        """Add a book to the catalogue.

        Args:
            data: Book creation data

        Returns:
            Created book
        """
        if self.gateway:
            self.gateway.add_book(data.title, data.author, data.isbn or "")
        book = self.db.create_book(data)
        logger.info("Added book %s (id=%s)", book.title, book.id)
        return book

    def delete_book(self, book_id: int) -> bool:
        """Remove a book from the catalogue.

        Args:
            book_id: Book ID

        Returns:
            True if deleted, False if no such book
        """
        book = self.db.get_book(book_id)
        if not book:
            return False

        if book.is_issued:
            raise ValueError(f"Cannot delete '{book.title}' while it is issued to {book.issued_to}")

        if self.gateway:
            self.gateway.delete_book(book.title)

        deleted = self.db.delete_book(book_id)
        if deleted:
            logger.info("Deleted book %s (id=%s)", book.title, book_id)
        return deleted

    # -------------------------------------------------------------------------
    # Issue / Return
    # -------------------------------------------------------------------------

    def issue_book(self, book_id: int, student_id: int) -> IssueRecord:
        """Issue an available book to a student.

        Args:
            book_id: Book ID
            student_id: Student ID

        Returns:
            The new issue record

        Raises:
            ValueError: Unknown book or student, book already issued, or the
                student already holds a copy with the same title
        """
        with self.db.get_session() as session:
            book = session.get(Book, book_id)
            if not book:
                raise ValueError("Book not found")
            if not book.is_available:
                raise ValueError(f"Book is already issued to {book.issued_to}")

            student = session.get(Student, student_id)
            if not student:
                raise ValueError("Student not found")

            held = student.get_issued_books()
            if book.title in held:
                raise ValueError(f"{student.name} already holds '{book.title}'")

            step = "update book"
            try:
                book.status = BookStatus.ISSUED.value
                book.issued_to = student.name
                book.updated_at = utcnow_iso()
                session.flush()

                step = "update student"
                student.set_issued_books(held + [book.title])
                session.flush()

                step = "insert issue record"
                record = IssueRecord(
                    book_id=book.id,
                    student_id=student.id,
                    student_name=student.name,
                    book_title=book.title,
                    author=book.author,
                    issue_date=utcnow_iso(),
                )
                session.add(record)
                session.flush()
            except SQLAlchemyError:
                logger.error(
                    "Issuing book %s to student %s failed at step '%s'; rolled back",
                    book_id, student_id, step,
                )
                raise

            session.commit()
            session.refresh(record)
            session.expunge(record)

        logger.info("Issued '%s' to %s", record.book_title, record.student_name)
        return record

    def return_book(self, book_id: int) -> Optional[IssueRecord]:
        """Return an issued book.

        Returning a book that is not issued is a no-op, so a repeated
        return neither fails nor duplicates history.

        Args:
            book_id: Book ID

        Returns:
            The closed issue record, or None if nothing was open

        Raises:
            ValueError: Unknown book
        """
        with self.db.get_session() as session:
            book = session.get(Book, book_id)
            if not book:
                raise ValueError("Book not found")

            if not book.is_issued or not book.issued_to:
                logger.info("Book %s is not issued; nothing to return", book_id)
                return None

            record = self._open_record(session, book)
            # The student holds the title as it read at issue time.
            title = record.book_title if record else book.title
            student = self._resolve_holder(session, book, record, title)
            returned_at = utcnow_iso()

            step = "update student"
            try:
                if student:
                    held = student.get_issued_books()
                    if title in held:
                        held.remove(title)
                        student.set_issued_books(held)
                        student.set_issued_history(student.get_issued_history() + [title])
                    else:
                        logger.warning(
                            "'%s' missing from %s's issued books", title, student.name
                        )
                else:
                    logger.warning(
                        "No student named %s found while returning book %s",
                        book.issued_to, book_id,
                    )
                session.flush()

                step = "update book"
                book.status = BookStatus.AVAILABLE.value
                book.issued_to = None
                book.updated_at = returned_at
                session.flush()

                step = "stamp issue record"
                if record:
                    record.return_date = returned_at
                else:
                    logger.warning("No open issue record for book %s", book_id)
                session.flush()
            except SQLAlchemyError:
                logger.error(
                    "Returning book %s failed at step '%s'; rolled back", book_id, step
                )
                raise

            session.commit()
            if record:
                session.refresh(record)
                session.expunge(record)

        logger.info("Returned '%s'", title)
        return record

    def _open_record(self, session: Session, book: Book) -> Optional[IssueRecord]:
        """Find the open ledger row for a book.

        Prefers the surrogate book link; rows written without one are
        matched by (title, student name), newest first.
        """
        stmt = (
            select(IssueRecord)
            .where(IssueRecord.book_id == book.id, IssueRecord.return_date.is_(None))
            .order_by(IssueRecord.issue_date.desc(), IssueRecord.id.desc())
            .limit(1)
        )
        record = session.execute(stmt).scalar_one_or_none()
        if record:
            return record

        stmt = (
            select(IssueRecord)
            .where(
                IssueRecord.book_id.is_(None),
                IssueRecord.book_title == book.title,
                IssueRecord.student_name == book.issued_to,
                IssueRecord.return_date.is_(None),
            )
            .order_by(IssueRecord.issue_date.desc(), IssueRecord.id.desc())
            .limit(1)
        )
        return session.execute(stmt).scalar_one_or_none()

    def _resolve_holder(
        self,
        session: Session,
        book: Book,
        record: Optional[IssueRecord],
        title: str,
    ) -> Optional[Student]:
        """Find the student holding a book.

        Uses the ledger's student link, then falls back to the name stored
        on the book. Among same-named students the one listing ``title``
        wins.
        """
        if record and record.student_id is not None:
            student = session.get(Student, record.student_id)
            if student:
                return student

        candidates = list(
            session.execute(
                select(Student).where(Student.name == book.issued_to).order_by(Student.id)
            ).scalars().all()
        )
        for candidate in candidates:
            if title in candidate.get_issued_books():
                return candidate
        if len(candidates) > 1:
            logger.warning(
                "%d students named %s; using id=%s",
                len(candidates), book.issued_to, candidates[0].id,
            )
        return candidates[0] if candidates else None

    # -------------------------------------------------------------------------
    # Ledger and reports
    # -------------------------------------------------------------------------

    def list_issue_records(self, filters: Optional[IssueRecordFilter] = None) -> list[IssueRecord]:
        """List issue records, newest first.

        Args:
            filters: Month/year range on the issue date and case-insensitive
                substring matches on title, student and author

        Returns:
            Matching issue records
        """
        filters = filters or IssueRecordFilter()

        with self.db.get_session() as session:
            stmt = select(IssueRecord)

            if filters.month or filters.year:
                start, end = _issue_window(filters.month, filters.year)
                stmt = stmt.where(
                    IssueRecord.issue_date >= start.isoformat(),
                    IssueRecord.issue_date < end.isoformat(),
                )
            if filters.book_title:
                stmt = stmt.where(IssueRecord.book_title.ilike(f"%{filters.book_title}%"))
            if filters.student_name:
                stmt = stmt.where(IssueRecord.student_name.ilike(f"%{filters.student_name}%"))
            if filters.author:
                stmt = stmt.where(IssueRecord.author.ilike(f"%{filters.author}%"))
            if filters.open_only:
                stmt = stmt.where(IssueRecord.return_date.is_(None))

            stmt = stmt.order_by(IssueRecord.issue_date.desc(), IssueRecord.id.desc())

            records = list(session.execute(stmt).scalars().all())
            for r in records:
                session.expunge(r)
            return records

    def get_overview(self, year: Optional[int] = None) -> LibraryOverview:
        """Get dashboard statistics.

        Args:
            year: Year for the per-month issue counts (default: current)

        Returns:
            LibraryOverview
        """
        year = year or date.today().year
        total_books = self.db.count_books()
        issued = self.db.count_books(BookStatus.ISSUED)

        total_students = StudentManager(self.db).count_students()

        counts = [0] * 12
        for record in self.list_issue_records(IssueRecordFilter(year=year)):
            issued_at = datetime.fromisoformat(record.issue_date)
            counts[issued_at.month - 1] += 1

        return LibraryOverview(
            year=year,
            total_books=total_books,
            issued_books=issued,
            available_books=total_books - issued,
            total_students=total_students,
            issued_by_month=counts,
        )

    def get_student_books(self, student_id: int) -> Optional[StudentBooks]:
        """Get a student's current and returned titles."""
        with self.db.get_session() as session:
            student = session.get(Student, student_id)
            if not student:
                return None
            return StudentBooks(
                student_id=student.id,
                student_name=student.name,
                current=student.get_issued_books(),
                history=student.get_issued_history(),
            )


def _issue_window(month: Optional[int], year: Optional[int]) -> tuple[datetime, datetime]:
    """UTC [start, end) bounds for a month, or a whole year when month is None."""
    year = year or date.today().year
    if month:
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        if month == 12:
            end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
        else:
            end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    else:
        start = datetime(year, 1, 1, tzinfo=timezone.utc)
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    return start, end
