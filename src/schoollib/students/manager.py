"""Student manager for enrolment and profile operations."""

import logging
from typing import Callable, Optional

from sqlalchemy import func, select

from ..api.gateway import GatewayClient
from ..db.sqlite import Database, get_db
from .models import Student
from .schemas import StudentCreate, StudentUpdate

logger = logging.getLogger(__name__)

InsertListener = Callable[[Student], None]


class StudentManager:
    """Manages student records and the student insert feed."""

    def __init__(
        self,
        db: Optional[Database] = None,
        gateway: Optional[GatewayClient] = None,
    ):
        """Initialize student manager.

        Args:
            db: Database instance
            gateway: When given, enrolments and deletions are mirrored to
                the hosted store before the local write
        """
        self.db = db or get_db()
        self.gateway = gateway
        self._listeners: list[InsertListener] = []

    # -------------------------------------------------------------------------
    # Change feed
    # -------------------------------------------------------------------------

    def subscribe(self, listener: InsertListener) -> Callable[[], None]:
        """Register a listener called with every newly inserted student.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify_insert(self, student: Student) -> None:
        for listener in list(self._listeners):
            try:
                listener(student)
            except Exception:
                logger.exception("Student insert listener %r failed", listener)

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def create_student(self, data: StudentCreate) -> Student:
        """Enrol a new student.

        Args:
            data: Student creation data

        Returns:
            Created student
        """
        if self.gateway:
            self.gateway.add_student(
                name=data.name,
                roll=data.roll or "",
                class_name=data.class_name or "",
                section=data.section or "",
            )

        with self.db.get_session() as session:
            student = Student(
                name=data.name,
                roll=data.roll,
                class_name=data.class_name,
                section=data.section,
                email=data.email,
                uid=data.uid,
            )
            student.set_issued_books([])
            student.set_issued_history([])
            session.add(student)
            session.commit()
            session.refresh(student)
            session.expunge(student)

        logger.info("Enrolled student %s (id=%s)", student.name, student.id)
        self._notify_insert(student)
        return student

    def get_student(self, student_id: int) -> Optional[Student]:
        """Get a student by ID."""
        with self.db.get_session() as session:
            student = session.get(Student, student_id)
            if student:
                session.expunge(student)
            return student

    def get_students_by_name(self, name: str) -> list[Student]:
        """Get every student with exactly this name."""
        with self.db.get_session() as session:
            stmt = select(Student).where(Student.name == name).order_by(Student.id)
            students = list(session.execute(stmt).scalars().all())
            for s in students:
                session.expunge(s)
            return students

    def get_student_by_uid(self, uid: str) -> Optional[Student]:
        """Get the student record linked to an auth user."""
        with self.db.get_session() as session:
            stmt = select(Student).where(Student.uid == uid).limit(1)
            student = session.execute(stmt).scalar_one_or_none()
            if student:
                session.expunge(student)
            return student

    def list_students(
        self,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[Student], int]:
        """List one page of students.

        Args:
            search: Case-insensitive substring of the name
            page: 1-based page number
            page_size: Students per page

        Returns:
            Tuple of (students on the page, total matching students)
        """
        if page < 1:
            raise ValueError("page must be >= 1")

        with self.db.get_session() as session:
            stmt = select(Student)
            if search:
                stmt = stmt.where(Student.name.ilike(f"%{search}%"))

            total = session.execute(
                select(func.count()).select_from(stmt.subquery())
            ).scalar() or 0

            stmt = stmt.order_by(Student.id).offset((page - 1) * page_size).limit(page_size)
            students = list(session.execute(stmt).scalars().all())
            for s in students:
                session.expunge(s)
            return students, total

    def count_students(self) -> int:
        """Count enrolled students."""
        with self.db.get_session() as session:
            return session.execute(select(func.count()).select_from(Student)).scalar() or 0

    def update_student(self, student_id: int, data: StudentUpdate) -> Optional[Student]:
        """Update a student's profile.

        Args:
            student_id: Student ID
            data: Update data

        Returns:
            Updated student or None
        """
        with self.db.get_session() as session:
            student = session.get(Student, student_id)
            if not student:
                return None

            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(student, field, value)

            session.commit()
            session.refresh(student)
            session.expunge(student)
            return student

    def delete_student(self, student_id: int) -> bool:
        """Delete a student.

        Args:
            student_id: Student ID

        Returns:
            True if deleted
        """
        with self.db.get_session() as session:
            student = session.get(Student, student_id)
            if not student:
                return False

            if student.get_issued_books():
                raise ValueError("Cannot delete student who still holds books")

            if self.gateway:
                self.gateway.delete_student(student_id)

            session.delete(student)
            session.commit()

        logger.info("Deleted student id=%s", student_id)
        return True
