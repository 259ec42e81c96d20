"""Personalized book recommendations.

Builds a prompt from a student's reading history and the books currently
on the shelf, asks the gateway for a JSON list of picks, and marks which
picks can be issued right away.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

from ..api.gateway import GatewayClient
from ..db.schemas import BookStatus
from ..db.sqlite import Database, get_db
from ..students.manager import StudentManager
from .insights import LITERARY_INSTRUCTION, parse_json_list, split_lines

logger = logging.getLogger(__name__)

MAX_SHELF_TITLES = 50


class SuggestedBook(BaseModel):
    """A pick as returned by the generator."""

    title: str
    author: str = "Unknown Author"
    reason: str = ""


@dataclass
class Recommendation:
    """A book recommendation for a student."""

    title: str
    author: str
    reason: str
    book_id: Optional[int] = None  # Set when the book is on the shelf

    @property
    def in_catalogue(self) -> bool:
        """Whether the pick matched a catalogue book."""
        return self.book_id is not None


class RecommendationEngine:
    """Generates personalized recommendations for students."""

    def __init__(self, gateway: GatewayClient, db: Optional[Database] = None):
        """Initialize recommendation engine.

        Args:
            gateway: Generation gateway
            db: Database instance
        """
        self.gateway = gateway
        self.db = db or get_db()

    def recommend_for_student(self, student_id: int, limit: int = 3) -> list[Recommendation]:
        """Recommend books for a student.

        Args:
            student_id: Student ID
            limit: Maximum recommendations to return

        Returns:
            Recommendations, shelf matches first
        """
        student = StudentManager(self.db).get_student(student_id)
        if not student:
            raise ValueError("Student not found")

        read = student.get_issued_history() + student.get_issued_books()
        shelf = {
            b.title.lower(): b
            for b in self.db.get_all_books(status=BookStatus.AVAILABLE)
            if b.title not in read
        }

        prompt = self._build_prompt(read, [b.title for b in shelf.values()], limit)
        text = self.gateway.generate_text(LITERARY_INSTRUCTION, prompt)

        picks = parse_json_list(text, SuggestedBook)
        if picks is None:
            logger.debug("Recommendation reply was not a JSON array; splitting lines")
            picks = [SuggestedBook(title=line) for line in split_lines(text)]

        recommendations = []
        for pick in picks:
            if pick.title in read:
                continue
            book = shelf.get(pick.title.lower())
            recommendations.append(
                Recommendation(
                    title=book.title if book else pick.title,
                    author=book.author if book else pick.author,
                    reason=pick.reason,
                    book_id=book.id if book else None,
                )
            )

        recommendations.sort(key=lambda r: not r.in_catalogue)
        return recommendations[:limit]

    def _build_prompt(self, read: list[str], shelf: list[str], limit: int) -> str:
        history = ", ".join(f'"{t}"' for t in read) if read else "nothing yet"
        lines = [
            f"A school student has read: {history}.",
            f"Recommend {limit} books they are likely to enjoy next.",
        ]
        if shelf:
            available = ", ".join(f'"{t}"' for t in shelf[:MAX_SHELF_TITLES])
            lines.append(f"Prefer titles from the library shelf: {available}.")
        lines.append(
            'Respond with only a JSON array of objects with the keys "title", "author" '
            'and "reason".'
        )
        return " ".join(lines)
