"""Generated book insights.

The book details view has five tabs. ``about`` shows the stored
description; the others are generated by the gateway. List-shaped tabs ask
for a JSON array and validate it, falling back to one item per line when
the model ignores the format.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Optional, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from ..api.gateway import GatewayClient
from ..db.models import Book

logger = logging.getLogger(__name__)

T = TypeVar("T")

LITERARY_INSTRUCTION = (
    "You are an expert literary assistant. Display the results directly without "
    "any pre-sentence like 'Here is, Here are' etc."
)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class RelatedBook(BaseModel):
    """A generated related-book suggestion."""

    title: str
    author: str = "Unknown Author"
    description: str = ""


@dataclass
class BookRef:
    """Title and author of the book being discussed."""

    title: str
    author: str
    about: Optional[str] = None

    @classmethod
    def from_book(cls, book: Book) -> "BookRef":
        """Build a reference from a catalogue row."""
        return cls(title=book.title, author=book.author, about=book.about)


def parse_json_list(text: str, item_type: type[T]) -> Optional[list[T]]:
    """Parse generated text as a JSON array of ``item_type``.

    Returns:
        The validated list, or None if the text is not such an array
    """
    cleaned = _FENCE.sub("", text.strip())
    try:
        return TypeAdapter(list[item_type]).validate_python(json.loads(cleaned))
    except (json.JSONDecodeError, ValidationError):
        return None


def split_lines(text: str) -> list[str]:
    """Non-empty, stripped lines of generated text."""
    return [line.strip() for line in text.splitlines() if line.strip()]


class BookInsights:
    """Generates the per-book discovery tabs."""

    def __init__(self, gateway: GatewayClient):
        """Initialize with the generation gateway."""
        self.gateway = gateway

    def _generate(self, prompt: str) -> str:
        text = self.gateway.generate_text(LITERARY_INSTRUCTION, prompt)
        return text.strip() or "No content available."

    def about(self, book: BookRef) -> str:
        """Stored description; no generation involved."""
        return book.about or "No information available for this book."

    def conversation(self, book: BookRef) -> str:
        """An imagined dialogue from the book."""
        prompt = (
            f'Please provide an insightful and engaging conversation from the book titled '
            f'"{book.title}" by {book.author} in a paragraph. Format the conversation in '
            f"paragraphs with clear speakers, and separate each speaker's dialogue with a "
            f"dash and speaker's name. Include at least three lines of dialogue."
        )
        return self._generate(prompt)

    def critique(self, book: BookRef) -> str:
        """A critique covering plot, style, characters and impact."""
        prompt = (
            f'Provide a critique for the book titled "{book.title}" by {book.author} in a '
            f"paragraph. Include points on the plot, writing style, characters, and overall "
            f"impact of the book. Make sure the critique is detailed and includes both "
            f"positives and negatives."
        )
        return self._generate(prompt)

    def quotes(self, book: BookRef, count: int = 2) -> list[str]:
        """Memorable quotes with speaker and source."""
        prompt = (
            f'List {count} impactful and memorable quotes from the book titled "{book.title}" '
            f"by {book.author}, along with the speaker's name or character if applicable and "
            f'the source in the format "Book Title - Author Name". Respond with only a JSON '
            f"array of strings, one string per quote."
        )
        text = self._generate(prompt)
        parsed = parse_json_list(text, str)
        if parsed is None:
            logger.debug("Quotes reply was not a JSON array; splitting lines")
            return split_lines(text)
        return [q.strip() for q in parsed if q.strip()]

    def related_books(self, book: BookRef, count: int = 2) -> list[RelatedBook]:
        """Books related by genre, theme or author."""
        prompt = (
            f'Recommend {count} books that are related to "{book.title}" by {book.author} '
            f"by similarity in genre, theme, or author. Respond with only a JSON array of "
            f'objects with the keys "title", "author" and "description".'
        )
        text = self._generate(prompt)
        parsed = parse_json_list(text, RelatedBook)
        if parsed is not None:
            return parsed

        logger.debug("Related-books reply was not a JSON array; splitting lines")
        return [_related_from_line(line) for line in split_lines(text)]


def _related_from_line(line: str) -> RelatedBook:
    """Parse a ``Title - Author, Description`` line."""
    line = line.lstrip("-*0123456789. ").strip()
    title, sep, rest = line.partition(" - ")
    if not sep:
        return RelatedBook(title=line)
    author, _, description = rest.partition(",")
    return RelatedBook(
        title=title.strip().strip('"'),
        author=author.strip() or "Unknown Author",
        description=description.strip(),
    )
