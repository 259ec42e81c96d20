"""GraphQL gateway client.

The hosted gateway proxies everything the library cannot do locally:
- Text generation (book insights, author chat, recommendations)
- Semantic catalogue search
- Open Library metadata lookup
- Catalogue and student mutations against the hosted store
- Announcement dispatch to Telegram/Discord
- Payment links

Every call is an HTTP POST of ``{"query": ..., "variables": ...}`` with a
static bearer credential.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

import requests

from ..config import Config, get_config
from ..db.schemas import BookCreate

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Base exception for gateway errors."""

    pass


class GatewayHTTPError(GatewayError):
    """Raised when the gateway answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class GatewayResponseError(GatewayError):
    """Raised for GraphQL errors or a malformed payload."""

    pass


# ============================================================================
# GraphQL documents
# ============================================================================

GENERATE_TEXT = """
query GenerateText($instruction: String!, $prompt: String!) {
  generateText(instruction: $instruction, prompt: $prompt)
}
"""

SEARCH_BOOKS = """
query SearchBooks($query: String!) {
  searchBooks(query: $query) {
    collection
    status
    error
    searchMethod
    objects {
      namespace
      key
      text
      labels
      distance
      score
    }
  }
}
"""

FETCH_OPEN_BOOK = """
query FetchOpenBook($searchTerm: String!) {
  fetchOpenBook(searchTerm: $searchTerm) {
    title
    author
    publishYear
    cover
    description
    key
  }
}
"""

ADD_BOOK = """
mutation AddBookToSupabase($title: String!, $author: String!, $isbn: String!) {
  addBookToSupabase(title: $title, author: $author, isbn: $isbn)
}
"""

DELETE_BOOK = """
mutation DeleteBookFromSupabase2($title: String!) {
  deleteBookFromSupabase2(title: $title)
}
"""

ADD_STUDENT = """
mutation AddStudentToSupabase($name: String!, $roll: String!, $className: String!, $section: String!) {
  addStudentToSupabase(name: $name, roll: $roll, className: $className, section: $section)
}
"""

DELETE_STUDENT = """
mutation DeleteStudentFromSupabase($studentId: Int!) {
  deleteStudentFromSupabase(studentId: $studentId)
}
"""

SCHEDULED_TASK = """
query ScheduledTask($telegram: Boolean!, $discord: Boolean!, $content: String!) {
  scheduledTask(telegram: $telegram, discord: $discord, content: $content)
}
"""

GENERATE_PAYMENT_LINK = """
query GeneratePaymentLink($description: String!, $customerName: String!, $customerEmail: String!) {
  generatePaymentLink(description: $description, customerName: $customerName, customerEmail: $customerEmail)
}
"""

FETCH_CAPTURED_PAYMENT_LINKS = """
query FetchCapturedPaymentLinks {
  fetchCapturedPaymentLinks
}
"""

_OPERATION_NAME = re.compile(r"\b(?:query|mutation)\s+(\w+)")


# ============================================================================
# Result types
# ============================================================================


@dataclass
class SearchHit:
    """A semantic search hit from the catalogue index."""

    key: str
    title: str
    author: str
    cover: Optional[str] = None
    description: str = "No description available."
    score: float = 0.0
    distance: float = 0.0

    @classmethod
    def from_object(cls, obj: dict) -> "SearchHit":
        """Build a hit from a ``searchBooks`` result object.

        Labels are positional: title, author, cover.
        """
        labels = obj.get("labels") or []
        return cls(
            key=obj.get("key") or "",
            title=labels[0] if len(labels) > 0 and labels[0] else "Unknown Title",
            author=labels[1] if len(labels) > 1 and labels[1] else "Unknown Author",
            cover=labels[2] if len(labels) > 2 and labels[2] else None,
            description=obj.get("text") or "No description available.",
            score=obj.get("score") or 0.0,
            distance=obj.get("distance") or 0.0,
        )


@dataclass
class OpenBookResult:
    """A book returned by the Open Library lookup."""

    key: str
    title: str = "Unknown Title"
    author: str = "Unknown Author"
    publish_year: Optional[str] = None
    cover: Optional[str] = None
    description: str = "No description available."

    @classmethod
    def from_dict(cls, data: dict) -> "OpenBookResult":
        """Build a result from a ``fetchOpenBook`` entry."""
        year = data.get("publishYear")
        return cls(
            key=data.get("key") or "",
            title=data.get("title") or "Unknown Title",
            author=data.get("author") or "Unknown Author",
            publish_year=str(year) if year else None,
            cover=data.get("cover") or None,
            description=data.get("description") or "No description available.",
        )

    def to_book_create(self, category: Optional[str] = None) -> BookCreate:
        """Convert to a catalogue BookCreate."""
        return BookCreate(
            title=self.title,
            author=self.author,
            category=category,
            about=self.description,
            cover=self.cover,
        )


# ============================================================================
# Client
# ============================================================================


class GatewayClient:
    """Client for the hosted GraphQL gateway."""

    def __init__(self, url: str, token: str, timeout: float = 30.0):
        """Initialize client.

        Args:
            url: GraphQL endpoint
            token: Bearer credential (without the ``Bearer`` prefix)
            timeout: Request timeout in seconds
        """
        self.url = url
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        })

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "GatewayClient":
        """Create a client from application configuration."""
        config = config or get_config()
        if not config.has_gateway_config():
            raise GatewayError(
                "Gateway not configured. Set SCHOOLLIB_GATEWAY_URL and SCHOOLLIB_GATEWAY_TOKEN."
            )
        return cls(config.gateway_url, config.gateway_token, timeout=config.gateway_timeout)

    def execute(self, query: str, variables: Optional[dict] = None) -> dict:
        """Run a GraphQL document and return its ``data`` object.

        Raises:
            GatewayHTTPError: Non-2xx response
            GatewayResponseError: GraphQL errors or unparseable body
            GatewayError: Network failure or timeout
        """
        match = _OPERATION_NAME.search(query)
        operation = match.group(1) if match else "anonymous"

        try:
            response = self._session.post(
                self.url,
                json={"query": query, "variables": variables or {}},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            logger.error("Gateway %s timed out", operation)
            raise GatewayError("Request timed out")
        except requests.exceptions.RequestException as e:
            logger.error("Gateway %s failed: %s", operation, e)
            raise GatewayError(f"Request failed: {e}")

        try:
            payload = response.json()
        except ValueError:
            payload = None

        errors = payload.get("errors") if isinstance(payload, dict) else None

        if not response.ok:
            message = _first_error_message(errors) or f"HTTP error: {response.status_code}"
            logger.error("Gateway %s returned %s: %s", operation, response.status_code, message)
            raise GatewayHTTPError(message, response.status_code)

        if not isinstance(payload, dict):
            logger.error("Gateway %s returned a non-JSON body", operation)
            raise GatewayResponseError("Invalid JSON response")

        if errors:
            message = _first_error_message(errors) or "Unknown error"
            logger.error("Gateway %s returned errors: %s", operation, message)
            raise GatewayResponseError(message)

        return payload.get("data") or {}

    # ========================================================================
    # Generation
    # ========================================================================

    def generate_text(self, instruction: str, prompt: str) -> str:
        """Generate text from an instruction and a prompt."""
        data = self.execute(GENERATE_TEXT, {"instruction": instruction, "prompt": prompt})
        return data.get("generateText") or ""

    # ========================================================================
    # Search and lookup
    # ========================================================================

    def search_books(self, query: str) -> list[SearchHit]:
        """Semantic search over the catalogue index.

        Raises:
            GatewayResponseError: If the search status is not ``success``
        """
        data = self.execute(SEARCH_BOOKS, {"query": query})
        result = data.get("searchBooks") or {}

        if result.get("status") != "success":
            raise GatewayResponseError(result.get("error") or "Unknown error")

        return [SearchHit.from_object(obj) for obj in result.get("objects") or []]

    def fetch_open_book(self, search_term: str) -> list[OpenBookResult]:
        """Look up book metadata on Open Library through the gateway."""
        data = self.execute(FETCH_OPEN_BOOK, {"searchTerm": search_term})
        return [OpenBookResult.from_dict(item) for item in data.get("fetchOpenBook") or []]

    # ========================================================================
    # Hosted store mutations
    # ========================================================================

    def add_book(self, title: str, author: str, isbn: str = "") -> Any:
        """Add a book to the hosted catalogue."""
        data = self.execute(ADD_BOOK, {"title": title, "author": author, "isbn": isbn})
        return data.get("addBookToSupabase")

    def delete_book(self, title: str) -> Any:
        """Delete a book from the hosted catalogue by title."""
        data = self.execute(DELETE_BOOK, {"title": title})
        return data.get("deleteBookFromSupabase2")

    def add_student(self, name: str, roll: str, class_name: str, section: str) -> Any:
        """Add a student to the hosted store."""
        data = self.execute(
            ADD_STUDENT,
            {"name": name, "roll": roll, "className": class_name, "section": section},
        )
        return data.get("addStudentToSupabase")

    def delete_student(self, student_id: int) -> Any:
        """Delete a student from the hosted store."""
        data = self.execute(DELETE_STUDENT, {"studentId": student_id})
        return data.get("deleteStudentFromSupabase")

    # ========================================================================
    # Announcements
    # ========================================================================

    def send_announcement(self, content: str, telegram: bool, discord: bool) -> Any:
        """Dispatch an announcement prompt to the selected channels."""
        data = self.execute(
            SCHEDULED_TASK,
            {"telegram": telegram, "discord": discord, "content": content},
        )
        return data.get("scheduledTask")

    # ========================================================================
    # Payments
    # ========================================================================

    def generate_payment_link(
        self, description: str, customer_name: str, customer_email: str
    ) -> str:
        """Create a payment link and return its URL."""
        data = self.execute(
            GENERATE_PAYMENT_LINK,
            {
                "description": description,
                "customerName": customer_name,
                "customerEmail": customer_email,
            },
        )
        url = data.get("generatePaymentLink")
        if not url:
            raise GatewayResponseError("No payment link returned")
        return url

    def fetch_captured_payment_links(self) -> str:
        """Fetch captured payment links as the gateway's raw text."""
        data = self.execute(FETCH_CAPTURED_PAYMENT_LINKS)
        return data.get("fetchCapturedPaymentLinks") or ""


def _first_error_message(errors: Any) -> Optional[str]:
    """Message of the first GraphQL error, if any."""
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict):
            return first.get("message")
        return str(first)
    return None
