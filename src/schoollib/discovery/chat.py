"""Talk-to-the-author chat."""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from ..api.gateway import GatewayClient, GatewayError
from .insights import BookRef

logger = logging.getLogger(__name__)

MAX_REPLY_LENGTH = 500
FALLBACK_REPLY = "I couldn't understand that. Could you try rephrasing?"
ERROR_REPLY = "Oops! Something went wrong."

_LABEL = re.compile(r"^(User|System):\s*")


class Sender(str, Enum):
    """Who wrote a chat message."""

    USER = "user"
    SYSTEM = "system"


@dataclass
class ChatMessage:
    """One turn of the conversation."""

    sender: Sender
    message: str

    def as_line(self) -> str:
        """Render as a ``User:`` or ``System:`` transcript line."""
        label = "User" if self.sender == Sender.USER else "System"
        return f"{label}: {self.message}"


def truncate_response(text: str, max_length: int = MAX_REPLY_LENGTH) -> str:
    """Cut a reply to ``max_length`` characters, marking the cut with an ellipsis."""
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text


def clean_message(text: str) -> str:
    """Drop a leading ``User:``/``System:`` label."""
    return _LABEL.sub("", text).strip()


@dataclass
class AuthorChat:
    """A conversation with the (generated) author of one book.

    The whole history is folded into the instruction on every turn.
    """

    gateway: GatewayClient
    book: BookRef
    history: list[ChatMessage] = field(default_factory=list)

    def instruction(self) -> str:
        """Build the generation instruction, history included."""
        transcript = "\n".join(m.as_line() for m in self.history)
        return (
            f'You are the author of the book titled "{self.book.title}" by {self.book.author}. '
            f"Keep your responses short, no more than 1 or 2 sentences. Only provide more "
            f"detail when absolutely necessary. Respond based on the user's input, keeping it "
            f"concise and relevant to the query. The conversation history is provided; use it "
            f"to remember whatever is necessary.\n{transcript}"
        )

    def send(self, message: str) -> str:
        """Send a user message and return the author's reply.

        Blank messages are ignored and return an empty string.
        """
        message = message.strip()
        if not message:
            return ""

        instruction = self.instruction()
        self.history.append(ChatMessage(Sender.USER, message))

        try:
            reply = self.gateway.generate_text(instruction, message)
        except GatewayError as e:
            logger.error("Author chat for '%s' failed: %s", self.book.title, e)
            reply = ERROR_REPLY
        else:
            reply = truncate_response(clean_message(reply)) or FALLBACK_REPLY

        self.history.append(ChatMessage(Sender.SYSTEM, reply))
        return reply

    def reset(self) -> None:
        """Forget the conversation so far."""
        self.history.clear()
