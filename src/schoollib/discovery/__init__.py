"""Book discovery module.

Provides functionality for:
- Generated book insights (conversation, quotes, related books, critique)
- Chatting with a book's author
- Personalized recommendations
- Semantic search and Open Library lookup
"""

from .chat import AuthorChat, ChatMessage, Sender, truncate_response
from .insights import BookInsights, BookRef, RelatedBook
from .recommendations import Recommendation, RecommendationEngine
from .search import CatalogueSearch

__all__ = [
    "AuthorChat",
    "ChatMessage",
    "Sender",
    "truncate_response",
    "BookInsights",
    "BookRef",
    "RelatedBook",
    "Recommendation",
    "RecommendationEngine",
    "CatalogueSearch",
]
