"""Catalogue discovery through the gateway.

Semantic search over the indexed catalogue and Open Library lookups that
can be pulled into the local catalogue.
"""

import logging
from typing import Optional

from ..api.gateway import GatewayClient, OpenBookResult, SearchHit
from ..db.models import Book
from ..db.sqlite import Database, get_db

logger = logging.getLogger(__name__)


class CatalogueSearch:
    """Gateway-backed book search."""

    def __init__(self, gateway: GatewayClient, db: Optional[Database] = None):
        """Initialize search.

        Args:
            gateway: Gateway client
            db: Database instance
        """
        self.gateway = gateway
        self.db = db or get_db()

    def semantic_search(self, query: str) -> list[SearchHit]:
        """Search the catalogue index by meaning, best match first."""
        query = query.strip()
        if not query:
            raise ValueError("Please enter a search term.")
        hits = self.gateway.search_books(query)
        return sorted(hits, key=lambda h: h.score, reverse=True)

    def lookup(self, term: str) -> list[OpenBookResult]:
        """Look up book metadata on Open Library."""
        term = term.strip()
        if not term:
            raise ValueError("Please enter a search term.")
        return self.gateway.fetch_open_book(term)

    def import_open_book(
        self,
        result: OpenBookResult,
        category: Optional[str] = None,
    ) -> Book:
        """Add a looked-up book to the local catalogue.

        Raises:
            ValueError: If a book with the same title is already catalogued
        """
        existing = self.db.get_book_by_title(result.title)
        if existing and existing.author.lower() == result.author.lower():
            raise ValueError(f"'{result.title}' is already in the catalogue (id={existing.id})")

        book = self.db.create_book(result.to_book_create(category=category))
        logger.info("Imported '%s' from Open Library (%s)", book.title, result.key)
        return book
