"""Database module for the library store."""

from .models import Base, Book
from .schemas import BookCreate, BookUpdate, BookResponse, BookStatus
from .sqlite import Database, get_db, reset_db

__all__ = [
    "Base",
    "Book",
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "BookStatus",
    "Database",
    "get_db",
    "reset_db",
]
