"""Book lending module.

Provides functionality for:
- Issuing catalogued books to students
- Returning issued books
- The issue ledger and dashboard statistics
"""

from .manager import LendingManager
from .models import IssueRecord
from .schemas import (
    IssueRecordFilter,
    IssueRecordResponse,
    LibraryOverview,
    StudentBooks,
)

__all__ = [
    "LendingManager",
    "IssueRecord",
    "IssueRecordFilter",
    "IssueRecordResponse",
    "LibraryOverview",
    "StudentBooks",
]
