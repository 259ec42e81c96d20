"""Student records module.

Provides functionality for:
- Enrolling and editing students
- Paginated, searchable student listings
- Subscribing to newly enrolled students
"""

from .manager import StudentManager
from .models import Student
from .schemas import StudentCreate, StudentUpdate, StudentResponse

__all__ = [
    "StudentManager",
    "Student",
    "StudentCreate",
    "StudentUpdate",
    "StudentResponse",
]
