"""Accounts and sign-in sessions."""

from .manager import AuthError, AuthManager, hash_password
from .models import AuthSession, User

__all__ = [
    "AuthError",
    "AuthManager",
    "hash_password",
    "AuthSession",
    "User",
]
