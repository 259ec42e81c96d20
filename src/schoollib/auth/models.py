"""SQLAlchemy models for accounts and sign-in sessions.

Tables:
- users: Accounts with a salted password hash and a role
- auth_sessions: Opaque session tokens with an expiry
"""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, utcnow_iso


class User(Base):
    """Account model."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(200), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    salt: Mapped[str] = mapped_column(String(64), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="student")
    created_at: Mapped[str] = mapped_column(String(32), default=utcnow_iso)

    def __repr__(self) -> str:
        return f"<User(id='{self.id}', email='{self.email}', role='{self.role}')>"

    @property
    def is_admin(self) -> bool:
        """Whether the account has the admin role."""
        return self.role == "admin"


class AuthSession(Base):
    """Sign-in session model."""

    __tablename__ = "auth_sessions"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[str] = mapped_column(String(32), default=utcnow_iso)

    def __repr__(self) -> str:
        return f"<AuthSession(user_id='{self.user_id}', expires_at='{self.expires_at}')>"
