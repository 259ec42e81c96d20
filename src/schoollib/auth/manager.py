"""Account sign-up, sign-in and session handling."""

import hashlib
import hmac
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy import delete, select

from ..db.sqlite import Database, get_db
from .models import AuthSession, User

logger = logging.getLogger(__name__)

ROLES = ("admin", "student")
PBKDF2_ITERATIONS = 200_000
DEFAULT_SESSION_TTL = timedelta(days=7)


class AuthError(Exception):
    """Raised for bad credentials, duplicate accounts and dead sessions."""

    pass


def hash_password(password: str, salt: str) -> str:
    """PBKDF2-SHA256 hex digest of a password."""
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), bytes.fromhex(salt), PBKDF2_ITERATIONS
    )
    return digest.hex()


class AuthManager:
    """Manages accounts and their sign-in sessions."""

    def __init__(
        self,
        db: Optional[Database] = None,
        session_ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize auth manager.

        Args:
            db: Database instance
            session_ttl: How long a session stays valid after sign-in
            clock: Returns the current UTC time (tests pass a fixed clock)
        """
        self.db = db or get_db()
        self.session_ttl = session_ttl
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def sign_up(self, email: str, password: str, role: str = "student") -> User:
        """Create an account.

        Raises:
            AuthError: If the e-mail is taken or the input is invalid
        """
        email = email.strip().lower()
        if not email or "@" not in email:
            raise AuthError("A valid e-mail is required")
        if len(password) < 6:
            raise AuthError("Password must be at least 6 characters")
        if role not in ROLES:
            raise AuthError(f"Unknown role: {role}")

        with self.db.get_session() as session:
            existing = session.execute(
                select(User).where(User.email == email)
            ).scalar_one_or_none()
            if existing:
                raise AuthError(f"An account already exists for {email}")

            salt = secrets.token_hex(16)
            user = User(
                id=str(uuid.uuid4()),
                email=email,
                salt=salt,
                password_hash=hash_password(password, salt),
                role=role,
            )
            session.add(user)
            session.flush()
            session.refresh(user)
            session.expunge(user)

        logger.info("Signed up %s (%s)", email, role)
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        """Get an account by ID."""
        with self.db.get_session() as session:
            user = session.get(User, user_id)
            if user:
                session.expunge(user)
            return user

    def delete_user(self, user_id: str) -> bool:
        """Delete an account and end all of its sessions.

        Returns:
            True if deleted, False if not found
        """
        with self.db.get_session() as session:
            user = session.get(User, user_id)
            if not user:
                return False
            session.execute(delete(AuthSession).where(AuthSession.user_id == user_id))
            session.delete(user)

        logger.info("Deleted user %s", user_id)
        return True

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Verify credentials and open a session.

        Raises:
            AuthError: If the credentials do not match
        """
        email = email.strip().lower()
        with self.db.get_session() as session:
            user = session.execute(
                select(User).where(User.email == email)
            ).scalar_one_or_none()
            if not user or not hmac.compare_digest(
                user.password_hash, hash_password(password, user.salt)
            ):
                logger.warning("Failed sign-in for %s", email)
                raise AuthError("Invalid e-mail or password")

            auth_session = AuthSession(
                token=secrets.token_urlsafe(32),
                user_id=user.id,
                expires_at=(self._clock() + self.session_ttl).isoformat(),
            )
            session.add(auth_session)
            session.flush()
            session.refresh(auth_session)
            session.expunge(auth_session)

        logger.info("Signed in %s", email)
        return auth_session

    def sign_out(self, token: str) -> bool:
        """End a session.

        Returns:
            True if a session was ended
        """
        with self.db.get_session() as session:
            auth_session = session.get(AuthSession, token)
            if not auth_session:
                return False
            session.delete(auth_session)
            return True

    def get_session(self, token: str) -> Optional[AuthSession]:
        """Look up a live session.

        Returns:
            The session, or None when unknown or expired
        """
        with self.db.get_session() as session:
            auth_session = session.get(AuthSession, token)
            if not auth_session:
                return None
            if datetime.fromisoformat(auth_session.expires_at) <= self._clock():
                session.delete(auth_session)
                return None
            session.expunge(auth_session)
            return auth_session

    def current_user(self, token: str) -> Optional[User]:
        """Account behind a live session, if any."""
        auth_session = self.get_session(token)
        if not auth_session:
            return None
        return self.get_user(auth_session.user_id)
