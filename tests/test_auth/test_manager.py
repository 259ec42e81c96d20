"""Tests for AuthManager."""

from datetime import datetime, timedelta, timezone

import pytest

from schoollib.auth.manager import AuthError, AuthManager, hash_password


class Clock:
    def __init__(self):
        self.now = datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def manager(db, clock):
    """Create an AuthManager with a one-hour session lifetime."""
    return AuthManager(db, session_ttl=timedelta(hours=1), clock=clock)


class TestSignUp:
    """Tests for account creation."""

    def test_sign_up(self, manager):
        user = manager.sign_up("Ann@School.test ", "secret1")

        assert user.email == "ann@school.test"
        assert user.role == "student"
        assert not user.is_admin
        assert len(user.id) == 36
        assert user.password_hash != "secret1"
        assert user.password_hash == hash_password("secret1", user.salt)

    def test_admin_role(self, manager):
        assert manager.sign_up("head@school.test", "secret1", role="admin").is_admin

    def test_duplicate_email(self, manager):
        manager.sign_up("ann@school.test", "secret1")

        with pytest.raises(AuthError, match="already exists"):
            manager.sign_up("ANN@school.test", "other12")

    def test_short_password(self, manager):
        with pytest.raises(AuthError, match="at least 6"):
            manager.sign_up("ann@school.test", "123")

    def test_invalid_email(self, manager):
        with pytest.raises(AuthError):
            manager.sign_up("ann", "secret1")

    def test_unknown_role(self, manager):
        with pytest.raises(AuthError, match="Unknown role"):
            manager.sign_up("ann@school.test", "secret1", role="janitor")

    def test_salts_differ(self, manager):
        a = manager.sign_up("a@school.test", "secret1")
        b = manager.sign_up("b@school.test", "secret1")

        assert a.salt != b.salt
        assert a.password_hash != b.password_hash


class TestSessions:
    """Tests for sign-in sessions."""

    def test_sign_in_and_lookup(self, manager):
        user = manager.sign_up("ann@school.test", "secret1")

        auth_session = manager.sign_in("ann@school.test", "secret1")

        assert auth_session.user_id == user.id
        assert manager.get_session(auth_session.token).user_id == user.id
        assert manager.current_user(auth_session.token).email == "ann@school.test"

    def test_wrong_password(self, manager):
        manager.sign_up("ann@school.test", "secret1")

        with pytest.raises(AuthError, match="Invalid e-mail or password"):
            manager.sign_in("ann@school.test", "wrong12")

    def test_unknown_email(self, manager):
        with pytest.raises(AuthError):
            manager.sign_in("nobody@school.test", "secret1")

    def test_session_expires(self, manager, clock):
        manager.sign_up("ann@school.test", "secret1")
        auth_session = manager.sign_in("ann@school.test", "secret1")

        clock.now += timedelta(hours=1)

        assert manager.get_session(auth_session.token) is None
        assert manager.current_user(auth_session.token) is None

    def test_sign_out(self, manager):
        manager.sign_up("ann@school.test", "secret1")
        auth_session = manager.sign_in("ann@school.test", "secret1")

        assert manager.sign_out(auth_session.token) is True
        assert manager.get_session(auth_session.token) is None
        assert manager.sign_out(auth_session.token) is False

    def test_unknown_token(self, manager):
        assert manager.get_session("nope") is None


class TestDeleteUser:
    """Tests for account deletion."""

    def test_delete_ends_sessions(self, manager):
        user = manager.sign_up("ann@school.test", "secret1")
        auth_session = manager.sign_in("ann@school.test", "secret1")

        assert manager.delete_user(user.id) is True

        assert manager.get_user(user.id) is None
        assert manager.get_session(auth_session.token) is None

    def test_delete_unknown(self, manager):
        assert manager.delete_user("missing") is False
