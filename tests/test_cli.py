"""Tests for the CLI interface."""

import json
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from schoollib import cli
from schoollib.api.gateway import GatewayClient, OpenBookResult
from schoollib.cli import app
from schoollib.config import reset_config
from schoollib.db.sqlite import get_db, reset_db


@pytest.fixture(autouse=True)
def setup_test_db(tmp_path, monkeypatch):
    """Point the CLI at a fresh database and session file for each test."""
    reset_db()
    reset_config()
    monkeypatch.setenv("SCHOOLLIB_DB_PATH", str(tmp_path / "library.db"))
    monkeypatch.setenv("SCHOOLLIB_SESSION_PATH", str(tmp_path / "session"))
    monkeypatch.delenv("SCHOOLLIB_GATEWAY_URL", raising=False)
    monkeypatch.delenv("SCHOOLLIB_GATEWAY_TOKEN", raising=False)

    yield

    reset_db()
    reset_config()


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def gateway(monkeypatch):
    """Replace the configured gateway with a mock."""
    mock = MagicMock(spec=GatewayClient)
    monkeypatch.setattr(cli, "get_gateway", lambda required=True: mock)
    return mock


def _add_book(runner, title="Dune", author="Frank Herbert"):
    result = runner.invoke(app, ["books", "add", title, "--author", author])
    assert result.exit_code == 0, result.stdout


def _add_student(runner, name="Ann"):
    result = runner.invoke(app, ["students", "add", name, "--roll", "12"])
    assert result.exit_code == 0, result.stdout


class TestCLIBasics:
    """Tests for basic CLI functionality."""

    def test_help(self, runner):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "School library management" in result.stdout

    def test_version(self, runner):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.stdout

    def test_init(self, runner, tmp_path):
        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        assert "Database ready" in result.stdout
        assert (tmp_path / "library.db").exists()

    def test_gateway_required(self, runner):
        """Test gateway commands fail cleanly when unconfigured."""
        result = runner.invoke(app, ["discover", "search", "dragons"])

        assert result.exit_code == 1
        assert "Gateway not configured" in result.stdout


class TestBookCommands:
    """Tests for the books command group."""

    def test_add_and_list(self, runner):
        _add_book(runner)
        _add_book(runner, "Emma", "Jane Austen")

        result = runner.invoke(app, ["books", "list", "--search", "austen"])

        assert result.exit_code == 0
        assert "Emma" in result.stdout
        assert "Dune" not in result.stdout

    def test_add_blank_title(self, runner):
        result = runner.invoke(app, ["books", "add", "  ", "--author", "X"])

        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_list_empty(self, runner):
        result = runner.invoke(app, ["books", "list"])

        assert result.exit_code == 0
        assert "No books found" in result.stdout

    def test_show(self, runner):
        _add_book(runner)

        result = runner.invoke(app, ["books", "show", "1"])

        assert result.exit_code == 0
        assert "Frank Herbert" in result.stdout
        assert "available" in result.stdout

    def test_show_missing(self, runner):
        result = runner.invoke(app, ["books", "show", "99"])

        assert result.exit_code == 1

    def test_update(self, runner):
        _add_book(runner)

        result = runner.invoke(app, ["books", "update", "1", "--category", "Classics"])

        assert result.exit_code == 0
        book = get_db().get_book(1)
        assert book.category == "Classics"
        assert book.title == "Dune"

    def test_delete(self, runner):
        _add_book(runner)

        result = runner.invoke(app, ["books", "delete", "1", "--yes"])

        assert result.exit_code == 0
        assert get_db().get_book(1) is None

    def test_delete_issued_refused(self, runner):
        _add_book(runner)
        _add_student(runner)
        runner.invoke(app, ["lend", "issue", "1", "1"])

        result = runner.invoke(app, ["books", "delete", "1", "--yes"])

        assert result.exit_code == 1
        assert "issued" in result.stdout

    def test_import(self, runner, gateway):
        gateway.fetch_open_book.return_value = [
            OpenBookResult(key="k1", title="Emma", author="Jane Austen", publish_year="1815"),
        ]

        result = runner.invoke(app, ["books", "import", "emma"], input="1\n")

        assert result.exit_code == 0
        assert "Added: Emma" in result.stdout


class TestStudentCommands:
    """Tests for the students command group."""

    def test_add_list_show(self, runner):
        _add_student(runner)

        listed = runner.invoke(app, ["students", "list"])
        shown = runner.invoke(app, ["students", "show", "1"])

        assert "Ann" in listed.stdout
        assert shown.exit_code == 0
        assert "Holding (0)" in shown.stdout

    def test_delete_holding_books(self, runner):
        _add_book(runner)
        _add_student(runner)
        runner.invoke(app, ["lend", "issue", "1", "1"])

        result = runner.invoke(app, ["students", "delete", "1", "--yes"])

        assert result.exit_code == 1


class TestLendCommands:
    """Tests for the lend command group."""

    def test_issue_and_return(self, runner):
        _add_book(runner)
        _add_student(runner)

        issued = runner.invoke(app, ["lend", "issue", "1", "1"])
        returned = runner.invoke(app, ["lend", "return", "1"])
        again = runner.invoke(app, ["lend", "return", "1"])

        assert issued.exit_code == 0
        assert "Issued 'Dune' to Ann" in issued.stdout
        assert returned.exit_code == 0
        assert again.exit_code == 0
        assert "nothing to return" in again.stdout

    def test_issue_twice(self, runner):
        _add_book(runner)
        _add_student(runner)
        _add_student(runner, "Ben")
        runner.invoke(app, ["lend", "issue", "1", "1"])

        result = runner.invoke(app, ["lend", "issue", "1", "2"])

        assert result.exit_code == 1
        assert "already issued" in result.stdout

    def test_records(self, runner):
        _add_book(runner)
        _add_student(runner)
        runner.invoke(app, ["lend", "issue", "1", "1"])

        result = runner.invoke(app, ["lend", "records", "--open"])

        assert result.exit_code == 0
        assert "Not Returned" in result.stdout

    def test_overview(self, runner):
        _add_book(runner)

        result = runner.invoke(app, ["lend", "overview"])

        assert result.exit_code == 0
        assert "Total books" in result.stdout


class TestAnnounceCommands:
    """Tests for the announce command group."""

    def test_create_in_past(self, runner):
        result = runner.invoke(
            app, ["announce", "create", "Old news", "--date", "2000-01-01", "--time", "09:00"]
        )

        assert result.exit_code == 1
        assert "cannot be in the past" in result.stdout

    def test_create_list_stop_delete(self, runner):
        created = runner.invoke(
            app, ["announce", "create", "Future news", "--date", "2999-01-01", "--time", "09:00", "--telegram"]
        )
        assert created.exit_code == 0

        from schoollib.announcements import AnnouncementScheduler

        task = AnnouncementScheduler(get_db()).list_tasks()[0]

        listed = runner.invoke(app, ["announce", "list"])
        stopped = runner.invoke(app, ["announce", "stop", str(task.id)])
        deleted = runner.invoke(app, ["announce", "delete", str(task.id)])

        assert "Future news" in listed.stdout
        assert stopped.exit_code == 0
        assert deleted.exit_code == 0

    def test_fire(self, runner, gateway):
        runner.invoke(
            app, ["announce", "create", "Future news", "--date", "2999-01-01", "--time", "09:00", "--discord"]
        )
        from schoollib.announcements import AnnouncementScheduler

        task = AnnouncementScheduler(get_db()).list_tasks()[0]

        result = runner.invoke(app, ["announce", "fire", str(task.id)])

        assert result.exit_code == 0
        gateway.send_announcement.assert_called_once_with("Future news", telegram=False, discord=True)


class TestDiscoverCommands:
    """Tests for the discover command group."""

    def test_about(self, runner):
        runner.invoke(app, ["books", "add", "Dune", "--author", "Frank Herbert", "--about", "Spice."])

        result = runner.invoke(app, ["discover", "about", "1"])

        assert result.exit_code == 0
        assert "Spice." in result.stdout

    def test_quotes(self, runner, gateway):
        _add_book(runner)
        gateway.generate_text.return_value = json.dumps(["Fear is the mind-killer."])

        result = runner.invoke(app, ["discover", "quotes", "1"])

        assert result.exit_code == 0
        assert "Fear is the mind-killer." in result.stdout

    def test_chat(self, runner, gateway):
        _add_book(runner)
        gateway.generate_text.return_value = "Spice must flow."

        result = runner.invoke(app, ["discover", "chat", "1"], input="Hello\n\n")

        assert result.exit_code == 0
        assert "Spice must flow." in result.stdout

    def test_recommend_unknown_student(self, runner, gateway):
        result = runner.invoke(app, ["discover", "recommend", "9"])

        assert result.exit_code == 1
        assert "Student not found" in result.stdout


class TestPayCommands:
    """Tests for the pay command group."""

    def test_link(self, runner, gateway):
        gateway.generate_payment_link.return_value = "https://rzp.io/i/xyz"

        result = runner.invoke(
            app, ["pay", "link", "Late fee", "--name", "Ann", "--email", "ann@school.test"]
        )

        assert result.exit_code == 0
        assert "https://rzp.io/i/xyz" in result.stdout

    def test_link_bad_email(self, runner, gateway):
        result = runner.invoke(app, ["pay", "link", "Late fee", "--name", "Ann", "--email", "nope"])

        assert result.exit_code == 1
        gateway.generate_payment_link.assert_not_called()

    def test_list(self, runner, gateway):
        gateway.fetch_captured_payment_links.return_value = json.dumps(
            {"payment_links": [{"id": "p1", "amount": 5000, "status": "paid", "customer": {"name": "Ann"}}]}
        )

        result = runner.invoke(app, ["pay", "list"])

        assert result.exit_code == 0
        assert "50.00 INR" in result.stdout


class TestAuthCommands:
    """Tests for the auth command group."""

    def test_signup_login_whoami_logout(self, runner):
        signed_up = runner.invoke(app, ["auth", "signup", "ann@school.test", "--password", "secret1"])
        logged_in = runner.invoke(app, ["auth", "login", "ann@school.test", "--password", "secret1"])
        whoami = runner.invoke(app, ["auth", "whoami"])
        logged_out = runner.invoke(app, ["auth", "logout"])
        after = runner.invoke(app, ["auth", "whoami"])

        assert signed_up.exit_code == 0
        assert logged_in.exit_code == 0
        assert "ann@school.test" in whoami.stdout
        assert logged_out.exit_code == 0
        assert after.exit_code == 1

    def test_login_wrong_password(self, runner):
        runner.invoke(app, ["auth", "signup", "ann@school.test", "--password", "secret1"])

        result = runner.invoke(app, ["auth", "login", "ann@school.test", "--password", "nope123"])

        assert result.exit_code == 1
        assert "Invalid e-mail or password" in result.stdout

    def test_delete_account(self, runner):
        runner.invoke(app, ["auth", "signup", "ann@school.test", "--password", "secret1"])
        runner.invoke(app, ["auth", "login", "ann@school.test", "--password", "secret1"])

        result = runner.invoke(app, ["auth", "delete", "--yes"])

        assert result.exit_code == 0
        assert runner.invoke(app, ["auth", "whoami"]).exit_code == 1
