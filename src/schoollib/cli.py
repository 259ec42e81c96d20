"""Command-line interface for schoollib.

Built with Typer for commands and Rich for output.
"""

import logging
import time as time_module
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .api.gateway import GatewayClient, GatewayError
from .config import get_config
from .db import get_db
from .db.schemas import BookCreate, BookStatus, BookUpdate

# Create the main app
app = typer.Typer(
    name="schoollib",
    help="School library management: catalogue, lending, announcements and discovery.",
    no_args_is_help=True,
)

# Sub-apps for command groups
books_app = typer.Typer(help="Manage the book catalogue.")
app.add_typer(books_app, name="books")

students_app = typer.Typer(help="Manage student records.")
app.add_typer(students_app, name="students")

lend_app = typer.Typer(help="Issue and return books, browse the issue ledger.")
app.add_typer(lend_app, name="lend")

announce_app = typer.Typer(help="Schedule announcements to Telegram and Discord.")
app.add_typer(announce_app, name="announce")

discover_app = typer.Typer(help="Generated book insights, author chat and search.")
app.add_typer(discover_app, name="discover")

pay_app = typer.Typer(help="Payment links for fines and fees.")
app.add_typer(pay_app, name="pay")

auth_app = typer.Typer(help="Sign up, sign in and manage accounts.")
app.add_typer(auth_app, name="auth")

# Rich console for output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def setup_logging(level: str) -> None:
    """Route log records through Rich at the given level."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def get_gateway(required: bool = True) -> Optional[GatewayClient]:
    """Build the gateway client from configuration.

    Args:
        required: Exit with an error when the gateway is not configured;
            otherwise return None
    """
    config = get_config()
    if not config.has_gateway_config():
        if required:
            print_error(
                "Gateway not configured. Set SCHOOLLIB_GATEWAY_URL and SCHOOLLIB_GATEWAY_TOKEN."
            )
            raise typer.Exit(1)
        return None
    return GatewayClient.from_config(config)


def format_book_table(books: list, title: str = "Books") -> Table:
    """Create a rich table for displaying books."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Category", max_width=20)
    table.add_column("Status", style="yellow")
    table.add_column("Issued to")

    for book in books:
        table.add_row(
            str(book.id),
            book.title,
            book.author,
            book.category or "-",
            book.status,
            book.issued_to or "-",
        )

    return table


def format_student_table(students: list, title: str = "Students") -> Table:
    """Create a rich table for displaying students."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Roll")
    table.add_column("Class")
    table.add_column("Section")
    table.add_column("Holding", justify="right", style="yellow")

    for student in students:
        table.add_row(
            str(student.id),
            student.name,
            student.roll or "-",
            student.class_name or "-",
            student.section or "-",
            str(student.books_held),
        )

    return table


def _load_book(book_id: int):
    """Fetch a book or exit with an error."""
    book = get_db().get_book(book_id)
    if not book:
        print_error(f"Book not found: {book_id}")
        raise typer.Exit(1)
    return book


def _read_token() -> Optional[str]:
    path = get_config().session_path
    if not path.exists():
        return None
    return path.read_text().strip() or None


# ============================================================================
# Global options
# ============================================================================


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """School library management."""
    setup_logging("DEBUG" if verbose else get_config().log_level)


# ============================================================================
# Book Commands
# ============================================================================


@books_app.command("add")
def books_add(
    title: str = typer.Argument(..., help="Book title"),
    author: str = typer.Option(..., "--author", "-a", help="Author name"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category"),
    isbn: Optional[str] = typer.Option(None, "--isbn", "-i", help="ISBN"),
    about: Optional[str] = typer.Option(None, "--about", help="Description"),
    cover: Optional[str] = typer.Option(None, "--cover", help="Cover image URL"),
    sync: bool = typer.Option(False, "--sync", help="Also add to the hosted store"),
) -> None:
    """Add a book to the catalogue."""
    from .lending import LendingManager

    try:
        data = BookCreate(
            title=title, author=author, category=category, isbn=isbn, about=about, cover=cover
        )
        manager = LendingManager(get_db(), gateway=get_gateway() if sync else None)
        book = manager.add_book(data)
    except (ValueError, GatewayError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Added: {book.title} by {book.author} (id={book.id})")


@books_app.command("list")
def books_list(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Title, author or category"),
    status: Optional[BookStatus] = typer.Option(None, "--status", help="Filter by status"),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
) -> None:
    """List catalogue books, a page at a time."""
    db = get_db()
    page_size = get_config().page_size

    try:
        books, total = db.list_books(search=search, page=page, page_size=page_size, status=status)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not books:
        print_info("No books found.")
        return

    pages = (total + page_size - 1) // page_size
    console.print(format_book_table(books, title=f"Books (page {page} of {pages})"))
    print_info(f"{total} book(s) total")


@books_app.command("show")
def books_show(
    book_id: int = typer.Argument(..., help="Book ID"),
) -> None:
    """Show a book's details."""
    book = _load_book(book_id)

    lines = [
        f"[bold]Author:[/bold] {book.author}",
        f"[bold]Category:[/bold] {book.category or '-'}",
        f"[bold]ISBN:[/bold] {book.isbn or '-'}",
        f"[bold]Status:[/bold] {book.status}",
    ]
    if book.issued_to:
        lines.append(f"[bold]Issued to:[/bold] {book.issued_to}")
    if book.about:
        lines.append(f"\n{book.about}")

    console.print(Panel("\n".join(lines), title=f"[cyan]{book.title}[/cyan]", expand=False))


@books_app.command("update")
def books_update(
    book_id: int = typer.Argument(..., help="Book ID"),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    author: Optional[str] = typer.Option(None, "--author", "-a"),
    category: Optional[str] = typer.Option(None, "--category", "-c"),
    isbn: Optional[str] = typer.Option(None, "--isbn", "-i"),
    about: Optional[str] = typer.Option(None, "--about"),
    cover: Optional[str] = typer.Option(None, "--cover"),
) -> None:
    """Edit catalogue fields of a book."""
    changes = {
        "title": title,
        "author": author,
        "category": category,
        "isbn": isbn,
        "about": about,
        "cover": cover,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        print_warning("Nothing to update.")
        return

    try:
        data = BookUpdate(**changes)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    book = get_db().update_book(book_id, data)
    if not book:
        print_error(f"Book not found: {book_id}")
        raise typer.Exit(1)

    print_success(f"Updated: {book.title}")


@books_app.command("delete")
def books_delete(
    book_id: int = typer.Argument(..., help="Book ID"),
    sync: bool = typer.Option(False, "--sync", help="Also delete from the hosted store"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a book from the catalogue."""
    from .lending import LendingManager

    book = _load_book(book_id)
    if not yes and not typer.confirm(f"Delete '{book.title}'?", default=False):
        print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        manager = LendingManager(get_db(), gateway=get_gateway() if sync else None)
        manager.delete_book(book_id)
    except (ValueError, GatewayError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Deleted: {book.title}")


@books_app.command("import")
def books_import(
    term: str = typer.Argument(..., help="Title or author to look up on Open Library"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category"),
) -> None:
    """Look a book up on Open Library and add it to the catalogue."""
    from .discovery import CatalogueSearch

    search = CatalogueSearch(get_gateway(), get_db())
    try:
        results = search.lookup(term)
    except (ValueError, GatewayError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not results:
        print_info(f"No books found for: {term}")
        return

    for i, result in enumerate(results, 1):
        year = f" ({result.publish_year})" if result.publish_year else ""
        console.print(f"  {i}. [cyan]{result.title}[/cyan] by {result.author}{year}")

    choice = typer.prompt("Select book number", type=int, default=1)
    if choice < 1 or choice > len(results):
        print_error("Invalid selection")
        raise typer.Exit(1)

    try:
        book = search.import_open_book(results[choice - 1], category=category)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Added: {book.title} by {book.author} (id={book.id})")


# ============================================================================
# Student Commands
# ============================================================================


@students_app.command("add")
def students_add(
    name: str = typer.Argument(..., help="Student name"),
    roll: Optional[str] = typer.Option(None, "--roll", "-r", help="Roll number"),
    class_name: Optional[str] = typer.Option(None, "--class", "-c", help="Class"),
    section: Optional[str] = typer.Option(None, "--section", "-s", help="Section"),
    email: Optional[str] = typer.Option(None, "--email", "-e", help="E-mail"),
    sync: bool = typer.Option(False, "--sync", help="Also add to the hosted store"),
) -> None:
    """Enrol a student."""
    from .students import StudentCreate, StudentManager

    try:
        data = StudentCreate(
            name=name, roll=roll, class_name=class_name, section=section, email=email
        )
        manager = StudentManager(get_db(), gateway=get_gateway() if sync else None)
        student = manager.create_student(data)
    except (ValueError, GatewayError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Enrolled: {student.name} (id={student.id})")


@students_app.command("list")
def students_list(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Name, roll or class"),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
) -> None:
    """List students, a page at a time."""
    from .students import StudentManager

    page_size = get_config().page_size
    try:
        students, total = StudentManager(get_db()).list_students(
            search=search, page=page, page_size=page_size
        )
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not students:
        print_info("No students found.")
        return

    console.print(format_student_table(students))
    print_info(f"{total} student(s) total")


@students_app.command("show")
def students_show(
    student_id: int = typer.Argument(..., help="Student ID"),
) -> None:
    """Show a student's profile and books."""
    from .students import StudentManager

    student = StudentManager(get_db()).get_student(student_id)
    if not student:
        print_error(f"Student not found: {student_id}")
        raise typer.Exit(1)

    current = student.get_issued_books()
    history = student.get_issued_history()
    lines = [
        f"[bold]Roll:[/bold] {student.roll or '-'}",
        f"[bold]Class:[/bold] {student.class_name or '-'}  [bold]Section:[/bold] {student.section or '-'}",
        f"[bold]E-mail:[/bold] {student.email or '-'}",
        "",
        f"[bold]Holding ({len(current)}):[/bold] " + (", ".join(current) or "-"),
        f"[bold]Returned ({len(history)}):[/bold] " + (", ".join(history) or "-"),
    ]
    console.print(Panel("\n".join(lines), title=f"[cyan]{student.name}[/cyan]", expand=False))


@students_app.command("update")
def students_update(
    student_id: int = typer.Argument(..., help="Student ID"),
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    roll: Optional[str] = typer.Option(None, "--roll", "-r"),
    class_name: Optional[str] = typer.Option(None, "--class", "-c"),
    section: Optional[str] = typer.Option(None, "--section", "-s"),
    email: Optional[str] = typer.Option(None, "--email", "-e"),
) -> None:
    """Edit a student's profile."""
    from .students import StudentManager, StudentUpdate

    changes = {
        "name": name,
        "roll": roll,
        "class_name": class_name,
        "section": section,
        "email": email,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        print_warning("Nothing to update.")
        return

    try:
        data = StudentUpdate(**changes)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    student = StudentManager(get_db()).update_student(student_id, data)
    if not student:
        print_error(f"Student not found: {student_id}")
        raise typer.Exit(1)

    print_success(f"Updated: {student.name}")


@students_app.command("delete")
def students_delete(
    student_id: int = typer.Argument(..., help="Student ID"),
    sync: bool = typer.Option(False, "--sync", help="Also delete from the hosted store"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a student record."""
    from .students import StudentManager

    manager = StudentManager(get_db(), gateway=get_gateway() if sync else None)
    student = manager.get_student(student_id)
    if not student:
        print_error(f"Student not found: {student_id}")
        raise typer.Exit(1)

    if not yes and not typer.confirm(f"Delete '{student.name}'?", default=False):
        print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        manager.delete_student(student_id)
    except (ValueError, GatewayError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Deleted: {student.name}")


# ============================================================================
# Lending Commands
# ============================================================================


@lend_app.command("issue")
def lend_issue(
    book_id: int = typer.Argument(..., help="Book ID"),
    student_id: int = typer.Argument(..., help="Student ID"),
) -> None:
    """Issue a book to a student."""
    from .lending import LendingManager

    try:
        record = LendingManager(get_db()).issue_book(book_id, student_id)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Issued '{record.book_title}' to {record.student_name}")


@lend_app.command("return")
def lend_return(
    book_id: int = typer.Argument(..., help="Book ID"),
) -> None:
    """Return an issued book."""
    from .lending import LendingManager

    try:
        record = LendingManager(get_db()).return_book(book_id)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if record is None:
        print_warning("Book is not issued; nothing to return.")
        return

    print_success(f"Returned '{record.book_title}' from {record.student_name}")


@lend_app.command("records")
def lend_records(
    month: Optional[int] = typer.Option(None, "--month", "-m", help="Issue month (1-12)"),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Issue year"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Book title contains"),
    student: Optional[str] = typer.Option(None, "--student", "-s", help="Student name contains"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Author contains"),
    open_only: bool = typer.Option(False, "--open", help="Only books not yet returned"),
) -> None:
    """Browse the issue ledger."""
    from .lending import IssueRecordFilter, LendingManager

    try:
        filters = IssueRecordFilter(
            month=month,
            year=year,
            book_title=title,
            student_name=student,
            author=author,
            open_only=open_only,
        )
        records = LendingManager(get_db()).list_issue_records(filters)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not records:
        print_info("No issue records found.")
        return

    table = Table(title="Issue Records", show_header=True, header_style="bold magenta")
    table.add_column("Book", style="cyan", max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Student")
    table.add_column("Issued")
    table.add_column("Returned", style="yellow")

    for record in records:
        table.add_row(
            record.book_title,
            record.author or "-",
            record.student_name,
            record.issue_date[:10],
            record.return_date[:10] if record.return_date else "Not Returned",
        )

    console.print(table)


@lend_app.command("overview")
def lend_overview(
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Year for monthly counts"),
) -> None:
    """Show library statistics."""
    import calendar

    from .lending import LendingManager

    overview = LendingManager(get_db()).get_overview(year)

    table = Table(title="Library Overview", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Total books", str(overview.total_books))
    table.add_row("Issued", str(overview.issued_books))
    table.add_row("Available", str(overview.available_books))
    table.add_row("Students", str(overview.total_students))
    console.print(table)

    monthly = Table(title=f"Issues in {overview.year}", show_header=True, header_style="bold magenta")
    monthly.add_column("Month")
    monthly.add_column("Issued", justify="right")
    monthly.add_column("", style="blue")

    peak = max(overview.issued_by_month) or 1
    for i, count in enumerate(overview.issued_by_month, 1):
        bar = "█" * round(20 * count / peak) if count else ""
        monthly.add_row(calendar.month_abbr[i], str(count), bar)

    console.print(monthly)
    print_info(f"{overview.issued_in_year} issue(s) in {overview.year}")


# ============================================================================
# Announcement Commands
# ============================================================================


def _format_task_table(tasks: list) -> Table:
    table = Table(title="Scheduled Announcements", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Prompt", style="cyan", max_width=40)
    table.add_column("Repeat")
    table.add_column("Next run")
    table.add_column("Channels")
    table.add_column("State", style="yellow")

    for task in tasks:
        channels = ", ".join(
            name for name, on in (("telegram", task.telegram), ("discord", task.discord)) if on
        )
        if task.overdue:
            state = "[red]overdue[/red]"
        elif task.active:
            state = "active"
        else:
            state = "stopped"
        table.add_row(
            str(task.id),
            task.description,
            task.repeat_option,
            task.next_run_at or "-",
            channels or "-",
            state,
        )

    return table


@announce_app.command("create")
def announce_create(
    description: str = typer.Argument(..., help="Prompt the announcement is generated from"),
    date: Optional[str] = typer.Option(None, "--date", "-d", help="Date (YYYY-MM-DD)"),
    time: str = typer.Option(..., "--time", "-t", help="Time (HH:MM, local)"),
    daily: bool = typer.Option(False, "--daily", help="Repeat every day"),
    telegram: bool = typer.Option(False, "--telegram", help="Post to Telegram"),
    discord: bool = typer.Option(False, "--discord", help="Post to Discord"),
) -> None:
    """Schedule an announcement.

    The task is stored and fires while 'schoollib announce run' is running.
    """
    from .announcements import (
        AnnouncementScheduler,
        NullTimers,
        RepeatOption,
        ScheduledTaskCreate,
    )

    try:
        data = ScheduledTaskCreate(
            description=description,
            scheduled_date=date,
            scheduled_time=time,
            repeat_option=RepeatOption.DAILY if daily else RepeatOption.NONE,
            telegram=telegram,
            discord=discord,
        )
        task = AnnouncementScheduler(get_db(), timers=NullTimers()).create(data)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Scheduled announcement {task.id} for {task.next_run_at}")


@announce_app.command("list")
def announce_list(
    daily: bool = typer.Option(False, "--daily", help="Only daily tasks"),
    active: bool = typer.Option(False, "--active", help="Only active tasks"),
) -> None:
    """List scheduled announcements."""
    from .announcements import AnnouncementScheduler, NullTimers, RepeatOption

    tasks = AnnouncementScheduler(get_db(), timers=NullTimers()).list_tasks(
        repeat_option=RepeatOption.DAILY if daily else None,
        active_only=active,
    )
    if not tasks:
        print_info("No scheduled announcements.")
        return

    console.print(_format_task_table(tasks))


@announce_app.command("stop")
def announce_stop(
    task_id: int = typer.Argument(..., help="Task ID"),
) -> None:
    """Stop an announcement from firing again."""
    from .announcements import AnnouncementScheduler, NullTimers

    task = AnnouncementScheduler(get_db(), timers=NullTimers()).stop(task_id)
    if not task:
        print_error(f"Task not found: {task_id}")
        raise typer.Exit(1)

    print_success(f"Stopped announcement {task_id}")


@announce_app.command("delete")
def announce_delete(
    task_id: int = typer.Argument(..., help="Task ID"),
) -> None:
    """Delete a scheduled announcement."""
    from .announcements import AnnouncementScheduler, NullTimers

    if not AnnouncementScheduler(get_db(), timers=NullTimers()).delete(task_id):
        print_error(f"Task not found: {task_id}")
        raise typer.Exit(1)

    print_success(f"Deleted announcement {task_id}")


@announce_app.command("fire")
def announce_fire(
    task_id: int = typer.Argument(..., help="Task ID"),
) -> None:
    """Dispatch an announcement now."""
    from .announcements import AnnouncementScheduler, NullTimers

    scheduler = AnnouncementScheduler(get_db(), gateway=get_gateway(), timers=NullTimers())
    task = scheduler.fire(task_id)
    if not task:
        print_error(f"No active task: {task_id}")
        raise typer.Exit(1)

    print_success(f"Fired announcement {task_id}")


@announce_app.command("run")
def announce_run() -> None:
    """Run the scheduler until interrupted (Ctrl+C).

    Announcements created from other shells are picked up every
    SCHOOLLIB_SYNC_INTERVAL seconds.
    """
    from .announcements import AnnouncementScheduler, APSchedulerTimers

    gateway = get_gateway(required=False)
    if gateway is None:
        print_warning("Gateway not configured; announcements will only be logged.")

    timers = APSchedulerTimers()
    scheduler = AnnouncementScheduler(get_db(), gateway=gateway, timers=timers)
    armed = scheduler.start()
    timers.every("sync", get_config().sync_interval, scheduler.sync)
    console.print(f"[bold]Scheduler running[/bold] with {armed} armed task(s). Ctrl+C to stop.")

    try:
        while True:
            time_module.sleep(1)
    except KeyboardInterrupt:
        print_info("Stopping scheduler...")
    finally:
        scheduler.shutdown()


# ============================================================================
# Discovery Commands
# ============================================================================


def _book_ref(book_id: int):
    from .discovery import BookRef

    return BookRef.from_book(_load_book(book_id))


@discover_app.command("about")
def discover_about(
    book_id: int = typer.Argument(..., help="Book ID"),
) -> None:
    """Show the stored description of a book."""
    from .discovery import BookInsights

    book = _book_ref(book_id)
    text = BookInsights(gateway=None).about(book)
    console.print(Panel(text, title=f"[cyan]{book.title}[/cyan]", expand=False))


def _generated_panel(book_id: int, tab: str) -> None:
    from .discovery import BookInsights

    book = _book_ref(book_id)
    insights = BookInsights(get_gateway())
    try:
        text = getattr(insights, tab)(book)
    except GatewayError as e:
        print_error(str(e))
        raise typer.Exit(1)

    console.print(Panel(text, title=f"[cyan]{book.title}[/cyan] - {tab}", expand=False))


@discover_app.command("conversation")
def discover_conversation(
    book_id: int = typer.Argument(..., help="Book ID"),
) -> None:
    """Generate a conversation from a book."""
    _generated_panel(book_id, "conversation")


@discover_app.command("critique")
def discover_critique(
    book_id: int = typer.Argument(..., help="Book ID"),
) -> None:
    """Generate a critique of a book."""
    _generated_panel(book_id, "critique")


@discover_app.command("quotes")
def discover_quotes(
    book_id: int = typer.Argument(..., help="Book ID"),
    count: int = typer.Option(2, "--count", "-n", help="Number of quotes"),
) -> None:
    """Generate memorable quotes from a book."""
    from .discovery import BookInsights

    book = _book_ref(book_id)
    try:
        quotes = BookInsights(get_gateway()).quotes(book, count=count)
    except GatewayError as e:
        print_error(str(e))
        raise typer.Exit(1)

    console.print(f"\n[bold]Quotes from {book.title}[/bold]")
    for quote in quotes:
        console.print(f"  [italic]{quote}[/italic]")


@discover_app.command("related")
def discover_related(
    book_id: int = typer.Argument(..., help="Book ID"),
    count: int = typer.Option(2, "--count", "-n", help="Number of books"),
) -> None:
    """Suggest books related to a book."""
    from .discovery import BookInsights

    book = _book_ref(book_id)
    try:
        related = BookInsights(get_gateway()).related_books(book, count=count)
    except GatewayError as e:
        print_error(str(e))
        raise typer.Exit(1)

    console.print(f"\n[bold]Related to {book.title}[/bold]")
    for item in related:
        console.print(f"  [cyan]{item.title}[/cyan] by {item.author}")
        if item.description:
            console.print(f"    [dim]{item.description}[/dim]")


@discover_app.command("chat")
def discover_chat(
    book_id: int = typer.Argument(..., help="Book ID"),
) -> None:
    """Talk to the author of a book. Empty line or 'exit' ends the chat."""
    from .discovery import AuthorChat

    book = _book_ref(book_id)
    chat = AuthorChat(gateway=get_gateway(), book=book)
    console.print(f"[bold]Chatting with the author of {book.title}[/bold]")

    while True:
        message = typer.prompt("You", default="", show_default=False)
        if not message.strip() or message.strip().lower() in ("exit", "quit"):
            break
        console.print(f"[green]{book.author}:[/green] {chat.send(message)}")


@discover_app.command("recommend")
def discover_recommend(
    student_id: int = typer.Argument(..., help="Student ID"),
    limit: int = typer.Option(3, "--limit", "-l", help="Number of recommendations"),
) -> None:
    """Recommend books for a student from their reading history."""
    from .discovery import RecommendationEngine

    try:
        recommendations = RecommendationEngine(get_gateway(), get_db()).recommend_for_student(
            student_id, limit=limit
        )
    except (ValueError, GatewayError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not recommendations:
        print_info("No recommendations.")
        return

    for rec in recommendations:
        where = f"[green]on the shelf (id={rec.book_id})[/green]" if rec.in_catalogue else "[dim]not in catalogue[/dim]"
        console.print(f"  [cyan]{rec.title}[/cyan] by {rec.author} - {where}")
        if rec.reason:
            console.print(f"    [dim]{rec.reason}[/dim]")


@discover_app.command("search")
def discover_search(
    query: str = typer.Argument(..., help="What the book is about"),
) -> None:
    """Semantic search over the catalogue index."""
    from .discovery import CatalogueSearch

    try:
        hits = CatalogueSearch(get_gateway(), get_db()).semantic_search(query)
    except (ValueError, GatewayError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not hits:
        print_info("No results found.")
        return

    table = Table(title=f"Results for '{query}'", show_header=True, header_style="bold magenta")
    table.add_column("Title", style="cyan", max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Score", justify="right")
    for hit in hits:
        table.add_row(hit.title, hit.author, f"{hit.score:.2f}")

    console.print(table)


@discover_app.command("lookup")
def discover_lookup(
    term: str = typer.Argument(..., help="Title or author"),
) -> None:
    """Look up books on Open Library."""
    from .discovery import CatalogueSearch

    try:
        results = CatalogueSearch(get_gateway(), get_db()).lookup(term)
    except (ValueError, GatewayError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not results:
        print_info(f"No books found for: {term}")
        return

    table = Table(title="Open Library", show_header=True, header_style="bold magenta")
    table.add_column("Title", style="cyan", max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Year")
    for result in results:
        table.add_row(result.title, result.author, result.publish_year or "-")

    console.print(table)


# ============================================================================
# Payment Commands
# ============================================================================


@pay_app.command("link")
def pay_link(
    description: str = typer.Argument(..., help="What the payment is for"),
    name: str = typer.Option(..., "--name", "-n", help="Customer name"),
    email: str = typer.Option(..., "--email", "-e", help="Customer e-mail"),
) -> None:
    """Generate a payment link."""
    from .payments import PaymentLinkRequest, PaymentManager

    try:
        request = PaymentLinkRequest(
            description=description, customer_name=name, customer_email=email
        )
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    try:
        url = PaymentManager(get_gateway()).create_link(request)
    except GatewayError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success("Payment link created")
    console.print(f"  {url}")


@pay_app.command("list")
def pay_list() -> None:
    """List captured payment links."""
    from .payments import PaymentManager

    try:
        links = PaymentManager(get_gateway()).list_captured()
    except GatewayError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not links:
        print_info("No captured payments.")
        return

    table = Table(title="Captured Payments", show_header=True, header_style="bold magenta")
    table.add_column("Customer", style="cyan")
    table.add_column("E-mail")
    table.add_column("Amount", justify="right", style="green")
    table.add_column("Status", style="yellow")
    table.add_column("Link")

    for link in links:
        table.add_row(
            link.customer.name or "-",
            link.customer.email or "-",
            f"{link.amount_major:.2f} {link.currency}",
            link.status,
            link.short_url or "-",
        )

    console.print(table)


# ============================================================================
# Auth Commands
# ============================================================================


@auth_app.command("signup")
def auth_signup(
    email: str = typer.Argument(..., help="E-mail address"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True
    ),
    role: str = typer.Option("student", "--role", "-r", help="admin or student"),
) -> None:
    """Create an account."""
    from .auth import AuthError, AuthManager

    try:
        user = AuthManager(get_db()).sign_up(email, password, role=role)
    except AuthError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Account created for {user.email} ({user.role})")


@auth_app.command("login")
def auth_login(
    email: str = typer.Argument(..., help="E-mail address"),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
) -> None:
    """Sign in and remember the session."""
    from .auth import AuthError, AuthManager

    try:
        auth_session = AuthManager(get_db()).sign_in(email, password)
    except AuthError as e:
        print_error(str(e))
        raise typer.Exit(1)

    path = get_config().session_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(auth_session.token)
    print_success(f"Signed in as {email.strip().lower()}")


@auth_app.command("logout")
def auth_logout() -> None:
    """End the current session."""
    from .auth import AuthManager

    token = _read_token()
    if not token:
        print_info("Not signed in.")
        return

    AuthManager(get_db()).sign_out(token)
    get_config().session_path.unlink(missing_ok=True)
    print_success("Signed out")


@auth_app.command("whoami")
def auth_whoami() -> None:
    """Show the signed-in account."""
    from .auth import AuthManager

    token = _read_token()
    user = AuthManager(get_db()).current_user(token) if token else None
    if not user:
        print_info("Not signed in.")
        raise typer.Exit(1)

    console.print(f"{user.email} [dim]({user.role})[/dim]")


@auth_app.command("delete")
def auth_delete(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete the signed-in account."""
    from .auth import AuthManager

    token = _read_token()
    manager = AuthManager(get_db())
    user = manager.current_user(token) if token else None
    if not user:
        print_error("Not signed in.")
        raise typer.Exit(1)

    if not yes and not typer.confirm(f"Delete account {user.email}?", default=False):
        print_info("Cancelled.")
        raise typer.Exit(0)

    manager.delete_user(user.id)
    get_config().session_path.unlink(missing_ok=True)
    print_success(f"Deleted account {user.email}")


# ============================================================================
# Setup
# ============================================================================


@app.command()
def init() -> None:
    """Create the database and check configuration."""
    config = get_config()
    errors = config.validate()
    for error in errors:
        print_warning(error)

    db = get_db()
    db.create_tables()
    print_success(f"Database ready at {db.db_path}")

    if not config.has_gateway_config():
        print_info("Gateway not configured; AI, search and payment commands are unavailable.")


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"schoollib version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
