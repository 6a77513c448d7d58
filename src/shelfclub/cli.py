"""Command-line interface for shelfclub.

Built with Typer for commands and Rich for output.
"""

import calendar
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import get_config
from .db import Database, get_db
from .db.schemas import BookEmotion, ShelfStatus
from .errors import (
    CatalogError,
    DuplicateRecordError,
    InvalidInputError,
    PersistenceError,
    RecordNotFoundError,
)
from .log import configure_logging

# Create the main app
app = typer.Typer(
    name="shelfclub",
    help="Track your reading, streaks, goals, bingo and reading clubs.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
bingo_app = typer.Typer(help="Play reading bingo.")
app.add_typer(bingo_app, name="bingo")

club_app = typer.Typer(help="Reading clubs.")
app.add_typer(club_app, name="club")

import_app = typer.Typer(help="Import books from other services.")
app.add_typer(import_app, name="import")

# Rich console for pretty output
console = Console()

# Acting user, set by the app callback
_state: dict[str, Optional[str]] = {"user": None}


# ============================================================================
# Helper Functions
# ============================================================================


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


@contextmanager
def user_action() -> Iterator[None]:
    """Turn a failed action into a one-line notice and exit code 1."""
    try:
        yield
    except InvalidInputError as e:
        print_error(str(e))
        raise typer.Exit(1)
    except DuplicateRecordError as e:
        print_warning(str(e))
        raise typer.Exit(1)
    except RecordNotFoundError as e:
        print_error(f"Not found: {e}")
        raise typer.Exit(1)
    except CatalogError as e:
        print_error(f"Catalog unavailable: {e}")
        raise typer.Exit(1)
    except PersistenceError as e:
        print_error(f"Storage failed, nothing was changed: {e}")
        raise typer.Exit(1)


def current_user() -> str:
    """The acting user id, or exit if none was given."""
    user = _state["user"]
    if not user:
        print_error("No user given. Pass --user or set SHELFCLUB_USER.")
        raise typer.Exit(1)
    return user


def _db() -> Database:
    return get_db(str(get_config().db_path))


def _book_search():
    from .api import GoogleBooksClient, OpenLibraryClient
    from .discovery import BookSearch

    config = get_config()
    google = GoogleBooksClient(
        api_key=config.google_books_api_key,
        language=config.catalog_language,
        timeout=config.http_timeout,
        min_request_interval=config.request_interval,
    )
    openlibrary = OpenLibraryClient(
        timeout=config.http_timeout, min_request_interval=config.request_interval
    )
    return BookSearch(google, openlibrary)


def _parse_day(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        print_error(f"Invalid date '{value}', expected YYYY-MM-DD")
        raise typer.Exit(1)


def format_shelf_table(entries: list, title: str = "Shelf") -> Table:
    """Create a rich table for displaying shelf entries."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Status", style="yellow")
    table.add_column("Rating", justify="center")
    table.add_column("Finished", justify="center")

    for entry in entries:
        rating = "★" * entry.rating + "☆" * (5 - entry.rating) if entry.rating else "-"
        table.add_row(
            entry.book_id,
            entry.book.title,
            entry.book.author,
            entry.status,
            rating,
            entry.finished_at or "-",
        )

    return table


@app.callback()
def main(
    user: Optional[str] = typer.Option(
        None, "--user", "-u", envvar="SHELFCLUB_USER", help="Acting user id"
    ),
) -> None:
    """Track your reading, streaks, goals, bingo and reading clubs."""
    config = get_config()
    problems = config.validate()
    if problems:
        for problem in problems:
            print_error(problem)
        raise typer.Exit(1)

    configure_logging(config.log_level)
    _state["user"] = user or config.user_id


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"shelfclub version {__version__}")


# ============================================================================
# Search and Shelf Commands
# ============================================================================


@app.command()
def search(
    query: str = typer.Argument(..., help="Title, author or ISBN"),
) -> None:
    """Search the book catalogs."""
    with user_action():
        outcome = _book_search().search(query)

    if not outcome.applied:
        print_info("Superseded by a newer search.")
        return
    if not outcome.results:
        print_info(f"No books found matching: {query}")
        return

    _print_results(outcome.results)


def _print_results(results: list) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="cyan", width=3)
    table.add_column("Title", width=35)
    table.add_column("Author", width=20)
    table.add_column("Year", width=6)
    table.add_column("Pages", width=6)

    for i, r in enumerate(results, 1):
        table.add_row(
            str(i),
            r.title[:35],
            r.author[:20],
            str(r.year_published or "-"),
            str(r.pages or "-"),
        )

    console.print(table)


@app.command()
def add(
    query: str = typer.Argument(..., help="Book to search for"),
    status: ShelfStatus = typer.Option(ShelfStatus.WANT, "--status", "-s", help="Shelf status"),
    pick: Optional[int] = typer.Option(None, "--pick", "-p", help="Result number to add"),
) -> None:
    """Search the catalogs and add a book to your shelf."""
    from .library import ShelfManager

    user = current_user()
    with user_action():
        outcome = _book_search().search(query)

    if not outcome.applied:
        print_info("Superseded by a newer search; nothing was added.")
        raise typer.Exit(0)
    if not outcome.results:
        print_error(f"No books found matching: {query}")
        console.print("[dim]Try 'shelfclub add-manual' to add it by hand.[/dim]")
        raise typer.Exit(1)

    if pick is None:
        _print_results(outcome.results)
        pick = typer.prompt("\nSelect book number (0 to cancel)", type=int, default=1)
    if pick <= 0 or pick > len(outcome.results):
        print_info("Cancelled.")
        raise typer.Exit(0)

    selected = outcome.results[pick - 1]
    with user_action():
        entry = ShelfManager(_db()).add_book(user, selected.to_candidate(), status=status)
    print_success(f"Added: {entry.book.title} by {entry.book.author} ({entry.status})")


@app.command("add-manual")
def add_manual(
    title: str = typer.Option(..., "--title", "-t", prompt="Book title"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Author"),
    pages: Optional[int] = typer.Option(None, "--pages", help="Page count"),
    status: ShelfStatus = typer.Option(ShelfStatus.WANT, "--status", "-s", help="Shelf status"),
) -> None:
    """Add a book by hand, without searching the catalogs."""
    from .db.schemas import BookCandidate, validate_input
    from .library import ShelfManager

    user = current_user()
    with user_action():
        candidate = validate_input(BookCandidate, title=title, author=author, pages=pages)
        entry = ShelfManager(_db()).add_book(user, candidate, status=status)
    print_success(f"Added: {entry.book.title} by {entry.book.author} ({entry.status})")


@app.command()
def shelf(
    status: Optional[ShelfStatus] = typer.Option(None, "--status", "-s", help="Filter by status"),
) -> None:
    """List the books on your shelf."""
    from .library import ShelfManager

    user = current_user()
    with user_action():
        entries = ShelfManager(_db()).list_shelf(user, status)

    if not entries:
        print_info("Your shelf is empty.")
        return

    title = f"Shelf ({status.value})" if status else "Shelf"
    console.print(format_shelf_table(entries, title=title))


@app.command()
def status(
    book_id: str = typer.Argument(..., help="Book ID"),
    new_status: ShelfStatus = typer.Argument(..., help="New status"),
) -> None:
    """Change a book's status on your shelf."""
    from .library import ShelfManager

    user = current_user()
    with user_action():
        entry = ShelfManager(_db()).set_status(user, book_id, new_status)
    print_success(f"'{entry.book.title}' is now {entry.status}")


@app.command()
def rate(
    book_id: str = typer.Argument(..., help="Book ID"),
    rating: int = typer.Argument(..., help="Rating 1-5"),
) -> None:
    """Rate a book on your shelf."""
    from .library import ShelfManager

    user = current_user()
    with user_action():
        entry = ShelfManager(_db()).set_rating(user, book_id, rating)
    print_success(f"Rated '{entry.book.title}' {'★' * rating}")


@app.command()
def remove(
    book_id: str = typer.Argument(..., help="Book ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Remove a book from your shelf."""
    from .library import ShelfManager

    user = current_user()
    if not force and not typer.confirm(f"Remove {book_id} from your shelf?"):
        print_info("Cancelled.")
        raise typer.Exit(0)

    with user_action():
        removed = ShelfManager(_db()).remove_book(user, book_id)
    if not removed:
        print_error(f"Book {book_id} is not on your shelf")
        raise typer.Exit(1)
    print_success("Removed from your shelf")


@app.command()
def feel(
    book_id: str = typer.Argument(..., help="Book ID"),
    emotion: Optional[BookEmotion] = typer.Argument(None, help="Emotion to toggle"),
) -> None:
    """Tag a book with how it made you feel, or show your tags."""
    from .library import EmotionManager

    user = current_user()
    manager = EmotionManager(_db())
    with user_action():
        if emotion is not None:
            added = manager.toggle_emotion(user, book_id, emotion.value)
            verb = "Tagged" if added else "Untagged"
            print_success(f"{verb} {emotion.emoji} {emotion.value}")
        mine = manager.emotions_for(user, book_id)
        counts = manager.emotion_counts(book_id)

    if not counts:
        print_info("No emotions tagged yet.")
        return
    console.print("Yours: " + (" ".join(f"{e.emoji} {e.value}" for e in mine) or "-"))
    console.print("Everyone: " + "  ".join(f"{e.emoji} {n}" for e, n in counts.items()))


@app.command()
def recommend(
    add: Optional[int] = typer.Option(None, "--add", "-a", help="Add result number to your shelf"),
    limit: int = typer.Option(10, "--limit", "-n", help="Maximum suggestions"),
) -> None:
    """Suggest books by authors on your shelf."""
    from .discovery import AuthorRecommender
    from .library import ShelfManager

    user = current_user()
    recommender = AuthorRecommender(_book_search().primary, ShelfManager(_db()))
    with user_action():
        suggestions = recommender.recommend(user, limit=limit)

    if not suggestions:
        print_info("No recommendations yet. Add a few books first.")
        return

    if add is None:
        _print_results([s.book for s in suggestions])
        return
    if add <= 0 or add > len(suggestions):
        print_error(f"Pick a number between 1 and {len(suggestions)}")
        raise typer.Exit(1)

    with user_action():
        entry = recommender.add_to_shelf(user, suggestions[add - 1])
    print_success(f"Added: {entry.book.title} by {entry.book.author}")


# ============================================================================
# Progress, Streak and Stats Commands
# ============================================================================


@app.command()
def log(
    book_id: str = typer.Argument(..., help="Book ID"),
    pages: int = typer.Option(0, "--pages", "-p", help="Pages read"),
    minutes: int = typer.Option(0, "--minutes", "-m", help="Minutes read"),
    day: Optional[str] = typer.Option(None, "--date", "-d", help="Date (YYYY-MM-DD, default today)"),
) -> None:
    """Log reading progress."""
    from .reading import ProgressLog

    user = current_user()
    reading_date = _parse_day(day)
    with user_action():
        entry = ProgressLog(_db()).log_progress(
            user, book_id, pages_read=pages, minutes_read=minutes, reading_date=reading_date
        )
    print_success(
        f"Logged {entry.pages_read} pages, {entry.minutes_read} minutes on {entry.reading_date}"
    )


@app.command()
def streak() -> None:
    """Show your reading streak."""
    from .streaks import StreakManager, StreakStatus

    user = current_user()
    with user_action():
        summary = StreakManager(_db()).get_summary(user)

    style = {
        StreakStatus.ACTIVE: "green",
        StreakStatus.AT_RISK: "yellow",
        StreakStatus.BROKEN: "red",
    }[summary.status]

    lines = [
        f"Current streak: [bold {style}]{summary.current_streak} days[/bold {style}]",
        f"Longest streak: {summary.longest_streak} days",
        f"Reading days: {summary.total_reading_days}",
        f"Last read: {summary.last_reading_date or '-'}",
    ]
    if summary.status == StreakStatus.AT_RISK:
        lines.append("[yellow]Read today to keep your streak going![/yellow]")

    console.print(Panel("\n".join(lines), title="Reading Streak"))


@app.command()
def stats(
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Year (default: current)"),
) -> None:
    """Show your reading statistics for a year."""
    from .stats import GoalTracker, StatsService

    user = current_user()
    db = _db()
    with user_action():
        figures = StatsService(db).stats_for(user, year)
        progress = GoalTracker(db).goal_progress(user, figures.year)

    table = Table(title=f"Reading Stats {figures.year}", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Books finished", str(figures.books_this_year))
    table.add_row("Pages in finished books", str(figures.total_pages))
    table.add_row("Pages logged", str(figures.total_pages_logged))
    table.add_row("Minutes logged", str(figures.total_minutes_logged))
    table.add_row("Reading days", str(figures.reading_days))
    if figures.year == date.today().year:
        table.add_row("Books this month", str(figures.books_this_month))
        table.add_row("Pages this month", str(figures.pages_this_month))
    if progress.target:
        table.add_row("Goal", f"{progress.read}/{progress.target} ({progress.percent:.0f}%)")
    console.print(table)

    peak = max(figures.monthly_histogram) or 1
    console.print("\n[bold]Books per month[/bold]")
    for month, count in enumerate(figures.monthly_histogram, 1):
        bar = "█" * round(count / peak * 20)
        console.print(f"{calendar.month_abbr[month]:>4} {bar} {count}")


@app.command()
def goal(
    target: Optional[int] = typer.Argument(None, help="Books to read (omit to show)"),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Year (default: current)"),
) -> None:
    """Set or show your yearly reading goal."""
    from .stats import GoalTracker

    user = current_user()
    tracker = GoalTracker(_db())
    with user_action():
        if target is not None:
            progress = tracker.set_goal(user, target, year)
            print_success(f"Goal for {progress.year}: {progress.target} books")
        else:
            progress = tracker.goal_progress(user, year)

    if not progress.target:
        print_info(f"No goal set for {progress.year}. Use 'shelfclub goal <books>'.")
        return

    console.print(
        f"{progress.year}: {progress.read}/{progress.target} books "
        f"([bold]{progress.percent:.0f}%[/bold], {progress.remaining} to go)"
    )
    if progress.is_complete:
        console.print("[bold green]Goal reached![/bold green]")


# ============================================================================
# Bingo Commands
# ============================================================================


def _print_board(board) -> None:
    table = Table(show_header=False, show_lines=True)
    for _ in range(5):
        table.add_column(width=18)

    for row in range(5):
        cells = []
        for cell in board.cells[row * 5:(row + 1) * 5]:
            if cell.is_free:
                cells.append("[bold magenta]FREE[/bold magenta]")
            elif cell.completed:
                cells.append(f"[green]✓ {cell.label}[/green]\n[dim]{cell.linked_book_title or ''}[/dim]")
            else:
                cells.append(cell.label)
        table.add_row(*cells)

    console.print(table)


@bingo_app.command("new")
def bingo_new(
    name: str = typer.Argument(..., help="Challenge name"),
    club_id: Optional[str] = typer.Option(None, "--club", "-c", help="Club the challenge is for"),
) -> None:
    """Create a bingo challenge with the default prompts."""
    from .challenges import ChallengeManager

    user = current_user()
    with user_action():
        challenge = ChallengeManager(_db()).create_challenge(user, name, club_id=club_id)
    print_success(f"Created challenge '{challenge.name}' ({challenge.id})")


@bingo_app.command("show")
def bingo_show(challenge_id: str = typer.Argument(..., help="Challenge ID")) -> None:
    """Show your bingo board."""
    from .challenges import ChallengeManager

    user = current_user()
    with user_action():
        board = ChallengeManager(_db()).load_board(challenge_id, user)

    _print_board(board)
    lines = len(board.completed_lines())
    console.print(f"{board.completed_count}/25 cells, {lines} line(s) complete")


@bingo_app.command("select")
def bingo_select(
    challenge_id: str = typer.Argument(..., help="Challenge ID"),
    index: int = typer.Argument(..., help="Cell number 0-24"),
) -> None:
    """Select a cell. A completed cell is cleared."""
    from .challenges import BingoSession, ChallengeManager

    user = current_user()
    with user_action():
        session = BingoSession(ChallengeManager(_db()), challenge_id, user)
        was_completed = 0 <= index < 25 and session.board.cells[index].completed
        session.select(index)

    if session.pending == index:
        print_info(f"Cell {index} is waiting for a book: shelfclub bingo complete {challenge_id} {index} <book-id>")
    elif was_completed:
        print_success(f"Cleared cell {index}")


@bingo_app.command("complete")
def bingo_complete(
    challenge_id: str = typer.Argument(..., help="Challenge ID"),
    index: int = typer.Argument(..., help="Cell number 0-24"),
    book_id: str = typer.Argument(..., help="ID of a book on your shelf"),
) -> None:
    """Complete a cell with a book from your shelf."""
    from .challenges import BingoSession, ChallengeManager
    from .library import ShelfManager

    user = current_user()
    db = _db()
    with user_action():
        entry = ShelfManager(db).get_entry(user, book_id)
        if entry is None:
            raise RecordNotFoundError(f"Book {book_id} is not on your shelf")

        session = BingoSession(ChallengeManager(db), challenge_id, user)
        if 0 <= index < 25 and session.board.cells[index].completed:
            raise InvalidInputError(f"Cell {index} is already complete")
        session.select(index)
        reached = session.complete(index, entry.book_id, entry.book.title)

    print_success(f"Cell {index} completed with '{entry.book.title}'")
    if reached:
        console.print(Panel("[bold magenta]BINGO![/bold magenta]", expand=False))


# ============================================================================
# Club Commands
# ============================================================================


@club_app.command("create")
def club_create(
    name: str = typer.Argument(..., help="Club name"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
) -> None:
    """Create a reading club."""
    from .clubs import ClubManager

    user = current_user()
    with user_action():
        club = ClubManager(_db()).create_club(user, name, description)
    print_success(f"Created club '{club.name}'. Invite code: [bold]{club.invite_code}[/bold]")


@club_app.command("join")
def club_join(code: str = typer.Argument(..., help="Invite code")) -> None:
    """Join a club with its invite code."""
    from .clubs import ClubManager

    user = current_user()
    with user_action():
        club = ClubManager(_db()).join_by_invite(user, code)
    print_success(f"Joined '{club.name}'")


@club_app.command("start-reading")
def club_start_reading(
    club_id: str = typer.Argument(..., help="Club ID"),
    book_id: str = typer.Argument(..., help="Book ID"),
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Target date (YYYY-MM-DD)"),
) -> None:
    """Start reading a book together."""
    from .clubs import ClubManager
    from .library import BookResolver

    user = current_user()
    target_date = _parse_day(target)
    db = _db()
    with user_action():
        book = BookResolver(db).get_book(book_id)
        if book is None:
            raise RecordNotFoundError(f"Book not found: {book_id}")
        reading = ClubManager(db).start_reading(club_id, user, book.to_candidate(), target_date)
    print_success(f"The club is now reading '{reading.book.title}'")


@club_app.command("annotate")
def club_annotate(
    book_id: str = typer.Argument(..., help="Book ID"),
    content: str = typer.Argument(..., help="Annotation text"),
    club_id: Optional[str] = typer.Option(None, "--club", "-c", help="Share with a club"),
    page: Optional[int] = typer.Option(None, "--page", "-p", help="Page number"),
    spoiler: bool = typer.Option(False, "--spoiler", help="Mark as spoiler"),
) -> None:
    """Annotate a book, privately or for a club."""
    from .clubs import ClubManager

    user = current_user()
    with user_action():
        ClubManager(_db()).add_annotation(
            user, book_id, content, club_id=club_id, page_number=page, is_spoiler=spoiler
        )
    print_success("Annotation saved")


# ============================================================================
# Import Commands
# ============================================================================


@import_app.command("goodreads")
def import_goodreads(
    file: Path = typer.Argument(..., help="Goodreads export CSV"),
    enrich: bool = typer.Option(False, "--enrich", help="Look books up in Google Books"),
) -> None:
    """Import your Goodreads library export."""
    from .imports import GoodreadsImporter

    user = current_user()
    catalog = _book_search().primary if enrich else None
    importer = GoodreadsImporter(_db(), catalog=catalog)

    console.print(f"[dim]Importing {file}...[/dim]")
    result = importer.import_file(user, file)

    for message in result.error_messages[:10]:
        print_warning(message)
    if not result.success:
        print_error(f"Import failed. {result.summary}")
        raise typer.Exit(1)
    print_success(result.summary)


if __name__ == "__main__":
    app()
