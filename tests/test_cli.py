"""Tests for the CLI interface."""

import os
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from shelfclub.challenges import ChallengeManager
from shelfclub.cli import app
from shelfclub.clubs import ClubManager
from shelfclub.config import reset_config
from shelfclub.db.sqlite import get_db, reset_db
from shelfclub.library import ShelfManager


@pytest.fixture(autouse=True)
def setup_test_db(monkeypatch):
    """Set up a test database for each test."""
    reset_db()
    reset_config()

    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    monkeypatch.setenv("SHELFCLUB_DB_PATH", db_path)
    monkeypatch.delenv("SHELFCLUB_USER", raising=False)

    yield

    # Cleanup
    reset_db()
    reset_config()
    if Path(db_path).exists():
        os.unlink(db_path)


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


def invoke(runner, *args, user="alice"):
    return runner.invoke(app, ["--user", user, *args])


def add_book(runner, title, author="Some Author", pages=None, status="want", user="alice"):
    """Add a book by hand and return its id."""
    args = ["add-manual", "--title", title, "--author", author, "--status", status]
    if pages:
        args += ["--pages", str(pages)]
    result = invoke(runner, *args, user=user)
    assert result.exit_code == 0, result.stdout
    entries = ShelfManager(get_db()).list_shelf(user)
    return [e.book_id for e in entries if e.book.title == title][0]


class TestCLIBasics:
    """Tests for basic CLI functionality."""

    def test_help(self, runner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Track your reading" in result.stdout

    def test_version(self, runner):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.stdout

    def test_user_required(self, runner):
        result = runner.invoke(app, ["shelf"])
        assert result.exit_code == 1
        assert "No user given" in result.stdout

    def test_user_from_environment(self, runner, monkeypatch):
        monkeypatch.setenv("SHELFCLUB_USER", "bob")
        result = runner.invoke(app, ["shelf"])
        assert result.exit_code == 0
        assert "empty" in result.stdout


class TestShelfCommands:
    """Tests for shelf commands."""

    def test_add_manual(self, runner):
        result = invoke(runner, "add-manual", "--title", "Test Book", "--author", "Test Author")
        assert result.exit_code == 0
        assert "Added:" in result.stdout
        assert "Test Book" in result.stdout

    def test_add_manual_twice_warns(self, runner):
        add_book(runner, "Test Book")
        result = invoke(runner, "add-manual", "--title", "Test Book", "--author", "Some Author")

        assert result.exit_code == 1
        assert "Warning" in result.stdout
        assert "already on your shelf" in result.stdout

    def test_shelf_lists_books(self, runner):
        add_book(runner, "Dune", "Frank Herbert", status="reading")
        result = invoke(runner, "shelf")

        assert result.exit_code == 0
        assert "Dune" in result.stdout

    def test_shelf_filter(self, runner):
        add_book(runner, "Dune", status="reading")
        result = invoke(runner, "shelf", "--status", "read")
        assert "empty" in result.stdout

    def test_status_and_rate(self, runner):
        book_id = add_book(runner, "Dune")

        result = invoke(runner, "status", book_id, "read")
        assert result.exit_code == 0
        assert "now read" in result.stdout

        result = invoke(runner, "rate", book_id, "4")
        assert result.exit_code == 0

    def test_invalid_rating(self, runner):
        book_id = add_book(runner, "Dune")
        result = invoke(runner, "rate", book_id, "9")

        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_remove(self, runner):
        book_id = add_book(runner, "Dune")

        result = invoke(runner, "remove", book_id, "--force")
        assert result.exit_code == 0
        assert ShelfManager(get_db()).list_shelf("alice") == []

    def test_remove_not_on_shelf(self, runner):
        result = invoke(runner, "remove", "nope", "--force")
        assert result.exit_code == 1


class TestReadingCommands:
    """Tests for progress, streak, stats and goal commands."""

    def test_log_progress(self, runner):
        book_id = add_book(runner, "Dune")
        result = invoke(runner, "log", book_id, "--pages", "20", "--date", "2024-03-01")

        assert result.exit_code == 0
        assert "20 pages" in result.stdout
        assert "2024-03-01" in result.stdout

    def test_log_nothing(self, runner):
        book_id = add_book(runner, "Dune")
        result = invoke(runner, "log", book_id)
        assert result.exit_code == 1

    def test_log_bad_date(self, runner):
        book_id = add_book(runner, "Dune")
        result = invoke(runner, "log", book_id, "--pages", "5", "--date", "March")
        assert result.exit_code == 1
        assert "Invalid date" in result.stdout

    def test_streak(self, runner):
        book_id = add_book(runner, "Dune")
        invoke(runner, "log", book_id, "--minutes", "30")

        result = invoke(runner, "streak")
        assert result.exit_code == 0
        assert "1 days" in result.stdout

    def test_goal(self, runner):
        result = invoke(runner, "goal", "12", "--year", "2024")
        assert result.exit_code == 0
        assert "12 books" in result.stdout

        result = invoke(runner, "goal", "--year", "2024")
        assert "0/12" in result.stdout

    def test_goal_not_set(self, runner):
        result = invoke(runner, "goal", "--year", "2024")
        assert "No goal set" in result.stdout

    def test_stats(self, runner):
        add_book(runner, "Dune", pages=688, status="read")
        result = invoke(runner, "stats")

        assert result.exit_code == 0
        assert "Books finished" in result.stdout


class TestBingoCommands:
    """Tests for bingo commands."""

    @pytest.fixture
    def challenge_id(self, runner):
        result = invoke(runner, "bingo", "new", "Summer Bingo")
        assert result.exit_code == 0
        return ChallengeManager(get_db()).list_challenges("alice")[0].id

    def test_show_new_board(self, runner, challenge_id):
        result = invoke(runner, "bingo", "show", challenge_id)
        assert result.exit_code == 0
        assert "1/25 cells" in result.stdout

    def test_complete_cell(self, runner, challenge_id):
        book_id = add_book(runner, "Dune")
        result = invoke(runner, "bingo", "complete", challenge_id, "3", book_id)

        assert result.exit_code == 0
        assert ChallengeManager(get_db()).load_board(challenge_id, "alice").cells[3].completed

    def test_complete_requires_shelf_book(self, runner, challenge_id):
        result = invoke(runner, "bingo", "complete", challenge_id, "3", "not-mine")
        assert result.exit_code == 1
        assert "Not found" in result.stdout

    def test_bingo_line(self, runner, challenge_id):
        for i, cell in enumerate((10, 11, 13, 14)):
            book_id = add_book(runner, f"Book {i}")
            result = invoke(runner, "bingo", "complete", challenge_id, str(cell), book_id)

        assert "BINGO" in result.stdout

    def test_select_clears_completed_cell(self, runner, challenge_id):
        book_id = add_book(runner, "Dune")
        invoke(runner, "bingo", "complete", challenge_id, "3", book_id)

        result = invoke(runner, "bingo", "select", challenge_id, "3")
        assert result.exit_code == 0
        assert "Cleared" in result.stdout

    def test_unknown_challenge(self, runner):
        result = invoke(runner, "bingo", "show", "nope")
        assert result.exit_code == 1


class TestClubCommands:
    """Tests for club commands."""

    def test_create_and_join(self, runner):
        result = invoke(runner, "club", "create", "Tuesday Readers")
        assert result.exit_code == 0
        assert "Invite code" in result.stdout

        club = ClubManager(get_db()).clubs_for_user("alice")[0]
        result = invoke(runner, "club", "join", club.invite_code, user="bob")
        assert result.exit_code == 0
        assert "Joined" in result.stdout

    def test_join_bad_code(self, runner):
        result = invoke(runner, "club", "join", "ZZZZZZ")
        assert result.exit_code == 1

    def test_start_reading(self, runner):
        invoke(runner, "club", "create", "Tuesday Readers")
        club = ClubManager(get_db()).clubs_for_user("alice")[0]
        book_id = add_book(runner, "Dune")

        result = invoke(runner, "club", "start-reading", club.id, book_id)
        assert result.exit_code == 0
        assert ClubManager(get_db()).current_reading(club.id).book_id == book_id


class TestImportCommand:
    """Tests for the Goodreads import command."""

    def test_import(self, runner, tmp_path):
        path = tmp_path / "export.csv"
        path.write_text(
            "Book Id,Title,Author,Exclusive Shelf\n"
            "1,Dune,Frank Herbert,read\n"
            "2,Emma,Jane Austen,to-read\n",
            encoding="utf-8",
        )

        result = invoke(runner, "import", "goodreads", str(path))

        assert result.exit_code == 0
        assert "Imported: 2" in result.stdout

    def test_import_missing_file(self, runner, tmp_path):
        result = invoke(runner, "import", "goodreads", str(tmp_path / "nope.csv"))
        assert result.exit_code == 1


class TestSearchCommands:
    """Tests for search and add against stubbed catalogs."""

    @pytest.fixture
    def catalog_search(self, monkeypatch):
        from shelfclub.api.base import CatalogBook
        from shelfclub.discovery import BookSearch

        primary = MagicMock()
        primary.name = "Stub"
        primary.search.return_value = [
            CatalogBook(external_id="v1", title="Dune", authors=["Frank Herbert"], pages=688)
        ]
        search = BookSearch(primary)
        monkeypatch.setattr("shelfclub.cli._book_search", lambda: search)
        return search

    def test_search(self, runner, catalog_search):
        result = invoke(runner, "search", "dune")
        assert result.exit_code == 0
        assert "Dune" in result.stdout

    def test_add_pick(self, runner, catalog_search):
        result = invoke(runner, "add", "dune", "--pick", "1")

        assert result.exit_code == 0
        assert [e.book.external_id for e in ShelfManager(get_db()).list_shelf("alice")] == ["v1"]

    def test_add_with_superseded_search(self, runner, catalog_search):
        books = catalog_search.primary.search.return_value

        def slow_search(query, limit):
            # A newer search starts before this one returns
            catalog_search.sequencer.next_token()
            return books

        catalog_search.primary.search.side_effect = slow_search

        result = invoke(runner, "add", "dune", "--pick", "1")

        assert result.exit_code == 0
        assert "Superseded" in result.stdout
        assert ShelfManager(get_db()).list_shelf("alice") == []

    def test_search_catalog_down(self, runner, catalog_search):
        from shelfclub.errors import CatalogError

        catalog_search.primary.search.side_effect = CatalogError("Stub: request timed out")
        result = invoke(runner, "search", "dune")

        assert result.exit_code == 1
        assert "Catalog unavailable" in result.stdout

    def test_recommend_and_add(self, runner, catalog_search):
        from shelfclub.api.base import CatalogBook

        add_book(runner, "Dune", "Frank Herbert")
        catalog_search.primary.search_by_author.return_value = [
            CatalogBook(external_id="messiah", title="Dune Messiah", authors=["Frank Herbert"])
        ]

        result = invoke(runner, "recommend")
        assert result.exit_code == 0
        assert "Dune Messiah" in result.stdout

        result = invoke(runner, "recommend", "--add", "1")
        assert result.exit_code == 0
        titles = {e.book.title for e in ShelfManager(get_db()).list_shelf("alice")}
        assert titles == {"Dune", "Dune Messiah"}

    def test_recommend_empty_shelf(self, runner, catalog_search):
        result = invoke(runner, "recommend")
        assert result.exit_code == 0
        assert "No recommendations" in result.stdout


class TestEmotionCommands:
    """Tests for the feel command."""

    def test_tag_and_show(self, runner):
        book_id = add_book(runner, "Dune")

        result = invoke(runner, "feel", book_id, "scared")
        assert result.exit_code == 0
        assert "Tagged" in result.stdout

        invoke(runner, "feel", book_id, "scared", user="bob")
        result = invoke(runner, "feel", book_id)
        assert "scared" in result.stdout
        assert "2" in result.stdout

    def test_toggle_off(self, runner):
        book_id = add_book(runner, "Dune")
        invoke(runner, "feel", book_id, "loved")

        result = invoke(runner, "feel", book_id, "loved")
        assert "Untagged" in result.stdout
        assert "No emotions" in result.stdout

    def test_unknown_emotion(self, runner):
        book_id = add_book(runner, "Dune")
        result = invoke(runner, "feel", book_id, "hungry")
        assert result.exit_code != 0

    def test_unknown_book(self, runner):
        result = invoke(runner, "feel", "missing", "loved")
        assert result.exit_code == 1
        assert "Not found" in result.stdout
