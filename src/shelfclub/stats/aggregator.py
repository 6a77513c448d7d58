"""Reading statistics derived from shelf and progress records.

``aggregate`` is pure: it takes already-fetched records and returns the
yearly figures. Year boundaries are inclusive comparisons on the ISO date
string, so no timezone conversion can move a book into another year.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from ..db.models import ProgressEntry, ShelfEntry
from ..db.schemas import ShelfStatus
from ..db.sqlite import Database, get_db


@dataclass
class ReadingStats:
    """Statistics for one user and year."""

    year: int
    books_this_year: int = 0
    total_pages: int = 0
    monthly_histogram: list[int] = field(default_factory=lambda: [0] * 12)
    total_pages_logged: int = 0
    total_minutes_logged: int = 0
    reading_days: int = 0

    # Only filled for the current year
    books_this_month: int = 0
    pages_this_month: int = 0

    @property
    def best_month(self) -> Optional[int]:
        """Month number (1-12) with most finished books, None if none."""
        top = max(self.monthly_histogram)
        if top == 0:
            return None
        return self.monthly_histogram.index(top) + 1


def _iso_day(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10] or None


def _book_pages(entry: Any, pages_by_book: Optional[Mapping[str, Optional[int]]]) -> int:
    if pages_by_book is not None and entry.book_id in pages_by_book:
        return pages_by_book[entry.book_id] or 0
    book = getattr(entry, "book", None)
    return (book.pages or 0) if book is not None else 0


def aggregate(
    shelf_entries: Iterable[Any],
    progress_entries: Iterable[Any],
    year: int,
    pages_by_book: Optional[Mapping[str, Optional[int]]] = None,
    today: Optional[date] = None,
) -> ReadingStats:
    """Compute yearly reading statistics.

    Args:
        shelf_entries: Objects with status, finished_at, book_id (and book.pages)
        progress_entries: Objects with reading_date, pages_read, minutes_read
        year: Calendar year
        pages_by_book: Optional page counts overriding entry.book.pages
        today: Reference day for the current-month figures

    Returns:
        ReadingStats
    """
    start, end = f"{year:04d}-01-01", f"{year:04d}-12-31"
    today = today or date.today()
    month_prefix = today.isoformat()[:7] if today.year == year else None

    stats = ReadingStats(year=year)

    for entry in shelf_entries:
        if entry.status != ShelfStatus.READ.value:
            continue
        finished = _iso_day(entry.finished_at)
        if finished is None or not (start <= finished <= end):
            continue

        stats.books_this_year += 1
        stats.total_pages += _book_pages(entry, pages_by_book)
        stats.monthly_histogram[int(finished[5:7]) - 1] += 1
        if month_prefix and finished.startswith(month_prefix):
            stats.books_this_month += 1

    days = set()
    for entry in progress_entries:
        day = _iso_day(entry.reading_date)
        if day is None or not (start <= day <= end):
            continue
        pages = entry.pages_read or 0
        stats.total_pages_logged += pages
        stats.total_minutes_logged += entry.minutes_read or 0
        days.add(day)
        if month_prefix and day.startswith(month_prefix):
            stats.pages_this_month += pages

    stats.reading_days = len(days)
    return stats


class StatsService:
    """Fetches a user's records and aggregates them."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize stats service.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    def stats_for(
        self, user_id: str, year: Optional[int] = None, today: Optional[date] = None
    ) -> ReadingStats:
        """Get a user's statistics for a year (default: current year)."""
        today = today or date.today()
        year = year or today.year
        start, end = f"{year:04d}-01-01", f"{year:04d}-12-31"

        with self.db.get_session() as session:
            shelf = self.db.find_all(
                session,
                ShelfEntry,
                ShelfEntry.finished_at >= start,
                ShelfEntry.finished_at <= end,
                user_id=user_id,
                status=ShelfStatus.READ.value,
            )
            progress = self.db.find_all(
                session,
                ProgressEntry,
                ProgressEntry.reading_date >= start,
                ProgressEntry.reading_date <= end,
                user_id=user_id,
            )
            return aggregate(shelf, progress, year, today=today)
