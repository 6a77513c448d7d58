"""Daily reading progress log.

Entries are append-only. A user may log several entries on the same day;
consumers treat them as one active day.
"""

import logging
from datetime import date
from typing import Optional

from ..db.models import Book, ProgressEntry
from ..db.schemas import ProgressEntryCreate, validate_input
from ..db.sqlite import Database, get_db
from ..errors import InvalidInputError, RecordNotFoundError

logger = logging.getLogger(__name__)


class ProgressLog:
    """Records and queries reading progress entries."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize progress log.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    def log_progress(
        self,
        user_id: str,
        book_id: str,
        pages_read: int = 0,
        minutes_read: int = 0,
        reading_date: Optional[date] = None,
    ) -> ProgressEntry:
        """Append a progress entry.

        Args:
            user_id: Acting user
            book_id: Book that was read
            pages_read: Pages read
            minutes_read: Minutes spent reading
            reading_date: Calendar day (default: today)

        Returns:
            The stored ProgressEntry
        """
        data = validate_input(
            ProgressEntryCreate,
            user_id=user_id,
            book_id=book_id,
            reading_date=reading_date or date.today(),
            pages_read=pages_read,
            minutes_read=minutes_read,
        )
        if data.pages_read == 0 and data.minutes_read == 0:
            raise InvalidInputError("Log at least one page or one minute")

        with self.db.get_session() as session:
            if session.get(Book, data.book_id) is None:
                raise RecordNotFoundError(f"Book not found: {data.book_id}")

            entry = ProgressEntry(
                user_id=data.user_id,
                book_id=data.book_id,
                reading_date=data.reading_date.isoformat(),
                pages_read=data.pages_read,
                minutes_read=data.minutes_read,
            )
            self.db.insert(session, entry)
            session.expunge(entry)

        logger.debug("Logged %d pages / %d min for %s", entry.pages_read, entry.minutes_read, user_id)
        return entry

    def entries_for_user(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ProgressEntry]:
        """Get a user's entries, most recent first, within an optional range."""
        criteria = []
        if start_date:
            criteria.append(ProgressEntry.reading_date >= start_date.isoformat())
        if end_date:
            criteria.append(ProgressEntry.reading_date <= end_date.isoformat())

        with self.db.get_session() as session:
            entries = self.db.find_all(
                session,
                ProgressEntry,
                *criteria,
                order_by=[ProgressEntry.reading_date.desc(), ProgressEntry.created_at.desc()],
                user_id=user_id,
            )
            for entry in entries:
                session.expunge(entry)
            return entries

    def reading_dates(self, user_id: str) -> set[str]:
        """Distinct ISO dates on which the user logged progress."""
        return {entry.reading_date for entry in self.entries_for_user(user_id)}
