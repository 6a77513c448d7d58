"""Shelf operations: adding books, changing status, rating and removal."""

import logging
from collections import Counter
from datetime import date
from typing import Optional, Union

from sqlalchemy.orm import Session

from ..db.models import Book, ShelfEntry
from ..db.schemas import BookCandidate, ShelfEntryCreate, ShelfStatus, validate_input
from ..db.sqlite import Database, get_db
from ..errors import DuplicateRecordError, InvalidInputError, RecordNotFoundError
from .resolver import BookResolver

logger = logging.getLogger(__name__)

DateLike = Union[date, str, None]


def _iso(value: DateLike) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return value[:10]


class ShelfManager:
    """Manages a user's shelf entries."""

    def __init__(self, db: Optional[Database] = None, resolver: Optional[BookResolver] = None):
        """Initialize shelf manager.

        Args:
            db: Database instance
            resolver: Book resolver (default: one bound to the same database)
        """
        self.db = db or get_db()
        self.resolver = resolver or BookResolver(self.db)

    def add_book(
        self,
        user_id: str,
        candidate: BookCandidate,
        status: ShelfStatus = ShelfStatus.WANT,
        rating: Optional[int] = None,
        started_at: DateLike = None,
        finished_at: DateLike = None,
    ) -> ShelfEntry:
        """Resolve a book and put it on the user's shelf.

        Entry fields are validated before the store is touched. Resolution
        and the shelf insert then share one unit of work, so a failure in
        either leaves nothing behind.

        Raises:
            InvalidInputError: Bad user id, status, rating or dates
            DuplicateRecordError: The book is already on the shelf
            PersistenceError: The store failed
        """
        data = self._validate_entry(user_id, status, rating, started_at, finished_at)

        with self.db.get_session() as session:
            book_id = self.resolver.resolve(candidate, session=session)
            return self._insert_entry(session, book_id, data)

    def add_existing_book(
        self,
        user_id: str,
        book_id: str,
        status: ShelfStatus = ShelfStatus.WANT,
        rating: Optional[int] = None,
        started_at: DateLike = None,
        finished_at: DateLike = None,
    ) -> ShelfEntry:
        """Put an already stored book on the user's shelf."""
        data = self._validate_entry(user_id, status, rating, started_at, finished_at)

        with self.db.get_session() as session:
            if session.get(Book, book_id) is None:
                raise RecordNotFoundError(f"Book not found: {book_id}")
            return self._insert_entry(session, book_id, data)

    @staticmethod
    def _validate_entry(
        user_id: str,
        status: ShelfStatus,
        rating: Optional[int],
        started_at: DateLike,
        finished_at: DateLike,
    ) -> ShelfEntryCreate:
        return validate_input(
            ShelfEntryCreate,
            user_id=user_id,
            status=status,
            rating=rating,
            started_at=_iso(started_at),
            finished_at=_iso(finished_at),
        )

    def _insert_entry(self, session: Session, book_id: str, data: ShelfEntryCreate) -> ShelfEntry:
        existing = self.db.find_one(session, ShelfEntry, user_id=data.user_id, book_id=book_id)
        if existing is not None:
            logger.warning("Book %s already on shelf of %s", book_id, data.user_id)
            raise DuplicateRecordError(f"'{existing.book.title}' is already on your shelf")

        entry = ShelfEntry(
            user_id=data.user_id,
            book_id=book_id,
            status=data.status.value,
            rating=data.rating,
            started_at=_iso(data.started_at),
            finished_at=_iso(data.finished_at),
        )
        self.db.insert(session, entry)
        session.refresh(entry, attribute_names=["book"])
        session.expunge(entry)
        return entry

    def get_entry(self, user_id: str, book_id: str) -> Optional[ShelfEntry]:
        """Get a user's shelf entry for a book."""
        with self.db.get_session() as session:
            entry = self.db.find_one(session, ShelfEntry, user_id=user_id, book_id=book_id)
            if entry:
                session.expunge(entry)
            return entry

    def list_shelf(self, user_id: str, status: Optional[ShelfStatus] = None) -> list[ShelfEntry]:
        """List a user's shelf, newest first, optionally filtered by status."""
        filters = {"user_id": user_id}
        if status is not None:
            filters["status"] = ShelfStatus(status).value

        with self.db.get_session() as session:
            entries = self.db.find_all(
                session, ShelfEntry, order_by=[ShelfEntry.created_at.desc()], **filters
            )
            for entry in entries:
                session.expunge(entry)
            return entries

    def shelf_counts(self, user_id: str) -> dict[ShelfStatus, int]:
        """Count the user's books per status."""
        counts = Counter(ShelfStatus(e.status) for e in self.list_shelf(user_id))
        return {status: counts.get(status, 0) for status in ShelfStatus}

    def set_status(
        self,
        user_id: str,
        book_id: str,
        status: ShelfStatus,
        today: Optional[date] = None,
    ) -> ShelfEntry:
        """Change a shelf entry's status.

        Moving to ``reading`` stamps ``started_at``; moving to ``read``
        stamps ``finished_at``.
        """
        try:
            status = ShelfStatus(status)
        except ValueError as e:
            raise InvalidInputError(f"Unknown status: {status}") from e
        stamp = (today or date.today()).isoformat()

        with self.db.get_session() as session:
            entry = self._require_entry(session, user_id, book_id)
            entry.status = status.value
            if status == ShelfStatus.READING:
                entry.started_at = stamp
            elif status == ShelfStatus.READ:
                entry.finished_at = stamp
            session.flush()
            session.expunge(entry)
            return entry

    def set_rating(self, user_id: str, book_id: str, rating: Optional[int]) -> ShelfEntry:
        """Rate a book on the shelf (1-5, or None to clear)."""
        if rating is not None and not (1 <= rating <= 5):
            raise InvalidInputError("Rating must be between 1 and 5")

        with self.db.get_session() as session:
            entry = self._require_entry(session, user_id, book_id)
            entry.rating = rating
            session.flush()
            session.expunge(entry)
            return entry

    def remove_book(self, user_id: str, book_id: str) -> bool:
        """Remove a book from the shelf. The book itself is kept."""
        with self.db.get_session() as session:
            entry = self.db.find_one(session, ShelfEntry, user_id=user_id, book_id=book_id)
            if not entry:
                return False
            session.delete(entry)
            return True

    def _require_entry(self, session: Session, user_id: str, book_id: str) -> ShelfEntry:
        entry = self.db.find_one(session, ShelfEntry, user_id=user_id, book_id=book_id)
        if entry is None:
            raise RecordNotFoundError(f"Book {book_id} is not on the shelf")
        return entry
