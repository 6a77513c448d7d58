"""Book identity resolution.

Every flow that puts a book somewhere (shelf add, club reading, import) goes
through ``BookResolver.resolve`` so a catalog book maps to one canonical row.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db.models import Book
from ..db.schemas import BookCandidate
from ..db.sqlite import Database, get_db
from ..errors import ConcurrentWriteError, DuplicateRecordError

logger = logging.getLogger(__name__)


class BookResolver:
    """Maps candidate metadata to a canonical book id, creating it if absent.

    Lookup order is external id, then exact (title, author). Sequential calls
    never create two books for the same external id. Concurrent sessions can
    still race on candidates without an external id, since only the external
    id carries a unique constraint.

    When two sessions insert the same external id at once, the loser recovers
    only if ``resolve`` owns its session: it retries the lookup once and
    returns the winner's id. Inside an enclosing unit of work (shelf add,
    club reading, import) the failed flush poisons the caller's transaction,
    so the loser gets a ConcurrentWriteError saying the book was added
    concurrently and the whole unit of work rolls back. Retrying the call
    then resolves to the winner's row.
    """

    def __init__(self, db: Optional[Database] = None):
        """Initialize resolver.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    def resolve(self, candidate: BookCandidate, session: Optional[Session] = None) -> str:
        """Return the id of the book matching the candidate.

        Args:
            candidate: Book metadata from a catalog, an import or the user
            session: Optional session to join an enclosing unit of work

        Returns:
            Book id

        Raises:
            ConcurrentWriteError: Lost an insert race inside the given session
            PersistenceError: If the store fails
        """
        if session is not None:
            return self._resolve(session, candidate)

        try:
            with self.db.get_session() as s:
                return self._resolve(s, candidate)
        except DuplicateRecordError:
            # Another session inserted the same external id first
            logger.warning("Lost insert race for external id %s", candidate.external_id)
            with self.db.get_session() as s:
                existing = self.find_existing(s, candidate)
                if existing is None:
                    raise
                return existing.id

    def get_book(self, book_id: str) -> Optional[Book]:
        """Get a stored book by id."""
        with self.db.get_session() as session:
            book = session.get(Book, book_id)
            if book:
                session.expunge(book)
            return book

    def find_existing(self, session: Session, candidate: BookCandidate) -> Optional[Book]:
        """Find a stored book matching the candidate, if any."""
        if candidate.external_id:
            book = self.db.find_one(session, Book, external_id=candidate.external_id)
            if book is not None:
                return book

        return self.db.find_one(session, Book, title=candidate.title, author=candidate.author)

    def _resolve(self, session: Session, candidate: BookCandidate) -> str:
        existing = self.find_existing(session, candidate)
        if existing is not None:
            logger.debug("Resolved '%s' to existing book %s", candidate.title, existing.id)
            return existing.id

        book = Book(
            external_id=candidate.external_id,
            title=candidate.title,
            author=candidate.author,
            cover_url=candidate.cover_url,
            year_published=candidate.year_published,
            pages=candidate.pages,
            isbn=candidate.isbn,
            description=candidate.description,
            publisher=candidate.publisher,
        )
        book.set_categories(candidate.categories)
        try:
            self.db.insert(session, book)
        except IntegrityError as e:
            raise ConcurrentWriteError(
                f"'{candidate.title}' was added concurrently; try again"
            ) from e
        logger.info("Created book %s: '%s' by %s", book.id, book.title, book.author)
        return book.id
