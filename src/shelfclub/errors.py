"""Error taxonomy shared by every shelfclub component.

Each failure is scoped to the single user action that caused it:

- InvalidInputError: rejected before any I/O.
- DuplicateRecordError: a unique constraint refused a write. Expected and
  recoverable ("already on shelf", "already a member").
  ConcurrentWriteError narrows it to a lost insert race that a retry fixes.
- RecordNotFoundError: a referenced entity does not exist.
- PersistenceError: the record store failed. Never retried.
- CatalogError: a catalog provider request failed. Never retried.
"""

from typing import Optional


class ShelfclubError(Exception):
    """Base class for shelfclub errors."""

    pass


class InvalidInputError(ShelfclubError, ValueError):
    """Input failed validation."""

    pass


class DuplicateRecordError(ShelfclubError):
    """A write collided with an existing record."""

    pass


class ConcurrentWriteError(DuplicateRecordError):
    """Another session inserted the same record while this one was writing.

    The enclosing unit of work was rolled back; repeating the action succeeds.
    """

    pass


class RecordNotFoundError(ShelfclubError, LookupError):
    """A referenced record does not exist."""

    pass


class PersistenceError(ShelfclubError):
    """The record store failed to complete an operation."""

    pass


class CatalogError(ShelfclubError):
    """A book catalog request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CatalogRateLimitError(CatalogError):
    """Raised when rate limited by a catalog provider."""

    pass
