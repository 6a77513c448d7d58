"""Base importer functionality.

Importers parse a file into ImportRecords, then put each record on the
user's shelf one at a time. There is no transaction around the whole import
and no resume: a failing row is counted and the loop moves on.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..api.base import CatalogBook
from ..api.googlebooks import GoogleBooksClient
from ..db.models import ShelfEntry
from ..db.schemas import BookCandidate, ShelfStatus, validate_input
from ..db.sqlite import Database, get_db
from ..errors import (
    CatalogError,
    ConcurrentWriteError,
    DuplicateRecordError,
    InvalidInputError,
    ShelfclubError,
)
from ..library.shelf import ShelfManager

logger = logging.getLogger(__name__)


@dataclass
class ImportRecord:
    """One book read from an export file."""

    title: str
    author: Optional[str] = None
    isbn: Optional[str] = None
    isbn13: Optional[str] = None
    status: ShelfStatus = ShelfStatus.WANT
    rating: Optional[int] = None
    pages: Optional[int] = None
    date_added: Optional[str] = None
    date_read: Optional[str] = None
    publisher: Optional[str] = None
    year_published: Optional[int] = None

    # Source-specific fields
    source: Optional[str] = None
    source_id: Optional[str] = None
    raw_data: dict = field(default_factory=dict)

    @property
    def best_isbn(self) -> Optional[str]:
        return self.isbn13 or self.isbn

    def to_candidate(self, catalog_book: Optional[CatalogBook] = None) -> BookCandidate:
        """Book metadata for the resolver, preferring catalog data when found."""
        if catalog_book is not None:
            try:
                candidate = catalog_book.to_candidate()
            except InvalidInputError as e:
                logger.debug("Ignoring catalog match for %r: %s", self.title, e)
            else:
                if candidate.pages is None and self.pages:
                    candidate.pages = self.pages
                return candidate

        return validate_input(
            BookCandidate,
            title=self.title,
            author=self.author,
            pages=self.pages,
            isbn=self.best_isbn,
            publisher=self.publisher,
            year_published=self.year_published,
        )


@dataclass
class ImportResult:
    """Counts and messages from one import run."""

    success: bool
    source_file: Optional[Path] = None
    source_type: Optional[str] = None
    total_records: int = 0
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    error_messages: list[str] = field(default_factory=list)
    imported_entries: list[ShelfEntry] = field(default_factory=list)

    @property
    def summary(self) -> str:
        """One-line summary for the CLI."""
        return (
            f"Imported: {self.imported}, "
            f"Skipped: {self.skipped}, "
            f"Errors: {self.errors}"
        )


class BaseImporter(ABC):
    """Parses an export file and shelves its records."""

    source_name: str = "unknown"

    def __init__(
        self,
        db: Optional[Database] = None,
        shelf: Optional[ShelfManager] = None,
        catalog: Optional[GoogleBooksClient] = None,
    ):
        """Initialize importer.

        Args:
            db: Database instance
            shelf: Shelf manager (default: one bound to the same database)
            catalog: Optional catalog used to enrich records; its failures are ignored
        """
        self.db = db or get_db()
        self.shelf = shelf or ShelfManager(self.db)
        self.catalog = catalog

    @abstractmethod
    def parse_file(self, file_path: Path) -> list[ImportRecord]:
        """Parse source file into import records."""
        pass

    @abstractmethod
    def validate_file(self, file_path: Path) -> tuple[bool, Optional[str]]:
        """Check the file looks like this importer's format.

        Returns:
            Tuple of (is_valid, error_message)
        """
        pass

    def import_file(self, user_id: str, file_path: Path) -> ImportResult:
        """Import books from file onto the user's shelf.

        Args:
            user_id: Shelf owner
            file_path: Path to import file

        Returns:
            ImportResult with status and counts
        """
        file_path = Path(file_path)
        result = ImportResult(
            success=False,
            source_file=file_path,
            source_type=self.source_name,
        )

        is_valid, error = self.validate_file(file_path)
        if not is_valid:
            result.error_messages.append(f"Invalid file: {error}")
            return result

        records = self.parse_file(file_path)
        result.total_records = len(records)

        for record in records:
            try:
                entry = self._import_record(user_id, record)
            except DuplicateRecordError:
                result.skipped += 1
                continue
            except ShelfclubError as e:
                logger.warning("Failed to import %r: %s", record.title, e)
                result.errors += 1
                result.error_messages.append(f"Error importing '{record.title}': {e}")
                continue
            result.imported += 1
            result.imported_entries.append(entry)

        logger.info("%s import for %s: %s", self.source_name, user_id, result.summary)
        result.success = result.errors == 0 or result.imported > 0
        return result

    def _import_record(self, user_id: str, record: ImportRecord) -> ShelfEntry:
        """Resolve the record's book and add the shelf entry.

        A lost insert race on the book is retried once; the second pass
        finds the row the other session wrote.
        """
        candidate = record.to_candidate(self._lookup(record))
        try:
            return self._add(user_id, record, candidate)
        except ConcurrentWriteError:
            logger.info("Retrying %r after a concurrent insert", record.title)
            return self._add(user_id, record, candidate)

    def _add(self, user_id: str, record: ImportRecord, candidate: BookCandidate) -> ShelfEntry:
        return self.shelf.add_book(
            user_id,
            candidate,
            status=record.status,
            rating=record.rating,
            started_at=record.date_added,
            finished_at=record.date_read,
        )

    def _lookup(self, record: ImportRecord) -> Optional[CatalogBook]:
        """Find the record in the catalog, None when absent or unavailable."""
        if self.catalog is None:
            return None
        try:
            if record.best_isbn:
                found = self.catalog.search_by_isbn(record.best_isbn)
            else:
                query = f"intitle:{record.title}"
                if record.author:
                    query += f" inauthor:{record.author}"
                found = self.catalog.search(query, limit=1)
        except CatalogError as e:
            logger.debug("Catalog lookup failed for %r: %s", record.title, e)
            return None
        return found[0] if found else None

    def preview_import(self, file_path: Path) -> dict:
        """Parse and validate a file without touching the shelf.

        Returns:
            Dictionary with record count and per-status counts
        """
        file_path = Path(file_path)
        is_valid, error = self.validate_file(file_path)
        if not is_valid:
            return {"valid": False, "error": error}

        records = self.parse_file(file_path)
        statuses: dict[str, int] = {}
        for record in records:
            statuses[record.status.value] = statuses.get(record.status.value, 0) + 1

        return {
            "valid": True,
            "total_records": len(records),
            "statuses": statuses,
            "source_type": self.source_name,
        }
