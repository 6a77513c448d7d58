"""Goodreads CSV importer.

Imports a Goodreads library export ("My Books" > Export).
"""

import csv
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..db.schemas import ShelfStatus
from .base import BaseImporter, ImportRecord

DATE_FORMATS = [
    "%Y/%m/%d",
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%B %d, %Y",
]


def map_shelf(shelf: Optional[str]) -> ShelfStatus:
    """Map a Goodreads shelf value to a shelf status.

    currently-reading wins over read, since it contains the word "read" too.
    """
    shelf = (shelf or "").lower()
    if "currently-reading" in shelf:
        return ShelfStatus.READING
    if "read" in shelf and "to-read" not in shelf:
        return ShelfStatus.READ
    return ShelfStatus.WANT


def clean_isbn(isbn: Optional[str]) -> Optional[str]:
    """Strip Goodreads' ="..." wrapper, hyphens and spaces."""
    if not isbn:
        return None

    isbn = isbn.strip().strip('"').strip("'").lstrip("=").strip('"')
    isbn = re.sub(r"[\s-]", "", isbn).upper()

    if not isbn:
        return None
    if len(isbn) == 13 and isbn.isdigit():
        return isbn
    if len(isbn) == 10 and isbn[:-1].isdigit() and isbn[-1] in "0123456789X":
        return isbn
    return None


def parse_date(date_str: Optional[str]) -> Optional[str]:
    """Parse a Goodreads date to ISO format, None if unrecognised."""
    if not date_str or not date_str.strip():
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(date_str.strip(), fmt).date().isoformat()
        except ValueError:
            continue
    return None


def parse_rating(rating_str: Optional[str]) -> Optional[int]:
    """Parse rating (0 means not rated in Goodreads)."""
    try:
        rating = int(rating_str)
    except (ValueError, TypeError):
        return None
    return rating if 1 <= rating <= 5 else None


def _parse_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value else None
    except (ValueError, TypeError):
        return None


def _normalize_author(author: str) -> str:
    """Convert "Last, First" to "First Last"."""
    if "," in author:
        last, first = author.split(",", 1)
        return f"{first.strip()} {last.strip()}".strip()
    return author


class GoodreadsImporter(BaseImporter):
    """Imports books from Goodreads CSV export."""

    source_name = "goodreads"

    REQUIRED_COLUMNS = {"Title"}

    def validate_file(self, file_path: Path) -> tuple[bool, Optional[str]]:
        """Validate Goodreads CSV file."""
        if not file_path.exists():
            return False, f"File not found: {file_path}"

        if file_path.suffix.lower() != ".csv":
            return False, "File must be a CSV file"

        try:
            with open(file_path, "r", encoding="utf-8-sig", newline="") as f:
                reader = csv.DictReader(f)
                columns = set(reader.fieldnames or [])
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            return False, f"Error reading file: {e}"

        missing = self.REQUIRED_COLUMNS - columns
        if missing:
            return False, f"Missing required columns: {', '.join(sorted(missing))}"
        if not {"Author", "Author l-f"} & columns:
            return False, "Missing an Author or Author l-f column"
        return True, None

    def parse_file(self, file_path: Path) -> list[ImportRecord]:
        """Parse Goodreads CSV file. Rows without a title are dropped."""
        records = []

        with open(file_path, "r", encoding="utf-8-sig", newline="") as f:
            for row in csv.DictReader(f):
                record = self.parse_row(row)
                if record:
                    records.append(record)

        return records

    def parse_row(self, row: dict) -> Optional[ImportRecord]:
        """Parse a single CSV row into ImportRecord."""
        title = (row.get("Title") or "").strip()
        if not title:
            return None

        author = (row.get("Author") or "").strip()
        if not author:
            author = _normalize_author((row.get("Author l-f") or "").strip())

        shelf = row.get("Exclusive Shelf") or row.get("Bookshelves") or ""
        publisher = (row.get("Publisher") or "").strip() or None
        year = _parse_int(row.get("Original Publication Year")) or _parse_int(
            row.get("Year Published")
        )

        return ImportRecord(
            title=title,
            author=author or None,
            isbn=clean_isbn(row.get("ISBN")),
            isbn13=clean_isbn(row.get("ISBN13")),
            status=map_shelf(shelf),
            rating=parse_rating(row.get("My Rating")),
            pages=_parse_int(row.get("Number of Pages")),
            date_added=parse_date(row.get("Date Added")),
            date_read=parse_date(row.get("Date Read")),
            publisher=publisher,
            year_published=year,
            source=self.source_name,
            source_id=row.get("Book Id") or None,
            raw_data=dict(row),
        )
