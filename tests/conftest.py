"""Pytest configuration and shared fixtures.

This module provides fixtures for testing shelfclub: temporary and in-memory
databases, the managers bound to them, and sample book metadata.
"""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from shelfclub.config import reset_config
from shelfclub.db.schemas import BookCandidate
from shelfclub.db.sqlite import Database, reset_db
from shelfclub.library import BookResolver, ShelfManager
from shelfclub.reading import ProgressLog


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)
    yield db_path
    # Cleanup
    if db_path.exists():
        db_path.unlink()


@pytest.fixture(scope="function")
def db(temp_db_path: Path) -> Generator[Database, None, None]:
    """Create a test database instance."""
    # Reset any global state
    reset_db()
    reset_config()

    # Set environment variable for test database
    os.environ["SHELFCLUB_DB_PATH"] = str(temp_db_path)

    database = Database(str(temp_db_path))
    database.create_tables()
    yield database

    # Cleanup
    database.engine.dispose()
    reset_db()
    if "SHELFCLUB_DB_PATH" in os.environ:
        del os.environ["SHELFCLUB_DB_PATH"]


@pytest.fixture
def memory_db() -> Database:
    """In-memory database, for tests that need no file."""
    database = Database(":memory:")
    database.create_tables()
    return database


@pytest.fixture
def resolver(db: Database) -> BookResolver:
    return BookResolver(db)


@pytest.fixture
def shelf(db: Database, resolver: BookResolver) -> ShelfManager:
    return ShelfManager(db, resolver)


@pytest.fixture
def progress(db: Database) -> ProgressLog:
    return ProgressLog(db)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def gatsby() -> BookCandidate:
    """Catalog metadata for a well-known book."""
    return BookCandidate(
        external_id="abc123",
        title="The Great Gatsby",
        author="F. Scott Fitzgerald",
        year_published=1925,
        pages=180,
        isbn="9780743273565",
        categories=["Fiction", "Classics"],
    )


@pytest.fixture
def dune() -> BookCandidate:
    return BookCandidate(
        external_id="dune-1965",
        title="Dune",
        author="Frank Herbert",
        pages=688,
    )


@pytest.fixture
def handmade() -> BookCandidate:
    """A book without a catalog id."""
    return BookCandidate(title="Notes From My Garden", author="Ana Silva", pages=120)


@pytest.fixture
def gatsby_id(resolver: BookResolver, gatsby: BookCandidate) -> str:
    """Id of the Gatsby book, stored."""
    return resolver.resolve(gatsby)
