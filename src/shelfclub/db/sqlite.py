"""SQLite record store.

Handles database connection, session management and the generic single-row
operations every manager builds on: filtered select, insert-returning-row,
update-by-key, delete-by-key and upsert on a composite unique constraint.
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Iterable, Optional, TypeVar

from sqlalchemy import create_engine, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..errors import DuplicateRecordError, PersistenceError
from .models import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class Database:
    """Database connection and operations manager."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses
                     SHELFCLUB_DB_PATH env var or default location.
        """
        if db_path is None:
            db_path = os.environ.get(
                "SHELFCLUB_DB_PATH",
                str(Path.home() / ".shelfclub" / "shelfclub.db"),
            )

        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # For in-memory databases, use StaticPool to reuse the same connection
        # This ensures all sessions share the same in-memory database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False},
            )
        self.SessionLocal = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        # Import challenge models to register them with Base
        from ..challenges.models import Challenge, ChallengeProgress  # noqa: F401
        # Import club models to register them with Base
        from ..clubs.models import Annotation, Club, ClubMember, ClubReading, Reaction  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager.

        Commits on success. A unique-constraint rejection is raised as
        DuplicateRecordError; any other store failure as PersistenceError.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            logger.warning("Write rejected by constraint: %s", e.orig)
            raise DuplicateRecordError(str(e.orig)) from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Record store failure: %s", e)
            raise PersistenceError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ========================================================================
    # Generic single-row operations
    # ========================================================================

    def find_one(self, session: Session, model: type[ModelT], **filters: Any) -> Optional[ModelT]:
        """Select the first row whose columns equal the given values."""
        stmt = select(model).filter_by(**filters).limit(1)
        return session.execute(stmt).scalars().first()

    def find_all(
        self,
        session: Session,
        model: type[ModelT],
        *criteria: Any,
        order_by: Optional[Iterable[Any]] = None,
        **filters: Any,
    ) -> list[ModelT]:
        """Select rows by equality filters plus optional range/membership criteria."""
        stmt = select(model).filter_by(**filters)
        if criteria:
            stmt = stmt.where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(*order_by)
        return list(session.execute(stmt).scalars().unique().all())

    def insert(self, session: Session, row: ModelT) -> ModelT:
        """Insert a row and flush so store-assigned fields are populated."""
        session.add(row)
        session.flush()
        logger.debug("Inserted %r", row)
        return row

    def upsert(
        self,
        session: Session,
        model: type[Base],
        values: dict[str, Any],
        conflict_columns: list[str],
        update_columns: list[str],
    ) -> None:
        """Insert or update one row keyed by a composite unique constraint."""
        stmt = sqlite_insert(model).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=conflict_columns,
            set_={column: stmt.excluded[column] for column in update_columns},
        )
        session.execute(stmt)
        logger.debug("Upserted %s on %s", model.__tablename__, conflict_columns)


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    _db = None
