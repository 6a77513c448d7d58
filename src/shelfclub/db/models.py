"""SQLAlchemy ORM models for the record store.

Tables:
- books: Canonical book metadata, one row per catalog id
- shelf_entries: A user's relationship to a book
- progress_entries: Append-only daily reading log
- reading_goals: Yearly book-count goals
- book_emotions: Emotion tags a user put on a book
"""

import json
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .schemas import BookCandidate, ShelfStatus


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


def utc_now() -> str:
    """Current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


class Book(Base):
    """Book model - canonical metadata shared by every user."""

    __tablename__ = "books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # At most one book per catalog id
    external_id: Mapped[Optional[str]] = mapped_column(String(100), unique=True, index=True)

    # Core fields
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    cover_url: Mapped[Optional[str]] = mapped_column(Text)
    year_published: Mapped[Optional[int]] = mapped_column(Integer)
    pages: Mapped[Optional[int]] = mapped_column(Integer)

    # Metadata
    isbn: Mapped[Optional[str]] = mapped_column(String(13), index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    publisher: Mapped[Optional[str]] = mapped_column(String(500))
    categories: Mapped[Optional[str]] = mapped_column(Text)  # JSON array

    created_at: Mapped[str] = mapped_column(String(26), default=utc_now)

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', author='{self.author}')>"

    def get_categories(self) -> list[str]:
        """Get categories as list."""
        if self.categories:
            return json.loads(self.categories)
        return []

    def set_categories(self, categories: list[str]) -> None:
        """Set categories from list."""
        self.categories = json.dumps(categories) if categories else None

    def to_candidate(self) -> BookCandidate:
        """Metadata that resolves back to this book."""
        return BookCandidate(
            external_id=self.external_id,
            title=self.title,
            author=self.author,
            cover_url=self.cover_url,
            year_published=self.year_published,
            pages=self.pages,
            isbn=self.isbn,
            description=self.description,
            publisher=self.publisher,
            categories=self.get_categories(),
        )


class ShelfEntry(Base):
    """Shelf entry model - one row per (user, book)."""

    __tablename__ = "shelf_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    book_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("books.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), default=ShelfStatus.WANT.value, index=True
    )
    rating: Mapped[Optional[int]] = mapped_column(Integer)

    # ISO dates
    started_at: Mapped[Optional[str]] = mapped_column(String(10))
    finished_at: Mapped[Optional[str]] = mapped_column(String(10), index=True)

    created_at: Mapped[str] = mapped_column(String(26), default=utc_now)

    book: Mapped["Book"] = relationship("Book", lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_shelf_user_book"),
    )

    def __repr__(self) -> str:
        return f"<ShelfEntry(user_id={self.user_id}, book_id={self.book_id}, status={self.status})>"


class ProgressEntry(Base):
    """Progress entry model - pages/minutes read on a calendar day."""

    __tablename__ = "progress_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    book_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("books.id"), nullable=False, index=True
    )
    reading_date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    pages_read: Mapped[int] = mapped_column(Integer, default=0)
    minutes_read: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[str] = mapped_column(String(26), default=utc_now)

    def __repr__(self) -> str:
        return f"<ProgressEntry(user_id={self.user_id}, date={self.reading_date}, pages={self.pages_read})>"


class Goal(Base):
    """Reading goal model - books to finish in a year."""

    __tablename__ = "reading_goals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    target_books: Mapped[int] = mapped_column(Integer, nullable=False)

    updated_at: Mapped[str] = mapped_column(String(26), default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("user_id", "year", name="uq_goal_user_year"),
    )

    def __repr__(self) -> str:
        return f"<Goal(user_id={self.user_id}, year={self.year}, target={self.target_books})>"


class EmotionTag(Base):
    """One emotion a user tagged a book with."""

    __tablename__ = "book_emotions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    book_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("books.id"), nullable=False, index=True
    )
    emotion: Mapped[str] = mapped_column(String(20), nullable=False)

    created_at: Mapped[str] = mapped_column(String(26), default=utc_now)

    __table_args__ = (
        UniqueConstraint("user_id", "book_id", "emotion", name="uq_emotion_user_book"),
    )
