"""SQLAlchemy models for reading clubs.

Tables:
- clubs: Club definitions with invite codes
- club_members: Membership (unique per club and user)
- club_readings: The book a club is reading together
- annotations: Notes on a book, optionally club-scoped and spoilers
- reactions: One emoji reaction per user per annotation
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..db.models import Base, Book, generate_uuid, utc_now
from ..db.schemas import ClubReadingStatus, ClubRole


class Club(Base):
    """Club model."""

    __tablename__ = "clubs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    invite_code: Mapped[str] = mapped_column(String(12), nullable=False, unique=True, index=True)
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[str] = mapped_column(String(26), default=utc_now)

    def __repr__(self) -> str:
        return f"<Club(id={self.id}, name='{self.name}', code={self.invite_code})>"


class ClubMember(Base):
    """Club membership."""

    __tablename__ = "club_members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    club_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(10), default=ClubRole.MEMBER.value)
    joined_at: Mapped[str] = mapped_column(String(26), default=utc_now)

    __table_args__ = (
        UniqueConstraint("club_id", "user_id", name="uq_club_member"),
    )


class ClubReading(Base):
    """A book read together by a club."""

    __tablename__ = "club_readings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    club_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    book_id: Mapped[str] = mapped_column(String(36), ForeignKey("books.id"), nullable=False)
    status: Mapped[str] = mapped_column(
        String(10), default=ClubReadingStatus.ACTIVE.value, index=True
    )
    started_at: Mapped[str] = mapped_column(String(26), default=utc_now)
    target_date: Mapped[Optional[str]] = mapped_column(String(10))

    book: Mapped["Book"] = relationship("Book", lazy="joined")


class Annotation(Base):
    """A user's note on a book."""

    __tablename__ = "annotations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    book_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("books.id"), nullable=False, index=True
    )
    club_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("clubs.id", ondelete="CASCADE"), index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    page_number: Mapped[Optional[int]] = mapped_column(Integer)
    chapter: Mapped[Optional[str]] = mapped_column(String(200))
    is_spoiler: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[str] = mapped_column(String(26), default=utc_now)

    reactions: Mapped[list["Reaction"]] = relationship(
        "Reaction", cascade="all, delete-orphan", lazy="selectin"
    )


class Reaction(Base):
    """Emoji reaction on an annotation."""

    __tablename__ = "reactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    annotation_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("annotations.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    emoji: Mapped[str] = mapped_column(String(8), nullable=False)

    __table_args__ = (
        UniqueConstraint("annotation_id", "user_id", name="uq_reaction_user"),
    )
