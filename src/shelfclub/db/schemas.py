"""Pydantic schemas for data validation.

These schemas validate user input before anything reaches the record store.
"""

from datetime import date
from enum import Enum
from typing import Optional, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..errors import InvalidInputError

UNKNOWN_AUTHOR = "Unknown author"

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class ShelfStatus(str, Enum):
    """A user's relationship to a book on their shelf."""

    WANT = "want"
    READING = "reading"
    READ = "read"
    ABANDONED = "abandoned"


class ClubRole(str, Enum):
    """Role of a club member."""

    ADMIN = "admin"
    MEMBER = "member"


class ClubReadingStatus(str, Enum):
    """Status of a club's shared reading."""

    ACTIVE = "active"
    FINISHED = "finished"


class ReactionEmoji(str, Enum):
    """Reactions allowed on annotations."""

    HEART = "❤️"
    IDEA = "💡"
    LAUGH = "😂"
    THINKING = "🤔"


class BookEmotion(str, Enum):
    """How reading a book made someone feel."""

    LOVED = "loved"
    LAUGHED = "laughed"
    CRIED = "cried"
    SURPRISED = "surprised"
    SCARED = "scared"
    INSPIRED = "inspired"
    BORED = "bored"
    ANGRY = "angry"

    @property
    def emoji(self) -> str:
        return EMOTION_EMOJI[self]


EMOTION_EMOJI = {
    BookEmotion.LOVED: "😍",
    BookEmotion.LAUGHED: "😂",
    BookEmotion.CRIED: "😢",
    BookEmotion.SURPRISED: "😮",
    BookEmotion.SCARED: "😱",
    BookEmotion.INSPIRED: "✨",
    BookEmotion.BORED: "😴",
    BookEmotion.ANGRY: "😤",
}


# ============================================================================
# Book Schemas
# ============================================================================


class BookCandidate(BaseModel):
    """Loosely structured book metadata offered to the identity resolver."""

    external_id: Optional[str] = Field(None, description="Catalog provider id")
    title: str = Field(..., min_length=1)
    author: str = UNKNOWN_AUTHOR
    cover_url: Optional[str] = None
    year_published: Optional[int] = None
    pages: Optional[int] = Field(None, ge=0)
    isbn: Optional[str] = Field(None, max_length=13)
    description: Optional[str] = None
    publisher: Optional[str] = None
    categories: list[str] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        """Reject blank titles."""
        if isinstance(v, str):
            v = v.strip()
        return v

    @field_validator("author", mode="before")
    @classmethod
    def default_author(cls, v):
        """Fall back to the placeholder author when missing."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return UNKNOWN_AUTHOR
        return v.strip() if isinstance(v, str) else v

    @field_validator("external_id", "isbn", "cover_url", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty strings as absent."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("pages", mode="before")
    @classmethod
    def zero_pages_to_none(cls, v):
        """Catalogs report unknown page counts as 0."""
        if v in (0, "0", ""):
            return None
        return v


# ============================================================================
# Shelf and Progress Schemas
# ============================================================================


class ShelfEntryCreate(BaseModel):
    """Schema for putting a book on a user's shelf."""

    user_id: str = Field(..., min_length=1)
    book_id: Optional[str] = Field(None, description="Set once the book is resolved")
    status: ShelfStatus = ShelfStatus.WANT
    rating: Optional[int] = Field(None, ge=1, le=5, description="Rating 1-5")
    started_at: Optional[date] = None
    finished_at: Optional[date] = None


class ProgressEntryCreate(BaseModel):
    """Schema for logging a day's reading on a book."""

    user_id: str = Field(..., min_length=1)
    book_id: str = Field(..., min_length=1)
    reading_date: date
    pages_read: int = Field(0, ge=0)
    minutes_read: int = Field(0, ge=0)


class GoalSet(BaseModel):
    """Schema for setting a yearly reading goal."""

    user_id: str = Field(..., min_length=1)
    year: int = Field(..., ge=1900, le=9999)
    target_books: int = Field(..., ge=1)


# ============================================================================
# Club Schemas
# ============================================================================


class ClubCreate(BaseModel):
    """Schema for creating a club."""

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class AnnotationCreate(BaseModel):
    """Schema for annotating a book."""

    user_id: str = Field(..., min_length=1)
    book_id: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    club_id: Optional[str] = None
    page_number: Optional[int] = Field(None, ge=0)
    chapter: Optional[str] = None
    is_spoiler: bool = False

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v):
        """Reject blank annotations."""
        if isinstance(v, str):
            v = v.strip()
        return v


def validate_input(schema: type[SchemaT], **data) -> SchemaT:
    """Build a schema, reporting failures as InvalidInputError."""
    try:
        return schema(**data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidInputError(problems) from e
