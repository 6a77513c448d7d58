"""Database module for the local record store."""

from .models import Book, EmotionTag, Goal, ProgressEntry, ShelfEntry
from .schemas import (
    UNKNOWN_AUTHOR,
    BookEmotion,
    BookCandidate,
    GoalSet,
    ProgressEntryCreate,
    ShelfEntryCreate,
    ShelfStatus,
    validate_input,
)
from .sqlite import Database, get_db, reset_db

__all__ = [
    "Book",
    "EmotionTag",
    "Goal",
    "ProgressEntry",
    "ShelfEntry",
    "UNKNOWN_AUTHOR",
    "BookEmotion",
    "BookCandidate",
    "GoalSet",
    "ProgressEntryCreate",
    "ShelfEntryCreate",
    "ShelfStatus",
    "validate_input",
    "Database",
    "get_db",
    "reset_db",
]
