"""Emotion tags: how a book made each reader feel."""

import logging
from collections import Counter
from typing import Optional

from ..db.models import Book, EmotionTag
from ..db.schemas import BookEmotion
from ..db.sqlite import Database, get_db
from ..errors import InvalidInputError, RecordNotFoundError

logger = logging.getLogger(__name__)


def _emotion(value: str) -> BookEmotion:
    try:
        return BookEmotion(value)
    except ValueError as e:
        raise InvalidInputError(f"Unsupported emotion: {value}") from e


class EmotionManager:
    """Manages the emotion tags users put on books."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()

    def toggle_emotion(self, user_id: str, book_id: str, emotion: str) -> bool:
        """Tag a book with an emotion, or remove the tag if it is already there.

        A user can tag the same book with several emotions.

        Returns:
            True if the tag is now set

        Raises:
            InvalidInputError: Unknown emotion
            RecordNotFoundError: Unknown book
        """
        emotion = _emotion(emotion).value

        with self.db.get_session() as session:
            if session.get(Book, book_id) is None:
                raise RecordNotFoundError(f"Book not found: {book_id}")

            existing = self.db.find_one(
                session, EmotionTag, user_id=user_id, book_id=book_id, emotion=emotion
            )
            if existing is not None:
                session.delete(existing)
                logger.debug("Removed %s from %s for %s", emotion, book_id, user_id)
                return False
            self.db.insert(session, EmotionTag(user_id=user_id, book_id=book_id, emotion=emotion))
            return True

    def emotions_for(self, user_id: str, book_id: str) -> list[BookEmotion]:
        """The user's emotions for a book, in the order they were tagged."""
        with self.db.get_session() as session:
            tags = self.db.find_all(
                session,
                EmotionTag,
                order_by=[EmotionTag.created_at, EmotionTag.id],
                user_id=user_id,
                book_id=book_id,
            )
            return [BookEmotion(t.emotion) for t in tags]

    def emotion_counts(self, book_id: str) -> dict[BookEmotion, int]:
        """How many readers tagged a book with each emotion. Untagged emotions are left out."""
        with self.db.get_session() as session:
            tags = self.db.find_all(session, EmotionTag, book_id=book_id)
            counts = Counter(BookEmotion(t.emotion) for t in tags)
        return {e: counts[e] for e in BookEmotion if counts[e]}
