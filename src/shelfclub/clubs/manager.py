"""Reading clubs: membership, shared readings, annotations and reactions."""

import logging
import secrets
import string
from collections import Counter
from datetime import date
from typing import Optional, Union

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from ..db.models import Book
from ..db.schemas import (
    AnnotationCreate,
    BookCandidate,
    ClubCreate,
    ClubReadingStatus,
    ClubRole,
    ReactionEmoji,
    validate_input,
)
from ..db.sqlite import Database, get_db
from ..errors import DuplicateRecordError, InvalidInputError, RecordNotFoundError
from ..library.resolver import BookResolver
from .models import Annotation, Club, ClubMember, ClubReading, Reaction

logger = logging.getLogger(__name__)

INVITE_CODE_LENGTH = 6
INVITE_ALPHABET = string.ascii_uppercase + string.digits
_MAX_CODE_ATTEMPTS = 10


def generate_invite_code() -> str:
    """Random six-character code from A-Z and 0-9."""
    return "".join(secrets.choice(INVITE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


class ClubManager:
    """Manages clubs and everything members share in them."""

    def __init__(self, db: Optional[Database] = None, resolver: Optional[BookResolver] = None):
        """Initialize club manager.

        Args:
            db: Database instance
            resolver: Book resolver (default: one bound to the same database)
        """
        self.db = db or get_db()
        self.resolver = resolver or BookResolver(self.db)

    # ========================================================================
    # Clubs and membership
    # ========================================================================

    def create_club(self, user_id: str, name: str, description: Optional[str] = None) -> Club:
        """Create a club with a fresh invite code. The creator becomes admin.

        Args:
            user_id: Creator
            name: Club name
            description: Optional description

        Returns:
            Created Club
        """
        if not user_id:
            raise InvalidInputError("user_id is required")
        data = validate_input(
            ClubCreate, name=(name or "").strip(), description=description
        )

        with self.db.get_session() as session:
            for _ in range(_MAX_CODE_ATTEMPTS):
                code = generate_invite_code()
                if self.db.find_one(session, Club, invite_code=code) is None:
                    break
            else:
                raise DuplicateRecordError("Could not allocate a free invite code")

            club = Club(
                name=data.name,
                description=data.description,
                invite_code=code,
                created_by=user_id,
            )
            self.db.insert(session, club)
            self.db.insert(
                session,
                ClubMember(club_id=club.id, user_id=user_id, role=ClubRole.ADMIN.value),
            )
            session.expunge(club)
            logger.info("Created club %s with invite code %s", club.id, code)
            return club

    def get_club(self, club_id: str) -> Optional[Club]:
        with self.db.get_session() as session:
            club = session.get(Club, club_id)
            if club:
                session.expunge(club)
            return club

    def join_by_invite(self, user_id: str, code: str) -> Club:
        """Join the club with the given invite code (case-insensitive).

        Raises:
            RecordNotFoundError: No club has that code
            DuplicateRecordError: The user is already a member
        """
        code = (code or "").strip().upper()
        if not user_id or not code:
            raise InvalidInputError("user_id and invite code are required")

        with self.db.get_session() as session:
            club = self.db.find_one(session, Club, invite_code=code)
            if club is None:
                raise RecordNotFoundError(f"No club with invite code {code}")
            if self.db.find_one(session, ClubMember, club_id=club.id, user_id=user_id):
                raise DuplicateRecordError(f"Already a member of '{club.name}'")

            self.db.insert(session, ClubMember(club_id=club.id, user_id=user_id))
            session.expunge(club)
            return club

    def leave_club(self, user_id: str, club_id: str) -> bool:
        """Leave a club.

        Returns:
            True if the user was a member
        """
        with self.db.get_session() as session:
            member = self.db.find_one(session, ClubMember, club_id=club_id, user_id=user_id)
            if member is None:
                return False
            session.delete(member)
            return True

    def is_member(self, user_id: str, club_id: str) -> bool:
        with self.db.get_session() as session:
            return self.db.find_one(session, ClubMember, club_id=club_id, user_id=user_id) is not None

    def _require_member(self, session: Session, club_id: str, user_id: str) -> None:
        if self.db.find_one(session, ClubMember, club_id=club_id, user_id=user_id) is None:
            raise RecordNotFoundError(f"User {user_id} is not a member of club {club_id}")

    def members(self, club_id: str) -> list[ClubMember]:
        """Club members, oldest first."""
        with self.db.get_session() as session:
            rows = self.db.find_all(
                session, ClubMember, order_by=[ClubMember.joined_at], club_id=club_id
            )
            for row in rows:
                session.expunge(row)
            return rows

    def clubs_for_user(self, user_id: str) -> list[Club]:
        with self.db.get_session() as session:
            club_ids = [
                m.club_id for m in self.db.find_all(session, ClubMember, user_id=user_id)
            ]
            if not club_ids:
                return []
            clubs = self.db.find_all(
                session, Club, Club.id.in_(club_ids), order_by=[Club.name]
            )
            for club in clubs:
                session.expunge(club)
            return clubs

    # ========================================================================
    # Club readings
    # ========================================================================

    def start_reading(
        self,
        club_id: str,
        user_id: str,
        candidate: BookCandidate,
        target_date: Union[date, str, None] = None,
    ) -> ClubReading:
        """Make a book the club's current reading.

        The previous active reading, if any, is marked finished.

        Raises:
            RecordNotFoundError: The user is not a member of the club
        """
        if isinstance(target_date, date):
            target_date = target_date.isoformat()

        with self.db.get_session() as session:
            self._require_member(session, club_id, user_id)

            book_id = self.resolver.resolve(candidate, session=session)
            session.execute(
                update(ClubReading)
                .where(
                    ClubReading.club_id == club_id,
                    ClubReading.status == ClubReadingStatus.ACTIVE.value,
                )
                .values(status=ClubReadingStatus.FINISHED.value)
            )
            reading = self.db.insert(
                session,
                ClubReading(club_id=club_id, book_id=book_id, target_date=target_date),
            )
            session.refresh(reading, attribute_names=["book"])
            session.expunge(reading)
            logger.info("Club %s started reading %s", club_id, book_id)
            return reading

    def current_reading(self, club_id: str) -> Optional[ClubReading]:
        with self.db.get_session() as session:
            rows = self.db.find_all(
                session,
                ClubReading,
                order_by=[ClubReading.started_at.desc()],
                club_id=club_id,
                status=ClubReadingStatus.ACTIVE.value,
            )
            if not rows:
                return None
            session.expunge(rows[0])
            return rows[0]

    # ========================================================================
    # Annotations and reactions
    # ========================================================================

    def add_annotation(
        self,
        user_id: str,
        book_id: str,
        content: str,
        club_id: Optional[str] = None,
        page_number: Optional[int] = None,
        chapter: Optional[str] = None,
        is_spoiler: bool = False,
    ) -> Annotation:
        """Add a note on a book, optionally shared with a club.

        Raises:
            InvalidInputError: Blank content or negative page
            RecordNotFoundError: Unknown book, or the user is not in the club
        """
        data = validate_input(
            AnnotationCreate,
            user_id=user_id,
            book_id=book_id,
            content=content,
            club_id=club_id,
            page_number=page_number,
            chapter=chapter,
            is_spoiler=is_spoiler,
        )

        with self.db.get_session() as session:
            if session.get(Book, data.book_id) is None:
                raise RecordNotFoundError(f"Book not found: {data.book_id}")
            if data.club_id:
                self._require_member(session, data.club_id, data.user_id)

            annotation = self.db.insert(session, Annotation(**data.model_dump()))
            session.refresh(annotation, attribute_names=["reactions"])
            session.expunge(annotation)
            return annotation

    def annotations_for_book(
        self,
        book_id: str,
        viewer_id: str,
        club_id: Optional[str] = None,
        hide_spoilers: bool = False,
    ) -> list[Annotation]:
        """Annotations on a book, ordered by page.

        With a club_id, the club's annotations; otherwise the viewer's own
        personal notes. hide_spoilers drops other users' spoilers.

        Raises:
            RecordNotFoundError: club_id is given and the viewer is not a member
        """
        with self.db.get_session() as session:
            if club_id is not None:
                self._require_member(session, club_id, viewer_id)
                criteria = [Annotation.club_id == club_id]
            else:
                criteria = [Annotation.club_id.is_(None), Annotation.user_id == viewer_id]
            if hide_spoilers:
                criteria.append(
                    or_(Annotation.is_spoiler.is_(False), Annotation.user_id == viewer_id)
                )
            rows = self.db.find_all(
                session,
                Annotation,
                *criteria,
                order_by=[Annotation.page_number, Annotation.created_at],
                book_id=book_id,
            )
            for row in rows:
                session.expunge(row)
            return rows

    def toggle_reaction(self, annotation_id: str, user_id: str, emoji: str) -> bool:
        """Toggle a user's reaction on an annotation.

        A user has at most one reaction per annotation: reacting with the
        same emoji again removes it, a different emoji replaces it.

        Returns:
            True if the user now has a reaction on the annotation
        """
        try:
            emoji = ReactionEmoji(emoji).value
        except ValueError as e:
            raise InvalidInputError(f"Unsupported reaction: {emoji}") from e

        with self.db.get_session() as session:
            if session.get(Annotation, annotation_id) is None:
                raise RecordNotFoundError(f"Annotation not found: {annotation_id}")

            existing = self.db.find_one(
                session, Reaction, annotation_id=annotation_id, user_id=user_id
            )
            if existing is not None and existing.emoji == emoji:
                session.delete(existing)
                return False
            if existing is not None:
                existing.emoji = emoji
                return True
            self.db.insert(
                session, Reaction(annotation_id=annotation_id, user_id=user_id, emoji=emoji)
            )
            return True

    @staticmethod
    def reaction_counts(annotation: Annotation) -> dict[str, int]:
        """Count reactions on an annotation by emoji."""
        return dict(Counter(r.emoji for r in annotation.reactions))
