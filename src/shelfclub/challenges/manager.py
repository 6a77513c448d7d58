"""Challenge persistence and the interactive bingo session."""

import json
import logging
from typing import Optional

from ..db.models import utc_now
from ..db.sqlite import Database, get_db
from ..errors import InvalidInputError, RecordNotFoundError
from .bingo import BingoBoard
from .models import Challenge, ChallengeProgress

logger = logging.getLogger(__name__)


class ChallengeManager:
    """Creates bingo challenges and stores each user's board."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize challenge manager.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    def create_challenge(
        self,
        user_id: str,
        name: str,
        description: Optional[str] = None,
        club_id: Optional[str] = None,
        labels: Optional[list[str]] = None,
    ) -> Challenge:
        """Create a bingo challenge.

        Args:
            user_id: Creator
            name: Challenge name
            description: Optional description
            club_id: Club the challenge belongs to (None for a personal one)
            labels: 25 prompts (default prompts if None)

        Returns:
            Created Challenge
        """
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Challenge name is required")
        if not user_id:
            raise InvalidInputError("user_id is required")
        board = BingoBoard.new(labels)

        with self.db.get_session() as session:
            challenge = Challenge(
                name=name,
                description=description,
                club_id=club_id,
                created_by=user_id,
            )
            challenge.set_cells(board.to_dicts())
            self.db.insert(session, challenge)
            session.expunge(challenge)
            logger.info("Created challenge %s (%s)", challenge.id, name)
            return challenge

    def get_challenge(self, challenge_id: str) -> Optional[Challenge]:
        with self.db.get_session() as session:
            challenge = session.get(Challenge, challenge_id)
            if challenge:
                session.expunge(challenge)
            return challenge

    def list_challenges(self, user_id: str, club_id: Optional[str] = None) -> list[Challenge]:
        """List active challenges.

        With a club_id, the club's challenges; otherwise the user's personal ones.
        """
        with self.db.get_session() as session:
            if club_id is not None:
                rows = self.db.find_all(
                    session,
                    Challenge,
                    order_by=[Challenge.created_at.desc()],
                    club_id=club_id,
                    is_active=True,
                )
            else:
                rows = self.db.find_all(
                    session,
                    Challenge,
                    Challenge.club_id.is_(None),
                    order_by=[Challenge.created_at.desc()],
                    created_by=user_id,
                    is_active=True,
                )
            for row in rows:
                session.expunge(row)
            return rows

    def load_board(self, challenge_id: str, user_id: str) -> BingoBoard:
        """Load the user's board, or a fresh copy of the challenge's grid."""
        with self.db.get_session() as session:
            progress = self.db.find_one(
                session, ChallengeProgress, challenge_id=challenge_id, user_id=user_id
            )
            if progress is not None:
                return BingoBoard.from_dicts(progress.get_cells())

            challenge = session.get(Challenge, challenge_id)
            if challenge is None:
                raise RecordNotFoundError(f"Challenge not found: {challenge_id}")
            return BingoBoard.from_dicts(challenge.get_cells())

    def save_board(self, challenge_id: str, user_id: str, board: BingoBoard) -> ChallengeProgress:
        """Store the whole board, overwriting the user's previous snapshot.

        completed_at keeps the moment the first bingo was reached and is
        cleared when the board no longer has one.
        """
        completed = board.has_bingo()

        with self.db.get_session() as session:
            if session.get(Challenge, challenge_id) is None:
                raise RecordNotFoundError(f"Challenge not found: {challenge_id}")

            previous = self.db.find_one(
                session, ChallengeProgress, challenge_id=challenge_id, user_id=user_id
            )
            completed_at = None
            if completed:
                completed_at = (previous.completed_at if previous else None) or utc_now()

            self.db.upsert(
                session,
                ChallengeProgress,
                {
                    "challenge_id": challenge_id,
                    "user_id": user_id,
                    "cells": json.dumps(board.to_dicts()),
                    "completed": completed,
                    "completed_at": completed_at,
                    "updated_at": utc_now(),
                },
                conflict_columns=["challenge_id", "user_id"],
                update_columns=["cells", "completed", "completed_at", "updated_at"],
            )
            session.expire_all()
            saved = self.db.find_one(
                session, ChallengeProgress, challenge_id=challenge_id, user_id=user_id
            )
            session.expunge(saved)
            return saved


class BingoSession:
    """One user's interactive bingo board, saved after every change.

    Each saving method returns True when the change produced a bingo that
    the board did not have before.
    """

    def __init__(self, manager: ChallengeManager, challenge_id: str, user_id: str):
        self.manager = manager
        self.challenge_id = challenge_id
        self.user_id = user_id
        self.board = manager.load_board(challenge_id, user_id)

    @property
    def pending(self) -> Optional[int]:
        return self.board.pending

    def _save(self, had_bingo: bool) -> bool:
        self.manager.save_board(self.challenge_id, self.user_id, self.board)
        reached = self.board.has_bingo() and not had_bingo
        if reached:
            logger.info("BINGO on challenge %s for user %s", self.challenge_id, self.user_id)
        return reached

    def select(self, index: int) -> bool:
        """Select a cell: clears a completed cell, otherwise waits for a book."""
        had_bingo = self.board.has_bingo()
        if self.board.select(index):
            return self._save(had_bingo)
        return False

    def complete(self, index: int, book_id: str, book_title: str) -> bool:
        """Link a book to the pending cell and save."""
        had_bingo = self.board.has_bingo()
        self.board.complete(index, book_id, book_title)
        return self._save(had_bingo)

    def clear(self, index: int) -> bool:
        had_bingo = self.board.has_bingo()
        self.board.clear(index)
        return self._save(had_bingo)
