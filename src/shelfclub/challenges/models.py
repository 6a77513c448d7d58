"""SQLAlchemy models for reading challenges.

Tables:
- challenges: Bingo challenge definitions (personal or club scope)
- challenge_progress: Each user's serialized copy of the board
"""

import json
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, generate_uuid, utc_now


class Challenge(Base):
    """Challenge model - a bingo grid of reading prompts."""

    __tablename__ = "challenges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    # None means a personal challenge
    club_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("clubs.id", ondelete="CASCADE"), index=True
    )
    created_by: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    challenge_type: Mapped[str] = mapped_column(String(20), default="bingo")
    cells: Mapped[str] = mapped_column(Text, nullable=False)  # JSON array of cells
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    created_at: Mapped[str] = mapped_column(String(26), default=utc_now)

    def __repr__(self) -> str:
        return f"<Challenge(id={self.id}, name='{self.name}', club_id={self.club_id})>"

    def get_cells(self) -> list[dict]:
        """Get cells as list of dicts."""
        return json.loads(self.cells) if self.cells else []

    def set_cells(self, cells: list[dict]) -> None:
        """Set cells from list of dicts."""
        self.cells = json.dumps(cells)


class ChallengeProgress(Base):
    """A user's board for a challenge, stored as a full snapshot."""

    __tablename__ = "challenge_progress"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    challenge_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    cells: Mapped[str] = mapped_column(Text, nullable=False)  # JSON array of cells
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[Optional[str]] = mapped_column(String(26))

    updated_at: Mapped[str] = mapped_column(String(26), default=utc_now)

    __table_args__ = (
        UniqueConstraint("challenge_id", "user_id", name="uq_challenge_progress_user"),
    )

    def __repr__(self) -> str:
        return f"<ChallengeProgress(challenge_id={self.challenge_id}, user_id={self.user_id}, completed={self.completed})>"

    def get_cells(self) -> list[dict]:
        """Get cells as list of dicts."""
        return json.loads(self.cells) if self.cells else []
