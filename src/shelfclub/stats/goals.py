"""Reading goals tracking.

One goal per user and year: the number of books to finish.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import func, select

from ..db.models import Goal, ShelfEntry, utc_now
from ..db.schemas import GoalSet, ShelfStatus, validate_input
from ..db.sqlite import Database, get_db


@dataclass
class GoalProgress:
    """Progress toward a yearly goal."""

    year: int
    target: int
    read: int

    @property
    def percent(self) -> float:
        """Calculate progress percentage."""
        if self.target <= 0:
            return 0.0
        return min(100.0, round((self.read / self.target) * 100, 1))

    @property
    def remaining(self) -> int:
        """Calculate remaining books to reach goal."""
        return max(0, self.target - self.read)

    @property
    def is_complete(self) -> bool:
        """Check if goal is complete. A goal of 0 is never complete."""
        return self.target > 0 and self.read >= self.target


class GoalTracker:
    """Tracks and manages reading goals."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize goal tracker.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    def set_goal(self, user_id: str, target_books: int, year: Optional[int] = None) -> GoalProgress:
        """Set (or replace) the user's goal for a year.

        Args:
            user_id: Acting user
            target_books: Number of books, at least 1
            year: Year for goal (default: current year)

        Returns:
            Progress against the new goal
        """
        data = validate_input(
            GoalSet,
            user_id=user_id,
            year=year or date.today().year,
            target_books=target_books,
        )

        with self.db.get_session() as session:
            self.db.upsert(
                session,
                Goal,
                {
                    "user_id": data.user_id,
                    "year": data.year,
                    "target_books": data.target_books,
                    "updated_at": utc_now(),
                },
                conflict_columns=["user_id", "year"],
                update_columns=["target_books", "updated_at"],
            )

        return self.goal_progress(data.user_id, data.year)

    def goal_progress(self, user_id: str, year: Optional[int] = None) -> GoalProgress:
        """Get progress toward the user's goal. A missing goal has target 0."""
        year = year or date.today().year

        with self.db.get_session() as session:
            goal = self.db.find_one(session, Goal, user_id=user_id, year=year)
            read = session.execute(
                select(func.count(ShelfEntry.id)).where(
                    ShelfEntry.user_id == user_id,
                    ShelfEntry.status == ShelfStatus.READ.value,
                    ShelfEntry.finished_at >= f"{year:04d}-01-01",
                    ShelfEntry.finished_at <= f"{year:04d}-12-31",
                )
            ).scalar_one()

        return GoalProgress(year=year, target=goal.target_books if goal else 0, read=read)
