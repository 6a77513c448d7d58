"""Streak manager: streak figures computed from the user's progress log."""

from datetime import date
from typing import Optional

from ..db.sqlite import Database, get_db
from ..reading.progress import ProgressLog
from .calculator import current_streak, distinct_dates, longest_streak
from .schemas import StreakStatus, StreakSummary


# Milestone definitions
MILESTONES = [
    ("First Step", 1),
    ("Getting Started", 3),
    ("One Week", 7),
    ("Two Weeks", 14),
    ("Monthly Reader", 30),
    ("Bookworm", 90),
    ("Year of Reading", 365),
]


class StreakManager:
    """Computes reading streaks for a user."""

    def __init__(self, db: Optional[Database] = None, progress: Optional[ProgressLog] = None):
        """Initialize streak manager.

        Args:
            db: Database instance
            progress: Progress log (default: one bound to the same database)
        """
        self.db = db or get_db()
        self.progress = progress or ProgressLog(self.db)

    def get_summary(self, user_id: str, today: Optional[date] = None) -> StreakSummary:
        """Snapshot the user's dates and compute streak figures."""
        today = today or date.today()
        days = distinct_dates(self.progress.reading_dates(user_id))
        days = [d for d in days if d <= today]

        current = current_streak(days, today=today)
        if current == 0:
            status = StreakStatus.BROKEN
        elif days[0] == today:
            status = StreakStatus.ACTIVE
        else:
            status = StreakStatus.AT_RISK

        return StreakSummary(
            current_streak=current,
            longest_streak=longest_streak(days),
            total_reading_days=len(days),
            last_reading_date=days[0] if days else None,
            status=status,
        )

    def get_milestones(self, user_id: str) -> list[tuple[str, int, bool]]:
        """Milestones as (name, days required, achieved by longest streak)."""
        longest = self.get_summary(user_id).longest_streak
        return [(name, days, longest >= days) for name, days in MILESTONES]
