"""Reading streaks module."""

from .calculator import current_streak, longest_streak
from .manager import StreakManager
from .schemas import StreakStatus, StreakSummary

__all__ = [
    "current_streak",
    "longest_streak",
    "StreakManager",
    "StreakStatus",
    "StreakSummary",
]
