"""Reading statistics and goals."""

from .aggregator import ReadingStats, StatsService, aggregate
from .goals import GoalProgress, GoalTracker

__all__ = [
    "ReadingStats",
    "StatsService",
    "aggregate",
    "GoalProgress",
    "GoalTracker",
]
