"""Pydantic schemas for reading streaks."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class StreakStatus(str, Enum):
    """Status of the current streak."""

    ACTIVE = "active"  # Read today
    AT_RISK = "at_risk"  # Read yesterday, not yet today
    BROKEN = "broken"  # No streak


class StreakSummary(BaseModel):
    """Streak figures for one user."""

    current_streak: int
    longest_streak: int
    total_reading_days: int
    last_reading_date: Optional[date]
    status: StreakStatus
