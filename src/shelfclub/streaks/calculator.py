"""Reading streak calculation.

A streak is the run of consecutive calendar days with at least one progress
entry. It is always computed from a snapshot of dates, never kept as an
incremental counter.
"""

from datetime import date, timedelta
from typing import Iterable, Optional, Union

DateLike = Union[date, str]


def _to_date(value: DateLike) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def distinct_dates(dates: Optional[Iterable[DateLike]]) -> list[date]:
    """Distinct calendar days, most recent first."""
    if not dates:
        return []
    return sorted({_to_date(d) for d in dates}, reverse=True)


def current_streak(dates: Optional[Iterable[DateLike]], today: Optional[date] = None) -> int:
    """Count the active streak ending today or yesterday.

    Logging yesterday keeps the streak alive, since today's entry may not
    exist yet. Once a full day is skipped the streak is 0. Dates after
    ``today`` are ignored.

    Args:
        dates: ISO date strings or dates of progress entries
        today: Reference day (default: local today)

    Returns:
        Number of consecutive days, 0 for no input
    """
    today = today or date.today()
    days = [d for d in distinct_dates(dates) if d <= today]
    if not days:
        return 0

    if (today - days[0]).days > 1:
        return 0

    streak = 1
    for previous, current in zip(days, days[1:]):
        if previous - current != timedelta(days=1):
            break
        streak += 1
    return streak


def longest_streak(dates: Optional[Iterable[DateLike]]) -> int:
    """Longest run of consecutive days anywhere in the history."""
    days = sorted(distinct_dates(dates))
    if not days:
        return 0

    longest = run = 1
    for previous, current in zip(days, days[1:]):
        if current - previous == timedelta(days=1):
            run += 1
            longest = max(longest, run)
        else:
            run = 1
    return longest
