"""Tests for streak calculation."""

from datetime import date, timedelta

import pytest

from shelfclub.streaks.calculator import current_streak, distinct_dates, longest_streak

TODAY = date(2024, 6, 15)


def days_ago(*offsets: int) -> list[date]:
    return [TODAY - timedelta(days=n) for n in offsets]


class TestCurrentStreak:
    """Tests for current_streak."""

    @pytest.mark.parametrize(
        "offsets, expected",
        [
            ((0, 1, 2), 3),
            ((2,), 0),
            ((1,), 1),
            ((), 0),
            ((0,), 1),
            ((1, 2, 3, 4), 4),
            ((0, 1, 3, 4), 2),
        ],
    )
    def test_streak_cases(self, offsets, expected):
        assert current_streak(days_ago(*offsets), today=TODAY) == expected

    def test_none_is_zero(self):
        assert current_streak(None, today=TODAY) == 0

    def test_duplicate_days_count_once(self):
        dates = days_ago(0, 0, 1, 1)
        assert current_streak(dates, today=TODAY) == 2

    def test_accepts_iso_strings(self):
        dates = ["2024-06-15", "2024-06-14T21:30:00", "2024-06-13"]
        assert current_streak(dates, today=TODAY) == 3

    def test_future_dates_ignored(self):
        dates = [TODAY + timedelta(days=1)] + days_ago(0)
        assert current_streak(dates, today=TODAY) == 1

    def test_crosses_month_boundary(self):
        dates = [date(2024, 3, 1), date(2024, 2, 29), date(2024, 2, 28)]
        assert current_streak(dates, today=date(2024, 3, 1)) == 3

    def test_order_of_input_does_not_matter(self):
        dates = days_ago(2, 0, 1)
        assert current_streak(dates, today=TODAY) == 3


class TestLongestStreak:
    """Tests for longest_streak."""

    def test_empty(self):
        assert longest_streak([]) == 0

    def test_longest_run_in_history(self):
        dates = days_ago(0, 1, 10, 11, 12, 13, 30)
        assert longest_streak(dates) == 4

    def test_single_day(self):
        assert longest_streak(days_ago(5)) == 1


class TestDistinctDates:
    """Tests for distinct_dates."""

    def test_sorted_most_recent_first(self):
        assert distinct_dates(["2024-01-02", "2024-01-03", "2024-01-02"]) == [
            date(2024, 1, 3),
            date(2024, 1, 2),
        ]
