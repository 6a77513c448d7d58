"""shelfclub: reading shelves, streaks, goals, bingo challenges and clubs."""

__version__ = "0.1.0"
