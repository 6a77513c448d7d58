"""Reading challenges (bingo) module."""

from .bingo import DEFAULT_LABELS, FREE_INDEX, BingoBoard, BingoCell
from .manager import BingoSession, ChallengeManager
from .models import Challenge, ChallengeProgress

__all__ = [
    "DEFAULT_LABELS",
    "FREE_INDEX",
    "BingoBoard",
    "BingoCell",
    "BingoSession",
    "ChallengeManager",
    "Challenge",
    "ChallengeProgress",
]
