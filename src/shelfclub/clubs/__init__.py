"""Reading clubs module."""

from .manager import ClubManager, generate_invite_code
from .models import Annotation, Club, ClubMember, ClubReading, Reaction

__all__ = [
    "ClubManager",
    "generate_invite_code",
    "Annotation",
    "Club",
    "ClubMember",
    "ClubReading",
    "Reaction",
]
