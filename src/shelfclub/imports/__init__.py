"""Import module for bringing an existing library into shelfclub."""

from .base import BaseImporter, ImportRecord, ImportResult
from .goodreads import GoodreadsImporter, map_shelf

__all__ = [
    "BaseImporter",
    "ImportRecord",
    "ImportResult",
    "GoodreadsImporter",
    "map_shelf",
]
