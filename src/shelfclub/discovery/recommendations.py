"""Author-based recommendations.

Suggests catalog books by authors already on a user's shelf, leaving out
books the user already has.
"""

import logging
import random
from dataclasses import dataclass
from typing import Optional

from ..api.base import CatalogBook
from ..api.googlebooks import GoogleBooksClient
from ..db.models import ShelfEntry
from ..db.schemas import UNKNOWN_AUTHOR, ShelfStatus
from ..errors import CatalogError
from ..library import ShelfManager

logger = logging.getLogger(__name__)

MAX_AUTHORS = 3
PER_AUTHOR = 8
RECENT_ENTRIES = 10


@dataclass
class Recommendation:
    """A catalog book suggested for the user's shelf."""

    book: CatalogBook
    author: str  # The shelf author that led to this book
    reason: str


def shelf_authors(entries: list[ShelfEntry], limit: int = MAX_AUTHORS) -> list[str]:
    """Distinct authors from shelf entries, in shelf order.

    Co-authors listed as "A, B" count separately.
    """
    authors: list[str] = []
    for entry in entries:
        for name in entry.book.author.split(","):
            name = name.strip()
            if name and name != UNKNOWN_AUTHOR and name not in authors:
                authors.append(name)
    return authors[:limit]


class AuthorRecommender:
    """Recommends more books by authors the user already reads."""

    def __init__(
        self,
        catalog: GoogleBooksClient,
        shelf: Optional[ShelfManager] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize recommender.

        Args:
            catalog: Catalog searched by author
            shelf: Shelf manager (default: one on the global database)
            rng: Shuffles the suggestions (default: the random module)
        """
        self.catalog = catalog
        self.shelf = shelf or ShelfManager()
        self.rng = rng or random.Random()

    def recommend(self, user_id: str, limit: int = 10) -> list[Recommendation]:
        """Suggest up to ``limit`` books by authors from the user's recent shelf.

        The authors come from the most recently added shelf entries. Books
        whose catalog id is already on the shelf are left out, as are
        repeats across authors. A failing author search is skipped.

        Returns:
            Shuffled recommendations, empty when the shelf is empty
        """
        entries = self.shelf.list_shelf(user_id)
        if not entries:
            return []

        owned = {e.book.external_id for e in entries if e.book.external_id}
        authors = shelf_authors(entries[:RECENT_ENTRIES])

        recommendations = []
        seen: set[str] = set()
        for author in authors:
            try:
                books = self.catalog.search_by_author(author, PER_AUTHOR)
            except CatalogError as e:
                logger.warning("Recommendations by %s unavailable: %s", author, e)
                continue

            for book in books:
                if book.external_id in owned or book.external_id in seen:
                    continue
                seen.add(book.external_id)
                recommendations.append(Recommendation(
                    book=book,
                    author=author,
                    reason=f"Because you have books by {author}",
                ))

        self.rng.shuffle(recommendations)
        return recommendations[:limit]

    def add_to_shelf(
        self,
        user_id: str,
        recommendation: Recommendation,
        status: ShelfStatus = ShelfStatus.WANT,
    ) -> ShelfEntry:
        """Put a recommended book on the user's shelf.

        Raises:
            InvalidInputError: The catalog data does not make a valid book
            DuplicateRecordError: The book is already on the shelf
        """
        return self.shelf.add_book(user_id, recommendation.book.to_candidate(), status=status)
