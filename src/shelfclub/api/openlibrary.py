"""Open Library API client for book metadata lookup.

Open Library (openlibrary.org) provides free book metadata including:
- Search by title/author
- Cover images derived from cover ids
- Work descriptions

No API key required.
"""

import logging
from typing import Optional

from ..errors import CatalogError
from .base import CatalogBook, CatalogClient, parse_count, parse_int

logger = logging.getLogger(__name__)

SEARCH_FIELDS = "key,title,author_name,first_publish_year,isbn,publisher,cover_i,number_of_pages_median,subject"


class OpenLibraryClient(CatalogClient):
    """Client for Open Library API."""

    name = "Open Library"
    BASE_URL = "https://openlibrary.org"
    COVERS_URL = "https://covers.openlibrary.org"

    @classmethod
    def cover_url(cls, cover_id: Optional[int], size: str = "M") -> Optional[str]:
        """Cover image URL for a cover id.

        Args:
            cover_id: Cover ID from search results
            size: Image size - S (small), M (medium), L (large)
        """
        if not cover_id:
            return None
        if size not in ("S", "M", "L"):
            raise ValueError(f"Invalid cover size: {size}")
        return f"{cls.COVERS_URL}/b/id/{cover_id}-{size}.jpg"

    # ========================================================================
    # Search Operations
    # ========================================================================

    def search(self, query: str, limit: int = 10) -> list[CatalogBook]:
        """Search for books.

        Args:
            query: Search query (title or general search)
            limit: Maximum results to return

        Returns:
            List of CatalogBook objects
        """
        params = {"q": query, "limit": limit, "fields": SEARCH_FIELDS}
        data = self._get(f"{self.BASE_URL}/search.json", params)

        results = []
        for doc in data.get("docs") or []:
            result = self._doc_to_book(doc)
            if result:
                results.append(result)
        return results

    def _doc_to_book(self, doc: dict) -> Optional[CatalogBook]:
        """Convert search document to CatalogBook."""
        title = doc.get("title")
        title = title.strip() if isinstance(title, str) else ""
        key = doc.get("key")
        if not title or not isinstance(key, str) or not key:
            return None

        # Extract Open Library ID from key (e.g., "/works/OL123456W")
        olid = key.split("/")[-1]

        # Prefer an ISBN-13
        isbns = [i for i in doc.get("isbn") or [] if isinstance(i, str)]
        isbn = next((i for i in isbns if len(i) == 13), None) or next(
            (i for i in isbns if len(i) == 10), None
        )

        # Only the first listed author is reliable in search docs
        authors = [a for a in doc.get("author_name") or [] if isinstance(a, str) and a]
        publishers = [p for p in doc.get("publisher") or [] if isinstance(p, str)]

        return CatalogBook(
            external_id=olid,
            title=title,
            authors=authors[:1],
            year_published=parse_int(doc.get("first_publish_year")),
            pages=parse_count(doc.get("number_of_pages_median")),
            categories=[s for s in doc.get("subject") or [] if isinstance(s, str)][:10],
            cover_url=self.cover_url(doc.get("cover_i")),
            isbn=isbn,
            publisher=publishers[0] if publishers else None,
            source="openlibrary",
        )

    # ========================================================================
    # Work Details
    # ========================================================================

    def get_work(self, work_key: str) -> Optional[CatalogBook]:
        """Get work details.

        Args:
            work_key: Work ID ("OL123456W") or key ("/works/OL123456W")

        Returns:
            CatalogBook, or None if the work does not exist
        """
        work_id = work_key.rstrip("/").split("/")[-1]
        try:
            data = self._get(f"{self.BASE_URL}/works/{work_id}.json")
        except CatalogError as e:
            if e.status_code == 404:
                return None
            raise

        title = (data.get("title") or "").strip()
        if not title:
            return None

        description = data.get("description")
        if isinstance(description, dict):
            description = description.get("value")

        covers = [c for c in data.get("covers") or [] if c and c > 0]

        authors = []
        for entry in (data.get("authors") or [])[:1]:
            author_key = (entry.get("author") or {}).get("key")
            if author_key:
                name = self._get_author_name(author_key)
                if name:
                    authors.append(name)

        return CatalogBook(
            external_id=work_id,
            title=title,
            authors=authors,
            categories=(data.get("subjects") or [])[:10],
            cover_url=self.cover_url(covers[0] if covers else None),
            description=description,
            source="openlibrary",
        )

    def _get_author_name(self, author_key: str) -> Optional[str]:
        """Fetch author name, None if the lookup fails.

        Args:
            author_key: Author key (e.g., "/authors/OL123456A")
        """
        try:
            data = self._get(f"{self.BASE_URL}{author_key}.json")
        except CatalogError as e:
            logger.debug("Author lookup failed for %s: %s", author_key, e)
            return None
        return data.get("name")
