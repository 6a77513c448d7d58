"""Google Books API client.

Volumes search (free text, intitle:, inauthor:, isbn:) and lookup by volume
id. An API key is optional; without one Google applies a low shared quota.
"""

import logging
import re
from typing import Optional

from ..errors import CatalogError
from .base import CatalogBook, CatalogClient, parse_count

logger = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"^(\d{4})")


def parse_year(published_date: Optional[str]) -> Optional[int]:
    """Year from a publishedDate like "2019", "2019-05" or "2019-05-14"."""
    if not published_date:
        return None
    match = _YEAR_RE.match(str(published_date))
    return int(match.group(1)) if match else None


def secure_cover_url(image_links: Optional[dict]) -> Optional[str]:
    """Best cover link, forced to https and without the page-curl effect."""
    if not image_links:
        return None
    url = image_links.get("thumbnail") or image_links.get("smallThumbnail")
    if not url:
        return None
    return url.replace("http://", "https://").replace("&edge=curl", "")


def _strings(values) -> list[str]:
    """Non-empty strings from a list field; anything else is dropped."""
    if not isinstance(values, list):
        return []
    return [v.strip() for v in values if isinstance(v, str) and v.strip()]


def pick_isbn(identifiers: Optional[list[dict]]) -> Optional[str]:
    """ISBN-13 if the volume has one, else ISBN-10."""
    by_type = {i.get("type"): i.get("identifier") for i in identifiers or [] if isinstance(i, dict)}
    return by_type.get("ISBN_13") or by_type.get("ISBN_10")


class GoogleBooksClient(CatalogClient):
    """Client for the Google Books volumes API."""

    name = "Google Books"
    BASE_URL = "https://www.googleapis.com/books/v1"

    def __init__(
        self,
        api_key: Optional[str] = None,
        language: Optional[str] = None,
        timeout: float = 10,
        min_request_interval: float = 0.5,
    ):
        """Initialize client.

        Args:
            api_key: Optional Google API key
            language: Optional language restriction (langRestrict), e.g. "en"
            timeout: Request timeout in seconds
            min_request_interval: Minimum seconds between two requests
        """
        super().__init__(timeout=timeout, min_request_interval=min_request_interval)
        self.api_key = api_key
        self.language = language

    def _params(self, **params) -> dict:
        if self.api_key:
            params["key"] = self.api_key
        return params

    # ========================================================================
    # Search Operations
    # ========================================================================

    def search(self, query: str, limit: int = 10) -> list[CatalogBook]:
        """Free text search.

        Args:
            query: Search terms (may carry intitle:/inauthor:/isbn: prefixes)
            limit: Maximum results (Google caps this at 40)

        Returns:
            List of CatalogBook objects
        """
        params = self._params(q=query, maxResults=min(limit, 40))
        if self.language:
            params["langRestrict"] = self.language

        data = self._get(f"{self.BASE_URL}/volumes", params)
        results = []
        for item in data.get("items") or []:
            book = self._volume_to_book(item)
            if book:
                results.append(book)
        return results

    def search_by_title(self, title: str, limit: int = 10) -> list[CatalogBook]:
        return self.search(f"intitle:{title}", limit)

    def search_by_author(self, author: str, limit: int = 10) -> list[CatalogBook]:
        return self.search(f"inauthor:{author}", limit)

    def search_by_isbn(self, isbn: str) -> list[CatalogBook]:
        isbn = isbn.replace("-", "").replace(" ", "")
        return self.search(f"isbn:{isbn}", limit=5)

    def get_by_id(self, volume_id: str) -> Optional[CatalogBook]:
        """Fetch one volume by id. Returns None if Google does not know it."""
        try:
            data = self._get(f"{self.BASE_URL}/volumes/{volume_id}", self._params())
        except CatalogError as e:
            if e.status_code == 404:
                return None
            raise
        return self._volume_to_book(data)

    def _volume_to_book(self, item: dict) -> Optional[CatalogBook]:
        """Convert a volume resource to CatalogBook. Drops volumes without a title."""
        if not isinstance(item, dict):
            return None
        info = item.get("volumeInfo")
        if not isinstance(info, dict):
            info = {}
        title = info.get("title")
        title = title.strip() if isinstance(title, str) else ""
        volume_id = item.get("id")
        if not title or not volume_id:
            logger.debug("Skipping malformed volume %r", volume_id)
            return None

        subtitle = info.get("subtitle")
        description = info.get("description")

        return CatalogBook(
            external_id=volume_id,
            title=title,
            authors=_strings(info.get("authors")),
            year_published=parse_year(info.get("publishedDate")),
            pages=parse_count(info.get("pageCount")),
            categories=_strings(info.get("categories")),
            cover_url=secure_cover_url(info.get("imageLinks")),
            isbn=pick_isbn(info.get("industryIdentifiers")),
            description=description or subtitle,
            publisher=info.get("publisher"),
            source="google",
        )
