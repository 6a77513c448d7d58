"""Shared pieces of the book catalog clients.

Catalogs are free public APIs: unauthenticated, rate-limit prone and loose
about which fields they return. Clients never retry; a failed request is
raised once as CatalogError.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from ..db.schemas import UNKNOWN_AUTHOR, BookCandidate, validate_input
from ..errors import CatalogError, CatalogRateLimitError

logger = logging.getLogger(__name__)

USER_AGENT = "shelfclub/0.1 (+https://github.com/shelfclub/shelfclub)"


def parse_int(value: Any) -> Optional[int]:
    """Int from a loosely typed catalog field, None when it is not a number."""
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_count(value: Any) -> Optional[int]:
    """Positive int from a catalog field; unknown counts come back as 0 or junk."""
    number = parse_int(value)
    return number if number and number > 0 else None


@dataclass
class CatalogBook:
    """A book as returned by a catalog provider."""

    external_id: str
    title: str
    authors: list[str] = field(default_factory=list)
    year_published: Optional[int] = None
    pages: Optional[int] = None
    categories: list[str] = field(default_factory=list)
    cover_url: Optional[str] = None
    isbn: Optional[str] = None
    description: Optional[str] = None
    publisher: Optional[str] = None
    source: str = ""

    @property
    def author(self) -> str:
        """All authors joined, or the placeholder when none are known."""
        return ", ".join(self.authors) if self.authors else UNKNOWN_AUTHOR

    def to_candidate(self) -> BookCandidate:
        """Convert to the metadata the identity resolver takes.

        Raises:
            InvalidInputError: The catalog data does not make a valid book
        """
        return validate_input(
            BookCandidate,
            external_id=self.external_id,
            title=self.title,
            author=self.author,
            cover_url=self.cover_url,
            year_published=self.year_published,
            pages=self.pages,
            isbn=self.isbn,
            description=self.description,
            publisher=self.publisher,
            categories=self.categories,
        )


class CatalogClient(ABC):
    """HTTP plumbing shared by catalog clients."""

    name = "catalog"

    def __init__(self, timeout: float = 10, min_request_interval: float = 0.5):
        """Initialize client.

        Args:
            timeout: Request timeout in seconds
            min_request_interval: Minimum seconds between two requests
        """
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})
        self._last_request_time = 0.0
        self._min_request_interval = min_request_interval

    def _rate_limit(self) -> None:
        """Enforce rate limiting between requests."""
        elapsed = time.monotonic() - self._last_request_time
        if elapsed < self._min_request_interval:
            time.sleep(self._min_request_interval - elapsed)
        self._last_request_time = time.monotonic()

    def _get(self, url: str, params: Optional[dict] = None) -> Any:
        """Make GET request with error handling."""
        self._rate_limit()
        logger.debug("%s GET %s %s", self.name, url, params or "")
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout as e:
            logger.warning("%s request timed out: %s", self.name, url)
            raise CatalogError(f"{self.name}: request timed out") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.warning("%s returned HTTP %s for %s", self.name, status, url)
            if status == 429:
                raise CatalogRateLimitError(f"Rate limited by {self.name}", status_code=429) from e
            raise CatalogError(f"{self.name}: HTTP error {status}", status_code=status) from e
        except requests.exceptions.RequestException as e:
            logger.warning("%s request failed: %s", self.name, e)
            raise CatalogError(f"{self.name}: request failed: {e}") from e

    @abstractmethod
    def search(self, query: str, limit: int = 10) -> list[CatalogBook]:
        """Search the catalog."""
        pass
