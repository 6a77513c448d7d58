"""Book search across catalogs, discarding superseded results.

Each search gets a token from a RequestSequencer. When results come back
they are applied only if no newer search has been issued since, so a slow
response for an old query can never overwrite the results of a newer one.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from ..api.base import CatalogBook, CatalogClient
from ..errors import CatalogError

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


class RequestSequencer:
    """Issues monotonically increasing request tokens."""

    def __init__(self):
        self._lock = threading.Lock()
        self._latest = 0

    def next_token(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    @property
    def latest(self) -> int:
        return self._latest

    def is_current(self, token: int) -> bool:
        """True if no request was issued after this token."""
        return token == self._latest


@dataclass
class SearchOutcome:
    """Result of one search request."""

    token: int
    results: list[CatalogBook] = field(default_factory=list)
    applied: bool = False
    source: Optional[str] = None


class BookSearch:
    """Searches a primary catalog, falling back to a second one."""

    def __init__(
        self,
        primary: CatalogClient,
        fallback: Optional[CatalogClient] = None,
        sequencer: Optional[RequestSequencer] = None,
        limit: int = 10,
    ):
        """Initialize search.

        Args:
            primary: Catalog queried first
            fallback: Catalog used when the primary returns nothing or fails
            sequencer: Token source (default: a private one)
            limit: Maximum results per search
        """
        self.primary = primary
        self.fallback = fallback
        self.sequencer = sequencer or RequestSequencer()
        self.limit = limit

    def search(self, query: str, token: Optional[int] = None) -> SearchOutcome:
        """Run a search.

        Args:
            query: Search text; shorter than 2 characters returns nothing
            token: Token from the sequencer (default: a new one)

        Returns:
            SearchOutcome; when a newer search was issued meanwhile, applied is
            False and the results are discarded

        Raises:
            CatalogError: Every catalog failed
        """
        if token is None:
            token = self.sequencer.next_token()

        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return SearchOutcome(token=token, applied=self.sequencer.is_current(token))

        results, source = self._fetch(query)
        if not self.sequencer.is_current(token):
            logger.debug("Discarding stale results for %r (token %d)", query, token)
            return SearchOutcome(token=token, applied=False)
        return SearchOutcome(token=token, results=results, applied=True, source=source)

    def _fetch(self, query: str) -> tuple[list[CatalogBook], Optional[str]]:
        try:
            results = self.primary.search(query, limit=self.limit)
            if results:
                return results, self.primary.name
        except CatalogError as e:
            if self.fallback is None:
                raise
            logger.warning("%s search failed, trying %s: %s", self.primary.name, self.fallback.name, e)

        if self.fallback is None:
            return [], None

        results = self.fallback.search(query, limit=self.limit)
        return results, self.fallback.name if results else None
