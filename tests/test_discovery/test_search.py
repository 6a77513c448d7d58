"""Tests for combined catalog search."""

from unittest.mock import MagicMock

import pytest

from shelfclub.api.base import CatalogBook
from shelfclub.discovery import BookSearch, RequestSequencer
from shelfclub.errors import CatalogError


def catalog(name, results=None, error=None):
    client = MagicMock()
    client.name = name
    if error is not None:
        client.search.side_effect = error
    else:
        client.search.return_value = results or []
    return client


BOOK = CatalogBook(external_id="v1", title="Dune", authors=["Frank Herbert"])
OTHER = CatalogBook(external_id="OL1W", title="Dune Messiah", authors=["Frank Herbert"])


class TestRequestSequencer:
    """Tests for RequestSequencer."""

    def test_tokens_increase(self):
        seq = RequestSequencer()
        assert [seq.next_token() for _ in range(3)] == [1, 2, 3]

    def test_only_latest_is_current(self):
        seq = RequestSequencer()
        first = seq.next_token()
        second = seq.next_token()

        assert not seq.is_current(first)
        assert seq.is_current(second)


class TestBookSearch:
    """Tests for BookSearch."""

    def test_short_query_returns_nothing(self):
        primary = catalog("A", [BOOK])
        outcome = BookSearch(primary).search("d")

        assert outcome.results == []
        primary.search.assert_not_called()

    def test_primary_results(self):
        outcome = BookSearch(catalog("A", [BOOK]), catalog("B", [OTHER])).search("dune")

        assert outcome.results == [BOOK]
        assert outcome.source == "A"
        assert outcome.applied

    def test_fallback_when_primary_empty(self):
        outcome = BookSearch(catalog("A", []), catalog("B", [OTHER])).search("dune")
        assert outcome.results == [OTHER]
        assert outcome.source == "B"

    def test_fallback_when_primary_fails(self):
        failing = catalog("A", error=CatalogError("down"))
        outcome = BookSearch(failing, catalog("B", [OTHER])).search("dune")
        assert outcome.results == [OTHER]

    def test_error_without_fallback(self):
        with pytest.raises(CatalogError):
            BookSearch(catalog("A", error=CatalogError("down"))).search("dune")

    def test_both_fail(self):
        search = BookSearch(
            catalog("A", error=CatalogError("down")),
            catalog("B", error=CatalogError("also down")),
        )
        with pytest.raises(CatalogError, match="also down"):
            search.search("dune")

    def test_stale_results_not_applied(self):
        """A slow response for an old query does not win over a newer one."""
        search = BookSearch(catalog("A", [BOOK]))
        old = search.sequencer.next_token()
        new = search.sequencer.next_token()

        newer = search.search("dune messiah", token=new)
        late = search.search("dune", token=old)

        assert newer.applied
        assert newer.results == [BOOK]
        assert not late.applied
        assert late.results == []
        assert late.source is None

    def test_shared_sequencer(self):
        seq = RequestSequencer()
        a = BookSearch(catalog("A", [BOOK]), sequencer=seq)
        b = BookSearch(catalog("B", [OTHER]), sequencer=seq)

        token = seq.next_token()
        b.search("dune")
        assert not a.search("dune", token=token).applied

    def test_newer_search_issued_while_fetching(self):
        seq = RequestSequencer()
        primary = catalog("A")
        primary.search.side_effect = lambda query, limit: (seq.next_token(), [BOOK])[1]

        outcome = BookSearch(primary, sequencer=seq).search("dune")

        assert not outcome.applied
        assert outcome.results == []
