"""Tests for Open Library API client."""

from unittest.mock import MagicMock

import pytest
import requests

from shelfclub.api.openlibrary import OpenLibraryClient
from shelfclub.errors import CatalogError, CatalogRateLimitError


def mock_response(payload=None, status=200):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
    else:
        response.raise_for_status = MagicMock()
    return response


class TestOpenLibraryClientInit:
    """Tests for client initialization."""

    def test_default_timeout(self):
        assert OpenLibraryClient().timeout == 10

    def test_custom_timeout(self):
        assert OpenLibraryClient(timeout=30).timeout == 30

    def test_session_has_user_agent(self):
        client = OpenLibraryClient()
        assert "shelfclub" in client._session.headers["User-Agent"]


class TestSearch:
    """Tests for search."""

    @pytest.fixture
    def client(self):
        """Create a client with mocked session."""
        client = OpenLibraryClient(min_request_interval=0)
        client._session = MagicMock()
        return client

    def test_search_returns_results(self, client):
        client._session.get.return_value = mock_response({
            "docs": [
                {
                    "key": "/works/OL123W",
                    "title": "Test Book",
                    "author_name": ["Test Author", "Second Author"],
                    "first_publish_year": 2020,
                    "isbn": ["1234567890", "9781234567890"],
                    "cover_i": 12345,
                    "number_of_pages_median": 321,
                },
            ],
        })

        results = client.search("test query")

        assert len(results) == 1
        book = results[0]
        assert book.external_id == "OL123W"
        assert book.author == "Test Author"
        assert book.isbn == "9781234567890"
        assert book.pages == 321
        assert book.cover_url == "https://covers.openlibrary.org/b/id/12345-M.jpg"

    def test_search_params(self, client):
        client._session.get.return_value = mock_response({"docs": []})

        client.search("dune", limit=5)

        url = client._session.get.call_args[0][0]
        params = client._session.get.call_args[1]["params"]
        assert url.endswith("/search.json")
        assert params["q"] == "dune"
        assert params["limit"] == 5

    def test_search_handles_missing_fields(self, client):
        client._session.get.return_value = mock_response({
            "docs": [{"key": "/works/OL456W", "title": "Minimal Book"}],
        })

        book = client.search("minimal")[0]
        assert book.author == "Unknown author"
        assert book.isbn is None
        assert book.cover_url is None

    def test_search_skips_documents_without_title(self, client):
        client._session.get.return_value = mock_response({
            "docs": [{"key": "/works/OL1W"}, {"key": "/works/OL2W", "title": "Has Title"}],
        })

        assert [b.title for b in client.search("x")] == ["Has Title"]

    def test_rate_limited(self, client):
        client._session.get.return_value = mock_response(status=429)
        with pytest.raises(CatalogRateLimitError):
            client.search("x")


class TestCovers:
    """Tests for cover URLs."""

    @pytest.mark.parametrize("size", ["S", "M", "L"])
    def test_cover_sizes(self, size):
        assert OpenLibraryClient.cover_url(42, size) == f"https://covers.openlibrary.org/b/id/42-{size}.jpg"

    def test_no_cover(self):
        assert OpenLibraryClient.cover_url(None) is None

    def test_bad_size(self):
        with pytest.raises(ValueError):
            OpenLibraryClient.cover_url(42, "XL")


class TestGetWork:
    """Tests for work lookup."""

    @pytest.fixture
    def client(self):
        client = OpenLibraryClient(min_request_interval=0)
        client._session = MagicMock()
        return client

    def test_get_work(self, client):
        client._session.get.side_effect = [
            mock_response({
                "title": "Dune",
                "description": {"type": "/type/text", "value": "Spice."},
                "covers": [-1, 11481354],
                "authors": [{"author": {"key": "/authors/OL79034A"}}],
                "subjects": ["Science fiction"],
            }),
            mock_response({"name": "Frank Herbert"}),
        ]

        book = client.get_work("/works/OL893415W")

        assert book.external_id == "OL893415W"
        assert book.author == "Frank Herbert"
        assert book.description == "Spice."
        assert book.cover_url.endswith("/11481354-M.jpg")

    def test_get_work_author_lookup_fails(self, client):
        client._session.get.side_effect = [
            mock_response({"title": "Dune", "authors": [{"author": {"key": "/authors/OL1A"}}]}),
            mock_response(status=500),
        ]

        assert client.get_work("OL893415W").author == "Unknown author"

    def test_get_work_not_found(self, client):
        client._session.get.return_value = mock_response(status=404)
        assert client.get_work("OL0W") is None

    def test_get_work_server_error(self, client):
        client._session.get.return_value = mock_response(status=500)
        with pytest.raises(CatalogError):
            client.get_work("OL0W")


class TestMalformedDocs:
    """Tests for search documents with junk fields."""

    @pytest.fixture
    def client(self):
        client = OpenLibraryClient(min_request_interval=0)
        client._session = MagicMock()
        return client

    def test_junk_numbers_ignored(self, client):
        client._session.get.return_value = mock_response({
            "docs": [{
                "key": "/works/OL9W",
                "title": "Odd",
                "number_of_pages_median": "unknown",
                "first_publish_year": "someday",
                "isbn": [123, "9781234567890"],
                "author_name": [None, "Real Author"],
            }],
        })

        book = client.search("odd")[0]
        assert book.pages is None
        assert book.year_published is None
        assert book.isbn == "9781234567890"
        assert book.author == "Real Author"
        assert book.to_candidate().title == "Odd"

    def test_non_string_key_dropped(self, client):
        client._session.get.return_value = mock_response({"docs": [{"key": 5, "title": "X"}]})
        assert client.search("x") == []
