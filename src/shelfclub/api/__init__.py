"""API module for external book catalogs.

Provides clients for book metadata lookup from Google Books and Open Library.
"""

from .base import CatalogBook, CatalogClient
from .googlebooks import GoogleBooksClient
from .openlibrary import OpenLibraryClient

__all__ = [
    "CatalogBook",
    "CatalogClient",
    "GoogleBooksClient",
    "OpenLibraryClient",
]
