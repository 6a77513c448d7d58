"""Catalog search and recommendations."""

from .recommendations import AuthorRecommender, Recommendation
from .search import BookSearch, RequestSequencer, SearchOutcome

__all__ = ["AuthorRecommender", "BookSearch", "Recommendation", "RequestSequencer", "SearchOutcome"]
