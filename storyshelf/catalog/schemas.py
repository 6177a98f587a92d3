"""
Pydantic response models for the catalogue and search endpoints.

Search hits and results are defined in ``storyshelf.models`` because
the search engine produces them; this module wraps them for the HTTP
layer together with the models that only the routes need.
"""

from typing import List, Optional

from pydantic import BaseModel

from ..models import CatalogItem, SearchResult
from ..search.manager import IndexStatus


class SearchResponse(SearchResult):
    """Body of ``GET /api/search``."""


class SuggestionResponse(BaseModel):
    suggestions: List[str]


class IndexStatusResponse(BaseModel):
    """Current state of the catalogue index.

    ``built_at`` is a monotonic clock reading, only meaningful for
    comparing two status responses from the same process.
    """

    state: str
    stale: bool
    built_at: Optional[float] = None
    record_count: int = 0
    term_count: int = 0
    build_count: int = 0
    last_error: Optional[str] = None

    @classmethod
    def from_status(cls, status: IndexStatus) -> "IndexStatusResponse":
        return cls(
            state=status.state.value,
            stale=status.stale,
            built_at=status.built_at,
            record_count=status.record_count,
            term_count=status.term_count,
            build_count=status.build_count,
            last_error=status.last_error,
        )


class PaginatedItems(BaseModel):
    """A page of catalogue items returned from the listing endpoints."""

    page: int
    page_size: int
    total: int
    total_pages: int
    items: List[CatalogItem]
