"""Exceptions raised inside the search engine."""

from __future__ import annotations

from typing import Optional


class SearchError(Exception):
    """Base class for search engine errors."""


class BuildFailure(SearchError):
    """The index could not be built (record fetch failed or timed out).

    Recoverable: the next caller retries the build lazily.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class FetchTimeout(SearchError):
    """A bulk record fetch did not return before its deadline."""


class SourceUnavailable(SearchError):
    """A secondary catalogue source could not be queried."""

    def __init__(self, source_type: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"source '{source_type}' is unavailable: {cause}")
        self.source_type = source_type
        self.cause = cause
