"""
Entry point used by the HTTP layer: search, suggestions and index
maintenance over one ``CatalogIndexManager``.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..config import Settings
from ..models import SearchResult
from .manager import CatalogIndexManager, IndexStatus
from .merger import MultiSourceMerger
from .suggest import suggest as suggest_titles

logger = logging.getLogger(__name__)


class CatalogSearchService:
    def __init__(self, manager: CatalogIndexManager, merger: MultiSourceMerger, settings: Settings) -> None:
        self.manager = manager
        self.merger = merger
        self.settings = settings

    @classmethod
    def from_store(cls, store, settings: Settings) -> "CatalogSearchService":
        """Wire a manager and merger to a ``CatalogStore``."""
        manager = CatalogIndexManager(
            store.fetch_primary_catalog,
            max_records=settings.primary_fetch_limit,
            build_timeout=settings.build_timeout_seconds,
        )
        merger = MultiSourceMerger(
            manager,
            fetch_primary=store.fetch_primary_catalog,
            search_licensed=store.search_licensed,
            search_ebooks=store.search_ebooks,
            fallback_fetch_limit=settings.primary_fetch_limit,
        )
        return cls(manager, merger, settings)

    def search(self, query_text: str) -> SearchResult:
        return self.merger.merged_search(
            query_text,
            limit_per_source=self.settings.secondary_result_limit,
            primary_limit=self.settings.primary_result_limit,
        )

    def suggest(self, query_text: str, limit: Optional[int] = None) -> List[str]:
        """Title completions for ``query_text``.

        Returns an empty list for texts shorter than ``suggest_min_chars``
        and when no index is available (suggestions have no fallback).
        """
        text = (query_text or "").strip()
        if len(text) < self.settings.suggest_min_chars:
            return []
        if limit is None:
            limit = self.settings.suggest_limit
        limit = max(1, min(limit, self.settings.suggest_max_limit))
        snapshot = self.manager.get_snapshot()
        if snapshot is None:
            logger.warning("No catalogue index; no suggestions for %r", text)
            return []
        return suggest_titles(snapshot, text, limit)

    def invalidate(self) -> None:
        self.manager.invalidate()

    def rebuild(self) -> IndexStatus:
        self.manager.rebuild()
        return self.manager.status()

    def status(self) -> IndexStatus:
        return self.manager.status()
