"""
Fan-out search across the three catalogue partitions.

The primary partition is answered by the index (or by the linear scan
when no index is usable). The licensed and ebook partitions are asked
directly for substring matches. The combined list is a plain
concatenation in that order: primary, licensed, ebook. No attempt is
made to put scores from different sources on a common scale.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..models import CatalogItem, Hit, Record, SearchResult, SourceType
from .errors import SourceUnavailable
from .fallback import scan_records
from .manager import CatalogIndexManager, fetch_with_timeout
from .query import query

logger = logging.getLogger(__name__)

PrimaryFetcher = Callable[[int], Iterable[Record]]
SourceSearch = Callable[[str, int], Sequence[CatalogItem]]


def _record_hit(record: Record, rank: int, score=None) -> Hit:
    return Hit(
        record_id=record.id,
        source_type="primary",
        rank=rank,
        score=score,
        title=record.title,
        author=record.author,
        genres=list(record.genres),
    )


def _item_hit(item: CatalogItem, source_type: SourceType, rank: int) -> Hit:
    return Hit(
        record_id=item.id,
        source_type=source_type,
        rank=rank,
        title=item.title,
        author=item.author,
        genres=list(item.genres),
        purchase_links=list(item.purchase_links),
    )


class MultiSourceMerger:
    """Queries every partition and merges the hits.

    Parameters
    ----------
    manager : CatalogIndexManager
        Supplies the primary index snapshot.
    fetch_primary : Callable[[int], Iterable[Record]]
        Bulk fetch of primary records, used only for the fallback scan.
        It gets the same deadline as an index build.
    search_licensed, search_ebooks : Callable[[str, int], Sequence[CatalogItem]]
        Substring searches against the secondary partitions.
    fallback_fetch_limit : int
        How many primary records the fallback scan looks at.
    """

    def __init__(
        self,
        manager: CatalogIndexManager,
        fetch_primary: PrimaryFetcher,
        search_licensed: SourceSearch,
        search_ebooks: SourceSearch,
        fallback_fetch_limit: int = 500,
    ) -> None:
        self.manager = manager
        self._fetch_primary = fetch_primary
        self._secondary: List[Tuple[SourceType, SourceSearch]] = [
            ("licensed", search_licensed),
            ("ebook", search_ebooks),
        ]
        self._fallback_fetch_limit = fallback_fetch_limit

    def merged_search(
        self, query_text: str, limit_per_source: int = 20, primary_limit: Optional[int] = None
    ) -> SearchResult:
        """Search all partitions for ``query_text``.

        Parameters
        ----------
        query_text : str
            Free text typed by the reader.
        limit_per_source : int
            Cap on hits from each secondary source, and from the
            primary source unless ``primary_limit`` is given.
        primary_limit : int, optional
            Separate cap for the primary source.

        Returns
        -------
        SearchResult
            Empty for a blank query. Never raises for index or source
            failures: the failing part is degraded or omitted.
        """
        text = (query_text or "").strip()
        if not text:
            return SearchResult(query=query_text or "")
        if primary_limit is None:
            primary_limit = limit_per_source

        primary_hits, degraded = self._primary_hits(text, primary_limit)
        result = SearchResult(query=text, primary_hits=primary_hits, degraded=degraded)
        for source_type, search in self._secondary:
            try:
                hits = self._source_hits(source_type, search, text, limit_per_source)
            except SourceUnavailable as exc:
                logger.warning("Omitting %s hits: %s", exc.source_type, exc)
                result.unavailable_sources.append(source_type)
                continue
            if source_type == "licensed":
                result.licensed_hits = hits
            else:
                result.ebook_hits = hits

        result.combined_hits = result.primary_hits + result.licensed_hits + result.ebook_hits
        return result

    def _primary_hits(self, text: str, limit: int) -> Tuple[List[Hit], bool]:
        snapshot = self.manager.get_snapshot()
        if snapshot is not None:
            try:
                scored = query(snapshot, text, limit)
            except Exception:
                logger.exception("Index query failed for %r; scanning instead", text)
            else:
                return [
                    _record_hit(snapshot.record(s.record_id), rank, s.score)
                    for rank, s in enumerate(scored, start=1)
                ], False

        logger.warning("Catalogue index unavailable; serving %r from a linear scan", text)
        try:
            records = fetch_with_timeout(
                self._fetch_primary, self._fallback_fetch_limit, self.manager.build_timeout
            )
        except Exception as exc:
            logger.warning("Primary catalogue unavailable, returning no primary hits: %s", exc)
            return [], True
        found = scan_records(records, text, limit)
        return [_record_hit(record, rank) for rank, record in enumerate(found, start=1)], True

    @staticmethod
    def _source_hits(
        source_type: SourceType, search: SourceSearch, text: str, limit: int
    ) -> List[Hit]:
        try:
            items = list(search(text, limit))
        except Exception as exc:
            raise SourceUnavailable(source_type, exc) from exc
        return [_item_hit(item, source_type, rank) for rank, item in enumerate(items[:limit], start=1)]
