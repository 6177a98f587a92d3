"""
Linear scan used when no index is available.

Matches the (lowercased) query as a substring of a record's title,
author or any single genre. There is no ranking: results keep the
order the records were supplied in.
"""

from __future__ import annotations

from typing import Iterable, List

from ..models import Record
from .index import RecordId


def _norm(s: str) -> str:
    return (s or "").lower()


def matches(record: Record, needle: str) -> bool:
    if needle in _norm(record.title) or needle in _norm(record.author):
        return True
    return any(needle in _norm(genre) for genre in record.genres)


def scan_records(records: Iterable[Record], query_text: str, limit: int = 20) -> List[Record]:
    """Matching records in input order, truncated to ``limit``."""
    needle = _norm(query_text).strip()
    if not needle or limit <= 0:
        return []
    found: List[Record] = []
    for record in records:
        if matches(record, needle):
            found.append(record)
            if len(found) >= limit:
                break
    return found


def scan(records: Iterable[Record], query_text: str, limit: int = 20) -> List[RecordId]:
    """Ids of matching records in input order, truncated to ``limit``."""
    return [record.id for record in scan_records(records, query_text, limit)]
