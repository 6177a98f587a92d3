"""
Inverted index over catalogue records.

``build()`` turns a batch of ``Record`` objects into an immutable
``IndexSnapshot``: a mapping from term to postings plus the records
themselves for result materialisation. Records are stored in ascending
id order and every posting refers to its record by position in that
order (``doc``), which lets the query engine break score ties by
position alone.

Each posting also carries a precomputed contribution
``field_weight * log(1 + term_frequency)``; per term these are kept as
read-only numpy arrays so a query can accumulate scores for all
matching records at once.
"""

from __future__ import annotations

import bisect
import logging
import math
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Sequence, Tuple, Union

import numpy as np

from ..models import Record
from .tokenizer import tokenize


logger = logging.getLogger(__name__)

RecordId = Union[int, str]

TITLE = "title"
AUTHOR = "author"
GENRE = "genre"

# Static per-field importance; title > author > genre.
FIELD_WEIGHTS: Mapping[str, float] = MappingProxyType({TITLE: 2.0, AUTHOR: 1.0, GENRE: 0.5})


def record_sort_key(record_id: RecordId) -> Tuple[int, int, str]:
    """Total order over ids: integers numerically, then strings lexically."""
    if isinstance(record_id, int) and not isinstance(record_id, bool):
        return (0, record_id, "")
    return (1, 0, str(record_id))


@dataclass(frozen=True)
class Posting:
    """One (term, record, field) occurrence."""

    record_id: RecordId
    doc: int
    field: str
    field_weight: float
    term_frequency: int

    @property
    def weight(self) -> float:
        return self.field_weight * math.log1p(self.term_frequency)


class _TermArrays:
    __slots__ = ("docs", "weights", "frequencies")

    def __init__(self, postings: Sequence[Posting]) -> None:
        self.docs = np.fromiter((p.doc for p in postings), dtype=np.int64, count=len(postings))
        self.frequencies = np.fromiter(
            (p.term_frequency for p in postings), dtype=np.int64, count=len(postings)
        )
        field_weights = np.fromiter(
            (p.field_weight for p in postings), dtype=np.float64, count=len(postings)
        )
        self.weights = field_weights * np.log1p(self.frequencies)
        for arr in (self.docs, self.frequencies, self.weights):
            arr.setflags(write=False)


class IndexSnapshot:
    """A fully built, read-only index.

    Safe for concurrent readers without locking: nothing in a snapshot
    is mutated after ``__init__`` returns.
    """

    def __init__(
        self,
        records: Sequence[Record],
        postings: Mapping[str, Sequence[Posting]],
        built_at: float,
        source_record_count: int,
    ) -> None:
        self._records: Tuple[Record, ...] = tuple(records)
        self._by_id: Mapping[RecordId, Record] = MappingProxyType({r.id: r for r in self._records})
        self._postings: Mapping[str, Tuple[Posting, ...]] = MappingProxyType(
            {term: tuple(plist) for term, plist in postings.items()}
        )
        self._arrays: Mapping[str, _TermArrays] = MappingProxyType(
            {term: _TermArrays(plist) for term, plist in self._postings.items()}
        )
        self._terms: Tuple[str, ...] = tuple(sorted(self._postings))
        self.built_at = built_at
        self.source_record_count = source_record_count

    # -- records -----------------------------------------------------------

    @property
    def records(self) -> Tuple[Record, ...]:
        """Indexed records in ascending id order."""
        return self._records

    @property
    def record_count(self) -> int:
        return len(self._records)

    def record(self, record_id: RecordId) -> Record:
        return self._by_id[record_id]

    def record_at(self, doc: int) -> Record:
        return self._records[doc]

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._by_id

    # -- terms -------------------------------------------------------------

    @property
    def term_count(self) -> int:
        return len(self._terms)

    @property
    def is_empty(self) -> bool:
        return not self._terms

    def terms(self) -> Iterator[str]:
        return iter(self._terms)

    def postings(self, term: str) -> Tuple[Posting, ...]:
        return self._postings.get(term, ())

    def term_arrays(self, term: str):
        return self._arrays.get(term)

    def terms_with_prefix(self, prefix: str) -> List[str]:
        """Indexed terms starting with ``prefix``, in sorted order."""
        if not prefix:
            return []
        start = bisect.bisect_left(self._terms, prefix)
        matched: List[str] = []
        for term in self._terms[start:]:
            if not term.startswith(prefix):
                break
            matched.append(term)
        return matched

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(records={self.record_count}, "
            f"terms={self.term_count}, built_at={self.built_at:.3f})"
        )


class EmptyIndex(IndexSnapshot):
    """Snapshot of an empty catalogue: valid, zero terms."""

    def __init__(self, built_at: float = 0.0) -> None:
        super().__init__((), {}, built_at=built_at, source_record_count=0)


def _field_texts(record: Record) -> Iterable[Tuple[str, Iterable[str]]]:
    yield TITLE, (record.title,)
    yield AUTHOR, (record.author,)
    yield GENRE, record.genres


def build(records: Iterable[Record]) -> IndexSnapshot:
    """Build an index snapshot from already materialised records.

    Parameters
    ----------
    records : Iterable[Record]
        The records to index. Ids must be unique; a repeated id keeps
        its first occurrence and the rest are skipped with a warning.

    Returns
    -------
    IndexSnapshot
        A new snapshot, or an ``EmptyIndex`` when ``records`` is empty.
    """
    started = time.monotonic()
    batch = list(records)
    if not batch:
        return EmptyIndex(built_at=time.monotonic())

    unique: Dict[RecordId, Record] = {}
    for record in batch:
        if record.id in unique:
            logger.warning("Duplicate record id %r skipped while indexing", record.id)
            continue
        unique[record.id] = record
    ordered = sorted(unique.values(), key=lambda r: record_sort_key(r.id))

    # term -> {(doc, field): term frequency}; insertion order is doc order.
    counts: Dict[str, Dict[Tuple[int, str], int]] = {}
    for doc, record in enumerate(ordered):
        for field, texts in _field_texts(record):
            for text in texts:
                for term in tokenize(text):
                    per_term = counts.setdefault(term, {})
                    key = (doc, field)
                    per_term[key] = per_term.get(key, 0) + 1

    postings: Dict[str, List[Posting]] = {}
    for term, occurrences in counts.items():
        postings[term] = [
            Posting(
                record_id=ordered[doc].id,
                doc=doc,
                field=field,
                field_weight=FIELD_WEIGHTS[field],
                term_frequency=tf,
            )
            for (doc, field), tf in occurrences.items()
        ]

    snapshot = IndexSnapshot(
        ordered,
        postings,
        built_at=time.monotonic(),
        source_record_count=len(batch),
    )
    logger.debug(
        "Indexed %d records (%d terms) in %.3fs",
        snapshot.record_count,
        snapshot.term_count,
        time.monotonic() - started,
    )
    return snapshot
