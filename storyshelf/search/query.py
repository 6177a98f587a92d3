"""
Relevance queries against an ``IndexSnapshot``.

Scoring: every posting matched by a query term adds
``field_weight * log(1 + term_frequency) * prefix_multiplier`` to its
record's score. Contributions are summed across query terms, so a
record matching more distinct terms outranks one matching fewer, all
else equal. A query term with no exact postings is expanded to every
indexed term it prefixes, at half weight, so partially typed words
still find their records.

Results are ordered by descending score, then ascending record id.
"""

from __future__ import annotations

from typing import List, NamedTuple, Tuple

import numpy as np

from .index import IndexSnapshot, RecordId
from .tokenizer import tokenize

PREFIX_MULTIPLIER = 0.5


class ScoredId(NamedTuple):
    record_id: RecordId
    score: float


def _unique_terms(query_text: str) -> List[str]:
    seen = set()
    terms: List[str] = []
    for term in tokenize(query_text):
        if term not in seen:
            seen.add(term)
            terms.append(term)
    return terms


def expand_term(snapshot: IndexSnapshot, term: str) -> List[Tuple[str, float]]:
    """Indexed terms a query term matches, with their multipliers."""
    if snapshot.term_arrays(term) is not None:
        return [(term, 1.0)]
    return [(t, PREFIX_MULTIPLIER) for t in snapshot.terms_with_prefix(term)]


def query(snapshot: IndexSnapshot, query_text: str, limit: int = 20) -> List[ScoredId]:
    """Rank the snapshot's records against ``query_text``.

    An empty query, or one made only of punctuation, returns no results.
    """
    if limit <= 0 or snapshot.is_empty:
        return []
    terms = _unique_terms(query_text)
    if not terms:
        return []

    scores = np.zeros(snapshot.record_count, dtype=np.float64)
    matched = np.zeros(snapshot.record_count, dtype=bool)
    for term in terms:
        for indexed_term, multiplier in expand_term(snapshot, term):
            arrays = snapshot.term_arrays(indexed_term)
            np.add.at(scores, arrays.docs, arrays.weights * multiplier)
            matched[arrays.docs] = True

    docs = np.flatnonzero(matched)
    if docs.size == 0:
        return []
    # Docs are in ascending id order, so the secondary key breaks ties by id.
    order = np.lexsort((docs, -scores[docs]))[:limit]
    return [
        ScoredId(snapshot.record_at(int(doc)).id, float(scores[doc]))
        for doc in docs[order]
    ]
