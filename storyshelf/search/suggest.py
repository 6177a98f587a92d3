"""
Autocomplete over the titles held in an ``IndexSnapshot``.

The last term of the typed text is treated as incomplete and matched
by prefix; every earlier term must match exactly. Candidate titles
come from records satisfying all of those terms, in any field.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set

from .index import IndexSnapshot
from .tokenizer import tokenize


def _docs_with_term(snapshot: IndexSnapshot, term: str) -> Set[int]:
    return {p.doc for p in snapshot.postings(term)}


def suggest(snapshot: IndexSnapshot, prefix_text: str, limit: int = 5) -> List[str]:
    """Return up to ``limit`` distinct titles completing ``prefix_text``.

    Ranking: number of distinct matched terms (desc), then the record's
    total frequency over those terms (desc), then title (asc).
    """
    if limit <= 0 or snapshot.is_empty:
        return []
    terms = tokenize(prefix_text)
    if not terms:
        return []
    filters = list(dict.fromkeys(terms[:-1]))
    active = terms[-1]

    candidates: Optional[Set[int]] = None
    for term in filters:
        docs = _docs_with_term(snapshot, term)
        candidates = docs if candidates is None else candidates & docs
        if not candidates:
            return []

    expansions = snapshot.terms_with_prefix(active)
    matched: Dict[int, Set[str]] = {}
    frequency: Dict[int, int] = {}
    for term in expansions:
        for posting in snapshot.postings(term):
            if candidates is not None and posting.doc not in candidates:
                continue
            matched.setdefault(posting.doc, set()).add(term)
            frequency[posting.doc] = frequency.get(posting.doc, 0) + posting.term_frequency

    expanded = set(expansions)
    for term in filters:
        if term in expanded:
            continue
        for posting in snapshot.postings(term):
            if posting.doc in matched:
                matched[posting.doc].add(term)
                frequency[posting.doc] += posting.term_frequency

    ranked = sorted(
        matched,
        key=lambda doc: (
            -len(matched[doc]),
            -frequency[doc],
            snapshot.record_at(doc).title,
        ),
    )
    suggestions: List[str] = []
    seen_titles: Set[str] = set()
    for doc in ranked:
        title = snapshot.record_at(doc).title
        if title in seen_titles:
            continue
        seen_titles.add(title)
        suggestions.append(title)
        if len(suggestions) >= limit:
            break
    return suggestions
