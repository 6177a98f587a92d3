"""Tests for relevance queries."""

import math

import pytest

from storyshelf.search.index import FIELD_WEIGHTS, GENRE, TITLE, build
from storyshelf.search.query import PREFIX_MULTIPLIER, query

from tests.factories import make_records


def _ids(results):
    return [r.record_id for r in results]


class TestEndToEnd:
    """The two-dragon catalogue used throughout the docs."""

    @pytest.fixture
    def snapshot(self, dragon_records):
        return build(dragon_records)

    def test_equal_scores_break_ties_by_ascending_id(self, snapshot):
        results = query(snapshot, "dragon", limit=10)
        assert _ids(results) == [1, 2]
        assert results[0].score == pytest.approx(results[1].score)

    def test_genre_only_match(self, snapshot):
        assert _ids(query(snapshot, "romance", limit=10)) == [2]

    def test_no_match(self, snapshot):
        assert query(snapshot, "zzz", limit=10) == []

    def test_case_and_accents_are_ignored(self, snapshot):
        assert _ids(query(snapshot, "DRÁGON", limit=10)) == [1, 2]


def test_empty_and_punctuation_queries_return_nothing(dragon_records):
    snapshot = build(dragon_records)
    assert query(snapshot, "", limit=10) == []
    assert query(snapshot, "   ", limit=10) == []
    assert query(snapshot, "?!...", limit=10) == []


def test_title_match_outscores_genre_match():
    snapshot = build(make_records(
        (1, "Moon", "", ["dragon"]),
        (2, "Dragon", "", []),
    ))
    results = query(snapshot, "dragon", limit=10)
    assert _ids(results) == [2, 1]
    assert results[0].score == pytest.approx(FIELD_WEIGHTS[TITLE] * math.log(2))
    assert results[1].score == pytest.approx(FIELD_WEIGHTS[GENRE] * math.log(2))


def test_more_matched_terms_rank_higher():
    snapshot = build(make_records(
        (1, "Dragon", "", []),
        (2, "Dragon Moon", "", []),
    ))
    assert _ids(query(snapshot, "dragon moon", limit=10)) == [2, 1]


def test_repeated_query_terms_count_once():
    snapshot = build(make_records((1, "Dragon", "", [])))
    once = query(snapshot, "dragon", limit=10)[0].score
    twice = query(snapshot, "dragon dragon", limit=10)[0].score
    assert once == pytest.approx(twice)


def test_prefix_fallback_at_reduced_weight(dragon_records):
    snapshot = build(dragon_records)
    results = query(snapshot, "drag", limit=10)
    assert _ids(results) == [1, 2]
    expected = FIELD_WEIGHTS[TITLE] * math.log(2) * PREFIX_MULTIPLIER
    assert results[0].score == pytest.approx(expected)


def test_prefix_fallback_only_when_no_exact_postings():
    snapshot = build(make_records(
        (1, "Dragon", "", []),
        (2, "Drag Race", "", []),
    ))
    assert _ids(query(snapshot, "drag", limit=10)) == [2]


def test_limit_truncates():
    snapshot = build(make_records(*[(i, f"Story {i}", "", []) for i in range(1, 11)]))
    assert _ids(query(snapshot, "story", limit=3)) == [1, 2, 3]
    assert query(snapshot, "story", limit=0) == []


def test_every_title_term_finds_its_record():
    records = make_records(
        (1, "Đấu Phá Thương Khung", "Thiên Tàm Thổ Đậu", ["Tiên Hiệp"]),
        (2, "Phàm Nhân Tu Tiên", "Vong Ngữ", ["Tiên Hiệp"]),
        (3, "Rohan's Journey", "Mira Vale", ["adventure"]),
    )
    snapshot = build(records)
    for record in records:
        for word in record.title.split():
            assert record.id in _ids(query(snapshot, word, limit=len(records)))


def test_rebuild_gives_identical_ranking(dragon_records):
    first = build(dragon_records)
    second = build(list(dragon_records))
    for text in ("dragon", "fantasy", "dra", "bao romance"):
        assert query(first, text, limit=10) == query(second, text, limit=10)


def test_string_ids_tie_break_lexically():
    snapshot = build(make_records(("b", "Same", "", []), ("a", "Same", "", [])))
    assert _ids(query(snapshot, "same", limit=10)) == ["a", "b"]
