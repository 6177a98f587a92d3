"""HTTP tests for the search and catalogue routes."""

import pytest
from fastapi.testclient import TestClient

from storyshelf.catalog.store import CatalogStore
from storyshelf.config import Settings
from storyshelf.main import create_app


class BrokenPrimaryStore(CatalogStore):
    def fetch_primary_catalog(self, max_count):
        raise ConnectionError("database is down")


@pytest.fixture
def settings():
    return Settings(build_timeout_seconds=5)


@pytest.fixture
def client(settings, catalog_data):
    app = create_app(settings=settings, store=CatalogStore(catalog_data))
    with TestClient(app) as c:
        yield c


@pytest.fixture
def broken_client(settings, catalog_data):
    app = create_app(settings=settings, store=BrokenPrimaryStore(catalog_data))
    with TestClient(app) as c:
        yield c


def test_health_check(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_search_merges_sources(client):
    resp = client.get("/api/search", params={"q": "dragon"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["degraded"] is False
    assert [h["record_id"] for h in body["primary_hits"]] == [6, 7]
    assert [h["title"] for h in body["licensed_hits"]] == ["Dragon Keeper"]
    assert [h["title"] for h in body["ebook_hits"]] == ["Dragon Rider"]
    assert [h["source_type"] for h in body["combined_hits"]] == ["primary", "primary", "licensed", "ebook"]


def test_search_without_query_is_empty(client):
    for params in ({}, {"q": ""}, {"q": "  "}):
        body = client.get("/api/search", params=params).json()
        assert body["combined_hits"] == []
        assert body["primary_hits"] == body["licensed_hits"] == body["ebook_hits"] == []
    assert client.get("/api/search/status").json()["state"] == "uninitialized"


def test_search_ignores_accents(client):
    body = client.get("/api/search", params={"q": "dau pha"}).json()
    assert body["primary_hits"][0]["title"] == "Đấu Phá Thương Khung"


def test_suggestions(client):
    assert client.get("/api/suggestions", params={"q": "roh"}).json() == {"suggestions": ["Rohan's Journey"]}
    assert client.get("/api/suggestions", params={"q": "drag"}).json()["suggestions"] == [
        "Dragon Moon",
        "Dragon Sky",
    ]
    assert client.get("/api/suggestions", params={"q": "drag", "limit": 1}).json()["suggestions"] == [
        "Dragon Moon"
    ]


def test_suggestions_need_two_characters(client):
    assert client.get("/api/suggestions", params={"q": "r"}).json() == {"suggestions": []}
    assert client.get("/api/suggestions").json() == {"suggestions": []}


def test_adding_a_story_makes_it_searchable(client):
    client.get("/api/search", params={"q": "dragon"})
    resp = client.post("/api/stories", json={"title": "Dragon Sun", "author": "Chi", "genres": "fantasy"})
    assert resp.status_code == 201
    new_id = resp.json()["id"]

    body = client.get("/api/search", params={"q": "dragon"}).json()
    assert new_id in [h["record_id"] for h in body["primary_hits"]]
    assert client.get("/api/search/status").json()["build_count"] == 2


def test_deleting_a_story_removes_it_from_results(client):
    client.get("/api/search", params={"q": "dragon"})
    assert client.delete("/api/stories/6").status_code == 200
    body = client.get("/api/search", params={"q": "dragon"}).json()
    assert [h["record_id"] for h in body["primary_hits"]] == [7]
    assert client.delete("/api/stories/6").status_code == 404


def test_updating_a_story_reindexes_it(client):
    client.get("/api/search", params={"q": "dragon"})
    resp = client.put("/api/stories/8", json={"title": "Dragon Journey"})
    assert resp.status_code == 200
    body = client.get("/api/search", params={"q": "dragon"}).json()
    assert [h["record_id"] for h in body["primary_hits"]] == [6, 7, 8]


def test_duplicate_story_is_rejected(client):
    resp = client.post("/api/stories", json={"title": "Dragon Sky"})
    assert resp.status_code == 400


def test_update_to_a_taken_slug_is_rejected(client):
    resp = client.put("/api/stories/8", json={"slug": "dragon-sky"})
    assert resp.status_code == 400
    assert client.get("/api/stories/8").json()["slug"] == "rohan-s-journey"


def test_rebuild_endpoint(client):
    resp = client.post("/api/admin/search/rebuild")
    assert resp.status_code == 200
    body = resp.json()
    assert body["state"] == "ready"
    assert body["record_count"] == 5
    assert body["stale"] is False


def test_degraded_search_when_primary_store_fails(broken_client):
    body = broken_client.get("/api/search", params={"q": "dragon"}).json()
    assert body["degraded"] is True
    assert body["primary_hits"] == []
    assert [h["source_type"] for h in body["combined_hits"]] == ["licensed", "ebook"]
    assert broken_client.get("/api/search/status").json()["state"] == "failed"


def test_rebuild_failure_is_503(broken_client):
    assert broken_client.post("/api/admin/search/rebuild").status_code == 503


def test_suggestions_without_index_are_empty(broken_client):
    assert broken_client.get("/api/suggestions", params={"q": "drag"}).json() == {"suggestions": []}


def test_list_stories_with_filters(client):
    body = client.get("/api/stories", params={"page_size": 2}).json()
    assert body["total"] == 5
    assert body["total_pages"] == 3
    assert [i["id"] for i in body["items"]] == [8, 7]

    body = client.get("/api/stories", params={"genre": "tiên hiệp"}).json()
    assert [i["id"] for i in body["items"]] == [2, 1]


def test_get_story(client):
    assert client.get("/api/stories/1").json()["title"] == "Đấu Phá Thương Khung"
    assert client.get("/api/stories/404").status_code == 404


def test_add_licensed_and_ebook(client):
    resp = client.post(
        "/api/licensed-stories",
        json={"title": "Dragon Tales", "purchase_links": [{"name": "Tiki", "url": "https://tiki.vn/x"}]},
    )
    assert resp.status_code == 201
    assert client.post("/api/ebooks", json={"title": "Dragon Atlas"}).status_code == 201

    body = client.get("/api/search", params={"q": "dragon"}).json()
    assert [h["title"] for h in body["licensed_hits"]] == ["Dragon Keeper", "Dragon Tales"]
    assert [h["title"] for h in body["ebook_hits"]] == ["Dragon Rider", "Dragon Atlas"]
    assert client.get("/api/licensed-stories").json()["total"] == 3


def test_genres_endpoint(client):
    assert "fantasy" in client.get("/api/genres").json()


def test_debug_catalog(client):
    assert client.get("/api/debug/catalog").json() == {"stories": 5, "licensed": 2, "ebooks": 2}
