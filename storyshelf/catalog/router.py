"""
Route definitions for the catalogue API.

Endpoints under /api:
- GET    /search                 : merged search over stories, licensed works and ebooks
- GET    /suggestions            : title autocomplete
- GET    /search/status          : state of the catalogue index
- POST   /admin/search/rebuild   : rebuild the catalogue index now
- GET    /stories, /stories/{id} : browse stories
- POST/PUT/DELETE /stories      : edit stories (invalidates the index)
- GET/POST /licensed-stories, /ebooks
- GET    /genres
- GET    /debug/catalog          : item counts per partition

Authentication for the admin and editing routes is handled in front of
this service and is not checked here.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from typing_extensions import Literal

from ..models import CatalogItem, CreateItemRequest, SourceType, UpdateStoryRequest
from ..search.errors import BuildFailure
from ..search.service import CatalogSearchService
from .schemas import IndexStatusResponse, PaginatedItems, SearchResponse, SuggestionResponse
from .store import CatalogStore

StatusFilter = Literal["ongoing", "completed"]

router = APIRouter(prefix="/api", tags=["catalog"])


def _normalize(s: Optional[str]) -> str:
    return (s or "").strip().lower()


def get_store(request: Request) -> CatalogStore:
    return request.app.state.store


def get_search_service(request: Request) -> CatalogSearchService:
    return request.app.state.search_service


def _paginate(items: List[CatalogItem], page: int, page_size: int) -> PaginatedItems:
    total = len(items)
    total_pages = max(1, (total + page_size - 1) // page_size) if total > 0 else 1
    page = min(max(1, page), total_pages)
    start = (page - 1) * page_size
    return PaginatedItems(
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages,
        items=items[start:start + page_size],
    )


# ---------------------------------------------------------------------------
# Search


@router.get("/search", response_model=SearchResponse)
def search(
    q: Optional[str] = Query(default=None, description="Free-text search (title/author/genre)"),
    service: CatalogSearchService = Depends(get_search_service),
) -> SearchResponse:
    """Search every partition.

    A missing or blank ``q`` returns empty lists. Primary hits are
    ranked by the index; ``degraded`` is set when they came from the
    linear scan instead.
    """
    result = service.search(q or "")
    return SearchResponse(**result.model_dump())


@router.get("/suggestions", response_model=SuggestionResponse)
def suggestions(
    q: Optional[str] = Query(default=None, description="Text typed so far"),
    limit: Optional[int] = Query(default=None, ge=1, le=50, description="Maximum suggestions"),
    service: CatalogSearchService = Depends(get_search_service),
) -> SuggestionResponse:
    return SuggestionResponse(suggestions=service.suggest(q or "", limit))


@router.get("/search/status", response_model=IndexStatusResponse)
def search_status(service: CatalogSearchService = Depends(get_search_service)) -> IndexStatusResponse:
    return IndexStatusResponse.from_status(service.status())


@router.post("/admin/search/rebuild", response_model=IndexStatusResponse)
def rebuild_index(service: CatalogSearchService = Depends(get_search_service)) -> IndexStatusResponse:
    try:
        status = service.rebuild()
    except BuildFailure as exc:
        raise HTTPException(status_code=503, detail=f"Index rebuild failed: {exc}")
    return IndexStatusResponse.from_status(status)


# ---------------------------------------------------------------------------
# Stories (primary partition)


@router.get("/stories", response_model=PaginatedItems)
def list_stories(
    genre: Optional[str] = Query(default=None, description="Filter by genre"),
    status: Optional[StatusFilter] = Query(default=None, description="Filter by status"),
    page: int = Query(default=1, ge=1, description="Current page (1-indexed)"),
    page_size: int = Query(default=10, ge=1, le=200, description="Page size"),
    store: CatalogStore = Depends(get_store),
) -> PaginatedItems:
    # Newest first, as on the home page.
    items = sorted(store.list_items("primary"), key=lambda i: i.id, reverse=True)
    ngenre = _normalize(genre)
    if ngenre:
        items = [i for i in items if any(_normalize(g) == ngenre for g in i.genres)]
    if status:
        items = [i for i in items if i.status == status]
    return _paginate(items, page, page_size)


@router.get("/stories/{story_id}", response_model=CatalogItem)
def get_story(story_id: int, store: CatalogStore = Depends(get_store)) -> CatalogItem:
    item = store.get_item("primary", story_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Story not found")
    return item


@router.post("/stories", response_model=CatalogItem, status_code=201)
def add_story(
    req: CreateItemRequest,
    store: CatalogStore = Depends(get_store),
    service: CatalogSearchService = Depends(get_search_service),
) -> CatalogItem:
    try:
        item = store.add_item("primary", req)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    service.invalidate()
    return item


@router.put("/stories/{story_id}", response_model=CatalogItem)
def update_story(
    story_id: int,
    req: UpdateStoryRequest,
    store: CatalogStore = Depends(get_store),
    service: CatalogSearchService = Depends(get_search_service),
) -> CatalogItem:
    try:
        item = store.update_item("primary", story_id, req)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if item is None:
        raise HTTPException(status_code=404, detail="Story not found")
    service.invalidate()
    return item


@router.delete("/stories/{story_id}")
def delete_story(
    story_id: int,
    store: CatalogStore = Depends(get_store),
    service: CatalogSearchService = Depends(get_search_service),
):
    if not store.delete_item("primary", story_id):
        raise HTTPException(status_code=404, detail="Story not found")
    service.invalidate()
    return {"status": "ok"}


@router.get("/genres", response_model=List[str])
def list_genres(store: CatalogStore = Depends(get_store)) -> List[str]:
    return store.genres()


# ---------------------------------------------------------------------------
# Licensed works and ebooks
#
# These partitions are searched directly in storage, so editing them
# does not touch the index.


def _list_partition(source_type: SourceType, store: CatalogStore, page: int, page_size: int) -> PaginatedItems:
    return _paginate(store.list_items(source_type), page, page_size)


def _add_to_partition(source_type: SourceType, req: CreateItemRequest, store: CatalogStore) -> CatalogItem:
    try:
        return store.add_item(source_type, req)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/licensed-stories", response_model=PaginatedItems)
def list_licensed(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=200),
    store: CatalogStore = Depends(get_store),
) -> PaginatedItems:
    return _list_partition("licensed", store, page, page_size)


@router.post("/licensed-stories", response_model=CatalogItem, status_code=201)
def add_licensed(req: CreateItemRequest, store: CatalogStore = Depends(get_store)) -> CatalogItem:
    return _add_to_partition("licensed", req, store)


@router.get("/ebooks", response_model=PaginatedItems)
def list_ebooks(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=200),
    store: CatalogStore = Depends(get_store),
) -> PaginatedItems:
    return _list_partition("ebook", store, page, page_size)


@router.post("/ebooks", response_model=CatalogItem, status_code=201)
def add_ebook(req: CreateItemRequest, store: CatalogStore = Depends(get_store)) -> CatalogItem:
    return _add_to_partition("ebook", req, store)


@router.get("/debug/catalog")
def debug_catalog(store: CatalogStore = Depends(get_store)):
    """
    Debug endpoint to verify the seed data is loaded.
    Visit: http://127.0.0.1:8000/api/debug/catalog
    """
    return {
        "stories": store.count("primary"),
        "licensed": store.count("licensed"),
        "ebooks": store.count("ebook"),
    }
