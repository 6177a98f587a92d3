"""
In-memory data store for the three catalogue partitions.

``CatalogStore`` keeps serialised stories (the primary partition),
licensed works and ebooks as lists of ``CatalogItem``. It is seeded
from a JSON file with ``stories``, ``licensed`` and ``ebooks`` arrays;
genres may be given either as a list or as the comma-separated string
used by the database export. If you move the catalogue to a real
database, keep the three query methods used by search
(``fetch_primary_catalog``, ``search_licensed``, ``search_ebooks``)
with the same contracts.

All access is synchronised with a single ``threading.Lock`` so the
store can be shared by concurrent request handlers.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from pathlib import Path
from typing import Dict, List, Optional

import unidecode
from pydantic import ValidationError

from ..models import CatalogItem, CreateItemRequest, Record, SourceType, UpdateStoryRequest

logger = logging.getLogger(__name__)

_PARTITIONS: Dict[SourceType, str] = {
    "primary": "stories",
    "licensed": "licensed",
    "ebook": "ebooks",
}


def _norm(s: Optional[str]) -> str:
    """Normalize a string for case-insensitive comparison."""
    return (s or "").strip().lower()


def slugify(title: str) -> str:
    """Build a URL slug from a title (accents removed, dashes between words)."""
    text = unidecode.unidecode((title or "").lower()).lower()
    return re.sub(r"[^a-z0-9]+", "-", text).strip("-")


def _matches(item: CatalogItem, needle: str) -> bool:
    """Substring test over title, author and the comma-joined genres.

    Mirrors a SQL ``LIKE '%needle%'`` over the stored columns.
    """
    return (
        needle in _norm(item.title)
        or needle in _norm(item.author)
        or needle in _norm(", ".join(item.genres))
    )


class CatalogStore:
    def __init__(self, data: Optional[Dict[str, List[dict]]] = None) -> None:
        self._lock = threading.Lock()
        self._items: Dict[SourceType, List[CatalogItem]] = {p: [] for p in _PARTITIONS}
        self._next_id: Dict[SourceType, int] = {p: 1 for p in _PARTITIONS}
        if data:
            self._seed(data)

    @classmethod
    def from_file(cls, path: Path) -> "CatalogStore":
        """Load a store from a JSON seed file.

        A missing or malformed file yields an empty store; the problem is
        logged rather than raised so the site can still start.
        """
        try:
            with Path(path).open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Could not load catalogue data from %s: %s", path, exc)
            return cls()
        if not isinstance(raw, dict):
            logger.warning("Catalogue data in %s is not an object; ignoring it", path)
            return cls()
        return cls(raw)

    def _seed(self, data: Dict[str, List[dict]]) -> None:
        for source_type, key in _PARTITIONS.items():
            for entry in data.get(key) or []:
                try:
                    item = CatalogItem.model_validate(entry)
                except ValidationError as exc:
                    logger.warning("Skipping malformed %s entry %r: %s", key, entry, exc)
                    continue
                if not item.slug:
                    item.slug = slugify(item.title)
                self._items[source_type].append(item)
                self._next_id[source_type] = max(self._next_id[source_type], item.id + 1)
            self._items[source_type].sort(key=lambda i: i.id)

    # -- queries used by search --------------------------------------------

    def fetch_primary_catalog(self, max_count: int) -> List[Record]:
        """Newest stories first, at most ``max_count`` of them."""
        with self._lock:
            newest = sorted(self._items["primary"], key=lambda i: i.id, reverse=True)
            return [item.to_record("primary") for item in newest[: max(0, max_count)]]

    def _search(self, source_type: SourceType, pattern: str, limit: int) -> List[CatalogItem]:
        needle = _norm(pattern)
        if not needle or limit <= 0:
            return []
        with self._lock:
            found: List[CatalogItem] = []
            for item in self._items[source_type]:
                if _matches(item, needle):
                    found.append(item.model_copy(deep=True))
                    if len(found) >= limit:
                        break
            return found

    def search_licensed(self, pattern: str, limit: int = 20) -> List[CatalogItem]:
        return self._search("licensed", pattern, limit)

    def search_ebooks(self, pattern: str, limit: int = 20) -> List[CatalogItem]:
        return self._search("ebook", pattern, limit)

    # -- browsing ---------------------------------------------------------------

    def list_items(self, source_type: SourceType) -> List[CatalogItem]:
        with self._lock:
            return [item.model_copy(deep=True) for item in self._items[source_type]]

    def get_item(self, source_type: SourceType, item_id: int) -> Optional[CatalogItem]:
        with self._lock:
            for item in self._items[source_type]:
                if item.id == item_id:
                    return item.model_copy(deep=True)
        return None

    def genres(self) -> List[str]:
        """Distinct story genres, sorted."""
        with self._lock:
            found = {g for item in self._items["primary"] for g in item.genres}
        return sorted(found)

    # -- mutations --------------------------------------------------------------

    def add_item(self, source_type: SourceType, req: CreateItemRequest) -> CatalogItem:
        """Insert an item and return it with its assigned id.

        Raises ``ValueError`` for an empty title or a slug already used in
        the same partition.
        """
        title = req.title.strip()
        if not title:
            raise ValueError("Title must not be empty.")
        slug = req.slug or slugify(title)
        with self._lock:
            if any(item.slug == slug for item in self._items[source_type]):
                raise ValueError(f"Slug '{slug}' is already in use.")
            item = CatalogItem(
                id=self._next_id[source_type],
                title=title,
                slug=slug,
                author=req.author,
                description=req.description,
                cover_image=req.cover_image,
                genres=list(req.genres),
                status=req.status,
                purchase_links=list(req.purchase_links) if source_type != "primary" else [],
            )
            self._items[source_type].append(item)
            self._next_id[source_type] += 1
            return item.model_copy(deep=True)

    def update_item(
        self, source_type: SourceType, item_id: int, req: UpdateStoryRequest
    ) -> Optional[CatalogItem]:
        """Apply the fields set on ``req`` to an item.

        Returns ``None`` for an unknown id. Raises ``ValueError`` under the
        same rules as ``add_item``.
        """
        changes = req.model_dump(exclude_unset=True, exclude_none=True)
        if "title" in changes:
            changes["title"] = changes["title"].strip()
            if not changes["title"]:
                raise ValueError("Title must not be empty.")
        with self._lock:
            items = self._items[source_type]
            for pos, item in enumerate(items):
                if item.id == item_id:
                    slug = changes.get("slug")
                    if slug and any(o.slug == slug and o.id != item_id for o in items):
                        raise ValueError(f"Slug '{slug}' is already in use.")
                    updated = item.model_copy(update=changes)
                    items[pos] = updated
                    return updated.model_copy(deep=True)
        return None

    def delete_item(self, source_type: SourceType, item_id: int) -> bool:
        with self._lock:
            items = self._items[source_type]
            for pos, item in enumerate(items):
                if item.id == item_id:
                    del items[pos]
                    return True
        return False

    def count(self, source_type: SourceType) -> int:
        with self._lock:
            return len(self._items[source_type])
