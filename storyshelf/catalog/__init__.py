"""
Catalogue package: the HTTP routes for browsing and searching the
three catalogue partitions (serialised stories, licensed works and
ebooks) and the in-memory store that backs them.

The store is seeded from ``data/sample_catalog.json``. Should your
needs evolve, replace ``CatalogStore`` with a database-backed class
exposing the same methods.
"""

from .router import router as catalog_router  # noqa: F401
from .store import CatalogStore  # noqa: F401
