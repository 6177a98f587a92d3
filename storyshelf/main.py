# storyshelf/main.py
import logging
from typing import Optional

from fastapi import FastAPI

from .catalog import CatalogStore, catalog_router
from .config import Settings, get_settings
from .search.service import CatalogSearchService


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CatalogStore] = None,
) -> FastAPI:
    """Build the application.

    The store and the search service live on ``app.state`` so each app
    (and each test) gets its own catalogue index.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if store is None:
        store = CatalogStore.from_file(settings.data_file)

    app = FastAPI(
        title="Storyshelf",
        description=(
            "Public reading site API: serialised stories, licensed works and "
            "ebooks, with a merged search and title autocomplete."
        ),
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.store = store
    app.state.search_service = CatalogSearchService.from_store(store, settings)

    # Base route for a quick liveness check
    @app.get("/")
    def health_check():
        return {"status": "ok", "message": "Storyshelf live"}

    app.include_router(catalog_router)
    return app


app = create_app()
