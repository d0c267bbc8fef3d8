"""Mosaic Gallery - FastAPI Application.

This module defines the application factory, every REST route, the error
handlers, and the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Items** live in an :class:`~mosaic.core.repository.ItemRepository`
  built by the lifespan handler from :class:`~mosaic.core.config.MosaicConfig`.
- **Likes** are tracked by a :class:`~mosaic.core.likes.LikeLedger` that keeps
  the liked set and each item's ``likes`` counter consistent.
- **Listing** runs the pure pipeline in :mod:`mosaic.core.query`.
- **Errors** derived from :class:`~mosaic.core.errors.GalleryError` become
  ``{"success": false, "message": ...}`` responses; anything unexpected is
  logged and answered with a generic 500.

Endpoints
---------
========  =============================  ====================================
Method    Path                           Purpose
========  =============================  ====================================
GET       ``/api/health``                Liveness and version
GET       ``/api/items``                 Search, filter, sort and paginate
POST      ``/api/items``                 Create an item
GET       ``/api/items/{id}``            Single item (counts a view)
GET       ``/api/items/{id}/related``    Trending items in the same category
POST      ``/api/likes``                 Toggle like state
GET       ``/api/likes``                 Read like state
GET       ``/api/search``                Suggestions or autocomplete
GET       ``/api/stats``                 Repository statistics
========  =============================  ====================================

Usage
-----
CLI (installed entry point)::

    mosaic

Direct invocation::

    python -m mosaic.api.main
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mosaic import __version__
from mosaic.api.deps import LedgerDep, RepositoryDep, SettingsDep
from mosaic.api.models import CreateItemRequest, LikeRequest
from mosaic.core.config import MosaicConfig, config
from mosaic.core.creation import create_item
from mosaic.core.errors import GalleryError, NotFoundError, ValidationError
from mosaic.core.likes import LikeLedger, SqliteLikeStore
from mosaic.core.query import QueryParams, parse_tags, query_items
from mosaic.core.repository import ItemRepository
from mosaic.core.search import DEFAULT_RELATED_LIMIT, autocomplete, related_items, suggestions

logger = logging.getLogger(__name__)


def build_services(cfg: MosaicConfig) -> tuple[ItemRepository, LikeLedger]:
    """Construct the repository and like ledger described by ``cfg``."""
    repository = ItemRepository.from_config(cfg)
    store = SqliteLikeStore(cfg.likes_db) if cfg.likes_db is not None else None
    return repository, LikeLedger(repository, store)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the per-application services on startup.

    The repository and ledger are stored on ``app.state`` and reach handlers
    through the dependencies in :mod:`mosaic.api.deps`.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    cfg: MosaicConfig = app.state.config
    app.state.repository, app.state.ledger = build_services(cfg)
    logger.info(
        f"Mosaic started: {len(app.state.repository)} items, "
        f"backend={app.state.repository.backend_name}"
    )

    yield

    logger.info("Mosaic shutting down.")


async def _simulate_latency(cfg: MosaicConfig) -> None:
    # Artificial delay for exercising client loading states; off by default.
    if cfg.simulated_latency_ms > 0:
        await asyncio.sleep(cfg.simulated_latency_ms / 1000)


def create_app(cfg: MosaicConfig | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        cfg: Configuration to use; defaults to the global ``config``.

    Returns:
        A configured application whose services are built on startup.
    """
    cfg = cfg or config

    app = FastAPI(
        title="Mosaic Gallery",
        description="Searchable image gallery with likes and infinite scrolling.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = cfg

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Error handlers.
    # -----------------------------------------------------------------------

    @app.exception_handler(GalleryError)
    async def gallery_error_handler(request: Request, exc: GalleryError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error"},
        )

    # -----------------------------------------------------------------------
    # Routes.
    # -----------------------------------------------------------------------

    @app.get("/api/health")
    async def health() -> dict:
        """Return service liveness and version."""
        return {"status": "ok", "version": __version__}

    @app.get("/api/items")
    async def list_items(
        repository: RepositoryDep,
        settings: SettingsDep,
        query: str = "",
        category: str = "",
        tags: str = "",
        sort_by: str = Query(default="created", alias="sortBy"),
        sort_order: str = Query(default="desc", alias="sortOrder"),
        page: int = 1,
        limit: int | None = None,
    ) -> dict:
        """Return one page of items matching the search and filters.

        Args:
            query: Free-text search over title, description, tags and author.
            category: Category name, or ``all``.
            tags: Comma-separated tag filters.
            sort_by: ``created``, ``trending``, ``likes`` or ``views``.
            sort_order: ``asc`` or ``desc``.
            page: One-based page number.
            limit: Page size, capped at ``max_page_size``.

        Returns:
            Dictionary with ``data`` and ``pagination``.

        Raises:
            ValidationError: 400 for a bad page, limit, sort key or order.
        """
        if limit is None:
            limit = settings.default_page_size
        params = QueryParams(
            query=query.strip(),
            category=category.strip(),
            tags=parse_tags(tags),
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=min(limit, settings.max_page_size),
        )
        result = query_items(repository.get_all(), params)
        await _simulate_latency(settings)
        return result.to_wire()

    @app.post("/api/items")
    async def create_gallery_item(req: CreateItemRequest, repository: RepositoryDep) -> dict:
        """Create a new gallery item.

        Returns:
            Dictionary with ``success``, ``data`` (the stored item) and ``message``.

        Raises:
            ValidationError: 400 when title, imageUrl or category is missing.
        """
        item = create_item(repository, req.to_new_item())
        return {"success": True, "data": item.to_wire(), "message": "Item created successfully"}

    @app.get("/api/items/{item_id}")
    async def get_item(item_id: str, repository: RepositoryDep, settings: SettingsDep) -> dict:
        """Return a single item and count the view.

        Raises:
            NotFoundError: 404 if the item does not exist.
        """
        item = repository.increment_views(item_id)
        if item is None:
            raise NotFoundError(item_id)
        await _simulate_latency(settings)
        return {"success": True, "data": item.to_wire()}

    @app.get("/api/items/{item_id}/related")
    async def get_related_items(
        item_id: str,
        repository: RepositoryDep,
        limit: int = DEFAULT_RELATED_LIMIT,
    ) -> dict:
        """Return trending items from the same category, excluding this one.

        Raises:
            NotFoundError: 404 if the item does not exist.
            ValidationError: 400 for a non-positive limit.
        """
        item = repository.get_by_id(item_id)
        if item is None:
            raise NotFoundError(item_id)
        if limit < 1:
            raise ValidationError(f"limit must be >= 1, got {limit}")
        related = related_items(repository.get_all(), item, limit)
        return {"success": True, "data": [entry.to_wire() for entry in related]}

    @app.post("/api/likes")
    async def toggle_like(req: LikeRequest, ledger: LedgerDep, settings: SettingsDep) -> dict:
        """Toggle the like state of an item.

        Returns:
            Dictionary with ``success`` and ``data`` (``itemId``, ``isLiked``,
            ``totalLikes``).

        Raises:
            ValidationError: 400 if ``itemId`` is missing.
            NotFoundError: 404 if the item does not exist.
        """
        if not req.item_id:
            raise ValidationError("Item ID is required")
        status = ledger.toggle(req.item_id)
        await _simulate_latency(settings)
        return {"success": True, "data": status.to_wire()}

    @app.get("/api/likes")
    async def get_like(
        ledger: LedgerDep,
        item_id: str = Query(default="", alias="itemId"),
    ) -> dict:
        """Return the like state of an item without changing it.

        Raises:
            ValidationError: 400 if ``itemId`` is missing.
            NotFoundError: 404 if the item does not exist.
        """
        if not item_id:
            raise ValidationError("Item ID is required")
        return {"success": True, "data": ledger.get(item_id).to_wire()}

    @app.get("/api/search")
    async def search(
        repository: RepositoryDep,
        search_type: str = Query(default="suggestions", alias="type"),
        query: str = "",
    ) -> dict:
        """Return search suggestions or autocomplete matches.

        Args:
            search_type: ``suggestions`` or ``autocomplete`` (``type`` on the wire).
            query: Text to complete (autocomplete only).

        Raises:
            ValidationError: 400 for an unknown ``type``.
        """
        items = repository.get_all()
        if search_type == "suggestions":
            return {"success": True, "data": suggestions(items)}
        if search_type == "autocomplete":
            return {"success": True, "data": autocomplete(items, query)}
        raise ValidationError("Invalid search type")

    @app.get("/api/stats")
    async def get_stats(repository: RepositoryDep, ledger: LedgerDep) -> dict:
        """Return repository statistics and the number of liked items."""
        stats = repository.stats()
        stats["likedItems"] = len(ledger.liked_ids())
        return {"success": True, "data": stats}

    return app


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~mosaic.core.config.config`
    (``MOSAIC_SERVER_HOST``, ``MOSAIC_SERVER_PORT``, ``MOSAIC_LOG_LEVEL``).

    This function is registered as the ``mosaic`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "mosaic.api.main:app",
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()
