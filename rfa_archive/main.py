"""FastAPI application factory for the archive read API.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Composition root of the serving process:
#
#   Settings + config.yaml
#        │
#   _lifespan:  SQLiteArchiveStore(read_only=True) ──▶ ArchiveReader
#        │      both stored on app.state for the routes
#        ▼
#   create_app: middleware, /api/v1 router, /imgs static files
#
# The crawler is a separate process (``rfa_archive.cli crawl``); WAL
# mode lets this process read while it writes.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from rfa_archive.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from rfa_archive.api.routes import router as api_router
from rfa_archive.config.loader import load_config
from rfa_archive.config.settings import Settings
from rfa_archive.interfaces.archive_store import IArchiveStore
from rfa_archive.models.article import IMAGE_ROUTE
from rfa_archive.providers.store.sqlite_archive_store import SQLiteArchiveStore
from rfa_archive.services.archive_reader import ArchiveReader
from rfa_archive.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_VERSION = "0.1.0"


def create_app(
    settings: Settings | None = None,
    config: dict[str, Any] | None = None,
    store: IArchiveStore | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    settings:
        Runtime settings; read from the environment when omitted.
    config:
        Resolved configuration dict from :func:`load_config`.
    store:
        Pre-opened archive store.  When omitted the lifespan opens the
        SQLite archive at ``settings.db_path`` read-only and closes it on
        shutdown; an injected store is left open for its owner.
    """
    settings = settings or Settings()
    config = config or load_config(settings=settings)
    reader_config = config.get("reader", {})

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN201
        owned = store is None
        archive = store or SQLiteArchiveStore(settings.db_path, read_only=True)
        await archive.initialize()

        application.state.store = archive
        application.state.reader = ArchiveReader(
            archive,
            page_size=reader_config.get("page_size", 20),
            section_order=reader_config.get("section_order", "chronological"),
        )
        _logger.info(
            "app_startup",
            version=_VERSION,
            environment=settings.app_env,
            store=archive.get_provider_name(),
        )

        yield

        if owned:
            await archive.close()
        _logger.info("app_shutdown")

    application = FastAPI(
        title="RFA Archive API",
        version=_VERSION,
        description="Browse the offline Radio Free Asia article archive by site and section.",
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)

    application.include_router(api_router)

    # -- Cached images --
    if settings.image_dir.is_dir():
        application.mount(
            IMAGE_ROUTE,
            StaticFiles(directory=str(settings.image_dir)),
            name="imgs",
        )
    else:
        _logger.warning("image_dir_missing", path=str(settings.image_dir))

    return application


def run(settings: Settings, config: dict[str, Any] | None = None) -> None:
    """Serve the read API with uvicorn on ``settings.app_host:app_port``."""
    uvicorn.run(
        create_app(settings, config),
        host=settings.app_host,
        port=settings.app_port,
        log_config=None,
    )
