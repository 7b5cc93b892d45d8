"""FastAPI application for SolarSite."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from solarsite import __version__
from solarsite.clients.remote_images import RemoteFetchError
from solarsite.clients.stock_photos import StockPhotoClient, StockPhotoError
from solarsite.config import Settings, settings as default_settings
from solarsite.db import Database
from solarsite.media import AssetNotFoundError, BlobStore, MediaIngestionService
from solarsite.routes import admin_router, media_router
from solarsite.services.activity import ActivityLogger
from solarsite.utils.logconfig import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler."""
    database: Database = app.state.database
    await database.init()
    app.state.blob_store.ensure_root()
    logger.info("SolarSite %s ready (uploads in %s)", __version__, app.state.blob_store.root)
    yield
    await database.dispose()


async def _not_found(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "Media not found", "details": str(exc)})


async def _bad_gateway(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=502, content={"error": "Import failed", "details": str(exc)})


async def _stock_photo_error(request: Request, exc: StockPhotoError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload)


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    media_service: MediaIngestionService | None = None,
    stock_photos: StockPhotoClient | None = None,
) -> FastAPI:
    """Build the app and the long-lived objects it shares between requests.

    Everything that holds connections or state is constructed here once and
    hung off ``app.state``; handlers reach it through dependencies.
    """
    settings = settings or default_settings
    configure_logging(settings.log_level)

    database = database or Database.from_settings(settings)
    blob_store = BlobStore(settings.upload_dir, settings.upload_url_prefix)
    activity = ActivityLogger(database.session_factory)
    media_service = media_service or MediaIngestionService(
        database, blob_store, settings, activity=activity
    )
    stock_photos = stock_photos or StockPhotoClient(
        access_key=settings.unsplash_access_key,
        base_url=settings.unsplash_api_url,
        timeout=settings.remote_fetch_timeout,
    )

    app = FastAPI(
        title="SolarSite",
        description="Media library and admin API for the solar reseller website",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.blob_store = blob_store
    app.state.activity = activity
    app.state.media_service = media_service
    app.state.stock_photos = stock_photos

    app.add_exception_handler(AssetNotFoundError, _not_found)
    app.add_exception_handler(RemoteFetchError, _bad_gateway)
    app.add_exception_handler(StockPhotoError, _stock_photo_error)

    app.include_router(media_router)
    app.include_router(admin_router)
    app.mount(
        blob_store.url_prefix,
        StaticFiles(directory=blob_store.root, check_dir=False),
        name="uploads",
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    return app

