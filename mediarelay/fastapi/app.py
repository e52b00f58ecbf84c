"""FastAPI application factory.

Wiring only: settings, storage backend, shared HTTP client, CORS, size
limit, error handlers and routes.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mediarelay import __version__
from mediarelay.core.settings import RelaySettings
from mediarelay.fastapi.error_handlers import register_error_handlers
from mediarelay.fastapi.middleware import MULTIPART_OVERHEAD, RequestSizeLimitMiddleware
from mediarelay.fastapi.routes import router
from mediarelay.storage.base import StorageBackend
from mediarelay.storage.factory import build_storage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the shared outbound client unless one was injected; close it on shutdown."""
    settings: RelaySettings = app.state.settings
    owns_client = getattr(app.state, "http_client", None) is None
    if owns_client:
        app.state.http_client = httpx.AsyncClient(
            timeout=settings.outbound_timeout,
            follow_redirects=True,
        )

    logger.info(
        f"🚀 {settings.app_name} listening on port {settings.port} "
        f"(storage: {app.state.storage.name})"
    )
    try:
        yield
    finally:
        if owns_client:
            await app.state.http_client.aclose()
            app.state.http_client = None


def create_app(
    settings: RelaySettings | None = None,
    storage: StorageBackend | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the relay application.

    Args:
        settings: Process configuration; read from the environment if omitted
        storage: Storage backend; built from ``settings`` if omitted
        http_client: Outbound client for downloads; opened in the lifespan
            if omitted

    Returns:
        The configured FastAPI app
    """
    settings = settings or RelaySettings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.storage = storage or build_storage(settings)
    app.state.http_client = http_client

    register_error_handlers(app)

    # First added is innermost: the size limit sits inside CORS so 413s carry CORS headers
    app.add_middleware(
        RequestSizeLimitMiddleware,
        max_bytes=settings.max_upload_size + MULTIPART_OVERHEAD,
    )
    origins = settings.allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or [],
        allow_origin_regex=None if origins else ".*",
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(router)
    return app
