"""FastAPI error handlers for relay exceptions.

This module converts relay exceptions into the response shapes clients of
the upload and download endpoints expect.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from mediarelay.core.exceptions import (
    DownloadError,
    MissingFileError,
    MissingURLError,
    PayloadTooLargeError,
    RelayError,
    StagingError,
    StorageError,
)

logger = logging.getLogger(__name__)

UPLOAD_FAILED = "Error subiendo archivo"
DOWNLOAD_FAILED = "Error descargando el PDF"


def _detail(exc: RelayError) -> str:
    original = getattr(exc, "original_error", None)
    if original is not None:
        return str(original)
    return exc.message


async def relay_exception_handler(request: Request, exc: RelayError) -> Response:
    """Handle relay exceptions.

    Upload failures are JSON, download failures are plain text.

    Args:
        request: The FastAPI request
        exc: The relay exception

    Returns:
        Response with the error details
    """
    if isinstance(exc, MissingFileError):
        return JSONResponse(status_code=400, content={"error": exc.message})
    if isinstance(exc, MissingURLError):
        return PlainTextResponse(exc.message, status_code=400)
    if isinstance(exc, PayloadTooLargeError):
        return JSONResponse(status_code=413, content={"detail": exc.message})
    if isinstance(exc, DownloadError):
        return PlainTextResponse(DOWNLOAD_FAILED, status_code=500)
    if isinstance(exc, (StorageError, StagingError)):
        return JSONResponse(
            status_code=500,
            content={"error": UPLOAD_FAILED, "detalles": _detail(exc)},
        )

    logger.error(f"Unhandled relay error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": UPLOAD_FAILED, "detalles": exc.message},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle unexpected exceptions.

    Args:
        request: The FastAPI request
        exc: The exception

    Returns:
        Response matching the endpoint's failure shape
    """
    logger.exception(f"Unexpected error on {request.url.path}: {exc}")
    if request.url.path.endswith("/download"):
        return PlainTextResponse(DOWNLOAD_FAILED, status_code=500)
    return JSONResponse(
        status_code=500,
        content={"error": UPLOAD_FAILED, "detalles": str(exc)},
    )


def register_error_handlers(app: FastAPI, include_generic: bool = True) -> None:
    """Register all relay error handlers with a FastAPI app.

    Args:
        app: The FastAPI application
        include_generic: Whether to include a handler for all other exceptions
    """
    app.add_exception_handler(RelayError, relay_exception_handler)

    if include_generic:
        app.add_exception_handler(Exception, generic_exception_handler)
