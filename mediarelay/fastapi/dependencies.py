"""FastAPI dependencies.

Everything a handler needs is built once in ``create_app`` and kept on
``app.state``; these functions only look it up.
"""

import httpx
from fastapi import Request

from mediarelay.core.settings import RelaySettings
from mediarelay.storage.base import StorageBackend
from mediarelay.storage.downloads import DownloadProxy
from mediarelay.storage.uploads import UploadService


def get_settings(request: Request) -> RelaySettings:
    return request.app.state.settings


def get_storage(request: Request) -> StorageBackend:
    return request.app.state.storage


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_upload_service(request: Request) -> UploadService:
    settings = get_settings(request)
    return UploadService(
        storage=get_storage(request),
        staging_dir=settings.upload_dir,
        folder=settings.upload_folder,
        max_file_size=settings.max_upload_size,
    )


def get_download_proxy(request: Request) -> DownloadProxy:
    return DownloadProxy(get_http_client(request))
