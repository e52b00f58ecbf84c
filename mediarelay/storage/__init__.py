"""Storage utilities for the media relay.

This module provides the upload pipeline (staging plus a remote storage
backend) and the download proxy.
"""

from mediarelay.storage.base import StorageBackend, StoredObject, UploadOptions
from mediarelay.storage.downloads import DownloadProxy, download_filename
from mediarelay.storage.factory import build_storage
from mediarelay.storage.uploads import UploadResponse, UploadService

__all__ = [
    "StorageBackend",
    "StoredObject",
    "UploadOptions",
    "DownloadProxy",
    "download_filename",
    "build_storage",
    "UploadResponse",
    "UploadService",
]
