"""mediarelay: relay file uploads to a media-storage provider and proxy downloads back."""

__version__ = "0.1.0"

# Core components
from mediarelay.core.exceptions import (
    RelayError,
    MissingFileError,
    MissingURLError,
    PayloadTooLargeError,
    StagingError,
    StorageError,
    StorageConflictError,
    StorageConfigurationError,
    DownloadError,
)
from mediarelay.core.settings import RelaySettings

# Storage components
from mediarelay.storage import (
    DownloadProxy,
    StorageBackend,
    StoredObject,
    UploadOptions,
    UploadResponse,
    UploadService,
    build_storage,
    download_filename,
)

# FastAPI components
from mediarelay.fastapi.app import create_app
from mediarelay.fastapi.error_handlers import register_error_handlers

__all__ = [
    # Version
    "__version__",
    # Core
    "RelaySettings",
    "RelayError",
    "MissingFileError",
    "MissingURLError",
    "PayloadTooLargeError",
    "StagingError",
    "StorageError",
    "StorageConflictError",
    "StorageConfigurationError",
    "DownloadError",
    # Storage
    "DownloadProxy",
    "StorageBackend",
    "StoredObject",
    "UploadOptions",
    "UploadResponse",
    "UploadService",
    "build_storage",
    "download_filename",
    # FastAPI
    "create_app",
    "register_error_handlers",
]
