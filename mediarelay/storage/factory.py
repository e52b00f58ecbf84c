"""Storage backend selection."""

from mediarelay.core.exceptions import StorageConfigurationError
from mediarelay.core.settings import RelaySettings
from mediarelay.storage.base import StorageBackend


def build_storage(settings: RelaySettings) -> StorageBackend:
    """Instantiate the backend named by ``settings.storage_backend``.

    Raises:
        StorageConfigurationError: If the backend is unknown or misconfigured
    """
    if settings.storage_backend == "cloudinary":
        from mediarelay.storage.cloudinary import CloudinaryStorage

        return CloudinaryStorage(settings)
    if settings.storage_backend == "s3":
        from mediarelay.storage.s3 import S3Storage

        return S3Storage(settings)
    raise StorageConfigurationError(f"Unknown storage backend '{settings.storage_backend}'")
