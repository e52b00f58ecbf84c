"""Upload relay: stage, forward to the storage backend, clean up."""

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from mediarelay.core.exceptions import RelayError, StorageError
from mediarelay.storage.base import (
    StorageBackend,
    StoredObject,
    UploadOptions,
    classify_resource_type,
    public_id_for,
)
from mediarelay.storage.staging import AsyncReadable, StagedUpload, stage_upload

logger = logging.getLogger(__name__)


class UploadResponse(BaseModel):
    """Descriptor returned to the client after a successful upload.

    Field names on the wire are the ones existing clients read
    (``nombre``, ``tipo``); Python code uses the English attribute names.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    url: str
    filename: str = Field(alias="nombre")
    resource_type: str = Field(alias="tipo")
    mime: str
    public_id: str
    size: int


class UploadService:
    """Relays one uploaded file to the remote storage backend.

    Example:
        service = UploadService(storage, staging_dir="uploads", folder="docs")
        response = await service.upload(upload_file, "report.pdf", "application/pdf")
    """

    def __init__(
        self,
        storage: StorageBackend,
        staging_dir: str | Path,
        folder: str,
        max_file_size: int | None = None,
    ):
        """Initialize the upload service.

        Args:
            storage: Backend the files are forwarded to
            staging_dir: Local directory for staged copies
            folder: Fixed remote folder every upload is placed in
            max_file_size: Per-file limit in bytes
        """
        self.storage = storage
        self.staging_dir = Path(staging_dir)
        self.folder = folder
        self.max_file_size = max_file_size

    def options_for(self, staged: StagedUpload) -> UploadOptions:
        """Build the provider options for a staged file."""
        return UploadOptions(
            folder=self.folder,
            public_id=public_id_for(staged.original_name),
            resource_type=classify_resource_type(staged.content_type),
            overwrite=False,
            content_type=staged.content_type,
        )

    async def forward(self, staged: StagedUpload) -> StoredObject:
        """Send a staged file to the backend.

        Raises:
            StorageError: For any failure, provider-specific or not
        """
        options = self.options_for(staged)
        logger.info(
            f"Uploading {staged.original_name!r} ({staged.content_type}, "
            f"{staged.size} bytes) to {self.storage.name} as "
            f"{options.folder}/{options.public_id} [{options.resource_type}]"
        )
        try:
            return await self.storage.upload(staged.path, options)
        except RelayError:
            raise
        except Exception as e:
            raise StorageError(str(e), public_id=options.public_id, original_error=e) from e

    async def upload(
        self,
        source: AsyncReadable,
        filename: str | None,
        content_type: str | None,
    ) -> UploadResponse:
        """Stage ``source``, forward it and return the descriptor.

        The staged copy is removed before this returns or raises.

        Raises:
            PayloadTooLargeError: If the file exceeds ``max_file_size``
            StagingError: If the file cannot be staged
            StorageError: If the backend rejects the upload
        """
        async with stage_upload(
            source,
            self.staging_dir,
            filename,
            content_type,
            max_bytes=self.max_file_size,
        ) as staged:
            try:
                stored = await self.forward(staged)
            except StorageError as e:
                logger.error(f"Upload of {staged.original_name!r} failed: {e.message}")
                raise

        logger.info(f"Stored {stored.public_id} at {stored.url}")
        return UploadResponse(
            url=stored.url,
            filename=staged.original_name,
            resource_type=stored.resource_type,
            mime=staged.content_type,
            public_id=stored.public_id,
            size=stored.bytes,
        )
