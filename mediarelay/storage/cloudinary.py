"""Cloudinary storage backend."""

import asyncio
import logging
from pathlib import Path

import cloudinary.exceptions
import cloudinary.uploader

from mediarelay.core.exceptions import StorageConflictError, StorageError
from mediarelay.core.settings import RelaySettings
from mediarelay.storage.base import StoredObject, UploadOptions

logger = logging.getLogger(__name__)


class CloudinaryStorage:
    """Uploads staged files to Cloudinary.

    Credentials are passed on every call instead of through the SDK's
    global ``cloudinary.config``, so two apps with different accounts can
    live in one process (tests do this).

    The SDK is synchronous; each upload runs in a worker thread to keep
    the event loop free.
    """

    name = "cloudinary"

    def __init__(self, settings: RelaySettings):
        settings.validate_storage(self.name)
        self.cloud_name = settings.cloudinary_cloud_name
        self.api_key = settings.cloudinary_api_key
        self.api_secret = settings.cloudinary_api_secret
        self.timeout = settings.outbound_timeout

    def _upload_params(self, options: UploadOptions) -> dict:
        params = {
            "resource_type": options.resource_type,
            "folder": options.folder,
            "overwrite": options.overwrite,
            "type": options.delivery_type,
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
        }
        if options.public_id:
            params["public_id"] = options.public_id
        if self.timeout:
            params["timeout"] = self.timeout
        return params

    async def upload(self, path: Path, options: UploadOptions) -> StoredObject:
        """Upload a file and return the stored object.

        Cloudinary answers a no-overwrite upload of an existing public id
        with the existing asset and ``existing: true``; that is reported as
        a conflict instead of a success.

        Raises:
            StorageConflictError: If the public id is already taken
            StorageError: If Cloudinary rejects the upload
        """
        params = self._upload_params(options)
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload, str(path), **params
            )
        except cloudinary.exceptions.Error as e:
            raise StorageError(str(e), public_id=options.public_id, original_error=e) from e

        if result.get("existing") and not options.overwrite:
            raise StorageConflictError(result.get("public_id") or options.public_id or "")

        return StoredObject(
            url=result["secure_url"],
            public_id=result["public_id"],
            resource_type=result["resource_type"],
            bytes=int(result.get("bytes", 0)),
            raw=dict(result),
        )
