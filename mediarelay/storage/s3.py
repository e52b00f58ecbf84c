"""S3-compatible storage backend."""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from pathlib import Path

import aiofiles
from botocore.exceptions import ClientError

from mediarelay.core.client import S3ClientManager, S3ClientProtocol, client_error_code
from mediarelay.core.exceptions import StorageConflictError, StorageError
from mediarelay.core.settings import RelaySettings
from mediarelay.storage.base import RAW, StoredObject, UploadOptions, detected_resource_type
from mediarelay.storage.staging import DEFAULT_CONTENT_TYPE

logger = logging.getLogger(__name__)

# Codes S3 returns when IfNoneMatch="*" finds an existing key
CONFLICT_CODES = {"PreconditionFailed", "412", "ConditionalRequestConflict", "409"}

ClientProvider = Callable[[], AbstractAsyncContextManager[S3ClientProtocol]]


class S3Storage:
    """Stores uploads as objects in an S3 bucket.

    Objects are written with ``IfNoneMatch="*"`` so the bucket itself
    rejects a key that already exists, matching the no-overwrite contract.

    Example:
        storage = S3Storage(settings)
        stored = await storage.upload(path, UploadOptions(folder="docs", public_id="report"))
    """

    name = "s3"

    def __init__(
        self,
        settings: RelaySettings,
        client_provider: ClientProvider | None = None,
    ):
        """Initialize the backend.

        Args:
            settings: Relay settings with the AWS_* values filled in
            client_provider: Factory for an async S3 client context manager;
                defaults to an aiobotocore client built from ``settings``
        """
        settings.validate_storage(self.name)
        self.bucket_name = settings.aws_bucket_name
        self.acl = settings.s3_acl
        self._manager = S3ClientManager(settings)
        self._client_provider = client_provider or self._manager.get_async_client
        self.public_base_url = self._public_base_url(settings)

    def _public_base_url(self, settings: RelaySettings) -> str:
        if settings.s3_public_url:
            return settings.s3_public_url.rstrip("/")
        if self._manager.endpoint_url:
            return f"{self._manager.endpoint_url.rstrip('/')}/{self.bucket_name}"
        return f"https://{self.bucket_name}.s3.{settings.aws_default_region}.amazonaws.com"

    def _key_for(self, path: Path, options: UploadOptions) -> tuple[str, str]:
        """Return ``(public_id, key)``; the key keeps the file extension."""
        name = options.public_id or path.stem
        public_id = f"{options.folder.strip('/')}/{name}" if options.folder else name
        return public_id, f"{public_id}{path.suffix}"

    async def upload(self, path: Path, options: UploadOptions) -> StoredObject:
        """Upload a file to the bucket.

        Raises:
            StorageConflictError: If the key already exists
            StorageError: If S3 rejects the upload
        """
        public_id, key = self._key_for(path, options)
        content_type = options.content_type or DEFAULT_CONTENT_TYPE

        async with aiofiles.open(path, "rb") as f:
            body = await f.read()

        params = {
            "Bucket": self.bucket_name,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if not options.overwrite:
            params["IfNoneMatch"] = "*"
        if self.acl and options.delivery_type == "upload":
            params["ACL"] = self.acl

        logger.debug(f"put_object s3://{self.bucket_name}/{key} ({len(body)} bytes)")
        try:
            async with self._client_provider() as client:
                await client.put_object(**params)
        except ClientError as e:
            if client_error_code(e) in CONFLICT_CODES:
                raise StorageConflictError(public_id, original_error=e) from e
            raise StorageError(
                f"S3 put_object failed for '{key}': {e}",
                public_id=public_id,
                original_error=e,
            ) from e

        if options.resource_type == RAW:
            resource_type = RAW
        else:
            resource_type = detected_resource_type(content_type)

        return StoredObject(
            url=f"{self.public_base_url}/{key}",
            public_id=public_id,
            resource_type=resource_type,
            bytes=len(body),
            raw={"bucket": self.bucket_name, "key": key},
        )
