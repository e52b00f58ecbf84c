"""S3 client manager used by the S3 storage backend."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Protocol, runtime_checkable

from aiobotocore.client import AioBaseClient
from aiobotocore.session import get_session
from botocore.config import Config
from botocore.exceptions import ClientError

from mediarelay.core.exceptions import StorageError
from mediarelay.core.settings import RelaySettings


@runtime_checkable
class S3ClientProtocol(Protocol):
    """Protocol for the S3 operations the relay needs."""

    async def put_object(
        self, Bucket: str, Key: str, Body: bytes, **kwargs
    ) -> dict[str, Any]:
        """Put an object to S3."""
        ...


def adjust_endpoint_url(
    endpoint_url: str | None, bucket_name: str | None
) -> str | None:
    """Adjust endpoint URL for path-style addressing if needed.

    Args:
        endpoint_url: The S3 endpoint URL
        bucket_name: The S3 bucket name

    Returns:
        Adjusted endpoint URL or None
    """
    if not endpoint_url:
        return None
    if bucket_name and f"{bucket_name}." in endpoint_url:
        return endpoint_url.replace(f"{bucket_name}.", "")
    return endpoint_url


class S3ClientManager:
    """Creates aiobotocore S3 clients from relay settings.

    One manager is built per storage backend; it holds a single aiobotocore
    session and hands out short-lived clients through a context manager.
    """

    def __init__(self, settings: RelaySettings):
        """Initialize the client manager with settings."""
        self.settings = settings
        self._session = None
        self.endpoint_url = adjust_endpoint_url(
            settings.aws_url, settings.aws_bucket_name
        )
        timeouts = {}
        if settings.outbound_timeout:
            timeouts = {
                "connect_timeout": settings.outbound_timeout,
                "read_timeout": settings.outbound_timeout,
            }
        self._client_config = Config(
            s3={"addressing_style": "path"},
            retries={
                "max_attempts": settings.aws_retry_attempts,
                "mode": "standard",
            },
            **timeouts,
        )

    @asynccontextmanager
    async def get_async_client(self) -> AsyncGenerator[AioBaseClient, None]:
        """Get an async S3 client within a context manager.

        Yields:
            An aiobotocore S3 client

        Raises:
            StorageError: If the client cannot be created
        """
        if self._session is None:
            self._session = get_session()

        try:
            client_cm = self._session.create_client(
                "s3",
                region_name=self.settings.aws_default_region,
                aws_access_key_id=self.settings.aws_access_key_id,
                aws_secret_access_key=self.settings.aws_secret_access_key,
                endpoint_url=self.endpoint_url,
                config=self._client_config,
            )
        except Exception as e:
            raise StorageError(
                f"Failed to create async S3 client: {e}", original_error=e
            ) from e

        async with client_cm as client:
            yield client


def client_error_code(error: ClientError) -> str:
    """Return the S3 error code carried by a botocore ClientError."""
    return str(error.response.get("Error", {}).get("Code", ""))
