"""Testing utilities for relay applications."""

from pathlib import Path

import httpx

from mediarelay.core.settings import RelaySettings


def create_test_settings(
    upload_dir: str | Path = "uploads-test",
    storage_backend: str = "cloudinary",
    **overrides
) -> RelaySettings:
    """Create relay settings for testing.

    ``.env`` is skipped and the values below take precedence over the
    environment.

    Args:
        upload_dir: Staging directory for the test
        storage_backend: Backend the settings are validated for
        **overrides: Additional settings to override

    Returns:
        RelaySettings instance configured for testing
    """
    values = {
        "upload_dir": str(upload_dir),
        "storage_backend": storage_backend,
        "cloudinary_cloud_name": "test-cloud",
        "cloudinary_api_key": "test-key",
        "cloudinary_api_secret": "test-secret",
        "aws_bucket_name": "test-bucket",
        "aws_access_key_id": "testing",
        "aws_secret_access_key": "testing",
        "aws_url": "http://localhost:4566",
        "debug": True,
    }
    values.update(overrides)
    return RelaySettings(_env_file=None, **values)


def mock_http_client(handler) -> httpx.AsyncClient:
    """Return an httpx client whose requests are answered by ``handler``.

    Args:
        handler: Callable taking an ``httpx.Request`` and returning an
            ``httpx.Response`` (sync or async)
    """
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
