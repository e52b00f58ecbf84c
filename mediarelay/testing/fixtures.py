"""Pytest fixtures for relay testing.

To use these fixtures, add to your conftest.py:

    pytest_plugins = ["mediarelay.testing.fixtures"]
"""

from pathlib import Path

import httpx
import pytest

from mediarelay.core.settings import RelaySettings
from mediarelay.testing.mocks import InMemoryS3, InMemoryStorage
from mediarelay.testing.utils import create_test_settings, mock_http_client

UPSTREAM_FILES = {
    "/files/report.pdf": (b"%PDF-1.4 fake report", "application/pdf"),
    "/img/photo.jpg": (b"\xff\xd8\xff fake jpeg", "image/jpeg"),
}


def upstream_handler(request: httpx.Request) -> httpx.Response:
    """Serve ``UPSTREAM_FILES`` and 404 for everything else."""
    found = UPSTREAM_FILES.get(request.url.path)
    if found is None:
        return httpx.Response(404, text="not found")
    body, content_type = found
    return httpx.Response(200, content=body, headers={"content-type": content_type})


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    """Provide an empty staging directory.

    Returns:
        Path of the staging directory
    """
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def relay_settings(staging_dir: Path) -> RelaySettings:
    """Provide test settings for the relay.

    Returns:
        RelaySettings instance configured for testing
    """
    return create_test_settings(upload_dir=staging_dir)


@pytest.fixture
def memory_storage() -> InMemoryStorage:
    """Provide an in-memory storage backend."""
    storage = InMemoryStorage()
    yield storage
    storage.clear()


@pytest.fixture
def mock_s3() -> InMemoryS3:
    """Provide in-memory S3 mock."""
    s3 = InMemoryS3()
    yield s3
    s3.clear()


@pytest.fixture
def relay_app(relay_settings: RelaySettings, memory_storage: InMemoryStorage):
    """Provide a relay app with in-memory storage and a mocked upstream."""
    from mediarelay.fastapi.app import create_app

    return create_app(
        settings=relay_settings,
        storage=memory_storage,
        http_client=mock_http_client(upstream_handler),
    )


@pytest.fixture
def relay_client(relay_app):
    """Provide a TestClient for the relay app.

    Yields:
        FastAPI TestClient
    """
    from fastapi.testclient import TestClient

    with TestClient(relay_app) as client:
        yield client
