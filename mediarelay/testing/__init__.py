"""Testing utilities for relay applications.

This module provides in-memory storage fakes, a mock outbound HTTP client
and pytest fixtures.

Usage in conftest.py:
    from mediarelay.testing import InMemoryStorage, create_test_settings

    @pytest.fixture
    def storage():
        return InMemoryStorage()

Or use provided fixtures directly:
    pytest_plugins = ["mediarelay.testing.fixtures"]
"""

from mediarelay.testing.mocks import (
    InMemoryS3,
    InMemoryStorage,
    client_provider_for,
)
from mediarelay.testing.utils import create_test_settings, mock_http_client

__all__ = [
    "InMemoryS3",
    "InMemoryStorage",
    "client_provider_for",
    "create_test_settings",
    "mock_http_client",
]
