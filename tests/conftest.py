"""Shared fixtures for the relay test suite."""

import io

import pytest

pytest_plugins = ["mediarelay.testing.fixtures"]


class BytesSource:
    """Async reader over an in-memory payload, standing in for an UploadFile."""

    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)
        self.reads = 0

    async def read(self, size: int = -1) -> bytes:
        self.reads += 1
        return self._buffer.read(size)


@pytest.fixture
def make_source():
    """Return a factory for in-memory async readers."""
    return BytesSource
