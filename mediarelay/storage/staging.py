"""Staging of incoming uploads on local disk.

Every upload is copied into the staging directory under a randomized name
before it is forwarded, and removed again when the staging scope exits.
Concurrent uploads never share a file, so no locking is needed.
"""

import logging
import secrets
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Protocol

import aiofiles
import aiofiles.os

from mediarelay.core.exceptions import PayloadTooLargeError, StagingError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024  # 64KB
DEFAULT_CONTENT_TYPE = "application/octet-stream"


class AsyncReadable(Protocol):
    """Anything with an async ``read(size)``, such as Starlette's UploadFile."""

    async def read(self, size: int = -1) -> bytes: ...


@dataclass
class StagedUpload:
    """A file sitting in the staging directory for the length of one request."""

    path: Path
    original_name: str
    content_type: str
    size: int


def staged_name(original_name: str | None) -> str:
    """Generate a collision-free staging filename.

    Millisecond timestamp, a random integer below 10^9 and the original
    extension, e.g. ``1718000000000-483920117.pdf``.
    """
    suffix = PurePath((original_name or "").replace("\\", "/")).suffix
    return f"{int(time.time() * 1000)}-{secrets.randbelow(1_000_000_000)}{suffix}"


async def remove_staged(path: Path) -> None:
    """Delete a staged file; an already missing file is not an error."""
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        pass
    except (OSError, ValueError) as e:
        logger.error(f"Failed to remove staged file {path}: {e}")


@asynccontextmanager
async def stage_upload(
    source: AsyncReadable,
    directory: str | Path,
    original_name: str | None,
    content_type: str | None = None,
    max_bytes: int | None = None,
) -> AsyncGenerator[StagedUpload, None]:
    """Copy ``source`` into the staging directory for the duration of the block.

    The staged file is deleted on every exit path, including failures while
    copying and exceptions raised inside the ``async with`` body.

    Args:
        source: Stream to copy from
        directory: Staging directory, created if missing
        original_name: Filename reported by the client
        content_type: MIME type reported by the client
        max_bytes: Reject the file once it grows past this many bytes

    Yields:
        The staged upload

    Raises:
        PayloadTooLargeError: If the file exceeds ``max_bytes``
        StagingError: If the file cannot be written
    """
    staging_dir = Path(directory)
    path = staging_dir / staged_name(original_name)
    size = 0

    try:
        try:
            await aiofiles.os.makedirs(staging_dir, exist_ok=True)
            async with aiofiles.open(path, "xb") as out:
                while True:
                    chunk = await source.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if max_bytes is not None and size > max_bytes:
                        raise PayloadTooLargeError(max_bytes, size)
                    await out.write(chunk)
        except (OSError, ValueError) as e:
            raise StagingError(f"Could not stage upload: {e}", path=str(path)) from e

        logger.debug(f"Staged {original_name!r} at {path} ({size} bytes)")
        yield StagedUpload(
            path=path,
            original_name=original_name or "",
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            size=size,
        )
    finally:
        await remove_staged(path)
