"""Storage backend interface shared by the upload service and the CLI."""

from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Any, Protocol, runtime_checkable

RAW = "raw"
AUTO = "auto"


@dataclass
class UploadOptions:
    """How a staged file should be stored at the provider.

    Attributes:
        folder: Logical folder the object is placed in
        public_id: Name the object is addressable under (no extension)
        resource_type: ``raw`` for opaque files, ``auto`` to let the provider decide
        overwrite: Whether an existing object with the same id may be replaced
        delivery_type: Provider visibility; ``upload`` is public
        content_type: MIME type reported by the client
    """

    folder: str
    public_id: str | None
    resource_type: str = AUTO
    overwrite: bool = False
    delivery_type: str = "upload"
    content_type: str | None = None


@dataclass
class StoredObject:
    """What the provider reports back after a successful upload."""

    url: str
    public_id: str
    resource_type: str
    bytes: int
    raw: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class StorageBackend(Protocol):
    """A remote store that accepts one local file per call."""

    name: str

    async def upload(self, path: Path, options: UploadOptions) -> StoredObject:
        """Push the file at ``path`` to the provider.

        Raises:
            StorageConflictError: If ``options.public_id`` is already taken
            StorageError: For any other provider failure
        """
        ...


def classify_resource_type(content_type: str | None) -> str:
    """PDFs are stored as raw resources; everything else is auto-detected."""
    if content_type and "pdf" in content_type.lower():
        return RAW
    return AUTO


def public_id_for(filename: str | None) -> str | None:
    """Derive the public identifier from an original filename.

    The directory part and the last extension are dropped, so
    ``"docs/report.final.pdf"`` becomes ``"report.final"``.
    """
    if not filename:
        return None
    stem = PurePath(filename.replace("\\", "/")).stem
    return stem or None


def detected_resource_type(content_type: str | None) -> str:
    """Mirror the provider's auto-detection for backends that lack one."""
    if not content_type:
        return RAW
    major = content_type.split("/", 1)[0].lower()
    if major == "image":
        return "image"
    if major in ("video", "audio"):
        return "video"
    return RAW
