"""Download proxy: fetch a remote file and hand it back as an attachment."""

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from mediarelay.core.exceptions import DownloadError

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "archivo.pdf"
CHUNK_SIZE = 64 * 1024  # 64KB


def download_filename(url: str, default: str = DEFAULT_FILENAME) -> str:
    """Derive the attachment filename from the last path segment of ``url``.

    ``https://cdn.example.com/docs/report.pdf?token=abc`` gives ``report.pdf``;
    a URL ending in ``/`` gives ``default``.
    """
    path = url.split("?", 1)[0].split("#", 1)[0]
    return path.rsplit("/", 1)[-1] or default


def content_disposition(filename: str) -> str:
    """Build an ``attachment`` Content-Disposition header value.

    Names that are not plain ASCII get an RFC 5987 ``filename*`` parameter
    next to an ASCII fallback, since header values must be latin-1.
    """
    safe = filename.replace('"', "").replace("\r", "").replace("\n", "")
    try:
        safe.encode("ascii")
    except UnicodeEncodeError:
        fallback = safe.encode("ascii", "replace").decode("ascii").replace("?", "_")
        return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(safe)}"
    return f'attachment; filename="{safe}"'


@dataclass
class ProxiedDownload:
    """An open upstream response waiting to be piped to the client."""

    filename: str
    response: httpx.Response
    chunk_size: int = CHUNK_SIZE

    @property
    def content_type(self) -> str:
        return self.response.headers.get("content-type", "application/octet-stream")

    @property
    def headers(self) -> dict[str, str]:
        return {"Content-Disposition": content_disposition(self.filename)}

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """Yield the body as it arrives; the upstream is closed when iteration stops."""
        try:
            async for chunk in self.response.aiter_bytes(self.chunk_size):
                yield chunk
        finally:
            await self.response.aclose()

    async def aclose(self) -> None:
        await self.response.aclose()


class DownloadProxy:
    """Opens streaming fetches of arbitrary URLs through a shared httpx client.

    Example:
        proxy = DownloadProxy(http_client)
        download = await proxy.open("https://cdn.example.com/report.pdf")
        async for chunk in download.iter_bytes():
            ...
    """

    def __init__(self, client: httpx.AsyncClient, chunk_size: int = CHUNK_SIZE):
        self.client = client
        self.chunk_size = chunk_size

    async def open(self, url: str) -> ProxiedDownload:
        """Start fetching ``url`` without reading its body.

        Raises:
            DownloadError: On a transport failure or a non-success status
        """
        try:
            request = self.client.build_request("GET", url)
            response = await self.client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Error fetching {url}: {e}")
            raise DownloadError(url, original_error=e) from e

        if not response.is_success:
            await response.aclose()
            logger.error(f"Error fetching {url}: upstream status {response.status_code}")
            raise DownloadError(url, status_code=response.status_code)

        return ProxiedDownload(
            filename=download_filename(url),
            response=response,
            chunk_size=self.chunk_size,
        )
