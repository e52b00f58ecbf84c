"""HTTP endpoints: upload, download and liveness."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from mediarelay.core.exceptions import MissingFileError, MissingURLError
from mediarelay.fastapi.dependencies import get_download_proxy, get_upload_service
from mediarelay.storage.downloads import DownloadProxy
from mediarelay.storage.uploads import UploadResponse, UploadService

router = APIRouter()


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: UploadFile | None = File(None),
    service: UploadService = Depends(get_upload_service),
):
    """Relay one file to remote storage and describe the stored object."""
    if file is None:
        raise MissingFileError()
    return await service.upload(file, file.filename, file.content_type)


@router.get("/download")
async def download_file(
    url: str | None = Query(None),
    proxy: DownloadProxy = Depends(get_download_proxy),
):
    """Stream a remote file back as an attachment."""
    if not url:
        raise MissingURLError()

    download = await proxy.open(url)
    return StreamingResponse(
        download.iter_bytes(),
        media_type=download.content_type,
        headers=download.headers,
        background=BackgroundTask(download.aclose),
    )


@router.get("/test")
async def health():
    """Liveness probe."""
    return {
        "mensaje": "Backend funcionando ✅",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
