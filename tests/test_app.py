"""Tests for the HTTP endpoints."""

import asyncio
from datetime import datetime

import httpx
import pytest

from mediarelay.core.exceptions import StorageError
from mediarelay.fastapi.app import create_app
from mediarelay.fastapi.middleware import MULTIPART_OVERHEAD
from mediarelay.testing import InMemoryStorage, create_test_settings, mock_http_client
from mediarelay.testing.fixtures import upstream_handler


class TestUploadEndpoint:
    """Tests for POST /upload."""

    def test_upload_image(self, relay_client, memory_storage, staging_dir):
        """Test a successful upload returns the full descriptor."""
        response = relay_client.post(
            "/upload", files={"file": ("photo.png", b"\x89PNG fake", "image/png")}
        )

        assert response.status_code == 200
        body = response.json()
        assert body == {
            "success": True,
            "url": "https://storage.test/image/upload/contenidos_ingles/photo.png",
            "nombre": "photo.png",
            "tipo": "image",
            "mime": "image/png",
            "public_id": "contenidos_ingles/photo",
            "size": len(b"\x89PNG fake"),
        }
        assert list(staging_dir.iterdir()) == []

    def test_upload_pdf_is_raw(self, relay_client, memory_storage):
        """Test PDFs are forwarded as raw resources."""
        response = relay_client.post(
            "/upload", files={"file": ("report.pdf", b"%PDF-1.4", "application/pdf")}
        )

        assert response.status_code == 200
        assert response.json()["tipo"] == "raw"
        _, options = memory_storage.calls[0]
        assert options.resource_type == "raw"
        assert options.overwrite is False

    def test_no_file(self, relay_client, memory_storage):
        """Test a request without a file part is a 400 and makes no remote call."""
        response = relay_client.post("/upload")

        assert response.status_code == 400
        assert response.json() == {"error": "No se recibió ningún archivo"}
        assert memory_storage.calls == []

    def test_wrong_field_name(self, relay_client, memory_storage):
        """Test a file under another field name counts as no file."""
        response = relay_client.post(
            "/upload", files={"document": ("a.txt", b"hi", "text/plain")}
        )

        assert response.status_code == 400
        assert "error" in response.json()
        assert memory_storage.calls == []

    def test_name_collision(self, relay_client, memory_storage, staging_dir):
        """Test uploading the same name twice is a 500, not an overwrite."""
        files = {"file": ("notes.txt", b"first", "text/plain")}
        assert relay_client.post("/upload", files=files).status_code == 200

        response = relay_client.post(
            "/upload", files={"file": ("notes.txt", b"second", "text/plain")}
        )

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Error subiendo archivo"
        assert "already exists" in body["detalles"]
        assert memory_storage.objects["contenidos_ingles/notes"] == b"first"
        assert list(staging_dir.iterdir()) == []

    def test_provider_failure(self, relay_client, memory_storage, staging_dir):
        """Test provider failures are a 500 with the detail, after cleanup."""
        memory_storage.fail_with = StorageError("Invalid Signature 123")

        response = relay_client.post(
            "/upload", files={"file": ("a.txt", b"data", "text/plain")}
        )

        assert response.status_code == 500
        assert response.json() == {
            "error": "Error subiendo archivo",
            "detalles": "Invalid Signature 123",
        }
        staged_path, _ = memory_storage.calls[0]
        assert not staged_path.exists()
        assert list(staging_dir.iterdir()) == []

    def test_unexpected_provider_failure(self, relay_client, memory_storage):
        """Test arbitrary backend exceptions still produce the upload error shape."""
        memory_storage.fail_with = TimeoutError("provider timed out")

        response = relay_client.post(
            "/upload", files={"file": ("a.txt", b"data", "text/plain")}
        )

        assert response.status_code == 500
        assert response.json()["detalles"] == "provider timed out"

    def test_payload_too_large_by_content_length(self, staging_dir, memory_storage):
        """Test a body past the file cap plus framing is rejected before staging."""
        from fastapi.testclient import TestClient

        settings = create_test_settings(upload_dir=staging_dir, max_upload_size=1024)
        app = create_app(settings=settings, storage=memory_storage)
        body = b"x" * (1024 + MULTIPART_OVERHEAD + 1)

        with TestClient(app) as client:
            response = client.post(
                "/upload", files={"file": ("big.bin", body, "application/octet-stream")}
            )

        assert response.status_code == 413
        assert "detail" in response.json()
        assert memory_storage.calls == []
        assert list(staging_dir.iterdir()) == []

    def test_file_at_size_limit(self, staging_dir, memory_storage):
        """Test a file of exactly the configured size is accepted."""
        from fastapi.testclient import TestClient

        settings = create_test_settings(upload_dir=staging_dir, max_upload_size=1024)
        app = create_app(settings=settings, storage=memory_storage)

        with TestClient(app) as client:
            response = client.post(
                "/upload", files={"file": ("edge.bin", b"x" * 1024, "application/octet-stream")}
            )

        assert response.status_code == 200
        assert response.json()["size"] == 1024
        assert response.json()["url"]
        assert len(memory_storage.calls) == 1

    def test_file_one_byte_over_size_limit(self, staging_dir, memory_storage):
        """Test a file one byte past the configured size gets 413 and is not stored."""
        from fastapi.testclient import TestClient

        settings = create_test_settings(upload_dir=staging_dir, max_upload_size=1024)
        app = create_app(settings=settings, storage=memory_storage)

        with TestClient(app) as client:
            response = client.post(
                "/upload", files={"file": ("edge.bin", b"x" * 1025, "application/octet-stream")}
            )

        assert response.status_code == 413
        assert "detail" in response.json()
        assert memory_storage.calls == []
        assert list(staging_dir.iterdir()) == []

    def test_cors_headers(self, relay_client):
        """Test any origin is echoed back with credentials allowed."""
        response = relay_client.options(
            "/upload",
            headers={
                "Origin": "https://app.example.com",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://app.example.com"
        assert response.headers["access-control-allow-credentials"] == "true"


class TestConcurrentUploads:
    """Uploads running at the same time stay independent."""

    @pytest.mark.asyncio
    async def test_ten_simultaneous_uploads(self, relay_settings, staging_dir):
        storage = InMemoryStorage(delay=0.05)
        app = create_app(
            settings=relay_settings,
            storage=storage,
            http_client=mock_http_client(upstream_handler),
        )
        transport = httpx.ASGITransport(app=app)

        async with httpx.AsyncClient(transport=transport, base_url="http://relay") as client:

            async def upload(i: int) -> httpx.Response:
                payload = f"file number {i}".encode()
                return await client.post(
                    "/upload", files={"file": (f"file{i}.txt", payload, "text/plain")}
                )

            responses = await asyncio.gather(*(upload(i) for i in range(10)))

        assert [r.status_code for r in responses] == [200] * 10
        for i, response in enumerate(responses):
            body = response.json()
            assert body["nombre"] == f"file{i}.txt"
            assert body["public_id"] == f"contenidos_ingles/file{i}"
            assert body["size"] == len(f"file number {i}".encode())
            assert storage.objects[f"contenidos_ingles/file{i}"] == f"file number {i}".encode()

        staged_paths = [path for path, _ in storage.calls]
        assert len(set(staged_paths)) == 10
        assert list(staging_dir.iterdir()) == []


class TestDownloadEndpoint:
    """Tests for GET /download."""

    def test_download(self, relay_client):
        """Test the file is streamed back as an attachment."""
        response = relay_client.get(
            "/download",
            params={"url": "https://cdn.test/files/report.pdf?token=abc"},
        )

        assert response.status_code == 200
        assert response.headers["content-disposition"] == 'attachment; filename="report.pdf"'
        assert response.headers["content-type"] == "application/pdf"
        assert response.content == b"%PDF-1.4 fake report"

    def test_missing_url(self, relay_client):
        """Test a missing url parameter is a plain-text 400."""
        response = relay_client.get("/download")

        assert response.status_code == 400
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "Falta la URL del archivo"

    def test_empty_url(self, relay_client):
        """Test an empty url parameter is treated as missing."""
        response = relay_client.get("/download", params={"url": ""})

        assert response.status_code == 400

    def test_upstream_error(self, relay_client):
        """Test an upstream 404 is a plain-text 500."""
        response = relay_client.get(
            "/download", params={"url": "https://cdn.test/files/missing.pdf"}
        )

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "Error descargando el PDF"

    def test_upstream_unreachable(self, relay_settings, memory_storage):
        """Test transport failures are a plain-text 500."""
        from fastapi.testclient import TestClient

        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        app = create_app(
            settings=relay_settings,
            storage=memory_storage,
            http_client=mock_http_client(refuse),
        )
        with TestClient(app) as client:
            response = client.get("/download", params={"url": "https://down.test/a.pdf"})

        assert response.status_code == 500
        assert response.text == "Error descargando el PDF"

    def test_uploaded_url_is_downloadable(self, relay_settings, staging_dir):
        """Test the URL returned by an upload can be fetched through /download."""
        from fastapi.testclient import TestClient

        storage = InMemoryStorage()

        def serve_stored(request):
            public_id, _, _ = request.url.path.split("/upload/", 1)[1].rpartition(".")
            return httpx.Response(200, content=storage.objects[public_id])

        app = create_app(
            settings=relay_settings,
            storage=storage,
            http_client=mock_http_client(serve_stored),
        )
        with TestClient(app) as client:
            uploaded = client.post(
                "/upload", files={"file": ("lesson.pdf", b"%PDF lesson", "application/pdf")}
            ).json()
            response = client.get("/download", params={"url": uploaded["url"]})

        assert response.status_code == 200
        assert response.content == b"%PDF lesson"
        assert response.headers["content-disposition"] == 'attachment; filename="lesson.pdf"'


class TestHealthEndpoint:
    """Tests for GET /test."""

    def test_health(self, relay_client):
        response = relay_client.get("/test")

        assert response.status_code == 200
        body = response.json()
        assert body["mensaje"] == "Backend funcionando ✅"
        assert isinstance(datetime.fromisoformat(body["timestamp"]), datetime)
