"""
Docsmith Backend: Blob Storage Tests
======================================

What:  Tests for the local filesystem and Supabase blob store adapters.
How:   LocalBlobStorage writes into a pytest tmp dir; SupabaseStorage talks
       to an httpx.MockTransport that records the requests it receives.

What we test:
    ✅ Local: bytes come back unchanged, URL points at /api/files
    ✅ Local: path traversal is rejected
    ✅ Local: missing objects raise BlobStorageError
    ✅ Supabase: request URLs, auth headers and content type
    ✅ Supabase: public URL format returned as StoredFile.url
    ✅ Supabase: non-2xx and transport errors raise BlobStorageError
    ✅ Supabase: health check
"""

from pathlib import Path

import httpx
import pytest

from app.exceptions import BlobStorageError, ValidationError
from app.services.local_storage import LocalBlobStorage
from app.services.supabase_storage import SupabaseStorage

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class TestLocalBlobStorage:

    @pytest.mark.asyncio
    async def test_upload_then_download(self, temp_storage):
        storage = LocalBlobStorage(temp_storage)
        content = b"PK\x03\x04 template bytes"

        stored = await storage.upload_file(content, "templates", "1700000000000-Angebot Müller.docx")

        assert stored.id == "1700000000000-Angebot Müller.docx"
        assert stored.bucket == "templates"
        assert stored.url == "/api/files/templates/1700000000000-Angebot%20M%C3%BCller.docx"
        assert (Path(temp_storage) / "templates" / stored.id).read_bytes() == content
        assert await storage.download_file("templates", stored.id) == content

    @pytest.mark.asyncio
    async def test_path_traversal_rejected(self, temp_storage):
        storage = LocalBlobStorage(temp_storage)

        with pytest.raises(ValidationError):
            await storage.upload_file(b"x", "templates", "../../escape.txt")

    @pytest.mark.asyncio
    async def test_download_missing_raises(self, temp_storage):
        storage = LocalBlobStorage(temp_storage)

        with pytest.raises(BlobStorageError):
            await storage.download_file("templates", "nope.docx")

    @pytest.mark.asyncio
    async def test_health_check(self, temp_storage):
        assert await LocalBlobStorage(temp_storage).health_check() is True


class RecordingTransport:
    """Builds an httpx.MockTransport and keeps every request it served."""

    def __init__(self, status_code=200, content=b"", raise_error=False):
        self.requests = []
        self.status_code = status_code
        self.content = content
        self.raise_error = raise_error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_error:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(self.status_code, content=self.content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def _storage(recorder: RecordingTransport) -> SupabaseStorage:
    return SupabaseStorage(
        base_url="https://proj.supabase.co/",
        api_key="service-key",
        transport=recorder.transport(),
    )


class TestSupabaseStorage:

    @pytest.mark.asyncio
    async def test_upload_request_and_result(self):
        recorder = RecordingTransport(status_code=200, content=b'{"Key": "templates/x"}')
        storage = _storage(recorder)

        stored = await storage.upload_file(b"docx", "templates", "1700000000000-my file.docx")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == (
            "https://proj.supabase.co/storage/v1/object/templates/1700000000000-my%20file.docx"
        )
        assert request.headers["Authorization"] == "Bearer service-key"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["Content-Type"] == DOCX_MIME
        assert request.content == b"docx"
        assert stored.id == "1700000000000-my file.docx"
        assert stored.url == (
            "https://proj.supabase.co/storage/v1/object/public/templates/1700000000000-my%20file.docx"
        )

    @pytest.mark.asyncio
    async def test_upload_rejected(self):
        storage = _storage(RecordingTransport(status_code=400, content=b'{"error":"Duplicate"}'))

        with pytest.raises(BlobStorageError):
            await storage.upload_file(b"docx", "templates", "a.docx")

    @pytest.mark.asyncio
    async def test_download_returns_body(self):
        recorder = RecordingTransport(status_code=200, content=b"raw bytes")
        storage = _storage(recorder)

        content = await storage.download_file("generated-docs", "invoice-1.pdf")

        assert content == b"raw bytes"
        assert recorder.requests[0].method == "GET"
        assert recorder.requests[0].url.path == "/storage/v1/object/generated-docs/invoice-1.pdf"

    @pytest.mark.asyncio
    async def test_download_not_found_raises(self):
        storage = _storage(RecordingTransport(status_code=404))

        with pytest.raises(BlobStorageError):
            await storage.download_file("templates", "gone.docx")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        storage = _storage(RecordingTransport(raise_error=True))

        with pytest.raises(BlobStorageError):
            await storage.download_file("templates", "a.docx")

    @pytest.mark.asyncio
    async def test_health_check(self):
        assert await _storage(RecordingTransport(status_code=200, content=b"[]")).health_check()
        assert not await _storage(RecordingTransport(status_code=401)).health_check()
        assert not await _storage(RecordingTransport(raise_error=True)).health_check()

    @pytest.mark.asyncio
    async def test_health_check_without_credentials(self):
        storage = SupabaseStorage(base_url="", api_key="")

        assert await storage.health_check() is False
