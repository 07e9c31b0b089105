"""
Docsmith Backend: Supabase Storage Adapter
============================================

What:  BlobStorage implementation backed by the Supabase Storage REST API.
How:   One short-lived httpx.AsyncClient per call, authenticated with the
       service role key (both `Authorization: Bearer` and `apikey` headers).

Endpoints used:
    POST {SUPABASE_URL}/storage/v1/object/{bucket}/{name}     upload
    GET  {SUPABASE_URL}/storage/v1/object/{bucket}/{name}     authenticated download
    GET  {SUPABASE_URL}/storage/v1/bucket                     health probe

Public URL format (returned as StoredFile.url, persisted as storageUrl):
    {SUPABASE_URL}/storage/v1/object/public/{bucket}/{url-quoted name}

The download path always goes through the authenticated endpoint with the
raw storage key, so it works for private buckets too.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from app.exceptions import BlobStorageError
from app.services.processor_base import content_type_for
from app.services.storage_base import BlobStorage, StoredFile

logger = logging.getLogger(__name__)


class SupabaseStorage(BlobStorage):
    """Supabase Storage client for the `templates` and `generated-docs` buckets."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url:  Project URL, e.g. https://abcd1234.supabase.co
            api_key:   Service role key
            timeout:   Per-request timeout in seconds
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    # ── URL helpers ───────────────────────────────────────────────────────

    def _object_url(self, bucket: str, name: str) -> str:
        return f"{self.base_url}/storage/v1/object/{bucket}/{quote(name, safe='/')}"

    def public_url(self, bucket: str, name: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{quote(name, safe='/')}"

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "apikey": self.api_key,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    # ── BlobStorage ───────────────────────────────────────────────────────

    async def upload_file(self, content: bytes, bucket: str, name: str) -> StoredFile:
        headers = {
            **self._headers(),
            "Content-Type": content_type_for(name),
            "x-upsert": "false",
        }
        try:
            async with self._client() as client:
                resp = await client.post(
                    self._object_url(bucket, name),
                    content=content,
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.error("Supabase upload to %s/%s failed: %s", bucket, name, str(e))
            raise BlobStorageError(
                message="Failed to upload file to storage",
                context={"bucket": bucket, "name": name, "error_type": type(e).__name__},
            )

        if resp.status_code not in (200, 201):
            logger.error(
                "Supabase upload to %s/%s rejected: %s %s",
                bucket,
                name,
                resp.status_code,
                resp.text[:200],
            )
            raise BlobStorageError(
                message="Failed to upload file to storage",
                context={"bucket": bucket, "name": name, "status": resp.status_code},
            )

        logger.info("Uploaded %s/%s to Supabase (%d bytes)", bucket, name, len(content))
        return StoredFile(
            id=name,
            path=name,
            bucket=bucket,
            url=self.public_url(bucket, name),
        )

    async def download_file(self, bucket: str, name: str) -> bytes:
        try:
            async with self._client() as client:
                resp = await client.get(self._object_url(bucket, name), headers=self._headers())
        except httpx.HTTPError as e:
            logger.error("Supabase download of %s/%s failed: %s", bucket, name, str(e))
            raise BlobStorageError(
                message="Failed to download file from storage",
                context={"bucket": bucket, "name": name, "error_type": type(e).__name__},
            )

        if resp.status_code != 200:
            logger.error(
                "Supabase download of %s/%s returned %s: %s",
                bucket,
                name,
                resp.status_code,
                resp.text[:200],
            )
            raise BlobStorageError(
                message="Failed to download file from storage",
                context={"bucket": bucket, "name": name, "status": resp.status_code},
            )

        logger.debug("Downloaded %s/%s (%d bytes)", bucket, name, len(resp.content))
        return resp.content

    async def health_check(self) -> bool:
        if not self.base_url or not self.api_key:
            return False
        try:
            async with self._client() as client:
                resp = await client.get(
                    f"{self.base_url}/storage/v1/bucket",
                    headers=self._headers(),
                )
            return resp.status_code == 200
        except httpx.HTTPError as e:
            logger.warning("Supabase health check failed: %s", str(e))
            return False
