"""
Docsmith Backend: Local Filesystem Blob Storage
=================================================

What:  BlobStorage implementation that keeps objects on disk.
Why:   Lets the service run without a Supabase project (development, demos,
       end-to-end tests).
How:   STORAGE_ROOT/{bucket}/{name}, written and read with aiofiles.
       Objects are served back by GET /api/files/{bucket}/{name}.

Directory Structure:
    storage/
    ├── templates/
    │   └── 1700000000000-invoice.docx
    └── generated-docs/
        └── invoice-1700000001234.pdf

Security:
    Bucket and name come from our own services, but the files route passes
    client-supplied paths through resolve_path() too, so every resolved path
    is checked to stay inside STORAGE_ROOT.
"""

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import aiofiles

from app.config import settings
from app.exceptions import BlobStorageError, ValidationError
from app.services.storage_base import BlobStorage, StoredFile

logger = logging.getLogger(__name__)


class LocalBlobStorage(BlobStorage):
    """Bucket directories under a single storage root."""

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("LocalBlobStorage initialized with storage_root=%s", self.storage_root)

    def resolve_path(self, bucket: str, name: str) -> Path:
        """
        Map (bucket, name) to an absolute path inside the storage root.

        Raises:
            ValidationError if the result would escape the storage root
            (e.g. name="../../etc/passwd").
        """
        path = (self.storage_root / bucket / name).resolve()
        if not path.is_relative_to(self.storage_root):
            raise ValidationError(
                message="Invalid file path",
                field="name",
                context={"bucket": bucket, "name": name},
            )
        return path

    @staticmethod
    def public_url(bucket: str, name: str) -> str:
        return f"/api/files/{bucket}/{quote(name, safe='/')}"

    async def upload_file(self, content: bytes, bucket: str, name: str) -> StoredFile:
        path = self.resolve_path(bucket, name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", path, str(e))
            raise BlobStorageError(
                message="Failed to upload file to storage",
                context={"bucket": bucket, "name": name, "os_error": str(e)},
            )

        logger.info("File stored: %s/%s (%d bytes)", bucket, name, len(content))
        return StoredFile(id=name, path=name, bucket=bucket, url=self.public_url(bucket, name))

    async def download_file(self, bucket: str, name: str) -> bytes:
        path = self.resolve_path(bucket, name)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            logger.error("Failed to read file at %s: %s", path, str(e))
            raise BlobStorageError(
                message="Failed to download file from storage",
                context={"bucket": bucket, "name": name, "os_error": str(e)},
            )

    async def health_check(self) -> bool:
        return self.storage_root.is_dir()
