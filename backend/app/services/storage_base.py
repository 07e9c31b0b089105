"""
Docsmith Backend: Abstract Blob Storage Interface
===================================================

What:  Contract for the blob store that holds template and generated files.
How:   Concrete adapters inherit from BlobStorage:
         - SupabaseStorage: Supabase Storage REST API (production)
         - LocalBlobStorage: files on disk under STORAGE_ROOT (development)
Who:   Called by TemplateService and DocumentService.

Addressing:
    A blob is addressed by (bucket, name). `name` is the storage key the
    services generate ("1700000000000-invoice.docx") and persist as
    storageId. Adapters never rename or transform the content.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field


class StoredFile(BaseModel):
    """Result of a successful upload, returned to clients as `storageFile`."""

    id: str = Field(description="Storage key inside the bucket (persisted as storageId)")
    path: str = Field(description="Object path inside the bucket")
    bucket: str = Field(description="Bucket the object was written to")
    url: str = Field(description="URL the object can be fetched from")


class BlobStorage(ABC):
    """
    Abstract interface for bucket + filename addressed object storage.

    Contract:
        - upload_file() stores bytes verbatim and returns a StoredFile
        - download_file() returns exactly the bytes that were uploaded
        - All adapter-specific failures are raised as BlobStorageError
        - No retries: a failed call fails the request
    """

    @abstractmethod
    async def upload_file(self, content: bytes, bucket: str, name: str) -> StoredFile:
        """
        Store `content` under `bucket/name`.

        Raises:
            BlobStorageError: the store rejected the write or was unreachable.
        """
        ...

    @abstractmethod
    async def download_file(self, bucket: str, name: str) -> bytes:
        """
        Fetch the bytes stored under `bucket/name`.

        Raises:
            BlobStorageError: the object is missing or the store failed.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability probe used by GET /health."""
        ...
