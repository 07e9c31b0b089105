"""
Docsmith Backend: Blob Storage Selection
==========================================

What:  Builds the configured BlobStorage adapter and exposes the singleton.
How:   BLOB_BACKEND=supabase → SupabaseStorage, BLOB_BACKEND=local → LocalBlobStorage.
"""

import logging

from app.config import settings
from app.services.local_storage import LocalBlobStorage
from app.services.storage_base import BlobStorage
from app.services.supabase_storage import SupabaseStorage

logger = logging.getLogger(__name__)


def create_blob_storage() -> BlobStorage:
    """Instantiate the blob store adapter selected by settings.blob_backend."""
    if settings.blob_backend == "local":
        return LocalBlobStorage(settings.storage_root)

    logger.info("Using Supabase blob storage at %s", settings.supabase_url or "<unset>")
    return SupabaseStorage(
        base_url=settings.supabase_url,
        api_key=settings.supabase_key,
        timeout=settings.supabase_timeout,
    )


# ── Singleton Instance ────────────────────────────────────────────────────
blob_storage = create_blob_storage()
