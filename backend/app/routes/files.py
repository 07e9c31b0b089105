"""
Docsmith Backend: Local Blob File Serving
===========================================

What:  GET /api/files/{bucket}/{path}, which serves blobs written by LocalBlobStorage.
Why:   With BLOB_BACKEND=local, the storageUrl of templates and documents
       points here instead of at Supabase.
Who:   Browsers following a "Download URL" / "View URL" in development.

With the Supabase backend this route always answers 404; Supabase serves
its own public URLs.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from app.exceptions import NotFoundError
from app.schemas.common import ErrorResponse
from app.services.blob_storage import blob_storage
from app.services.local_storage import LocalBlobStorage
from app.services.processor_base import content_type_for

router = APIRouter(prefix="/api", tags=["Files"])


@router.get(
    "/files/{bucket}/{file_path:path}",
    summary="Serve a locally stored blob",
    responses={
        200: {"description": "Stored file"},
        400: {"description": "Invalid file path", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_file(bucket: str, file_path: str) -> FileResponse:
    if not isinstance(blob_storage, LocalBlobStorage):
        raise NotFoundError(resource="File", resource_id=f"{bucket}/{file_path}")

    # Raises ValidationError for paths escaping the storage root
    full_path = blob_storage.resolve_path(bucket, file_path)
    if not full_path.is_file():
        raise NotFoundError(resource="File", resource_id=f"{bucket}/{file_path}")

    return FileResponse(
        path=str(full_path),
        media_type=content_type_for(full_path.name),
        filename=full_path.name,
    )
