"""
Docsmith Backend: Template Service
====================================

What:  Business logic behind the /api/templates endpoints.
How:   Composes the metadata repository, the blob store and the document
       processor; reshapes records into the response schemas.
Who:   Called by routes/templates.py; resolve_blob_key() is shared with
       DocumentService.

Upload Flow (POST /api/templates):
    ┌──────────┐    ┌──────────────┐    ┌──────────────┐    ┌──────────┐
    │  Upload  │───▶│  Extract     │───▶│  Blob store  │───▶│  Persist │
    │  (Route) │    │  placeholders│    │  `templates` │    │  (DB)    │
    └──────────┘    └──────────────┘    └──────────────┘    └──────────┘

    Single pass, no retries. A blob uploaded before a failing metadata
    insert is not removed.

Error Handling:
    NotFoundError and ValidationError propagate unchanged (404 / 400).
    Anything else is logged with the operation name and re-raised as a
    ServiceError carrying the operation's short message (500).
"""

import logging
import time
from datetime import datetime
from typing import List, Optional
from urllib.parse import unquote

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import NotFoundError, ServiceError, ValidationError
from app.models.template import Template
from app.schemas.common import FileDownload
from app.schemas.template import (
    TemplateDetail,
    TemplateDetailResponse,
    TemplateListEntry,
    TemplateListResponse,
    TemplateRecord,
    UploadTemplateResponse,
)
from app.services.blob_storage import blob_storage as default_blob_storage
from app.services.office_processor import document_processor as default_processor
from app.services.processor_base import DocumentProcessor, MIME_TYPES
from app.services.repository import MetadataRepository, repository as default_repository
from app.services.storage_base import BlobStorage

logger = logging.getLogger(__name__)

DISPLAY_DATE_FORMAT = "%a %b %d %Y"   # Mon Jan 15 2024
DISPLAY_TIME_FORMAT = "%H:%M:%S"


def detect_file_type(filename: str) -> str:
    """'docx' for names ending in .docx (case-sensitive), otherwise 'excel'."""
    return "docx" if filename.endswith(".docx") else "excel"


def resolve_blob_key(template: Template) -> str:
    """
    Key of the template's blob inside the templates bucket.

    storage_id is authoritative. Records without one fall back to the last
    path segment of storage_url, URL-decoded.
    """
    if template.storage_id:
        return template.storage_id
    return unquote(template.storage_url.rstrip("/").rsplit("/", 1)[-1])


def storage_file_name(filename: str) -> str:
    """Last path segment of a client-supplied filename; both '/' and '\\' separate."""
    return filename.replace("\\", "/").rsplit("/", 1)[-1]


def format_placeholder_list(placeholders: List[str]) -> str:
    return ", ".join(placeholders) if placeholders else "None"


class TemplateService:
    """
    Template operations: list, get, upload, download.

    Collaborators default to the module singletons; tests pass their own or
    overwrite the attributes.
    """

    def __init__(
        self,
        repository: Optional[MetadataRepository] = None,
        blob_storage: Optional[BlobStorage] = None,
        processor: Optional[DocumentProcessor] = None,
    ):
        self.repository = repository or default_repository
        self.blob_storage = blob_storage or default_blob_storage
        self.processor = processor or default_processor

    async def list_templates(self, db: AsyncSession) -> TemplateListResponse:
        """Every template as a display row keyed "Template {id}"."""
        try:
            templates = await self.repository.get_all_templates(db)
        except Exception as e:
            logger.error("Error fetching templates: %s", str(e), exc_info=True)
            raise ServiceError(
                message="Failed to fetch templates",
                context={"error_type": type(e).__name__},
            )

        entries = {}
        for template in templates:
            placeholders = template.placeholders or []
            entries[f"Template {template.id}"] = TemplateListEntry(
                id=template.id,
                name=template.name,
                file_type=template.file_type,
                placeholder_count=len(placeholders),
                placeholders=format_placeholder_list(placeholders),
                upload_date=template.created_at.strftime(DISPLAY_DATE_FORMAT),
                upload_time=template.created_at.strftime(DISPLAY_TIME_FORMAT),
                download_url=template.storage_url,
            )

        return TemplateListResponse(total_templates=len(entries), templates=entries)

    async def get_template(self, db: AsyncSession, template_id: int) -> TemplateDetailResponse:
        try:
            template = await self.repository.get_template(db, template_id)
            if template is None:
                raise NotFoundError(resource="Template", resource_id=template_id)
        except NotFoundError:
            raise
        except Exception as e:
            logger.error("Error fetching template %s: %s", template_id, str(e))
            raise ServiceError(
                message="Failed to fetch template",
                context={"template_id": template_id},
            )

        placeholders = list(template.placeholders or [])
        return TemplateDetailResponse(
            template=TemplateDetail(
                id=template.id,
                name=template.name,
                original_file_name=template.original_file_name,
                file_type=template.file_type,
                placeholder_count=len(placeholders),
                placeholders=placeholders,
                upload_date=template.created_at,
                download_url=template.storage_url,
            )
        )

    async def upload_template(
        self,
        db: AsyncSession,
        filename: Optional[str],
        content: Optional[bytes],
    ) -> UploadTemplateResponse:
        """
        Store a new template and record its placeholders.

        Steps:
            1. Classify by filename suffix (docx / excel)
            2. Extract placeholders with the matching processor path
            3. Upload the raw bytes as "{epochMillis}-{basename}" to `templates`
            4. Persist the Template with storage_id = that key

        Raises:
            ValidationError: No file in the request (400)
            ServiceError:    Any later step failed (500)
        """
        if not filename or content is None:
            raise ValidationError(message="No file uploaded", field="file")

        file_type = detect_file_type(filename)
        storage_key = f"{int(time.time() * 1000)}-{storage_file_name(filename)}"

        try:
            if file_type == "docx":
                placeholders = await self.processor.extract_placeholders_from_docx(content)
            else:
                placeholders = await self.processor.extract_placeholders_from_excel(content)

            stored = await self.blob_storage.upload_file(
                content, settings.templates_bucket, storage_key
            )

            template = await self.repository.create_template(
                db,
                name=filename,
                original_file_name=filename,
                file_type=file_type,
                storage_url=stored.url,
                storage_id=stored.id,
                placeholders=placeholders,
            )
        except Exception as e:
            logger.error("Error uploading template %s: %s", filename, str(e), exc_info=True)
            raise ServiceError(
                message="Failed to upload template",
                context={"filename": filename, "error_type": type(e).__name__},
            )

        logger.info(
            "Template %s uploaded: %s (%s, %d placeholders)",
            template.id,
            filename,
            file_type,
            len(placeholders),
        )
        return UploadTemplateResponse(
            template=TemplateRecord(
                id=template.id,
                name=template.name,
                original_file_name=template.original_file_name,
                file_type=template.file_type,
                storage_url=template.storage_url,
                storage_id=template.storage_id,
                placeholders=list(template.placeholders or []),
                created_at=template.created_at,
            ),
            placeholders=placeholders,
            storage_file=stored,
        )

    async def download_template(self, db: AsyncSession, template_id: int) -> FileDownload:
        """Raw template bytes exactly as uploaded, with the original filename."""
        try:
            template = await self.repository.get_template(db, template_id)
            if template is None:
                raise NotFoundError(resource="Template", resource_id=template_id)

            content = await self.blob_storage.download_file(
                settings.templates_bucket, resolve_blob_key(template)
            )
        except NotFoundError:
            raise
        except Exception as e:
            logger.error("Error downloading template %s: %s", template_id, str(e))
            raise ServiceError(
                message="Failed to download template",
                context={"template_id": template_id, "error_type": type(e).__name__},
            )

        media_type = MIME_TYPES["docx"] if template.file_type == "docx" else MIME_TYPES["excel"]
        return FileDownload(
            content=content,
            media_type=media_type,
            filename=template.original_file_name,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
template_service = TemplateService()
