"""
Docsmith Backend: Document Service
====================================

What:  Business logic behind the /api/documents endpoints.
How:   Renders a stored template against placeholder data, optionally
       converts the result to PDF, uploads it to the `generated-docs`
       bucket and records the Document.
Who:   Called by routes/documents.py.

Generate Flow (POST /api/documents/generate):
    template lookup → blob download → render (docx | excel)
        → [convert_to_pdf] → blob upload → Document insert

Download Flow (GET /api/documents/{id}/download):
    The stored blob is never read back. The document is regenerated from its
    template and saved placeholder_data, so downloads keep working when the
    generated-docs bucket is private or the blob is gone:

    document lookup ──▶ ┌ template lookup → blob download → render ┐ ──▶ bytes
                        └ → [convert_to_pdf when file_type == pdf]  ┘
                          regeneration failures: DownloadGenerationError

Error Handling:
    NotFoundError / ValidationError propagate unchanged. Collaborator
    failures become ServiceError with the operation's message; failures
    inside download regeneration become DownloadGenerationError so they are
    distinguishable in logs from a failed document lookup.
"""

import logging
from pathlib import PurePosixPath
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    DownloadGenerationError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from app.models.document import Document
from app.models.template import Template
from app.schemas.common import FileDownload
from app.schemas.document import (
    DocumentDetail,
    DocumentDetailResponse,
    DocumentListEntry,
    DocumentListResponse,
    DocumentRecord,
    DocumentsByTemplateResponse,
    DocumentSummary,
    GenerateDocumentRequest,
    GenerateDocumentResponse,
)
from app.services.blob_storage import blob_storage as default_blob_storage
from app.services.office_processor import document_processor as default_processor
from app.services.processor_base import (
    FALLBACK_MIME,
    MIME_TYPES,
    DocumentProcessor,
    ProcessedDocument,
)
from app.services.repository import MetadataRepository, repository as default_repository
from app.services.storage_base import BlobStorage
from app.services.template_service import (
    DISPLAY_DATE_FORMAT,
    DISPLAY_TIME_FORMAT,
    resolve_blob_key,
)

logger = logging.getLogger(__name__)


def download_endpoint(document_id: int) -> str:
    return f"/api/documents/{document_id}/download"


class DocumentService:
    """
    Document operations: list, get, generate, download, list by template.

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

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_documents(self, db: AsyncSession) -> DocumentListResponse:
        try:
            documents = await self.repository.get_all_documents(db)
        except Exception as e:
            logger.error("Error fetching documents: %s", str(e), exc_info=True)
            raise ServiceError(
                message="Failed to fetch documents",
                context={"error_type": type(e).__name__},
            )

        entries = {
            f"Document {doc.id}": DocumentListEntry(
                id=doc.id,
                name=doc.name,
                file_type=doc.file_type,
                template_id=doc.template_id,
                creation_date=doc.created_at.strftime(DISPLAY_DATE_FORMAT),
                creation_time=doc.created_at.strftime(DISPLAY_TIME_FORMAT),
                download_endpoint=download_endpoint(doc.id),
                view_url=doc.storage_url,
                placeholder_data=doc.placeholder_data or {},
            )
            for doc in documents
        }
        return DocumentListResponse(total_documents=len(entries), documents=entries)

    async def get_document(self, db: AsyncSession, document_id: int) -> DocumentDetailResponse:
        try:
            document = await self.repository.get_document(db, document_id)
            if document is None:
                raise NotFoundError(resource="Document", resource_id=document_id)
        except NotFoundError:
            raise
        except Exception as e:
            logger.error("Error fetching document %s: %s", document_id, str(e))
            raise ServiceError(
                message="Failed to fetch document",
                context={"document_id": document_id},
            )

        return DocumentDetailResponse(
            document=DocumentDetail(
                id=document.id,
                name=document.name,
                file_type=document.file_type,
                template_id=document.template_id,
                created_date=document.created_at,
                download_url=download_endpoint(document.id),
                view_url=document.storage_url,
                placeholder_data=document.placeholder_data or {},
            )
        )

    async def list_documents_by_template(
        self, db: AsyncSession, template_id: int
    ) -> DocumentsByTemplateResponse:
        """Documents generated from one template; unknown templates give count 0."""
        try:
            documents = await self.repository.get_documents_by_template(db, template_id)
        except Exception as e:
            logger.error("Error fetching documents by template %s: %s", template_id, str(e))
            raise ServiceError(
                message="Failed to fetch documents",
                context={"template_id": template_id},
            )

        summaries = [
            DocumentSummary(
                id=doc.id,
                name=doc.name,
                file_type=doc.file_type,
                created_date=doc.created_at,
                download_url=download_endpoint(doc.id),
                view_url=doc.storage_url,
                placeholder_data=doc.placeholder_data or {},
            )
            for doc in documents
        ]
        return DocumentsByTemplateResponse(
            template_id=template_id,
            count=len(summaries),
            documents=summaries,
        )

    # ── Generation ────────────────────────────────────────────────────────

    async def generate_document(
        self, db: AsyncSession, request: GenerateDocumentRequest
    ) -> GenerateDocumentResponse:
        """
        Render a template with placeholder data and store the result.

        Raises:
            ValidationError: templateId or placeholderData missing (400)
            NotFoundError:   Template does not exist (404)
            ServiceError:    Any collaborator failed (500)
        """
        if not request.template_id or request.placeholder_data is None:
            raise ValidationError(message="Template ID and placeholder data are required")

        placeholder_data = request.placeholder_data

        try:
            template = await self._require_template(db, request.template_id)

            rendered = await self._render(template, placeholder_data)
            file_type = template.file_type
            if request.output_format == "pdf":
                rendered = await self.processor.convert_to_pdf(
                    rendered.processed_buffer, template.file_type, rendered.filename
                )
                file_type = "pdf"

            stored = await self.blob_storage.upload_file(
                rendered.processed_buffer,
                settings.generated_docs_bucket,
                rendered.filename,
            )

            document = await self.repository.create_document(
                db,
                template_id=template.id,
                name=rendered.filename,
                file_type=file_type,
                storage_url=stored.url,
                storage_id=stored.id,
                placeholder_data=placeholder_data,
            )
        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            logger.error(
                "Error generating document from template %s: %s",
                request.template_id,
                str(e),
                exc_info=True,
            )
            raise ServiceError(
                message="Failed to generate document",
                context={"template_id": request.template_id, "error_type": type(e).__name__},
            )

        logger.info(
            "Document %s generated from template %s as %s",
            document.id,
            template.id,
            file_type,
        )
        return GenerateDocumentResponse(
            document=self._record(document),
            download_url=stored.url,
            storage_file=stored,
        )

    async def download_document(self, db: AsyncSession, document_id: int) -> FileDownload:
        """
        Regenerate a document from its template and saved placeholder data.

        Raises:
            NotFoundError:           Document or its template is missing (404)
            ValidationError:         Template file type cannot be rendered (400)
            DownloadGenerationError: Regeneration failed (500)
            ServiceError:            Document lookup failed (500)
        """
        try:
            document = await self.repository.get_document(db, document_id)
            if document is None:
                raise NotFoundError(resource="Document", resource_id=document_id)

            try:
                template = await self._require_template(db, document.template_id)
                if template.file_type not in ("docx", "excel"):
                    raise ValidationError(
                        message="Unsupported template file type",
                        field="fileType",
                        context={"file_type": template.file_type},
                    )

                rendered = await self._render(template, document.placeholder_data or {})
                if document.file_type == "pdf":
                    rendered = await self.processor.convert_to_pdf(
                        rendered.processed_buffer, template.file_type, rendered.filename
                    )
            except (NotFoundError, ValidationError):
                raise
            except Exception as e:
                logger.error(
                    "Failed to regenerate document %s for download: %s",
                    document_id,
                    str(e),
                    exc_info=True,
                )
                raise DownloadGenerationError(
                    context={"document_id": document_id, "error_type": type(e).__name__},
                )
        except (NotFoundError, ValidationError, DownloadGenerationError):
            raise
        except Exception as e:
            logger.error("Error downloading document %s: %s", document_id, str(e))
            raise ServiceError(
                message="Failed to download document",
                context={"document_id": document_id, "error_type": type(e).__name__},
            )

        return FileDownload(
            content=rendered.processed_buffer,
            media_type=MIME_TYPES.get(document.file_type, FALLBACK_MIME),
            filename=document.name,
        )

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _require_template(self, db: AsyncSession, template_id: int) -> Template:
        template = await self.repository.get_template(db, template_id)
        if template is None:
            raise NotFoundError(resource="Template", resource_id=template_id)
        return template

    async def _render(self, template: Template, data: Dict[str, Any]) -> ProcessedDocument:
        """Fetch the template blob and fill it; non-docx templates take the Excel path."""
        buffer = await self.blob_storage.download_file(
            settings.templates_bucket, resolve_blob_key(template)
        )
        base_name = PurePosixPath(template.original_file_name).stem or "document"
        if template.file_type == "docx":
            return await self.processor.process_docx_template(buffer, data, base_name)
        return await self.processor.process_excel_template(buffer, data, base_name)

    @staticmethod
    def _record(document: Document) -> DocumentRecord:
        return DocumentRecord(
            id=document.id,
            template_id=document.template_id,
            name=document.name,
            file_type=document.file_type,
            storage_url=document.storage_url,
            storage_id=document.storage_id,
            placeholder_data=document.placeholder_data or {},
            created_at=document.created_at,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
document_service = DocumentService()
