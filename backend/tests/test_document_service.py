"""
Docsmith Backend: Document Service Unit Tests
===============================================

What:  Tests for DocumentService (list, get, generate, download, by template).
How:   Repository, blob storage and processor are AsyncMocks.

What we test:
    ✅ Generate requires templateId and placeholderData
    ✅ Generate keeps the template's file type, or converts to PDF on request
    ✅ Generated files go to the generated-docs bucket under the rendered name
    ✅ Download regenerates from the template instead of reading the stored blob
    ✅ Download applies PDF conversion for pdf documents
    ✅ Unsupported template type → ValidationError, regeneration failure →
       DownloadGenerationError, lookup failure → ServiceError
    ✅ List by template with no matches returns count 0
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from app.exceptions import (
    BlobStorageError,
    DatabaseError,
    DocumentProcessingError,
    DownloadGenerationError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from app.models.document import Document
from app.models.template import Template
from app.schemas.document import GenerateDocumentRequest
from app.services.document_service import DocumentService
from app.services.processor_base import ProcessedDocument
from app.services.storage_base import StoredFile

CREATED = datetime(2024, 3, 1, 9, 30, 0, tzinfo=timezone.utc)


def make_template(**overrides) -> Template:
    fields = {
        "id": 3,
        "name": "invoice.docx",
        "original_file_name": "invoice.docx",
        "file_type": "docx",
        "storage_url": "/api/files/templates/1709285400000-invoice.docx",
        "storage_id": "1709285400000-invoice.docx",
        "placeholders": ["client"],
        "created_at": CREATED,
    }
    fields.update(overrides)
    return Template(**fields)


def make_document(**overrides) -> Document:
    fields = {
        "id": 11,
        "template_id": 3,
        "name": "invoice-1709285400123.docx",
        "file_type": "docx",
        "storage_url": "/api/files/generated-docs/invoice-1709285400123.docx",
        "storage_id": "invoice-1709285400123.docx",
        "placeholder_data": {"client": "Acme"},
        "created_at": CREATED,
    }
    fields.update(overrides)
    return Document(**fields)


def make_service():
    service = DocumentService(
        repository=AsyncMock(),
        blob_storage=AsyncMock(),
        processor=AsyncMock(),
    )
    service.blob_storage.download_file.return_value = b"template bytes"
    service.blob_storage.upload_file.side_effect = lambda content, bucket, name: StoredFile(
        id=name, path=name, bucket=bucket, url=f"/api/files/{bucket}/{name}"
    )
    service.processor.process_docx_template.return_value = ProcessedDocument(
        processed_buffer=b"rendered docx", filename="invoice-1709285400123.docx"
    )
    service.processor.process_excel_template.return_value = ProcessedDocument(
        processed_buffer=b"rendered xlsx", filename="invoice-1709285400123.xlsx"
    )
    service.processor.convert_to_pdf.return_value = ProcessedDocument(
        processed_buffer=b"%PDF", filename="invoice-1709285400123.pdf"
    )
    service.repository.create_document.side_effect = lambda db, **kw: make_document(id=12, **kw)
    return service


class TestGenerate:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"placeholderData": {"client": "Acme"}},
            {"templateId": 3},
            {},
        ],
    )
    async def test_missing_fields(self, mock_db_session, payload):
        service = make_service()

        with pytest.raises(ValidationError, match="Template ID and placeholder data are required"):
            await service.generate_document(
                mock_db_session, GenerateDocumentRequest.model_validate(payload)
            )

    @pytest.mark.asyncio
    async def test_template_not_found(self, mock_db_session):
        service = make_service()
        service.repository.get_template.return_value = None

        with pytest.raises(NotFoundError, match="Template not found"):
            await service.generate_document(
                mock_db_session,
                GenerateDocumentRequest(template_id=99, placeholder_data={}),
            )

    @pytest.mark.asyncio
    async def test_generate_original_format(self, mock_db_session):
        service = make_service()
        service.repository.get_template.return_value = make_template()

        result = await service.generate_document(
            mock_db_session,
            GenerateDocumentRequest(template_id=3, placeholder_data={"client": "Acme"}),
        )

        service.blob_storage.download_file.assert_awaited_once_with(
            "templates", "1709285400000-invoice.docx"
        )
        service.processor.process_docx_template.assert_awaited_once_with(
            b"template bytes", {"client": "Acme"}, "invoice"
        )
        service.processor.convert_to_pdf.assert_not_awaited()
        content, bucket, name = service.blob_storage.upload_file.call_args.args
        assert (content, bucket, name) == (
            b"rendered docx", "generated-docs", "invoice-1709285400123.docx"
        )
        assert result.document.file_type == "docx"
        assert result.document.name == "invoice-1709285400123.docx"
        assert result.document.placeholder_data == {"client": "Acme"}
        assert result.download_url == result.storage_file.url

    @pytest.mark.asyncio
    async def test_generate_excel_template(self, mock_db_session):
        service = make_service()
        service.repository.get_template.return_value = make_template(
            file_type="excel", original_file_name="quote.xlsx"
        )

        result = await service.generate_document(
            mock_db_session,
            GenerateDocumentRequest(template_id=3, placeholder_data={"client": "Acme"}),
        )

        service.processor.process_excel_template.assert_awaited_once()
        assert result.document.file_type == "excel"

    @pytest.mark.asyncio
    async def test_generate_pdf(self, mock_db_session):
        service = make_service()
        service.repository.get_template.return_value = make_template()

        result = await service.generate_document(
            mock_db_session,
            GenerateDocumentRequest(
                template_id=3, placeholder_data={"client": "Acme"}, output_format="pdf"
            ),
        )

        service.processor.convert_to_pdf.assert_awaited_once_with(
            b"rendered docx", "docx", "invoice-1709285400123.docx"
        )
        assert service.blob_storage.upload_file.call_args.args[0] == b"%PDF"
        assert result.document.file_type == "pdf"
        assert result.document.name == "invoice-1709285400123.pdf"

    @pytest.mark.asyncio
    async def test_null_output_format_keeps_template_format(self, mock_db_session):
        service = make_service()
        service.repository.get_template.return_value = make_template()
        request = GenerateDocumentRequest.model_validate(
            {"templateId": 3, "placeholderData": {"client": "Acme"}, "outputFormat": None}
        )

        result = await service.generate_document(mock_db_session, request)

        service.processor.convert_to_pdf.assert_not_awaited()
        assert result.document.file_type == "docx"

    @pytest.mark.asyncio
    async def test_empty_placeholder_data_is_accepted(self, mock_db_session):
        service = make_service()
        service.repository.get_template.return_value = make_template()

        result = await service.generate_document(
            mock_db_session, GenerateDocumentRequest(template_id=3, placeholder_data={})
        )

        assert result.document.placeholder_data == {}

    @pytest.mark.asyncio
    async def test_processing_failure(self, mock_db_session):
        service = make_service()
        service.repository.get_template.return_value = make_template()
        service.processor.process_docx_template.side_effect = DocumentProcessingError()

        with pytest.raises(ServiceError, match="Failed to generate document"):
            await service.generate_document(
                mock_db_session, GenerateDocumentRequest(template_id=3, placeholder_data={})
            )

        service.repository.create_document.assert_not_awaited()


class TestDownload:

    @pytest.mark.asyncio
    async def test_download_regenerates(self, mock_db_session):
        service = make_service()
        service.repository.get_document.return_value = make_document()
        service.repository.get_template.return_value = make_template()

        result = await service.download_document(mock_db_session, 11)

        service.blob_storage.download_file.assert_awaited_once_with(
            "templates", "1709285400000-invoice.docx"
        )
        service.processor.process_docx_template.assert_awaited_once_with(
            b"template bytes", {"client": "Acme"}, "invoice"
        )
        assert result.content == b"rendered docx"
        assert result.filename == "invoice-1709285400123.docx"
        assert result.media_type.endswith("wordprocessingml.document")

    @pytest.mark.asyncio
    async def test_download_pdf_document_is_converted(self, mock_db_session):
        service = make_service()
        service.repository.get_document.return_value = make_document(
            file_type="pdf", name="invoice-1709285400123.pdf"
        )
        service.repository.get_template.return_value = make_template()

        result = await service.download_document(mock_db_session, 11)

        service.processor.convert_to_pdf.assert_awaited_once()
        assert result.content == b"%PDF"
        assert result.media_type == "application/pdf"
        assert result.filename == "invoice-1709285400123.pdf"

    @pytest.mark.asyncio
    async def test_unknown_document_file_type_uses_octet_stream(self, mock_db_session):
        service = make_service()
        service.repository.get_document.return_value = make_document(file_type="odt")
        service.repository.get_template.return_value = make_template()

        result = await service.download_document(mock_db_session, 11)

        assert result.media_type == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_document_not_found(self, mock_db_session):
        service = make_service()
        service.repository.get_document.return_value = None

        with pytest.raises(NotFoundError, match="Document not found"):
            await service.download_document(mock_db_session, 11)

    @pytest.mark.asyncio
    async def test_template_not_found(self, mock_db_session):
        service = make_service()
        service.repository.get_document.return_value = make_document()
        service.repository.get_template.return_value = None

        with pytest.raises(NotFoundError, match="Template not found"):
            await service.download_document(mock_db_session, 11)

    @pytest.mark.asyncio
    async def test_unsupported_template_type(self, mock_db_session):
        service = make_service()
        service.repository.get_document.return_value = make_document()
        service.repository.get_template.return_value = make_template(file_type="pdf")

        with pytest.raises(ValidationError, match="Unsupported template file type"):
            await service.download_document(mock_db_session, 11)

    @pytest.mark.asyncio
    async def test_regeneration_failure(self, mock_db_session):
        service = make_service()
        service.repository.get_document.return_value = make_document()
        service.repository.get_template.return_value = make_template()
        service.blob_storage.download_file.side_effect = BlobStorageError()

        with pytest.raises(DownloadGenerationError, match="Failed to generate download file"):
            await service.download_document(mock_db_session, 11)

    @pytest.mark.asyncio
    async def test_lookup_failure(self, mock_db_session):
        service = make_service()
        service.repository.get_document.side_effect = DatabaseError()

        with pytest.raises(ServiceError, match="Failed to download document") as exc_info:
            await service.download_document(mock_db_session, 11)

        assert not isinstance(exc_info.value, DownloadGenerationError)


class TestReads:

    @pytest.mark.asyncio
    async def test_list_documents_display_format(self, mock_db_session):
        service = make_service()
        service.repository.get_all_documents.return_value = [make_document()]

        body = (await service.list_documents(mock_db_session)).model_dump(by_alias=True)

        assert body["Total Documents"] == 1
        entry = body["Documents"]["Document 11"]
        assert entry["Template ID"] == 3
        assert entry["Creation Date"] == "Fri Mar 01 2024"
        assert entry["Creation Time"] == "09:30:00"
        assert entry["Download Endpoint"] == "/api/documents/11/download"
        assert entry["View URL"] == "/api/files/generated-docs/invoice-1709285400123.docx"
        assert entry["Placeholder Data"] == {"client": "Acme"}

    @pytest.mark.asyncio
    async def test_get_document(self, mock_db_session):
        service = make_service()
        service.repository.get_document.return_value = make_document()

        body = (await service.get_document(mock_db_session, 11)).model_dump(by_alias=True)

        assert body["success"] is True
        assert body["document"]["templateId"] == 3
        assert body["document"]["downloadUrl"] == "/api/documents/11/download"
        assert body["document"]["viewUrl"].startswith("/api/files/generated-docs/")

    @pytest.mark.asyncio
    async def test_get_document_not_found(self, mock_db_session):
        service = make_service()
        service.repository.get_document.return_value = None

        with pytest.raises(NotFoundError):
            await service.get_document(mock_db_session, 404)

    @pytest.mark.asyncio
    async def test_list_by_template_empty(self, mock_db_session):
        service = make_service()
        service.repository.get_documents_by_template.return_value = []

        body = (
            await service.list_documents_by_template(mock_db_session, 77)
        ).model_dump(by_alias=True)

        assert body == {"success": True, "templateId": 77, "count": 0, "documents": []}

    @pytest.mark.asyncio
    async def test_list_failure(self, mock_db_session):
        service = make_service()
        service.repository.get_all_documents.side_effect = DatabaseError()

        with pytest.raises(ServiceError, match="Failed to fetch documents"):
            await service.list_documents(mock_db_session)
