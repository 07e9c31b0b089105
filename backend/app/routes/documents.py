"""
Docsmith Backend: Document Route Handlers
===========================================

What:  GET /api/documents, GET /api/documents/{id},
       POST /api/documents/generate, GET /api/documents/{id}/download,
       GET /api/documents/template/{template_id}.
How:   Thin handlers delegating to DocumentService.

Route order:
    /documents/template/{template_id} has two path segments and
    /documents/{document_id} has one, so the paths cannot shadow each other;
    /documents/generate is POST-only while /documents/{document_id} is GET-only.
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.routes.attachment import attachment_response
from app.schemas.common import ErrorResponse
from app.schemas.document import (
    DocumentDetailResponse,
    DocumentListResponse,
    DocumentsByTemplateResponse,
    GenerateDocumentRequest,
    GenerateDocumentResponse,
)
from app.services.document_service import document_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Documents"])


@router.get(
    "/documents",
    response_model=DocumentListResponse,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List all generated documents",
)
async def list_documents(
    db: AsyncSession = Depends(get_db_session),
) -> DocumentListResponse:
    return await document_service.list_documents(db)


@router.get(
    "/documents/template/{template_id}",
    response_model=DocumentsByTemplateResponse,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List documents generated from a template",
    description="An unknown template simply has no documents: 200 with count 0.",
)
async def list_documents_by_template(
    template_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> DocumentsByTemplateResponse:
    return await document_service.list_documents_by_template(db, template_id)


@router.get(
    "/documents/{document_id}",
    response_model=DocumentDetailResponse,
    responses={
        404: {"description": "Document not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single document by ID",
)
async def get_document(
    document_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> DocumentDetailResponse:
    return await document_service.get_document(db, document_id)


@router.post(
    "/documents/generate",
    response_model=GenerateDocumentResponse,
    responses={
        400: {"description": "Missing templateId or placeholderData", "model": ErrorResponse},
        404: {"description": "Template not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Generate a document from a template",
    description=(
        "Fills the template's placeholders with `placeholderData`. With "
        "`outputFormat: \"pdf\"` the result is converted to PDF before it is stored."
    ),
)
async def generate_document(
    request: GenerateDocumentRequest,
    db: AsyncSession = Depends(get_db_session),
) -> GenerateDocumentResponse:
    logger.info(
        "Generate request received: template %s, %d values, output %s",
        request.template_id,
        len(request.placeholder_data or {}),
        request.output_format,
    )
    return await document_service.generate_document(db, request)


@router.get(
    "/documents/{document_id}/download",
    response_class=Response,
    responses={
        200: {"description": "Freshly regenerated document"},
        400: {"description": "Unsupported template file type", "model": ErrorResponse},
        404: {"description": "Document or template not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Download a generated document",
    description=(
        "Regenerates the document from its template and stored placeholder data "
        "instead of reading the generated blob back from storage."
    ),
)
async def download_document(
    document_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    download = await document_service.download_document(db, document_id)
    return attachment_response(download)
