"""
Docsmith Backend: Template Route Handlers
===========================================

What:  GET/POST /api/templates, GET /api/templates/{id},
       GET /api/templates/{id}/download.
How:   Thin handlers: pull the request data out, delegate to
       TemplateService, return its schema (or an attachment for downloads).
       Errors are raised by the service and rendered by the global handlers.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.routes.attachment import attachment_response
from app.schemas.common import ErrorResponse
from app.schemas.template import (
    TemplateDetailResponse,
    TemplateListResponse,
    UploadTemplateResponse,
)
from app.services.template_service import template_service

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api", tags=["Templates"])


@router.get(
    "/templates",
    response_model=TemplateListResponse,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List all templates",
    description=(
        "Returns every uploaded template as a display table keyed "
        "\"Template {id}\", with placeholder summary and upload date/time."
    ),
)
async def list_templates(
    db: AsyncSession = Depends(get_db_session),
) -> TemplateListResponse:
    return await template_service.list_templates(db)


@router.get(
    "/templates/{template_id}",
    response_model=TemplateDetailResponse,
    responses={
        404: {"description": "Template not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single template by ID",
)
async def get_template(
    template_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> TemplateDetailResponse:
    return await template_service.get_template(db, template_id)


@router.post(
    "/templates",
    response_model=UploadTemplateResponse,
    responses={
        400: {"description": "No file uploaded", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Upload a Word or Excel template",
    description=(
        "Accepts a multipart upload in the `file` field. Files named *.docx are "
        "treated as Word templates, anything else as Excel. Placeholders of the "
        "form {{ name }} are extracted and stored with the template."
    ),
)
async def upload_template(
    file: Optional[UploadFile] = File(default=None, description="Template file (.docx or .xlsx)"),
    db: AsyncSession = Depends(get_db_session),
) -> UploadTemplateResponse:
    """
    Upload a template.

    Why File(default=None):
        A request without the `file` field must answer 400 "No file uploaded"
        rather than FastAPI's generic missing-field error.
    """
    filename = file.filename if file else None
    content = await file.read() if file else None
    if file:
        logger.info("Template upload received: %s (%d bytes)", filename, len(content))
    return await template_service.upload_template(db, filename, content)


@router.get(
    "/templates/{template_id}/download",
    response_class=Response,
    responses={
        200: {"description": "Template file as uploaded"},
        404: {"description": "Template not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Download the original template file",
)
async def download_template(
    template_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    download = await template_service.download_template(db, template_id)
    return attachment_response(download)
