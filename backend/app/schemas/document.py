"""
Docsmith Backend: Document Schemas
====================================

What:  Pydantic models for the /api/documents endpoints.
How:   Same split as the template schemas: the list endpoint uses
       title-cased display labels keyed "Document {id}", everything else
       uses camelCase keys.

Generate request:
    {
        "templateId": 3,
        "placeholderData": {"client": "Acme", "amount": 120},
        "outputFormat": "pdf"          # optional, default "original"
    }
    templateId and placeholderData are Optional here so that a missing value
    reaches DocumentService, which answers with the API's own 400 message
    instead of FastAPI's generic validation error.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from app.services.storage_base import StoredFile

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


# ══════════════════════════════════════════════════════════════════════════
# Display list: GET /api/documents
# ══════════════════════════════════════════════════════════════════════════


class DocumentListEntry(BaseModel):
    id: int = Field(alias="ID")
    name: str = Field(alias="Name")
    file_type: str = Field(alias="File Type")
    template_id: int = Field(alias="Template ID")
    creation_date: str = Field(alias="Creation Date")
    creation_time: str = Field(alias="Creation Time")
    download_endpoint: str = Field(alias="Download Endpoint")
    view_url: str = Field(alias="View URL")
    placeholder_data: Dict[str, Any] = Field(alias="Placeholder Data")

    model_config = {"populate_by_name": True}


class DocumentListResponse(BaseModel):
    api_status: str = Field(default="Success", alias="API Status")
    total_documents: int = Field(alias="Total Documents")
    documents: Dict[str, DocumentListEntry] = Field(alias="Documents")

    model_config = {"populate_by_name": True}


# ══════════════════════════════════════════════════════════════════════════
# Detail responses
# ══════════════════════════════════════════════════════════════════════════


class DocumentSummary(BaseModel):
    """A document as listed under its template."""
    id: int
    name: str
    file_type: str
    created_date: datetime
    download_url: str = Field(description="API endpoint that regenerates the file")
    view_url: str = Field(description="Storage URL of the generated blob")
    placeholder_data: Dict[str, Any]

    model_config = _CAMEL


class DocumentDetail(DocumentSummary):
    template_id: int


class DocumentDetailResponse(BaseModel):
    success: bool = True
    document: DocumentDetail


class DocumentsByTemplateResponse(BaseModel):
    success: bool = True
    template_id: int
    count: int
    documents: List[DocumentSummary]

    model_config = _CAMEL


# ══════════════════════════════════════════════════════════════════════════
# Generation
# ══════════════════════════════════════════════════════════════════════════


class GenerateDocumentRequest(BaseModel):
    template_id: Optional[int] = Field(default=None, description="Template to render")
    placeholder_data: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Placeholder name to value mapping",
    )
    output_format: Optional[str] = Field(
        default="original",
        description="'pdf' converts the result; anything else, null included, keeps the template's format",
    )

    model_config = _CAMEL


class DocumentRecord(BaseModel):
    """Full persisted Document, as returned after generation."""
    id: int
    template_id: int
    name: str
    file_type: str
    storage_url: str
    storage_id: str
    placeholder_data: Dict[str, Any]
    created_at: datetime

    model_config = _CAMEL


class GenerateDocumentResponse(BaseModel):
    document: DocumentRecord
    download_url: str = Field(description="Storage URL of the generated file")
    storage_file: StoredFile

    model_config = _CAMEL
