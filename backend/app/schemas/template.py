"""
Docsmith Backend: Template Schemas
====================================

What:  Pydantic models for the /api/templates endpoints.
How:   Two response families with different key styles:

       - The list endpoint is a human-oriented display table, so its keys
         are title-cased labels ("File Type", "Upload Date") and entries are
         keyed "Template {id}". Field aliases carry the labels.
       - Detail and upload responses use camelCase keys (alias_generator).

       FastAPI serializes response models by alias, so routes can return the
       models directly. populate_by_name lets services build them with the
       Python field names.
"""

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from app.services.storage_base import StoredFile

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


# ══════════════════════════════════════════════════════════════════════════
# Display list: GET /api/templates
# ══════════════════════════════════════════════════════════════════════════


class TemplateListEntry(BaseModel):
    """
    One row of the template listing.

    Example:
        "Template 3": {
            "ID": 3,
            "Name": "invoice.docx",
            "File Type": "docx",
            "Placeholder Count": 2,
            "Placeholders": "client, amount",
            "Upload Date": "Mon Jan 15 2024",
            "Upload Time": "14:03:27",
            "Download URL": "https://.../templates/1705327407000-invoice.docx"
        }
    """
    id: int = Field(alias="ID")
    name: str = Field(alias="Name")
    file_type: str = Field(alias="File Type")
    placeholder_count: int = Field(alias="Placeholder Count")
    placeholders: str = Field(alias="Placeholders", description='Comma separated, "None" when empty')
    upload_date: str = Field(alias="Upload Date")
    upload_time: str = Field(alias="Upload Time")
    download_url: str = Field(alias="Download URL")

    model_config = {"populate_by_name": True}


class TemplateListResponse(BaseModel):
    api_status: str = Field(default="Success", alias="API Status")
    total_templates: int = Field(alias="Total Templates")
    templates: Dict[str, TemplateListEntry] = Field(alias="Templates")

    model_config = {"populate_by_name": True}


# ══════════════════════════════════════════════════════════════════════════
# Detail and upload responses
# ══════════════════════════════════════════════════════════════════════════


class TemplateDetail(BaseModel):
    id: int
    name: str
    original_file_name: str
    file_type: str
    placeholder_count: int
    placeholders: List[str]
    upload_date: datetime
    download_url: str

    model_config = _CAMEL


class TemplateDetailResponse(BaseModel):
    success: bool = True
    template: TemplateDetail


class TemplateRecord(BaseModel):
    """Full persisted Template, as returned after upload."""
    id: int
    name: str
    original_file_name: str
    file_type: str
    storage_url: str
    storage_id: str
    placeholders: List[str]
    created_at: datetime

    model_config = _CAMEL


class UploadTemplateResponse(BaseModel):
    template: TemplateRecord
    placeholders: List[str] = Field(description="Placeholder names found in the uploaded file")
    storage_file: StoredFile

    model_config = _CAMEL
