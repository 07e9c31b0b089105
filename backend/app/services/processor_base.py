"""
Docsmith Backend: Abstract Document Processor Interface
=========================================================

What:  Contract for placeholder extraction, template rendering and PDF
       conversion, plus the file-type/MIME tables shared by the services.
How:   OfficeDocumentProcessor (python-docx + openpyxl + LibreOffice) is the
       concrete implementation; tests substitute AsyncMocks.
Who:   Called by TemplateService (extraction) and DocumentService (rendering).

File types:
    docx   Word OOXML      .docx
    excel  Excel OOXML     .xlsx
    pdf    PDF             .pdf  (output only, never a template type)

Placeholder syntax:
    {{ name }}  where surrounding whitespace inside the braces is ignored, so
    "{{client}}" and "{{ client }}" both name the placeholder "client".
"""

import re
from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
EXCEL_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MIME = "application/pdf"
FALLBACK_MIME = "application/octet-stream"

MIME_TYPES = {
    "docx": DOCX_MIME,
    "excel": EXCEL_MIME,
    "pdf": PDF_MIME,
}

FILE_EXTENSIONS = {
    "docx": ".docx",
    "excel": ".xlsx",
    "pdf": ".pdf",
}

_MIME_BY_SUFFIX = {
    ".docx": DOCX_MIME,
    ".xlsx": EXCEL_MIME,
    ".xls": "application/vnd.ms-excel",
    ".pdf": PDF_MIME,
}


def content_type_for(filename: str) -> str:
    """MIME type for a storage key, by suffix (used when uploading blobs)."""
    return _MIME_BY_SUFFIX.get(PurePosixPath(filename).suffix.lower(), FALLBACK_MIME)


def render_value(value: Any) -> str:
    """String form of a placeholder value; None renders as empty text."""
    return "" if value is None else str(value)


class ProcessedDocument(BaseModel):
    """A rendered or converted file, ready to upload or stream."""

    processed_buffer: bytes
    filename: str


class DocumentProcessor(ABC):
    """
    Abstract interface over the office-format libraries.

    Contract:
        - Extraction returns unique placeholder names in first-seen order
        - Rendering replaces every token whose name is in `data`; tokens with
          no value are left as-is
        - Output filenames end in the extension of the produced format
        - Any failure (corrupt input, converter missing, timeout) raises
          DocumentProcessingError
    """

    @abstractmethod
    async def extract_placeholders_from_docx(self, buffer: bytes) -> List[str]:
        ...

    @abstractmethod
    async def extract_placeholders_from_excel(self, buffer: bytes) -> List[str]:
        ...

    @abstractmethod
    async def process_docx_template(
        self,
        buffer: bytes,
        data: Dict[str, Any],
        base_name: str = "document",
    ) -> ProcessedDocument:
        ...

    @abstractmethod
    async def process_excel_template(
        self,
        buffer: bytes,
        data: Dict[str, Any],
        base_name: str = "document",
    ) -> ProcessedDocument:
        ...

    @abstractmethod
    async def convert_to_pdf(
        self,
        buffer: bytes,
        file_type: str,
        filename: Optional[str] = None,
    ) -> ProcessedDocument:
        """
        Convert a rendered docx/xlsx buffer to PDF.

        Args:
            buffer:    Rendered document bytes
            file_type: 'docx' or 'excel' (format of `buffer`)
            filename:  Name of the rendered file; the PDF keeps its stem
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True when PDF conversion is available."""
        ...
