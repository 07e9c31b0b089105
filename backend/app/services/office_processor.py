"""
Docsmith Backend: Office Document Processor
=============================================

What:  Concrete DocumentProcessor built on python-docx, openpyxl and a
       headless LibreOffice for PDF conversion.
How:   Library calls are synchronous and CPU bound, so they run in
       Starlette's threadpool; LibreOffice runs as a subprocess inside a
       throwaway temporary directory.
Who:   Singleton `document_processor`, used by the template and document services.

Word templates:
    Tokens are searched in body paragraphs, table cells (including nested
    tables), and every header/footer that has its own definition. Word often
    splits "{{client}}" across several runs when the author edits text, so
    rendering first substitutes run by run (keeps per-run formatting) and
    only merges a paragraph's runs into the first run when a token spans
    run boundaries.

Excel templates:
    Every string cell of every worksheet is scanned. A cell whose entire
    content is a single token receives the raw value (numbers stay numbers);
    otherwise tokens are substituted into the text.

PDF conversion:
    soffice --headless --convert-to pdf --outdir <tmp> <tmp>/source.<ext>
    A private LibreOffice profile directory is used per conversion so
    concurrent conversions do not fight over the default user profile lock.
"""

import asyncio
import logging
import shutil
import tempfile
import time
from io import BytesIO
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterator, List, Optional

import aiofiles
from docx import Document as load_docx
from openpyxl import load_workbook
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.exceptions import DocumentProcessingError
from app.services.processor_base import (
    FILE_EXTENSIONS,
    PLACEHOLDER_PATTERN,
    DocumentProcessor,
    ProcessedDocument,
    render_value,
)

logger = logging.getLogger(__name__)


def _timestamped_name(base_name: str, extension: str) -> str:
    return f"{base_name}-{int(time.time() * 1000)}{extension}"


def _collect(text: str, found: Dict[str, None]) -> None:
    for match in PLACEHOLDER_PATTERN.finditer(text):
        found.setdefault(match.group(1), None)


def _substitute(text: str, data: Dict[str, Any]) -> str:
    def replace(match):
        key = match.group(1)
        if key in data:
            return render_value(data[key])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(replace, text)


# ══════════════════════════════════════════════════════════════════════════
# Word (python-docx) helpers
# ══════════════════════════════════════════════════════════════════════════

def _iter_table_paragraphs(table, seen_cells: set) -> Iterator:
    for row in table.rows:
        for cell in row.cells:
            # Merged cells appear once per grid position; visit each once.
            # The set holds the <w:tc> elements themselves so their proxies
            # stay alive and identity stays stable.
            if cell._tc in seen_cells:
                continue
            seen_cells.add(cell._tc)
            yield from cell.paragraphs
            for nested in cell.tables:
                yield from _iter_table_paragraphs(nested, seen_cells)


def _iter_block_paragraphs(container, seen_cells: set) -> Iterator:
    yield from container.paragraphs
    for table in container.tables:
        yield from _iter_table_paragraphs(table, seen_cells)


def _iter_docx_paragraphs(document) -> Iterator:
    seen_cells: set = set()
    yield from _iter_block_paragraphs(document, seen_cells)
    for section in document.sections:
        for part in (
            section.header,
            section.footer,
            section.first_page_header,
            section.first_page_footer,
            section.even_page_header,
            section.even_page_footer,
        ):
            # A linked header/footer has no definition of its own; touching
            # it would add an empty one to the saved document
            if part.is_linked_to_previous:
                continue
            yield from _iter_block_paragraphs(part, seen_cells)


def _render_paragraph(paragraph, data: Dict[str, Any]) -> None:
    runs = paragraph.runs
    if not runs:
        return

    for run in runs:
        if "{{" in run.text:
            run.text = _substitute(run.text, data)

    joined = "".join(run.text for run in runs)
    if "{{" not in joined:
        return
    rendered = _substitute(joined, data)
    if rendered == joined:
        return

    # A token spans several runs: keep the first run's formatting for the line
    runs[0].text = rendered
    for run in runs[1:]:
        run.text = ""


def _extract_docx(buffer: bytes) -> List[str]:
    document = load_docx(BytesIO(buffer))
    found: Dict[str, None] = {}
    for paragraph in _iter_docx_paragraphs(document):
        _collect("".join(run.text for run in paragraph.runs), found)
    return list(found)


def _render_docx(buffer: bytes, data: Dict[str, Any]) -> bytes:
    document = load_docx(BytesIO(buffer))
    for paragraph in _iter_docx_paragraphs(document):
        _render_paragraph(paragraph, data)
    out = BytesIO()
    document.save(out)
    return out.getvalue()


# ══════════════════════════════════════════════════════════════════════════
# Excel (openpyxl) helpers
# ══════════════════════════════════════════════════════════════════════════

def _iter_string_cells(workbook) -> Iterator:
    for worksheet in workbook.worksheets:
        for row in worksheet.iter_rows():
            for cell in row:
                if isinstance(cell.value, str) and "{{" in cell.value:
                    yield cell


def _extract_excel(buffer: bytes) -> List[str]:
    workbook = load_workbook(BytesIO(buffer))
    found: Dict[str, None] = {}
    for cell in _iter_string_cells(workbook):
        _collect(cell.value, found)
    return list(found)


def _render_excel(buffer: bytes, data: Dict[str, Any]) -> bytes:
    workbook = load_workbook(BytesIO(buffer))
    for cell in _iter_string_cells(workbook):
        whole = PLACEHOLDER_PATTERN.fullmatch(cell.value.strip())
        if whole and whole.group(1) in data:
            value = data[whole.group(1)]
            cell.value = value if isinstance(value, (int, float)) else render_value(value)
        else:
            cell.value = _substitute(cell.value, data)
    out = BytesIO()
    workbook.save(out)
    return out.getvalue()


# ══════════════════════════════════════════════════════════════════════════
# Processor
# ══════════════════════════════════════════════════════════════════════════

class OfficeDocumentProcessor(DocumentProcessor):
    """python-docx / openpyxl / LibreOffice implementation of DocumentProcessor."""

    def __init__(self, soffice_binary: Optional[str] = None, timeout: Optional[int] = None):
        self.soffice_binary = soffice_binary or settings.soffice_binary
        self.timeout = timeout or settings.pdf_conversion_timeout

    # ── Extraction ────────────────────────────────────────────────────────

    async def extract_placeholders_from_docx(self, buffer: bytes) -> List[str]:
        try:
            placeholders = await run_in_threadpool(_extract_docx, buffer)
        except Exception as e:
            raise self._processing_error("Could not read Word template", "extract_docx", e)
        logger.info("Extracted %d placeholders from docx", len(placeholders))
        return placeholders

    async def extract_placeholders_from_excel(self, buffer: bytes) -> List[str]:
        try:
            placeholders = await run_in_threadpool(_extract_excel, buffer)
        except Exception as e:
            raise self._processing_error("Could not read Excel template", "extract_excel", e)
        logger.info("Extracted %d placeholders from workbook", len(placeholders))
        return placeholders

    # ── Rendering ─────────────────────────────────────────────────────────

    async def process_docx_template(
        self,
        buffer: bytes,
        data: Dict[str, Any],
        base_name: str = "document",
    ) -> ProcessedDocument:
        try:
            rendered = await run_in_threadpool(_render_docx, buffer, data)
        except Exception as e:
            raise self._processing_error("Could not render Word template", "render_docx", e)
        return ProcessedDocument(
            processed_buffer=rendered,
            filename=_timestamped_name(base_name, FILE_EXTENSIONS["docx"]),
        )

    async def process_excel_template(
        self,
        buffer: bytes,
        data: Dict[str, Any],
        base_name: str = "document",
    ) -> ProcessedDocument:
        try:
            rendered = await run_in_threadpool(_render_excel, buffer, data)
        except Exception as e:
            raise self._processing_error("Could not render Excel template", "render_excel", e)
        return ProcessedDocument(
            processed_buffer=rendered,
            filename=_timestamped_name(base_name, FILE_EXTENSIONS["excel"]),
        )

    # ── PDF conversion ────────────────────────────────────────────────────

    async def convert_to_pdf(
        self,
        buffer: bytes,
        file_type: str,
        filename: Optional[str] = None,
    ) -> ProcessedDocument:
        extension = FILE_EXTENSIONS.get(file_type)
        if extension is None or file_type == "pdf":
            raise DocumentProcessingError(
                message=f"Cannot convert file type '{file_type}' to PDF",
                context={"file_type": file_type},
            )

        stem = PurePosixPath(filename).stem if filename else f"document-{int(time.time() * 1000)}"
        start_time = time.perf_counter()

        with tempfile.TemporaryDirectory(prefix="docsmith-pdf-") as tmp:
            workdir = Path(tmp)
            source = workdir / f"source{extension}"
            async with aiofiles.open(source, "wb") as f:
                await f.write(buffer)

            await self._run_soffice(workdir, source)

            target = workdir / "source.pdf"
            if not target.exists():
                raise DocumentProcessingError(
                    message="PDF conversion produced no output",
                    context={"file_type": file_type},
                )
            async with aiofiles.open(target, "rb") as f:
                pdf_bytes = await f.read()

        logger.info(
            "Converted %s to PDF in %.0fms (%d bytes)",
            file_type,
            (time.perf_counter() - start_time) * 1000,
            len(pdf_bytes),
        )
        return ProcessedDocument(processed_buffer=pdf_bytes, filename=f"{stem}.pdf")

    async def _run_soffice(self, workdir: Path, source: Path) -> None:
        command = [
            self.soffice_binary,
            "--headless",
            "--norestore",
            f"-env:UserInstallation={(workdir / 'profile').as_uri()}",
            "--convert-to",
            "pdf",
            "--outdir",
            str(workdir),
            str(source),
        ]
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise self._processing_error("PDF converter is not available", "convert_pdf", e)

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.error("LibreOffice conversion timed out after %ds", self.timeout)
            raise DocumentProcessingError(
                message="PDF conversion timed out",
                context={"timeout": self.timeout},
            )

        if process.returncode != 0:
            logger.error(
                "LibreOffice exited with %s: %s",
                process.returncode,
                stderr.decode(errors="replace")[:500],
            )
            raise DocumentProcessingError(
                message="PDF conversion failed",
                context={"returncode": process.returncode},
            )

    async def health_check(self) -> bool:
        return shutil.which(self.soffice_binary) is not None

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _processing_error(message: str, operation: str, error: Exception) -> DocumentProcessingError:
        logger.error("%s (%s): %s", message, operation, str(error))
        return DocumentProcessingError(
            message=message,
            context={"operation": operation, "error_type": type(error).__name__},
        )


# ── Singleton Instance ────────────────────────────────────────────────────
document_processor = OfficeDocumentProcessor()
