"""
Docsmith Backend: Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine / db_session: in-memory SQLite with the real schema
    ├── mock_db_session: AsyncMock session for pure service tests
    ├── temp_storage: temporary directory for LocalBlobStorage
    ├── docx_factory / xlsx_factory: build real Office files in memory
    └── test_client: HTTPX AsyncClient against the app, DB overridden to db_engine

Environment:
    Settings are read once at import time, so the overrides below must run
    before anything imports `app`.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BLOB_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="docsmith_test_")
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

from io import BytesIO
from typing import Iterable, List, Optional, Sequence
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from docx import Document as DocxDocument
from httpx import ASGITransport, AsyncClient
from openpyxl import Workbook, load_workbook
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db_session
from app.models.document import Document  # noqa: F401  (registers the table)
from app.models.template import Template  # noqa: F401


# ══════════════════════════════════════════════════════════════════════════
# Office file helpers
# ══════════════════════════════════════════════════════════════════════════

def build_docx(
    paragraphs: Iterable[str] = (),
    table: Optional[Sequence[Sequence[str]]] = None,
    header: Optional[str] = None,
    split_runs: Optional[Sequence[str]] = None,
) -> bytes:
    """
    Build a .docx in memory.

    split_runs: one extra paragraph whose text is spread over several runs,
    the way Word stores text that was edited piecemeal.
    """
    document = DocxDocument()
    for text in paragraphs:
        document.add_paragraph(text)
    if split_runs:
        paragraph = document.add_paragraph()
        for part in split_runs:
            paragraph.add_run(part)
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                grid.cell(r, c).text = value
    if header:
        section_header = document.sections[0].header
        section_header.is_linked_to_previous = False
        section_header.add_paragraph(header)
    out = BytesIO()
    document.save(out)
    return out.getvalue()


def docx_text(buffer: bytes) -> List[str]:
    """All paragraph texts of a .docx: body, then table cells, then headers."""
    document = DocxDocument(BytesIO(buffer))
    texts = [p.text for p in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            for cell in row.cells:
                texts.extend(p.text for p in cell.paragraphs)
    for section in document.sections:
        if not section.header.is_linked_to_previous:
            texts.extend(p.text for p in section.header.paragraphs)
    return texts


def build_xlsx(sheets: dict) -> bytes:
    """sheets: {"Sheet title": {"A1": value, ...}, ...}"""
    workbook = Workbook()
    workbook.remove(workbook.active)
    for title, cells in sheets.items():
        worksheet = workbook.create_sheet(title)
        for ref, value in cells.items():
            worksheet[ref] = value
    out = BytesIO()
    workbook.save(out)
    return out.getvalue()


def xlsx_cells(buffer: bytes, sheet: str) -> dict:
    worksheet = load_workbook(BytesIO(buffer))[sheet]
    return {
        cell.coordinate: cell.value
        for row in worksheet.iter_rows()
        for cell in row
        if cell.value is not None
    }


@pytest.fixture
def docx_factory():
    return build_docx


@pytest.fixture
def xlsx_factory():
    return build_xlsx


# ══════════════════════════════════════════════════════════════════════════
# Database fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite with the full schema.

    StaticPool keeps a single connection, so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for AsyncSession.

    Services never touch the session directly, so a bare mock is enough
    wherever the repository is mocked too.
    """
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


# ══════════════════════════════════════════════════════════════════════════
# API client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_engine):
    """
    HTTPX AsyncClient wired to the FastAPI app through ASGITransport.

    get_db_session is overridden to use the test engine with the same
    commit/rollback behaviour as the real dependency. Blob storage is the
    LocalBlobStorage singleton rooted in the temporary STORAGE_ROOT.
    """
    from app.main import app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_db_session():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
