"""
Docsmith Backend: Metadata Repository Tests
=============================================

What:  Tests for MetadataRepository against an in-memory SQLite database.

What we test:
    ✅ Created templates/documents get ids and round-trip their JSON columns
    ✅ Missing ids return None
    ✅ Filenames and storage keys longer than 255 characters fit
    ✅ Lists are ordered by id
    ✅ Documents are filtered by template id (no FK required)
    ✅ SQLAlchemy failures surface as DatabaseError
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import Text
from sqlalchemy.exc import OperationalError

from app.exceptions import DatabaseError
from app.models.document import Document
from app.models.template import Template
from app.services.repository import MetadataRepository


async def _create_template(repo, db, name="invoice.docx", placeholders=("client",)):
    return await repo.create_template(
        db,
        name=name,
        original_file_name=name,
        file_type="docx",
        storage_url=f"/api/files/templates/1700000000000-{name}",
        storage_id=f"1700000000000-{name}",
        placeholders=list(placeholders),
    )


async def _create_document(repo, db, template_id, data=None):
    return await repo.create_document(
        db,
        template_id=template_id,
        name="invoice-1700000000001.docx",
        file_type="docx",
        storage_url="/api/files/generated-docs/invoice-1700000000001.docx",
        storage_id="invoice-1700000000001.docx",
        placeholder_data=data or {"client": "Acme"},
    )


class TestTemplates:

    def setup_method(self):
        self.repo = MetadataRepository()

    @pytest.mark.asyncio
    async def test_create_and_get(self, db_session):
        created = await _create_template(self.repo, db_session, placeholders=["b", "a"])
        await db_session.commit()

        fetched = await self.repo.get_template(db_session, created.id)

        assert created.id is not None
        assert fetched.name == "invoice.docx"
        assert fetched.placeholders == ["b", "a"]
        assert fetched.storage_id == "1700000000000-invoice.docx"
        assert fetched.created_at is not None

    @pytest.mark.asyncio
    async def test_long_filename_is_kept_whole(self, db_session):
        name = "q" * 300 + ".docx"
        created = await _create_template(self.repo, db_session, name=name)
        await db_session.commit()

        fetched = await self.repo.get_template(db_session, created.id)

        assert fetched.original_file_name == name
        assert fetched.storage_id == f"1700000000000-{name}"

    def test_filename_columns_are_unbounded(self):
        for table in (Template.__table__, Document.__table__):
            for column in ("name", "storage_id"):
                assert isinstance(table.c[column].type, Text)
        assert isinstance(Template.__table__.c.original_file_name.type, Text)

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, db_session):
        assert await self.repo.get_template(db_session, 999) is None

    @pytest.mark.asyncio
    async def test_list_ordered_by_id(self, db_session):
        first = await _create_template(self.repo, db_session, name="a.docx")
        second = await _create_template(self.repo, db_session, name="b.xlsx", placeholders=())

        templates = await self.repo.get_all_templates(db_session)

        assert [t.id for t in templates] == [first.id, second.id]
        assert templates[1].placeholders == []

    @pytest.mark.asyncio
    async def test_query_failure_raises_database_error(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("connection lost"))
        )

        with pytest.raises(DatabaseError) as exc_info:
            await self.repo.get_all_templates(mock_db_session)

        assert exc_info.value.context["operation"] == "get_all_templates"


class TestDocuments:

    def setup_method(self):
        self.repo = MetadataRepository()

    @pytest.mark.asyncio
    async def test_create_and_get(self, db_session):
        created = await _create_document(
            self.repo, db_session, template_id=7, data={"client": "Acme", "amount": 120}
        )

        fetched = await self.repo.get_document(db_session, created.id)

        assert fetched.template_id == 7
        assert fetched.placeholder_data == {"client": "Acme", "amount": 120}

    @pytest.mark.asyncio
    async def test_template_id_is_a_weak_reference(self, db_session):
        """Documents can point at a template id that does not exist."""
        document = await _create_document(self.repo, db_session, template_id=12345)
        await db_session.commit()

        assert document.id is not None

    @pytest.mark.asyncio
    async def test_documents_by_template(self, db_session):
        template = await _create_template(self.repo, db_session)
        other = await _create_template(self.repo, db_session, name="other.docx")
        d1 = await _create_document(self.repo, db_session, template.id)
        await _create_document(self.repo, db_session, other.id)
        d3 = await _create_document(self.repo, db_session, template.id)

        documents = await self.repo.get_documents_by_template(db_session, template.id)

        assert [d.id for d in documents] == [d1.id, d3.id]
        assert await self.repo.get_documents_by_template(db_session, 999) == []

    @pytest.mark.asyncio
    async def test_list_all(self, db_session):
        await _create_document(self.repo, db_session, 1)
        await _create_document(self.repo, db_session, 2)

        documents = await self.repo.get_all_documents(db_session)

        assert [d.template_id for d in documents] == [1, 2]

    @pytest.mark.asyncio
    async def test_flush_failure_raises_database_error(self, mock_db_session):
        mock_db_session.flush = AsyncMock(
            side_effect=OperationalError("INSERT", {}, Exception("disk full"))
        )

        with pytest.raises(DatabaseError):
            await _create_document(self.repo, mock_db_session, 1)
