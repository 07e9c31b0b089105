"""
Docsmith Backend: Metadata Repository
=======================================

What:  Persistence operations for Template and Document records.
How:   Thin async SQLAlchemy queries against the session handed in by the
       caller. Transactions are owned by get_db_session (commit/rollback),
       so create_* only flushes to obtain the generated id.
Who:   Called by TemplateService and DocumentService.

Operations:
    get_all_templates        SELECT * FROM templates ORDER BY id
    get_template             SELECT ... WHERE id = :id  (None when absent)
    create_template          INSERT, flush, return record with id
    get_all_documents        SELECT * FROM generated_documents ORDER BY id
    get_document             SELECT ... WHERE id = :id  (None when absent)
    create_document          INSERT, flush, return record with id
    get_documents_by_template  WHERE template_id = :id ORDER BY id

Any SQLAlchemy failure is raised as DatabaseError with the operation name in
its context; callers decide which user-facing message to attach.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError
from app.models.document import Document
from app.models.template import Template

logger = logging.getLogger(__name__)


class MetadataRepository:
    """Stateless query layer; every method receives the request's session."""

    # ── Templates ─────────────────────────────────────────────────────────

    async def get_all_templates(self, db: AsyncSession) -> List[Template]:
        try:
            result = await db.execute(select(Template).order_by(Template.id))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise self._database_error("get_all_templates", e)

    async def get_template(self, db: AsyncSession, template_id: int) -> Optional[Template]:
        try:
            result = await db.execute(select(Template).where(Template.id == template_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._database_error("get_template", e, template_id=template_id)

    async def create_template(
        self,
        db: AsyncSession,
        *,
        name: str,
        original_file_name: str,
        file_type: str,
        storage_url: str,
        storage_id: str,
        placeholders: List[str],
    ) -> Template:
        template = Template(
            name=name,
            original_file_name=original_file_name,
            file_type=file_type,
            storage_url=storage_url,
            storage_id=storage_id,
            placeholders=list(placeholders),
        )
        try:
            db.add(template)
            await db.flush()  # Assigns the autoincrement id without committing
        except SQLAlchemyError as e:
            raise self._database_error("create_template", e, storage_id=storage_id)

        logger.info("Template record created: id=%s storage_id=%s", template.id, storage_id)
        return template

    # ── Documents ─────────────────────────────────────────────────────────

    async def get_all_documents(self, db: AsyncSession) -> List[Document]:
        try:
            result = await db.execute(select(Document).order_by(Document.id))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise self._database_error("get_all_documents", e)

    async def get_document(self, db: AsyncSession, document_id: int) -> Optional[Document]:
        try:
            result = await db.execute(select(Document).where(Document.id == document_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._database_error("get_document", e, document_id=document_id)

    async def create_document(
        self,
        db: AsyncSession,
        *,
        template_id: int,
        name: str,
        file_type: str,
        storage_url: str,
        storage_id: str,
        placeholder_data: Dict[str, Any],
    ) -> Document:
        document = Document(
            template_id=template_id,
            name=name,
            file_type=file_type,
            storage_url=storage_url,
            storage_id=storage_id,
            placeholder_data=dict(placeholder_data),
        )
        try:
            db.add(document)
            await db.flush()
        except SQLAlchemyError as e:
            raise self._database_error("create_document", e, template_id=template_id)

        logger.info(
            "Document record created: id=%s template_id=%s file_type=%s",
            document.id,
            template_id,
            file_type,
        )
        return document

    async def get_documents_by_template(
        self, db: AsyncSession, template_id: int
    ) -> List[Document]:
        try:
            result = await db.execute(
                select(Document)
                .where(Document.template_id == template_id)
                .order_by(Document.id)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise self._database_error("get_documents_by_template", e, template_id=template_id)

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _database_error(operation: str, error: Exception, **context: Any) -> DatabaseError:
        logger.error("Database error in %s: %s", operation, str(error))
        return DatabaseError(
            context={"operation": operation, "error_type": type(error).__name__, **context},
        )


# ── Singleton Instance ────────────────────────────────────────────────────
repository = MetadataRepository()
