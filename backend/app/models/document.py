"""
Docsmith Backend: Generated Document SQLAlchemy Model
=======================================================

What:  ORM model representing the `generated_documents` table.
Who:   Used by MetadataRepository; read by the document download path to
       regenerate a file on demand.

Table Design:
    - template_id: plain indexed integer, not a foreign key. Documents are a
      weak reference to their template; nothing cascades.
    - placeholder_data: JSON object of the values used at generation time.
      Together with the template blob it is enough to rebuild the file, so
      the stored generated blob is never read back by this service.
    - file_type: 'docx' | 'excel' | 'pdf'
"""

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, TIMESTAMP, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Document(Base):
    """A file produced by filling a template's placeholders."""

    __tablename__ = "generated_documents"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    template_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Template this document was generated from (no FK, no cascade)",
    )

    name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Generated filename, also used in Content-Disposition on download",
    )

    file_type: Mapped[str] = mapped_column(String(20), nullable=False)

    storage_url: Mapped[str] = mapped_column(Text, nullable=False)

    storage_id: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Blob key inside the generated-docs bucket",
    )

    placeholder_data: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Placeholder values captured at generation time",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_generated_documents_template_id", "template_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Document(id={self.id}, template_id={self.template_id}, "
            f"file_type='{self.file_type}')>"
        )
