"""
Docsmith Backend: Template SQLAlchemy Model
=============================================

What:  ORM model representing the `templates` table.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by MetadataRepository for reads/inserts and by Alembic.
When:  Instantiated on template upload; queried on list/fetch/download/generate.

Table Design:
    - Integer autoincrement id: routes address templates as /templates/{id}
    - storage_id: filename key inside the `templates` bucket; the only field
      used to fetch the blob back
    - storage_url: public/fetchable URL returned by the blob store
    - placeholders: JSON array of token names in first-seen order
    - created_at: UTC, never naive

Records are immutable after insert: no update or delete path exists.
"""

from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, TIMESTAMP, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Template(Base):
    """An uploaded Word/Excel master containing `{{placeholder}}` tokens."""

    __tablename__ = "templates"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    # Display name; equals the uploaded filename
    name: Mapped[str] = mapped_column(Text, nullable=False)

    original_file_name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Filename as uploaded by the client",
    )

    # 'docx' | 'excel' (decided from the filename suffix at upload)
    file_type: Mapped[str] = mapped_column(String(20), nullable=False)

    storage_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Fetchable URL of the stored blob",
    )

    storage_id: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Blob key inside the templates bucket: {epochMillis}-{filename}",
    )

    placeholders: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Placeholder names found at upload time, first-seen order",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_templates_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Template(id={self.id}, name='{self.name}', file_type='{self.file_type}')>"
