"""Create templates and generated_documents tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the two metadata tables: uploaded templates and the documents
       generated from them.
How:   Integer identity keys, JSON columns for placeholder lists/values,
       TIMESTAMP WITH TIME ZONE for creation times.

generated_documents.template_id is intentionally a plain indexed integer:
documents keep a weak reference to their template.

Rollback: downgrade() drops both tables (destructive, all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "templates",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column(
            "original_file_name",
            sa.Text(),
            nullable=False,
            comment="Filename as uploaded by the client",
        ),
        sa.Column("file_type", sa.String(20), nullable=False),
        sa.Column(
            "storage_url",
            sa.Text(),
            nullable=False,
            comment="Fetchable URL of the stored blob",
        ),
        sa.Column(
            "storage_id",
            sa.Text(),
            nullable=False,
            comment="Blob key inside the templates bucket: {epochMillis}-{filename}",
        ),
        sa.Column(
            "placeholders",
            sa.JSON(),
            nullable=False,
            comment="Placeholder names found at upload time, first-seen order",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_templates_created_at", "templates", ["created_at"])

    op.create_table(
        "generated_documents",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "template_id",
            sa.Integer(),
            nullable=False,
            comment="Template this document was generated from (no FK, no cascade)",
        ),
        sa.Column(
            "name",
            sa.Text(),
            nullable=False,
            comment="Generated filename, also used in Content-Disposition on download",
        ),
        sa.Column("file_type", sa.String(20), nullable=False),
        sa.Column("storage_url", sa.Text(), nullable=False),
        sa.Column(
            "storage_id",
            sa.Text(),
            nullable=False,
            comment="Blob key inside the generated-docs bucket",
        ),
        sa.Column(
            "placeholder_data",
            sa.JSON(),
            nullable=False,
            comment="Placeholder values captured at generation time",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_generated_documents_template_id",
        "generated_documents",
        ["template_id"],
    )


def downgrade() -> None:
    op.drop_index("idx_generated_documents_template_id", table_name="generated_documents")
    op.drop_table("generated_documents")
    op.drop_index("idx_templates_created_at", table_name="templates")
    op.drop_table("templates")
