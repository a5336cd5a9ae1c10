"""Add quotes to the documents table

Revision ID: d7e2f3a4b5c6
Revises: c4d1e8a2f901
Create Date: 2026-10-18 12:00:00.000000

Quotes share the documents / document_lines tables (document_type = "quote",
numbers DV-YYYY-NNNN from document_sequences). Only their validity date is new:
- valid_until: last day the quoted prices hold (nullable, quotes only)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "d7e2f3a4b5c6"
down_revision = "c4d1e8a2f901"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("documents", schema=None) as batch_op:
        batch_op.add_column(sa.Column("valid_until", sa.Date(), nullable=True))


def downgrade():
    with op.batch_alter_table("documents", schema=None) as batch_op:
        batch_op.drop_column("valid_until")
