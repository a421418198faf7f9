"""create articles table

Revision ID: 0001
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "articles",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("path", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column(
            "tags",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'"),
        ),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'draft'")),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("deleted_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint(
            "category IN ('article', 'note', 'think', 'pictures', 'talk')",
            name="ck_articles_valid_category",
        ),
    )
    op.create_index("idx_articles_path", "articles", ["path"])
    op.create_index("idx_articles_status", "articles", ["status"])
    op.create_index("idx_articles_category", "articles", ["category"])
    op.create_index("idx_articles_created_at", "articles", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_articles_created_at", table_name="articles")
    op.drop_index("idx_articles_category", table_name="articles")
    op.drop_index("idx_articles_status", table_name="articles")
    op.drop_index("idx_articles_path", table_name="articles")
    op.drop_table("articles")
