"""SQLAlchemy Core table definitions."""

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Index,
    MetaData,
    Table,
    TIMESTAMP,
    Text,
    text,
)
from sqlalchemy.dialects import postgresql

from .enums import PostCategory

metadata = MetaData()

# TEXT[] on PostgreSQL, JSON elsewhere (SQLite in tests)
TagList = postgresql.ARRAY(Text).with_variant(JSON(), "sqlite")

_category_values = ", ".join(f"'{value}'" for value in PostCategory.values())

articles = Table(
    "articles",
    metadata,
    Column("id", Text, primary_key=True),
    # Not unique: a path can be reused after its article moved elsewhere
    Column("path", Text, nullable=False),
    Column("title", Text, nullable=False),
    Column("tags", TagList, nullable=False, server_default=text("'{}'")),
    Column("category", Text, nullable=False),
    Column("summary", Text, nullable=True),
    Column("content", Text, nullable=False),
    Column("status", Text, nullable=False, server_default=text("'draft'")),
    Column(
        "created_at",
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    ),
    Column(
        "updated_at",
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    ),
    Column("deleted_at", TIMESTAMP(timezone=True), nullable=True),
    CheckConstraint(
        f"category IN ({_category_values})",
        name="ck_articles_valid_category",
    ),
    Index("idx_articles_path", "path"),
    Index("idx_articles_status", "status"),
    Index("idx_articles_category", "category"),
    Index("idx_articles_created_at", "created_at"),
)
