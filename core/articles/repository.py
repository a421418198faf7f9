"""
Article persistence.

ArticleRepository is the capability set the reconciliation engine and the
search synchronizer depend on. SqlArticleRepository implements it on top of
an async SQLAlchemy engine; tests substitute in-memory fakes.
"""

from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncEngine

from core.enums import PostCategory
from core.queries import articles as article_queries

from .transaction import TransactionGuard
from .types import Article


class ArticleRepository(Protocol):
    def begin(self) -> TransactionGuard: ...

    async def get_ids_by_paths(self, paths: list[str]) -> dict[str, str]: ...

    async def get_all(self) -> list[Article]: ...

    async def get_by_id(
        self, article_id: str, category: PostCategory | None = None
    ) -> Article | None: ...

    async def get_posts_by_category(
        self, category: PostCategory, limit: int, offset: int
    ) -> list[dict[str, Any]]: ...


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def row_to_article(row: dict[str, Any]) -> Article:
    """Convert an articles row mapping to an Article."""
    return Article(
        id=row["id"],
        path=row["path"],
        title=row["title"],
        tags=list(row["tags"] or []),
        category=PostCategory(row["category"]),
        summary=row["summary"],
        content=row["content"],
        status=row["status"],
        created_at=_as_utc(row["created_at"]),
        updated_at=_as_utc(row["updated_at"]),
        deleted_at=_as_utc(row["deleted_at"]),
    )


class SqlArticleRepository:
    """ArticleRepository backed by the articles table."""

    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    def begin(self) -> TransactionGuard:
        """Create a unit of work. Use it as an async context manager."""
        return TransactionGuard(self._engine)

    async def get_ids_by_paths(self, paths: list[str]) -> dict[str, str]:
        async with self._engine.connect() as conn:
            return await article_queries.get_ids_by_paths(conn, list(paths))

    async def get_all(self) -> list[Article]:
        async with self._engine.connect() as conn:
            rows = await article_queries.get_all_articles(conn)
        return [row_to_article(row) for row in rows]

    async def get_by_id(
        self, article_id: str, category: PostCategory | None = None
    ) -> Article | None:
        async with self._engine.connect() as conn:
            row = await article_queries.get_article_by_id(
                conn, article_id, category.value if category else None
            )
        return row_to_article(row) if row else None

    async def get_posts_by_category(
        self, category: PostCategory, limit: int, offset: int
    ) -> list[dict[str, Any]]:
        async with self._engine.connect() as conn:
            rows = await article_queries.get_posts_by_category(
                conn, category.value, limit, offset
            )
        for row in rows:
            row["tags"] = list(row["tags"] or [])
            row["created_at"] = _as_utc(row["created_at"])
            row["updated_at"] = _as_utc(row["updated_at"])
        return rows
