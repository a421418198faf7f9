"""Article read queries. Every function takes an open connection."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import articles

LIST_COLUMNS = (
    articles.c.id,
    articles.c.title,
    articles.c.tags,
    articles.c.category,
    articles.c.summary,
    articles.c.created_at,
    articles.c.updated_at,
)


async def get_posts_by_category(
    conn: AsyncConnection,
    category: str,
    limit: int,
    offset: int,
) -> list[dict[str, Any]]:
    """Newest-first page of live articles in one category."""
    result = await conn.execute(
        select(*LIST_COLUMNS)
        .where(articles.c.category == category)
        .where(articles.c.deleted_at.is_(None))
        .order_by(articles.c.created_at.desc(), articles.c.id)
        .limit(limit)
        .offset(offset)
    )
    return [dict(row) for row in result.mappings()]


async def get_article_by_id(
    conn: AsyncConnection,
    article_id: str,
    category: str | None = None,
) -> dict[str, Any] | None:
    """Get one live article, optionally constrained to a category."""
    query = (
        select(articles)
        .where(articles.c.id == article_id)
        .where(articles.c.deleted_at.is_(None))
    )
    if category is not None:
        query = query.where(articles.c.category == category)

    result = await conn.execute(query)
    row = result.mappings().first()
    return dict(row) if row else None


async def get_all_articles(conn: AsyncConnection) -> list[dict[str, Any]]:
    """All live articles, oldest first."""
    result = await conn.execute(
        select(articles)
        .where(articles.c.deleted_at.is_(None))
        .order_by(articles.c.created_at, articles.c.id)
    )
    return [dict(row) for row in result.mappings()]


async def get_ids_by_paths(
    conn: AsyncConnection,
    paths: list[str],
) -> dict[str, str]:
    """
    Resolve repository paths to the ids of the live articles stored there.

    Returns:
        Dict of path -> article id, only for paths that matched a row
    """
    if not paths:
        return {}

    result = await conn.execute(
        select(articles.c.path, articles.c.id)
        .where(articles.c.path.in_(paths))
        .where(articles.c.deleted_at.is_(None))
    )
    return {row["path"]: row["id"] for row in result.mappings()}
