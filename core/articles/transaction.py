"""
Unit of work for applying one reconciliation result.

A TransactionGuard owns a single connection for its lifetime. Upserts and
deletes are staged inside one database transaction and become visible only
when commit() succeeds. Leaving the `async with` block without committing
rolls everything back, so a failure partway through staging leaves the
stored articles exactly as they were.

Usage:
    async with repository.begin() as tx:
        await tx.upsert_batch(result.upserts)
        await tx.delete_batch(result.delete_ids)
        await tx.commit()
"""

import logging
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncTransaction

from core.tables import articles

from .types import Article

logger = logging.getLogger(__name__)

# Columns overwritten when an article id already exists. created_at is not
# listed so the original creation time survives edits and renames.
UPSERT_COLUMNS = (
    "path",
    "title",
    "tags",
    "category",
    "summary",
    "content",
    "status",
    "updated_at",
)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class TransactionClosedError(Exception):
    """Raised when a guard is used after commit, rollback, or before entry."""

    pass


class TransactionGuard:
    """Stage article upserts and deletes, then commit them atomically."""

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._conn: AsyncConnection | None = None
        self._transaction: AsyncTransaction | None = None
        self._finished = False

    async def __aenter__(self) -> "TransactionGuard":
        if self._conn is not None or self._finished:
            raise TransactionClosedError("TransactionGuard cannot be entered twice")
        self._conn = await self._engine.connect()
        self._transaction = await self._conn.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if not self._finished:
                await self._transaction.rollback()
                if exc_type is None:
                    logger.warning("TransactionGuard left without commit; rolled back")
                else:
                    logger.info("Rolled back staged changes after %s", exc_type.__name__)
        finally:
            self._finished = True
            await self._conn.close()

    @property
    def is_active(self) -> bool:
        return self._conn is not None and not self._finished

    def _require_active(self) -> AsyncConnection:
        if not self.is_active:
            raise TransactionClosedError("TransactionGuard is not active")
        return self._conn

    async def upsert_batch(self, batch: Iterable[Article]) -> int:
        """
        Insert or replace articles keyed by id.

        If the same id appears more than once, the last one wins.

        Returns:
            Number of distinct articles written
        """
        conn = self._require_active()

        rows_by_id = {article.id: article.to_row() for article in batch}
        if not rows_by_id:
            return 0

        insert = _INSERT_BY_DIALECT.get(conn.dialect.name)
        if insert is None:
            raise NotImplementedError(f"Upsert not supported for {conn.dialect.name}")

        stmt = insert(articles).values(list(rows_by_id.values()))
        set_ = {column: stmt.excluded[column] for column in UPSERT_COLUMNS}
        set_["deleted_at"] = None
        stmt = stmt.on_conflict_do_update(index_elements=[articles.c.id], set_=set_)

        await conn.execute(stmt)
        logger.debug("Staged upsert of %d articles", len(rows_by_id))
        return len(rows_by_id)

    async def delete_batch(self, ids: Iterable[str]) -> int:
        """
        Soft-delete articles by id. Unknown or already deleted ids are ignored.

        Returns:
            Number of rows marked deleted
        """
        conn = self._require_active()

        id_list = sorted(set(ids))
        if not id_list:
            return 0

        now = datetime.now(timezone.utc)
        result = await conn.execute(
            update(articles)
            .where(articles.c.id.in_(id_list))
            .where(articles.c.deleted_at.is_(None))
            .values(deleted_at=now, updated_at=now)
        )
        logger.debug("Staged delete of %d articles", result.rowcount)
        return result.rowcount

    async def commit(self) -> None:
        """Make all staged changes visible. The guard is unusable afterwards."""
        self._require_active()
        try:
            await self._transaction.commit()
        finally:
            self._finished = True
