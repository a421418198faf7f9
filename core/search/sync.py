"""
Keep the search index in step with the articles table.

Runs after a reconciliation commit. The database is the source of truth and
indexing is idempotent, so a failed sync only leaves search results stale
until the next successful one; errors are logged and reported, not raised.
"""

import logging
from typing import TYPE_CHECKING, Literal

import sentry_sdk

from core.articles.repository import ArticleRepository

from .index import SearchError, SearchIndex

if TYPE_CHECKING:
    from core.content.reconciler import ReconciliationResult

logger = logging.getLogger(__name__)

SEARCHABLE_ATTRIBUTES = ["title", "summary", "content"]

SyncMode = Literal["rebuild", "incremental"]
SYNC_MODES = ("rebuild", "incremental")


class SearchSynchronizer:
    """Mirror committed article changes into the search index."""

    def __init__(
        self,
        index: SearchIndex,
        repository: ArticleRepository,
        mode: SyncMode = "rebuild",
    ):
        if mode not in SYNC_MODES:
            raise ValueError(f"Unknown search sync mode: {mode}")
        self._index = index
        self._repository = repository
        self.mode = mode

    async def rebuild(self) -> int:
        """
        Replace the index with every live article.

        Returns:
            Number of documents indexed
        """
        articles = await self._repository.get_all()
        await self._index.replace_all(
            [article.to_document() for article in articles],
            SEARCHABLE_ATTRIBUTES,
        )
        return len(articles)

    async def apply(self, result: "ReconciliationResult") -> None:
        """Upsert and delete only the documents touched by one commit."""
        await self._index.upsert_documents(
            [article.to_document() for article in result.upserts]
        )
        await self._index.delete_documents(result.delete_ids)

    async def sync_after_commit(self, result: "ReconciliationResult") -> bool:
        """
        Bring the index up to date after a successful commit.

        Returns:
            True if the index was updated, False if the sync failed
        """
        try:
            if self.mode == "rebuild":
                count = await self.rebuild()
                logger.info("Search index rebuilt with %d articles", count)
            else:
                await self.apply(result)
                logger.info(
                    "Search index updated: %d upserts, %d deletes",
                    len(result.upserts),
                    len(result.delete_ids),
                )
            return True
        except SearchError as e:
            logger.error("Search index sync failed: %s", e)
            sentry_sdk.capture_exception(e)
            return False
