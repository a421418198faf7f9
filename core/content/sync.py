"""
Process one verified webhook delivery end to end.

classify -> reconcile -> one database transaction -> search sync.

The webhook route awaits this before answering GitHub, and nothing here may
raise: every failure is logged and sent to Sentry, and the database is left
as it was before the delivery.
"""

import logging
from typing import TYPE_CHECKING, Iterable

import sentry_sdk

from core.articles.repository import ArticleRepository

from .push_event import DEFAULT_CONTENT_EXTENSIONS, WebhookEvent, classify_push
from .reconciler import ReconciliationAborted, ReconciliationResult, Reconciler

if TYPE_CHECKING:
    from core.config import AllowedRepositories
    from core.search.sync import SearchSynchronizer

logger = logging.getLogger(__name__)


class ContentSyncService:
    """Applies push deliveries from allowed repositories to the articles table."""

    def __init__(
        self,
        allowed: "AllowedRepositories",
        reconciler: Reconciler,
        repository: ArticleRepository,
        synchronizer: "SearchSynchronizer",
        extensions: Iterable[str] = DEFAULT_CONTENT_EXTENSIONS,
    ):
        self._allowed = allowed
        self._reconciler = reconciler
        self._repository = repository
        self._synchronizer = synchronizer
        self._extensions = tuple(extensions)

    async def process_event(self, event: WebhookEvent) -> ReconciliationResult | None:
        """
        Handle one delivery.

        Returns:
            The committed ReconciliationResult, or None if nothing was written
        """
        try:
            return await self._process(event)
        except ReconciliationAborted as e:
            logger.error("Aborted push from %s: %s", event.repository_full_name, e)
            sentry_sdk.capture_exception(e)
        except Exception as e:
            logger.exception(
                "Failed to process %s event from %s",
                event.event_type,
                event.repository_full_name,
            )
            sentry_sdk.capture_exception(e)
        return None

    async def _process(self, event: WebhookEvent) -> ReconciliationResult | None:
        full_name = event.repository_full_name
        if full_name is None or full_name not in self._allowed.snapshot():
            logger.warning("Ignoring %s event from repository %s", event.event_type, full_name)
            return None

        if event.push is None:
            logger.info("Ignoring non-push event %s from %s", event.event_type, full_name)
            return None

        changes = classify_push(event.push, self._extensions)
        if changes.is_empty():
            logger.info("Push to %s touched no content files", full_name)
            return None

        repository = event.push.repository
        result = await self._reconciler.reconcile(
            repository.owner.login, repository.name, changes
        )
        if result.is_empty():
            return None

        async with self._repository.begin() as tx:
            await tx.upsert_batch(result.upserts)
            await tx.delete_batch(result.delete_ids)
            await tx.commit()

        logger.info(
            "Committed push to %s: %d upserts, %d deletes",
            full_name,
            len(result.upserts),
            len(result.delete_ids),
        )

        await self._synchronizer.sync_after_commit(result)
        return result
