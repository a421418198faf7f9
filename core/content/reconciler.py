"""
Reconcile the file changes of one push against stored articles.

Articles are identified by the `id` in their front matter, not by path.
Git reports a rename as "removed old path" plus "added new path", so an
added file whose id belongs to one of the removed paths is treated as the
same article moving, not as a delete followed by a create.

The result is a pair of disjoint sets (articles to upsert, ids to delete)
that the caller applies in a single transaction.

Failure policy:
- A file that can't be fetched, decoded or parsed is logged and left out of
  both sets. It is treated as if the push never mentioned it, so it also
  can't act as the "added" half of a rename.
- A GitHubAuthError (bad token, rate limit) aborts the whole batch, since
  every other fetch in the push would fail the same way.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from core.articles.frontmatter import FrontMatterError, extract_front_matter
from core.articles.repository import ArticleRepository
from core.articles.types import Article, ArticleFrontMatter, build_article

from .github_fetcher import ContentFetcher, GitHubAuthError, GitHubFetchError
from .push_event import ChangeSet, FileChange

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 8


class ReconciliationAborted(Exception):
    """Raised when a push can't be reconciled at all."""

    pass


@dataclass
class ReconciliationResult:
    """What to write for one push."""

    upserts: list[Article] = field(default_factory=list)
    delete_ids: set[str] = field(default_factory=set)
    # (article id, old path, new path)
    renames: list[tuple[str, str, str]] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.upserts and not self.delete_ids


class Reconciler:
    """Turns a ChangeSet into upserts and deletes."""

    def __init__(
        self,
        fetcher: ContentFetcher,
        repository: ArticleRepository,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        self._fetcher = fetcher
        self._repository = repository
        self._max_concurrency = max(1, max_concurrency)

    async def reconcile(
        self,
        owner: str,
        repo: str,
        changes: ChangeSet,
    ) -> ReconciliationResult:
        """
        Resolve every changed file and compute the writes for this push.

        Args:
            owner: Repository owner login
            repo: Repository name
            changes: Output of classify_push()

        Returns:
            ReconciliationResult whose upsert ids and delete ids never overlap

        Raises:
            ReconciliationAborted: GitHub rejected our credentials
        """
        result = ReconciliationResult()

        # Rename detection needs the added and removed sides together, so
        # every fetch finishes before any diffing happens.
        parsed = await self._load_all(owner, repo, changes.modified + changes.added)
        result.skipped = [path for path, item in parsed.items() if item is None]

        upserts: dict[str, Article] = {}

        for change in changes.modified:
            article = self._build(change, parsed.get(change.path))
            if article is not None:
                self._stage(upserts, article)

        removed_ids_by_path = await self._repository.get_ids_by_paths(
            [change.path for change in changes.removed]
        )
        paths_by_removed_id = {
            article_id: path for path, article_id in removed_ids_by_path.items()
        }

        for change in changes.added:
            article = self._build(change, parsed.get(change.path))
            if article is None:
                continue

            old_path = paths_by_removed_id.pop(article.id, None)
            if old_path is not None:
                logger.info(
                    "Article %s moved from %s to %s", article.id, old_path, article.path
                )
                result.renames.append((article.id, old_path, article.path))

            self._stage(upserts, article)

        result.upserts = list(upserts.values())
        result.delete_ids = set(paths_by_removed_id) - upserts.keys()

        logger.info(
            "Reconciled %s/%s: %d upserts, %d deletes, %d renames, %d skipped",
            owner,
            repo,
            len(result.upserts),
            len(result.delete_ids),
            len(result.renames),
            len(result.skipped),
        )
        return result

    async def _load_all(
        self,
        owner: str,
        repo: str,
        changes: list[FileChange],
    ) -> dict[str, tuple[ArticleFrontMatter, str] | None]:
        """Fetch and parse each distinct path once, concurrently."""
        paths = list(dict.fromkeys(change.path for change in changes))
        if not paths:
            return {}

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def load(path: str):
            async with semaphore:
                return await self._load(owner, repo, path)

        outcomes = await asyncio.gather(
            *(load(path) for path in paths), return_exceptions=True
        )

        loaded: dict[str, tuple[ArticleFrontMatter, str] | None] = {}
        for path, outcome in zip(paths, outcomes):
            if isinstance(outcome, GitHubAuthError):
                raise ReconciliationAborted(str(outcome)) from outcome
            if isinstance(outcome, BaseException):
                raise outcome
            loaded[path] = outcome
        return loaded

    async def _load(
        self,
        owner: str,
        repo: str,
        path: str,
    ) -> tuple[ArticleFrontMatter, str] | None:
        try:
            text = await self._fetcher.fetch_file(owner, repo, path)
        except GitHubAuthError:
            raise
        except GitHubFetchError as e:
            logger.warning("Skipping %s: %s", path, e)
            return None

        try:
            return extract_front_matter(text)
        except FrontMatterError as e:
            logger.warning("Skipping %s: %s", path, e)
            return None

    @staticmethod
    def _build(
        change: FileChange,
        parsed: tuple[ArticleFrontMatter, str] | None,
    ) -> Article | None:
        if parsed is None:
            return None
        front_matter, body = parsed
        return build_article(
            front_matter,
            path=change.path,
            content=body,
            timestamp=change.timestamp,
        )

    @staticmethod
    def _stage(upserts: dict[str, Article], article: Article) -> None:
        existing = upserts.get(article.id)
        if existing is not None:
            if existing.path != article.path:
                logger.warning(
                    "Article id %s is used by both %s and %s; keeping %s",
                    article.id,
                    existing.path,
                    article.path,
                    article.path,
                )
            article.created_at = min(existing.created_at, article.created_at)
            article.updated_at = max(existing.updated_at, article.updated_at)
        upserts[article.id] = article
