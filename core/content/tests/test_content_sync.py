"""End-to-end tests for ContentSyncService against a SQLite database."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from core.articles.repository import SqlArticleRepository
from core.config import AllowedRepositories
from core.content.github_fetcher import GitHubAuthError
from core.content.push_event import parse_webhook_event
from core.content.reconciler import Reconciler
from core.content.sync import ContentSyncService

from .fakes import FakeFetcher, make_document

REPO = "octocat/blog"
COMMIT_TIME = "2024-05-01T10:00:00Z"
COMMIT_DT = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def push_event(commits, full_name=REPO):
    owner, name = full_name.split("/")
    body = {
        "ref": "refs/heads/main",
        "repository": {"name": name, "full_name": full_name, "owner": {"login": owner}},
        "commits": commits,
    }
    return parse_webhook_event("push", json.dumps(body).encode())


def commit(added=(), removed=(), modified=(), timestamp=COMMIT_TIME):
    return {
        "id": "abc123",
        "timestamp": timestamp,
        "added": list(added),
        "removed": list(removed),
        "modified": list(modified),
    }


@pytest.fixture
def repository(sqlite_engine):
    return SqlArticleRepository(sqlite_engine)


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def synchronizer():
    sync = AsyncMock()
    sync.sync_after_commit.return_value = True
    return sync


@pytest.fixture
def service(repository, fetcher, synchronizer):
    return ContentSyncService(
        AllowedRepositories([REPO]),
        Reconciler(fetcher, repository),
        repository,
        synchronizer,
    )


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_new_file_creates_article(self, service, repository, fetcher):
        fetcher.files["posts/a.md"] = make_document("a1", title="First post")

        await service.process_event(push_event([commit(added=["posts/a.md"])]))

        article = await repository.get_by_id("a1")
        assert article is not None
        assert article.path == "posts/a.md"
        assert article.title == "First post"
        assert article.created_at == article.updated_at == COMMIT_DT

    @pytest.mark.asyncio
    async def test_rename_updates_path_without_delete(self, service, repository, fetcher):
        fetcher.files["posts/b-old.md"] = make_document("b1")
        await service.process_event(
            push_event([commit(added=["posts/b-old.md"], timestamp="2024-04-01T00:00:00Z")])
        )

        fetcher.files["posts/b-new.md"] = fetcher.files.pop("posts/b-old.md")
        result = await service.process_event(
            push_event([commit(added=["posts/b-new.md"], removed=["posts/b-old.md"])])
        )

        assert result.delete_ids == set()
        article = await repository.get_by_id("b1")
        assert article.path == "posts/b-new.md"
        assert article.deleted_at is None
        # created_at survives the move
        assert article.created_at == datetime(2024, 4, 1, tzinfo=timezone.utc)
        assert article.updated_at == COMMIT_DT

    @pytest.mark.asyncio
    async def test_removed_file_is_soft_deleted(self, service, repository, fetcher):
        fetcher.files["posts/gone.md"] = make_document("g1")
        await service.process_event(push_event([commit(added=["posts/gone.md"])]))

        await service.process_event(push_event([commit(removed=["posts/gone.md"])]))

        assert await repository.get_by_id("g1") is None
        assert await repository.get_ids_by_paths(["posts/gone.md"]) == {}

    @pytest.mark.asyncio
    async def test_redelivery_is_idempotent(self, service, repository, fetcher):
        fetcher.files["posts/a.md"] = make_document("a1")
        fetcher.files["posts/b.md"] = make_document("b1")
        event = push_event([commit(added=["posts/a.md", "posts/b.md"])])

        await service.process_event(event)
        first = {a.id: a for a in await repository.get_all()}
        await service.process_event(event)
        second = {a.id: a for a in await repository.get_all()}

        assert first == second

    @pytest.mark.asyncio
    async def test_search_synced_after_commit(self, service, fetcher, synchronizer):
        fetcher.files["posts/a.md"] = make_document("a1")

        result = await service.process_event(push_event([commit(added=["posts/a.md"])]))

        synchronizer.sync_after_commit.assert_awaited_once_with(result)


class TestFiltering:
    @pytest.mark.asyncio
    async def test_repository_not_allowed_is_ignored(self, service, repository, fetcher, synchronizer):
        fetcher.files["posts/a.md"] = make_document("a1")

        result = await service.process_event(
            push_event([commit(added=["posts/a.md"])], full_name="mallory/evil")
        )

        assert result is None
        assert fetcher.calls == []
        assert await repository.get_all() == []
        synchronizer.sync_after_commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_push_event_is_ignored(self, service, fetcher):
        event = parse_webhook_event("ping", json.dumps({"repository": {"full_name": REPO}}).encode())

        assert await service.process_event(event) is None
        assert fetcher.calls == []

    @pytest.mark.asyncio
    async def test_push_without_content_files(self, service, fetcher, synchronizer):
        result = await service.process_event(push_event([commit(added=["logo.png"])]))

        assert result is None
        synchronizer.sync_after_commit.assert_not_called()


class TestFailures:
    @pytest.mark.asyncio
    async def test_auth_failure_writes_nothing_and_reports(self, service, repository, fetcher):
        fetcher.files["posts/a.md"] = make_document("a1")
        fetcher.files["posts/b.md"] = GitHubAuthError("bad credentials", "posts/b.md")

        with patch("core.content.sync.sentry_sdk") as mock_sentry:
            result = await service.process_event(
                push_event([commit(added=["posts/a.md", "posts/b.md"])])
            )

        assert result is None
        assert await repository.get_all() == []
        mock_sentry.capture_exception.assert_called_once()

    @pytest.mark.asyncio
    async def test_commit_failure_is_swallowed_and_rolled_back(
        self, service, repository, fetcher, synchronizer
    ):
        fetcher.files["posts/a.md"] = make_document("a1")

        with (
            patch(
                "core.articles.transaction.TransactionGuard.delete_batch",
                AsyncMock(side_effect=RuntimeError("disk full")),
            ),
            patch("core.content.sync.sentry_sdk") as mock_sentry,
        ):
            result = await service.process_event(push_event([commit(added=["posts/a.md"])]))

        assert result is None
        assert await repository.get_all() == []
        mock_sentry.capture_exception.assert_called_once()
        synchronizer.sync_after_commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_bad_file_does_not_block_others(self, service, repository, fetcher):
        fetcher.files["posts/bad.md"] = "---\ntitle: [unclosed\n---\nbody"
        fetcher.files["posts/good.md"] = make_document("g1")

        await service.process_event(
            push_event([commit(added=["posts/bad.md", "posts/good.md"])])
        )

        assert [a.id for a in await repository.get_all()] == ["g1"]
