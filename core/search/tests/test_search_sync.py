"""Tests for SearchSynchronizer."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from core.articles.types import Article
from core.content.reconciler import ReconciliationResult
from core.enums import PostCategory
from core.search.index import SearchError
from core.search.sync import SEARCHABLE_ATTRIBUTES, SearchSynchronizer

WHEN = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def _article(article_id):
    return Article(
        id=article_id,
        path=f"posts/{article_id}.md",
        title=f"Title {article_id}",
        category=PostCategory.article,
        content="Body",
        created_at=WHEN,
        updated_at=WHEN,
    )


@pytest.fixture
def index():
    return AsyncMock()


@pytest.fixture
def repository():
    repo = AsyncMock()
    repo.get_all.return_value = [_article("a1"), _article("b1")]
    return repo


class TestSearchSynchronizer:
    def test_rejects_unknown_mode(self, index, repository):
        with pytest.raises(ValueError):
            SearchSynchronizer(index, repository, mode="sometimes")

    @pytest.mark.asyncio
    async def test_rebuild_indexes_every_live_article(self, index, repository):
        count = await SearchSynchronizer(index, repository).rebuild()

        assert count == 2
        documents, attributes = index.replace_all.await_args.args
        assert [doc["id"] for doc in documents] == ["a1", "b1"]
        assert documents[0]["created_at"] == "2024-05-01T10:00:00+00:00"
        assert documents[0]["summary"] == ""
        assert attributes == SEARCHABLE_ATTRIBUTES

    @pytest.mark.asyncio
    async def test_rebuild_mode_ignores_result_contents(self, index, repository):
        result = ReconciliationResult(upserts=[_article("a1")], delete_ids={"z1"})

        assert await SearchSynchronizer(index, repository).sync_after_commit(result)

        index.replace_all.assert_awaited_once()
        index.upsert_documents.assert_not_called()
        index.delete_documents.assert_not_called()

    @pytest.mark.asyncio
    async def test_incremental_mode_applies_only_the_result(self, index, repository):
        result = ReconciliationResult(upserts=[_article("a1")], delete_ids={"z1"})
        sync = SearchSynchronizer(index, repository, mode="incremental")

        assert await sync.sync_after_commit(result)

        index.upsert_documents.assert_awaited_once()
        assert index.upsert_documents.await_args.args[0][0]["id"] == "a1"
        index.delete_documents.assert_awaited_once_with({"z1"})
        repository.get_all.assert_not_called()

    @pytest.mark.asyncio
    async def test_search_errors_are_reported_not_raised(self, index, repository):
        index.replace_all.side_effect = SearchError("meilisearch down")

        with patch("core.search.sync.sentry_sdk") as mock_sentry:
            ok = await SearchSynchronizer(index, repository).sync_after_commit(
                ReconciliationResult()
            )

        assert ok is False
        mock_sentry.capture_exception.assert_called_once()
