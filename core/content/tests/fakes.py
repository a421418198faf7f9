"""Test doubles for the content pipeline.

FakeFetcher serves files from a dict instead of the GitHub API. A value that
is an exception instance is raised instead of returned.
"""

from datetime import datetime, timezone

from core.articles.types import Article
from core.content.github_fetcher import ContentNotFoundError
from core.enums import PostCategory


def make_document(article_id, title="Title", category="article", body="Body text.", **extra):
    """Build a content file with YAML front matter."""
    lines = ["---", f"id: {article_id}", f"title: {title}", f"category: {category}"]
    lines += [f"{key}: {value}" for key, value in extra.items()]
    lines += ["---", "", body]
    return "\n".join(lines)


class FakeFetcher:
    def __init__(self, files=None):
        self.files = dict(files or {})
        self.calls = []

    async def fetch_file(self, owner, repo, path):
        self.calls.append((owner, repo, path))
        value = self.files.get(path)
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise ContentNotFoundError(f"File not found: {path}", path)
        return value


class InMemoryArticleRepository:
    """Just enough of ArticleRepository for the reconciler."""

    def __init__(self, articles=()):
        self.articles = {article.id: article for article in articles}

    async def get_ids_by_paths(self, paths):
        wanted = set(paths)
        return {
            article.path: article.id
            for article in self.articles.values()
            if article.path in wanted and article.deleted_at is None
        }


def stored_article(article_id, path, when=datetime(2024, 1, 1, tzinfo=timezone.utc)):
    return Article(
        id=article_id,
        path=path,
        title=f"Stored {article_id}",
        category=PostCategory.article,
        content="old body",
        created_at=when,
        updated_at=when,
    )
