"""Articles: domain types, front matter parsing and persistence."""

from .frontmatter import FrontMatterError, extract_front_matter
from .repository import ArticleRepository, SqlArticleRepository, row_to_article
from .transaction import TransactionClosedError, TransactionGuard
from .types import Article, ArticleFrontMatter, build_article

__all__ = [
    "Article",
    "ArticleFrontMatter",
    "build_article",
    "FrontMatterError",
    "extract_front_matter",
    "ArticleRepository",
    "SqlArticleRepository",
    "row_to_article",
    "TransactionClosedError",
    "TransactionGuard",
]
