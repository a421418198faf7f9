"""Full-text search over articles."""

from .index import (
    MeiliSearchIndex,
    SearchError,
    SearchHit,
    SearchIndex,
    SearchPage,
)
from .sync import SEARCHABLE_ATTRIBUTES, SearchSynchronizer

__all__ = [
    "MeiliSearchIndex",
    "SearchError",
    "SearchHit",
    "SearchIndex",
    "SearchPage",
    "SEARCHABLE_ATTRIBUTES",
    "SearchSynchronizer",
]
