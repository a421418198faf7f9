"""
Process-wide service container.

main.py builds the services once at startup and registers them here; routes
and background tasks look them up with get_services().
"""

from dataclasses import dataclass

from .articles.repository import ArticleRepository
from .config import AllowedRepositories, Settings
from .content.reconciler import Reconciler
from .content.sync import ContentSyncService
from .search.index import SearchIndex
from .search.sync import SearchSynchronizer


class ServicesNotInitializedError(Exception):
    """Raised when accessing services before startup has registered them."""

    pass


@dataclass
class AppServices:
    settings: Settings
    allowed_repositories: AllowedRepositories
    repository: ArticleRepository
    reconciler: Reconciler
    search_index: SearchIndex
    synchronizer: SearchSynchronizer
    content_sync: ContentSyncService


_services: AppServices | None = None


def get_services() -> AppServices:
    """Get the registered services. Raises if not initialized."""
    if _services is None:
        raise ServicesNotInitializedError("Services not initialized")
    return _services


def set_services(services: AppServices) -> None:
    global _services
    _services = services


def clear_services() -> None:
    global _services
    _services = None
