# web_api/tests/conftest.py
"""Pytest fixtures for web API tests.

Registers mock services so the routes can run without a database,
Meilisearch, or GitHub access.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from core.config import AllowedRepositories, Settings
from core.state import AppServices, clear_services, set_services

WEBHOOK_SECRET = "test-webhook-secret"


@pytest.fixture(autouse=True)
def api_services():
    """Register mock services for every test in web_api/tests/.

    The repository, search index and content sync service are AsyncMocks;
    tests set return values on them as needed.
    """
    settings = Settings(
        database_url="sqlite+aiosqlite://",
        meilisearch_url="http://meili.test",
        meili_master_key=None,
        github_webhook_secret=WEBHOOK_SECRET,
        github_token=None,
        allowed_repositories=frozenset({"octocat/blog"}),
    )

    services = AppServices(
        settings=settings,
        allowed_repositories=AllowedRepositories(settings.allowed_repositories),
        repository=AsyncMock(),
        reconciler=MagicMock(),
        search_index=AsyncMock(),
        synchronizer=AsyncMock(),
        content_sync=AsyncMock(),
    )
    set_services(services)

    yield services

    clear_services()
