"""
Article content service.

Receives GitHub push webhooks for the content repositories, mirrors their
Markdown articles into the database, keeps the search index in step, and
serves the articles and search results over HTTP.

Usage:
    python main.py              # Production
    python main.py --dev        # Auto-reload on code changes
    python main.py --port 9000  # Custom port
"""

import argparse
import logging
from contextlib import asynccontextmanager

import sentry_sdk
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

load_dotenv()
load_dotenv(".env.local", override=True)

from core.articles import SqlArticleRepository
from core.config import AllowedRepositories, Settings, load_settings
from core.config_watcher import ConfigWatcher, start_config_watcher, stop_config_watcher
from core.content import ContentSyncService, GitHubContentFetcher, Reconciler
from core.database import close_engine, get_engine
from core.search import MeiliSearchIndex, SearchSynchronizer
from core.state import AppServices, clear_services, set_services
from web_api.routes.articles import router as articles_router
from web_api.routes.search import router as search_router
from web_api.routes.webhook import router as webhook_router

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def init_sentry(settings: Settings) -> None:
    if not settings.sentry_dsn:
        logger.info("SENTRY_DSN not set, error reporting disabled")
        return
    sentry_sdk.init(dsn=settings.sentry_dsn, traces_sample_rate=0.0)
    logger.info("Sentry initialized")


def build_services(
    settings: Settings,
) -> tuple[AppServices, GitHubContentFetcher, MeiliSearchIndex]:
    """Wire up every service from settings. Returns the closeable clients too."""
    repository = SqlArticleRepository(get_engine(settings.database_url))
    fetcher = GitHubContentFetcher(
        settings.github_token,
        api_url=settings.github_api_url,
        ref=settings.github_content_ref,
    )
    search_index = MeiliSearchIndex(
        settings.meilisearch_url,
        settings.meili_master_key,
        settings.search_index,
    )
    synchronizer = SearchSynchronizer(
        search_index, repository, mode=settings.search_sync_mode
    )
    allowed = AllowedRepositories(settings.allowed_repositories)
    reconciler = Reconciler(fetcher, repository)
    content_sync = ContentSyncService(
        allowed,
        reconciler,
        repository,
        synchronizer,
        extensions=settings.content_extensions,
    )

    services = AppServices(
        settings=settings,
        allowed_repositories=allowed,
        repository=repository,
        reconciler=reconciler,
        search_index=search_index,
        synchronizer=synchronizer,
        content_sync=content_sync,
    )
    return services, fetcher, search_index


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    configure_logging(settings.log_level)
    init_sentry(settings)

    services, fetcher, search_index = build_services(settings)
    set_services(services)

    if not settings.allowed_repositories:
        logger.warning("No allowed repositories configured; all webhooks will be ignored")

    watcher = ConfigWatcher(
        settings.config_file,
        services.allowed_repositories,
        extra_repositories=settings.env_repositories,
    )
    start_config_watcher(watcher, settings.config_reload_seconds)

    logger.info("Article service started")
    yield

    stop_config_watcher()
    clear_services()
    await fetcher.aclose()
    await search_index.aclose()
    await close_engine()
    logger.info("Article service stopped")


app = FastAPI(
    title="Article Service",
    description="GitHub-backed article store with full-text search",
    lifespan=lifespan,
)

app.include_router(webhook_router)
app.include_router(articles_router)
app.include_router(search_router)


@app.get("/api/health")
async def health():
    return {"status": "ok"}


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the article service")
    parser.add_argument("--dev", action="store_true", help="Auto-reload on code changes")
    parser.add_argument("--host", default=None, help="Bind address (default: HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port (default: PORT or 8124)")
    args = parser.parse_args()

    settings = load_settings()
    uvicorn.run(
        "main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.dev,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
