"""
Application settings.

Values come from environment variables (main.py loads .env and .env.local
first). The allowed-repositories list can also live in a TOML file so it can
be edited without a restart; see core/config_watcher.py.

Example config.toml:
    allowed_repositories = ["octocat/blog-posts"]
"""

import asyncio
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .content.push_event import DEFAULT_CONTENT_EXTENSIONS, normalize_extensions
from .search.sync import SYNC_MODES

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.toml"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8124
DEFAULT_SEARCH_INDEX = "articles"
DEFAULT_RELOAD_SECONDS = 5


class ConfigError(Exception):
    """Raised when required settings are missing or invalid."""

    pass


class AllowedRepositories:
    """
    Shared set of repositories whose webhooks we act on.

    Readers take a snapshot (an immutable frozenset) and never hold the lock
    while awaiting. reload() swaps the whole set under the lock.
    """

    def __init__(self, repositories: Iterable[str] = ()):
        self._repositories = frozenset(repositories)
        self._lock = asyncio.Lock()

    def snapshot(self) -> frozenset[str]:
        return self._repositories

    def __contains__(self, full_name: str) -> bool:
        return full_name in self._repositories

    async def reload(self, repositories: Iterable[str]) -> bool:
        """
        Replace the set.

        Returns:
            True if the contents changed
        """
        new = frozenset(repositories)
        async with self._lock:
            changed = new != self._repositories
            self._repositories = new
        if changed:
            logger.info("Allowed repositories now: %s", ", ".join(sorted(new)) or "(none)")
        return changed


@dataclass
class Settings:
    database_url: str
    meilisearch_url: str
    meili_master_key: str | None
    github_webhook_secret: str
    github_token: str | None
    search_index: str = DEFAULT_SEARCH_INDEX
    search_sync_mode: str = "rebuild"
    github_api_url: str = "https://api.github.com"
    github_content_ref: str | None = None
    content_extensions: tuple[str, ...] = DEFAULT_CONTENT_EXTENSIONS
    allowed_repositories: frozenset[str] = field(default_factory=frozenset)
    # From ALLOWED_REPOSITORIES; kept across config file reloads
    env_repositories: frozenset[str] = field(default_factory=frozenset)
    config_file: Path = Path(DEFAULT_CONFIG_FILE)
    config_reload_seconds: int = DEFAULT_RELOAD_SECONDS
    sentry_dsn: str | None = None
    log_level: str = "INFO"
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def _split_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def load_allowed_repositories(config_file: Path) -> frozenset[str]:
    """
    Read `allowed_repositories` from a TOML file.

    A missing file means an empty list.

    Raises:
        ConfigError: If the file isn't valid TOML or the key isn't a list
    """
    if not config_file.exists():
        return frozenset()

    try:
        with open(config_file, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_file}: {e}") from e

    repositories = data.get("allowed_repositories", [])
    if not isinstance(repositories, list) or not all(
        isinstance(item, str) for item in repositories
    ):
        raise ConfigError(f"allowed_repositories in {config_file} must be a list of strings")

    return frozenset(repositories)


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """
    Build Settings from environment variables and the TOML config file.

    Raises:
        ConfigError: Missing DATABASE_URL, MEILISEARCH_URL or
            GITHUB_WEBHOOK_SECRET, or invalid values
    """
    env = os.environ if environ is None else environ

    missing = [
        name
        for name in ("DATABASE_URL", "MEILISEARCH_URL", "GITHUB_WEBHOOK_SECRET")
        if not env.get(name)
    ]
    if missing:
        raise ConfigError(f"Missing required settings: {', '.join(missing)}")

    sync_mode = env.get("SEARCH_SYNC_MODE", "rebuild").lower()
    if sync_mode not in SYNC_MODES:
        raise ConfigError(f"SEARCH_SYNC_MODE must be one of {', '.join(SYNC_MODES)}")

    try:
        port = int(env.get("PORT", DEFAULT_PORT))
        reload_seconds = int(env.get("CONFIG_RELOAD_SECONDS", DEFAULT_RELOAD_SECONDS))
    except ValueError as e:
        raise ConfigError(f"Invalid integer setting: {e}") from e

    config_file = Path(env.get("CONFIG_FILE", DEFAULT_CONFIG_FILE))
    env_repositories = frozenset(_split_list(env.get("ALLOWED_REPOSITORIES")))

    extensions = normalize_extensions(_split_list(env.get("CONTENT_EXTENSIONS")))

    return Settings(
        database_url=env["DATABASE_URL"],
        meilisearch_url=env["MEILISEARCH_URL"],
        meili_master_key=env.get("MEILI_MASTER_KEY") or None,
        github_webhook_secret=env["GITHUB_WEBHOOK_SECRET"],
        github_token=env.get("GITHUB_TOKEN") or None,
        search_index=env.get("SEARCH_INDEX", DEFAULT_SEARCH_INDEX),
        search_sync_mode=sync_mode,
        github_api_url=env.get("GITHUB_API_URL", "https://api.github.com"),
        github_content_ref=env.get("GITHUB_CONTENT_REF") or None,
        content_extensions=extensions or DEFAULT_CONTENT_EXTENSIONS,
        allowed_repositories=load_allowed_repositories(config_file) | env_repositories,
        env_repositories=env_repositories,
        config_file=config_file,
        config_reload_seconds=reload_seconds,
        sentry_dsn=env.get("SENTRY_DSN") or None,
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
        host=env.get("HOST", DEFAULT_HOST),
        port=port,
    )
