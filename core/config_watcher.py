"""
Reload the allowed-repositories list when config.toml changes.

An APScheduler interval job checks the file's mtime and, when it moves,
re-reads the file and swaps the shared AllowedRepositories set. A file that
fails to parse keeps the previous list in place.
"""

import logging
from pathlib import Path

import sentry_sdk
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .config import AllowedRepositories, ConfigError, load_allowed_repositories

logger = logging.getLogger(__name__)


_scheduler: AsyncIOScheduler | None = None

JOB_ID = "config_reload"


class ConfigWatcher:
    """Tracks one config file and pushes its list into an AllowedRepositories."""

    def __init__(
        self,
        config_file: Path,
        allowed: AllowedRepositories,
        extra_repositories: frozenset[str] = frozenset(),
    ):
        self.config_file = config_file
        self.allowed = allowed
        # Repositories from the ALLOWED_REPOSITORIES env var are always kept
        self.extra_repositories = extra_repositories
        self._last_mtime = self._mtime()

    def _mtime(self) -> float | None:
        try:
            return self.config_file.stat().st_mtime
        except FileNotFoundError:
            return None

    async def check(self) -> bool:
        """
        Reload the file if its mtime changed since the last check.

        Returns:
            True if the allowed set was replaced with different contents
        """
        mtime = self._mtime()
        if mtime == self._last_mtime:
            return False
        self._last_mtime = mtime

        try:
            repositories = load_allowed_repositories(self.config_file)
        except ConfigError as e:
            logger.error("Keeping previous allowed repositories: %s", e)
            sentry_sdk.capture_exception(e)
            return False

        return await self.allowed.reload(repositories | self.extra_repositories)


def start_config_watcher(watcher: ConfigWatcher, interval_seconds: int) -> AsyncIOScheduler:
    """
    Start polling the config file.

    Call this during app startup (in FastAPI lifespan).
    """
    global _scheduler

    if _scheduler is not None:
        return _scheduler

    _scheduler = AsyncIOScheduler(
        job_defaults={
            "coalesce": True,
            "max_instances": 1,
        },
    )
    _scheduler.add_job(
        watcher.check,
        trigger="interval",
        seconds=max(1, interval_seconds),
        id=JOB_ID,
        replace_existing=True,
    )
    _scheduler.start()
    logger.info(
        "Watching %s for changes every %ss", watcher.config_file, interval_seconds
    )
    return _scheduler


def stop_config_watcher() -> None:
    """Shut down the watcher. Call this during app shutdown."""
    global _scheduler

    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Config watcher stopped")
