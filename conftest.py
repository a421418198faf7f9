"""Shared pytest fixtures.

`sqlite_engine` gives each test its own file-backed SQLite database with the
articles schema, so transaction tests can open several connections.
"""

import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from core.tables import metadata


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'articles.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    await engine.dispose()
