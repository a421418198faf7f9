#!/usr/bin/env python
"""
Rebuild the search index from the articles table.

Use after restoring the database, changing searchable attributes, or when
search results have drifted after failed incremental syncs.

Run locally:  python scripts/rebuild_search_index.py
Dry run:      python scripts/rebuild_search_index.py --dry-run
Other index:  python scripts/rebuild_search_index.py --index articles_v2
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()
load_dotenv(".env.local", override=True)

from core.articles import SqlArticleRepository
from core.config import ConfigError, load_settings
from core.database import close_engine, get_engine
from core.search import MeiliSearchIndex, SearchError, SearchSynchronizer

logger = logging.getLogger("rebuild_search_index")


async def rebuild(index_uid: str | None, dry_run: bool) -> int:
    settings = load_settings()
    repository = SqlArticleRepository(get_engine(settings.database_url))

    if dry_run:
        articles = await repository.get_all()
        print(f"Would index {len(articles)} articles into {index_uid or settings.search_index}")
        await close_engine()
        return 0

    index = MeiliSearchIndex(
        settings.meilisearch_url,
        settings.meili_master_key,
        index_uid or settings.search_index,
    )
    synchronizer = SearchSynchronizer(index, repository, mode="rebuild")
    try:
        count = await synchronizer.rebuild()
    except SearchError as e:
        print(f"Rebuild failed: {e}", file=sys.stderr)
        return 1
    finally:
        await index.aclose()
        await close_engine()

    print(f"Indexed {count} articles into {index.index_uid}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Rebuild the article search index")
    parser.add_argument("--index", default=None, help="Index uid (default: SEARCH_INDEX)")
    parser.add_argument(
        "--dry-run", action="store_true", help="Count articles without touching the index"
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s")

    try:
        return asyncio.run(rebuild(args.index, args.dry_run))
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
