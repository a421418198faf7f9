# web_api/routes/search.py
"""Full-text search API route."""

import logging

import sentry_sdk
from fastapi import APIRouter, HTTPException, Query

from core.search import SearchError
from core.state import get_services

router = APIRouter(prefix="/api/search", tags=["search"])

logger = logging.getLogger(__name__)

RESULTS_PER_PAGE = 6


@router.get("")
async def search_articles(
    q: str = Query("", description="Search terms"),
    page: int = Query(1, description="1-based page number"),
):
    """Search article titles, summaries and content.

    Matches are wrapped in <span class="highlight"> tags.
    """
    page = max(page, 1)
    query = q.strip()
    if not query:
        return {"total_hits": 0, "total_pages": 0, "current_page": page, "results": []}

    try:
        result = await get_services().search_index.search(query, page, RESULTS_PER_PAGE)
    except SearchError as e:
        logger.error("Search for %r failed: %s", query, e)
        sentry_sdk.capture_exception(e)
        raise HTTPException(status_code=502, detail="Search is unavailable")

    return {
        "total_hits": result.total_hits,
        "total_pages": result.total_pages,
        "current_page": result.current_page,
        "results": [
            {
                "id": hit.id,
                "title": hit.title,
                "category": hit.category,
                "summary": hit.summary,
                "content": hit.content,
            }
            for hit in result.hits
        ],
    }
