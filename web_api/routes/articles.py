# web_api/routes/articles.py
"""Article read API routes."""

from fastapi import APIRouter, HTTPException, Query

from core.enums import PostCategory
from core.state import get_services

router = APIRouter(prefix="/api/posts", tags=["posts"])

MAX_PAGE_SIZE = 100


def _parse_category(value: str) -> PostCategory:
    try:
        return PostCategory(value)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid category: {value}. Expected one of {', '.join(PostCategory.values())}",
        )


@router.get("")
async def list_posts(
    category: str = Query(..., description="Post category"),
    page: int = Query(1, description="1-based page number"),
    page_size: int = Query(20, description="Posts per page (1-100)"),
):
    """List live posts in a category, newest first."""
    post_category = _parse_category(category)
    page = max(page, 1)
    page_size = min(max(page_size, 1), MAX_PAGE_SIZE)

    rows = await get_services().repository.get_posts_by_category(
        post_category, limit=page_size, offset=(page - 1) * page_size
    )
    return [
        {
            "id": row["id"],
            "title": row["title"],
            "tags": row["tags"],
            "summary": row["summary"],
            "created_at": row["created_at"].isoformat(),
        }
        for row in rows
    ]


@router.get("/{category}/{article_id}")
async def get_post(category: str, article_id: str):
    """Get one article with its full content."""
    post_category = _parse_category(category)

    article = await get_services().repository.get_by_id(article_id, post_category)
    if article is None:
        raise HTTPException(status_code=404, detail="Post not found")

    return {
        "id": article.id,
        "path": article.path,
        "title": article.title,
        "tags": article.tags,
        "category": article.category.value,
        "summary": article.summary,
        "content": article.content,
        "status": article.status,
        "created_at": article.created_at.isoformat(),
        "updated_at": article.updated_at.isoformat(),
    }
