"""
Type definitions for articles and their front matter.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from core.enums import PostCategory


class ArticleFrontMatter(BaseModel):
    """Metadata block at the top of a content file."""

    model_config = {"frozen": True}

    id: str
    title: str
    tags: list[str] = Field(default_factory=list)
    category: PostCategory
    summary: str | None = None
    status: str = "draft"

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        # YAML turns bare numeric ids into ints
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("id", "title")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if not isinstance(value, (list, tuple)):
            raise ValueError("tags must be a list of strings")
        return [str(tag) for tag in value]


@dataclass
class Article:
    """A persisted article. `id` is its identity; `path` can change."""

    id: str
    path: str
    title: str
    category: PostCategory
    content: str
    created_at: datetime
    updated_at: datetime
    tags: list[str] = field(default_factory=list)
    summary: str | None = None
    status: str = "draft"
    deleted_at: datetime | None = None

    def to_row(self) -> dict:
        """Column values for the articles table."""
        row = asdict(self)
        row["category"] = self.category.value
        return row

    def to_document(self) -> dict:
        """Search index document (JSON-serializable)."""
        return {
            "id": self.id,
            "path": self.path,
            "title": self.title,
            "tags": list(self.tags),
            "category": self.category.value,
            "summary": self.summary or "",
            "content": self.content,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


def build_article(
    front_matter: ArticleFrontMatter,
    *,
    path: str,
    content: str,
    timestamp: datetime,
) -> Article:
    """
    Build an Article from parsed front matter and body.

    Both timestamps are set to the commit timestamp. On upsert of an existing
    id the store keeps the original created_at, so this is correct for new
    files, edits and renames alike.
    """
    return Article(
        id=front_matter.id,
        path=path,
        title=front_matter.title,
        tags=list(front_matter.tags),
        category=front_matter.category,
        summary=front_matter.summary,
        content=content,
        status=front_matter.status,
        created_at=timestamp,
        updated_at=timestamp,
    )
