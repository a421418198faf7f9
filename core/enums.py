"""Enum types shared by tables, domain objects and API routes."""

import enum


class PostCategory(str, enum.Enum):
    """Closed set of article categories."""

    article = "article"
    note = "note"
    think = "think"
    pictures = "pictures"
    talk = "talk"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]
