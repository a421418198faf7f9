"""
Webhook payload parsing and change-set classification.

A push delivery lists commits in the order they were made; each commit
reports the paths it added, removed and modified. classify_push() flattens
that into three change lists for the reconciler.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Iterable, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_CONTENT_EXTENSIONS = (".md", ".mdx")

ChangeStatus = Literal["added", "modified", "removed"]


class WebhookPayloadError(Exception):
    """Raised when a webhook body can't be parsed into a known event shape."""

    pass


class RepositoryOwner(BaseModel):
    login: str


class PushRepository(BaseModel):
    name: str
    full_name: str
    owner: RepositoryOwner


class PushCommit(BaseModel):
    id: str
    timestamp: datetime
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)

    @field_validator("timestamp")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class PushEvent(BaseModel):
    """The parts of a GitHub push payload we use."""

    ref: str | None = None
    commits: list[PushCommit] = Field(default_factory=list)
    repository: PushRepository


@dataclass
class WebhookEvent:
    """A parsed delivery. `push` is set only for push events."""

    event_type: str
    repository_full_name: str | None = None
    push: PushEvent | None = None


@dataclass(frozen=True)
class FileChange:
    """One file mentioned by a push, stamped with its commit's timestamp."""

    path: str
    timestamp: datetime
    status: ChangeStatus


@dataclass
class ChangeSet:
    added: list[FileChange] = field(default_factory=list)
    modified: list[FileChange] = field(default_factory=list)
    removed: list[FileChange] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.removed)


def parse_webhook_event(event_type: str, body: bytes) -> WebhookEvent:
    """
    Parse a webhook body according to its X-GitHub-Event type.

    Args:
        event_type: Value of the X-GitHub-Event header
        body: Raw JSON body

    Raises:
        WebhookPayloadError: Body is not a JSON object, or a push payload is
            missing required fields
    """
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise WebhookPayloadError(f"Webhook body is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise WebhookPayloadError("Webhook body must be a JSON object")

    if event_type != "push":
        repository = data.get("repository")
        full_name = repository.get("full_name") if isinstance(repository, dict) else None
        return WebhookEvent(event_type=event_type, repository_full_name=full_name)

    try:
        push = PushEvent.model_validate(data)
    except ValidationError as e:
        raise WebhookPayloadError(f"Invalid push payload: {e.error_count()} errors") from e

    return WebhookEvent(
        event_type=event_type,
        repository_full_name=push.repository.full_name,
        push=push,
    )


def normalize_extensions(extensions: Iterable[str]) -> tuple[str, ...]:
    """Lowercase extensions and make sure each starts with a dot."""
    normalized = []
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        normalized.append(ext if ext.startswith(".") else f".{ext}")
    return tuple(normalized)


def is_content_file(path: str, extensions: Iterable[str] = DEFAULT_CONTENT_EXTENSIONS) -> bool:
    """Check whether a repository path has one of the content extensions."""
    return PurePosixPath(path).suffix.lower() in normalize_extensions(extensions)


def classify_push(
    event: PushEvent | None,
    extensions: Iterable[str] = DEFAULT_CONTENT_EXTENSIONS,
) -> ChangeSet:
    """
    Partition the files of a push into added, modified and removed changes.

    Commits are visited in payload order. When a path shows up in the same
    list of several commits, one record is kept and it carries the timestamp
    of the last commit that mentioned it.

    Args:
        event: Parsed push event, or None for any other event type
        extensions: Content file extensions to keep

    Returns:
        ChangeSet with three lists (all empty for non-push events)
    """
    if event is None:
        return ChangeSet()

    allowed = normalize_extensions(extensions)
    seen: dict[ChangeStatus, dict[str, FileChange]] = {
        "added": {},
        "removed": {},
        "modified": {},
    }

    for commit in event.commits:
        for status, paths in (
            ("added", commit.added),
            ("removed", commit.removed),
            ("modified", commit.modified),
        ):
            for path in paths:
                if PurePosixPath(path).suffix.lower() not in allowed:
                    continue
                seen[status][path] = FileChange(
                    path=path, timestamp=commit.timestamp, status=status
                )

    return ChangeSet(
        added=list(seen["added"].values()),
        modified=list(seen["modified"].values()),
        removed=list(seen["removed"].values()),
    )
