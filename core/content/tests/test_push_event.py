"""Tests for webhook payload parsing and change-set classification."""

import json
from datetime import datetime, timezone

import pytest

from core.content.push_event import (
    PushEvent,
    WebhookPayloadError,
    classify_push,
    is_content_file,
    normalize_extensions,
    parse_webhook_event,
)


def _push(commits, full_name="octocat/blog"):
    owner, name = full_name.split("/")
    return {
        "ref": "refs/heads/main",
        "repository": {"name": name, "full_name": full_name, "owner": {"login": owner}},
        "commits": commits,
    }


def _commit(sha, timestamp, added=(), removed=(), modified=()):
    return {
        "id": sha,
        "timestamp": timestamp,
        "added": list(added),
        "removed": list(removed),
        "modified": list(modified),
    }


class TestParseWebhookEvent:
    def test_parses_push(self):
        body = json.dumps(
            _push([_commit("a1", "2024-05-01T10:00:00+02:00", added=["posts/a.md"])])
        ).encode()

        event = parse_webhook_event("push", body)

        assert event.event_type == "push"
        assert event.repository_full_name == "octocat/blog"
        assert event.push.repository.owner.login == "octocat"
        assert event.push.commits[0].timestamp == datetime(
            2024, 5, 1, 8, 0, tzinfo=timezone.utc
        )

    def test_non_push_event_has_no_push(self):
        body = json.dumps({"zen": "Keep it simple", "repository": {"full_name": "octocat/blog"}})

        event = parse_webhook_event("ping", body.encode())

        assert event.push is None
        assert event.repository_full_name == "octocat/blog"

    def test_non_push_event_without_repository(self):
        event = parse_webhook_event("ping", b"{}")
        assert event.repository_full_name is None

    @pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b"\xff\xfe"])
    def test_rejects_non_object_bodies(self, body):
        with pytest.raises(WebhookPayloadError):
            parse_webhook_event("push", body)

    def test_rejects_push_without_repository(self):
        with pytest.raises(WebhookPayloadError):
            parse_webhook_event("push", json.dumps({"commits": []}).encode())


class TestExtensions:
    def test_normalize_adds_dot_and_lowercases(self):
        assert normalize_extensions(["MD", ".Mdx", " ", "txt"]) == (".md", ".mdx", ".txt")

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("posts/hello.md", True),
            ("posts/hello.MDX", True),
            ("posts/image.png", False),
            ("README", False),
            ("posts/md", False),
        ],
    )
    def test_is_content_file(self, path, expected):
        assert is_content_file(path) is expected


class TestClassifyPush:
    def test_none_event_gives_empty_changes(self):
        changes = classify_push(None)
        assert changes.is_empty()
        assert changes.added == changes.modified == changes.removed == []

    def test_partitions_by_status_and_filters_extensions(self):
        event = PushEvent.model_validate(
            _push(
                [
                    _commit(
                        "a1",
                        "2024-05-01T10:00:00Z",
                        added=["posts/new.md", "images/cat.png"],
                        removed=["posts/old.mdx"],
                        modified=["posts/edit.md", "package.json"],
                    )
                ]
            )
        )

        changes = classify_push(event)

        assert [c.path for c in changes.added] == ["posts/new.md"]
        assert [c.path for c in changes.removed] == ["posts/old.mdx"]
        assert [c.path for c in changes.modified] == ["posts/edit.md"]
        assert {c.status for c in changes.added} == {"added"}

    def test_custom_extensions(self):
        event = PushEvent.model_validate(
            _push([_commit("a1", "2024-05-01T10:00:00Z", added=["a.md", "b.txt"])])
        )
        changes = classify_push(event, extensions=["txt"])
        assert [c.path for c in changes.added] == ["b.txt"]

    def test_last_commit_wins_for_repeated_path(self):
        """A path modified in two commits keeps one record with the later timestamp."""
        event = PushEvent.model_validate(
            _push(
                [
                    _commit("a1", "2024-05-01T10:00:00Z", modified=["a.md", "b.md"]),
                    _commit("a2", "2024-05-02T10:00:00Z", modified=["a.md"]),
                ]
            )
        )

        changes = classify_push(event)

        assert [c.path for c in changes.modified] == ["a.md", "b.md"]
        assert changes.modified[0].timestamp == datetime(2024, 5, 2, 10, 0, tzinfo=timezone.utc)
        assert changes.modified[1].timestamp == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)

    def test_commit_timestamps_are_carried_per_file(self):
        event = PushEvent.model_validate(
            _push(
                [
                    _commit("a1", "2024-05-01T10:00:00Z", removed=["old.md"]),
                    _commit("a2", "2024-05-03T09:30:00Z", added=["new.md"]),
                ]
            )
        )

        changes = classify_push(event)

        assert changes.removed[0].timestamp.day == 1
        assert changes.added[0].timestamp.day == 3

    def test_push_with_no_commits_is_empty(self):
        event = PushEvent.model_validate(_push([]))
        assert classify_push(event).is_empty()
