"""GitHub webhook intake: signature check, push parsing, fetching and reconciliation."""

from .github_fetcher import (
    ContentDecodeError,
    ContentFetcher,
    ContentNotFoundError,
    GitHubAuthError,
    GitHubContentFetcher,
    GitHubFetchError,
)
from .push_event import (
    ChangeSet,
    FileChange,
    PushEvent,
    WebhookEvent,
    WebhookPayloadError,
    classify_push,
    is_content_file,
    parse_webhook_event,
)
from .reconciler import ReconciliationAborted, ReconciliationResult, Reconciler
from .sync import ContentSyncService
from .webhook_handler import (
    WebhookSignatureError,
    compute_signature,
    verify_webhook_signature,
)

__all__ = [
    "ChangeSet",
    "ContentDecodeError",
    "ContentFetcher",
    "ContentNotFoundError",
    "ContentSyncService",
    "FileChange",
    "GitHubAuthError",
    "GitHubContentFetcher",
    "GitHubFetchError",
    "PushEvent",
    "ReconciliationAborted",
    "ReconciliationResult",
    "Reconciler",
    "WebhookEvent",
    "WebhookPayloadError",
    "WebhookSignatureError",
    "classify_push",
    "compute_signature",
    "is_content_file",
    "parse_webhook_event",
    "verify_webhook_signature",
]
