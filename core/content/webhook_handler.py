"""
GitHub webhook signature verification.

GitHub signs every delivery with HMAC-SHA256 over the raw request body using
the webhook secret, and sends the result as `X-Hub-Signature-256:
sha256=<hex digest>`. Every way the check can fail raises the same
WebhookSignatureError so callers cannot tell which step rejected the request.
"""

import hashlib
import hmac
from typing import Mapping

SIGNATURE_HEADER = "X-Hub-Signature-256"

SUPPORTED_ALGORITHMS = {
    "sha256": hashlib.sha256,
}


class WebhookSignatureError(Exception):
    """Raised when a webhook delivery fails signature verification."""

    def __init__(self):
        super().__init__("Invalid webhook signature")


def _get_header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def compute_signature(body: bytes, secret: str, algorithm: str = "sha256") -> str:
    """Return the header value GitHub would send for this body and secret."""
    digest = hmac.new(secret.encode(), body, SUPPORTED_ALGORITHMS[algorithm]).hexdigest()
    return f"{algorithm}={digest}"


def verify_webhook_signature(
    body: bytes,
    headers: Mapping[str, str],
    secret: str,
) -> None:
    """
    Verify that a delivery was signed with our webhook secret.

    Args:
        body: Raw request body, exactly as received
        headers: Request headers (lookup is case-insensitive)
        secret: Shared webhook secret

    Raises:
        WebhookSignatureError: Missing header, unsupported algorithm,
            malformed hex, empty secret, or digest mismatch
    """
    signature = _get_header(headers, SIGNATURE_HEADER)
    if not signature or not secret:
        raise WebhookSignatureError()

    algorithm, sep, hex_digest = signature.strip().partition("=")
    hash_fn = SUPPORTED_ALGORITHMS.get(algorithm)
    if not sep or hash_fn is None:
        raise WebhookSignatureError()

    try:
        received = bytes.fromhex(hex_digest)
    except ValueError:
        raise WebhookSignatureError() from None

    expected = hmac.new(secret.encode(), body, hash_fn).digest()
    if not hmac.compare_digest(expected, received):
        raise WebhookSignatureError()
