"""
Fetch content files from GitHub.

Uses the contents API (GET /repos/{owner}/{repo}/contents/{path}), which
returns the file base64-encoded. Each failure mode has its own exception so
the reconciler can skip a single broken file but stop the batch when the
token itself is rejected.
"""

import base64
import binascii
import logging
from typing import Protocol
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT_SECONDS = 30.0


class GitHubFetchError(Exception):
    """Raised when a file can't be fetched from GitHub."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class ContentNotFoundError(GitHubFetchError):
    """The path doesn't exist on the branch, or isn't a file."""


class ContentDecodeError(GitHubFetchError):
    """The file content isn't valid base64 or isn't UTF-8 text."""


class GitHubAuthError(GitHubFetchError):
    """GitHub rejected the token or rate-limited us."""


class ContentFetcher(Protocol):
    async def fetch_file(self, owner: str, repo: str, path: str) -> str: ...


def decode_content(encoded: str, path: str) -> str:
    """Decode a contents API `content` field into text."""
    try:
        raw = base64.b64decode(encoded.replace("\n", ""), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ContentDecodeError(f"Invalid base64 content for {path}", path) from e

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ContentDecodeError(f"Content of {path} is not UTF-8 text", path) from e


class GitHubContentFetcher:
    """ContentFetcher backed by the GitHub REST API."""

    def __init__(
        self,
        token: str | None,
        *,
        api_url: str = GITHUB_API_URL,
        ref: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            token: Personal access token; None for anonymous access
            api_url: API base URL (GitHub Enterprise or tests)
            ref: Branch, tag or sha to read; None means the default branch
            client: Pre-built client, mainly for tests
        """
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._ref = ref
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=api_url,
            headers=headers,
            timeout=DEFAULT_TIMEOUT_SECONDS,
        )
        if client is not None:
            self._client.headers.update(headers)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_file(self, owner: str, repo: str, path: str) -> str:
        """
        Fetch one file and return its decoded text.

        Raises:
            ContentNotFoundError: 404, or the path is a directory
            ContentDecodeError: Content isn't base64 UTF-8
            GitHubAuthError: 401, 403 or 429
            GitHubFetchError: Network errors and other unexpected responses
        """
        url = f"/repos/{quote(owner)}/{quote(repo)}/contents/{quote(path)}"
        params = {"ref": self._ref} if self._ref else None

        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            raise GitHubFetchError(f"Request for {path} failed: {e}", path) from e

        if response.status_code == 404:
            raise ContentNotFoundError(f"File not found: {path}", path)
        if response.status_code in (401, 403, 429):
            raise GitHubAuthError(
                f"GitHub refused {path} with status {response.status_code}", path
            )
        if response.status_code != 200:
            raise GitHubFetchError(
                f"Unexpected status {response.status_code} for {path}", path
            )

        try:
            data = response.json()
        except ValueError as e:
            raise GitHubFetchError(f"Invalid JSON response for {path}", path) from e

        # A directory path returns a list of entries
        if not isinstance(data, dict) or data.get("type") != "file":
            raise ContentNotFoundError(f"Not a file: {path}", path)

        encoded = data.get("content")
        if encoded is None:
            raise ContentNotFoundError(f"No content returned for {path}", path)

        if data.get("encoding", "base64") != "base64":
            raise ContentDecodeError(
                f"Unsupported encoding {data.get('encoding')!r} for {path}", path
            )

        return decode_content(encoded, path)
