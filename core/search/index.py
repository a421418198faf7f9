"""
Meilisearch client for the article index.

Talks to the Meilisearch REST API with httpx. Write operations are
asynchronous tasks on the Meilisearch side; every write here waits for its
task to finish and raises SearchError if the task failed.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol

import httpx

logger = logging.getLogger(__name__)

HIGHLIGHT_PRE_TAG = '<span class="highlight">'
HIGHLIGHT_POST_TAG = "</span>"
HIGHLIGHT_ATTRIBUTES = ["title", "summary", "content"]
CROP_ATTRIBUTES = ["summary", "content"]

TASK_POLL_SECONDS = 0.05
TASK_TIMEOUT_SECONDS = 60.0


class SearchError(Exception):
    """Raised when the search engine rejects a request or a task fails."""

    pass


@dataclass
class SearchHit:
    id: str
    title: str
    category: str
    summary: str
    content: str


@dataclass
class SearchPage:
    hits: list[SearchHit] = field(default_factory=list)
    total_hits: int = 0
    total_pages: int = 0
    current_page: int = 1


class SearchIndex(Protocol):
    async def replace_all(
        self, documents: list[dict[str, Any]], searchable_attributes: list[str]
    ) -> None: ...

    async def upsert_documents(self, documents: list[dict[str, Any]]) -> None: ...

    async def delete_documents(self, ids: Iterable[str]) -> None: ...

    async def search(self, query: str, page: int, limit: int) -> SearchPage: ...


class MeiliSearchIndex:
    """SearchIndex backed by one Meilisearch index (primary key `id`)."""

    def __init__(
        self,
        url: str,
        api_key: str | None,
        index_uid: str = "articles",
        *,
        client: httpx.AsyncClient | None = None,
        task_timeout: float = TASK_TIMEOUT_SECONDS,
    ):
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.index_uid = index_uid
        self._task_timeout = task_timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=url, headers=headers, timeout=30.0
        )
        if client is not None:
            self._client.headers.update(headers)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Low-level helpers
    # ------------------------------------------------------------------

    async def _request(self, method: str, url: str, **kwargs) -> dict[str, Any]:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise SearchError(f"{method} {url} failed: {e}") from e

        if response.status_code >= 400:
            raise SearchError(
                f"{method} {url} returned {response.status_code}: {response.text}"
            )
        return response.json() if response.content else {}

    async def _wait_for_task(self, task: dict[str, Any]) -> dict[str, Any]:
        task_uid = task.get("taskUid", task.get("uid"))
        if task_uid is None:
            raise SearchError(f"Response did not include a task id: {task}")

        deadline = time.monotonic() + self._task_timeout
        while True:
            status = await self._request("GET", f"/tasks/{task_uid}")
            if status.get("status") in ("succeeded", "failed", "canceled"):
                return status
            if time.monotonic() > deadline:
                raise SearchError(f"Timed out waiting for search task {task_uid}")
            await asyncio.sleep(TASK_POLL_SECONDS)

    async def _run_task(self, method: str, url: str, **kwargs) -> dict[str, Any]:
        task = await self._request(method, url, **kwargs)
        status = await self._wait_for_task(task)
        if status.get("status") != "succeeded":
            error = status.get("error") or {}
            raise SearchError(
                f"Search task {status.get('uid')} {status.get('status')}: "
                f"{error.get('code')} {error.get('message')}"
            )
        return status

    async def _ensure_index(self, uid: str) -> None:
        task = await self._request(
            "POST", "/indexes", json={"uid": uid, "primaryKey": "id"}
        )
        status = await self._wait_for_task(task)
        if status.get("status") == "succeeded":
            logger.info("Created search index %s", uid)
            return
        error = status.get("error") or {}
        if error.get("code") != "index_already_exists":
            raise SearchError(f"Could not create index {uid}: {error.get('message')}")

    # ------------------------------------------------------------------
    # SearchIndex
    # ------------------------------------------------------------------

    async def replace_all(
        self,
        documents: list[dict[str, Any]],
        searchable_attributes: list[str],
    ) -> None:
        """
        Replace the whole index with `documents`.

        Documents are loaded into a staging index which is then swapped with
        the live one, so searches never see a half-built index.
        """
        staging = f"{self.index_uid}_staging"

        await self._ensure_index(self.index_uid)
        if await self._exists(staging):
            # Left over from an interrupted rebuild
            await self._run_task("DELETE", f"/indexes/{staging}")
        await self._ensure_index(staging)
        await self._run_task(
            "PUT",
            f"/indexes/{staging}/settings/searchable-attributes",
            json=searchable_attributes,
        )
        if documents:
            await self._run_task(
                "POST",
                f"/indexes/{staging}/documents",
                params={"primaryKey": "id"},
                json=documents,
            )
        await self._run_task(
            "POST", "/swap-indexes", json=[{"indexes": [self.index_uid, staging]}]
        )
        await self._run_task("DELETE", f"/indexes/{staging}")
        logger.info("Rebuilt search index %s with %d documents", self.index_uid, len(documents))

    async def _exists(self, uid: str) -> bool:
        try:
            response = await self._client.get(f"/indexes/{uid}")
        except httpx.HTTPError as e:
            raise SearchError(f"GET /indexes/{uid} failed: {e}") from e
        if response.status_code == 404:
            return False
        if response.status_code >= 400:
            raise SearchError(f"GET /indexes/{uid} returned {response.status_code}")
        return True

    async def upsert_documents(self, documents: list[dict[str, Any]]) -> None:
        if not documents:
            return
        await self._run_task(
            "POST",
            f"/indexes/{self.index_uid}/documents",
            params={"primaryKey": "id"},
            json=documents,
        )

    async def delete_documents(self, ids: Iterable[str]) -> None:
        id_list = sorted(set(ids))
        if not id_list:
            return
        await self._run_task(
            "POST",
            f"/indexes/{self.index_uid}/documents/delete-batch",
            json=id_list,
        )

    async def search(self, query: str, page: int, limit: int) -> SearchPage:
        """
        Run a highlighted, cropped full-text search.

        Args:
            query: Search terms
            page: 1-based page number
            limit: Hits per page
        """
        page = max(page, 1)
        data = await self._request(
            "POST",
            f"/indexes/{self.index_uid}/search",
            json={
                "q": query,
                "page": page,
                "hitsPerPage": limit,
                "attributesToHighlight": HIGHLIGHT_ATTRIBUTES,
                "highlightPreTag": HIGHLIGHT_PRE_TAG,
                "highlightPostTag": HIGHLIGHT_POST_TAG,
                "attributesToCrop": CROP_ATTRIBUTES,
            },
        )

        hits = []
        for hit in data.get("hits", []):
            formatted = hit.get("_formatted") or {}
            hits.append(
                SearchHit(
                    id=str(hit.get("id")),
                    title=formatted.get("title", hit.get("title", "")),
                    category=hit.get("category", ""),
                    summary=formatted.get("summary", ""),
                    content=formatted.get("content", ""),
                )
            )

        return SearchPage(
            hits=hits,
            total_hits=data.get("totalHits", 0),
            total_pages=data.get("totalPages", 0),
            current_page=data.get("page", page),
        )
