"""Search engine client - Meilisearch REST API."""

import asyncio

import httpx
from loguru import logger

from app.errors import SearchTaskError
from clients.base import BaseClient, is_not_found
from clients.search.schemas import IndexSchema, TaskInfo, TaskSchema
from settings import MEILISEARCH_API_KEY, MEILISEARCH_TIMEOUT, MEILISEARCH_URL


class SearchClient(BaseClient):
    """Client for the search engine's index, document and task endpoints."""

    def __init__(
        self,
        base_url: str = MEILISEARCH_URL,
        api_key: str | None = MEILISEARCH_API_KEY,
        timeout: float = MEILISEARCH_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        task_poll_interval: float = 0.1,
        task_timeout: float = 300.0,
    ):
        super().__init__(base_url, api_key=api_key, timeout=timeout, transport=transport)
        self._task_poll_interval = task_poll_interval
        self._task_timeout = task_timeout

    # Tasks

    async def get_task(self, task_uid: int) -> TaskSchema:
        """GET /tasks/{uid}."""
        return TaskSchema.model_validate(await self._request("GET", f"/tasks/{task_uid}"))

    async def wait_for_task(self, task_uid: int, timeout: float | None = None) -> TaskSchema:
        """Poll a task until it finishes. Raises SearchTaskError unless it succeeded."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + (timeout or self._task_timeout)
        while True:
            task = await self.get_task(task_uid)
            if task.finished:
                break
            if loop.time() >= deadline:
                raise SearchTaskError(f"Task {task_uid} still {task.status} after timeout", task_uid)
            await asyncio.sleep(self._task_poll_interval)

        if task.status != "succeeded":
            message = (task.error or {}).get("message", task.status)
            raise SearchTaskError(f"Task {task_uid} ({task.type}) {task.status}: {message}", task_uid)
        return task

    async def _enqueue(self, method: str, path: str, *, json=None, params=None, wait: bool = True) -> TaskInfo:
        info = TaskInfo.model_validate(await self._request(method, path, json=json, params=params))
        if wait:
            await self.wait_for_task(info.task_uid)
        return info

    # Indexes

    async def get_index(self, uid: str) -> IndexSchema | None:
        """GET /indexes/{uid} - None when the index does not exist."""
        try:
            return IndexSchema.model_validate(await self._request("GET", f"/indexes/{uid}"))
        except httpx.HTTPStatusError as e:
            if is_not_found(e):
                return None
            raise

    async def create_index(self, uid: str, primary_key: str = "id") -> IndexSchema:
        """POST /indexes."""
        await self._enqueue("POST", "/indexes", json={"uid": uid, "primaryKey": primary_key})
        logger.info("Search index created: {}", uid)
        return IndexSchema(uid=uid, primary_key=primary_key)

    async def get_or_create_index(self, uid: str, primary_key: str = "id") -> IndexSchema:
        index = await self.get_index(uid)
        if index is not None:
            return index
        return await self.create_index(uid, primary_key)

    async def delete_index_if_exists(self, uid: str) -> bool:
        """DELETE /indexes/{uid}. Returns False when there was nothing to delete."""
        # A missing index is reported through a failed task, not a 404.
        if await self.get_index(uid) is None:
            return False
        await self._enqueue("DELETE", f"/indexes/{uid}")
        logger.info("Search index deleted: {}", uid)
        return True

    async def update_settings(self, uid: str, settings: dict) -> None:
        """PATCH /indexes/{uid}/settings."""
        await self._enqueue("PATCH", f"/indexes/{uid}/settings", json=settings)

    async def swap_indexes(self, pairs: list[tuple[str, str]]) -> None:
        """POST /swap-indexes - atomically exchange the contents of each pair."""
        await self._enqueue("POST", "/swap-indexes", json=[{"indexes": list(pair)} for pair in pairs])
        logger.info("Search indexes swapped: {}", pairs)

    # Documents

    async def add_documents(self, uid: str, documents: list[dict], primary_key: str = "id", wait: bool = True) -> None:
        """POST /indexes/{uid}/documents - add or replace documents."""
        if not documents:
            return
        await self._enqueue(
            "POST",
            f"/indexes/{uid}/documents",
            json=documents,
            params={"primaryKey": primary_key},
            wait=wait,
        )
        logger.debug("Search {}: pushed {} documents", uid, len(documents))

    async def delete_documents(self, uid: str, ids: list[int], wait: bool = True) -> None:
        """POST /indexes/{uid}/documents/delete-batch."""
        if not ids:
            return
        await self._enqueue("POST", f"/indexes/{uid}/documents/delete-batch", json=list(ids), wait=wait)
        logger.debug("Search {}: deleted {} documents", uid, len(ids))

    async def get_documents(self, uid: str, limit: int = 1000, offset: int = 0) -> list[dict]:
        """GET /indexes/{uid}/documents."""
        data = await self._request("GET", f"/indexes/{uid}/documents", params={"limit": limit, "offset": offset})
        return data.get("results", [])

    async def search(self, uid: str, query: str = "", limit: int = 20, **options) -> dict:
        """POST /indexes/{uid}/search."""
        return await self._request("POST", f"/indexes/{uid}/search", json={"q": query, "limit": limit, **options})
