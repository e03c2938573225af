"""
meiliclient Client Facade

Single entry point for talking to a Meilisearch server.  Wraps index
management, instance information and task polling behind an
instance-based API with optional async variants.

Usage::

    from meiliclient import Client

    # From environment variables (MEILI_URL, MEILI_API_KEY)
    client = Client()

    # With explicit values
    client = Client("http://localhost:7700", "masterKey")

    # Create an index and add documents
    task = client.create_index("movies", primary_key="id")
    client.wait_for_task(task.task_uid)
    movies = client.index("movies")
    movies.add_documents([{"id": 1, "title": "Carol"}])

    # Search
    result = movies.search("carol")
    for hit in result.hits:
        print(hit["title"])

    # Async variants (for FastAPI / Django async views)
    index = await client.aget_index("movies")
    task = await client.await_task(task.task_uid)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from meiliclient.core.config import ClientConfig
from meiliclient.core.http import HttpRequests
from meiliclient.core.index import Index
from meiliclient.core.models import (
    Health,
    IndexInfo,
    Stats,
    Task,
    TaskInfo,
    TaskResults,
    Version,
)
from meiliclient.core.tasks import TaskEndpoint
from meiliclient.exceptions import IndexNotFoundError, MeiliClientError, TaskFailedError

logger = logging.getLogger(__name__)


class Client:
    """
    High-level Meilisearch client.

    Each instance carries its own :class:`ClientConfig` and one HTTP
    transport shared by every :class:`Index` and :class:`TaskEndpoint` it
    hands out.

    Args:
        url: Server URL (e.g. ``http://localhost:7700``).  Overrides the config.
        api_key: API key sent in the configured auth header.  Overrides the config.
        config: Explicit configuration object.  When *None*, a config is
            built from environment variables and keyword overrides.
        http_client: Pre-built :class:`httpx.Client` to reuse (custom
            transport, proxies, pooling).  The caller keeps ownership.
        validate_on_init: If True, call :meth:`ClientConfig.validate` in
            __init__ so a malformed URL surfaces immediately.
        **kwargs: Forwarded to :class:`ClientConfig` when *config* is
            ``None`` (e.g. ``timeout=30``).
    """

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        *,
        config: ClientConfig | None = None,
        http_client: httpx.Client | None = None,
        validate_on_init: bool = False,
        **kwargs,
    ):
        if url is not None:
            kwargs["url"] = url
        if api_key is not None:
            kwargs["api_key"] = api_key

        if config is not None:
            self._config = config
        elif kwargs:
            # Build a config from env, then overlay keyword overrides
            base = ClientConfig.from_env()
            merged = {
                f.name: kwargs.get(f.name, getattr(base, f.name))
                for f in base.__dataclass_fields__.values()
            }
            self._config = ClientConfig(**merged)
        else:
            self._config = ClientConfig.from_env()

        if validate_on_init:
            self._config.validate()

        self._http = HttpRequests(self._config, http_client)
        self._tasks = TaskEndpoint(self._http, self._config)

    # ── Configuration & lifecycle ─────────────────────────────────

    @property
    def config(self) -> ClientConfig:
        """The active configuration for this client."""
        return self._config

    @property
    def http_client(self) -> httpx.Client:
        """The underlying :class:`httpx.Client`."""
        return self._http.http_client

    def close(self) -> None:
        """Close the HTTP transport (no-op for an injected client)."""
        self._http.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ── Indexes ───────────────────────────────────────────────────

    def index(self, uid: str) -> Index:
        """
        Return a handle on index *uid* without contacting the server.

        The index does not need to exist yet; the first write creates it.
        """
        return Index(uid, http=self._http, tasks=self._tasks)

    def create_index(self, uid: str, primary_key: str | None = None) -> TaskInfo:
        """
        Enqueue the creation of index *uid*.

        The task fails with ``index_already_exists`` if the index exists;
        use :meth:`get_or_create_index` when that is expected.
        """
        body: Dict[str, Any] = {"uid": uid}
        if primary_key is not None:
            body["primaryKey"] = primary_key
        return TaskInfo.from_dict(self._http.post("/indexes", body))

    def get_index(self, uid: str) -> Index:
        """
        Fetch index *uid* with its primary key and dates.

        Raises:
            IndexNotFoundError: If the index does not exist.
        """
        return self._index_from_info(IndexInfo.from_dict(self.get_raw_index(uid)))

    def get_raw_index(self, uid: str) -> Dict[str, Any]:
        """Fetch index *uid* as the raw JSON dict."""
        return self._http.get(f"/indexes/{uid}")

    def get_indexes(self, offset: int | None = None, limit: int | None = None) -> List[Index]:
        """List indexes as handles."""
        return [
            self._index_from_info(IndexInfo.from_dict(raw))
            for raw in self.get_raw_indexes(offset=offset, limit=limit)
        ]

    def get_raw_indexes(self, offset: int | None = None, limit: int | None = None) -> List[Dict[str, Any]]:
        """List indexes as raw JSON dicts."""
        body = self._http.get("/indexes", params={"offset": offset, "limit": limit})
        if isinstance(body, dict):
            return body.get("results", [])
        return body or []

    def get_or_create_index(self, uid: str, primary_key: str | None = None) -> Index:
        """Return index *uid*, creating it (and waiting for creation) if missing."""
        try:
            return self.get_index(uid)
        except IndexNotFoundError:
            logger.info(f"Index '{uid}' not found, creating it")
        task = self._tasks.wait_for_task(self.create_index(uid, primary_key).task_uid)
        # index_already_exists means another writer won the race
        if task.is_failed and (task.error or {}).get("code") != "index_already_exists":
            raise TaskFailedError(task)
        return self.get_index(uid)

    def update_index(self, uid: str, primary_key: str) -> TaskInfo:
        """Enqueue a primary key change for index *uid*."""
        return self.index(uid).update(primary_key)

    def delete_index(self, uid: str) -> TaskInfo:
        """Enqueue the deletion of index *uid*."""
        return self.index(uid).delete()

    def delete_index_if_exists(self, uid: str) -> bool:
        """Delete index *uid*; ``False`` if it did not exist."""
        return self.index(uid).delete_if_exists()

    def _index_from_info(self, info: IndexInfo) -> Index:
        return Index(
            info.uid,
            info.primary_key,
            info.created_at,
            info.updated_at,
            http=self._http,
            tasks=self._tasks,
        )

    # ── Instance ──────────────────────────────────────────────────

    def get_version(self) -> Version:
        """Return the server version (package version, commit SHA and date)."""
        return Version.from_dict(self._http.get("/version"))

    def health(self) -> Health:
        """Return the server health (``{"status": "available"}`` when up)."""
        return Health.from_dict(self._http.get("/health"))

    def is_healthy(self) -> bool:
        """True when the server answers ``available``.  Never raises."""
        try:
            return self.health().status == "available"
        except MeiliClientError as exc:
            logger.debug(f"Health check failed: {exc}")
            return False

    def get_stats(self) -> Stats:
        """Instance-wide statistics: database size and per-index stats."""
        return Stats.from_dict(self._http.get("/stats"))

    def create_dump(self) -> TaskInfo:
        """Enqueue the creation of a database dump."""
        return TaskInfo.from_dict(self._http.post("/dumps"))

    # ── Tasks ─────────────────────────────────────────────────────

    @property
    def tasks(self) -> TaskEndpoint:
        """The shared :class:`TaskEndpoint`."""
        return self._tasks

    def get_tasks(self, **kwargs: Any) -> TaskResults:
        """List tasks.  See :meth:`TaskEndpoint.get_tasks` for filters."""
        return self._tasks.get_tasks(**kwargs)

    def get_task(self, task_uid: int) -> Task:
        """Return the current status of task *task_uid*."""
        return self._tasks.get_task(task_uid)

    def wait_for_task(
        self,
        task_uid: int,
        *,
        timeout_ms: float | None = None,
        interval_ms: int | None = None,
        raise_for_status: bool = False,
    ) -> Task:
        """
        Poll task *task_uid* until it is no longer enqueued or processing.

        Args:
            task_uid: Task to wait for.
            timeout_ms: Deadline in milliseconds (default from config: 5000).
            interval_ms: Delay between polls in milliseconds (default: 50).
            raise_for_status: Raise :class:`TaskFailedError` on a failed task.

        Raises:
            TaskTimeoutError: The task was still pending at the deadline.
        """
        return self._tasks.wait_for_task(
            task_uid,
            timeout_ms=timeout_ms,
            interval_ms=interval_ms,
            raise_for_status=raise_for_status,
        )

    async def await_task(
        self,
        task_uid: int,
        *,
        timeout_ms: float | None = None,
        interval_ms: int | None = None,
        raise_for_status: bool = False,
    ) -> Task:
        """Async variant of :meth:`wait_for_task`; cancellable."""
        return await self._tasks.await_task(
            task_uid,
            timeout_ms=timeout_ms,
            interval_ms=interval_ms,
            raise_for_status=raise_for_status,
        )

    # ── Async variants ────────────────────────────────────────────
    # These use asyncio.to_thread() to run sync operations off the
    # event loop. They raise the same exceptions as the sync methods
    # (e.g. IndexNotFoundError, ApiError, CommunicationError).

    async def aget_version(self) -> Version:
        """Async variant of :meth:`get_version`."""
        return await asyncio.to_thread(self.get_version)

    async def ahealth(self) -> Health:
        """Async variant of :meth:`health`."""
        return await asyncio.to_thread(self.health)

    async def aget_stats(self) -> Stats:
        """Async variant of :meth:`get_stats`."""
        return await asyncio.to_thread(self.get_stats)

    async def acreate_index(self, uid: str, primary_key: str | None = None) -> TaskInfo:
        """Async variant of :meth:`create_index`."""
        return await asyncio.to_thread(self.create_index, uid, primary_key)

    async def aget_index(self, uid: str) -> Index:
        """Async variant of :meth:`get_index`."""
        return await asyncio.to_thread(self.get_index, uid)

    async def aget_indexes(self, offset: int | None = None, limit: int | None = None) -> List[Index]:
        """Async variant of :meth:`get_indexes`."""
        return await asyncio.to_thread(self.get_indexes, offset, limit)

    async def aget_or_create_index(self, uid: str, primary_key: str | None = None) -> Index:
        """Async variant of :meth:`get_or_create_index`."""
        return await asyncio.to_thread(self.get_or_create_index, uid, primary_key)

    async def adelete_index(self, uid: str) -> TaskInfo:
        """Async variant of :meth:`delete_index`."""
        return await asyncio.to_thread(self.delete_index, uid)

    async def aget_tasks(self, **kwargs: Any) -> TaskResults:
        """Async variant of :meth:`get_tasks`."""
        return await asyncio.to_thread(self.get_tasks, **kwargs)

    async def aget_task(self, task_uid: int) -> Task:
        """Async variant of :meth:`get_task`."""
        return await asyncio.to_thread(self.get_task, task_uid)

    # ── Status (no network) ───────────────────────────────────────

    def status(self) -> Dict[str, Optional[object]]:
        """
        Return a small status dict describing this client.

        Does not contact the server; see :meth:`is_healthy` for that.
        """
        return {
            "version": __import__("meiliclient", fromlist=["__version__"]).__version__,
            "url": self._config.base_url,
            "api_key_set": bool(self._config.api_key),
        }
