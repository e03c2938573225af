"""
meiliclient Task Endpoint

Every write to Meilisearch is asynchronous: the server enqueues a task and
answers with a :class:`TaskInfo`.  :class:`TaskEndpoint` reads task status
and polls it until the task leaves the ``enqueued`` / ``processing``
states or a deadline passes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Iterable, Optional

from meiliclient.core.config import ClientConfig
from meiliclient.core.http import HttpRequests
from meiliclient.core.models import Task, TaskInfo, TaskResults
from meiliclient.exceptions import ApiError, TaskFailedError, TaskTimeoutError

logger = logging.getLogger(__name__)


class TaskEndpoint:
    """
    Read and wait on Meilisearch tasks.

    Shares the client's :class:`HttpRequests`; never opens its own
    connection.
    """

    def __init__(self, http: HttpRequests, config: ClientConfig):
        self._http = http
        self._config = config

    @property
    def config(self) -> ClientConfig:
        return self._config

    # ── Reads ─────────────────────────────────────────────────────

    def get_tasks(
        self,
        *,
        index_uids: Iterable[str] | None = None,
        statuses: Iterable[str] | None = None,
        types: Iterable[str] | None = None,
        limit: int | None = None,
        from_: int | None = None,
    ) -> TaskResults:
        """List tasks, newest first, optionally filtered."""
        params = _filters(index_uids=index_uids, statuses=statuses, types=types)
        params.update({"limit": limit, "from": from_})
        return TaskResults.from_dict(self._http.get("/tasks", params=params))

    def get_task(self, task_uid: int) -> Task:
        """Return the current status of one task."""
        return Task.from_dict(self._http.get(f"/tasks/{task_uid}"))

    def get_index_tasks(self, index_uid: str, **kwargs: Any) -> TaskResults:
        """List the tasks of a single index."""
        return self.get_tasks(index_uids=[index_uid], **kwargs)

    def get_index_task(self, index_uid: str, task_uid: int) -> Task:
        """
        Return one task, checking that it belongs to *index_uid*.

        Raises:
            ApiError: ``task_not_found`` when the task exists on another index.
        """
        task = self.get_task(task_uid)
        if task.index_uid != index_uid:
            raise ApiError(
                f"Task `{task_uid}` not found on index `{index_uid}`.",
                status_code=404,
                code="task_not_found",
            )
        return task

    # ── Queue management ──────────────────────────────────────────

    def cancel_tasks(self, **filters: Any) -> TaskInfo:
        """Cancel enqueued/processing tasks matching *filters* (``uids``, ``statuses``, ...)."""
        params = _require_filters(filters)
        return TaskInfo.from_dict(self._http.post("/tasks/cancel", params=params))

    def delete_tasks(self, **filters: Any) -> TaskInfo:
        """Delete finished tasks matching *filters* from the task history."""
        params = _require_filters(filters)
        return TaskInfo.from_dict(self._http.delete("/tasks", params=params))

    # ── Polling ───────────────────────────────────────────────────

    def wait_for_task(
        self,
        task_uid: int,
        *,
        timeout_ms: float | None = None,
        interval_ms: int | None = None,
        raise_for_status: bool = False,
    ) -> Task:
        """
        Block until *task_uid* reaches a terminal status.

        Args:
            task_uid: Identifier of the task to wait for.
            timeout_ms: Deadline in milliseconds (config default: 5000).
            interval_ms: Sleep between polls in milliseconds (config default: 50).
            raise_for_status: Raise :class:`TaskFailedError` when the task failed.

        Returns:
            The terminal :class:`Task` (``succeeded``, ``failed`` or ``canceled``).

        Raises:
            TaskTimeoutError: The task was still pending at the deadline.
        """
        timeout_ms, interval_ms = self._poll_settings(timeout_ms, interval_ms)
        deadline = time.monotonic() + timeout_ms / 1000

        while time.monotonic() < deadline:
            task = self.get_task(task_uid)
            logger.debug(f"Task {task_uid}: {task.status}")
            if not task.is_pending:
                return _checked(task, raise_for_status)
            time.sleep(interval_ms / 1000)

        logger.warning(f"Task {task_uid} still pending after {timeout_ms} ms")
        raise TaskTimeoutError(task_uid)

    async def await_task(
        self,
        task_uid: int,
        *,
        timeout_ms: float | None = None,
        interval_ms: int | None = None,
        raise_for_status: bool = False,
    ) -> Task:
        """Async variant of :meth:`wait_for_task`.

        Sleeps on the event loop between polls, so cancelling the awaiting
        coroutine stops the polling.
        """
        timeout_ms, interval_ms = self._poll_settings(timeout_ms, interval_ms)
        deadline = time.monotonic() + timeout_ms / 1000

        while time.monotonic() < deadline:
            task = await asyncio.to_thread(self.get_task, task_uid)
            logger.debug(f"Task {task_uid}: {task.status}")
            if not task.is_pending:
                return _checked(task, raise_for_status)
            await asyncio.sleep(interval_ms / 1000)

        logger.warning(f"Task {task_uid} still pending after {timeout_ms} ms")
        raise TaskTimeoutError(task_uid)

    def _poll_settings(self, timeout_ms, interval_ms):
        if timeout_ms is None:
            timeout_ms = self._config.task_timeout_ms
        if interval_ms is None:
            interval_ms = self._config.task_interval_ms
        return timeout_ms, max(interval_ms, 0)


# =============================================================================
# Helpers
# =============================================================================

def _checked(task: Task, raise_for_status: bool) -> Task:
    if raise_for_status and task.is_failed:
        raise TaskFailedError(task)
    return task


def _filters(**filters: Optional[Iterable[Any]]) -> Dict[str, Any]:
    """Map snake_case filter names to the camelCase query parameters."""
    names = {
        "uids": "uids",
        "index_uids": "indexUids",
        "statuses": "statuses",
        "types": "types",
        "canceled_by": "canceledBy",
    }
    params: Dict[str, Any] = {}
    for name, values in filters.items():
        if values is None:
            continue
        if name not in names:
            raise ValueError(f"Unknown task filter '{name}'. Supported: {', '.join(names)}")
        params[names[name]] = list(values) if not isinstance(values, str) else [values]
    return params


def _require_filters(filters: Dict[str, Any]) -> Dict[str, Any]:
    params = _filters(**filters)
    if not params:
        raise ValueError("At least one task filter is required (e.g. statuses=['enqueued']).")
    return params
