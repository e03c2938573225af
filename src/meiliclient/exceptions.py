"""
meiliclient Exception Hierarchy

Structured exceptions for clear error handling across library and CLI
consumers.  Each exception type maps to a specific failure mode so that
callers can handle errors precisely without parsing message strings.

Usage::

    from meiliclient.exceptions import ApiError, IndexNotFoundError

    try:
        index = client.get_index("movies")
    except IndexNotFoundError:
        print("Create the index first.")
    except ApiError as exc:
        print(f"Meilisearch said {exc.code}: {exc.message}")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:  # pragma: no cover
    from meiliclient.core.models import Task


class MeiliClientError(Exception):
    """Base exception for all meiliclient errors.

    ``enqueued_tasks`` holds the :class:`TaskInfo` of the chunks a batched
    document write had already enqueued when it failed; empty otherwise.
    """

    enqueued_tasks: tuple = ()


class ConfigError(MeiliClientError, ValueError):
    """Configuration is invalid or incomplete (e.g. malformed URL).

    Inherits from ``ValueError`` so callers that already catch
    ``ValueError`` from ``ClientConfig.validate()`` keep working.
    """


class CommunicationError(MeiliClientError):
    """The server could not be reached (connection refused, DNS, read timeout)."""


class ApiError(MeiliClientError):
    """The server answered with a non-2xx status.

    The Meilisearch error body ``{"message", "code", "type", "link"}`` is
    unpacked onto the instance.  When the body is not JSON, ``message``
    holds the raw text and ``code`` is ``None``.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        code: Optional[str] = None,
        error_type: Optional[str] = None,
        link: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.error_type = error_type
        self.link = link

    @classmethod
    def from_body(cls, status_code: int, body: Any, text: str = "") -> "ApiError":
        """Build the right subclass from a decoded error body."""
        if isinstance(body, dict):
            message = body.get("message") or text or f"HTTP {status_code}"
            code = body.get("code")
            error_cls = IndexNotFoundError if code == "index_not_found" else cls
            return error_cls(
                message,
                status_code=status_code,
                code=code,
                error_type=body.get("type"),
                link=body.get("link"),
            )
        return cls(text or f"HTTP {status_code}", status_code=status_code)

    def __str__(self) -> str:
        if self.code:
            return f"{self.code} ({self.status_code}): {self.message}"
        return f"HTTP {self.status_code}: {self.message}"


class IndexNotFoundError(ApiError, LookupError):
    """The requested index does not exist on the server (``index_not_found``)."""


class TaskTimeoutError(MeiliClientError, TimeoutError):
    """A task was still pending when the polling deadline passed."""

    def __init__(self, task_uid: int):
        super().__init__(f"The task {task_uid} timed out.")
        self.task_uid = task_uid


class TaskFailedError(MeiliClientError):
    """A waited-on task reached the ``failed`` status."""

    def __init__(self, task: "Task"):
        error = task.error or {}
        detail = error.get("message") or "no error details"
        super().__init__(f"Task {task.uid} failed: {detail}")
        self.task = task
        self.code = error.get("code")
