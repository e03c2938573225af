"""
meiliclient Core — configuration, transport, payload models, index and task handles.

Re-exports the primary classes for convenience::

    from meiliclient.core import ClientConfig, HttpRequests, Index
"""

from meiliclient.core.config import ClientConfig
from meiliclient.core.http import HttpRequests
from meiliclient.core.index import Index
from meiliclient.core.models import SearchQuery, SearchResult, Settings, Task, TaskInfo
from meiliclient.core.tasks import TaskEndpoint

__all__ = [
    "ClientConfig",
    "HttpRequests",
    "Index",
    "SearchQuery",
    "SearchResult",
    "Settings",
    "Task",
    "TaskInfo",
    "TaskEndpoint",
]
