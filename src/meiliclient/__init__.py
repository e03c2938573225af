"""
meiliclient — Typed Python client for the Meilisearch HTTP API.

The ``meiliclient`` package maps each Meilisearch REST endpoint (indexes,
documents, settings, search, tasks) to a method call and wraps request
and response bodies in small dataclasses.

Quick start (programmatic API)::

    from meiliclient import Client

    client = Client("http://localhost:7700", "masterKey")
    index = client.get_or_create_index("movies", primary_key="id")
    task = index.add_documents([{"id": 1, "title": "Carol"}])
    client.wait_for_task(task.task_uid)
    result = index.search("carol")

Quick start (CLI)::

    meili indexes
    meili search movies "carol"

Configuration override::

    from meiliclient import Client, ClientConfig

    config = ClientConfig(url="http://search:7700", api_key="...", timeout=30)
    client = Client(config=config)
"""

__version__ = "1.0.0"

# Primary public API: the Client facade and its handles
from meiliclient.client import Client
from meiliclient.core.index import Index
from meiliclient.core.tasks import TaskEndpoint

# Configuration
from meiliclient.core.config import ClientConfig

# Request / response bodies
from meiliclient.core.models import (
    DocumentQuery,
    DocumentsResults,
    FacetStat,
    Health,
    IndexInfo,
    IndexStats,
    MatchPosition,
    SearchQuery,
    SearchResult,
    Settings,
    Stats,
    Task,
    TaskInfo,
    TaskResults,
    TaskStatus,
    Version,
)

# Exception hierarchy
from meiliclient.exceptions import (
    ApiError,
    CommunicationError,
    ConfigError,
    IndexNotFoundError,
    MeiliClientError,
    TaskFailedError,
    TaskTimeoutError,
)


def health(config: ClientConfig | None = None) -> dict:
    """
    Return a small status dict for agents or readiness probes (no network).

    When *config* is None, uses :meth:`ClientConfig.from_env()` for the snapshot.
    """
    cfg = config or ClientConfig.from_env()
    return {
        "version": __version__,
        "url": cfg.base_url,
        "api_key_set": bool(cfg.api_key),
    }


__all__ = [
    "__version__",
    # Facade
    "Client",
    "Index",
    "TaskEndpoint",
    # Config
    "ClientConfig",
    # Data types
    "DocumentQuery",
    "DocumentsResults",
    "FacetStat",
    "Health",
    "IndexInfo",
    "IndexStats",
    "MatchPosition",
    "SearchQuery",
    "SearchResult",
    "Settings",
    "Stats",
    "Task",
    "TaskInfo",
    "TaskResults",
    "TaskStatus",
    "Version",
    # Exceptions
    "MeiliClientError",
    "ConfigError",
    "CommunicationError",
    "ApiError",
    "IndexNotFoundError",
    "TaskTimeoutError",
    "TaskFailedError",
    # Status
    "health",
]
