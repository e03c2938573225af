"""
meiliclient Index Handle

:class:`Index` gives access to one Meilisearch index: its metadata, its
documents, its settings and search.  A handle is cheap: constructing one
performs no I/O and it reuses the client's transport.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass, replace
from datetime import datetime
from itertools import islice
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from tqdm import tqdm

from meiliclient.core.http import HttpRequests
from meiliclient.core.models import (
    DocumentQuery,
    DocumentsResults,
    IndexInfo,
    IndexStats,
    SearchQuery,
    SearchResult,
    Settings,
    Task,
    TaskInfo,
    TaskResults,
)
from meiliclient.core.tasks import TaskEndpoint
from meiliclient.exceptions import ApiError, MeiliClientError, TaskFailedError

logger = logging.getLogger(__name__)

DocumentId = Union[str, int]


class Index:
    """
    Handle on a single Meilisearch index.

    Obtain one through :meth:`Client.index` (no I/O) or
    :meth:`Client.get_index` (fetches metadata).

    Args:
        uid: Unique index identifier.
        primary_key: Documents primary key, if known.
        created_at: Creation date, as reported by the server.
        updated_at: Latest update date, as reported by the server.
        http: Shared transport.
        tasks: Shared task endpoint, used by the ``*_and_wait`` helpers.
    """

    def __init__(
        self,
        uid: str,
        primary_key: str | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        *,
        http: HttpRequests,
        tasks: TaskEndpoint,
    ):
        self.uid = uid
        self.primary_key = primary_key
        self.created_at = created_at
        self.updated_at = updated_at
        self._http = http
        self._tasks = tasks
        self._path = f"/indexes/{uid}"

    def __repr__(self) -> str:
        return f"Index(uid={self.uid!r}, primary_key={self.primary_key!r})"

    def _set_info(self, info: IndexInfo) -> None:
        self.primary_key = info.primary_key
        self.created_at = info.created_at
        self.updated_at = info.updated_at

    # ── Index lifecycle ───────────────────────────────────────────

    def fetch_info(self) -> "Index":
        """Refresh primary key and dates from the server; returns ``self``."""
        self._set_info(IndexInfo.from_dict(self._http.get(self._path)))
        return self

    def fetch_primary_key(self) -> Optional[str]:
        """Fetch and return the primary key of the index."""
        return self.fetch_info().primary_key

    def update(self, primary_key: str) -> TaskInfo:
        """Change the primary key.  Only allowed while the index is empty."""
        body = self._http.patch(self._path, {"primaryKey": primary_key})
        return TaskInfo.from_dict(body)

    def update_and_wait(self, primary_key: str, **wait_kwargs: Any) -> "Index":
        """Change the primary key, wait for the task and refresh the handle."""
        task = self.wait_for_task(
            self.update(primary_key).task_uid, raise_for_status=True, **wait_kwargs
        )
        logger.debug(f"Primary key of '{self.uid}' updated by task {task.uid}")
        return self.fetch_info()

    def delete(self) -> TaskInfo:
        """Delete the index and every document in it.  Not recoverable."""
        return TaskInfo.from_dict(self._http.delete(self._path))

    def delete_if_exists(self, **wait_kwargs: Any) -> bool:
        """
        Delete the index if it exists.

        Returns:
            ``True`` if the index existed and was deleted, ``False`` if it
            did not exist.
        """
        try:
            info = self.delete()
        except ApiError as exc:
            if exc.code == "index_not_found":
                return False
            raise
        task = self.wait_for_task(info.task_uid, **wait_kwargs)
        if task.is_succeeded:
            return True
        if (task.error or {}).get("code") == "index_not_found":
            return False
        raise TaskFailedError(task)

    def get_stats(self) -> IndexStats:
        """Number of documents, indexing state and field distribution."""
        return IndexStats.from_dict(self._http.get(f"{self._path}/stats"))

    # ── Documents ─────────────────────────────────────────────────

    def add_documents(self, documents: Iterable[Any], primary_key: str | None = None) -> TaskInfo:
        """
        Add documents, replacing any existing document with the same id.

        Args:
            documents: Dicts, dataclass instances or objects with ``to_dict()``.
            primary_key: Primary key to set if the index does not have one yet.
        """
        return self._send_documents("POST", documents, primary_key)

    def add_documents_in_batches(
        self,
        documents: Iterable[Any],
        batch_size: int | None = None,
        primary_key: str | None = None,
        *,
        show_progress: bool = False,
    ) -> List[TaskInfo]:
        """Add documents in chunks of *batch_size* (one task per chunk)."""
        return self._send_in_batches("POST", documents, batch_size, primary_key, show_progress)

    def update_documents(self, documents: Iterable[Any], primary_key: str | None = None) -> TaskInfo:
        """Add documents, or merge fields into existing documents with the same id."""
        return self._send_documents("PUT", documents, primary_key)

    def update_documents_in_batches(
        self,
        documents: Iterable[Any],
        batch_size: int | None = None,
        primary_key: str | None = None,
        *,
        show_progress: bool = False,
    ) -> List[TaskInfo]:
        """Update documents in chunks of *batch_size* (one task per chunk)."""
        return self._send_in_batches("PUT", documents, batch_size, primary_key, show_progress)

    def get_document(self, document_id: DocumentId, fields: List[str] | None = None) -> Dict[str, Any]:
        """Return one document by id."""
        return self._http.get(
            f"{self._path}/documents/{document_id}", params={"fields": fields}
        )

    def get_documents(self, query: DocumentQuery | None = None) -> DocumentsResults:
        """Return a page of documents (limit/offset/fields/filter)."""
        params = query.to_params() if query is not None else None
        return DocumentsResults.from_dict(
            self._http.get(f"{self._path}/documents", params=params)
        )

    def delete_document(self, document_id: DocumentId) -> TaskInfo:
        """Delete one document by id."""
        return TaskInfo.from_dict(self._http.delete(f"{self._path}/documents/{document_id}"))

    def delete_documents(self, document_ids: Iterable[DocumentId]) -> TaskInfo:
        """Delete a batch of documents by id."""
        ids = [str(document_id) for document_id in document_ids]
        return TaskInfo.from_dict(
            self._http.post(f"{self._path}/documents/delete-batch", ids)
        )

    def delete_all_documents(self) -> TaskInfo:
        """Delete every document; settings are kept."""
        return TaskInfo.from_dict(self._http.delete(f"{self._path}/documents"))

    def _send_documents(self, method: str, documents: Iterable[Any],
                        primary_key: str | None) -> TaskInfo:
        body = self._http.request(
            method,
            f"{self._path}/documents",
            body=serialize_documents(documents),
            params={"primaryKey": primary_key},
        )
        return TaskInfo.from_dict(body)

    def _send_in_batches(self, method, documents, batch_size, primary_key,
                         show_progress) -> List[TaskInfo]:
        if batch_size is None:
            batch_size = self._tasks.config.batch_size
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        documents = list(documents)
        infos: List[TaskInfo] = []
        with tqdm(total=len(documents), desc=f"Sending to {self.uid}", unit="doc",
                  disable=not show_progress) as pbar:
            for chunk in chunks(documents, batch_size):
                try:
                    infos.append(self._send_documents(method, chunk, primary_key))
                except MeiliClientError as exc:
                    if infos:
                        logger.warning(
                            f"Batch {len(infos) + 1} to '{self.uid}' failed; already enqueued "
                            f"tasks: {', '.join(str(i.task_uid) for i in infos)}"
                        )
                    exc.enqueued_tasks = tuple(infos)
                    raise
                pbar.update(len(chunk))
        logger.debug(f"Sent {len(documents)} documents to '{self.uid}' in {len(infos)} batches")
        return infos

    # ── Search ────────────────────────────────────────────────────

    def search(self, query: str | None, search_query: SearchQuery | None = None) -> SearchResult:
        """
        Search the index.

        Args:
            query: Query string; takes precedence over ``search_query.q``.
                ``None`` or ``""`` is a placeholder search returning all documents.
            search_query: Optional parameters (filter, sort, facets, paging...).
                Not modified.

        Returns:
            :class:`SearchResult` whose ``hits`` are plain dicts.
        """
        body = replace(search_query, q=query) if search_query else SearchQuery(q=query)
        return SearchResult.from_dict(self._http.post(f"{self._path}/search", body.to_dict()))

    # ── Tasks ─────────────────────────────────────────────────────

    def get_tasks(self, **kwargs: Any) -> TaskResults:
        """List the tasks of this index."""
        return self._tasks.get_index_tasks(self.uid, **kwargs)

    def get_task(self, task_uid: int) -> Task:
        """Return one task of this index."""
        return self._tasks.get_index_task(self.uid, task_uid)

    def wait_for_task(self, task_uid: int, **kwargs: Any) -> Task:
        """Block until *task_uid* is processed.  See :meth:`TaskEndpoint.wait_for_task`."""
        return self._tasks.wait_for_task(task_uid, **kwargs)

    # ── Settings (all at once) ────────────────────────────────────

    def get_settings(self) -> Settings:
        return Settings.from_dict(self._http.get(f"{self._path}/settings"))

    def update_settings(self, settings: Settings) -> TaskInfo:
        """Update the given settings; fields left to ``None`` are not touched."""
        return TaskInfo.from_dict(
            self._http.patch(f"{self._path}/settings", settings.to_dict())
        )

    def reset_settings(self) -> TaskInfo:
        """Reset every setting to its default value."""
        return TaskInfo.from_dict(self._http.delete(f"{self._path}/settings"))

    # ── Settings (one at a time) ──────────────────────────────────

    def _get_setting(self, name: str) -> Any:
        return self._http.get(f"{self._path}/settings/{name}")

    def _update_setting(self, name: str, value: Any) -> TaskInfo:
        return TaskInfo.from_dict(self._http.put(f"{self._path}/settings/{name}", value))

    def _reset_setting(self, name: str) -> TaskInfo:
        return TaskInfo.from_dict(self._http.delete(f"{self._path}/settings/{name}"))

    def get_displayed_attributes(self) -> List[str]:
        return self._get_setting("displayed-attributes")

    def update_displayed_attributes(self, displayed_attributes: List[str]) -> TaskInfo:
        return self._update_setting("displayed-attributes", list(displayed_attributes))

    def reset_displayed_attributes(self) -> TaskInfo:
        return self._reset_setting("displayed-attributes")

    def get_distinct_attribute(self) -> Optional[str]:
        return self._get_setting("distinct-attribute")

    def update_distinct_attribute(self, distinct_attribute: str) -> TaskInfo:
        return self._update_setting("distinct-attribute", distinct_attribute)

    def reset_distinct_attribute(self) -> TaskInfo:
        return self._reset_setting("distinct-attribute")

    def get_filterable_attributes(self) -> List[str]:
        return self._get_setting("filterable-attributes")

    def update_filterable_attributes(self, filterable_attributes: List[str]) -> TaskInfo:
        return self._update_setting("filterable-attributes", list(filterable_attributes))

    def reset_filterable_attributes(self) -> TaskInfo:
        return self._reset_setting("filterable-attributes")

    def get_ranking_rules(self) -> List[str]:
        return self._get_setting("ranking-rules")

    def update_ranking_rules(self, ranking_rules: List[str]) -> TaskInfo:
        return self._update_setting("ranking-rules", list(ranking_rules))

    def reset_ranking_rules(self) -> TaskInfo:
        return self._reset_setting("ranking-rules")

    def get_searchable_attributes(self) -> List[str]:
        return self._get_setting("searchable-attributes")

    def update_searchable_attributes(self, searchable_attributes: List[str]) -> TaskInfo:
        return self._update_setting("searchable-attributes", list(searchable_attributes))

    def reset_searchable_attributes(self) -> TaskInfo:
        return self._reset_setting("searchable-attributes")

    def get_sortable_attributes(self) -> List[str]:
        return self._get_setting("sortable-attributes")

    def update_sortable_attributes(self, sortable_attributes: List[str]) -> TaskInfo:
        return self._update_setting("sortable-attributes", list(sortable_attributes))

    def reset_sortable_attributes(self) -> TaskInfo:
        return self._reset_setting("sortable-attributes")

    def get_stop_words(self) -> List[str]:
        return self._get_setting("stop-words")

    def update_stop_words(self, stop_words: List[str]) -> TaskInfo:
        return self._update_setting("stop-words", list(stop_words))

    def reset_stop_words(self) -> TaskInfo:
        return self._reset_setting("stop-words")

    def get_synonyms(self) -> Dict[str, List[str]]:
        return self._get_setting("synonyms")

    def update_synonyms(self, synonyms: Dict[str, List[str]]) -> TaskInfo:
        return self._update_setting(
            "synonyms", {word: list(alts) for word, alts in synonyms.items()}
        )

    def reset_synonyms(self) -> TaskInfo:
        return self._reset_setting("synonyms")


# =============================================================================
# Helpers
# =============================================================================

def serialize_documents(documents: Iterable[Any]) -> List[Dict[str, Any]]:
    """Turn dicts, dataclasses or ``to_dict()`` objects into JSON-ready dicts."""
    out: List[Dict[str, Any]] = []
    for doc in documents:
        if isinstance(doc, dict):
            out.append(doc)
        elif is_dataclass(doc) and not isinstance(doc, type):
            out.append(asdict(doc))
        elif hasattr(doc, "to_dict"):
            out.append(doc.to_dict())
        else:
            raise TypeError(
                f"Cannot serialize document of type {type(doc).__name__}; "
                "pass dicts, dataclasses or objects with to_dict()"
            )
    return out


def chunks(items: Iterable[Any], size: int) -> Iterator[List[Any]]:
    """Yield consecutive lists of at most *size* items."""
    iterator = iter(items)
    while True:
        chunk = list(islice(iterator, size))
        if not chunk:
            return
        yield chunk
