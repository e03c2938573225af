"""
meiliclient Data Models

Plain dataclasses mirroring the JSON payloads Meilisearch sends and
receives.  Python attributes are snake_case; ``from_dict`` reads the
server's camelCase keys and ``to_dict`` writes them back, dropping
``None`` so partial bodies (settings, search queries) only carry what
the caller set.
"""

import re
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

# =============================================================================
# Helpers
# =============================================================================

_FRACTION = re.compile(r"\.(\d+)")


def to_camel(name: str) -> str:
    """``primary_key`` -> ``primaryKey``; a trailing underscore is dropped."""
    head, *rest = name.rstrip("_").split("_")
    return head + "".join(part.title() for part in rest)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp; nanosecond fractions are truncated."""
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    return datetime.fromisoformat(text)


def _dump(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, _Model):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_dump(v) for v in value]
    return value


class _Model:
    """camelCase <-> snake_case mapping shared by every payload dataclass."""

    _datetime_fields: tuple = ()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]):
        data = data or {}
        kwargs = {}
        for f in fields(cls):
            key = to_camel(f.name)
            if key in data:
                value = data[key]
            elif f.name in data:
                value = data[f.name]
            else:
                continue
            if f.name in cls._datetime_fields:
                value = parse_datetime(value)
            kwargs[f.name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase JSON body, without ``None`` values."""
        return {
            to_camel(f.name): _dump(getattr(self, f.name))
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


# =============================================================================
# Server information
# =============================================================================

@dataclass
class Version(_Model):
    commit_sha: str = ""
    commit_date: Optional[datetime] = None
    pkg_version: str = ""

    @classmethod
    def from_dict(cls, data):
        # commitDate is "unknown" on dev builds
        data = dict(data or {})
        try:
            commit_date = parse_datetime(data.pop("commitDate", None))
        except ValueError:
            commit_date = None
        version = super().from_dict(data)
        version.commit_date = commit_date
        return version


@dataclass
class Health(_Model):
    status: str = ""


@dataclass
class IndexStats(_Model):
    number_of_documents: int = 0
    is_indexing: bool = False
    field_distribution: Dict[str, int] = field(default_factory=dict)


@dataclass
class Stats(_Model):
    """Instance-wide statistics (``GET /stats``)."""
    database_size: int = 0
    last_update: Optional[datetime] = None
    indexes: Dict[str, IndexStats] = field(default_factory=dict)

    _datetime_fields = ("last_update",)

    @classmethod
    def from_dict(cls, data):
        stats = super().from_dict(data)
        stats.indexes = {
            uid: IndexStats.from_dict(value) for uid, value in (stats.indexes or {}).items()
        }
        return stats


@dataclass
class IndexInfo(_Model):
    uid: str = ""
    primary_key: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    _datetime_fields = ("created_at", "updated_at")


# =============================================================================
# Tasks
# =============================================================================

class TaskStatus:
    ENQUEUED = "enqueued"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


PENDING_STATUSES = frozenset((TaskStatus.ENQUEUED, TaskStatus.PROCESSING))


@dataclass
class TaskInfo(_Model):
    """Summary returned by every asynchronous write (``202 Accepted``)."""
    task_uid: int = 0
    index_uid: Optional[str] = None
    status: str = TaskStatus.ENQUEUED
    type: str = ""
    enqueued_at: Optional[datetime] = None

    _datetime_fields = ("enqueued_at",)

    @classmethod
    def from_dict(cls, data):
        data = dict(data or {})
        # Older servers answered with updateId / uid instead of taskUid
        for legacy in ("updateId", "uid"):
            if "taskUid" not in data and legacy in data:
                data["taskUid"] = data[legacy]
        return super().from_dict(data)


@dataclass
class Task(_Model):
    """Full task status (``GET /tasks/{uid}``)."""
    uid: int = 0
    index_uid: Optional[str] = None
    status: str = TaskStatus.ENQUEUED
    type: str = ""
    details: Optional[Dict[str, Any]] = None
    error: Optional[Dict[str, Any]] = None
    canceled_by: Optional[int] = None
    duration: Optional[str] = None
    enqueued_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    _datetime_fields = ("enqueued_at", "started_at", "finished_at")

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_STATUSES

    @property
    def is_succeeded(self) -> bool:
        return self.status == TaskStatus.SUCCEEDED

    @property
    def is_failed(self) -> bool:
        return self.status == TaskStatus.FAILED


@dataclass
class TaskResults(_Model):
    results: List[Task] = field(default_factory=list)
    limit: Optional[int] = None
    from_: Optional[int] = None
    next: Optional[int] = None
    total: Optional[int] = None

    @classmethod
    def from_dict(cls, data):
        if isinstance(data, list):
            data = {"results": data}
        page = super().from_dict(data)
        page.results = [Task.from_dict(t) for t in page.results or []]
        return page


# =============================================================================
# Documents
# =============================================================================

@dataclass
class DocumentQuery(_Model):
    """Query-string parameters for ``GET /indexes/{uid}/documents``."""
    offset: Optional[int] = None
    limit: Optional[int] = None
    fields: Optional[List[str]] = None
    """Attributes to retrieve; ``None`` returns every displayed attribute."""
    filter: Optional[str] = None

    def to_params(self) -> Dict[str, Any]:
        return self.to_dict()


@dataclass
class DocumentsResults(_Model):
    results: List[Dict[str, Any]] = field(default_factory=list)
    offset: int = 0
    limit: int = 0
    total: int = 0

    @classmethod
    def from_dict(cls, data):
        if isinstance(data, list):
            return cls(results=data, limit=len(data), total=len(data))
        return super().from_dict(data)


# =============================================================================
# Search
# =============================================================================

@dataclass
class SearchQuery(_Model):
    """Body of ``POST /indexes/{uid}/search``.  Unset fields use server defaults."""
    q: Optional[str] = None
    offset: Optional[int] = None
    limit: Optional[int] = None
    filter: Optional[Union[str, List[Any]]] = None
    attributes_to_retrieve: Optional[List[str]] = None
    attributes_to_crop: Optional[List[str]] = None
    crop_length: Optional[int] = None
    attributes_to_highlight: Optional[List[str]] = None
    crop_marker: Optional[str] = None
    highlight_pre_tag: Optional[str] = None
    highlight_post_tag: Optional[str] = None
    facets: Optional[List[str]] = None
    show_matches_position: Optional[bool] = None
    sort: Optional[List[str]] = None
    matching_strategy: Optional[str] = None


@dataclass
class MatchPosition(_Model):
    start: int = 0
    length: int = 0


@dataclass
class FacetStat(_Model):
    min: float = 0.0
    max: float = 0.0


@dataclass
class SearchResult(_Model):
    """Search response.  Hits stay plain dicts: documents are schemaless."""
    hits: List[Dict[str, Any]] = field(default_factory=list)
    index_uid: Optional[str] = None
    offset: int = 0
    limit: int = 0
    estimated_total_hits: Optional[int] = None
    facet_distribution: Optional[Dict[str, Dict[str, int]]] = None
    facet_stats: Optional[Dict[str, FacetStat]] = None
    processing_time_ms: int = 0
    query: str = ""

    @classmethod
    def from_dict(cls, data):
        result = super().from_dict(data)
        if result.facet_stats:
            result.facet_stats = {
                name: FacetStat.from_dict(stat) for name, stat in result.facet_stats.items()
            }
        return result

    @staticmethod
    def matches_position(hit: Dict[str, Any]) -> Dict[str, List[MatchPosition]]:
        """Typed view of a hit's ``_matchesPosition`` (needs ``show_matches_position``)."""
        raw = hit.get("_matchesPosition") or {}
        return {
            attr: [MatchPosition.from_dict(p) for p in positions]
            for attr, positions in raw.items()
        }


# =============================================================================
# Settings
# =============================================================================

@dataclass
class Settings(_Model):
    ranking_rules: Optional[List[str]] = None
    distinct_attribute: Optional[str] = None
    searchable_attributes: Optional[List[str]] = None
    displayed_attributes: Optional[List[str]] = None
    stop_words: Optional[List[str]] = None
    synonyms: Optional[Dict[str, List[str]]] = None
    filterable_attributes: Optional[List[str]] = None
    sortable_attributes: Optional[List[str]] = None
