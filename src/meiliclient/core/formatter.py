"""
meiliclient Output Formatting

Renders search results, index lists and tasks for the ``meili`` CLI.
"""

import json
import shutil
from typing import Any, Dict, List, Optional

from meiliclient.core.index import Index
from meiliclient.core.models import SearchResult, Task


def _json_default(value: Any) -> str:
    # datetimes and anything else json can't encode
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


class ResultFormatter:
    """Format client responses for different output modes."""

    # ── Helpers ───────────────────────────────────────────────────

    @staticmethod
    def _width() -> int:
        return min(shutil.get_terminal_size().columns, 78)

    @staticmethod
    def _title(hit: Dict[str, Any], primary_key: Optional[str]) -> str:
        """Pick a readable label for a hit: primary key, then title/name."""
        for key in (primary_key, "title", "name", "id"):
            if key and key in hit:
                return str(hit[key])
        return "(document)"

    # ── Search results ────────────────────────────────────────────

    @staticmethod
    def format_console(result: SearchResult, primary_key: str | None = None,
                       elapsed_time: float | None = None) -> str:
        """
        Human-friendly listing: one block per hit with its attributes.

        Args:
            result: The search response to render.
            primary_key: Attribute used as the hit label, when known.
            elapsed_time: Optional round-trip time in seconds for the header.
        """
        if not result.hits:
            return "\n  No results found.\n"

        width = ResultFormatter._width()
        thin = "─" * width
        total = result.estimated_total_hits if result.estimated_total_hits is not None else len(result.hits)

        header = f"  MEILI — {total} hit{'s' if total != 1 else ''} for '{result.query}'"
        header += f" ({result.processing_time_ms} ms server"
        if elapsed_time is not None:
            timing_str = f"{elapsed_time:.3f}"
            header += f", {timing_str} s total"
        header += ")"

        out: List[str] = [f"\n{thin}", header, thin]
        for offset, hit in enumerate(result.hits):
            idx = result.offset + offset + 1
            out.append("")
            out.append(f"  #{idx}  {ResultFormatter._title(hit, primary_key)}")
            out.append(f"  {'─' * (width - 2)}")
            for key, value in hit.items():
                if key.startswith("_"):
                    continue
                text = value if isinstance(value, str) else json.dumps(value, default=_json_default)
                if len(text) > width - 20:
                    text = text[: width - 23] + "..."
                out.append(f"    {key:<12}: {text}")

        if result.facet_distribution:
            out.append("")
            out.append("  Facets")
            for facet, counts in result.facet_distribution.items():
                pairs = ", ".join(f"{value} ({count})" for value, count in counts.items())
                out.append(f"    {facet:<12}: {pairs}")

        out.append(f"\n{thin}")
        return "\n".join(out)

    @staticmethod
    def format_json(payload: Any) -> str:
        """Pretty JSON for any model (``to_dict()``), list of models or plain value."""
        if hasattr(payload, "to_dict"):
            payload = payload.to_dict()
        elif isinstance(payload, list):
            payload = [p.to_dict() if hasattr(p, "to_dict") else p for p in payload]
        return json.dumps(payload, indent=2, ensure_ascii=False, default=_json_default)

    # ── Indexes & tasks ───────────────────────────────────────────

    @staticmethod
    def format_indexes(indexes: List[Index]) -> str:
        """Table of index uid, primary key and last update."""
        if not indexes:
            return "  No indexes."
        lines = [f"  {'UID':<24} {'PRIMARY KEY':<16} UPDATED", "  " + "─" * 64]
        for index in indexes:
            updated = index.updated_at.strftime("%Y-%m-%d %H:%M:%S") if index.updated_at else "-"
            lines.append(f"  {index.uid:<24} {index.primary_key or '-':<16} {updated}")
        return "\n".join(lines)

    @staticmethod
    def format_tasks(tasks: List[Task]) -> str:
        """Table of task uid, index, type and status."""
        if not tasks:
            return "  No tasks."
        lines = [f"  {'UID':>6}  {'INDEX':<20} {'TYPE':<26} STATUS", "  " + "─" * 66]
        for task in tasks:
            lines.append(
                f"  {task.uid:>6}  {task.index_uid or '-':<20} {task.type:<26} {task.status}"
            )
        return "\n".join(lines)

    @staticmethod
    def format_task(task: Task) -> str:
        """One task, with its error when it failed."""
        lines = [
            f"  Task     : {task.uid}",
            f"  Index    : {task.index_uid or '-'}",
            f"  Type     : {task.type}",
            f"  Status   : {task.status}",
        ]
        if task.duration:
            lines.append(f"  Duration : {task.duration}")
        if task.error:
            lines.append(f"  Error    : {task.error.get('code')}: {task.error.get('message')}")
        return "\n".join(lines)
