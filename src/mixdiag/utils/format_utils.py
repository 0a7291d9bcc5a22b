"""Console formatting for schema snapshots, users and probe results."""
from __future__ import annotations
import json
from typing import Any, Iterable, List

from ..domain.schema.models import TableSchemaSnapshot


def truncate_text(text: str, limit: int = 4000) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."

def format_snapshot(snapshot: TableSchemaSnapshot) -> List[str]:
    lines = [f"{snapshot.table} columns:"]
    for idx, (name, dtype, nullable) in enumerate(snapshot.as_rows(), start=1):
        lines.append(f"{idx}. {name} ({dtype or '?'}, nullable: {'YES' if nullable else 'NO'})")
    return lines

def format_members(members: Iterable[Any]) -> List[str]:
    lines = []
    for m in members:
        name = " ".join(p for p in (m.first_name, m.last_name) if p)
        suffix = f" - {name}" if name else ""
        lines.append(f"  {m.user_name} ({m.email}){suffix}")
    return lines

def format_body(body: Any, limit: int = 4000) -> str:
    if body is None:
        return "(empty)"
    if isinstance(body, (dict, list)):
        return truncate_text(json.dumps(body, indent=2, ensure_ascii=False), limit)
    return truncate_text(str(body), limit)

def format_probe(result: Any, show_headers: bool = False) -> List[str]:
    lines = [f"{result.method} {result.url} -> {result.status_code} {result.reason} ({result.elapsed_ms}ms)"]
    if show_headers:
        for k, v in result.headers.items():
            lines.append(f"  {k}: {v}")
    lines.append(format_body(result.body))
    return lines

def format_media(result: Any) -> str:
    mark = "OK " if result.accessible else "ERR"
    length = result.content_length if result.content_length is not None else "?"
    return f"[{mark}] {result.status_code} {result.url} type={result.content_type or '?'} length={length}"

__all__ = ["truncate_text", "format_snapshot", "format_members", "format_body", "format_probe", "format_media"]
