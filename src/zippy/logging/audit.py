"""Structured JSONL audit log of repository commands."""

from __future__ import annotations

import json
from collections import deque
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

# Paths and tags are safe to record; commit messages and other free text are not.
_VERBATIM_STRING_KEYS = frozenset(
    {"path", "paths", "tag", "tag_a", "tag_b", "path_filter", "add_path", "since"}
)


@dataclass(slots=True, frozen=True)
class OperationEvent:
    """Sanitized record of a single command invocation."""

    timestamp: str
    command: str
    ok: bool
    error_code: str | None
    metadata: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sanitize_arguments(arguments: dict[str, object]) -> dict[str, object]:
    """Keep paths, tags, flags and numbers; reduce free text to presence and length."""
    sanitized: dict[str, object] = {}
    for key in sorted(arguments):
        sanitized.update(_sanitize_value(key, arguments[key]))
    return sanitized


def _sanitize_value(key: str, value: object) -> dict[str, object]:
    if value is None or isinstance(value, (bool, int, float)):
        return {key: value}
    if key in _VERBATIM_STRING_KEYS:
        if isinstance(value, str):
            return {key: value}
        if isinstance(value, list):
            return {key: [item for item in value if isinstance(item, str)]}
    if isinstance(value, str):
        return {f"{key}_present": True, f"{key}_length": len(value)}
    if isinstance(value, list):
        return {f"{key}_type": "list", f"{key}_length": len(value)}
    return {f"{key}_type": type(value).__name__}


class JsonlAuditLogger:
    """Append-only JSONL file under the metadata directory."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def append(self, event: OperationEvent) -> None:
        """Append an event as one JSON object per line."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(f"{json.dumps(asdict(event), sort_keys=True)}\n")

    def read(self, since: str | None = None, limit: int = 50) -> list[dict[str, object]]:
        """Return the newest ``limit`` events at or after ``since``, oldest first.

        Blank, malformed and non-object lines are skipped.
        """
        if limit < 1 or not self._path.exists():
            return []
        tail: deque[dict[str, object]] = deque(maxlen=limit)
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                record = _parse_line(line)
                if record is None:
                    continue
                if since is not None and not _is_at_or_after(record, since):
                    continue
                tail.append(record)
        return list(tail)


def _parse_line(line: str) -> dict[str, object] | None:
    stripped = line.strip()
    if not stripped:
        return None
    try:
        record = json.loads(stripped)
    except json.JSONDecodeError:
        return None
    return record if isinstance(record, dict) else None


def _is_at_or_after(record: dict[str, object], since: str) -> bool:
    timestamp = record.get("timestamp")
    return isinstance(timestamp, str) and timestamp >= since
