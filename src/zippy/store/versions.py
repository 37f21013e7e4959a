"""Version index: one JSON record file per tag."""

from __future__ import annotations

import json
import re
from dataclasses import asdict
from datetime import UTC, datetime
from pathlib import Path
from typing import Final

from zippy.errors import CorruptVersionRecordError, InvalidTagError, VersionNotFoundError
from zippy.store.models import VersionListing, VersionRecord

VERSION_SCHEMA_VERSION = 1
RECORD_SUFFIX = ".json"

_TAG_FORBIDDEN: Final[re.Pattern[str]] = re.compile(r"[\\/:*?\"<>|\x00-\x1f]")
_STR_FIELDS = ("tag", "message", "timestamp", "author", "archive_path")
_INT_FIELDS = ("entry_count", "size_bytes")


def validate_tag(tag: str) -> str:
    """Return ``tag`` when it is usable as a record file name."""
    if not isinstance(tag, str) or not tag.strip():
        raise InvalidTagError(reason="Version tag is empty.", hint="Pass a tag such as 'v1.0'.")
    if tag != tag.strip() or tag.startswith(".") or ".." in tag or _TAG_FORBIDDEN.search(tag):
        raise InvalidTagError(
            reason=f"Version tag '{tag}' contains unsupported characters.",
            hint="Use letters, digits, '-', '_' and single dots, e.g. 'v1.0'.",
        )
    return tag


def parse_timestamp(value: str) -> datetime:
    """Parse a record timestamp into an aware datetime (naive values are UTC)."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def record_to_payload(record: VersionRecord) -> dict[str, object]:
    """Return the on-disk JSON object for a record."""
    payload: dict[str, object] = asdict(record)
    payload["schema_version"] = VERSION_SCHEMA_VERSION
    return payload


def record_from_payload(tag: str, payload: object) -> VersionRecord:
    """Validate a decoded JSON object and build a record."""
    if not isinstance(payload, dict):
        raise CorruptVersionRecordError(tag, "record must be a JSON object")
    schema = payload.get("schema_version")
    if schema != VERSION_SCHEMA_VERSION:
        raise CorruptVersionRecordError(
            tag, f"unsupported schema_version {schema!r}, expected {VERSION_SCHEMA_VERSION}"
        )
    for field in _STR_FIELDS:
        if not isinstance(payload.get(field), str):
            raise CorruptVersionRecordError(tag, f"field '{field}' must be a string")
    for field in _INT_FIELDS:
        value = payload.get(field)
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise CorruptVersionRecordError(tag, f"field '{field}' must be a non-negative integer")
    try:
        parse_timestamp(str(payload["timestamp"]))
    except ValueError:
        raise CorruptVersionRecordError(tag, "field 'timestamp' is not ISO-8601") from None
    return VersionRecord(
        tag=str(payload["tag"]),
        message=str(payload["message"]),
        timestamp=str(payload["timestamp"]),
        author=str(payload["author"]),
        entry_count=int(payload["entry_count"]),
        archive_path=str(payload["archive_path"]),
        size_bytes=int(payload["size_bytes"]),
    )


class VersionIndex:
    """Reads and writes version records under ``versions_dir``."""

    def __init__(self, versions_dir: Path) -> None:
        self._versions_dir = versions_dir

    @property
    def versions_dir(self) -> Path:
        """Return the directory holding record files."""
        return self._versions_dir

    def record_path(self, tag: str) -> Path:
        """Return the record file path for a tag."""
        return self._versions_dir / f"{validate_tag(tag)}{RECORD_SUFFIX}"

    def exists(self, tag: str) -> bool:
        """Return True when a record file exists for ``tag``."""
        return self.record_path(tag).is_file()

    def save(self, record: VersionRecord) -> None:
        """Write or overwrite the record file named after the tag."""
        path = self.record_path(record.tag)
        self._versions_dir.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as handle:
            json.dump(record_to_payload(record), handle, indent=2, sort_keys=True)
            handle.write("\n")
        tmp.replace(path)

    def load(self, tag: str) -> VersionRecord:
        """Load one record; raise VersionNotFound or CorruptVersionRecord."""
        path = self.record_path(tag)
        if not path.is_file():
            raise VersionNotFoundError(tag)
        return self._read_record(path, tag)

    def list(self) -> VersionListing:
        """Return all loadable records sorted by timestamp, skipping corrupt files."""
        if not self._versions_dir.is_dir():
            return VersionListing(records=(), corrupt=())
        records: list[VersionRecord] = []
        corrupt: list[str] = []
        for path in sorted(self._versions_dir.iterdir(), key=lambda item: item.name):
            if not path.is_file() or path.suffix != RECORD_SUFFIX:
                continue
            tag = path.name[: -len(RECORD_SUFFIX)]
            try:
                records.append(self._read_record(path, tag))
            except CorruptVersionRecordError:
                corrupt.append(tag)
        records.sort(key=_ordering_key)
        return VersionListing(records=tuple(records), corrupt=tuple(corrupt))

    def latest(self) -> VersionRecord | None:
        """Return the record with the newest timestamp, ties broken by tag."""
        records = self.list().records
        if not records:
            return None
        return max(records, key=_ordering_key)

    @staticmethod
    def _read_record(path: Path, tag: str) -> VersionRecord:
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as error:
            raise CorruptVersionRecordError(tag, str(error)) from error
        return record_from_payload(tag, payload)


def _ordering_key(record: VersionRecord) -> tuple[datetime, str]:
    return (parse_timestamp(record.timestamp), record.tag)


def resolve_archive_path(repo_root: Path, record: VersionRecord) -> Path:
    """Return the absolute archive path; relative paths are anchored at the repo root."""
    candidate = Path(record.archive_path)
    if candidate.is_absolute():
        return candidate
    return repo_root / candidate
