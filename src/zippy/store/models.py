"""Typed models for persisted repository state."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(slots=True, frozen=True)
class VersionRecord:
    """Metadata for one tagged snapshot."""

    tag: str
    message: str
    timestamp: str
    author: str
    entry_count: int
    archive_path: str
    size_bytes: int

    def with_archive_stats(self, entry_count: int, size_bytes: int) -> VersionRecord:
        """Return a copy with refreshed archive statistics."""
        return replace(self, entry_count=entry_count, size_bytes=size_bytes)


@dataclass(slots=True, frozen=True)
class VersionListing:
    """Loadable records plus the tags whose record files are corrupt."""

    records: tuple[VersionRecord, ...]
    corrupt: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class StageReport:
    """Outcome of one add invocation."""

    added: tuple[str, ...]
    ignored: tuple[str, ...]
    not_found: tuple[str, ...]
    blocked: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class WriteResult:
    """Outcome of packing a snapshot archive."""

    entry_count: int
    size_bytes: int
    written: tuple[str, ...]
    skipped: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class ExtractResult:
    """Outcome of unpacking a snapshot archive."""

    extracted: tuple[str, ...]
    failed: tuple[str, ...]
