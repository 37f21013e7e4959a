"""Restore a snapshot onto the working tree."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from zippy.errors import FilterMatchedNothingError
from zippy.store.archive import extract_snapshot
from zippy.store.models import VersionRecord
from zippy.store.versions import resolve_archive_path


@dataclass(slots=True, frozen=True)
class RestoreReport:
    """Files written back from one snapshot."""

    tag: str
    path_filter: str | None
    restored: tuple[str, ...]
    failed: tuple[str, ...]


def restore_snapshot(
    repo_root: Path,
    record: VersionRecord,
    path_filter: str | None = None,
) -> RestoreReport:
    """Extract all (or filtered) entries of ``record`` over the working tree.

    Existing files are overwritten without confirmation.
    """
    archive_path = resolve_archive_path(repo_root, record)
    try:
        result = extract_snapshot(archive_path, repo_root, path_filter=path_filter or None)
    except FilterMatchedNothingError as error:
        raise FilterMatchedNothingError(error.path_filter, tag=record.tag) from None
    return RestoreReport(
        tag=record.tag,
        path_filter=path_filter or None,
        restored=result.extracted,
        failed=result.failed,
    )
