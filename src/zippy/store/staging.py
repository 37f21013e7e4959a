"""Persisted staging set for the next snapshot."""

from __future__ import annotations

import json
from pathlib import Path

from zippy.store.models import StageReport
from zippy.tree.scanner import resolve_targets

STAGE_FILE_NAME = "stage.json"


class StagingArea:
    """Sorted JSON array of staged relative paths under the metadata directory."""

    def __init__(self, data_dir: Path) -> None:
        self._path = data_dir / STAGE_FILE_NAME

    @property
    def path(self) -> Path:
        """Return on-disk stage file path."""
        return self._path

    def stage(self, repo_root: Path, patterns: tuple[str, ...], paths: list[str]) -> StageReport:
        """Resolve ``paths`` and replace the staged set with the result."""
        resolution = resolve_targets(repo_root, patterns, paths)
        self.write(resolution.files)
        return StageReport(
            added=resolution.files,
            ignored=resolution.ignored,
            not_found=resolution.not_found,
            blocked=resolution.blocked,
        )

    def write(self, entries: tuple[str, ...] | list[str]) -> None:
        """Persist a staged set, overwriting any previous one."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as handle:
            json.dump(sorted(set(entries)), handle, indent=2)
            handle.write("\n")
        tmp.replace(self._path)

    def read(self) -> tuple[str, ...]:
        """Return staged paths, or an empty tuple when nothing is staged."""
        if not self._path.exists():
            return ()
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError:
            return ()
        if not isinstance(payload, list):
            return ()
        return tuple(sorted({item for item in payload if isinstance(item, str) and item}))

    def clear(self) -> None:
        """Remove the staged set once a commit is durable."""
        self._path.unlink(missing_ok=True)
