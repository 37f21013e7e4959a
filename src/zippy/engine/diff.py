"""Fingerprint-map comparison."""

from __future__ import annotations

from dataclasses import dataclass

from zippy.security import normalize_relative_path
from zippy.tree.fingerprint import FingerprintMap


@dataclass(slots=True, frozen=True)
class SnapshotDiff:
    """Deterministic added/removed/changed classification between two maps."""

    added: tuple[str, ...]
    removed: tuple[str, ...]
    changed: tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        """Return True when both sides hold identical content."""
        return not (self.added or self.removed or self.changed)


def diff_fingerprints(before: FingerprintMap, after: FingerprintMap) -> SnapshotDiff:
    """Compute paths added in ``after``, removed from ``before``, and changed."""
    before_paths = set(before.keys())
    after_paths = set(after.keys())
    changed = [path for path in before_paths & after_paths if before[path] != after[path]]
    return SnapshotDiff(
        added=tuple(sorted(after_paths - before_paths)),
        removed=tuple(sorted(before_paths - after_paths)),
        changed=tuple(sorted(changed)),
    )


def filter_fingerprints(fingerprints: FingerprintMap, path_filter: str | None) -> FingerprintMap:
    """Restrict a map to one path or the subtree below it."""
    normalized = normalize_relative_path(path_filter) if path_filter else ""
    if not normalized:
        return dict(fingerprints)
    prefix = f"{normalized}/"
    return {
        path: value
        for path, value in fingerprints.items()
        if path == normalized or path.startswith(prefix)
    }
