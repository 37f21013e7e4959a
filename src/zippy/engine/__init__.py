"""Diff, restore and patch engines."""

from .diff import SnapshotDiff, diff_fingerprints, filter_fingerprints
from .patch import PatchReport, patch_snapshot
from .restore import RestoreReport, restore_snapshot

__all__ = [
    "PatchReport",
    "RestoreReport",
    "SnapshotDiff",
    "diff_fingerprints",
    "filter_fingerprints",
    "patch_snapshot",
    "restore_snapshot",
]
