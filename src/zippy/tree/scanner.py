"""Deterministic working-tree traversal with ignore pruning."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from zippy.security import PathBlockedError, resolve_repo_path
from zippy.tree.ignore import is_path_ignored, should_ignore

METADATA_DIR_NAME = ".zippy"
STAGE_ALL = "."


@dataclass(slots=True, frozen=True)
class ScanResult:
    """Trackable files plus what was skipped during one traversal."""

    files: tuple[str, ...]
    ignored: tuple[str, ...]
    errors: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class TargetResolution:
    """Per-path outcomes of resolving an explicit path list."""

    files: tuple[str, ...]
    ignored: tuple[str, ...]
    not_found: tuple[str, ...]
    blocked: tuple[str, ...]
    errors: tuple[str, ...]


def is_metadata_path(relative_path: str) -> bool:
    """Return True for the reserved metadata directory and anything under it."""
    return relative_path == METADATA_DIR_NAME or relative_path.startswith(f"{METADATA_DIR_NAME}/")


def scan_tree(root: Path, patterns: tuple[str, ...], start: str | None = None) -> ScanResult:
    """Walk ``root`` (or ``root/start``) depth-first, pruning ignored directories."""
    root = root.resolve()
    files: list[str] = []
    ignored: list[str] = []
    errors: list[str] = []
    stack: list[Path] = [root / start if start else root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError:
            errors.append(current.relative_to(root).as_posix())
            continue
        for entry in reversed(ordered_entries):
            full_path = Path(entry.path)
            relative = full_path.relative_to(root).as_posix()
            if entry.is_dir(follow_symlinks=False):
                if is_metadata_path(relative):
                    continue
                if should_ignore(relative, patterns, is_dir=True):
                    ignored.append(f"{relative}/")
                    continue
                stack.append(full_path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            if should_ignore(relative, patterns):
                ignored.append(relative)
                continue
            files.append(relative)
    return ScanResult(
        files=tuple(sorted(files)),
        ignored=tuple(sorted(ignored)),
        errors=tuple(sorted(errors)),
    )


def resolve_targets(root: Path, patterns: tuple[str, ...], paths: list[str]) -> TargetResolution:
    """Resolve explicit paths to trackable files, expanding directories.

    A lone ``"."`` selects the whole tree.
    """
    root = root.resolve()
    if paths == [STAGE_ALL]:
        scan = scan_tree(root, patterns)
        return TargetResolution(
            files=scan.files,
            ignored=scan.ignored,
            not_found=(),
            blocked=(),
            errors=scan.errors,
        )

    files: set[str] = set()
    ignored: set[str] = set()
    not_found: list[str] = []
    blocked: list[str] = []
    errors: list[str] = []
    for candidate in paths:
        try:
            resolved = resolve_repo_path(root, candidate)
        except PathBlockedError:
            blocked.append(candidate)
            continue
        if not resolved.exists():
            not_found.append(candidate)
            continue
        relative = resolved.relative_to(root).as_posix()
        is_dir = resolved.is_dir()
        if relative == ".":
            scan = scan_tree(root, patterns)
            files.update(scan.files)
            ignored.update(scan.ignored)
            errors.extend(scan.errors)
            continue
        if is_metadata_path(relative) or is_path_ignored(relative, patterns, is_dir=is_dir):
            ignored.add(candidate)
            continue
        if is_dir:
            scan = scan_tree(root, patterns, start=relative)
            files.update(scan.files)
            ignored.update(scan.ignored)
            errors.extend(scan.errors)
            continue
        files.add(relative)
    return TargetResolution(
        files=tuple(sorted(files)),
        ignored=tuple(sorted(ignored)),
        not_found=tuple(not_found),
        blocked=tuple(blocked),
        errors=tuple(sorted(errors)),
    )
