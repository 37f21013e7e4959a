"""Amend an existing snapshot in place."""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from zippy.errors import ArchiveIOError, SourceNotFoundError
from zippy.security import PathBlockedError, resolve_repo_path
from zippy.store.archive import DEFAULT_COMPRESSION, extract_snapshot, write_tree
from zippy.store.models import VersionRecord
from zippy.store.versions import VersionIndex, resolve_archive_path
from zippy.tree.scanner import METADATA_DIR_NAME, is_metadata_path


@dataclass(slots=True, frozen=True)
class PatchReport:
    """Outcome of amending one snapshot."""

    tag: str
    add_path: str
    patched: tuple[str, ...]
    previous_entry_count: int
    entry_count: int
    size_bytes: int


def patch_snapshot(
    repo_root: Path,
    index: VersionIndex,
    tag: str,
    add_path: str,
    compression: str = DEFAULT_COMPRESSION,
) -> tuple[VersionRecord, PatchReport]:
    """Overlay ``add_path`` from the working tree onto snapshot ``tag``.

    The archive is unpacked into a scratch directory, the new content is
    copied over it and the whole tree is re-packed. The original archive is
    only replaced after the new one has been written and verified, and the
    record is saved after that; any earlier failure leaves both untouched.
    """
    root = repo_root.resolve()
    record = index.load(tag)
    source = resolve_repo_path(root, add_path)
    if not source.exists():
        raise SourceNotFoundError(add_path)
    relative = source.relative_to(root).as_posix()
    if is_metadata_path(relative):
        raise PathBlockedError(
            reason="The repository metadata directory cannot be patched into a snapshot.",
            hint="Pass a working-tree file or folder.",
        )

    archive_path = resolve_archive_path(root, record)
    with tempfile.TemporaryDirectory(prefix="zippy_patch_") as scratch_dir:
        scratch = Path(scratch_dir)
        unpacked = extract_snapshot(archive_path, scratch)
        if unpacked.failed:
            raise ArchiveIOError(
                reason=f"Cannot unpack {len(unpacked.failed)} entries of version {record.tag}.",
                hint="The snapshot was left untouched.",
            )
        patched = _overlay(root, source, relative, scratch)
        result = write_tree(archive_path, scratch, compression=compression, strict=True)

    updated = record.with_archive_stats(result.entry_count, result.size_bytes)
    index.save(updated)
    report = PatchReport(
        tag=record.tag,
        add_path=relative,
        patched=patched,
        previous_entry_count=record.entry_count,
        entry_count=updated.entry_count,
        size_bytes=updated.size_bytes,
    )
    return updated, report


def _overlay(root: Path, source: Path, relative: str, scratch: Path) -> tuple[str, ...]:
    """Copy ``source`` into ``scratch`` at the same relative location.

    Whatever the snapshot holds at that location is replaced, even when it
    is a directory and the source is a file (or the other way round).
    """
    copied: list[str] = []

    def copy_file(src: str, dst: str) -> str:
        target = Path(dst)
        _remove_existing(target)
        shutil.copy2(src, dst)
        copied.append(target.relative_to(scratch).as_posix())
        return dst

    try:
        if relative != ".":
            for parent in reversed(Path(relative).parents[:-1]):
                _remove_existing_file(scratch / parent)
        if source.is_dir():
            destination = scratch if relative == "." else scratch / relative
            _clear_file_conflicts(source, destination)
            shutil.copytree(
                source,
                destination,
                dirs_exist_ok=True,
                ignore=_metadata_ignore(root),
                copy_function=copy_file,
            )
        else:
            target = scratch / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            copy_file(str(source), str(target))
    except OSError as error:
        raise ArchiveIOError(
            reason=f"Cannot copy {relative} into the snapshot: {error}",
            hint="The snapshot was left untouched.",
        ) from error
    return tuple(sorted(copied))


def _remove_existing(target: Path) -> None:
    if target.is_symlink() or target.is_file():
        target.unlink()
    elif target.is_dir():
        shutil.rmtree(target)


def _remove_existing_file(target: Path) -> None:
    if target.is_symlink() or target.is_file():
        target.unlink()


def _clear_file_conflicts(source: Path, destination: Path) -> None:
    """Remove snapshot files sitting where ``source`` has directories."""
    directories = [source, *(path for path in source.rglob("*") if path.is_dir())]
    for directory in directories:
        _remove_existing_file(destination / directory.relative_to(source))


def _metadata_ignore(root: Path) -> Callable[[str, list[str]], set[str]]:
    """Build a copytree ignore callback that skips the repository metadata dir."""

    def ignore(directory: str, names: list[str]) -> set[str]:
        if Path(directory).resolve() == root:
            return {METADATA_DIR_NAME} & set(names)
        return set()

    return ignore
