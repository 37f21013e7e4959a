"""Zip snapshot writer and reader."""

from __future__ import annotations

import os
import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path

from zippy.errors import ArchiveIOError, FilterMatchedNothingError
from zippy.security import normalize_relative_path, safe_member_name
from zippy.store.models import ExtractResult, WriteResult
from zippy.tree.fingerprint import FingerprintMap

COMPRESSION_METHODS = {
    "deflated": zipfile.ZIP_DEFLATED,
    "stored": zipfile.ZIP_STORED,
}
DEFAULT_COMPRESSION = "deflated"


@dataclass(slots=True, frozen=True)
class _PackPlan:
    """Files and empty-directory markers resolved for one archive write."""

    files: tuple[tuple[Path, str], ...]
    directories: tuple[tuple[Path, str], ...]
    skipped: tuple[str, ...]


def write_snapshot(
    archive_path: Path,
    source_root: Path,
    entries: tuple[str, ...] | list[str],
    compression: str = DEFAULT_COMPRESSION,
) -> WriteResult:
    """Pack the listed paths (directories expanded) into ``archive_path``.

    Entries missing at write time are skipped and reported, never fatal.
    """
    plan = _plan_entries(source_root.resolve(), entries)
    return _pack(archive_path, plan, compression)


def write_tree(
    archive_path: Path,
    source_root: Path,
    compression: str = DEFAULT_COMPRESSION,
    strict: bool = False,
) -> WriteResult:
    """Pack every file and empty directory under ``source_root``.

    With ``strict`` any entry that cannot be read aborts the write and the
    existing archive is kept.
    """
    root = source_root.resolve()
    files, directories, unreadable = _walk_directory(root, root)
    plan = _PackPlan(
        files=tuple(sorted(files, key=lambda item: item[1])),
        directories=tuple(sorted(directories, key=lambda item: item[1])),
        skipped=tuple(sorted(unreadable)),
    )
    return _pack(archive_path, plan, compression, strict=strict)


def read_fingerprints(archive_path: Path) -> FingerprintMap:
    """Return stored CRC-32 values for each file entry, without extracting."""
    try:
        with zipfile.ZipFile(archive_path, "r") as archive:
            return {
                info.filename.replace("\\", "/"): info.CRC
                for info in archive.infolist()
                if not info.is_dir()
            }
    except (OSError, zipfile.BadZipFile) as error:
        raise ArchiveIOError(
            reason=f"Cannot read archive {archive_path.name}: {error}",
            hint="The snapshot archive may be missing or damaged.",
        ) from error


def list_entries(archive_path: Path) -> tuple[str, ...]:
    """Return sorted file entry names of an archive."""
    return tuple(sorted(read_fingerprints(archive_path)))


def count_entries(archive_path: Path) -> int:
    """Return the number of file entries (directory markers excluded)."""
    return len(read_fingerprints(archive_path))


def extract_snapshot(
    archive_path: Path,
    destination_root: Path,
    path_filter: str | None = None,
) -> ExtractResult:
    """Unpack entries onto ``destination_root``, optionally limited to one path.

    Raises FilterMatchedNothingError before writing anything when a non-empty
    filter selects no entry.
    """
    normalized_filter = normalize_relative_path(path_filter) if path_filter else ""
    extracted: list[str] = []
    failed: list[str] = []
    try:
        with zipfile.ZipFile(archive_path, "r") as archive:
            selected = [
                info
                for info in archive.infolist()
                if _matches_filter(info.filename, normalized_filter)
            ]
            if normalized_filter and not selected:
                raise FilterMatchedNothingError(path_filter or normalized_filter)
            for info in selected:
                name = safe_member_name(info.filename)
                if name is None:
                    failed.append(info.filename)
                    continue
                try:
                    _extract_member(archive, info, destination_root / name)
                except (OSError, zipfile.BadZipFile):
                    failed.append(name)
                    continue
                if not info.is_dir():
                    extracted.append(name)
    except (OSError, zipfile.BadZipFile) as error:
        raise ArchiveIOError(
            reason=f"Cannot read archive {archive_path.name}: {error}",
            hint="The snapshot archive may be missing or damaged.",
        ) from error
    return ExtractResult(extracted=tuple(extracted), failed=tuple(failed))


def _matches_filter(member_name: str, normalized_filter: str) -> bool:
    if not normalized_filter:
        return True
    name = member_name.replace("\\", "/").rstrip("/")
    return name == normalized_filter or name.startswith(f"{normalized_filter}/")


def _extract_member(archive: zipfile.ZipFile, info: zipfile.ZipInfo, target: Path) -> None:
    mode = (info.external_attr >> 16) & 0o777
    if info.is_dir():
        target.mkdir(parents=True, exist_ok=True)
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    if target.is_file() or target.is_symlink():
        target.unlink()
    with archive.open(info, "r") as source, target.open("wb") as destination:
        shutil.copyfileobj(source, destination)
    if mode:
        target.chmod(mode)


def _plan_entries(root: Path, entries: tuple[str, ...] | list[str]) -> _PackPlan:
    files: dict[str, Path] = {}
    directories: dict[str, Path] = {}
    skipped: list[str] = []
    for entry in entries:
        relative = normalize_relative_path(entry)
        full_path = root / relative
        if not relative or not full_path.exists():
            skipped.append(entry)
            continue
        if full_path.is_dir():
            walked_files, walked_dirs, unreadable = _walk_directory(root, full_path)
            skipped.extend(unreadable)
            files.update({arcname: path for path, arcname in walked_files})
            directories.update({arcname: path for path, arcname in walked_dirs})
            continue
        files[relative] = full_path
    return _PackPlan(
        files=tuple((files[name], name) for name in sorted(files)),
        directories=tuple((directories[name], name) for name in sorted(directories)),
        skipped=tuple(skipped),
    )


def _walk_directory(
    root: Path, start: Path
) -> tuple[list[tuple[Path, str]], list[tuple[Path, str]], list[str]]:
    """Collect files, empty directories and unreadable directories below ``start``.

    No ignore filtering is applied.
    """
    files: list[tuple[Path, str]] = []
    directories: list[tuple[Path, str]] = []
    unreadable: list[str] = []
    stack: list[Path] = [start]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as scanned:
                ordered_entries = sorted(scanned, key=lambda item: item.name)
        except OSError:
            unreadable.append(f"{current.relative_to(root).as_posix()}/")
            continue
        if not ordered_entries and current != root:
            directories.append((current, f"{current.relative_to(root).as_posix()}/"))
            continue
        for entry in reversed(ordered_entries):
            full_path = Path(entry.path)
            if entry.is_dir(follow_symlinks=False):
                stack.append(full_path)
                continue
            if entry.is_file(follow_symlinks=False):
                files.append((full_path, full_path.relative_to(root).as_posix()))
    return files, directories, unreadable


def _pack(
    archive_path: Path,
    plan: _PackPlan,
    compression: str,
    strict: bool = False,
) -> WriteResult:
    """Write to a sibling temp file, verify it, then replace the target."""
    method = COMPRESSION_METHODS.get(compression)
    if method is None:
        raise ValueError(f"Unsupported compression method: {compression}")
    archive_path.parent.mkdir(parents=True, exist_ok=True)
    tmp = archive_path.with_name(f"{archive_path.name}.tmp")
    written: list[str] = []
    skipped = list(plan.skipped)
    try:
        with zipfile.ZipFile(tmp, "w", compression=method, strict_timestamps=False) as archive:
            for full_path, arcname in plan.files:
                try:
                    archive.write(full_path, arcname)
                except OSError:
                    skipped.append(arcname)
                    continue
                written.append(arcname)
            for full_path, arcname in plan.directories:
                try:
                    archive.write(full_path, arcname)
                except OSError:
                    skipped.append(arcname)
        if strict and skipped:
            raise ArchiveIOError(
                reason=f"Cannot pack {len(skipped)} entries: {', '.join(skipped)}.",
                hint="Check file permissions; the previous snapshot was left untouched.",
            )
        stored = count_entries(tmp)
        if stored != len(written):
            raise ArchiveIOError(
                reason=f"Archive verification failed: {stored} entries, expected {len(written)}.",
                hint="Retry the operation; the previous snapshot was left untouched.",
            )
        os.replace(tmp, archive_path)
        size_bytes = archive_path.stat().st_size
    except OSError as error:
        tmp.unlink(missing_ok=True)
        raise ArchiveIOError(
            reason=f"Cannot write archive {archive_path.name}: {error}",
            hint="Check free disk space and permissions under .zippy/storage.",
        ) from error
    except ArchiveIOError:
        tmp.unlink(missing_ok=True)
        raise
    return WriteResult(
        entry_count=len(written),
        size_bytes=size_bytes,
        written=tuple(written),
        skipped=tuple(skipped),
    )
