from __future__ import annotations

import shutil
import tempfile
import zipfile
from pathlib import Path

import pytest

import zippy.engine.patch as patch_module
from zippy.engine import patch_snapshot
from zippy.errors import ArchiveIOError, SourceNotFoundError, VersionNotFoundError
from zippy.security import PathBlockedError
from zippy.store import VersionIndex, VersionRecord, list_entries, write_snapshot


def _setup(repo_root: Path) -> tuple[VersionIndex, Path]:
    (repo_root / "a.txt").write_bytes(b"alpha")
    (repo_root / "b.txt").write_bytes(b"beta")
    archive = repo_root / ".zippy" / "storage" / "v1.zip"
    result = write_snapshot(archive, repo_root, ["a.txt", "b.txt"])
    index = VersionIndex(repo_root / ".zippy" / "versions")
    index.save(
        VersionRecord(
            tag="v1",
            message="first",
            timestamp="2024-01-01T00:00:00.000Z",
            author="tester",
            entry_count=result.entry_count,
            archive_path=".zippy/storage/v1.zip",
            size_bytes=result.size_bytes,
        )
    )
    return index, archive


def test_patch_adds_file_and_updates_record(tmp_path: Path) -> None:
    index, archive = _setup(tmp_path)
    (tmp_path / "newfile.txt").write_bytes(b"fresh")

    record, report = patch_snapshot(tmp_path, index, "v1", "newfile.txt")

    assert list_entries(archive) == ("a.txt", "b.txt", "newfile.txt")
    assert record.entry_count == 3
    assert index.load("v1").entry_count == 3
    assert index.load("v1").size_bytes == archive.stat().st_size
    assert report.previous_entry_count == 2
    assert report.patched == ("newfile.txt",)


def test_patch_directory_overwrites_existing_entries(tmp_path: Path) -> None:
    index, archive = _setup(tmp_path)
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "guide.md").write_bytes(b"# guide")
    (tmp_path / "docs" / "api.md").write_bytes(b"# api")

    _, report = patch_snapshot(tmp_path, index, "v1", "docs")

    assert report.patched == ("docs/api.md", "docs/guide.md")
    assert list_entries(archive) == ("a.txt", "b.txt", "docs/api.md", "docs/guide.md")


def test_patch_missing_source_leaves_snapshot_untouched(tmp_path: Path) -> None:
    index, archive = _setup(tmp_path)
    before_bytes = archive.read_bytes()
    before_record = index.load("v1")

    with pytest.raises(SourceNotFoundError):
        patch_snapshot(tmp_path, index, "v1", "missing.txt")

    assert archive.read_bytes() == before_bytes
    assert index.load("v1") == before_record


def test_patch_refuses_metadata_and_outside_paths(tmp_path: Path) -> None:
    index, archive = _setup(tmp_path)
    before_bytes = archive.read_bytes()

    with pytest.raises(PathBlockedError):
        patch_snapshot(tmp_path, index, "v1", ".zippy")
    with pytest.raises(PathBlockedError):
        patch_snapshot(tmp_path, index, "v1", "../elsewhere.txt")

    assert archive.read_bytes() == before_bytes


def test_patch_unknown_tag_raises_not_found(tmp_path: Path) -> None:
    index, _ = _setup(tmp_path)
    (tmp_path / "newfile.txt").write_bytes(b"fresh")

    with pytest.raises(VersionNotFoundError):
        patch_snapshot(tmp_path, index, "v2", "newfile.txt")


def _scratch_dirs() -> set[Path]:
    return set(Path(tempfile.gettempdir()).glob("zippy_patch_*"))


def test_patch_file_replaces_directory_entry_of_same_name(tmp_path: Path) -> None:
    index, archive = _setup(tmp_path)
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "a.md").write_bytes(b"# a")
    patch_snapshot(tmp_path, index, "v1", "docs")
    shutil.rmtree(tmp_path / "docs")
    (tmp_path / "docs").write_bytes(b"now a file")

    _, report = patch_snapshot(tmp_path, index, "v1", "docs")

    assert report.patched == ("docs",)
    assert list_entries(archive) == ("a.txt", "b.txt", "docs")
    with zipfile.ZipFile(archive) as opened:
        assert opened.read("docs") == b"now a file"


def test_patch_directory_replaces_file_entry_of_same_name(tmp_path: Path) -> None:
    index, archive = _setup(tmp_path)
    (tmp_path / "docs").write_bytes(b"a file first")
    patch_snapshot(tmp_path, index, "v1", "docs")
    (tmp_path / "docs").unlink()
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "a.md").write_bytes(b"# a")

    _, report = patch_snapshot(tmp_path, index, "v1", "docs")

    assert report.patched == ("docs/a.md",)
    assert list_entries(archive) == ("a.txt", "b.txt", "docs/a.md")


def test_failed_repack_leaves_snapshot_and_scratch_clean(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    index, archive = _setup(tmp_path)
    (tmp_path / "newfile.txt").write_bytes(b"fresh")
    before_bytes = archive.read_bytes()
    before_record = index.load("v1")
    scratch_before = _scratch_dirs()

    def failing_write_tree(*args: object, **kwargs: object) -> object:
        raise ArchiveIOError(reason="disk full", hint="")

    monkeypatch.setattr(patch_module, "write_tree", failing_write_tree)

    with pytest.raises(ArchiveIOError):
        patch_snapshot(tmp_path, index, "v1", "newfile.txt")

    assert archive.read_bytes() == before_bytes
    assert index.record_path("v1").is_file()
    assert index.load("v1") == before_record
    assert _scratch_dirs() == scratch_before


def test_unreadable_scratch_entry_aborts_patch(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    index, archive = _setup(tmp_path)
    (tmp_path / "newfile.txt").write_bytes(b"fresh")
    before_bytes = archive.read_bytes()
    before_record = index.load("v1")
    original_write = zipfile.ZipFile.write

    def failing_write(self: zipfile.ZipFile, filename: object, arcname: str | None = None) -> None:
        if arcname == "b.txt":
            raise PermissionError("denied")
        original_write(self, filename, arcname)

    monkeypatch.setattr(zipfile.ZipFile, "write", failing_write)

    with pytest.raises(ArchiveIOError):
        patch_snapshot(tmp_path, index, "v1", "newfile.txt")

    assert archive.read_bytes() == before_bytes
    assert index.load("v1") == before_record


def test_patch_nested_file_replaces_file_standing_in_for_its_parent(tmp_path: Path) -> None:
    index, archive = _setup(tmp_path)
    (tmp_path / "docs").write_bytes(b"a file first")
    patch_snapshot(tmp_path, index, "v1", "docs")
    (tmp_path / "docs").unlink()
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "a.md").write_bytes(b"# a")

    _, report = patch_snapshot(tmp_path, index, "v1", "docs/a.md")

    assert report.patched == ("docs/a.md",)
    assert list_entries(archive) == ("a.txt", "b.txt", "docs/a.md")
