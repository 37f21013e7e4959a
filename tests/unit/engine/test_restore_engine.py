from __future__ import annotations

from pathlib import Path

import pytest

from zippy.engine import restore_snapshot
from zippy.errors import FilterMatchedNothingError
from zippy.store import VersionRecord, write_snapshot


def _snapshot(repo_root: Path) -> VersionRecord:
    (repo_root / "a.txt").write_bytes(b"alpha")
    (repo_root / "b.txt").write_bytes(b"beta")
    archive = repo_root / ".zippy" / "storage" / "v1.zip"
    result = write_snapshot(archive, repo_root, ["a.txt", "b.txt"])
    return VersionRecord(
        tag="v1",
        message="first",
        timestamp="2024-01-01T00:00:00.000Z",
        author="tester",
        entry_count=result.entry_count,
        archive_path=".zippy/storage/v1.zip",
        size_bytes=result.size_bytes,
    )


def test_restore_with_filter_touches_only_that_path(tmp_path: Path) -> None:
    record = _snapshot(tmp_path)
    (tmp_path / "a.txt").write_bytes(b"edited a")
    (tmp_path / "b.txt").write_bytes(b"edited b")

    report = restore_snapshot(tmp_path, record, path_filter="b.txt")

    assert report.restored == ("b.txt",)
    assert (tmp_path / "b.txt").read_bytes() == b"beta"
    assert (tmp_path / "a.txt").read_bytes() == b"edited a"


def test_restore_unmatched_filter_names_the_tag(tmp_path: Path) -> None:
    record = _snapshot(tmp_path)
    (tmp_path / "a.txt").write_bytes(b"edited a")

    with pytest.raises(FilterMatchedNothingError) as error:
        restore_snapshot(tmp_path, record, path_filter="nosuchfile.txt")

    assert error.value.tag == "v1"
    assert (tmp_path / "a.txt").read_bytes() == b"edited a"


def test_restore_recreates_deleted_files(tmp_path: Path) -> None:
    record = _snapshot(tmp_path)
    (tmp_path / "a.txt").unlink()

    report = restore_snapshot(tmp_path, record)

    assert report.restored == ("a.txt", "b.txt")
    assert (tmp_path / "a.txt").read_bytes() == b"alpha"
