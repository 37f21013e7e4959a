from __future__ import annotations

import json
from pathlib import Path

import pytest

from zippy.errors import CorruptVersionRecordError, InvalidTagError, VersionNotFoundError
from zippy.store import VERSION_SCHEMA_VERSION, VersionIndex, VersionRecord, validate_tag


def _record(tag: str, timestamp: str) -> VersionRecord:
    return VersionRecord(
        tag=tag,
        message="msg",
        timestamp=timestamp,
        author="tester",
        entry_count=2,
        archive_path=f".zippy/storage/{tag}.zip",
        size_bytes=128,
    )


def test_save_then_load_preserves_record(tmp_path: Path) -> None:
    index = VersionIndex(tmp_path / "versions")
    record = _record("v1", "2024-01-01T00:00:00.000Z")

    index.save(record)

    assert index.exists("v1") is True
    assert index.load("v1") == record
    payload = json.loads(index.record_path("v1").read_text(encoding="utf-8"))
    assert payload["schema_version"] == VERSION_SCHEMA_VERSION
    assert not (tmp_path / "versions" / "v1.json.tmp").exists()


def test_load_unknown_tag_raises_not_found(tmp_path: Path) -> None:
    index = VersionIndex(tmp_path / "versions")

    with pytest.raises(VersionNotFoundError) as error:
        index.load("v9")

    assert error.value.tag == "v9"


def test_corrupt_record_skipped_in_listing_but_raised_on_load(tmp_path: Path) -> None:
    index = VersionIndex(tmp_path / "versions")
    index.save(_record("v1", "2024-01-01T00:00:00.000Z"))
    (tmp_path / "versions" / "broken.json").write_text("{oops", encoding="utf-8")

    listing = index.list()

    assert [record.tag for record in listing.records] == ["v1"]
    assert listing.corrupt == ("broken",)
    with pytest.raises(CorruptVersionRecordError):
        index.load("broken")


def test_record_with_wrong_field_types_is_corrupt(tmp_path: Path) -> None:
    index = VersionIndex(tmp_path / "versions")
    index.save(_record("v1", "2024-01-01T00:00:00.000Z"))
    path = index.record_path("v1")
    payload = json.loads(path.read_text(encoding="utf-8"))
    payload["entry_count"] = "two"
    path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(CorruptVersionRecordError) as error:
        index.load("v1")

    assert "entry_count" in error.value.reason


def test_listing_is_ordered_by_timestamp_and_latest_is_newest(tmp_path: Path) -> None:
    index = VersionIndex(tmp_path / "versions")
    index.save(_record("b", "2024-03-01T00:00:00.000Z"))
    index.save(_record("a", "2024-05-01T00:00:00.000Z"))
    index.save(_record("c", "2024-01-01T00:00:00.000Z"))

    assert [record.tag for record in index.list().records] == ["c", "b", "a"]
    latest = index.latest()
    assert latest is not None
    assert latest.tag == "a"


def test_latest_breaks_timestamp_ties_by_tag(tmp_path: Path) -> None:
    index = VersionIndex(tmp_path / "versions")
    index.save(_record("v1", "2024-01-01T00:00:00.000Z"))
    index.save(_record("v2", "2024-01-01T00:00:00.000Z"))

    latest = index.latest()
    assert latest is not None
    assert latest.tag == "v2"


def test_latest_is_none_without_versions(tmp_path: Path) -> None:
    assert VersionIndex(tmp_path / "versions").latest() is None


@pytest.mark.parametrize("tag", ["", " ", "a/b", "a\\b", ".hidden", "v..1", "x:y"])
def test_invalid_tags_are_rejected(tag: str) -> None:
    with pytest.raises(InvalidTagError):
        validate_tag(tag)


def test_reasonable_tags_are_accepted() -> None:
    for tag in ("v1", "v1.0", "release_2024-01", "v1700000000"):
        assert validate_tag(tag) == tag
