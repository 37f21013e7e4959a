from __future__ import annotations

from zippy.security import normalize_relative_path, safe_member_name


def test_safe_member_name_rejects_escapes() -> None:
    assert safe_member_name("../evil.txt") is None
    assert safe_member_name("a/../../evil.txt") is None
    assert safe_member_name("/etc/passwd") is None
    assert safe_member_name("C:\\Windows\\evil.dll") is None


def test_safe_member_name_normalizes_separators() -> None:
    assert safe_member_name("dir\\sub\\file.txt") == "dir/sub/file.txt"
    assert safe_member_name("dir/empty/") == "dir/empty"
    assert safe_member_name("./a.txt") == "a.txt"


def test_normalize_relative_path_drops_dot_and_empty_segments() -> None:
    assert normalize_relative_path("./docs//guide.md/") == "docs/guide.md"
    assert normalize_relative_path(".") == ""
