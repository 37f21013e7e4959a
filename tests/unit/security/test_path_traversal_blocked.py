from __future__ import annotations

from pathlib import Path

import pytest

from zippy.security import PathBlockedError, resolve_repo_path


def test_path_traversal_is_blocked(tmp_path: Path) -> None:
    with pytest.raises(PathBlockedError) as error:
        resolve_repo_path(repo_root=tmp_path, candidate="../outside.txt")

    assert error.value.reason == "Path traversal is blocked."


def test_absolute_path_outside_root_is_blocked(tmp_path: Path) -> None:
    outside_file = tmp_path.parent / "outside.txt"

    with pytest.raises(PathBlockedError) as error:
        resolve_repo_path(repo_root=tmp_path, candidate=str(outside_file))

    assert error.value.reason == "Absolute path is outside the repository root."


def test_absolute_path_inside_root_is_accepted(tmp_path: Path) -> None:
    inside = tmp_path / "a.txt"
    inside.write_text("a", encoding="utf-8")

    assert resolve_repo_path(repo_root=tmp_path, candidate=str(inside)) == inside.resolve()


def test_symlink_escape_is_blocked(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    outside = tmp_path / "outside-target"
    outside.mkdir()
    (outside / "leak.txt").write_text("secret", encoding="utf-8")
    (repo / "link").symlink_to(outside, target_is_directory=True)

    with pytest.raises(PathBlockedError) as error:
        resolve_repo_path(repo_root=repo, candidate="link/leak.txt")

    assert error.value.reason == "Resolved path escapes the repository root."


def test_windows_separator_path_normalizes_to_same_file(tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()
    py_file = tmp_path / "src" / "main.py"
    py_file.write_text("print('ok')\n", encoding="utf-8")

    resolved = resolve_repo_path(repo_root=tmp_path, candidate=r"src\main.py")

    assert resolved == py_file.resolve()


def test_empty_and_dot_paths(tmp_path: Path) -> None:
    with pytest.raises(PathBlockedError):
        resolve_repo_path(repo_root=tmp_path, candidate="")

    assert resolve_repo_path(repo_root=tmp_path, candidate=".") == tmp_path.resolve()
