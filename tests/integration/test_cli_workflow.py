from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from zippy.cli import main


def _run(root: Path, *args: str) -> tuple[int, str]:
    out = io.StringIO()
    code = main(["--repo-root", str(root), *args], out_stream=out)
    return code, out.getvalue()


def _run_json(root: Path, *args: str) -> tuple[int, dict[str, object]]:
    code, text = _run(root, "--json", *args)
    return code, json.loads(text)


def test_cli_end_to_end_json_envelopes(tmp_path: Path) -> None:
    code, init = _run_json(tmp_path, "--author", "tester", "init")
    assert code == 0
    assert init["ok"] is True

    (tmp_path / "a.txt").write_text("alpha\n", encoding="utf-8")
    (tmp_path / "b.txt").write_text("beta\n", encoding="utf-8")
    code, added = _run_json(tmp_path, "add", "a.txt", "b.txt", "missing.txt")
    assert code == 0
    assert added["result"]["added"] == ["a.txt", "b.txt"]
    assert added["result"]["not_found"] == ["missing.txt"]

    code, committed = _run_json(tmp_path, "commit", "-m", "first", "-v", "v1")
    assert code == 0
    assert committed["result"]["tag"] == "v1"
    assert committed["result"]["entry_count"] == 2
    assert committed["result"]["author"] == "tester"

    code, listed = _run_json(tmp_path, "ls")
    assert code == 0
    assert [version["tag"] for version in listed["result"]["versions"]] == ["v1"]

    (tmp_path / "a.txt").write_text("changed\n", encoding="utf-8")
    code, status = _run_json(tmp_path, "status")
    assert code == 0
    assert status["result"]["changes"]["changed"] == ["a.txt"]


def test_cli_errors_use_stable_codes_and_exit_one(tmp_path: Path) -> None:
    code, response = _run_json(tmp_path, "status")
    assert code == 1
    assert response["error"]["code"] == "REPOSITORY_NOT_INITIALIZED"

    _run_json(tmp_path, "init")
    code, response = _run_json(tmp_path, "commit", "-m", "empty")
    assert code == 1
    assert response["error"]["code"] == "NOTHING_STAGED"

    code, response = _run_json(tmp_path, "restore", "v404")
    assert code == 1
    assert response["error"]["code"] == "VERSION_NOT_FOUND"


def test_cli_blocked_path_envelope(tmp_path: Path) -> None:
    _run_json(tmp_path, "init")
    (tmp_path / "a.txt").write_text("alpha\n", encoding="utf-8")
    _run_json(tmp_path, "add", "a.txt")
    _run_json(tmp_path, "commit", "-v", "v1")

    code, response = _run_json(tmp_path, "patch", "v1", "../outside.txt")

    assert code == 1
    assert response["blocked"] is True
    assert response["error"]["code"] == "PATH_BLOCKED"


def test_cli_appends_sanitized_audit_events(tmp_path: Path) -> None:
    _run_json(tmp_path, "init")
    (tmp_path / "a.txt").write_text("alpha\n", encoding="utf-8")
    _run_json(tmp_path, "add", "a.txt")
    _run_json(tmp_path, "commit", "-m", "secret message", "-v", "v1")

    code, log = _run_json(tmp_path, "log", "--limit", "2")

    assert code == 0
    entries = log["result"]["entries"]
    assert [entry["command"] for entry in entries] == ["add", "commit"]
    assert entries[1]["metadata"]["message_length"] == len("secret message")
    audit_text = (tmp_path / ".zippy" / "audit.jsonl").read_text(encoding="utf-8")
    assert "secret message" not in audit_text


def test_cli_text_output_for_restore_and_version(tmp_path: Path) -> None:
    _run(tmp_path, "init")
    (tmp_path / "a.txt").write_text("alpha\n", encoding="utf-8")
    _run(tmp_path, "add", "a.txt")
    _run(tmp_path, "commit", "-v", "v1")
    (tmp_path / "a.txt").write_text("edited\n", encoding="utf-8")

    code, text = _run(tmp_path, "restore", "v1", "a.txt")

    assert code == 0
    assert "Restored: a.txt" in text
    assert (tmp_path / "a.txt").read_text(encoding="utf-8") == "alpha\n"

    code, text = _run(tmp_path, "version")
    assert code == 0
    assert text.startswith("Zippy version ")


def test_cli_rejects_unknown_subcommand(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as error:
        main(["--repo-root", str(tmp_path), "push"], out_stream=io.StringIO())

    assert error.value.code == 2
