"""Command-line entrypoint."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TextIO

from zippy.commands import CommandDispatchError, CommandRegistry, register_builtin_commands
from zippy.config import CliOverrides
from zippy.errors import ZippyError
from zippy.logging import JsonlAuditLogger, OperationEvent, sanitize_arguments, utc_timestamp
from zippy.repository import Repository
from zippy.security import PathBlockedError
from zippy.tree import METADATA_DIR_NAME

ZIPPY_VERSION = "0.1.0"
AUDIT_FILE_NAME = "audit.jsonl"

Renderer = Callable[[dict[str, object]], list[str]]


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for all commands."""
    parser = argparse.ArgumentParser(
        prog="zippy",
        description="Simple version control with zip storage.",
    )
    parser.add_argument("--repo-root", required=False, default=".")
    parser.add_argument("--json", action="store_true", help="Print JSON envelopes.")
    parser.add_argument("--author", required=False, default=None)
    parser.add_argument("--compression", choices=("deflated", "stored"), default=None)
    parser.add_argument("--no-lock", action="store_true", help="Skip the repository lock.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Initialize a repository.")
    init.add_argument("--name", default=None)
    init.add_argument("--description", default=None)

    add = subparsers.add_parser("add", help="Stage files or folders ('.' for all).")
    add.add_argument("paths", nargs="+")

    commit = subparsers.add_parser("commit", help="Create a version from staged files.")
    commit.add_argument("-m", "--message", default=None)
    commit.add_argument("-v", "--tag", default=None)
    commit.add_argument("--force", action="store_true", help="Overwrite an existing tag.")

    subparsers.add_parser("list", aliases=["ls"], help="List saved versions.")
    subparsers.add_parser("status", help="Show changes against the latest version.")

    diff = subparsers.add_parser("diff", help="Compare two versions.")
    diff.add_argument("tag_a")
    diff.add_argument("tag_b")
    diff.add_argument("path_filter", nargs="?", default=None)

    restore = subparsers.add_parser("restore", help="Restore a version or one path of it.")
    restore.add_argument("tag")
    restore.add_argument("path_filter", nargs="?", default=None)

    patch = subparsers.add_parser("patch", help="Add a file or folder to a version.")
    patch.add_argument("tag")
    patch.add_argument("add_path")

    subparsers.add_parser("config", help="Show the effective configuration.")

    log = subparsers.add_parser("log", help="Show recent audit log entries.")
    log.add_argument("--since", default=None)
    log.add_argument("--limit", type=int, default=20)

    subparsers.add_parser("version", help="Show zippy version.")
    return parser


def command_arguments(args: argparse.Namespace) -> tuple[str, dict[str, object]]:
    """Map parsed arguments to a registry command name and its arguments."""
    command = "list" if args.command == "ls" else args.command
    if command == "add":
        return command, {"paths": list(args.paths)}
    if command == "commit":
        return command, {"message": args.message, "tag": args.tag, "force": args.force}
    if command == "diff":
        return command, {
            "tag_a": args.tag_a,
            "tag_b": args.tag_b,
            "path_filter": args.path_filter,
        }
    if command == "restore":
        return command, {"tag": args.tag, "path_filter": args.path_filter}
    if command == "patch":
        return command, {"tag": args.tag, "add_path": args.add_path}
    if command == "log":
        return command, {"since": args.since, "limit": args.limit}
    return command, {}


def success_response(command: str, result: dict[str, object]) -> dict[str, object]:
    """Build success envelope."""
    return {"command": command, "ok": True, "result": result, "blocked": False}


def error_response(command: str, code: str, message: str, hint: str = "") -> dict[str, object]:
    """Build explicit error envelope."""
    return {
        "command": command,
        "ok": False,
        "result": {},
        "blocked": False,
        "error": {"code": code, "message": message, "hint": hint},
    }


def blocked_response(command: str, reason: str, hint: str) -> dict[str, object]:
    """Build explicit blocked envelope for sandbox violations."""
    return {
        "command": command,
        "ok": False,
        "result": {"reason": reason, "hint": hint},
        "blocked": True,
        "error": {"code": PathBlockedError.code, "message": reason, "hint": hint},
    }


def run_command(
    registry: CommandRegistry, command: str, arguments: dict[str, object]
) -> dict[str, object]:
    """Dispatch one command and wrap its outcome in an envelope."""
    try:
        result = registry.dispatch(name=command, arguments=arguments)
    except PathBlockedError as error:
        return blocked_response(command, reason=error.reason, hint=error.hint)
    except ZippyError as error:
        return error_response(command, code=error.code, message=error.reason, hint=error.hint)
    except CommandDispatchError as error:
        return error_response(command, code=error.code, message=error.message)
    except ValueError as error:
        return error_response(command, code="INVALID_ARGUMENTS", message=str(error))
    except Exception:
        return error_response(
            command,
            code="INTERNAL_ERROR",
            message=f"Unhandled error while running '{command}'.",
        )
    return success_response(command, result)


def log_command(
    logger: JsonlAuditLogger,
    command: str,
    arguments: dict[str, object],
    response: dict[str, object],
) -> None:
    """Append one sanitized command event."""
    error_payload = response.get("error")
    error_code: str | None = None
    if isinstance(error_payload, dict):
        code_value = error_payload.get("code")
        if isinstance(code_value, str):
            error_code = code_value
    logger.append(
        OperationEvent(
            timestamp=utc_timestamp(),
            command=command,
            ok=bool(response.get("ok", False)),
            error_code=error_code,
            metadata=sanitize_arguments(arguments),
        )
    )


def main(
    argv: list[str] | None = None,
    out_stream: TextIO | None = None,
) -> int:
    """Entrypoint for the zippy command."""
    out = out_stream or sys.stdout
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    repo_root = Path(args.repo_root)

    if args.command == "version":
        _emit(out, args.json, success_response("version", {"version": ZIPPY_VERSION}))
        return 0

    if args.command == "init":
        response = _run_init(repo_root, args)
        if response["ok"]:
            logger = JsonlAuditLogger(repo_root.resolve() / METADATA_DIR_NAME / AUDIT_FILE_NAME)
            log_command(logger, "init", {"name": args.name}, response)
        _emit(out, args.json, response)
        return 0 if response["ok"] else 1

    command, arguments = command_arguments(args)
    overrides = CliOverrides(
        author=args.author,
        compression=args.compression,
        lock_enabled=False if args.no_lock else None,
    )
    try:
        repository = Repository.open(repo_root, overrides)
    except ZippyError as error:
        response = error_response(command, code=error.code, message=error.reason, hint=error.hint)
        _emit(out, args.json, response)
        return 1
    except ValueError as error:
        response = error_response(command, code="INVALID_CONFIG", message=str(error))
        _emit(out, args.json, response)
        return 1

    logger = JsonlAuditLogger(repository.config.data_dir / AUDIT_FILE_NAME)
    registry = CommandRegistry()
    register_builtin_commands(registry, repository, read_audit_entries=logger.read)
    response = run_command(registry, command, arguments)
    log_command(logger, command, arguments, response)
    _emit(out, args.json, response)
    return 0 if response["ok"] else 1


def _run_init(repo_root: Path, args: argparse.Namespace) -> dict[str, object]:
    try:
        repository = Repository.init(
            repo_root,
            name=args.name,
            author=args.author,
            description=args.description,
        )
    except ZippyError as error:
        return error_response("init", code=error.code, message=error.reason, hint=error.hint)
    identity = repository.config.to_public_dict()["identity"]
    return success_response("init", {"repo_root": str(repository.root), "identity": identity})


def _emit(out: TextIO, as_json: bool, response: dict[str, object]) -> None:
    if as_json:
        out.write(f"{json.dumps(response, sort_keys=True)}\n")
        return
    for line in render_response(response):
        out.write(f"{line}\n")


def render_response(response: dict[str, object]) -> list[str]:
    """Render an envelope as human-readable lines."""
    if not response.get("ok"):
        error = response.get("error")
        if not isinstance(error, dict):
            return ["Error: unknown failure"]
        lines = [f"Error: {error.get('message')}"]
        hint = error.get("hint")
        if isinstance(hint, str) and hint:
            lines.append(f"Hint: {hint}")
        return lines
    command = str(response.get("command"))
    result = response.get("result")
    if not isinstance(result, dict):
        return []
    renderer = _RENDERERS.get(command)
    if renderer is None:
        return [json.dumps(result, indent=2, sort_keys=True)]
    return renderer(result)


def _str_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def _indented_or_none(paths: list[str]) -> list[str]:
    if not paths:
        return ["  (none)"]
    return [f"  {path}" for path in paths]


def _render_version(result: dict[str, object]) -> list[str]:
    return [f"Zippy version {result.get('version')}"]


def _render_init(result: dict[str, object]) -> list[str]:
    return [
        f"Initialized Zippy repository in {result.get('repo_root')}",
        "Created .zippyignore file - edit it to specify files to ignore",
    ]


def _render_add(result: dict[str, object]) -> list[str]:
    lines = ["Adding files to staging area..."]
    lines.extend(f"  Added: {path}" for path in _str_list(result.get("added")))
    lines.extend(f"  [Ignored]: {path}" for path in _str_list(result.get("ignored")))
    lines.extend(f"  [Not found]: {path}" for path in _str_list(result.get("not_found")))
    lines.extend(f"  [Outside repository]: {path}" for path in _str_list(result.get("blocked")))
    if not result.get("added"):
        lines.append("No files added.")
    return lines


def _render_commit(result: dict[str, object]) -> list[str]:
    lines = [f"Creating version {result.get('tag')}: {result.get('message')}"]
    lines.extend(f"  [Skipped, missing]: {path}" for path in _str_list(result.get("skipped")))
    lines.append(f"Packed {result.get('entry_count')} files ({result.get('size_bytes')} bytes)")
    lines.append(f"Version {result.get('tag')} created successfully!")
    return lines


def _render_changes(
    changes: dict[str, object], labels: tuple[str, str, str], indent: str
) -> list[str]:
    lines: list[str] = []
    columns = zip(("added", "removed", "changed"), labels, ("+", "-", "*"), strict=True)
    for key, label, marker in columns:
        paths = _str_list(changes.get(key))
        if paths:
            lines.append(f"{indent}{label}:")
            lines.extend(f"{indent}  {marker} {path}" for path in paths)
    return lines


def _render_status(result: dict[str, object]) -> list[str]:
    lines = ["Zippy repository status:", "", "Files staged for commit:"]
    lines.extend(_indented_or_none(_str_list(result.get("staged"))))
    lines.extend(["", "Ignored files:"])
    lines.extend(_indented_or_none(_str_list(result.get("ignored"))))
    changes = result.get("changes")
    if isinstance(changes, dict):
        lines.extend(["", f"Compared to latest version ({result.get('latest_tag')}):"])
        rendered = _render_changes(
            changes, ("New files", "Deleted files", "Modified files"), indent="  "
        )
        lines.extend(rendered or ["  No changes since last version."])
    else:
        lines.extend(["", "No versions yet."])
    for path in _str_list(result.get("errors")):
        lines.append(f"  [Unreadable]: {path}")
    return lines


def _render_diff(result: dict[str, object]) -> list[str]:
    lines = [f"Comparing {result.get('tag_a')} with {result.get('tag_b')}..."]
    rendered = _render_changes(
        result, ("Added files", "Removed files", "Changed files"), indent=""
    )
    lines.extend(rendered or ["No differences found."])
    return lines


def _render_list(result: dict[str, object]) -> list[str]:
    lines = ["Available versions:", "------------------"]
    versions = result.get("versions")
    if not isinstance(versions, list) or not versions:
        lines.append("No versions found.")
    else:
        for version in versions:
            if not isinstance(version, dict):
                continue
            lines.append(
                f"  {version.get('tag')} | {version.get('timestamp')} | "
                f"{version.get('author')} | {version.get('message')} | "
                f"{version.get('entry_count')} files"
            )
    lines.extend(f"  [Corrupt: {tag}]" for tag in _str_list(result.get("corrupt")))
    return lines


def _render_restore(result: dict[str, object]) -> list[str]:
    lines = [f"Restoring version {result.get('tag')}..."]
    lines.extend(f"  Restored: {path}" for path in _str_list(result.get("restored")))
    lines.extend(f"  [Error restoring]: {path}" for path in _str_list(result.get("failed")))
    lines.append("Restore complete.")
    return lines


def _render_patch(result: dict[str, object]) -> list[str]:
    lines = [f"Patching version {result.get('tag')} with {result.get('add_path')}..."]
    lines.extend(f"  Patched: {path}" for path in _str_list(result.get("patched")))
    lines.append(
        f"Patch complete: {result.get('previous_entry_count')} -> "
        f"{result.get('entry_count')} files."
    )
    return lines


def _render_log(result: dict[str, object]) -> list[str]:
    entries = result.get("entries")
    if not isinstance(entries, list) or not entries:
        return ["No audit entries."]
    lines: list[str] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        status = "ok" if entry.get("ok") else entry.get("error_code")
        lines.append(f"  {entry.get('timestamp')} {entry.get('command')} {status}")
    return lines


_RENDERERS: dict[str, Renderer] = {
    "version": _render_version,
    "init": _render_init,
    "add": _render_add,
    "commit": _render_commit,
    "status": _render_status,
    "diff": _render_diff,
    "list": _render_list,
    "restore": _render_restore,
    "patch": _render_patch,
    "log": _render_log,
}


if __name__ == "__main__":
    raise SystemExit(main())
