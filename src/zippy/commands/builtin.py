"""Built-in repository commands returning JSON-serializable results."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict

from zippy.commands.registry import Argument, CommandHandler, CommandRegistry
from zippy.repository import Repository

DEFAULT_LOG_LIMIT = 20


def register_builtin_commands(
    registry: CommandRegistry,
    repository: Repository,
    read_audit_entries: Callable[[str | None, int], list[dict[str, object]]],
) -> None:
    """Register the repository command set."""
    registry.register(
        "add",
        _add_handler(repository),
        arguments=(Argument("paths", kind="string_list", required=True),),
    )
    registry.register(
        "commit",
        _commit_handler(repository),
        arguments=(
            Argument("message"),
            Argument("tag"),
            Argument("force", kind="bool", default=False),
        ),
    )
    registry.register("status", _status_handler(repository), arguments=())
    registry.register(
        "diff",
        _diff_handler(repository),
        arguments=(
            Argument("tag_a", required=True),
            Argument("tag_b", required=True),
            Argument("path_filter"),
        ),
    )
    registry.register("list", _list_handler(repository), arguments=())
    registry.register(
        "restore",
        _restore_handler(repository),
        arguments=(Argument("tag", required=True), Argument("path_filter")),
    )
    registry.register(
        "patch",
        _patch_handler(repository),
        arguments=(Argument("tag", required=True), Argument("add_path", required=True)),
    )
    registry.register("config", _config_handler(repository), arguments=())
    registry.register(
        "log",
        _log_handler(read_audit_entries),
        arguments=(
            Argument("since"),
            Argument("limit", kind="positive_int", default=DEFAULT_LOG_LIMIT),
        ),
    )


def _add_handler(repository: Repository) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        report = repository.add(arguments["paths"])
        return {
            "added": list(report.added),
            "ignored": list(report.ignored),
            "not_found": list(report.not_found),
            "blocked": list(report.blocked),
        }

    return handler


def _commit_handler(repository: Repository) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        report = repository.commit(
            message=arguments["message"],
            tag=arguments["tag"],
            force=arguments["force"],
        )
        payload: dict[str, object] = asdict(report.record)
        payload["skipped"] = list(report.skipped)
        return payload

    return handler


def _status_handler(repository: Repository) -> CommandHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        report = repository.status()
        changes: dict[str, object] | None = None
        if report.changes is not None:
            changes = {
                "added": list(report.changes.added),
                "removed": list(report.changes.removed),
                "changed": list(report.changes.changed),
            }
        return {
            "staged": list(report.staged),
            "ignored": list(report.ignored),
            "latest_tag": report.latest_tag,
            "changes": changes,
            "errors": list(report.errors),
        }

    return handler


def _diff_handler(repository: Repository) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        report = repository.diff(
            arguments["tag_a"], arguments["tag_b"], path_filter=arguments["path_filter"]
        )
        return {
            "tag_a": report.tag_a,
            "tag_b": report.tag_b,
            "path_filter": report.path_filter,
            "added": list(report.diff.added),
            "removed": list(report.diff.removed),
            "changed": list(report.diff.changed),
        }

    return handler


def _list_handler(repository: Repository) -> CommandHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        listing = repository.list_versions()
        return {
            "versions": [asdict(record) for record in listing.records],
            "corrupt": list(listing.corrupt),
        }

    return handler


def _restore_handler(repository: Repository) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        report = repository.restore(arguments["tag"], path_filter=arguments["path_filter"])
        return {
            "tag": report.tag,
            "path_filter": report.path_filter,
            "restored": list(report.restored),
            "failed": list(report.failed),
        }

    return handler


def _patch_handler(repository: Repository) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        report = repository.patch(arguments["tag"], arguments["add_path"])
        payload: dict[str, object] = asdict(report)
        payload["patched"] = list(report.patched)
        return payload

    return handler


def _config_handler(repository: Repository) -> CommandHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        return repository.config.to_public_dict()

    return handler


def _log_handler(
    read_audit_entries: Callable[[str | None, int], list[dict[str, object]]],
) -> CommandHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        return {"entries": read_audit_entries(arguments["since"], arguments["limit"])}

    return handler
