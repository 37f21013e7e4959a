"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass
from pathlib import Path

from zippy.security import DEFAULT_STALE_SECONDS
from zippy.store.archive import COMPRESSION_METHODS, DEFAULT_COMPRESSION
from zippy.tree.scanner import METADATA_DIR_NAME

IDENTITY_FILE_NAME = "config.json"
SETTINGS_FILE_NAME = "zippy.toml"

DEFAULT_AUTHOR = "Unknown"
DEFAULT_DESCRIPTION = "Zippy Repository"
MAX_STALE_SECONDS_CAP = 7 * 24 * 60 * 60


@dataclass(slots=True, frozen=True)
class RepositoryIdentity:
    """Who owns the repository, written once by init."""

    name: str
    author: str
    description: str
    created: str | None = None


@dataclass(slots=True, frozen=True)
class SnapshotConfig:
    """Archive writing settings."""

    compression: str = DEFAULT_COMPRESSION
    allow_tag_overwrite: bool = False


@dataclass(slots=True, frozen=True)
class LockConfig:
    """Advisory lock settings."""

    enabled: bool = True
    stale_seconds: int = DEFAULT_STALE_SECONDS


@dataclass(slots=True, frozen=True)
class ZippyConfig:
    """Fully merged repository configuration."""

    repo_root: Path
    data_dir: Path
    identity: RepositoryIdentity
    snapshot: SnapshotConfig
    lock: LockConfig

    @property
    def versions_dir(self) -> Path:
        """Directory holding one JSON record per tag."""
        return self.data_dir / "versions"

    @property
    def storage_dir(self) -> Path:
        """Directory holding one zip archive per tag."""
        return self.data_dir / "storage"

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for command output."""
        return {
            "repo_root": str(self.repo_root),
            "data_dir": str(self.data_dir),
            "identity": {
                "name": self.identity.name,
                "author": self.identity.author,
                "description": self.identity.description,
                "created": self.identity.created,
            },
            "snapshot": {
                "compression": self.snapshot.compression,
                "allow_tag_overwrite": self.snapshot.allow_tag_overwrite,
            },
            "lock": {
                "enabled": self.lock.enabled,
                "stale_seconds": self.lock.stale_seconds,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional command-line overrides applied at highest precedence."""

    author: str | None = None
    compression: str | None = None
    lock_enabled: bool | None = None


def default_config(repo_root: Path) -> ZippyConfig:
    """Build default config for a given repository root."""
    resolved_root = repo_root.resolve()
    return ZippyConfig(
        repo_root=resolved_root,
        data_dir=resolved_root / METADATA_DIR_NAME,
        identity=RepositoryIdentity(
            name=resolved_root.name,
            author=DEFAULT_AUTHOR,
            description=DEFAULT_DESCRIPTION,
        ),
        snapshot=SnapshotConfig(),
        lock=LockConfig(),
    )


def load_identity_file(data_dir: Path) -> dict[str, object]:
    """Load the optional identity JSON written by init."""
    path = data_dir / IDENTITY_FILE_NAME
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        try:
            payload = json.load(handle)
        except json.JSONDecodeError as error:
            raise ValueError(f"{IDENTITY_FILE_NAME} is not valid JSON: {error}") from error
    if not isinstance(payload, dict):
        raise ValueError(f"{IDENTITY_FILE_NAME} must contain a JSON object.")
    return payload


def write_identity_file(data_dir: Path, identity: RepositoryIdentity) -> Path:
    """Persist repository identity as JSON."""
    path = data_dir / IDENTITY_FILE_NAME
    payload = {
        "name": identity.name,
        "author": identity.author,
        "description": identity.description,
        "created": identity.created,
    }
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, sort_keys=True)
        handle.write("\n")
    return path


def load_repo_config_file(repo_root: Path) -> dict[str, object]:
    """Load optional zippy.toml from repo root."""
    config_path = repo_root / SETTINGS_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{SETTINGS_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _optional_str(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Config field '{name}' must be a non-empty string.")
    return value.strip()


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def _optional_compression(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or value not in COMPRESSION_METHODS:
        allowed = ", ".join(sorted(COMPRESSION_METHODS))
        raise ValueError(f"Config field '{name}' must be one of: {allowed}.")
    return value


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value


def merge_config(
    base: ZippyConfig,
    identity_payload: dict[str, object],
    repo_payload: dict[str, object],
    overrides: CliOverrides,
) -> ZippyConfig:
    """Merge defaults, identity file, zippy.toml, then CLI overrides."""
    identity = RepositoryIdentity(
        name=_optional_str(identity_payload.get("name"), "identity.name", base.identity.name),
        author=_optional_str(
            identity_payload.get("author"), "identity.author", base.identity.author
        ),
        description=_optional_str(
            identity_payload.get("description"),
            "identity.description",
            base.identity.description,
        ),
        created=(
            identity_payload["created"]
            if isinstance(identity_payload.get("created"), str)
            else base.identity.created
        ),
    )

    snapshot_payload = _get_table(repo_payload, "snapshot")
    lock_payload = _get_table(repo_payload, "lock")
    snapshot = SnapshotConfig(
        compression=_optional_compression(
            snapshot_payload.get("compression"),
            "snapshot.compression",
            base.snapshot.compression,
        ),
        allow_tag_overwrite=_optional_bool(
            snapshot_payload.get("allow_tag_overwrite"),
            "snapshot.allow_tag_overwrite",
            base.snapshot.allow_tag_overwrite,
        ),
    )
    lock = LockConfig(
        enabled=_optional_bool(lock_payload.get("enabled"), "lock.enabled", base.lock.enabled),
        stale_seconds=_optional_positive_int_with_cap(
            lock_payload.get("stale_seconds"),
            "lock.stale_seconds",
            base.lock.stale_seconds,
            MAX_STALE_SECONDS_CAP,
        ),
    )
    merged = ZippyConfig(
        repo_root=base.repo_root,
        data_dir=base.data_dir,
        identity=identity,
        snapshot=snapshot,
        lock=lock,
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: ZippyConfig, overrides: CliOverrides) -> ZippyConfig:
    """Apply command-line overrides at highest precedence."""
    identity = RepositoryIdentity(
        name=config.identity.name,
        author=_optional_str(overrides.author, "overrides.author", config.identity.author),
        description=config.identity.description,
        created=config.identity.created,
    )
    snapshot = SnapshotConfig(
        compression=_optional_compression(
            overrides.compression, "overrides.compression", config.snapshot.compression
        ),
        allow_tag_overwrite=config.snapshot.allow_tag_overwrite,
    )
    lock = LockConfig(
        enabled=(
            overrides.lock_enabled if overrides.lock_enabled is not None else config.lock.enabled
        ),
        stale_seconds=config.lock.stale_seconds,
    )
    return ZippyConfig(
        repo_root=config.repo_root,
        data_dir=config.data_dir,
        identity=identity,
        snapshot=snapshot,
        lock=lock,
    )


def load_effective_config(repo_root: Path, overrides: CliOverrides | None = None) -> ZippyConfig:
    """Load effective config using merge order defaults -> files -> overrides."""
    resolved_root = repo_root.resolve()
    base = default_config(resolved_root)
    identity_payload = load_identity_file(base.data_dir)
    repo_payload = load_repo_config_file(resolved_root)
    return merge_config(base, identity_payload, repo_payload, overrides or CliOverrides())
