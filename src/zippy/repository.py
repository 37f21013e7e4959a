"""Repository facade: every operation bound to one explicit root."""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from zippy.config import (
    DEFAULT_AUTHOR,
    DEFAULT_DESCRIPTION,
    CliOverrides,
    RepositoryIdentity,
    ZippyConfig,
    load_effective_config,
    write_identity_file,
)
from zippy.engine import (
    PatchReport,
    RestoreReport,
    SnapshotDiff,
    diff_fingerprints,
    filter_fingerprints,
    patch_snapshot,
    restore_snapshot,
)
from zippy.errors import (
    FilterMatchedNothingError,
    NothingStagedError,
    RepositoryAlreadyInitializedError,
    RepositoryNotInitializedError,
    TagExistsError,
)
from zippy.logging.audit import utc_timestamp
from zippy.security import RepositoryLock
from zippy.store import (
    StageReport,
    StagingArea,
    VersionIndex,
    VersionListing,
    VersionRecord,
    read_fingerprints,
    resolve_archive_path,
    validate_tag,
    write_snapshot,
)
from zippy.tree import (
    DEFAULT_IGNORE_TEMPLATE,
    IGNORE_FILE_NAME,
    METADATA_DIR_NAME,
    fingerprint_tree,
    is_metadata_path,
    is_path_ignored,
    load_ignore_patterns,
    scan_tree,
)

DEFAULT_COMMIT_MESSAGE = "No message"


@dataclass(slots=True, frozen=True)
class CommitReport:
    """Outcome of one commit."""

    record: VersionRecord
    written: tuple[str, ...]
    skipped: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class StatusReport:
    """Staged set, ignored paths and changes against the latest version."""

    staged: tuple[str, ...]
    ignored: tuple[str, ...]
    latest_tag: str | None
    changes: SnapshotDiff | None
    errors: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class DiffReport:
    """Comparison of two versions."""

    tag_a: str
    tag_b: str
    path_filter: str | None
    diff: SnapshotDiff


class Repository:
    """Snapshot repository rooted at an explicit directory."""

    def __init__(self, config: ZippyConfig) -> None:
        self._config = config
        self._staging = StagingArea(config.data_dir)
        self._index = VersionIndex(config.versions_dir)

    @classmethod
    def open(cls, repo_root: Path, overrides: CliOverrides | None = None) -> Repository:
        """Open an initialized repository or raise RepositoryNotInitialized."""
        resolved = repo_root.resolve()
        if not (resolved / METADATA_DIR_NAME).is_dir():
            raise RepositoryNotInitializedError(
                reason=f"Not a Zippy repository: {resolved}",
                hint="Run 'zippy init' first.",
            )
        return cls(load_effective_config(resolved, overrides))

    @classmethod
    def init(
        cls,
        repo_root: Path,
        name: str | None = None,
        author: str | None = None,
        description: str | None = None,
    ) -> Repository:
        """Create the metadata layout, identity file and a starter ignore file."""
        resolved = repo_root.resolve()
        data_dir = resolved / METADATA_DIR_NAME
        if data_dir.exists():
            raise RepositoryAlreadyInitializedError(
                reason=f"Zippy repository already initialized in {resolved}",
                hint="Use the existing repository or remove .zippy to start over.",
            )
        for directory in (data_dir, data_dir / "versions", data_dir / "storage"):
            directory.mkdir(parents=True, exist_ok=True)
        identity = RepositoryIdentity(
            name=(name or "").strip() or resolved.name,
            author=(author or "").strip() or DEFAULT_AUTHOR,
            description=(description or "").strip() or DEFAULT_DESCRIPTION,
            created=utc_timestamp(),
        )
        write_identity_file(data_dir, identity)
        ignore_path = resolved / IGNORE_FILE_NAME
        if not ignore_path.exists():
            ignore_path.write_text(DEFAULT_IGNORE_TEMPLATE, encoding="utf-8")
        return cls.open(resolved)

    @property
    def config(self) -> ZippyConfig:
        """Return the effective configuration."""
        return self._config

    @property
    def root(self) -> Path:
        """Return the resolved repository root."""
        return self._config.repo_root

    @property
    def staging(self) -> StagingArea:
        """Return the staging area."""
        return self._staging

    @property
    def index(self) -> VersionIndex:
        """Return the version index."""
        return self._index

    def ignore_patterns(self) -> tuple[str, ...]:
        """Load ignore patterns fresh for one operation."""
        return load_ignore_patterns(self.root)

    def add(self, paths: list[str]) -> StageReport:
        """Stage paths (or '.' for everything), replacing the previous staged set."""
        if not paths:
            raise ValueError("add requires at least one path.")
        with self._exclusive():
            return self._staging.stage(self.root, self.ignore_patterns(), paths)

    def commit(
        self,
        message: str | None = None,
        tag: str | None = None,
        force: bool = False,
    ) -> CommitReport:
        """Write staged files into a new tagged snapshot."""
        with self._exclusive():
            staged = self._staging.read()
            if not staged:
                raise NothingStagedError(
                    reason="No files staged.",
                    hint="Use 'zippy add <files>' to stage files.",
                )
            version_tag = validate_tag(tag or f"v{int(time.time())}")
            overwrite_allowed = force or self._config.snapshot.allow_tag_overwrite
            if self._index.exists(version_tag) and not overwrite_allowed:
                raise TagExistsError(version_tag)

            archive_path = self._config.storage_dir / f"{version_tag}.zip"
            result = write_snapshot(
                archive_path,
                self.root,
                staged,
                compression=self._config.snapshot.compression,
            )
            record = VersionRecord(
                tag=version_tag,
                message=message or DEFAULT_COMMIT_MESSAGE,
                timestamp=utc_timestamp(),
                author=self._config.identity.author,
                entry_count=result.entry_count,
                archive_path=archive_path.relative_to(self.root).as_posix(),
                size_bytes=result.size_bytes,
            )
            self._index.save(record)
            self._staging.clear()
        return CommitReport(record=record, written=result.written, skipped=result.skipped)

    def status(self) -> StatusReport:
        """Compare the live tree with the latest version."""
        patterns = self.ignore_patterns()
        scan = scan_tree(self.root, patterns)
        errors = list(scan.errors)
        latest = self._index.latest()
        changes: SnapshotDiff | None = None
        if latest is not None:
            stored = read_fingerprints(resolve_archive_path(self.root, latest))
            live = fingerprint_tree(self.root, scan.files)
            errors.extend(live.unreadable)
            unreadable = set(live.unreadable)
            before = {
                path: value
                for path, value in stored.items()
                if path not in unreadable
                and not is_metadata_path(path)
                and not is_path_ignored(path, patterns)
            }
            changes = diff_fingerprints(before, live.fingerprints)
        return StatusReport(
            staged=self._staging.read(),
            ignored=scan.ignored,
            latest_tag=latest.tag if latest is not None else None,
            changes=changes,
            errors=tuple(sorted(errors)),
        )

    def diff(self, tag_a: str, tag_b: str, path_filter: str | None = None) -> DiffReport:
        """Compare two versions, optionally restricted to one path."""
        record_a = self._index.load(tag_a)
        record_b = self._index.load(tag_b)
        before = filter_fingerprints(
            read_fingerprints(resolve_archive_path(self.root, record_a)), path_filter
        )
        after = filter_fingerprints(
            read_fingerprints(resolve_archive_path(self.root, record_b)), path_filter
        )
        if path_filter and not before and not after:
            raise FilterMatchedNothingError(path_filter)
        return DiffReport(
            tag_a=record_a.tag,
            tag_b=record_b.tag,
            path_filter=path_filter or None,
            diff=diff_fingerprints(before, after),
        )

    def list_versions(self) -> VersionListing:
        """Return all readable versions, oldest first, and the corrupt ones."""
        return self._index.list()

    def restore(self, tag: str, path_filter: str | None = None) -> RestoreReport:
        """Write a version (or one path of it) back onto the working tree."""
        with self._exclusive():
            record = self._index.load(tag)
            return restore_snapshot(self.root, record, path_filter=path_filter)

    def patch(self, tag: str, add_path: str) -> PatchReport:
        """Overlay a working-tree path onto an existing version."""
        with self._exclusive():
            _, report = patch_snapshot(
                self.root,
                self._index,
                tag,
                add_path,
                compression=self._config.snapshot.compression,
            )
        return report

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if not self._config.lock.enabled:
            yield
            return
        with RepositoryLock(self._config.data_dir, self._config.lock.stale_seconds):
            yield
