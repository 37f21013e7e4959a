"""Advisory lock file guarding mutating repository operations."""

from __future__ import annotations

import os
import time
from pathlib import Path
from types import TracebackType

from zippy.errors import RepositoryLockedError
from zippy.logging.audit import utc_timestamp

LOCK_FILE_NAME = "lock"
DEFAULT_STALE_SECONDS = 600


class RepositoryLock:
    """Exclusive lock file under the metadata directory.

    The lock is advisory: it only coordinates processes that also use it.
    A lock file older than ``stale_seconds`` is assumed to belong to a
    crashed process and is taken over.
    """

    def __init__(self, data_dir: Path, stale_seconds: int = DEFAULT_STALE_SECONDS) -> None:
        self._path = data_dir / LOCK_FILE_NAME
        self._stale_seconds = stale_seconds
        self._held = False

    @property
    def path(self) -> Path:
        """Return on-disk lock file path."""
        return self._path

    @property
    def held(self) -> bool:
        """Return True while this instance owns the lock."""
        return self._held

    def acquire(self) -> None:
        """Take the lock or raise RepositoryLockedError."""
        if self._held:
            return
        try:
            self._create()
        except FileExistsError:
            if not self._is_stale():
                raise RepositoryLockedError(
                    reason="Repository is locked by another zippy process.",
                    hint=f"Wait for it to finish or remove {self._path} if it crashed.",
                ) from None
            self._path.unlink(missing_ok=True)
            try:
                self._create()
            except FileExistsError:
                raise RepositoryLockedError(
                    reason="Repository is locked by another zippy process.",
                    hint="Retry once the other process has finished.",
                ) from None
        self._held = True

    def release(self) -> None:
        """Drop the lock if held."""
        if not self._held:
            return
        self._path.unlink(missing_ok=True)
        self._held = False

    def __enter__(self) -> RepositoryLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def _create(self) -> None:
        fd = os.open(self._path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(f"{os.getpid()}\n{utc_timestamp()}\n")

    def _is_stale(self) -> bool:
        try:
            age = time.time() - self._path.stat().st_mtime
        except FileNotFoundError:
            return True
        return age > self._stale_seconds
