from __future__ import annotations

import os
import time
from pathlib import Path

import pytest

from zippy.errors import RepositoryLockedError
from zippy.security import RepositoryLock


def test_lock_is_exclusive_and_released_on_exit(tmp_path: Path) -> None:
    first = RepositoryLock(tmp_path)
    second = RepositoryLock(tmp_path)

    with first:
        assert first.held is True
        assert first.path.exists()
        with pytest.raises(RepositoryLockedError):
            second.acquire()

    assert not first.path.exists()
    second.acquire()
    assert second.held is True
    second.release()


def test_lock_released_when_body_raises(tmp_path: Path) -> None:
    lock = RepositoryLock(tmp_path)

    with pytest.raises(RuntimeError):
        with lock:
            raise RuntimeError("boom")

    assert not lock.path.exists()
    assert lock.held is False


def test_stale_lock_is_taken_over(tmp_path: Path) -> None:
    lock_path = tmp_path / "lock"
    lock_path.write_text("12345\n2020-01-01T00:00:00.000Z\n", encoding="utf-8")
    old = time.time() - 3600
    os.utime(lock_path, (old, old))

    lock = RepositoryLock(tmp_path, stale_seconds=60)
    lock.acquire()

    assert lock.held is True
    assert lock_path.read_text(encoding="utf-8").startswith(f"{os.getpid()}\n")
    lock.release()
