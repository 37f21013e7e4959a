"""Path safety and repository locking primitives."""

from .lock import DEFAULT_STALE_SECONDS, RepositoryLock
from .paths import (
    PathBlockedError,
    is_absolute_style,
    normalize_relative_path,
    resolve_repo_path,
    safe_member_name,
)

__all__ = [
    "DEFAULT_STALE_SECONDS",
    "PathBlockedError",
    "RepositoryLock",
    "is_absolute_style",
    "normalize_relative_path",
    "resolve_repo_path",
    "safe_member_name",
]
