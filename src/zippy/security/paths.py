"""Path normalization and resolution scoped to a repository root."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

WINDOWS_ABSOLUTE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z]:[\\/]")


class PathBlockedError(Exception):
    """Raised when a requested path escapes the repository root."""

    code = "PATH_BLOCKED"

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


def normalize_relative_path(candidate: str) -> str:
    """Return a forward-slash path without empty, '.' or trailing segments."""
    normalized = candidate.replace("\\", "/")
    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    return "/".join(parts)


def is_absolute_style(candidate: str) -> bool:
    """Return True for POSIX-absolute or drive-letter inputs."""
    normalized = candidate.replace("\\", "/")
    return normalized.startswith("/") or bool(WINDOWS_ABSOLUTE_PATTERN.match(normalized))


def resolve_repo_path(repo_root: Path, candidate: str) -> Path:
    """Resolve a candidate path against the repo root, refusing escapes."""
    root = repo_root.resolve()
    normalized = candidate.replace("\\", "/")
    if not normalized:
        raise PathBlockedError(
            reason="Path is empty.",
            hint="Provide a repository-relative path such as 'src/main.py'.",
        )

    if is_absolute_style(normalized):
        resolved_absolute = Path(normalized).resolve(strict=False)
        if not resolved_absolute.is_relative_to(root):
            raise PathBlockedError(
                reason="Absolute path is outside the repository root.",
                hint="Use a path located under the repository root.",
            )
        return resolved_absolute

    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    if any(part == ".." for part in parts):
        raise PathBlockedError(
            reason="Path traversal is blocked.",
            hint="Remove '..' segments and use a repository-relative path.",
        )

    resolved = (root / Path(*parts)).resolve(strict=False) if parts else root
    if not resolved.is_relative_to(root):
        raise PathBlockedError(
            reason="Resolved path escapes the repository root.",
            hint="Use a path located under the repository root.",
        )
    return resolved


def safe_member_name(name: str) -> str | None:
    """Return the normalized archive member name, or None when it is unsafe."""
    if is_absolute_style(name):
        return None
    normalized = name.replace("\\", "/")
    if any(part == ".." for part in normalized.split("/")):
        return None
    cleaned = normalize_relative_path(normalized)
    return cleaned or None
