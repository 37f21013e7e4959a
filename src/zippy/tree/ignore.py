"""Ignore-pattern loading and matching for .zippyignore files."""

from __future__ import annotations

import fnmatch
from pathlib import Path

IGNORE_FILE_NAME = ".zippyignore"

DEFAULT_IGNORE_TEMPLATE = """# Zippy ignore file
# Ignore version control directory
.zippy/

# Common files to ignore
*.log
*.tmp
.DS_Store
Thumbs.db
node_modules/
*.exe
*.dll
*.so
.env
.env.local

# Add your patterns here
"""


def parse_ignore_patterns(text: str) -> tuple[str, ...]:
    """Return patterns from ignore-file text, skipping blanks and comments."""
    patterns: list[str] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        patterns.append(line.replace("\\", "/"))
    return tuple(patterns)


def load_ignore_patterns(repo_root: Path) -> tuple[str, ...]:
    """Load patterns from the repository ignore file; empty when absent."""
    path = repo_root / IGNORE_FILE_NAME
    if not path.is_file():
        return ()
    return parse_ignore_patterns(path.read_text(encoding="utf-8", errors="replace"))


def should_ignore(relative_path: str, patterns: tuple[str, ...], is_dir: bool = False) -> bool:
    """Return True when a repository-relative path matches any ignore pattern.

    Patterns ending in ``/`` are literal directory prefixes. Other patterns
    are globs tried against the full path and then the basename; wildcards
    never cross a ``/``. Directories are compared with a trailing ``/`` so a
    prefix rule matches the directory itself.
    """
    candidate = relative_path.replace("\\", "/").strip("/")
    if not candidate:
        return False
    prefix_candidate = f"{candidate}/" if is_dir else candidate
    basename = candidate.rsplit("/", 1)[-1]
    for raw_pattern in patterns:
        pattern = raw_pattern.strip().replace("\\", "/")
        if not pattern:
            continue
        if pattern.endswith("/"):
            if prefix_candidate.startswith(pattern):
                return True
            continue
        if glob_match(pattern, candidate) or glob_match(pattern, basename):
            return True
    return False


def glob_match(pattern: str, path: str) -> bool:
    """Case-sensitive glob match where wildcards stay within one segment."""
    pattern_parts = pattern.split("/")
    path_parts = path.split("/")
    if len(pattern_parts) != len(path_parts):
        return False
    return all(
        fnmatch.fnmatchcase(part, pattern_part)
        for part, pattern_part in zip(path_parts, pattern_parts, strict=True)
    )


def is_path_ignored(
    relative_path: str, patterns: tuple[str, ...], is_dir: bool = False
) -> bool:
    """Return True when a path or any of its parent directories is ignored.

    Mirrors what a pruning traversal would skip, for paths that come from
    somewhere other than a live scan (e.g. archive entries).
    """
    parts = relative_path.replace("\\", "/").strip("/").split("/")
    for depth in range(1, len(parts)):
        if should_ignore("/".join(parts[:depth]), patterns, is_dir=True):
            return True
    return should_ignore("/".join(parts), patterns, is_dir=is_dir)
