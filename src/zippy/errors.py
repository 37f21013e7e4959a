"""Error kinds raised by repository operations."""

from __future__ import annotations


class ZippyError(Exception):
    """Base class for whole-operation failures with a stable error code."""

    code = "ZIPPY_ERROR"

    def __init__(self, reason: str, hint: str = "") -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


class RepositoryNotInitializedError(ZippyError):
    """Raised when the metadata directory is missing."""

    code = "REPOSITORY_NOT_INITIALIZED"


class RepositoryAlreadyInitializedError(ZippyError):
    """Raised by init when the metadata directory already exists."""

    code = "REPOSITORY_ALREADY_INITIALIZED"


class NothingStagedError(ZippyError):
    """Raised when commit finds no staged entries."""

    code = "NOTHING_STAGED"


class VersionNotFoundError(ZippyError):
    """Raised when no record exists for a tag."""

    code = "VERSION_NOT_FOUND"

    def __init__(self, tag: str) -> None:
        super().__init__(
            reason=f"Version '{tag}' not found.",
            hint="Run 'zippy list' to see available versions.",
        )
        self.tag = tag


class CorruptVersionRecordError(ZippyError):
    """Raised when a record file exists but cannot be parsed."""

    code = "CORRUPT_VERSION_RECORD"

    def __init__(self, tag: str, detail: str) -> None:
        super().__init__(
            reason=f"Version record '{tag}' is corrupt: {detail}",
            hint="Inspect or remove the file under .zippy/versions.",
        )
        self.tag = tag


class InvalidTagError(ZippyError):
    """Raised when a tag cannot be used as a record file name."""

    code = "INVALID_TAG"


class TagExistsError(ZippyError):
    """Raised when commit would replace an existing version."""

    code = "TAG_EXISTS"

    def __init__(self, tag: str) -> None:
        super().__init__(
            reason=f"Version '{tag}' already exists.",
            hint="Choose another tag or pass --force to overwrite it.",
        )
        self.tag = tag


class SourceNotFoundError(ZippyError):
    """Raised when a path given to add or patch does not exist."""

    code = "SOURCE_NOT_FOUND"

    def __init__(self, path: str) -> None:
        super().__init__(
            reason=f"Path not found: {path}",
            hint="Use a path relative to the repository root.",
        )
        self.path = path


class ArchiveIOError(ZippyError):
    """Raised when a snapshot archive cannot be read or written."""

    code = "ARCHIVE_IO_ERROR"


class FilterMatchedNothingError(ZippyError):
    """Raised when a path filter selects zero archive entries."""

    code = "FILTER_MATCHED_NOTHING"

    def __init__(self, path_filter: str, tag: str | None = None) -> None:
        where = f" in version {tag}" if tag else ""
        super().__init__(
            reason=f"'{path_filter}' not found{where}.",
            hint="Check the path against the entries of the version.",
        )
        self.path_filter = path_filter
        self.tag = tag


class RepositoryLockedError(ZippyError):
    """Raised when another process holds the repository lock."""

    code = "REPOSITORY_LOCKED"
