"""Persisted repository state: staging set, archives, version records."""

from .archive import (
    COMPRESSION_METHODS,
    DEFAULT_COMPRESSION,
    count_entries,
    extract_snapshot,
    list_entries,
    read_fingerprints,
    write_snapshot,
    write_tree,
)
from .models import ExtractResult, StageReport, VersionListing, VersionRecord, WriteResult
from .staging import STAGE_FILE_NAME, StagingArea
from .versions import (
    VERSION_SCHEMA_VERSION,
    VersionIndex,
    parse_timestamp,
    resolve_archive_path,
    validate_tag,
)

__all__ = [
    "COMPRESSION_METHODS",
    "DEFAULT_COMPRESSION",
    "ExtractResult",
    "STAGE_FILE_NAME",
    "StageReport",
    "StagingArea",
    "VERSION_SCHEMA_VERSION",
    "VersionIndex",
    "VersionListing",
    "VersionRecord",
    "WriteResult",
    "count_entries",
    "extract_snapshot",
    "list_entries",
    "parse_timestamp",
    "read_fingerprints",
    "resolve_archive_path",
    "validate_tag",
    "write_snapshot",
    "write_tree",
]
