"""Working-tree inspection: ignore rules, traversal, fingerprints."""

from .fingerprint import (
    FingerprintMap,
    TreeFingerprints,
    fingerprint,
    fingerprint_file,
    fingerprint_tree,
)
from .ignore import (
    DEFAULT_IGNORE_TEMPLATE,
    IGNORE_FILE_NAME,
    glob_match,
    is_path_ignored,
    load_ignore_patterns,
    parse_ignore_patterns,
    should_ignore,
)
from .scanner import (
    METADATA_DIR_NAME,
    STAGE_ALL,
    ScanResult,
    TargetResolution,
    is_metadata_path,
    resolve_targets,
    scan_tree,
)

__all__ = [
    "DEFAULT_IGNORE_TEMPLATE",
    "FingerprintMap",
    "IGNORE_FILE_NAME",
    "METADATA_DIR_NAME",
    "STAGE_ALL",
    "ScanResult",
    "TargetResolution",
    "TreeFingerprints",
    "fingerprint",
    "fingerprint_file",
    "fingerprint_tree",
    "glob_match",
    "is_path_ignored",
    "is_metadata_path",
    "load_ignore_patterns",
    "parse_ignore_patterns",
    "resolve_targets",
    "scan_tree",
    "should_ignore",
]
