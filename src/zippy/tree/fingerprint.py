"""CRC-32 content fingerprints used for change detection."""

from __future__ import annotations

import zlib
from dataclasses import dataclass
from pathlib import Path

_CHUNK_BYTES = 1024 * 128

FingerprintMap = dict[str, int]


@dataclass(slots=True, frozen=True)
class TreeFingerprints:
    """Fingerprints of live files plus paths that could not be read."""

    fingerprints: FingerprintMap
    unreadable: tuple[str, ...]


def fingerprint(data: bytes) -> int:
    """Return the unsigned CRC-32 of ``data``, as stored by zip entries."""
    return zlib.crc32(data) & 0xFFFFFFFF


def fingerprint_file(path: Path) -> int:
    """Compute the CRC-32 of a file in chunked reads."""
    value = 0
    with path.open("rb") as handle:
        while True:
            chunk = handle.read(_CHUNK_BYTES)
            if not chunk:
                break
            value = zlib.crc32(chunk, value)
    return value & 0xFFFFFFFF


def fingerprint_tree(root: Path, relative_paths: tuple[str, ...]) -> TreeFingerprints:
    """Fingerprint each listed file under ``root``, skipping unreadable ones."""
    output: FingerprintMap = {}
    unreadable: list[str] = []
    for relative in relative_paths:
        try:
            output[relative] = fingerprint_file(root / relative)
        except OSError:
            unreadable.append(relative)
    return TreeFingerprints(fingerprints=output, unreadable=tuple(unreadable))
