"""Content fingerprints for collision checks, integrity and deduplication."""

import os
from pathlib import Path
from typing import Dict, Tuple

from gphotos_migrate.common import compute_sha256_hex

# Characters of the fingerprint used as a collision disambiguator
DISAMBIGUATOR_LENGTH = 8


def compute_content_fingerprint(file_path: Path) -> str:
    """
    Compute the full-content SHA-256 fingerprint of a file.

    Two files with equal fingerprints are treated as byte-identical.

    Args:
        file_path: Path to the file

    Returns:
        Hexadecimal SHA-256 hash string

    Raises:
        OSError: If file cannot be read
    """
    return compute_sha256_hex(file_path)


def compute_dedup_key(file_path: Path, prefix_bytes: int) -> Tuple[str, int]:
    """
    Compute the cheap duplicate key: hash of the first bytes plus total size.

    Equal keys only suggest equal content; confirm with
    compute_content_fingerprint() before acting on a match.

    Args:
        file_path: Path to the file
        prefix_bytes: Number of leading bytes to hash

    Returns:
        Tuple of (prefix SHA-256 hex, file size in bytes)

    Raises:
        OSError: If file cannot be read
    """
    size = file_path.stat().st_size
    return compute_sha256_hex(file_path, limit=prefix_bytes), size


class FingerprintCache:
    """Memoizes full-content fingerprints for the duration of one pass.

    Entries are keyed by path and invalidated when the file's size or
    modification time changes, so files rewritten by the metadata pass are
    hashed again.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[int, int, str]] = {}

    def fingerprint(self, file_path: Path) -> str:
        """Return the fingerprint of ``file_path``, hashing only when stale."""
        stat = file_path.stat()
        key = os.fspath(file_path)
        cached = self._entries.get(key)
        if cached and cached[0] == stat.st_size and cached[1] == stat.st_mtime_ns:
            return cached[2]

        digest = compute_content_fingerprint(file_path)
        self._entries[key] = (stat.st_size, stat.st_mtime_ns, digest)
        return digest

    def forget(self, file_path: Path) -> None:
        """Drop a cached entry (e.g. after the file was deleted)."""
        self._entries.pop(os.fspath(file_path), None)

    def __len__(self) -> int:
        return len(self._entries)
