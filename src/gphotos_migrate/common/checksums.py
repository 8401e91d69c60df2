"""Content hashing utilities."""

import hashlib
from pathlib import Path
from typing import Optional

HASH_CHUNK_SIZE = 65536  # 64 KB chunks


def compute_sha256_hex(file_path: Path, limit: Optional[int] = None) -> str:
    """
    Compute the SHA-256 digest of a file, streaming in chunks.

    Used for:
    - Full-content fingerprints (collision checks, integrity index)
    - Prefix hashes for the cheap dedup key (``limit`` set)

    Args:
        file_path: Path to the file
        limit: Hash only the first ``limit`` bytes; ``None`` hashes everything

    Returns:
        64-character lowercase hex digest

    Raises:
        OSError: If file cannot be read
    """
    hasher = hashlib.sha256()
    remaining = limit

    with open(file_path, 'rb') as f:
        while True:
            size = HASH_CHUNK_SIZE if remaining is None else min(HASH_CHUNK_SIZE, remaining)
            if size <= 0:
                break
            chunk = f.read(size)
            if not chunk:
                break
            hasher.update(chunk)
            if remaining is not None:
                remaining -= len(chunk)

    return hasher.hexdigest()
