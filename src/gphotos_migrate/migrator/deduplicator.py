"""Remove byte-identical duplicates inside one output folder.

Duplicates are only looked for within a single folder (one year bucket or
one album), so the same photo in two albums stays in both. The cheap key is
the hash of the first bytes plus the file size; each hit is confirmed with a
full-content hash before anything is deleted. Removals are appended to
``duplicates.log``.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from .errors import classify_error
from .fingerprint import FingerprintCache, compute_dedup_key
from .organizer import list_output_media
from .progress import ProgressTracker

logger = logging.getLogger(__name__)


@dataclass
class DedupResult:
    """Counts from one deduplication pass."""
    files_checked: int = 0
    duplicates_removed: int = 0
    key_collisions: int = 0
    errors: int = 0
    removed_paths: List[Path] = field(default_factory=list)


class Deduplicator:
    """Collapses accidental duplicate copies.

    Args:
        log_path: Append-only removal log
        prefix_bytes: Bytes hashed for the cheap key
        verify: Confirm key matches with a full-content hash
        progress_interval: Log progress every N files
    """

    def __init__(
        self,
        log_path: Path,
        prefix_bytes: int = 102_400,
        verify: bool = True,
        progress_interval: int = 100,
    ) -> None:
        self.log_path = log_path
        self.prefix_bytes = prefix_bytes
        self.verify = verify
        self.progress_interval = progress_interval

    def run(self, structure_root: Path) -> DedupResult:
        """
        Deduplicate every folder below ``structure_root``.

        The first file in sorted path order is kept.

        Args:
            structure_root: ALL_PHOTOS or ALBUMS

        Returns:
            DedupResult for this structure
        """
        result = DedupResult()
        files = list_output_media(structure_root)
        fingerprints = FingerprintCache()
        seen: Dict[Tuple[Path, str, int], Path] = {}
        progress = ProgressTracker(f"Deduplicating {structure_root.name}", len(files), self.progress_interval)

        for path in files:
            result.files_checked += 1
            progress.increment()
            try:
                digest, size = compute_dedup_key(path, self.prefix_bytes)
                key = (path.parent, digest, size)
                original = seen.get(key)
                if original is None:
                    seen[key] = path
                    continue

                if self.verify and fingerprints.fingerprint(original) != fingerprints.fingerprint(path):
                    result.key_collisions += 1
                    logger.info(
                        f"Duplicate key without equal content, keeping both: "
                        f"{{'kept': {str(original)!r}, 'other': {str(path)!r}}}"
                    )
                    continue

                # Record before deleting
                self._log_removal(path)
                path.unlink()
                fingerprints.forget(path)
            except OSError as e:
                result.errors += 1
                logger.warning(
                    f"Dedup check failed: {{'path': {str(path)!r}, 'category': {classify_error(e)!r}, 'error': {str(e)!r}}}"
                )
                continue

            logger.info(f"Duplicate removed: {{'path': {str(path)!r}}}")
            result.duplicates_removed += 1
            result.removed_paths.append(path)

        progress.log_final_summary()
        logger.info(
            f"Deduplication complete: {{'structure': {structure_root.name!r}, 'checked': {result.files_checked}, "
            f"'removed': {result.duplicates_removed}, 'key_collisions': {result.key_collisions}}}"
        )
        return result

    def _log_removal(self, path: Path) -> None:
        with open(self.log_path, 'a', encoding='utf-8') as f:
            f.write(f"Duplicate: {path}\n")
