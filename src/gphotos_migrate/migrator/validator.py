"""Album mirror to canonical library integrity check.

Every file in ALBUMS must have a byte-identical counterpart somewhere in
ALL_PHOTOS. Files that do not are copied into the library, into the year
bucket the timestamp cascade assigns them.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from .errors import classify_error
from .fingerprint import FingerprintCache
from .organizer import CopyManifest, OutputLayout, PlacementOutcome, list_output_media, place_in_library
from .progress import ProgressTracker
from .timestamps import TimestampResolver

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Counts from the integrity pass."""
    library_files_indexed: int = 0
    album_files_checked: int = 0
    validated: int = 0
    backfilled: int = 0
    copy_failures: int = 0
    backfilled_paths: List[Path] = field(default_factory=list)
    failed_paths: List[Path] = field(default_factory=list)


class IntegrityValidator:
    """Confirms that the album mirror only references library content.

    Args:
        layout: Output paths
        resolver: Timestamp cascade for backfilled files
        manifest: Output copy to source file map, for sidecar lookups
        progress_interval: Log progress every N files
    """

    def __init__(
        self,
        layout: OutputLayout,
        resolver: TimestampResolver,
        manifest: CopyManifest,
        progress_interval: int = 100,
    ) -> None:
        self.layout = layout
        self.resolver = resolver
        self.manifest = manifest
        self.progress_interval = progress_interval
        self.fingerprints = FingerprintCache()

    def build_index(self) -> Dict[str, Path]:
        """Fingerprint every canonical library file."""
        index: Dict[str, Path] = {}
        files = list_output_media(self.layout.library)
        progress = ProgressTracker("Indexing library", len(files), self.progress_interval)
        for path in files:
            try:
                index.setdefault(self.fingerprints.fingerprint(path), path)
            except OSError as e:
                logger.warning(f"Cannot fingerprint: {{'path': {str(path)!r}, 'error': {str(e)!r}}}")
            progress.increment()
        progress.log_final_summary()
        return index

    def run(self) -> ValidationResult:
        """Check every album file and backfill the ones missing from the library."""
        result = ValidationResult()
        index = self.build_index()
        result.library_files_indexed = len(index)

        album_files = list_output_media(self.layout.albums)
        progress = ProgressTracker("Validating albums", len(album_files), self.progress_interval)

        for album_file in album_files:
            result.album_files_checked += 1
            try:
                fingerprint = self.fingerprints.fingerprint(album_file)
            except OSError as e:
                logger.warning(f"Cannot fingerprint: {{'path': {str(album_file)!r}, 'error': {str(e)!r}}}")
                result.copy_failures += 1
                result.failed_paths.append(album_file)
                progress.increment()
                continue

            if fingerprint in index:
                result.validated += 1
            else:
                self._backfill(album_file, fingerprint, index, result)
            progress.increment()

        progress.log_final_summary()
        logger.info(
            f"Validation complete: {{'checked': {result.album_files_checked}, 'validated': {result.validated}, "
            f"'backfilled': {result.backfilled}, 'copy_failures': {result.copy_failures}}}"
        )
        return result

    def _backfill(self, album_file: Path, fingerprint: str, index: Dict[str, Path], result: ValidationResult) -> None:
        source = self.manifest.source_for(album_file)
        if source is not None:
            resolved = self.resolver.resolve(album_file, lookup_name=source.name, prefer_dir=source.parent)
        else:
            resolved = self.resolver.resolve(album_file)

        try:
            placement = place_in_library(album_file, self.layout.library / resolved.bucket, self.fingerprints)
        except OSError as e:
            result.copy_failures += 1
            result.failed_paths.append(album_file)
            logger.error(
                f"Backfill failed: {{'path': {str(album_file)!r}, 'category': {classify_error(e)!r}, 'error': {str(e)!r}}}"
            )
            return

        index[fingerprint] = placement.path
        if placement.outcome is PlacementOutcome.COPIED:
            result.backfilled += 1
            result.backfilled_paths.append(placement.path)
            if source is not None:
                self.manifest.record(placement.path, source)
            logger.info(
                f"Backfilled missing album file: {{'album_file': {str(album_file)!r}, 'dest': {str(placement.path)!r}, "
                f"'provenance': {resolved.provenance.value!r}}}"
            )
