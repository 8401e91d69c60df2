"""Write resolved timestamps into the output copies.

Two passes over both output structures:

1. Per file: re-resolve the timestamp (sidecars are looked up across the
   whole source tree, since the copy has moved) and write it into the
   embedded metadata, then into the filesystem modification time.
2. Safety net: copy embedded dates into modification times where they
   disagree, and move canonical files that still carry a reference-year
   modification time to mid-year of their bucket.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from gphotos_migrate.common import MigrationError
from .errors import classify_error
from .media_types import is_video_file
from .metadata import MetadataStore
from .organizer import CopyManifest, OutputLayout, list_output_media
from .progress import ProgressTracker
from .timestamps import Provenance, ResolvedTimestamp, TimestampResolver, folder_year_instant, is_valid_year

logger = logging.getLogger(__name__)

# Modification times within this many seconds of the embedded date are left alone
MTIME_TOLERANCE_SECONDS = 1.0


@dataclass
class MetadataWriteResult:
    """Counts from the metadata and safety-net passes."""
    files_seen: int = 0
    fixed: int = 0
    not_fixed: int = 0
    write_failures: int = 0
    provenance: Counter = field(default_factory=Counter)
    synced_from_embedded: int = 0
    forced_to_folder_year: int = 0
    reference_year: int = 0
    remaining_reference_year: int = 0
    reference_year_warning: bool = False
    failed_paths: List[Path] = field(default_factory=list)


class MetadataWriter:
    """Applies resolved timestamps to every output file.

    Args:
        layout: Output paths
        resolver: Timestamp cascade
        store: Metadata backend used for writing
        manifest: Output copy to source file map from the collection pass
        reference_year: Year treated as "timestamp never fixed"
        warning_threshold: Warn when more files than this keep a
            reference-year modification time
        progress_interval: Log progress every N files
    """

    def __init__(
        self,
        layout: OutputLayout,
        resolver: TimestampResolver,
        store: MetadataStore,
        manifest: CopyManifest,
        reference_year: int,
        warning_threshold: int = 50,
        progress_interval: int = 100,
    ) -> None:
        self.layout = layout
        self.resolver = resolver
        self.store = store
        self.manifest = manifest
        self.reference_year = reference_year
        self.warning_threshold = warning_threshold
        self.progress_interval = progress_interval

    def run(self) -> MetadataWriteResult:
        """Run the per-file pass followed by the safety net."""
        result = MetadataWriteResult(reference_year=self.reference_year)
        files = list_output_media(self.layout.library) + list_output_media(self.layout.albums)

        progress = ProgressTracker("Writing metadata", len(files), self.progress_interval)
        for path in files:
            result.files_seen += 1
            self._write_file(path, result)
            progress.increment()
        progress.log_final_summary()

        self.apply_safety_net(files, result)

        logger.info(
            f"Metadata pass complete: {{'fixed': {result.fixed}, 'not_fixed': {result.not_fixed}, "
            f"'write_failures': {result.write_failures}, 'synced_from_embedded': {result.synced_from_embedded}, "
            f"'forced_to_folder_year': {result.forced_to_folder_year}}}"
        )
        return result

    def _write_file(self, path: Path, result: MetadataWriteResult) -> None:
        resolved = self._resolve(path)
        result.provenance[resolved.provenance.value] += 1

        if not resolved.is_precise:
            result.not_fixed += 1
            return

        try:
            if resolved.provenance is Provenance.SIDECAR:
                self.store.write_metadata(
                    path,
                    resolved.instant,
                    is_video=is_video_file(path),
                    location=self._location(path, resolved),
                )
            # Embedded writes may touch the file time; it is set last
            self.store.set_file_time(path, resolved.instant)
        except (MigrationError, OSError) as e:
            result.not_fixed += 1
            result.write_failures += 1
            result.failed_paths.append(path)
            logger.warning(
                f"Metadata not written: {{'path': {str(path)!r}, 'category': {classify_error(e)!r}, 'error': {str(e)!r}}}"
            )
            return

        result.fixed += 1

    def _resolve(self, path: Path) -> ResolvedTimestamp:
        source = self.manifest.source_for(path)
        if source is not None:
            return self.resolver.resolve(path, lookup_name=source.name, prefer_dir=source.parent)
        return self.resolver.resolve(path)

    def _location(self, path: Path, resolved: ResolvedTimestamp):
        sidecar = resolved.sidecar
        if sidecar is None or not sidecar.has_location or is_video_file(path):
            return None
        return sidecar.latitude, sidecar.longitude

    def apply_safety_net(self, files: List[Path], result: MetadataWriteResult) -> None:
        """
        Repair modification times the per-file pass could not set.

        1. Embedded DateTimeOriginal > CreateDate > MediaCreateDate wins over
           a disagreeing modification time.
        2. Canonical files in a year bucket whose modification time is still
           in the reference year get July 1st of the bucket year.
        3. Files still dated on or after January 1st of the reference year
           are counted, with a warning above the threshold.
        """
        for path in files:
            embedded = self.store.read_times(path).best()
            if embedded is None or not is_valid_year(f"{embedded.year}"):
                continue
            try:
                if abs(path.stat().st_mtime - embedded.timestamp()) > MTIME_TOLERANCE_SECONDS:
                    self.store.set_file_time(path, embedded)
                    result.synced_from_embedded += 1
            except OSError as e:
                logger.warning(f"Cannot set file time: {{'path': {str(path)!r}, 'error': {str(e)!r}}}")

        for path in list_output_media(self.layout.library):
            bucket = path.parent.name
            if not is_valid_year(bucket) or int(bucket) == self.reference_year:
                continue
            try:
                if _mtime_year(path) == self.reference_year:
                    self.store.set_file_time(path, folder_year_instant(int(bucket)))
                    result.forced_to_folder_year += 1
            except OSError as e:
                logger.warning(f"Cannot set file time: {{'path': {str(path)!r}, 'error': {str(e)!r}}}")

        cutoff = datetime(self.reference_year, 1, 1, tzinfo=timezone.utc).timestamp()
        remaining = 0
        for path in list_output_media(self.layout.library) + list_output_media(self.layout.albums):
            try:
                if path.stat().st_mtime >= cutoff:
                    remaining += 1
            except OSError as e:
                logger.warning(f"Cannot read file time: {{'path': {str(path)!r}, 'error': {str(e)!r}}}")
        result.remaining_reference_year = remaining

        if remaining > self.warning_threshold:
            result.reference_year_warning = True
            logger.warning(
                f"Many files still carry {self.reference_year} dates; sidecar matching probably failed: "
                f"{{'files': {remaining}, 'threshold': {self.warning_threshold}}}"
            )


def _mtime_year(path: Path) -> int:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc).year
