"""Collect media from the source tree into the output layout.

Output layout::

    <output>/ALL_PHOTOS/<YYYY|Unknown>/<file>     canonical, one copy per content
    <output>/ALBUMS/<album name>/<file>           verbatim album mirror

Sources are never modified: every output file is a ``shutil.copy2`` copy,
which keeps the source's filesystem times.
"""

import logging
import os
import shutil
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from gphotos_migrate.common import is_hidden_name
from .edge_cases import CompanionClipClassifier
from .errors import OutputRootError, classify_error
from .fingerprint import DISAMBIGUATOR_LENGTH, FingerprintCache
from .media_types import is_media_file
from .progress import ProgressTracker
from .source_tree import SourceFolder, SourceTree, list_media_files
from .timestamps import Provenance, ResolvedTimestamp, TimestampResolver, folder_year_instant

logger = logging.getLogger(__name__)

ALL_PHOTOS_DIR = "ALL_PHOTOS"
ALBUMS_DIR = "ALBUMS"
REPORT_FILENAME = "MIGRATION_REPORT.txt"
DUPLICATES_LOG_FILENAME = "duplicates.log"


@dataclass(frozen=True)
class OutputLayout:
    """Paths of everything a run writes below the output root."""
    root: Path

    @property
    def library(self) -> Path:
        return self.root / ALL_PHOTOS_DIR

    @property
    def albums(self) -> Path:
        return self.root / ALBUMS_DIR

    @property
    def report_path(self) -> Path:
        return self.root / REPORT_FILENAME

    @property
    def duplicates_log(self) -> Path:
        return self.root / DUPLICATES_LOG_FILENAME

    def ensure(self) -> None:
        """
        Create the output root and both structures.

        Raises:
            OutputRootError: If the directories cannot be created
        """
        try:
            self.library.mkdir(parents=True, exist_ok=True)
            self.albums.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputRootError(f"Cannot create output folder: {e}", path=str(self.root)) from e

    def is_empty(self) -> bool:
        """True when the output root does not exist or holds nothing."""
        if not self.root.exists():
            return True
        return not any(self.root.iterdir())


def list_output_media(directory: Path) -> List[Path]:
    """All media files below an output structure, sorted by path."""
    files: List[Path] = []
    if not directory.exists():
        return files
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames.sort()
        for filename in filenames:
            path = Path(dirpath) / filename
            if is_media_file(path) and not is_hidden_name(filename):
                files.append(path)
    files.sort()
    return files


class CopyManifest:
    """Maps each output copy to the source file it was copied from."""

    def __init__(self) -> None:
        self._sources: Dict[str, Path] = {}

    def record(self, destination: Path, source: Path) -> None:
        self._sources[os.fspath(destination)] = source

    def source_for(self, destination: Path) -> Optional[Path]:
        return self._sources.get(os.fspath(destination))

    def __len__(self) -> int:
        return len(self._sources)


class PlacementOutcome(str, Enum):
    COPIED = "copied"
    ALREADY_PRESENT = "already_present"


@dataclass(frozen=True)
class Placement:
    outcome: PlacementOutcome
    path: Path


def place_in_library(source: Path, bucket_dir: Path, fingerprints: FingerprintCache) -> Placement:
    """
    Copy a file into a library bucket, applying the collision policy.

    - Free name: copy.
    - Name taken by identical content: nothing to do.
    - Name taken by other content: copy as ``<stem>_<fp8><ext>``, where
      ``fp8`` is the start of the incoming file's fingerprint; a counter is
      appended if that name is also taken by other content.

    Args:
        source: File to place
        bucket_dir: Year bucket directory (created if missing)
        fingerprints: Fingerprint cache shared across the pass

    Returns:
        Placement with the outcome and the final path

    Raises:
        OSError: If reading or copying fails
    """
    bucket_dir.mkdir(parents=True, exist_ok=True)
    destination = bucket_dir / source.name
    if not destination.exists():
        shutil.copy2(source, destination)
        return Placement(PlacementOutcome.COPIED, destination)

    fingerprint = fingerprints.fingerprint(source)
    if fingerprints.fingerprint(destination) == fingerprint:
        return Placement(PlacementOutcome.ALREADY_PRESENT, destination)

    stem, suffix = os.path.splitext(source.name)
    tag = fingerprint[:DISAMBIGUATOR_LENGTH]
    candidate = bucket_dir / f"{stem}_{tag}{suffix}"
    counter = 1
    while candidate.exists():
        if fingerprints.fingerprint(candidate) == fingerprint:
            return Placement(PlacementOutcome.ALREADY_PRESENT, candidate)
        counter += 1
        candidate = bucket_dir / f"{stem}_{tag}_{counter}{suffix}"

    shutil.copy2(source, candidate)
    logger.info(
        f"Name collision resolved: {{'source': {str(source)!r}, 'dest': {str(candidate)!r}}}"
    )
    return Placement(PlacementOutcome.COPIED, candidate)


@dataclass
class CollectResult:
    """Counts from the collection pass."""
    media_seen: int = 0
    copied: int = 0
    already_present: int = 0
    companion_clips_skipped: int = 0
    album_files_copied: int = 0
    album_files_existing: int = 0
    copy_failures: int = 0
    albums: List[str] = field(default_factory=list)
    skipped_folders: List[Path] = field(default_factory=list)
    provenance: Counter = field(default_factory=Counter)
    failed_paths: List[Path] = field(default_factory=list)


class Collector:
    """Walks the source tree once and fills both output structures.

    Args:
        tree: Source roots and reserved folder prefixes
        layout: Output paths
        resolver: Timestamp cascade for album items
        classifier: Companion clip filter
        fingerprints: Fingerprint cache for collision checks
        manifest: Receives every copy made
        progress_interval: Log progress every N files
    """

    def __init__(
        self,
        tree: SourceTree,
        layout: OutputLayout,
        resolver: TimestampResolver,
        classifier: CompanionClipClassifier,
        fingerprints: FingerprintCache,
        manifest: CopyManifest,
        progress_interval: int = 100,
    ) -> None:
        self.tree = tree
        self.layout = layout
        self.resolver = resolver
        self.classifier = classifier
        self.fingerprints = fingerprints
        self.manifest = manifest
        self.progress_interval = progress_interval

    def run(self) -> CollectResult:
        """Copy every kept media file into ALL_PHOTOS and mirror albums."""
        result = CollectResult()
        work = [(folder, list_media_files(folder.path)) for folder in self.tree.folders()]
        progress = ProgressTracker("Collecting", sum(len(files) for _, files in work), self.progress_interval)
        albums = set()

        for folder, files in work:
            for media_file in files:
                result.media_seen += 1
                if self._collect_file(folder, media_file, result):
                    albums.add(folder.name)
                progress.increment()

        progress.log_final_summary()
        result.albums = sorted(albums)
        result.skipped_folders = list(self.tree.skipped_folders)

        logger.info(
            f"Collection complete: {{'copied': {result.copied}, 'already_present': {result.already_present}, "
            f"'companion_clips_skipped': {result.companion_clips_skipped}, "
            f"'album_files_copied': {result.album_files_copied}, 'albums': {len(result.albums)}, "
            f"'copy_failures': {result.copy_failures}}}"
        )
        return result

    def _collect_file(self, folder: SourceFolder, media_file: Path, result: CollectResult) -> bool:
        """Place one source file. Returns True when it is in the album mirror afterwards."""
        if not self.classifier.should_keep(media_file, folder.path):
            result.companion_clips_skipped += 1
            logger.debug(f"Skipped companion clip: {{'path': {str(media_file)!r}}}")
            return False

        resolved = self._resolve(folder, media_file)
        result.provenance[resolved.provenance.value] += 1

        try:
            placement = place_in_library(media_file, self.layout.library / resolved.bucket, self.fingerprints)
        except OSError as e:
            self._record_failure(media_file, e, result)
            return False

        if placement.outcome is PlacementOutcome.COPIED:
            result.copied += 1
            self.manifest.record(placement.path, media_file)
        else:
            result.already_present += 1

        if folder.is_album:
            return self._mirror(folder, media_file, result)
        return False

    def _resolve(self, folder: SourceFolder, media_file: Path) -> ResolvedTimestamp:
        if folder.year is not None:
            return ResolvedTimestamp(folder_year_instant(folder.year), Provenance.FOLDER_YEAR)
        return self.resolver.resolve(media_file, prefer_dir=folder.path)

    def _mirror(self, folder: SourceFolder, media_file: Path, result: CollectResult) -> bool:
        destination = self.layout.albums / folder.name / media_file.name
        if destination.exists():
            result.album_files_existing += 1
            return True

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(media_file, destination)
        except OSError as e:
            self._record_failure(media_file, e, result)
            return False

        result.album_files_copied += 1
        self.manifest.record(destination, media_file)
        return True

    def _record_failure(self, media_file: Path, error: OSError, result: CollectResult) -> None:
        result.copy_failures += 1
        result.failed_paths.append(media_file)
        logger.error(
            f"Copy failed: {{'path': {str(media_file)!r}, 'category': {classify_error(error)!r}, 'error': {str(error)!r}}}"
        )
