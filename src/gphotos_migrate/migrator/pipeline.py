"""Migration pipeline orchestration.

Passes run strictly in order, each finishing before the next starts:

    setup checks → collect → write metadata (+ safety net)
    → validate albums → deduplicate → clean up → report

Setup problems raise before any file is copied. Per-file problems inside a
pass are logged and counted; they never stop the run.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional

from gphotos_migrate.common import LogContext
from .config import MigrationConfig
from .edge_cases import CompanionClipClassifier
from .errors import MigrationAborted, OutputRootError, SourceTreeError
from .deduplicator import Deduplicator
from .fingerprint import FingerprintCache
from .metadata import MetadataLocator, MetadataStore, SidecarIndex, create_metadata_store
from .metadata_writer import MetadataWriter
from .organizer import Collector, CopyManifest, OutputLayout, list_output_media
from .source_tree import SourceTree, count_media_files, find_source_roots
from .summary import MigrationResult, generate_summary, remove_empty_dirs, write_report
from .timestamps import TimestampResolver
from .tool_checker import check_required_tools
from .validator import IntegrityValidator

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool]

_SAMPLE_EXTENSIONS = ('.jpg', '.jpeg', '.heic')


def _decline(question: str) -> bool:
    return False


class MigrationPipeline:
    """Runs one migration from a Takeout folder into an output folder.

    Args:
        config: Migration settings
        confirm: Asked before continuing past a setup warning; returning
            False aborts the run. Defaults to always declining.
        store: Metadata backend; defaults to the one selected in config
    """

    def __init__(
        self,
        config: MigrationConfig,
        confirm: Optional[ConfirmCallback] = None,
        store: Optional[MetadataStore] = None,
    ) -> None:
        self.config = config
        self.takeout_path = Path(config.takeout_path)
        self.layout = OutputLayout(Path(config.output_path))
        self.confirm = confirm or _decline
        self._store = store

    @property
    def store(self) -> MetadataStore:
        if self._store is None:
            self._store = create_metadata_store(self.config.use_exiftool)
        return self._store

    def prepare(self) -> SourceTree:
        """
        Validate inputs and tools before anything is written.

        Returns:
            SourceTree for the run

        Raises:
            SourceTreeError: Takeout folder missing
            OutputRootError: Output folder inside the source tree
            MigrationAborted: User declined a warning prompt
            ToolNotFoundError: Tool enabled in config but not installed
        """
        if not self.takeout_path.is_dir():
            raise SourceTreeError(
                f"Takeout folder does not exist: {self.takeout_path}",
                path=str(self.takeout_path),
            )

        roots = find_source_roots(self.takeout_path, self.config.source_root_names)
        if not roots:
            logger.warning(
                f"No export root found: {{'takeout': {str(self.takeout_path)!r}, "
                f"'expected': {self.config.source_root_names!r}}}"
            )
            question = (
                f"No {' / '.join(self.config.source_root_names)} folder found in {self.takeout_path}. "
                f"Use the folder itself as the export root?"
            )
            if not self.confirm(question):
                raise MigrationAborted("Aborted: no export root found", path=str(self.takeout_path))
            roots = [self.takeout_path]

        output = self.layout.root.resolve()
        for root in roots:
            if output == root.resolve() or root.resolve() in output.parents:
                raise OutputRootError(
                    "Output folder must not be inside the Takeout export",
                    output=str(output),
                    root=str(root),
                )

        logger.info(f"Media files in export (approx.): {{'count': {sum(count_media_files(r) for r in roots)}}}")

        if not self.layout.is_empty():
            logger.warning(f"Output folder is not empty: {{'path': {str(self.layout.root)!r}}}")
            question = f"Output folder {self.layout.root} is not empty. Existing files are kept. Continue?"
            if not self.confirm(question):
                raise MigrationAborted("Aborted: output folder not empty", path=str(self.layout.root))

        check_required_tools(use_exiftool=self.config.use_exiftool, use_ffprobe=self.config.use_ffprobe)

        return SourceTree(roots=roots, reserved_prefixes=list(self.config.reserved_folder_prefixes))

    def run(self) -> MigrationResult:
        """
        Run every pass and write the report.

        Returns:
            MigrationResult with the counters of every pass

        Raises:
            SetupError: If setup checks fail
            MigrationAborted: If the user declines a prompt
        """
        result = MigrationResult(
            takeout_path=self.takeout_path,
            output_path=self.layout.root,
            started_at=datetime.now(timezone.utc),
        )
        config = self.config

        tree = self.prepare()
        result.source_roots = list(tree.roots)
        self.layout.ensure()

        locator = MetadataLocator(SidecarIndex.build(tree.roots), fuzzy_length=config.fuzzy_match_length)
        resolver = TimestampResolver(locator, self.store)
        manifest = CopyManifest()

        with LogContext(logger, stage="collect"):
            classifier = CompanionClipClassifier(
                self.store,
                max_bytes=config.companion_max_bytes,
                max_seconds=config.companion_max_seconds,
                use_ffprobe=config.use_ffprobe,
            )
            result.collect = Collector(
                tree, self.layout, resolver, classifier, FingerprintCache(), manifest,
                progress_interval=config.progress_interval,
            ).run()

        with LogContext(logger, stage="metadata"):
            result.metadata = MetadataWriter(
                self.layout, resolver, self.store, manifest,
                reference_year=config.effective_reference_year(),
                warning_threshold=config.current_year_warning_threshold,
                progress_interval=config.progress_interval,
            ).run()

        with LogContext(logger, stage="validate"):
            result.validation = IntegrityValidator(
                self.layout, resolver, manifest, progress_interval=config.progress_interval,
            ).run()

        with LogContext(logger, stage="dedup"):
            deduplicator = Deduplicator(
                self.layout.duplicates_log,
                prefix_bytes=config.dedup_prefix_bytes,
                verify=config.verify_duplicates,
                progress_interval=config.progress_interval,
            )
            result.dedup_library = deduplicator.run(self.layout.library)
            result.dedup_albums = deduplicator.run(self.layout.albums)

        result.empty_dirs_removed = remove_empty_dirs(self.layout.library) + remove_empty_dirs(self.layout.albums)
        result.sample_capture_time = self._sample_capture_time(list_output_media(self.layout.library))
        result.finished_at = datetime.now(timezone.utc)

        write_report(generate_summary(result, self.layout), self.layout.report_path)
        return result

    def _sample_capture_time(self, library_files: List[Path]) -> Optional[str]:
        """Read back the embedded date of one photo as a spot check."""
        for path in library_files:
            if path.suffix.lower() in _SAMPLE_EXTENSIONS:
                captured = self.store.read_times(path).best()
                value = captured.isoformat() if captured else None
                logger.info(f"Metadata sample: {{'path': {str(path)!r}, 'capture_time': {value!r}}}")
                return value
        return None
