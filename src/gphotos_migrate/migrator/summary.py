"""Run summary and the plain-text migration report."""

import logging
import os
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .deduplicator import DedupResult
from .media_types import is_image_file, is_video_file
from .metadata_writer import MetadataWriteResult
from .organizer import CollectResult, OutputLayout, list_output_media
from .validator import ValidationResult

logger = logging.getLogger(__name__)

_RULE = "=" * 64


@dataclass
class MigrationResult:
    """Aggregated outcome of every pass of one run."""
    takeout_path: Path
    output_path: Path
    started_at: datetime
    finished_at: Optional[datetime] = None
    source_roots: List[Path] = field(default_factory=list)
    collect: CollectResult = field(default_factory=CollectResult)
    metadata: MetadataWriteResult = field(default_factory=MetadataWriteResult)
    validation: ValidationResult = field(default_factory=ValidationResult)
    dedup_library: DedupResult = field(default_factory=DedupResult)
    dedup_albums: DedupResult = field(default_factory=DedupResult)
    empty_dirs_removed: int = 0
    sample_capture_time: Optional[str] = None


def remove_empty_dirs(root: Path) -> int:
    """
    Remove empty directories below ``root`` (bottom-up), keeping ``root``.

    Returns:
        Number of directories removed
    """
    removed = 0
    if not root.exists():
        return removed
    for dirpath, _, _ in os.walk(root, topdown=False):
        path = Path(dirpath)
        if path == root:
            continue
        try:
            path.rmdir()
            removed += 1
        except OSError:
            # Not empty
            continue
    return removed


def _folder_counts(structure_root: Path) -> Dict[str, int]:
    counts: Counter = Counter()
    for path in list_output_media(structure_root):
        counts[path.relative_to(structure_root).parts[0]] += 1
    return dict(sorted(counts.items()))


def generate_summary(result: MigrationResult, layout: OutputLayout) -> Dict[str, Any]:
    """
    Build the summary dictionary for a finished run.

    Includes paths, library statistics, per-bucket and per-album counts, and
    the outcome counters of every pass.

    Args:
        result: Aggregated pass results
        layout: Output paths

    Returns:
        Dictionary with the complete run summary
    """
    library_files = list_output_media(layout.library)
    photos = sum(1 for p in library_files if is_image_file(p))
    videos = sum(1 for p in library_files if is_video_file(p))
    total_bytes = sum(p.stat().st_size for p in library_files)

    return {
        'paths': {
            'takeout': str(result.takeout_path),
            'source_roots': [str(r) for r in result.source_roots],
            'library': str(layout.library),
            'albums': str(layout.albums),
        },
        'timestamps': {
            'start': result.started_at.isoformat(timespec='seconds'),
            'end': result.finished_at.isoformat(timespec='seconds') if result.finished_at else None,
        },
        'library': {
            'photos': photos,
            'videos': videos,
            'total_files': len(library_files),
            'total_bytes': total_bytes,
            'buckets': _folder_counts(layout.library),
        },
        'albums': _folder_counts(layout.albums),
        'collect': {
            'media_seen': result.collect.media_seen,
            'copied': result.collect.copied,
            'already_present': result.collect.already_present,
            'companion_clips_skipped': result.collect.companion_clips_skipped,
            'album_files_copied': result.collect.album_files_copied,
            'copy_failures': result.collect.copy_failures,
            'skipped_folders': [str(p) for p in result.collect.skipped_folders],
        },
        'metadata': {
            'fixed': result.metadata.fixed,
            'not_fixed': result.metadata.not_fixed,
            'write_failures': result.metadata.write_failures,
            'provenance': dict(result.metadata.provenance),
            'synced_from_embedded': result.metadata.synced_from_embedded,
            'forced_to_folder_year': result.metadata.forced_to_folder_year,
            'reference_year': result.metadata.reference_year,
            'remaining_reference_year': result.metadata.remaining_reference_year,
            'reference_year_warning': result.metadata.reference_year_warning,
            'sample_capture_time': result.sample_capture_time,
        },
        'validation': {
            'checked': result.validation.album_files_checked,
            'validated': result.validation.validated,
            'backfilled': result.validation.backfilled,
            'copy_failures': result.validation.copy_failures,
        },
        'dedup': {
            'library_removed': result.dedup_library.duplicates_removed,
            'albums_removed': result.dedup_albums.duplicates_removed,
            'key_collisions': result.dedup_library.key_collisions + result.dedup_albums.key_collisions,
            'errors': result.dedup_library.errors + result.dedup_albums.errors,
        },
        'empty_dirs_removed': result.empty_dirs_removed,
    }


def _format_size(num_bytes: int) -> str:
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def render_report(summary: Dict[str, Any]) -> str:
    """Render the summary as the MIGRATION_REPORT.txt text."""
    paths = summary['paths']
    library = summary['library']
    collect = summary['collect']
    metadata = summary['metadata']
    validation = summary['validation']
    dedup = summary['dedup']

    lines = [
        _RULE,
        "  GOOGLE PHOTOS TAKEOUT MIGRATION REPORT",
        _RULE,
        "",
        f"Started:   {summary['timestamps']['start']}",
        f"Finished:  {summary['timestamps']['end']}",
        "",
        "PATHS",
        f"  Source (Takeout):  {paths['takeout']}",
    ]
    lines += [f"  Source root:       {root}" for root in paths['source_roots']]
    lines += [
        f"  ALL_PHOTOS:        {paths['library']}",
        f"  ALBUMS:            {paths['albums']}",
        "",
        "STATISTICS",
        f"  Photos:            {library['photos']} files",
        f"  Videos:            {library['videos']} files",
        f"  Total:             {library['total_files']} media files",
        f"  Total size:        {_format_size(library['total_bytes'])}",
        f"  Year buckets:      {len(library['buckets'])}",
        f"  Albums:            {len(summary['albums'])}",
        "",
        "YEAR BUCKETS",
    ]
    lines += [f"  {name:<40} {count:>6} files" for name, count in library['buckets'].items()]

    if summary['albums']:
        lines += ["", "ALBUMS"]
        lines += [f"  {name:<40} {count:>6} files" for name, count in summary['albums'].items()]

    lines += [
        "",
        "WHAT WAS DONE",
        f"  Media files seen in source:        {collect['media_seen']}",
        f"  Copied into ALL_PHOTOS:            {collect['copied']}",
        f"  Already present (same content):    {collect['already_present']}",
        f"  Live Photo clips skipped:          {collect['companion_clips_skipped']}",
        f"  Copied into ALBUMS:                {collect['album_files_copied']}",
        f"  Timestamps fixed:                  {metadata['fixed']}",
        f"  Timestamps not fixed:              {metadata['not_fixed']}",
        f"  Metadata write failures:           {metadata['write_failures']}",
        f"  File times synced from EXIF:       {metadata['synced_from_embedded']}",
        f"  File times set to bucket year:     {metadata['forced_to_folder_year']}",
        f"  Album files validated:             {validation['validated']}",
        f"  Album files backfilled:            {validation['backfilled']}",
        f"  Duplicates removed (ALL_PHOTOS):   {dedup['library_removed']}",
        f"  Duplicates removed (ALBUMS):       {dedup['albums_removed']}",
        f"  Duplicate removal failures:        {dedup['errors']}",
        f"  Copy failures:                     {collect['copy_failures'] + validation['copy_failures']}",
    ]

    if collect['skipped_folders']:
        lines += ["", "SKIPPED FOLDERS (incomplete exports)"]
        lines += [f"  {folder}" for folder in collect['skipped_folders']]

    if metadata['reference_year_warning']:
        lines += [
            "",
            "WARNING",
            f"  {metadata['remaining_reference_year']} files still carry {metadata['reference_year']} dates.",
            "  Sidecar matching probably failed for them; check the log.",
        ]

    lines += ["", _RULE, ""]
    return "\n".join(lines)


def write_report(summary: Dict[str, Any], report_path: Path) -> None:
    """Write MIGRATION_REPORT.txt."""
    report_path.write_text(render_report(summary), encoding='utf-8')
    logger.info(f"Report generated: {{'path': {str(report_path)!r}}}")
