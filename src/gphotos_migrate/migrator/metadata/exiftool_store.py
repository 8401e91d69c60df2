"""MetadataStore backed by the exiftool command-line tool."""

import json
import logging
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from gphotos_migrate.common import MetadataWriteError, ToolNotFoundError
from .store import (
    EmbeddedTimes,
    MetadataStore,
    format_exif_datetime,
    hemisphere_refs,
    parse_exif_datetime,
)

logger = logging.getLogger(__name__)

EXIFTOOL_TIMEOUT_SECONDS = 60

_READ_TAGS = ('-DateTimeOriginal', '-CreateDate', '-MediaCreateDate', '-Duration')

_VIDEO_DATE_TAGS = (
    'CreateDate', 'ModifyDate',
    'MediaCreateDate', 'MediaModifyDate',
    'TrackCreateDate', 'TrackModifyDate',
)
_IMAGE_DATE_TAGS = ('DateTimeOriginal', 'CreateDate', 'ModifyDate')


class ExifToolMetadataStore(MetadataStore):
    """Reads with ``exiftool -j`` and writes with ``-overwrite_original``.

    Writing rewrites metadata in place without re-encoding pixels or streams.
    Read results are cached per path for the lifetime of the store, since
    the classifier and the resolver ask about the same source files.
    """

    name = "exiftool"

    def __init__(self, executable: str = 'exiftool') -> None:
        self.executable = executable
        self._read_cache: Dict[str, Dict[str, Any]] = {}

    def read_times(self, file_path: Path) -> EmbeddedTimes:
        tags = self._read_tags(file_path)
        return EmbeddedTimes(
            date_time_original=parse_exif_datetime(tags.get('DateTimeOriginal')),
            create_date=parse_exif_datetime(tags.get('CreateDate')),
            media_create_date=parse_exif_datetime(tags.get('MediaCreateDate')),
        )

    def read_duration(self, file_path: Path) -> Optional[str]:
        duration = self._read_tags(file_path).get('Duration')
        if duration is None:
            return None
        return str(duration)

    def write_metadata(
        self,
        file_path: Path,
        instant: datetime,
        is_video: bool,
        location: Optional[Tuple[float, float]] = None,
    ) -> None:
        args = self._build_assignments(instant, is_video, location)
        self._run([self.executable, '-overwrite_original', '-q', '-m', *args, str(file_path)], file_path)
        self._read_cache.pop(str(file_path), None)
        logger.debug(f"Metadata written: {{'path': {str(file_path)!r}, 'tags': {len(args)}}}")

    def _build_assignments(
        self,
        instant: datetime,
        is_video: bool,
        location: Optional[Tuple[float, float]],
    ) -> List[str]:
        if is_video:
            # QuickTime dates are stored as UTC; pass the zone explicitly
            stamp = format_exif_datetime(instant, with_zone=True)
            return [f'-{tag}={stamp}' for tag in _VIDEO_DATE_TAGS]

        stamp = format_exif_datetime(instant)
        args = [f'-{tag}={stamp}' for tag in _IMAGE_DATE_TAGS]
        if location is not None:
            latitude, longitude = location
            lat_ref, lon_ref = hemisphere_refs(latitude, longitude)
            args += [
                f'-GPSLatitude={abs(latitude)}',
                f'-GPSLatitudeRef={lat_ref}',
                f'-GPSLongitude={abs(longitude)}',
                f'-GPSLongitudeRef={lon_ref}',
            ]
        return args

    def _read_tags(self, file_path: Path) -> Dict[str, Any]:
        key = str(file_path)
        if key in self._read_cache:
            return self._read_cache[key]

        tags: Dict[str, Any] = {}
        try:
            result = self._run([self.executable, '-j', *_READ_TAGS, key], file_path)
            records = json.loads(result.stdout or '[]')
            if records and isinstance(records[0], dict):
                tags = records[0]
        except (MetadataWriteError, ToolNotFoundError) as e:
            logger.debug(f"exiftool read failed: {{'path': {key!r}, 'error': {e.message!r}}}")
        except json.JSONDecodeError as e:
            logger.debug(f"Unparseable exiftool output: {{'path': {key!r}, 'error': {str(e)!r}}}")

        self._read_cache[key] = tags
        return tags

    def _run(self, command: List[str], file_path: Path) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding='utf-8',
                check=True,
                timeout=EXIFTOOL_TIMEOUT_SECONDS,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError("exiftool is not installed", tool=self.executable) from e
        except subprocess.CalledProcessError as e:
            raise MetadataWriteError(
                f"exiftool exited with status {e.returncode}",
                path=str(file_path),
                stderr=(e.stderr or '').strip(),
            ) from e
        except subprocess.TimeoutExpired as e:
            raise MetadataWriteError("exiftool timed out", path=str(file_path)) from e
