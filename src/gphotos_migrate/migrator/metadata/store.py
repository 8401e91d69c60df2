"""Metadata store interface.

A MetadataStore reads and writes the embedded metadata of a media file:
capture/creation times, clip duration and GPS position. The migration core
only talks to this interface; the exiftool and Pillow/piexif backends live
in their own modules.
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

_EXIF_DATETIME = re.compile(
    r'^(?P<date>\d{4}:\d{2}:\d{2}) (?P<time>\d{2}:\d{2}:\d{2})'
    r'(?:\.\d+)?'
    r'(?P<tz>Z|[+-]\d{2}:?\d{2})?$'
)


@dataclass(frozen=True)
class EmbeddedTimes:
    """Date/time tags read from a media file, all UTC-aware or None."""
    date_time_original: Optional[datetime] = None
    create_date: Optional[datetime] = None
    media_create_date: Optional[datetime] = None

    def capture_time(self, is_video: bool = False) -> Optional[datetime]:
        """Capture instant for timestamp resolution.

        Images: ``DateTimeOriginal`` only. Video containers carry no
        ``DateTimeOriginal``, so their ``CreateDate`` counts as capture time.
        """
        if self.date_time_original is not None:
            return self.date_time_original
        if is_video:
            return self.create_date or self.media_create_date
        return None

    def best(self) -> Optional[datetime]:
        """First available of DateTimeOriginal, CreateDate, MediaCreateDate."""
        return self.date_time_original or self.create_date or self.media_create_date


def parse_exif_datetime(value: object) -> Optional[datetime]:
    """
    Parse an EXIF/QuickTime date string.

    Accepts ``YYYY:MM:DD HH:MM:SS`` with optional sub-seconds and zone.
    Values without a zone are taken as UTC wall-clock time. Zeroed dates
    (``0000:00:00 00:00:00``) and other impossible values return None.

    Args:
        value: Raw tag value

    Returns:
        UTC-aware datetime or None
    """
    if isinstance(value, bytes):
        value = value.decode('ascii', errors='replace')
    if not isinstance(value, str):
        return None

    match = _EXIF_DATETIME.match(value.strip().rstrip('\x00'))
    if not match:
        return None

    try:
        parsed = datetime.strptime(f"{match.group('date')} {match.group('time')}", "%Y:%m:%d %H:%M:%S")
    except ValueError:
        return None

    tz = match.group('tz')
    if tz and tz != 'Z':
        sign = -1 if tz[0] == '-' else 1
        digits = tz[1:].replace(':', '')
        offset = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
        return parsed.replace(tzinfo=timezone(sign * offset)).astimezone(timezone.utc)

    return parsed.replace(tzinfo=timezone.utc)


def format_exif_datetime(instant: datetime, with_zone: bool = False) -> str:
    """Format an instant as ``YYYY:MM:DD HH:MM:SS`` in UTC."""
    text = instant.astimezone(timezone.utc).strftime("%Y:%m:%d %H:%M:%S")
    return f"{text}+00:00" if with_zone else text


def hemisphere_refs(latitude: float, longitude: float) -> Tuple[str, str]:
    """GPS reference letters for signed coordinates."""
    return ('S' if latitude < 0 else 'N'), ('W' if longitude < 0 else 'E')


class MetadataStore(ABC):
    """Read/write access to embedded media metadata."""

    name = "abstract"

    @abstractmethod
    def read_times(self, file_path: Path) -> EmbeddedTimes:
        """Read date/time tags. Unreadable files yield an empty EmbeddedTimes."""

    @abstractmethod
    def read_duration(self, file_path: Path) -> Optional[str]:
        """Raw duration text for a clip, or None when not available."""

    @abstractmethod
    def write_metadata(
        self,
        file_path: Path,
        instant: datetime,
        is_video: bool,
        location: Optional[Tuple[float, float]] = None,
    ) -> None:
        """
        Write capture/creation/modification times and, for images, GPS.

        Videos get CreateDate, ModifyDate, MediaCreateDate, MediaModifyDate,
        TrackCreateDate and TrackModifyDate. Images get DateTimeOriginal,
        CreateDate and ModifyDate, plus GPS when ``location`` is given.

        Raises:
            MetadataWriteError: If the backend fails to write
            UnsupportedFormatError: If the backend cannot write this format
            ToolNotFoundError: If the backend's external tool is missing
        """

    def set_file_time(self, file_path: Path, instant: datetime) -> None:
        """Set access and modification time. Must run after metadata writes."""
        timestamp = instant.timestamp()
        os.utime(file_path, (timestamp, timestamp))
