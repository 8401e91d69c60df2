"""MetadataStore backed by Pillow (read) and piexif (write).

Needs no external binary, at the cost of format coverage: EXIF can be read
from any image Pillow opens, but only JPEG files can be written. Videos have
neither embedded times nor duration here; enable ffprobe for the duration.
"""

import logging
import struct
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Tuple

import piexif
from PIL import ExifTags, Image

from gphotos_migrate.common import MetadataWriteError, UnsupportedFormatError
from ..media_types import is_video_file
from .store import (
    EmbeddedTimes,
    MetadataStore,
    format_exif_datetime,
    hemisphere_refs,
    parse_exif_datetime,
)

logger = logging.getLogger(__name__)

WRITABLE_EXTENSIONS = frozenset({'.jpg', '.jpeg'})

# Pillow tag ids
_TAG_DATETIME_ORIGINAL = 0x9003
_TAG_DATETIME_DIGITIZED = 0x9004


class NativeMetadataStore(MetadataStore):
    """Pure-Python metadata backend for environments without exiftool."""

    name = "native"

    def read_times(self, file_path: Path) -> EmbeddedTimes:
        if is_video_file(file_path):
            return EmbeddedTimes()

        try:
            with Image.open(file_path) as img:
                exif = img.getexif()
                exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
                original = exif_ifd.get(_TAG_DATETIME_ORIGINAL)
                digitized = exif_ifd.get(_TAG_DATETIME_DIGITIZED)
        except Exception as e:
            logger.debug(f"No readable EXIF: {{'path': {str(file_path)!r}, 'error': {str(e)!r}}}")
            return EmbeddedTimes()

        return EmbeddedTimes(
            date_time_original=parse_exif_datetime(original),
            create_date=parse_exif_datetime(digitized),
        )

    def read_duration(self, file_path: Path) -> Optional[str]:
        return None

    def write_metadata(
        self,
        file_path: Path,
        instant: datetime,
        is_video: bool,
        location: Optional[Tuple[float, float]] = None,
    ) -> None:
        if is_video or file_path.suffix.lower() not in WRITABLE_EXTENSIONS:
            raise UnsupportedFormatError(
                "Native metadata backend writes JPEG only",
                path=str(file_path),
            )

        stamp = format_exif_datetime(instant).encode('ascii')
        try:
            exif_dict = piexif.load(str(file_path))
            exif_dict["0th"][piexif.ImageIFD.DateTime] = stamp
            exif_dict["Exif"][piexif.ExifIFD.DateTimeOriginal] = stamp
            exif_dict["Exif"][piexif.ExifIFD.DateTimeDigitized] = stamp
            if location is not None:
                exif_dict["GPS"].update(_gps_ifd(*location))
            piexif.insert(piexif.dump(exif_dict), str(file_path))
        except (ValueError, struct.error, OSError, KeyError) as e:
            raise MetadataWriteError(
                f"piexif could not write EXIF: {e}",
                path=str(file_path),
            ) from e

        logger.debug(f"Metadata written: {{'path': {str(file_path)!r}, 'gps': {location is not None}}}")


def _gps_ifd(latitude: float, longitude: float) -> Dict[int, object]:
    lat_ref, lon_ref = hemisphere_refs(latitude, longitude)
    return {
        piexif.GPSIFD.GPSVersionID: (2, 3, 0, 0),
        piexif.GPSIFD.GPSLatitudeRef: lat_ref.encode('ascii'),
        piexif.GPSIFD.GPSLatitude: _to_dms_rationals(abs(latitude)),
        piexif.GPSIFD.GPSLongitudeRef: lon_ref.encode('ascii'),
        piexif.GPSIFD.GPSLongitude: _to_dms_rationals(abs(longitude)),
    }


def _to_dms_rationals(degrees: float) -> Tuple[Tuple[int, int], Tuple[int, int], Tuple[int, int]]:
    """Decimal degrees to EXIF degrees/minutes/seconds rationals."""
    whole_degrees = int(degrees)
    minutes_float = (degrees - whole_degrees) * 60
    whole_minutes = int(minutes_float)
    seconds = round((minutes_float - whole_minutes) * 60 * 10000)
    return (whole_degrees, 1), (whole_minutes, 1), (seconds, 10000)
