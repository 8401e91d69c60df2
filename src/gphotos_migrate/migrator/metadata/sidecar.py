"""Google Takeout JSON sidecar model."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

from .json_document import JsonDocument

logger = logging.getLogger(__name__)

_TIMESTAMP_FIELDS = ("photoTakenTime.timestamp", "creationTime.timestamp")
_GEO_SECTIONS = ("geoData", "geoDataExif")


@dataclass(frozen=True)
class Sidecar:
    """The parts of a sidecar the migration consumes.

    Attributes:
        path: Location of the JSON file
        taken_time: Capture instant (UTC), None if no usable timestamp
        latitude: Degrees, None when absent or 0.0
        longitude: Degrees, None when absent or 0.0
    """
    path: Path
    taken_time: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


def parse_sidecar(json_path: Path) -> Sidecar:
    """
    Parse a Takeout sidecar file.

    ``photoTakenTime`` wins over ``creationTime``; ``geoData`` wins over
    ``geoDataExif``. Zero coordinates mean "no location" in Takeout exports.

    Args:
        json_path: Path to JSON sidecar file

    Returns:
        Sidecar with the consumed fields

    Raises:
        ParseError: If the file is unreadable or not a JSON object
    """
    document = JsonDocument.load(json_path)
    latitude, longitude = _extract_location(document)

    return Sidecar(
        path=json_path,
        taken_time=_extract_taken_time(document),
        latitude=latitude,
        longitude=longitude,
    )


def _extract_taken_time(document: JsonDocument) -> Optional[datetime]:
    for field in _TIMESTAMP_FIELDS:
        seconds = document.get_int(field)
        if seconds is None:
            continue
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.debug(
                f"Timestamp out of range: {{'path': {str(document.source)!r}, 'field': {field!r}, 'value': {seconds}}}"
            )
    return None


def _extract_location(document: JsonDocument) -> Tuple[Optional[float], Optional[float]]:
    for section in _GEO_SECTIONS:
        latitude = document.get_float(f"{section}.latitude")
        longitude = document.get_float(f"{section}.longitude")
        if latitude and longitude:
            return latitude, longitude
    return None, None
