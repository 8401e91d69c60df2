"""Timestamp resolution cascade.

For each media item the resolver picks one "taken" instant and records
where it came from:

1. ``sidecar``: Takeout JSON ``photoTakenTime`` / ``creationTime``
2. ``embedded-metadata``: the file's own capture-time tag
3. ``folder-year``: July 1st, 12:00 UTC of the ``Photos from YYYY`` folder
4. ``unresolved``: goes to the ``Unknown`` bucket

A step only counts when it yields a four-digit year.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from .media_types import is_video_file
from .metadata import MetadataLocator, MetadataStore, Sidecar

logger = logging.getLogger(__name__)

UNKNOWN_BUCKET = "Unknown"

_YEAR = re.compile(r'^[0-9]{4}$')


class Provenance(str, Enum):
    """Which cascade step produced a timestamp."""
    SIDECAR = "sidecar"
    EMBEDDED = "embedded-metadata"
    FOLDER_YEAR = "folder-year"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class ResolvedTimestamp:
    """Outcome of the resolution cascade for one media item."""
    instant: Optional[datetime]
    provenance: Provenance
    sidecar: Optional[Sidecar] = None

    @property
    def bucket(self) -> str:
        """Year bucket name in the canonical library."""
        if self.instant is None:
            return UNKNOWN_BUCKET
        return f"{self.instant.year:04d}"

    @property
    def is_precise(self) -> bool:
        """True when the instant is a real capture time, not a placeholder."""
        return self.provenance in (Provenance.SIDECAR, Provenance.EMBEDDED)


def is_valid_year(value: object) -> bool:
    """Check a year value against ``^[0-9]{4}$``."""
    return bool(_YEAR.match(str(value)))


def folder_year_instant(year: int) -> datetime:
    """Placeholder instant for items known only by their folder year."""
    return datetime(year, 7, 1, 12, 0, 0, tzinfo=timezone.utc)


class TimestampResolver:
    """Runs the sidecar → embedded → folder-year cascade.

    Args:
        locator: Sidecar locator over the whole source tree
        store: Backend used to read embedded capture times
    """

    def __init__(self, locator: MetadataLocator, store: MetadataStore) -> None:
        self.locator = locator
        self.store = store

    def resolve(
        self,
        media_path: Path,
        folder_year: Optional[int] = None,
        lookup_name: Optional[str] = None,
        prefer_dir: Optional[Path] = None,
    ) -> ResolvedTimestamp:
        """
        Resolve the taken instant of a media file.

        Args:
            media_path: File whose embedded metadata is read
            folder_year: Year of the containing date folder, if any
            lookup_name: Filename used for the sidecar search; defaults to
                ``media_path.name`` (differs for renamed output copies)
            prefer_dir: Directory whose sidecars win lookup ties

        Returns:
            ResolvedTimestamp with provenance
        """
        name = lookup_name or media_path.name

        sidecar = self.locator.locate(name, prefer_dir=prefer_dir)
        if sidecar is not None and _has_valid_year(sidecar.taken_time):
            return ResolvedTimestamp(sidecar.taken_time, Provenance.SIDECAR, sidecar)

        embedded = self.store.read_times(media_path).capture_time(is_video=is_video_file(media_path))
        if _has_valid_year(embedded):
            return ResolvedTimestamp(embedded, Provenance.EMBEDDED, sidecar)

        if folder_year is not None and is_valid_year(folder_year):
            return ResolvedTimestamp(folder_year_instant(folder_year), Provenance.FOLDER_YEAR, sidecar)

        logger.debug(f"Timestamp unresolved: {{'path': {str(media_path)!r}}}")
        return ResolvedTimestamp(None, Provenance.UNRESOLVED, sidecar)


def _has_valid_year(instant: Optional[datetime]) -> bool:
    return instant is not None and is_valid_year(f"{instant.year}")
