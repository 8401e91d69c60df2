"""Live Photo companion clip detection.

An iPhone Live Photo is exported as a still (``IMG_1234.HEIC``) plus a short
QuickTime clip with the same base name (``IMG_1234.MOV``). The clip is an
artifact of the still and is left out of the migrated library.

Detection is conservative: a clip is dropped only when every signal agrees.
Any doubt (unknown duration, non-QuickTime bytes, no sibling still) keeps
the file.
"""

import logging
import os
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Tuple

from ..media_types import (
    QUICKTIME_MIME,
    STILL_PAIR_EXTENSIONS,
    detect_video_container,
    is_video_file,
)
from ..metadata import MetadataStore, parse_duration, probe_duration_ffprobe

logger = logging.getLogger(__name__)


class CompanionClipClassifier:
    """Decides whether a video is a Live Photo companion clip.

    Args:
        store: Metadata backend queried for the clip duration
        max_bytes: Largest file size still considered a companion clip
        max_seconds: Longest duration still considered a companion clip
        use_ffprobe: Ask ffprobe when the store reports no usable duration
    """

    def __init__(
        self,
        store: MetadataStore,
        max_bytes: int = 5_000_000,
        max_seconds: float = 3.0,
        use_ffprobe: bool = False,
    ) -> None:
        self.store = store
        self.max_bytes = max_bytes
        self.max_seconds = max_seconds
        self.use_ffprobe = use_ffprobe
        self._stills: Dict[str, FrozenSet[Tuple[str, str]]] = {}

    def should_keep(self, file_path: Path, sibling_dir: Optional[Path] = None) -> bool:
        """
        Check whether a media file belongs in the migrated library.

        Args:
            file_path: Media file to classify
            sibling_dir: Folder searched for the paired still image;
                defaults to the file's own folder

        Returns:
            False only for a confirmed companion clip
        """
        return not self.is_companion_clip(file_path, sibling_dir)

    def is_companion_clip(self, file_path: Path, sibling_dir: Optional[Path] = None) -> bool:
        """True when all companion-clip conditions hold."""
        if not is_video_file(file_path):
            return False

        try:
            if file_path.stat().st_size > self.max_bytes:
                return False
            if not self._has_sibling_still(file_path, sibling_dir or file_path.parent):
                return False
            if detect_video_container(file_path) != QUICKTIME_MIME:
                return False
        except OSError as e:
            logger.warning(f"Cannot inspect clip, keeping it: {{'path': {str(file_path)!r}, 'error': {str(e)!r}}}")
            return False

        duration = self.probe_duration(file_path)
        if duration is None or duration > self.max_seconds:
            return False

        logger.debug(f"Companion clip: {{'path': {str(file_path)!r}, 'duration': {duration}}}")
        return True

    def probe_duration(self, file_path: Path) -> Optional[float]:
        """
        Clip duration in seconds.

        Tries the metadata store first, then ffprobe when the store has no
        value or reports zero. A zero duration counts as unknown.

        Returns:
            Duration in seconds, or None if unknown
        """
        duration = parse_duration(self.store.read_duration(file_path))
        if duration:
            return duration

        if self.use_ffprobe:
            probed = probe_duration_ffprobe(file_path)
            if probed:
                return probed

        return None

    def _has_sibling_still(self, file_path: Path, directory: Path) -> bool:
        stills = self._stills.get(str(directory))
        if stills is None:
            found = set()
            with os.scandir(directory) as entries:
                for entry in entries:
                    if not entry.is_file():
                        continue
                    stem, ext = os.path.splitext(entry.name)
                    if ext.lower() in STILL_PAIR_EXTENSIONS:
                        found.add((stem, ext.lower()))
            stills = frozenset(found)
            self._stills[str(directory)] = stills

        stem = file_path.stem
        return any((stem, ext) in stills for ext in STILL_PAIR_EXTENSIONS)
