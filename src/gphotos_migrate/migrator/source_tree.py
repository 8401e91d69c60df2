"""Takeout source tree discovery.

A Takeout export holds one or more ``Google Photos`` directories (one per
archive part or per export). Each contains:

- date folders ``Photos from YYYY``: every item belongs to that year
- album folders (any other name): no year implied
- ``Untitled...`` / ``Failed...`` folders from broken exports: skipped
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

from gphotos_migrate.common import is_hidden_name
from .media_types import is_media_file

logger = logging.getLogger(__name__)

DATE_FOLDER_PATTERN = re.compile(r'^Photos from ([0-9]{4})$')


@dataclass(frozen=True)
class SourceFolder:
    """One subfolder directly below a source root.

    Attributes:
        root: The ``Google Photos`` directory containing it
        path: Absolute folder path
        year: Year for date folders, None for album folders
    """
    root: Path
    path: Path
    year: Optional[int] = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_album(self) -> bool:
        return self.year is None


def parse_date_folder(name: str) -> Optional[int]:
    """
    Extract the year from a ``Photos from YYYY`` folder name.

    Args:
        name: Folder name

    Returns:
        Year as int, or None for any other name
    """
    match = DATE_FOLDER_PATTERN.match(name)
    if match:
        return int(match.group(1))
    return None


def is_reserved_folder(name: str, reserved_prefixes: Iterable[str]) -> bool:
    """Check if a folder marks an incomplete or failed export."""
    return any(name.startswith(prefix) for prefix in reserved_prefixes)


def find_source_roots(takeout_path: Path, root_names: Sequence[str]) -> List[Path]:
    """
    Find every export root below the Takeout folder.

    Roots are not searched for nested roots. ``takeout_path`` itself counts
    when its own name is a root name.

    Args:
        takeout_path: Folder holding extracted Takeout archives
        root_names: Directory names that mark an export root

    Returns:
        Sorted list of root directories (possibly empty)
    """
    names = set(root_names)
    if takeout_path.name in names:
        return [takeout_path]

    roots: List[Path] = []
    for dirpath, dirnames, _ in os.walk(takeout_path):
        dirnames.sort()
        matched = [d for d in dirnames if d in names]
        for dirname in matched:
            roots.append(Path(dirpath) / dirname)
        dirnames[:] = [d for d in dirnames if d not in names]

    roots.sort()
    logger.info(f"Source roots found: {{'takeout': {str(takeout_path)!r}, 'roots': {[str(r) for r in roots]!r}}}")
    return roots


def list_media_files(folder: Path) -> List[Path]:
    """Media files directly inside ``folder``, sorted by name."""
    files = []
    with os.scandir(folder) as entries:
        for entry in entries:
            if entry.is_file() and not is_hidden_name(entry.name) and is_media_file(Path(entry.name)):
                files.append(Path(entry.path))
    files.sort()
    return files


def count_media_files(path: Path) -> int:
    """Recursive media file count, used for the pre-run estimate."""
    total = 0
    for _, _, filenames in os.walk(path):
        total += sum(1 for name in filenames if not is_hidden_name(name) and is_media_file(Path(name)))
    return total


@dataclass
class SourceTree:
    """The set of export roots taking part in a migration run."""
    roots: List[Path]
    reserved_prefixes: List[str] = field(default_factory=lambda: ["Untitled", "Failed"])
    skipped_folders: List[Path] = field(default_factory=list)

    def folders(self) -> Iterator[SourceFolder]:
        """
        Yield every usable subfolder of every root in sorted order.

        Reserved folders are recorded in ``skipped_folders`` and not yielded.
        """
        for root in sorted(self.roots):
            subfolders = sorted(p for p in root.iterdir() if p.is_dir() and not is_hidden_name(p.name))
            for subfolder in subfolders:
                if is_reserved_folder(subfolder.name, self.reserved_prefixes):
                    if subfolder not in self.skipped_folders:
                        self.skipped_folders.append(subfolder)
                        logger.info(f"Skipping incomplete export folder: {{'path': {str(subfolder)!r}}}")
                    continue
                yield SourceFolder(root=root, path=subfolder, year=parse_date_folder(subfolder.name))
