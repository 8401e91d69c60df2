"""Sidecar lookup across one or more Takeout source trees.

Google names sidecars inconsistently. For a media file ``IMG_1234.jpg`` the
sidecar may be any of::

    IMG_1234.jpg.json
    IMG_1234.json
    IMG_1234.jpg.supplemental-metadata.json
    IMG_1234.jpg.suppl.json                        (truncated)
    Very_long_name_cut_at_forty_six_characters.json (truncated)

and numbered duplicates ``IMG_1234(1).jpg`` pair with ``IMG_1234.jpg(1).json``.

The locator indexes every JSON file once, then tries the patterns in a
fixed order. The first pattern with any candidate wins. Among candidates of
the same pattern the choice is deterministic: files in the preferred
directory first, then the shortest name, then the smallest path.

The truncated-prefix pattern only applies to base names of at least
``fuzzy_length`` characters. Shorter names are never cut, and the prefix
would pair ``IMG_1.jpg`` with ``IMG_10.jpg.json``.
"""

import bisect
import logging
import os
import re
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from gphotos_migrate.common import ParseError, normalize_path
from .sidecar import Sidecar, parse_sidecar

logger = logging.getLogger(__name__)

# JSON files in a Takeout export that are never per-item sidecars
EXCLUDED_JSON_NAMES = frozenset({
    'metadata.json',
    'print-subscriptions.json',
    'shared_album_comments.json',
    'user-generated-memory-titles.json',
})

DEFAULT_FUZZY_LENGTH = 46

_NUMBERED_STEM = re.compile(r'^(?P<base>.+)\((?P<number>\d+)\)$')

_JSON = '.json'


class SidecarIndex:
    """Name index of every sidecar candidate under the source roots."""

    def __init__(self) -> None:
        self._by_name: Dict[str, List[Path]] = {}
        self._sorted_names: List[str] = []
        self._dirty = False

    @classmethod
    def build(cls, roots: Iterable[Path]) -> "SidecarIndex":
        """
        Index all ``*.json`` files below the given roots.

        Args:
            roots: Source tree roots (``.../Google Photos``)

        Returns:
            Populated index
        """
        roots = list(roots)
        index = cls()
        for root in roots:
            for dirpath, dirnames, filenames in os.walk(root):
                dirnames.sort()
                for filename in filenames:
                    if filename.lower().endswith(_JSON):
                        index.add(Path(dirpath) / filename)

        logger.info(f"Sidecar index built: {{'roots': {len(roots)}, 'sidecars': {len(index)}}}")
        return index

    def add(self, path: Path) -> None:
        """Register one JSON file; Takeout bookkeeping files are ignored."""
        name = normalize_path(path.name)
        if name.lower() in EXCLUDED_JSON_NAMES:
            return
        self._by_name.setdefault(name, []).append(path)
        self._dirty = True

    def __len__(self) -> int:
        return sum(len(paths) for paths in self._by_name.values())

    def exact(self, name: str) -> List[Path]:
        """Sidecars named exactly ``name``."""
        return list(self._by_name.get(name, ()))

    def matching(self, prefix: str, predicate: Callable[[str], bool]) -> List[Path]:
        """Sidecars whose name starts with ``prefix`` and satisfies ``predicate``."""
        names = self._names()
        start = bisect.bisect_left(names, prefix)
        found: List[Path] = []
        for name in names[start:]:
            if not name.startswith(prefix):
                break
            if predicate(name):
                found.extend(self._by_name[name])
        return found

    def _names(self) -> List[str]:
        if self._dirty:
            self._sorted_names = sorted(self._by_name)
            self._dirty = False
        return self._sorted_names


class MetadataLocator:
    """Finds the sidecar that belongs to a media file.

    Args:
        index: Sidecar index over the whole source tree
        fuzzy_length: Base-name prefix length used for truncated sidecar names
    """

    def __init__(self, index: SidecarIndex, fuzzy_length: int = DEFAULT_FUZZY_LENGTH) -> None:
        self.index = index
        self.fuzzy_length = fuzzy_length

    def locate_path(self, media_filename: str, prefer_dir: Optional[Path] = None) -> Optional[Path]:
        """
        Find the sidecar path for a media filename.

        Args:
            media_filename: Name of the media file (no directory)
            prefer_dir: Directory whose sidecars win ties, usually the
                folder the media file came from

        Returns:
            Path to the chosen sidecar, or None if no pattern matches
        """
        name = normalize_path(media_filename)
        stem, ext = os.path.splitext(name)

        for tier, lookup in enumerate(self._tiers(name, stem, ext), start=1):
            candidates = lookup()
            if candidates:
                chosen = min(candidates, key=lambda p: _tie_break_key(p, prefer_dir))
                if len(candidates) > 1:
                    logger.debug(
                        f"Sidecar tie broken: {{'media': {name!r}, 'tier': {tier}, "
                        f"'candidates': {len(candidates)}, 'chosen': {str(chosen)!r}}}"
                    )
                return chosen

        return None

    def locate(self, media_filename: str, prefer_dir: Optional[Path] = None) -> Optional[Sidecar]:
        """
        Find and parse the sidecar for a media filename.

        An unreadable or malformed sidecar is logged and treated as not found.

        Returns:
            Parsed Sidecar, or None
        """
        path = self.locate_path(media_filename, prefer_dir)
        if path is None:
            return None

        try:
            return parse_sidecar(path)
        except ParseError as e:
            logger.warning(f"Unreadable sidecar: {{'path': {str(path)!r}, 'error': {e.message!r}}}")
            return None

    def _tiers(self, name: str, stem: str, ext: str) -> List[Callable[[], List[Path]]]:
        index = self.index
        truncated = stem[:self.fuzzy_length]
        dotted = f"{stem}."

        tiers: List[Callable[[], List[Path]]] = [
            lambda: index.exact(f"{name}{_JSON}"),
            lambda: index.exact(f"{stem}{_JSON}"),
            lambda: index.matching(
                dotted, lambda n: n.endswith(_JSON) and len(n) >= len(dotted) + len(_JSON)
            ),
        ]
        # Only names long enough to have been cut
        if len(stem) >= self.fuzzy_length:
            tiers.append(lambda: index.matching(truncated, lambda n: n.endswith(_JSON)))

        numbered = _NUMBERED_STEM.match(stem)
        if numbered:
            base_name = f"{numbered.group('base')}{ext}"
            tail = f"({numbered.group('number')}){_JSON}"
            tiers.append(lambda: index.matching(base_name, lambda n: _is_numbered_sidecar(n, base_name, tail)))

        return tiers


def _is_numbered_sidecar(name: str, base_name: str, tail: str) -> bool:
    # "<base><ext>(n).json" or "<base><ext>.<anything>(n).json"
    if not name.endswith(tail):
        return False
    middle = name[len(base_name):-len(tail)]
    return middle == '' or middle.startswith('.')


def _tie_break_key(path: Path, prefer_dir: Optional[Path]) -> Tuple[int, int, str]:
    preferred = 0 if prefer_dir is not None and path.parent == prefer_dir else 1
    return preferred, len(normalize_path(path.name)), normalize_path(path)
