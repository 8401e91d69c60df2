"""Typed field lookup over a parsed JSON document."""

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, Optional

from gphotos_migrate.common import ParseError

logger = logging.getLogger(__name__)

_NULL_MARKERS = ("", "null")


class JsonDocument:
    """Read-only view over a JSON object with explicit absence handling.

    Lookups take a dotted path (``"photoTakenTime.timestamp"``). A value is
    *absent* when any key along the path is missing, when it is JSON ``null``,
    or when it is the empty string or the literal string ``"null"``. Absent
    values are returned as ``None``, never as zero.
    """

    def __init__(self, data: Dict[str, Any], source: Optional[Path] = None) -> None:
        if not isinstance(data, dict):
            raise ParseError("JSON document root is not an object", path=str(source))
        self._data = data
        self.source = source

    @classmethod
    def load(cls, path: Path) -> "JsonDocument":
        """
        Parse a JSON file.

        Args:
            path: Path to the JSON file

        Returns:
            JsonDocument wrapping the parsed object

        Raises:
            ParseError: If the file cannot be read or is not a JSON object
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ParseError(f"Cannot read JSON document: {e}", path=str(path)) from e

        return cls(data, source=path)

    def get(self, dotted_path: str) -> Any:
        """Return the raw value at ``dotted_path``, or None when absent."""
        current: Any = self._data
        for key in dotted_path.split('.'):
            if not isinstance(current, dict) or key not in current:
                return None
            current = current[key]

        if current is None:
            return None
        if isinstance(current, str) and current.strip().lower() in _NULL_MARKERS:
            return None
        return current

    def get_str(self, dotted_path: str) -> Optional[str]:
        """String value at ``dotted_path``; numbers are converted to text."""
        value = self.get(dotted_path)
        if isinstance(value, bool) or isinstance(value, (dict, list)):
            return None
        if value is None:
            return None
        return str(value).strip()

    def get_int(self, dotted_path: str) -> Optional[int]:
        """Integer value at ``dotted_path``; numeric strings are parsed."""
        value = self.get(dotted_path)
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, int):
            return value
        try:
            return int(str(value).strip())
        except ValueError:
            logger.debug(f"Not an integer: {{'field': {dotted_path!r}, 'value': {value!r}}}")
            return None

    def get_float(self, dotted_path: str) -> Optional[float]:
        """Finite float value at ``dotted_path``; numeric strings are parsed."""
        value = self.get(dotted_path)
        if isinstance(value, bool) or value is None:
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            logger.debug(f"Not a number: {{'field': {dotted_path!r}, 'value': {value!r}}}")
            return None
        if not math.isfinite(number):
            return None
        return number
