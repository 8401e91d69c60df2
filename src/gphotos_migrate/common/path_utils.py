"""Path and filename normalization helpers."""

import unicodedata
from pathlib import Path


def normalize_path(path: Path | str) -> str:
    """
    Normalize a path or filename for comparison.

    Applies Unicode NFC normalization and forward-slash separators, so a
    sidecar written on macOS (NFD names) still matches its media file.

    Args:
        path: Path object or string to normalize

    Returns:
        Normalized string

    Examples:
        >>> normalize_path("cafe\\u0301.jpg")
        'café.jpg'
        >>> normalize_path(r"Takeout\\Google Photos")
        'Takeout/Google Photos'
    """
    normalized = unicodedata.normalize('NFC', str(path))
    return normalized.replace('\\', '/')


def is_hidden_name(name: str) -> bool:
    """True for dotfiles and macOS resource-fork entries (``._IMG.jpg``)."""
    return name.startswith('.')
