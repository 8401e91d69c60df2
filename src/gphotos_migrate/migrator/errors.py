"""Error classes for the migrator."""

import subprocess

from gphotos_migrate.common import (
    MigrationError,
    ParseError,
    UnsupportedFormatError,
    ToolNotFoundError,
    MetadataWriteError,
)


class SetupError(MigrationError):
    """The run cannot start. Raised before any file is touched."""
    pass


class SourceTreeError(SetupError):
    """Takeout input folder is missing or unreadable."""
    pass


class OutputRootError(SetupError):
    """Output folder cannot be created or written."""
    pass


class MigrationAborted(MigrationError):
    """User declined to continue at a confirmation prompt."""
    pass


def classify_error(exception: Exception) -> str:
    """
    Classify an exception into an error category for per-file failure logs.

    Args:
        exception: The exception to classify

    Returns:
        Error category string: 'permission', 'io', 'parse', 'unsupported',
        'tool_missing', 'metadata_write', 'timeout' or 'unknown'
    """
    if isinstance(exception, PermissionError):
        return 'permission'
    elif isinstance(exception, ParseError):
        return 'parse'
    elif isinstance(exception, UnsupportedFormatError):
        return 'unsupported'
    elif isinstance(exception, ToolNotFoundError):
        return 'tool_missing'
    elif isinstance(exception, MetadataWriteError):
        return 'metadata_write'
    elif isinstance(exception, subprocess.TimeoutExpired):
        return 'timeout'
    elif isinstance(exception, OSError):
        return 'io'
    elif isinstance(exception, (ValueError, KeyError)):
        return 'parse'
    else:
        return 'unknown'
