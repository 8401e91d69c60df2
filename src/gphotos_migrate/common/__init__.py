"""Shared utilities for gphotos_migrate packages."""

from .config import ConfigLoader, expand_path_variables
from .logging import setup_logging, LogContext
from .logging_config import LoggingConfig
from .errors import (
    MigrationError, FileProcessingError, UnsupportedFormatError,
    ToolNotFoundError, ParseError, MetadataWriteError,
)
from .path_utils import normalize_path, is_hidden_name
from .checksums import compute_sha256_hex

__all__ = [
    'ConfigLoader',
    'expand_path_variables',
    'LoggingConfig',
    'setup_logging',
    'LogContext',
    'MigrationError',
    'FileProcessingError',
    'UnsupportedFormatError',
    'ToolNotFoundError',
    'ParseError',
    'MetadataWriteError',
    'normalize_path',
    'is_hidden_name',
    'compute_sha256_hex',
]
