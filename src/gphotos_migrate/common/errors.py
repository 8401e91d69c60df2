"""Base error definitions for gphotos_migrate packages."""

from typing import Any, Dict


class MigrationError(Exception):
    """Base exception for all gphotos_migrate errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class FileProcessingError(MigrationError):
    """Base exception for per-file processing errors."""
    pass


class UnsupportedFormatError(FileProcessingError):
    """File format is not supported by the selected metadata backend."""
    pass


class ToolNotFoundError(FileProcessingError):
    """Required external tool is not available."""
    pass


class ParseError(FileProcessingError):
    """Error parsing a sidecar or tool output."""
    pass


class MetadataWriteError(FileProcessingError):
    """Writing embedded metadata into a file failed."""
    pass
