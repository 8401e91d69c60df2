"""Configuration models for the Takeout migrator."""

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field, ConfigDict, field_validator

from gphotos_migrate.common import LoggingConfig, expand_path_variables


class MigrationConfig(BaseModel):
    """Settings for the ``[migration]`` table."""

    model_config = ConfigDict(extra='forbid')

    takeout_path: str = Field(
        default="",
        description="Folder holding the extracted Takeout export(s); searched for 'Google Photos' roots"
    )
    output_path: str = Field(
        default="",
        description="Folder that receives ALL_PHOTOS, ALBUMS and the run report"
    )
    source_root_names: List[str] = Field(
        default_factory=lambda: ["Google Photos"],
        description="Directory names that mark the root of a Google Photos export"
    )
    reserved_folder_prefixes: List[str] = Field(
        default_factory=lambda: ["Untitled", "Failed"],
        description="Subfolders starting with these prefixes are incomplete exports and skipped"
    )
    use_exiftool: bool = Field(
        default=True,
        description="Use exiftool as metadata backend; when false, Pillow/piexif handle JPEG only"
    )
    use_ffprobe: bool = Field(
        default=False,
        description="Fall back to ffprobe when the metadata backend has no clip duration"
    )
    companion_max_bytes: int = Field(
        default=5_000_000,
        ge=0,
        description="Largest .MOV still considered a Live Photo companion clip"
    )
    companion_max_seconds: float = Field(
        default=3.0,
        ge=0,
        description="Longest clip still considered a Live Photo companion clip"
    )
    fuzzy_match_length: int = Field(
        default=46,
        ge=1,
        description="Base-name prefix length for truncated sidecar names"
    )
    dedup_prefix_bytes: int = Field(
        default=102_400,
        ge=1,
        description="Bytes hashed for the cheap duplicate key (combined with file size)"
    )
    verify_duplicates: bool = Field(
        default=True,
        description="Confirm duplicate keys with a full-content hash before deleting"
    )
    reference_year: int | None = Field(
        default=None,
        ge=1000,
        le=9999,
        description="Year treated as 'timestamp never fixed' (default: current year)"
    )
    current_year_warning_threshold: int = Field(
        default=50,
        ge=0,
        description="Warn when more output files than this still carry a reference-year mtime"
    )
    progress_interval: int = Field(
        default=100,
        ge=1,
        description="Log progress every N files"
    )

    @field_validator('takeout_path', 'output_path', mode='after')
    @classmethod
    def expand_variables(cls, v: str) -> str:
        """Expand ${USER_HOME}-style placeholders."""
        return expand_path_variables(v)

    def effective_reference_year(self) -> int:
        """Reference year, defaulting to the current UTC year."""
        if self.reference_year is not None:
            return self.reference_year
        return datetime.now(timezone.utc).year


class MigratorConfig(BaseModel):
    """Root configuration for the migrator."""

    model_config = ConfigDict(extra='forbid')

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    migration: MigrationConfig = Field(default_factory=MigrationConfig)
