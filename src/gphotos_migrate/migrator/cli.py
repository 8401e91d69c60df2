"""Command-line entry point for the Takeout migration."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from gphotos_migrate.common import ConfigLoader, MigrationError, setup_logging
from .config import MigrationConfig, MigratorConfig
from .errors import MigrationAborted, SetupError
from .pipeline import MigrationPipeline

APP_NAME = "gphotos-migrate"

logger = logging.getLogger(__name__)


def prompt_confirm(question: str) -> bool:
    """Ask a yes/no question on the terminal. Anything but y/yes declines."""
    try:
        answer = input(f"{question} [y/N]: ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def migrate_command(
    config: MigratorConfig,
    takeout_path_override: Optional[Path] = None,
    output_path_override: Optional[Path] = None,
    use_exiftool_override: Optional[bool] = None,
    use_ffprobe_override: Optional[bool] = None,
    reference_year_override: Optional[int] = None,
    assume_yes: bool = False,
) -> int:
    """Run a migration with config plus command-line overrides.

    Args:
        config: Loaded configuration
        takeout_path_override: Takeout folder (overrides config)
        output_path_override: Output folder (overrides config)
        use_exiftool_override: Metadata backend choice (overrides config)
        use_ffprobe_override: ffprobe duration fallback (overrides config)
        reference_year_override: Year treated as "never fixed" (overrides config)
        assume_yes: Continue past setup warnings without asking

    Returns:
        Exit code (0 for success)
    """
    updates = {
        'takeout_path': str(takeout_path_override) if takeout_path_override else None,
        'output_path': str(output_path_override) if output_path_override else None,
        'use_exiftool': use_exiftool_override,
        'use_ffprobe': use_ffprobe_override,
        'reference_year': reference_year_override,
    }
    overrides = {k: v for k, v in updates.items() if v is not None}
    migration = MigrationConfig(**{**config.migration.model_dump(), **overrides})

    if not migration.takeout_path or not migration.output_path:
        logger.error("Both --takeout and --output are required (or set them in the config file)")
        return 1

    logger.info(
        f"Configuration: {{'takeout_path': {migration.takeout_path!r}, 'output_path': {migration.output_path!r}, "
        f"'use_exiftool': {migration.use_exiftool}, 'use_ffprobe': {migration.use_ffprobe}, "
        f"'reference_year': {migration.effective_reference_year()}}}"
    )

    confirm = (lambda question: True) if assume_yes else prompt_confirm
    pipeline = MigrationPipeline(migration, confirm=confirm)

    try:
        result = pipeline.run()
    except MigrationAborted as e:
        logger.warning(e.message)
        return 1
    except SetupError as e:
        logger.error(f"{e.message} {e.context}")
        return 1
    except MigrationError as e:
        logger.error(e.message)
        return 1

    logger.info(
        f"Migration complete: {{'library': {str(pipeline.layout.library)!r}, 'albums': {str(pipeline.layout.albums)!r}, "
        f"'report': {str(pipeline.layout.report_path)!r}, 'fixed': {result.metadata.fixed}, "
        f"'not_fixed': {result.metadata.not_fixed}, 'backfilled': {result.validation.backfilled}}}"
    )
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the ``gphotos-migrate`` command."""
    parser = argparse.ArgumentParser(
        description="Turn a Google Photos Takeout export into a year-organized library with fixed timestamps"
    )
    parser.add_argument(
        "--takeout",
        type=Path,
        help="Folder with the extracted Takeout export (overrides config)"
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Folder that receives ALL_PHOTOS and ALBUMS (overrides config)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )
    parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Continue past setup warnings without asking"
    )
    parser.add_argument(
        "--no-exiftool",
        action="store_true",
        help="Use the built-in Pillow/piexif backend (JPEG only) instead of exiftool"
    )
    parser.add_argument(
        "--use-ffprobe",
        action="store_true",
        help="Use ffprobe for clip durations exiftool cannot report"
    )
    parser.add_argument(
        "--reference-year",
        type=int,
        help="Year treated as 'timestamp never fixed' (default: current year)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)"
    )

    args = parser.parse_args(argv)

    loader = ConfigLoader(app_name=APP_NAME, config_class=MigratorConfig)
    config = loader.load(defaults_path=args.config)

    setup_logging(
        level=args.log_level or config.logging.level,
        format=config.logging.format,
        log_file=Path(config.logging.file) if config.logging.file else None,
    )

    return migrate_command(
        config=config,
        takeout_path_override=args.takeout,
        output_path_override=args.output,
        use_exiftool_override=False if args.no_exiftool else None,
        use_ffprobe_override=True if args.use_ffprobe else None,
        reference_year_override=args.reference_year,
        assume_yes=args.yes,
    )


if __name__ == "__main__":
    sys.exit(main())
