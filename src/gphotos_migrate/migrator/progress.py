"""Progress tracking for long migration passes."""

import logging
import time

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Counts processed files and logs a progress line every N files.

    Args:
        stage: Name of the pass, included in every progress line
        total_files: Total number of files the pass will visit
        log_interval: Log progress every N files
    """

    def __init__(self, stage: str, total_files: int, log_interval: int = 100):
        self.stage = stage
        self.total_files = total_files
        self.log_interval = log_interval

        self.files_processed = 0
        self.start_time = time.monotonic()

        logger.debug(f"Progress started: {{'stage': {stage!r}, 'total_files': {total_files}}}")

    def increment(self, count: int = 1) -> None:
        """Add ``count`` processed files and log on interval boundaries."""
        before = self.files_processed
        self.files_processed += count

        if before // self.log_interval != self.files_processed // self.log_interval:
            self._log_progress()

    def get_progress(self) -> dict:
        """Get current progress statistics."""
        elapsed = time.monotonic() - self.start_time
        rate = self.files_processed / elapsed if elapsed > 0 else 0.0
        percentage = (self.files_processed / self.total_files) * 100 if self.total_files > 0 else 0.0
        remaining = max(self.total_files - self.files_processed, 0)
        eta = remaining / rate if rate > 0 else 0.0

        return {
            "stage": self.stage,
            "total_files": self.total_files,
            "files_processed": self.files_processed,
            "remaining_files": remaining,
            "percentage": percentage,
            "elapsed_seconds": elapsed,
            "rate_files_per_sec": rate,
            "eta_seconds": eta,
        }

    def _log_progress(self) -> None:
        progress = self.get_progress()
        logger.info(
            f"{self.stage}: {self.files_processed}/{self.total_files} "
            f"({progress['percentage']:.1f}%) - "
            f"{progress['rate_files_per_sec']:.1f} files/sec - "
            f"ETA: {format_duration(progress['eta_seconds'])}"
        )

    def log_final_summary(self) -> None:
        """Log the final count and elapsed time for the pass."""
        elapsed = time.monotonic() - self.start_time
        logger.info(
            f"{self.stage} complete: {self.files_processed}/{self.total_files} files "
            f"in {format_duration(elapsed)}"
        )


def format_duration(seconds: float) -> str:
    """
    Format seconds as human-readable time.

    Args:
        seconds: Time in seconds

    Returns:
        Formatted string (e.g., "2h 15m 30s")
    """
    if seconds <= 0:
        return "0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")

    return " ".join(parts)
