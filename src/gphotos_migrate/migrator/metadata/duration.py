"""Clip duration parsing and ffprobe fallback."""

import json
import logging
import re
import subprocess
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

FFPROBE_TIMEOUT_SECONDS = 30

_CLOCK = re.compile(r'^(?:(\d+):)?(\d+):(\d+(?:\.\d+)?)$')
_SECONDS = re.compile(r'^(\d+(?:\.\d+)?)\s*(?:s|sec|seconds)?(?:\s*\(approx\))?$', re.IGNORECASE)


def parse_duration(value: Union[str, int, float, None]) -> Optional[float]:
    """
    Parse a duration as reported by exiftool or ffprobe.

    Accepted forms::

        2.04          plain seconds (number or text)
        2.04 s        exiftool short-clip text
        0:00:02       H:M:S
        0:02          M:S

    Args:
        value: Raw duration value

    Returns:
        Duration in seconds, or None when the value is absent or unparseable
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value >= 0 else None

    text = value.strip()
    if not text:
        return None

    clock = _CLOCK.match(text)
    if clock:
        hours, minutes, seconds = clock.groups()
        return int(hours or 0) * 3600 + int(minutes) * 60 + float(seconds)

    plain = _SECONDS.match(text)
    if plain:
        return float(plain.group(1))

    logger.debug(f"Unrecognized duration: {{'value': {text!r}}}")
    return None


def probe_duration_ffprobe(file_path: Path) -> Optional[float]:
    """
    Read the container duration with ffprobe.

    Args:
        file_path: Path to video file

    Returns:
        Duration in seconds, or None if ffprobe fails or reports none
    """
    try:
        result = subprocess.run(
            [
                'ffprobe',
                '-v', 'quiet',
                '-print_format', 'json',
                '-show_format',
                str(file_path),
            ],
            capture_output=True,
            text=True,
            encoding='utf-8',
            check=True,
            timeout=FFPROBE_TIMEOUT_SECONDS,
        )
        data = json.loads(result.stdout or '{}')
    except FileNotFoundError:
        logger.warning("ffprobe not found - duration fallback disabled")
        return None
    except subprocess.CalledProcessError as e:
        logger.warning(f"ffprobe failed: {{'path': {str(file_path)!r}, 'stderr': {e.stderr!r}}}")
        return None
    except subprocess.TimeoutExpired:
        logger.warning(f"ffprobe timed out: {{'path': {str(file_path)!r}}}")
        return None
    except json.JSONDecodeError as e:
        logger.warning(f"Unparseable ffprobe output: {{'path': {str(file_path)!r}, 'error': {str(e)!r}}}")
        return None

    return parse_duration(data.get('format', {}).get('duration'))
