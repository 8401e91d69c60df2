"""Availability checks for the external metadata tools."""

import logging
import shutil
from typing import Dict

from gphotos_migrate.common import ToolNotFoundError

logger = logging.getLogger(__name__)

_CAPABILITIES = {
    'exiftool': 'embedded metadata read/write',
    'ffprobe': 'clip duration probing',
}


def check_tool_availability() -> Dict[str, bool]:
    """
    Check which external tools are on PATH.

    Returns:
        Dictionary mapping tool names to availability status:
        - 'exiftool': metadata backend for every media format
        - 'ffprobe': duration fallback for companion-clip detection
    """
    return {tool: shutil.which(tool) is not None for tool in _CAPABILITIES}


def check_required_tools(use_exiftool: bool = False, use_ffprobe: bool = False) -> Dict[str, bool]:
    """
    Verify that every tool enabled in config is installed.

    Args:
        use_exiftool: Whether exiftool is required (from config)
        use_ffprobe: Whether ffprobe is required (from config)

    Returns:
        The availability map from check_tool_availability()

    Raises:
        ToolNotFoundError: If a tool is enabled in config but not available
    """
    tools = check_tool_availability()

    for tool, enabled in (('exiftool', use_exiftool), ('ffprobe', use_ffprobe)):
        if not enabled:
            logger.info(f"Tool disabled: {{'tool': {tool!r}, 'reason': 'config'}}")
            continue
        if tools[tool]:
            logger.info(f"Tool available: {{'tool': {tool!r}, 'capability': {_CAPABILITIES[tool]!r}}}")
            continue

        logger.error(f"Tool not found: {{'tool': {tool!r}, 'required': True}}")
        raise ToolNotFoundError(
            f"Tool '{tool}' is enabled in config but not available.\n\n"
            f"{_get_installation_instructions(tool)}",
            tool=tool,
        )

    return tools


def _get_installation_instructions(tool_name: str) -> str:
    """Get installation instructions for a missing tool."""
    instructions = {
        'ffprobe': (
            "ffprobe is part of FFmpeg. Install it, or set migration.use_ffprobe = false:\n"
            "  - Windows: Download from https://ffmpeg.org/download.html\n"
            "  - macOS: brew install ffmpeg\n"
            "  - Linux: sudo apt-get install ffmpeg (Debian/Ubuntu)"
        ),
        'exiftool': (
            "ExifTool writes timestamps into photos and videos. Install it, or\n"
            "run with --no-exiftool (JPEG-only native backend):\n"
            "  - Windows: Download from https://exiftool.org/\n"
            "  - macOS: brew install exiftool\n"
            "  - Linux: sudo apt-get install libimage-exiftool-perl"
        ),
    }

    return instructions.get(tool_name, f"Please install {tool_name}")
