"""Media kind and container detection.

Extension sets decide which files take part in a migration. Container
detection reads magic bytes with the filetype library and falls back to the
extension when the bytes are not recognized.
"""

from pathlib import Path

import filetype

IMAGE_EXTENSIONS = frozenset({
    '.jpg', '.jpeg', '.png', '.heic', '.gif', '.webp', '.bmp', '.tiff', '.tif',
})
VIDEO_EXTENSIONS = frozenset({
    '.mp4', '.mov', '.avi', '.mkv', '.3gp', '.m4v',
})
MEDIA_EXTENSIONS = IMAGE_EXTENSIONS | VIDEO_EXTENSIONS

# Still-image extensions that pair with a Live Photo clip
STILL_PAIR_EXTENSIONS = frozenset({'.heic', '.heif', '.jpg', '.jpeg'})

QUICKTIME_MIME = 'video/quicktime'

_EXTENSION_CONTAINERS = {
    '.mov': QUICKTIME_MIME,
    '.mp4': 'video/mp4',
    '.m4v': 'video/x-m4v',
    '.avi': 'video/x-msvideo',
    '.mkv': 'video/x-matroska',
    '.3gp': 'video/3gpp',
}


def is_media_file(path: Path) -> bool:
    """Check if a path has one of the migrated media extensions."""
    return path.suffix.lower() in MEDIA_EXTENSIONS


def is_video_file(path: Path) -> bool:
    """Check if a path has a video extension."""
    return path.suffix.lower() in VIDEO_EXTENSIONS


def is_image_file(path: Path) -> bool:
    """Check if a path has an image extension."""
    return path.suffix.lower() in IMAGE_EXTENSIONS


def detect_video_container(file_path: Path) -> str:
    """
    Detect the container MIME type of a video file.

    Magic bytes win over the extension, so an MP4 saved as ``.MOV`` is
    reported as ``video/mp4``.

    Args:
        file_path: Path to the video file

    Returns:
        Container MIME type, or 'application/octet-stream' when neither the
        bytes nor the extension identify a video container

    Raises:
        OSError: If file cannot be read
    """
    kind = filetype.guess(str(file_path))
    if kind is not None and kind.mime.startswith('video/'):
        return kind.mime
    return _EXTENSION_CONTAINERS.get(file_path.suffix.lower(), 'application/octet-stream')
