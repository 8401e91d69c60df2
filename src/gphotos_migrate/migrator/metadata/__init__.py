"""Sidecar lookup and embedded-metadata access."""

from .json_document import JsonDocument
from .sidecar import Sidecar, parse_sidecar
from .locator import MetadataLocator, SidecarIndex
from .store import EmbeddedTimes, MetadataStore, parse_exif_datetime
from .exiftool_store import ExifToolMetadataStore
from .native_store import NativeMetadataStore
from .duration import parse_duration, probe_duration_ffprobe


def create_metadata_store(use_exiftool: bool) -> MetadataStore:
    """Pick the metadata backend selected in config."""
    if use_exiftool:
        return ExifToolMetadataStore()
    return NativeMetadataStore()


__all__ = [
    'JsonDocument',
    'Sidecar',
    'parse_sidecar',
    'MetadataLocator',
    'SidecarIndex',
    'EmbeddedTimes',
    'MetadataStore',
    'parse_exif_datetime',
    'ExifToolMetadataStore',
    'NativeMetadataStore',
    'parse_duration',
    'probe_duration_ffprobe',
    'create_metadata_store',
]
