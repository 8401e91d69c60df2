"""Shared fixtures: Takeout trees, real JPEGs and a fake metadata backend."""

import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import piexif
import pytest
from PIL import Image

from gphotos_migrate.common import MetadataWriteError
from gphotos_migrate.migrator.metadata import EmbeddedTimes, MetadataStore, NativeMetadataStore
from gphotos_migrate.migrator.metadata.store import format_exif_datetime

# ftyp boxes recognised by the filetype library
QUICKTIME_HEADER = b"\x00\x00\x00\x14ftypqt  \x00\x00\x00\x00qt  "
MP4_HEADER = b"\x00\x00\x00\x18ftypisom\x00\x00\x02\x00isomiso2"


def write_jpeg(path: Path, color=(200, 30, 30), taken: Optional[datetime] = None) -> Path:
    """Write a small real JPEG, optionally with EXIF DateTimeOriginal."""
    path.parent.mkdir(parents=True, exist_ok=True)
    image = Image.new("RGB", (16, 16), color)
    if taken is not None:
        stamp = format_exif_datetime(taken).encode("ascii")
        exif = piexif.dump({"0th": {}, "Exif": {piexif.ExifIFD.DateTimeOriginal: stamp}, "GPS": {}, "1st": {}, "thumbnail": None})
        image.save(path, "JPEG", exif=exif)
    else:
        image.save(path, "JPEG")
    return path


def write_sidecar(
    path: Path,
    taken_timestamp=None,
    creation_timestamp=None,
    latitude=None,
    longitude=None,
) -> Path:
    """Write a Takeout-style JSON sidecar."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data: Dict[str, object] = {"title": path.name}
    if taken_timestamp is not None:
        data["photoTakenTime"] = {"timestamp": str(taken_timestamp), "formatted": "ignored"}
    if creation_timestamp is not None:
        data["creationTime"] = {"timestamp": str(creation_timestamp)}
    if latitude is not None or longitude is not None:
        data["geoData"] = {"latitude": latitude, "longitude": longitude, "altitude": 0.0}
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def write_clip(path: Path, size: int, header: bytes = QUICKTIME_HEADER) -> Path:
    """Write a video file of ``size`` bytes starting with ``header``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(header + b"\x00" * max(size - len(header), 0))
    return path


class FakeMetadataStore(MetadataStore):
    """In-memory MetadataStore: durations and times are set per filename."""

    name = "fake"

    def __init__(self) -> None:
        self.durations: Dict[str, str] = {}
        self.times: Dict[str, EmbeddedTimes] = {}
        self.fail_writes: Set[str] = set()
        self.writes: List[Tuple[Path, datetime, bool, Optional[Tuple[float, float]]]] = []

    def read_times(self, file_path: Path) -> EmbeddedTimes:
        return self.times.get(file_path.name, EmbeddedTimes())

    def read_duration(self, file_path: Path) -> Optional[str]:
        return self.durations.get(file_path.name)

    def write_metadata(self, file_path, instant, is_video, location=None) -> None:
        if file_path.name in self.fail_writes:
            raise MetadataWriteError("simulated failure", path=str(file_path))
        self.writes.append((file_path, instant, is_video, location))


class NativeStoreWithDurations(NativeMetadataStore):
    """Native backend plus scripted clip durations (Pillow cannot read them)."""

    def __init__(self, durations: Optional[Dict[str, str]] = None) -> None:
        self.durations = durations or {}

    def read_duration(self, file_path: Path) -> Optional[str]:
        return self.durations.get(file_path.name)


@pytest.fixture
def fake_store() -> FakeMetadataStore:
    return FakeMetadataStore()


@pytest.fixture
def takeout(tmp_path) -> Path:
    """Empty ``Takeout/Google Photos`` root."""
    root = tmp_path / "Takeout" / "Google Photos"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def output_dir(tmp_path) -> Path:
    return tmp_path / "output"
