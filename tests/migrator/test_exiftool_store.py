"""Tests for the exiftool metadata backend (subprocess mocked)."""

import json
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from gphotos_migrate.common import MetadataWriteError, ToolNotFoundError
from gphotos_migrate.migrator.metadata import ExifToolMetadataStore

UTC = timezone.utc
RUN = "gphotos_migrate.migrator.metadata.exiftool_store.subprocess.run"


def _completed(records):
    return MagicMock(stdout=json.dumps(records), returncode=0)


class TestExifToolRead:
    """Tests for reading tags."""

    def test_read_times(self):
        """Test parsing exiftool -j output."""
        records = [{
            "SourceFile": "a.jpg",
            "DateTimeOriginal": "2015:01:01 10:00:00",
            "CreateDate": "2015:01:01 12:00:00+02:00",
        }]
        with patch(RUN, return_value=_completed(records)) as run:
            times = ExifToolMetadataStore().read_times(Path("a.jpg"))

        assert times.date_time_original == datetime(2015, 1, 1, 10, 0, tzinfo=UTC)
        assert times.create_date == datetime(2015, 1, 1, 10, 0, tzinfo=UTC)
        assert times.media_create_date is None
        command = run.call_args[0][0]
        assert command[:2] == ["exiftool", "-j"]
        assert "-Duration" in command

    def test_zeroed_dates_are_absent(self):
        """Test that 0000:00:00 values are ignored."""
        records = [{"CreateDate": "0000:00:00 00:00:00", "MediaCreateDate": "0000:00:00 00:00:00"}]
        with patch(RUN, return_value=_completed(records)):
            assert ExifToolMetadataStore().read_times(Path("clip.mov")).best() is None

    def test_read_duration(self):
        """Test duration text and numeric values."""
        with patch(RUN, return_value=_completed([{"Duration": "2.04 s"}])):
            assert ExifToolMetadataStore().read_duration(Path("clip.mov")) == "2.04 s"
        with patch(RUN, return_value=_completed([{"Duration": 1.5}])):
            assert ExifToolMetadataStore().read_duration(Path("clip.mov")) == "1.5"

    def test_reads_are_cached(self):
        """Test that one exiftool call serves times and duration."""
        with patch(RUN, return_value=_completed([{"Duration": "2 s"}])) as run:
            store = ExifToolMetadataStore()
            store.read_duration(Path("clip.mov"))
            store.read_times(Path("clip.mov"))
        assert run.call_count == 1

    def test_failed_read_yields_nothing(self):
        """Test that a failing exiftool read is not an error."""
        error = subprocess.CalledProcessError(1, ["exiftool"], stderr="File not found")
        with patch(RUN, side_effect=error):
            store = ExifToolMetadataStore()
            assert store.read_times(Path("a.jpg")).best() is None
            assert store.read_duration(Path("a.jpg")) is None

    def test_missing_tool_on_read(self):
        """Test that a missing binary during reads yields nothing."""
        with patch(RUN, side_effect=FileNotFoundError()):
            assert ExifToolMetadataStore().read_times(Path("a.jpg")).best() is None


class TestExifToolWrite:
    """Tests for writing tags."""

    def test_image_assignments_with_gps(self):
        """Test image date tags and GPS arguments."""
        with patch(RUN, return_value=_completed([])) as run:
            ExifToolMetadataStore().write_metadata(
                Path("a.jpg"),
                datetime(2015, 1, 1, tzinfo=UTC),
                is_video=False,
                location=(48.8584, -2.2945),
            )

        command = run.call_args[0][0]
        assert command[:4] == ["exiftool", "-overwrite_original", "-q", "-m"]
        assert command[-1] == "a.jpg"
        assert "-DateTimeOriginal=2015:01:01 00:00:00" in command
        assert "-CreateDate=2015:01:01 00:00:00" in command
        assert "-ModifyDate=2015:01:01 00:00:00" in command
        assert "-GPSLatitude=48.8584" in command
        assert "-GPSLatitudeRef=N" in command
        assert "-GPSLongitude=2.2945" in command
        assert "-GPSLongitudeRef=W" in command

    def test_video_assignments(self):
        """Test QuickTime date tags with an explicit UTC zone."""
        with patch(RUN, return_value=_completed([])) as run:
            ExifToolMetadataStore().write_metadata(
                Path("clip.mp4"), datetime(2016, 8, 1, 9, 0, tzinfo=UTC), is_video=True, location=(1.0, 2.0)
            )

        command = run.call_args[0][0]
        for tag in ("CreateDate", "ModifyDate", "MediaCreateDate", "MediaModifyDate", "TrackCreateDate", "TrackModifyDate"):
            assert f"-{tag}=2016:08:01 09:00:00+00:00" in command
        assert not any(arg.startswith("-GPS") for arg in command)
        assert not any(arg.startswith("-DateTimeOriginal") for arg in command)

    def test_write_invalidates_cache(self):
        """Test that tags are read again after a write."""
        with patch(RUN, return_value=_completed([{"DateTimeOriginal": "2015:01:01 00:00:00"}])) as run:
            store = ExifToolMetadataStore()
            store.read_times(Path("a.jpg"))
            store.write_metadata(Path("a.jpg"), datetime(2015, 1, 1, tzinfo=UTC), is_video=False)
            store.read_times(Path("a.jpg"))
        assert run.call_count == 3

    def test_process_error(self):
        """Test that a failed write raises MetadataWriteError."""
        error = subprocess.CalledProcessError(1, ["exiftool"], stderr="Error: Not a valid JPG")
        with patch(RUN, side_effect=error):
            with pytest.raises(MetadataWriteError) as exc_info:
                ExifToolMetadataStore().write_metadata(Path("a.jpg"), datetime(2015, 1, 1, tzinfo=UTC), False)
        assert exc_info.value.context["stderr"] == "Error: Not a valid JPG"

    def test_timeout(self):
        """Test that a hung exiftool raises MetadataWriteError."""
        with patch(RUN, side_effect=subprocess.TimeoutExpired(["exiftool"], 60)):
            with pytest.raises(MetadataWriteError):
                ExifToolMetadataStore().write_metadata(Path("a.jpg"), datetime(2015, 1, 1, tzinfo=UTC), False)

    def test_missing_tool(self):
        """Test that a missing binary raises ToolNotFoundError."""
        with patch(RUN, side_effect=FileNotFoundError()):
            with pytest.raises(ToolNotFoundError):
                ExifToolMetadataStore().write_metadata(Path("a.jpg"), datetime(2015, 1, 1, tzinfo=UTC), False)
