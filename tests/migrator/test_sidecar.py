"""Tests for sidecar parsing."""

import json
from datetime import datetime, timezone

import pytest

from conftest import write_sidecar
from gphotos_migrate.common import ParseError
from gphotos_migrate.migrator.metadata import parse_sidecar


class TestParseSidecar:
    """Tests for parse_sidecar function."""

    def test_photo_taken_time(self, tmp_path):
        """Test that photoTakenTime is read as UTC."""
        path = write_sidecar(tmp_path / "photo.jpg.json", taken_timestamp=1420070400)

        sidecar = parse_sidecar(path)
        assert sidecar.taken_time == datetime(2015, 1, 1, tzinfo=timezone.utc)
        assert sidecar.path == path

    def test_taken_time_wins_over_creation_time(self, tmp_path):
        """Test field precedence."""
        path = write_sidecar(
            tmp_path / "a.json",
            taken_timestamp=1420070400,
            creation_timestamp=1600000000,
        )
        assert parse_sidecar(path).taken_time.year == 2015

    def test_creation_time_fallback(self, tmp_path):
        """Test that creationTime is used when photoTakenTime is missing."""
        path = write_sidecar(tmp_path / "a.json", creation_timestamp=1600000000)
        assert parse_sidecar(path).taken_time == datetime.fromtimestamp(1600000000, tz=timezone.utc)

    def test_null_taken_time_falls_through(self, tmp_path):
        """Test that a null photoTakenTime does not become the epoch."""
        path = tmp_path / "a.json"
        path.write_text(json.dumps({
            "photoTakenTime": {"timestamp": None},
            "creationTime": {"timestamp": "1600000000"},
        }), encoding="utf-8")

        assert parse_sidecar(path).taken_time.year == 2020

    def test_no_timestamps(self, tmp_path):
        """Test a sidecar without any timestamp."""
        path = write_sidecar(tmp_path / "a.json")
        assert parse_sidecar(path).taken_time is None

    def test_location(self, tmp_path):
        """Test geoData coordinates."""
        path = write_sidecar(tmp_path / "a.json", taken_timestamp=1, latitude=-33.8568, longitude=151.2153)

        sidecar = parse_sidecar(path)
        assert sidecar.has_location
        assert sidecar.latitude == pytest.approx(-33.8568)
        assert sidecar.longitude == pytest.approx(151.2153)

    def test_zero_location_is_absent(self, tmp_path):
        """Test that 0.0/0.0 means no location."""
        path = write_sidecar(tmp_path / "a.json", latitude=0.0, longitude=0.0)

        sidecar = parse_sidecar(path)
        assert not sidecar.has_location
        assert sidecar.latitude is None

    def test_geo_data_exif_fallback(self, tmp_path):
        """Test that geoDataExif is used when geoData is zero."""
        path = tmp_path / "a.json"
        path.write_text(json.dumps({
            "geoData": {"latitude": 0.0, "longitude": 0.0},
            "geoDataExif": {"latitude": 52.52, "longitude": 13.405},
        }), encoding="utf-8")

        sidecar = parse_sidecar(path)
        assert sidecar.latitude == pytest.approx(52.52)
        assert sidecar.longitude == pytest.approx(13.405)

    def test_malformed_raises(self, tmp_path):
        """Test that an unreadable sidecar raises ParseError."""
        path = tmp_path / "a.json"
        path.write_text("not json", encoding="utf-8")

        with pytest.raises(ParseError):
            parse_sidecar(path)
