"""Tests for the timestamp resolution cascade."""

from datetime import datetime, timezone

import pytest

from conftest import write_sidecar
from gphotos_migrate.migrator.metadata import EmbeddedTimes, MetadataLocator, SidecarIndex
from gphotos_migrate.migrator.timestamps import (
    UNKNOWN_BUCKET,
    Provenance,
    ResolvedTimestamp,
    TimestampResolver,
    folder_year_instant,
    is_valid_year,
)

UTC = timezone.utc


@pytest.fixture
def make_resolver(tmp_path, fake_store):
    def _make():
        return TimestampResolver(MetadataLocator(SidecarIndex.build([tmp_path])), fake_store)
    return _make


class TestIsValidYear:
    """Tests for is_valid_year function."""

    @pytest.mark.parametrize("value", [2015, "1999", "0001", 9999])
    def test_valid(self, value):
        """Test four-digit years."""
        assert is_valid_year(value)

    @pytest.mark.parametrize("value", [512, "20155", "", "abcd", None, -2015])
    def test_invalid(self, value):
        """Test everything else."""
        assert not is_valid_year(value)


class TestResolvedTimestamp:
    """Tests for ResolvedTimestamp."""

    def test_bucket_from_year(self):
        """Test that the bucket is the four-digit year."""
        resolved = ResolvedTimestamp(datetime(2015, 1, 1, tzinfo=UTC), Provenance.SIDECAR)
        assert resolved.bucket == "2015"
        assert resolved.is_precise

    def test_unresolved_bucket(self):
        """Test that no instant means the Unknown bucket."""
        resolved = ResolvedTimestamp(None, Provenance.UNRESOLVED)
        assert resolved.bucket == UNKNOWN_BUCKET
        assert not resolved.is_precise

    def test_folder_year_is_not_precise(self):
        """Test that the mid-year placeholder is not a capture time."""
        assert not ResolvedTimestamp(folder_year_instant(2012), Provenance.FOLDER_YEAR).is_precise

    def test_folder_year_instant(self):
        """Test the placeholder instant."""
        assert folder_year_instant(2012) == datetime(2012, 7, 1, 12, 0, 0, tzinfo=UTC)


class TestTimestampResolver:
    """Tests for TimestampResolver.resolve()."""

    def test_sidecar_wins(self, tmp_path, fake_store, make_resolver):
        """Test that the sidecar beats embedded metadata and folder year."""
        media = tmp_path / "photo.jpg"
        media.write_bytes(b"x")
        write_sidecar(tmp_path / "photo.jpg.json", taken_timestamp=1420070400)
        fake_store.times["photo.jpg"] = EmbeddedTimes(date_time_original=datetime(2010, 5, 5, tzinfo=UTC))

        resolved = make_resolver().resolve(media, folder_year=2019)
        assert resolved.provenance is Provenance.SIDECAR
        assert resolved.instant == datetime(2015, 1, 1, tzinfo=UTC)
        assert resolved.bucket == "2015"
        assert resolved.sidecar is not None

    def test_sidecar_without_time_falls_to_embedded(self, tmp_path, fake_store, make_resolver):
        """Test that a timeless sidecar does not stop the cascade."""
        media = tmp_path / "photo.jpg"
        media.write_bytes(b"x")
        write_sidecar(tmp_path / "photo.jpg.json", latitude=1.5, longitude=2.5)
        fake_store.times["photo.jpg"] = EmbeddedTimes(date_time_original=datetime(2010, 5, 5, tzinfo=UTC))

        resolved = make_resolver().resolve(media)
        assert resolved.provenance is Provenance.EMBEDDED
        assert resolved.instant.year == 2010
        assert resolved.sidecar.has_location

    def test_image_ignores_create_date(self, tmp_path, fake_store, make_resolver):
        """Test that images only use DateTimeOriginal as capture time."""
        media = tmp_path / "photo.jpg"
        media.write_bytes(b"x")
        fake_store.times["photo.jpg"] = EmbeddedTimes(create_date=datetime(2011, 1, 1, tzinfo=UTC))

        resolved = make_resolver().resolve(media, folder_year=2013)
        assert resolved.provenance is Provenance.FOLDER_YEAR
        assert resolved.bucket == "2013"

    def test_video_uses_create_date(self, tmp_path, fake_store, make_resolver):
        """Test that videos fall back to CreateDate."""
        media = tmp_path / "clip.mp4"
        media.write_bytes(b"x")
        fake_store.times["clip.mp4"] = EmbeddedTimes(create_date=datetime(2016, 8, 1, tzinfo=UTC))

        resolved = make_resolver().resolve(media)
        assert resolved.provenance is Provenance.EMBEDDED
        assert resolved.bucket == "2016"

    def test_invalid_embedded_year_falls_through(self, tmp_path, fake_store, make_resolver):
        """Test that a non-four-digit year is skipped."""
        media = tmp_path / "photo.jpg"
        media.write_bytes(b"x")
        fake_store.times["photo.jpg"] = EmbeddedTimes(date_time_original=datetime(512, 1, 1, tzinfo=UTC))

        resolved = make_resolver().resolve(media, folder_year=2014)
        assert resolved.provenance is Provenance.FOLDER_YEAR
        assert resolved.instant == folder_year_instant(2014)

    def test_unresolved(self, tmp_path, make_resolver):
        """Test the Unknown bucket when nothing yields a year."""
        media = tmp_path / "photo.jpg"
        media.write_bytes(b"x")

        resolved = make_resolver().resolve(media)
        assert resolved.provenance is Provenance.UNRESOLVED
        assert resolved.instant is None
        assert resolved.bucket == UNKNOWN_BUCKET

    def test_lookup_name_overrides_file_name(self, tmp_path, make_resolver):
        """Test sidecar lookup under the source name of a renamed copy."""
        media = tmp_path / "out" / "photo_ab12cd34.jpg"
        media.parent.mkdir()
        media.write_bytes(b"x")
        write_sidecar(tmp_path / "src" / "photo.jpg.json", taken_timestamp=1420070400)

        resolved = make_resolver().resolve(media, lookup_name="photo.jpg")
        assert resolved.provenance is Provenance.SIDECAR

    def test_prefer_dir_selects_sidecar(self, tmp_path, make_resolver):
        """Test that the preferred directory decides between equal names."""
        media = tmp_path / "B" / "photo.jpg"
        write_sidecar(tmp_path / "A" / "photo.jpg.json", taken_timestamp=1420070400)
        write_sidecar(tmp_path / "B" / "photo.jpg.json", taken_timestamp=1262304000)
        media.write_bytes(b"x")

        resolved = make_resolver().resolve(media, prefer_dir=tmp_path / "B")
        assert resolved.bucket == "2010"
