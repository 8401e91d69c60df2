"""Tests for Takeout source tree discovery."""

from gphotos_migrate.migrator.source_tree import (
    SourceTree,
    count_media_files,
    find_source_roots,
    is_reserved_folder,
    list_media_files,
    parse_date_folder,
)


class TestParseDateFolder:
    """Tests for parse_date_folder function."""

    def test_date_folder(self):
        """Test the Photos from YYYY pattern."""
        assert parse_date_folder("Photos from 2015") == 2015

    def test_other_names(self):
        """Test that anything else is an album."""
        assert parse_date_folder("Photos from 15") is None
        assert parse_date_folder("Photos from 2015 (1)") is None
        assert parse_date_folder("photos from 2015") is None
        assert parse_date_folder("2020 Trip") is None


class TestIsReservedFolder:
    """Tests for is_reserved_folder function."""

    def test_prefixes(self):
        """Test Untitled and Failed prefixes."""
        prefixes = ["Untitled", "Failed"]
        assert is_reserved_folder("Untitled(3)", prefixes)
        assert is_reserved_folder("Failed Videos", prefixes)
        assert not is_reserved_folder("My Untitled Album", prefixes)


class TestFindSourceRoots:
    """Tests for find_source_roots function."""

    def test_multiple_parts(self, tmp_path):
        """Test one root per extracted archive part."""
        (tmp_path / "takeout-002" / "Google Photos").mkdir(parents=True)
        (tmp_path / "takeout-001" / "Takeout" / "Google Photos").mkdir(parents=True)

        assert find_source_roots(tmp_path, ["Google Photos"]) == [
            tmp_path / "takeout-001" / "Takeout" / "Google Photos",
            tmp_path / "takeout-002" / "Google Photos",
        ]

    def test_no_descent_into_roots(self, tmp_path):
        """Test that an album named like a root is not a second root."""
        (tmp_path / "Google Photos" / "Google Photos").mkdir(parents=True)

        assert find_source_roots(tmp_path, ["Google Photos"]) == [tmp_path / "Google Photos"]

    def test_takeout_is_root(self, tmp_path):
        """Test pointing directly at a root."""
        root = tmp_path / "Google Photos"
        root.mkdir()

        assert find_source_roots(root, ["Google Photos"]) == [root]

    def test_no_roots(self, tmp_path):
        """Test an export without any root."""
        (tmp_path / "Album").mkdir()
        assert find_source_roots(tmp_path, ["Google Photos"]) == []


class TestListing:
    """Tests for media listing helpers."""

    def test_list_media_files(self, tmp_path):
        """Test that sidecars and hidden files are excluded."""
        for name in ("b.jpg", "a.MOV", "a.MOV.json", ".DS_Store", "._b.jpg", "notes.txt"):
            (tmp_path / name).write_bytes(b"x")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "c.jpg").write_bytes(b"x")

        assert [p.name for p in list_media_files(tmp_path)] == ["a.MOV", "b.jpg"]

    def test_count_media_files(self, tmp_path):
        """Test the recursive count."""
        (tmp_path / "a").mkdir()
        (tmp_path / "a" / "1.jpg").write_bytes(b"x")
        (tmp_path / "a" / "1.jpg.json").write_bytes(b"x")
        (tmp_path / "2.mp4").write_bytes(b"x")

        assert count_media_files(tmp_path) == 2


class TestSourceTree:
    """Tests for SourceTree.folders()."""

    def test_folders(self, tmp_path):
        """Test date folders, albums and skipped folders."""
        root = tmp_path / "Google Photos"
        for name in ("Photos from 2019", "Holiday", "Untitled(1)", "Failed Videos", ".hidden"):
            (root / name).mkdir(parents=True)
        (root / "stray.jpg").write_bytes(b"x")

        tree = SourceTree(roots=[root], reserved_prefixes=["Untitled", "Failed"])
        folders = list(tree.folders())

        assert [(f.name, f.year) for f in folders] == [("Holiday", None), ("Photos from 2019", 2019)]
        assert folders[0].is_album
        assert not folders[1].is_album
        assert sorted(p.name for p in tree.skipped_folders) == ["Failed Videos", "Untitled(1)"]

    def test_skipped_recorded_once(self, tmp_path):
        """Test that repeated iteration does not duplicate skipped folders."""
        root = tmp_path / "Google Photos"
        (root / "Untitled").mkdir(parents=True)
        tree = SourceTree(roots=[root])

        list(tree.folders())
        list(tree.folders())

        assert len(tree.skipped_folders) == 1
