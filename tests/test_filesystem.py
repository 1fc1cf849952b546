"""Tests for the disk and in-memory assembly filesystems."""

import pytest

from hybrid_hmod.assembly import DiskFilesystem, MemoryFilesystem
from hybrid_hmod.assembly.filesystem import normalize_image_path
from hybrid_hmod.exceptions import UnsafePathError


class TestNormalizeImagePath:
    """Test image-relative path normalization."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("etc/share", "etc/share"),
            ("etc//share/", "etc/share"),
            ("etc/./share", "etc/share"),
            ("etc/x/../share", "etc/share"),
            (".", ""),
        ],
    )
    def test_normalizes(self, raw, expected):
        """Test redundant separators and dot segments collapse."""
        assert normalize_image_path(raw) == expected

    @pytest.mark.parametrize("raw", ["/etc/passwd", "..", "../x", "etc/../../x"])
    def test_rejects_escapes(self, raw):
        """Test absolute paths and parent escapes are rejected."""
        with pytest.raises(UnsafePathError):
            normalize_image_path(raw)


class TestDiskFilesystem:
    """Test the on-disk destination tree."""

    def test_write_creates_parents(self, tmp_path):
        """Test writing a nested file creates its directories."""
        fs = DiskFilesystem(tmp_path / "hmod")

        fs.write_bytes("etc/share/legal/LICENSE", b"license")

        assert (tmp_path / "hmod" / "etc/share/legal/LICENSE").read_bytes() == b"license"
        assert fs.is_file("etc/share/legal/LICENSE")

    def test_open_rw_patches_in_place(self, tmp_path):
        """Test the read/write handle overwrites without truncating."""
        fs = DiskFilesystem(tmp_path)
        fs.write_bytes("bin/tool", b"/usr/share")

        with fs.open_rw("bin/tool") as handle:
            handle.seek(1)
            handle.write(b"etc")

        assert fs.read_bytes("bin/tool") == b"/etc/share"

    def test_make_dirs(self, tmp_path):
        """Test directory creation is idempotent."""
        fs = DiskFilesystem(tmp_path)

        fs.make_dirs("etc/nesgames")
        fs.make_dirs("etc/nesgames")

        assert (tmp_path / "etc" / "nesgames").is_dir()
        assert not fs.is_file("etc/nesgames")

    def test_symlink_escape_rejected(self, tmp_path):
        """Test a symlink inside the root cannot redirect writes outside it."""
        root = tmp_path / "hmod"
        outside = tmp_path / "outside"
        root.mkdir()
        outside.mkdir()
        (root / "link").symlink_to(outside, target_is_directory=True)
        fs = DiskFilesystem(root)

        with pytest.raises(UnsafePathError):
            fs.write_bytes("link/file", b"x")

        assert not (outside / "file").exists()


class TestMemoryFilesystem:
    """Test the in-memory destination tree."""

    def test_write_tracks_parent_directories(self):
        """Test parents of a written file are recorded as directories."""
        fs = MemoryFilesystem()

        fs.write_bytes("etc/share/x", b"x")

        assert fs.directories == {"etc", "etc/share"}
        assert fs.read_bytes("etc/share/x") == b"x"

    def test_file_cannot_become_parent(self):
        """Test writing below an existing file fails."""
        fs = MemoryFilesystem()
        fs.write_bytes("bin", b"file")

        with pytest.raises(NotADirectoryError):
            fs.write_bytes("bin/tool", b"x")

    def test_read_missing_file(self):
        """Test reading an absent file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            MemoryFilesystem().read_bytes("missing")

    def test_handle_writes_back_on_close(self):
        """Test changes through a handle are stored when it closes."""
        fs = MemoryFilesystem()
        fs.write_bytes("f", b"abc")

        handle = fs.open_rw("f")
        assert fs.open_handles == 1
        handle.seek(1)
        handle.write(b"X")
        handle.close()
        handle.close()

        assert fs.read_bytes("f") == b"aXc"
        assert fs.open_handles == 0
