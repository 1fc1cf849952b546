"""End-to-end tests: dump archive on disk to populated HMOD directory."""

import pytest

from hybrid_hmod.archive import extract_archive, open_archive
from hybrid_hmod.assembly import MemoryFilesystem, Stage
from hybrid_hmod.domain import Archive, ArchiveEntry
from hybrid_hmod.exceptions import UnknownVersionError, UnsafePathError
from hybrid_hmod.pipeline import build_hmod
from hybrid_hmod.profiles import ProfileId


class TestBuildHmod:
    """Test building the HMOD from a full dump."""

    def test_build_from_dump(self, nesc_dump, tmp_path):
        """Test every stage succeeds and the key files are rewritten."""
        hmod = tmp_path / "hmod"

        result = build_hmod(nesc_dump, ProfileId.NES_102, hmod)

        assert result.ok, result.errors
        assert (hmod / "bin/clover-ui-nes").read_bytes() == (
            b"#!/bin/sh\nexec ReedPlayer-Clover-nes /etc/share/clover-ui\n"
        )
        assert (hmod / "bin/clover-menu-reset-nes").read_bytes().endswith(b"nesc-menu\n")
        assert (hmod / "etc/share/applications/clover-mcp.desktop").read_text() == (
            "Exec=/usr/bin/clover-mcp /etc/nesgames /etc/share/applications\n"
            "Icon=/etc/share/clover-mcp/icon.png\n"
        )
        game = (hmod / "etc/nesgames/CLV-P-NAAAE/CLV-P-NAAAE.desktop").read_text()
        assert "Exec=/bin/clover-kachikachi-wr /etc/nesgames/CLV-P-NAAAE/CLV-P-NAAAE.nes" in game
        assert (hmod / "lib/liblzo2.so.2").read_bytes() == b"\x7fELF lzo"
        assert (hmod / "etc/share/locale/en").is_dir()

    def test_binaries_patched_in_place(self, nesc_dump, tmp_path):
        """Test the profile's byte patches replace usr with etc and nesc."""
        hmod = tmp_path / "hmod"

        build_hmod(nesc_dump, ProfileId.NES_102.token, hmod)

        mcp = (hmod / "bin/clover-mcp-nes").read_bytes()
        reed = (hmod / "bin/ReedPlayer-Clover-nes").read_bytes()
        kachi = (hmod / "bin/kachikachi").read_bytes()
        assert len(mcp) == 0x21000
        assert mcp[0x209C5:0x209C8] == b"etc"
        assert reed[0x12C0B5:0x12C0B8] == b"etc"
        assert reed[0x12C0FC:0x12C100] == b"nesc"
        assert kachi[0x5D00D:0x5D010] == b"etc"
        assert kachi[0x5D048:0x5D04B] == b"etc"

    def test_wrong_region_profile_fails_on_games(self, nesc_dump, tmp_path):
        """Test a JPN profile against a USA dump fails in the text stage."""
        result = build_hmod(nesc_dump, ProfileId.HVC_105, tmp_path / "hmod")

        assert result.failed_stage is Stage.TEXT_PATCH
        # PRODUCTION-TESTS is shared by both regions
        assert len(result.errors) == 30

    def test_unknown_profile(self, nesc_dump, tmp_path):
        """Test an unknown identity is rejected before anything is written."""
        with pytest.raises(UnknownVersionError):
            build_hmod(nesc_dump, "dp-nes-release-v2.0.0.tar.gz", tmp_path / "hmod")

        assert not (tmp_path / "hmod").exists()

    def test_build_into_memory(self, nesc_dump):
        """Test the pipeline runs against an in-memory tree."""
        fs = MemoryFilesystem()

        result = build_hmod(nesc_dump, ProfileId.NES_102, "/hmod", filesystem=fs)

        assert result.ok
        assert "bin/kachikachi" in fs.files
        assert fs.open_handles == 0


class TestExtractArchive:
    """Test unpacking a decoded dump onto disk."""

    def test_extract(self, nesc_dump, tmp_path):
        """Test files and directories are written below the output."""
        out = tmp_path / "out"

        count = extract_archive(open_archive(nesc_dump), out)

        assert count > 0
        assert (out / "usr/bin/clover-ui").is_file()
        assert (out / "usr/share/locale/en").is_dir()

    def test_extract_rejects_escaping_path(self, tmp_path):
        """Test an entry pointing outside the output is refused."""
        archive = Archive.from_entries([ArchiveEntry.file("../evil", b"x")])

        with pytest.raises(UnsafePathError):
            extract_archive(archive, tmp_path / "out")

        assert not (tmp_path / "evil").exists()
