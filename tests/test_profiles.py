"""Tests for the dump version catalog."""

import pytest

from hybrid_hmod.exceptions import UnknownVersionError
from hybrid_hmod.profiles import (
    CLOVER_MCP,
    KACHIKACHI,
    PROFILES,
    REEDPLAYER,
    BinaryPatch,
    ProfileId,
    Region,
    VersionProfile,
    known_tokens,
    resolve_profile,
)
from hybrid_hmod.profiles.catalog import JPN_GAMES, USA_EUR_GAMES


class TestCatalog:
    """Test the built-in profile table."""

    def test_every_id_has_a_profile(self):
        """Test the catalog covers every recognized dump."""
        assert set(PROFILES) == set(ProfileId)
        for profile_id, profile in PROFILES.items():
            assert profile.id is profile_id

    def test_known_tokens_in_detection_order(self):
        """Test tokens are listed in ProfileId order."""
        assert known_tokens() == [
            "dp-nes-release-v1.0.2-0-g99e37e1.tar.gz",
            "dp-nes-release-v1.0.3-0-gc4c703b.tar.gz",
            "dp-hvc-release-v1.0.5-0-g2f04d11.tar.gz",
        ]

    def test_regions(self):
        """Test each dump maps to its region's game list."""
        assert PROFILES[ProfileId.NES_102].region is Region.USA_EUR
        assert PROFILES[ProfileId.NES_103].content_identifiers == USA_EUR_GAMES
        assert PROFILES[ProfileId.HVC_105].region is Region.JPN
        assert PROFILES[ProfileId.HVC_105].content_identifiers == JPN_GAMES

    def test_game_lists(self):
        """Test each region ships 30 games plus the production test entry."""
        assert len(USA_EUR_GAMES) == 31
        assert len(JPN_GAMES) == 31
        assert "PRODUCTION-TESTS" in USA_EUR_GAMES
        assert "CLV-P-NAAAE" in USA_EUR_GAMES
        assert "CLV-P-HAAAJ" in JPN_GAMES

    def test_usa_patch_table(self):
        """Test the USA/EUR offsets and replacement bytes."""
        table = PROFILES[ProfileId.NES_102].binary_patch_table

        assert table[CLOVER_MCP] == (BinaryPatch(0x209C5, b"etc"),)
        assert [p.offset for p in table[KACHIKACHI]] == [0x5D00D, 0x5D048]
        assert table[REEDPLAYER] == (
            BinaryPatch(0x12C0B5, b"etc"),
            BinaryPatch(0x12C0FC, b"nesc"),
        )

    def test_jpn_kachikachi_offsets_differ(self):
        """Test the Famicom dump uses its own kachikachi offsets."""
        table = PROFILES[ProfileId.HVC_105].binary_patch_table

        assert [p.offset for p in table[KACHIKACHI]] == [0x602BD, 0x602F8]
        assert table[CLOVER_MCP] == PROFILES[ProfileId.NES_102].binary_patch_table[CLOVER_MCP]


class TestResolveProfile:
    """Test exact identity lookup."""

    def test_resolve_by_id(self):
        """Test resolving a ProfileId."""
        assert resolve_profile(ProfileId.NES_103) is PROFILES[ProfileId.NES_103]

    def test_resolve_by_token(self):
        """Test resolving a dump filename."""
        profile = resolve_profile("dp-hvc-release-v1.0.5-0-g2f04d11.tar.gz")

        assert profile.id is ProfileId.HVC_105
        assert profile.token == "dp-hvc-release-v1.0.5-0-g2f04d11.tar.gz"

    @pytest.mark.parametrize(
        "identity",
        [
            "dp-nes-release-v1.0.4-0-g0000000.tar.gz",
            "DP-NES-RELEASE-V1.0.2-0-G99E37E1.TAR.GZ",
            "dp-nes-release-v1.0.2-0-g99e37e1.tar",
            "",
        ],
    )
    def test_unknown_identity(self, identity):
        """Test there is no fuzzy or fallback matching."""
        with pytest.raises(UnknownVersionError) as excinfo:
            resolve_profile(identity)

        assert excinfo.value.identity == identity

    def test_non_string_identity(self):
        """Test a non-string identity is unknown rather than a TypeError."""
        with pytest.raises(UnknownVersionError):
            resolve_profile(102)


class TestProfileValidation:
    """Test profile and patch invariants."""

    def test_patch_end(self):
        """Test a patch's end offset."""
        assert BinaryPatch(0x10, b"etc").end == 0x13

    @pytest.mark.parametrize("offset", [-1, 2**64])
    def test_patch_offset_range(self, offset):
        """Test offsets must fit an unsigned 64-bit integer."""
        with pytest.raises(ValueError):
            BinaryPatch(offset, b"etc")

    def test_empty_replacement_rejected(self):
        """Test a patch must write at least one byte."""
        with pytest.raises(ValueError):
            BinaryPatch(0, b"")

    def test_duplicate_offsets_rejected(self):
        """Test two patches at one offset in the same target."""
        with pytest.raises(ValueError, match="Duplicate patch offset"):
            VersionProfile(
                ProfileId.NES_102,
                Region.USA_EUR,
                frozenset(),
                {"tool": (BinaryPatch(0x10, b"etc"), BinaryPatch(0x10, b"usr"))},
            )
