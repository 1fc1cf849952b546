"""Catalog of recognized NES/Famicom Classic dump versions.

Each profile lists the games its dump ships and the byte patches that retarget
its binaries from ``/usr/share`` to the HMOD's ``/etc`` tree. Offsets are
only valid for the exact dump they are listed under, so lookup is by exact
identity and there is no fallback profile.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Union

from hybrid_hmod.exceptions import UnknownVersionError


# ==============================================================================
# Profile Types
# ==============================================================================


class ProfileId(Enum):
    """Recognized dumps, valued by their release archive filename."""

    NES_102 = "dp-nes-release-v1.0.2-0-g99e37e1.tar.gz"
    NES_103 = "dp-nes-release-v1.0.3-0-gc4c703b.tar.gz"
    HVC_105 = "dp-hvc-release-v1.0.5-0-g2f04d11.tar.gz"

    @property
    def token(self) -> str:
        return self.value


class Region(Enum):
    USA_EUR = "usa-eur"
    JPN = "jpn"


@dataclass(frozen=True)
class BinaryPatch:
    """Fixed-width overwrite of ``replacement`` at ``offset``."""

    offset: int
    replacement: bytes

    def __post_init__(self) -> None:
        if self.offset < 0 or self.offset >= 2**64:
            raise ValueError(f"Patch offset out of range: {self.offset}")
        if not self.replacement:
            raise ValueError(f"Empty replacement at offset {self.offset:#x}")

    @property
    def end(self) -> int:
        return self.offset + len(self.replacement)


@dataclass(frozen=True)
class VersionProfile:
    id: ProfileId
    region: Region
    content_identifiers: frozenset[str]
    binary_patch_table: Mapping[str, tuple[BinaryPatch, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        for target, patches in self.binary_patch_table.items():
            offsets = [patch.offset for patch in patches]
            if len(offsets) != len(set(offsets)):
                raise ValueError(f"Duplicate patch offset for {target} in {self.id.name}")

    @property
    def token(self) -> str:
        return self.id.token


# ==============================================================================
# Catalog Data
# ==============================================================================

ETC = b"etc"  # 65 74 63, replaces "usr" in /usr/share paths
NESC = b"nesc"  # 6E 65 73 63

CLOVER_MCP = "clover-mcp"
KACHIKACHI = "kachikachi"
REEDPLAYER = "reedplayer"

USA_EUR_GAMES = frozenset(
    [
        "CLV-P-NAAAE", "CLV-P-NAACE", "CLV-P-NAADE", "CLV-P-NAAEE", "CLV-P-NAAFE",
        "CLV-P-NAAHE", "CLV-P-NAANE", "CLV-P-NAAPE", "CLV-P-NAAQE", "CLV-P-NAARE",
        "CLV-P-NAASE", "CLV-P-NAATE", "CLV-P-NAAUE", "CLV-P-NAAVE", "CLV-P-NAAWE",
        "CLV-P-NAAXE", "CLV-P-NAAZE", "CLV-P-NABBE", "CLV-P-NABCE", "CLV-P-NABJE",
        "CLV-P-NABKE", "CLV-P-NABME", "CLV-P-NABNE", "CLV-P-NABQE", "CLV-P-NABRE",
        "CLV-P-NABVE", "CLV-P-NABXE", "CLV-P-NACBE", "CLV-P-NACDE", "CLV-P-NACHE",
        "PRODUCTION-TESTS",
    ]
)

JPN_GAMES = frozenset(
    [
        "CLV-P-HAAAJ", "CLV-P-HAACJ", "CLV-P-HAADJ", "CLV-P-HAAEJ", "CLV-P-HAAHJ",
        "CLV-P-HAAMJ", "CLV-P-HAANJ", "CLV-P-HAAPJ", "CLV-P-HAAQJ", "CLV-P-HAARJ",
        "CLV-P-HAASJ", "CLV-P-HAAUJ", "CLV-P-HAAWJ", "CLV-P-HAAXJ", "CLV-P-HABBJ",
        "CLV-P-HABCJ", "CLV-P-HABLJ", "CLV-P-HABMJ", "CLV-P-HABNJ", "CLV-P-HABQJ",
        "CLV-P-HABRJ", "CLV-P-HABVJ", "CLV-P-HACAJ", "CLV-P-HACBJ", "CLV-P-HACCJ",
        "CLV-P-HACEJ", "CLV-P-HACHJ", "CLV-P-HACJJ", "CLV-P-HACLJ", "CLV-P-HACPJ",
        "PRODUCTION-TESTS",
    ]
)


def _table(kachikachi_offsets: tuple[int, int]) -> Mapping[str, tuple[BinaryPatch, ...]]:
    first, second = kachikachi_offsets
    return MappingProxyType(
        {
            CLOVER_MCP: (BinaryPatch(0x209C5, ETC),),
            KACHIKACHI: (BinaryPatch(first, ETC), BinaryPatch(second, ETC)),
            REEDPLAYER: (BinaryPatch(0x12C0B5, ETC), BinaryPatch(0x12C0FC, NESC)),
        }
    )


_USA_EUR_TABLE = _table((0x5D00D, 0x5D048))
_JPN_TABLE = _table((0x602BD, 0x602F8))

PROFILES: Mapping[ProfileId, VersionProfile] = MappingProxyType(
    {
        ProfileId.NES_102: VersionProfile(
            ProfileId.NES_102, Region.USA_EUR, USA_EUR_GAMES, _USA_EUR_TABLE
        ),
        ProfileId.NES_103: VersionProfile(
            ProfileId.NES_103, Region.USA_EUR, USA_EUR_GAMES, _USA_EUR_TABLE
        ),
        ProfileId.HVC_105: VersionProfile(
            ProfileId.HVC_105, Region.JPN, JPN_GAMES, _JPN_TABLE
        ),
    }
)

_missing = set(ProfileId) - set(PROFILES)
if _missing:
    raise RuntimeError(f"No profile defined for {sorted(p.name for p in _missing)}")


# ==============================================================================
# Lookup
# ==============================================================================


def known_tokens() -> list[str]:
    """Dump filenames in detection order."""
    return [profile_id.token for profile_id in ProfileId]


def resolve_profile(identity: Union[ProfileId, str]) -> VersionProfile:
    """Return the profile for a dump identity.

    Args:
        identity: A ProfileId, or its token (the dump's archive filename)

    Returns:
        The matching VersionProfile

    Raises:
        UnknownVersionError: If the identity is not an exact known token
    """
    if isinstance(identity, ProfileId):
        return PROFILES[identity]
    if not isinstance(identity, str):
        raise UnknownVersionError(repr(identity))
    try:
        profile_id = ProfileId(identity)
    except ValueError:
        raise UnknownVersionError(identity) from None
    return PROFILES[profile_id]
