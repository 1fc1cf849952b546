"""Recognized dump versions and their patch tables."""

from .catalog import (
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

__all__ = [
    "resolve_profile",
    "known_tokens",
    "BinaryPatch",
    "ProfileId",
    "Region",
    "VersionProfile",
    "PROFILES",
    "CLOVER_MCP",
    "KACHIKACHI",
    "REEDPLAYER",
]
