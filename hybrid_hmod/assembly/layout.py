"""Layout of the NES-on-SNES hybrid HMOD.

Where each file of the NES Classic dump lands in the HMOD, which scripts get
their paths rewritten, and which binaries receive the profile's byte patches.
The dump's ``/usr/share`` tree moves to ``/etc/share`` (and the game library
to ``/etc/nesgames``) so it does not collide with the SNES system files.
"""

from __future__ import annotations

from typing import Mapping

from hybrid_hmod.profiles import CLOVER_MCP, KACHIKACHI, REEDPLAYER, VersionProfile

from .models import BinaryPatchTarget, CopyRule, TextPatch, TextSubstitution


# Logical binary patch target -> image path
BINARY_TARGETS: Mapping[str, str] = {
    CLOVER_MCP: "bin/clover-mcp-nes",
    KACHIKACHI: "bin/kachikachi",
    REEDPLAYER: "bin/ReedPlayer-Clover-nes",
}

COPY_SPEC: tuple[CopyRule, ...] = (
    # /bin
    CopyRule("usr/bin/clover-factory-reset", "bin/clover-factory-reset-nes"),
    CopyRule("usr/bin/clover-kachikachi", "bin/clover-kachikachi"),
    CopyRule("usr/bin/clover-mcp", "bin/clover-mcp-nes"),
    CopyRule("usr/bin/clover-menu-reset", "bin/clover-menu-reset-nes"),
    CopyRule("usr/bin/clover-production-test-menu", "bin/clover-production-test-menu-nes"),
    CopyRule("usr/bin/clover-ui", "bin/clover-ui-nes"),
    CopyRule("usr/bin/kachikachi", "bin/kachikachi"),
    CopyRule("usr/bin/ReedPlayer-Clover", "bin/ReedPlayer-Clover-nes"),
    # /usr/share
    CopyRule("usr/share/applications", "etc/share/applications"),
    CopyRule("usr/share/clover-mcp", "etc/share/clover-mcp"),
    CopyRule("usr/share/clover-ui", "etc/share/clover-ui"),
    CopyRule("usr/share/kachikachi", "etc/share/kachikachi"),
    CopyRule("usr/share/legal", "etc/share/legal"),
    CopyRule("usr/share/locale", "etc/share/locale"),
    CopyRule("usr/share/reed-libs", "etc/share/reed-libs"),
    # /lib
    CopyRule("usr/lib/liblzo2.so.2.0.0", "lib/liblzo2.so"),
    CopyRule("usr/lib/liblzo2.so.2.0.0", "lib/liblzo2.so.2"),
    CopyRule("usr/lib/liblzo2.so.2.0.0", "lib/liblzo2.so.2.0.0"),
    # game library
    CopyRule("usr/share/games/nes/kachikachi", "etc/nesgames"),
)


def _sub(pattern: str, replacement: str) -> TextSubstitution:
    return TextSubstitution(pattern, replacement)


SCRIPT_TEXT_PATCHES: tuple[TextPatch, ...] = (
    TextPatch(
        "etc/share/applications/clover-debug-menu.desktop",
        (_sub("Exec=/usr/bin/clover-debug-menu", "Exec=/bin/clover-debug-menu-nes"),),
    ),
    TextPatch(
        "etc/share/applications/clover-factory-reset.desktop",
        (_sub("Exec=/usr/bin/clover-factory-reset", "Exec=/bin/clover-factory-reset-nes"),),
    ),
    TextPatch(
        "etc/share/applications/clover-menu-reset.desktop",
        (_sub("Exec=/usr/bin/clover-menu-reset", "Exec=/bin/clover-menu-reset-nes"),),
    ),
    TextPatch(
        "etc/share/applications/clover-test-menu.desktop",
        (
            _sub(
                "Exec=/usr/bin/clover-production-test-menu",
                "Exec=/bin/clover-production-test-menu-nes",
            ),
        ),
    ),
    TextPatch(
        "etc/share/applications/clover-ui.desktop",
        (_sub("Exec=/usr/bin/clover-ui", "Exec=/bin/clover-ui-nes"),),
    ),
    TextPatch(
        "etc/share/applications/clover-mcp.desktop",
        (
            _sub("/usr/share/games/nes/kachikachi", "/etc/nesgames"),
            _sub("/usr/share/applications", "/etc/share/applications"),
            _sub("/usr/share/clover-mcp/", "/etc/share/clover-mcp/"),
        ),
    ),
    TextPatch("bin/clover-menu-reset-nes", (_sub("home-menu", "nesc-menu"),)),
    TextPatch(
        "bin/clover-ui-nes",
        (
            _sub("ReedPlayer-Clover", "ReedPlayer-Clover-nes"),
            _sub("/usr/share/", "/etc/share/"),
        ),
    ),
)

GAME_DESKTOP_SUBSTITUTIONS: tuple[TextSubstitution, ...] = (
    _sub("/usr/bin/clover-kachikachi", "/bin/clover-kachikachi-wr"),
    _sub("/usr/share/games/nes/kachikachi", "/etc/nesgames"),
)


def game_desktop_path(game_code: str) -> str:
    return f"etc/nesgames/{game_code}/{game_code}.desktop"


def build_text_patch_spec(profile: VersionProfile) -> tuple[TextPatch, ...]:
    """Script patches plus one .desktop patch per game in the profile's dump."""
    game_patches = tuple(
        TextPatch(game_desktop_path(code), GAME_DESKTOP_SUBSTITUTIONS)
        for code in sorted(profile.content_identifiers)
    )
    return SCRIPT_TEXT_PATCHES + game_patches


def build_binary_patch_spec(
    profile: VersionProfile, binary_targets: Mapping[str, str] = BINARY_TARGETS
) -> tuple[BinaryPatchTarget, ...]:
    """Resolve the profile's logical patch targets to image paths.

    Raises:
        KeyError: If the profile names a target with no image path
    """
    return tuple(
        BinaryPatchTarget(binary_targets[name], patches)
        for name, patches in profile.binary_patch_table.items()
    )
