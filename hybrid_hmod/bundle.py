"""Checks on the files shipped with the tool and detection of the user's dump."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Union

from hybrid_hmod.exceptions import BundledAssetMissingError, DumpNotFoundError
from hybrid_hmod.profiles import ProfileId


# Non-copyrighted HMOD scaffold shipped with the tool, relative to the HMOD dir
BUNDLED_HMOD_FILES = (
    "install",
    "uninstall",
    "bin/switch_to_nes",
    "bin/switch_to_snes",
    "bin/switch_to_nes_child",
    "etc/nesgames/CLV-P-0SNES/CLV-P-0SNES.desktop",
    "etc/nesgames/CLV-P-0SNES/CLV-P-0SNES.png",
    "etc/nesgames/CLV-P-0SNES/CLV-P-0SNES_small.png",
)

# NES launcher "game" for the SNES menu, relative to the launcher dir
BUNDLED_LAUNCHER_FILES = (
    "CLV-S-00NES/CLV-S-00NES.desktop",
    "CLV-S-00NES/CLV-S-00NES.png",
    "CLV-S-00NES/CLV-S-00NES_small.png",
)


def find_missing(root: Path, paths: Iterable[str]) -> list[str]:
    """Paths under ``root`` that do not exist."""
    return [path for path in paths if not (root / path).exists()]


def verify_bundled_files(root: Union[str, Path], paths: Iterable[str]) -> None:
    """Raise for the first shipped file that has gone missing.

    Raises:
        BundledAssetMissingError: If any of ``paths`` is absent under ``root``
    """
    root = Path(root)
    missing = find_missing(root, paths)
    if missing:
        raise BundledAssetMissingError(missing[0], str(root))


def verify_bundled_hmod_files(hmod_dir: Union[str, Path]) -> None:
    verify_bundled_files(hmod_dir, BUNDLED_HMOD_FILES)


def verify_bundled_launcher_files(launcher_dir: Union[str, Path]) -> None:
    verify_bundled_files(launcher_dir, BUNDLED_LAUNCHER_FILES)


def detect_dump(dump_dir: Union[str, Path]) -> tuple[ProfileId, Path]:
    """Find the first recognized dump archive in ``dump_dir``.

    Candidates are tried in ProfileId order.

    Returns:
        (profile id, path to the archive)

    Raises:
        DumpNotFoundError: If no recognized dump is present
    """
    dump_dir = Path(dump_dir)
    for profile_id in ProfileId:
        candidate = dump_dir / profile_id.token
        if candidate.is_file():
            return profile_id, candidate
    raise DumpNotFoundError(str(dump_dir), [profile_id.token for profile_id in ProfileId])
