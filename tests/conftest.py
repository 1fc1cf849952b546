"""
Pytest configuration and shared fixtures for hybrid-hmod tests.

Dump archives are built on the fly with the standard library's tarfile and
gzip modules, so every test reads a real .tar.gz stream.
"""

import gzip
import io
import tarfile
from pathlib import Path
from typing import Callable, Iterable, Optional, Tuple

import pytest
from loguru import logger

from hybrid_hmod.bundle import BUNDLED_HMOD_FILES, BUNDLED_LAUNCHER_FILES
from hybrid_hmod.profiles import PROFILES, ProfileId
from hybrid_hmod.profiles.catalog import USA_EUR_GAMES

Member = Tuple[str, Optional[bytes]]


def _tar_bytes(members: Iterable[Member], tar_format: int) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w", format=tar_format) as tar:
        for name, content in members:
            info = tarfile.TarInfo(name)
            if content is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            else:
                info.size = len(content)
                info.mode = 0o644
                tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


# ==============================================================================
# Archive Fixtures
# ==============================================================================


@pytest.fixture
def build_tar() -> Callable[..., bytes]:
    """
    Fixture providing a builder for uncompressed tar streams.

    Members are (name, content) pairs; a content of None makes a directory.
    """

    def _build(members: Iterable[Member], tar_format: int = tarfile.GNU_FORMAT) -> bytes:
        return _tar_bytes(members, tar_format)

    return _build


@pytest.fixture
def build_tar_gz(build_tar) -> Callable[..., bytes]:
    """Fixture providing a builder for gzip compressed tar streams."""

    def _build(members: Iterable[Member], tar_format: int = tarfile.GNU_FORMAT) -> bytes:
        return gzip.compress(build_tar(members, tar_format))

    return _build


# ==============================================================================
# NES Classic Dump Fixtures
# ==============================================================================

DESKTOP_FILES = {
    "clover-debug-menu.desktop": "Exec=/usr/bin/clover-debug-menu\n",
    "clover-factory-reset.desktop": "Exec=/usr/bin/clover-factory-reset\n",
    "clover-menu-reset.desktop": "Exec=/usr/bin/clover-menu-reset\n",
    "clover-test-menu.desktop": "Exec=/usr/bin/clover-production-test-menu\n",
    "clover-ui.desktop": "Exec=/usr/bin/clover-ui\n",
    "clover-mcp.desktop": (
        "Exec=/usr/bin/clover-mcp /usr/share/games/nes/kachikachi "
        "/usr/share/applications\nIcon=/usr/share/clover-mcp/icon.png\n"
    ),
}

GAME_DESKTOP = (
    "[Desktop Entry]\n"
    "Exec=/usr/bin/clover-kachikachi /usr/share/games/nes/kachikachi/{code}/{code}.nes\n"
    "Icon=/usr/share/games/nes/kachikachi/{code}/{code}.png\n"
)


def _binary(size: int, offsets: Iterable[int]) -> bytes:
    data = bytearray(size)
    for offset in offsets:
        data[offset : offset + 3] = b"usr"
    return bytes(data)


def nesc_members(profile_id: ProfileId = ProfileId.NES_102) -> list:
    """Members of a small but structurally complete NES Classic dump."""
    table = PROFILES[profile_id].binary_patch_table
    offsets = {name: [patch.offset for patch in patches] for name, patches in table.items()}
    members = [
        ("./", None),
        ("usr/", None),
        ("usr/bin/", None),
        ("usr/bin/clover-factory-reset", b"#!/bin/sh\nreset\n"),
        ("usr/bin/clover-kachikachi", b"#!/bin/sh\nexec kachikachi \"$@\"\n"),
        ("usr/bin/clover-mcp", _binary(0x21000, offsets["clover-mcp"])),
        ("usr/bin/clover-menu-reset", b"#!/bin/sh\nrm -rf /var/lib/home-menu\n"),
        ("usr/bin/clover-production-test-menu", b"#!/bin/sh\ntest\n"),
        ("usr/bin/clover-ui", b"#!/bin/sh\nexec ReedPlayer-Clover /usr/share/clover-ui\n"),
        ("usr/bin/kachikachi", _binary(0x61000, offsets["kachikachi"])),
        ("usr/bin/ReedPlayer-Clover", _binary(0x12C200, offsets["reedplayer"])),
        ("usr/lib/liblzo2.so.2.0.0", b"\x7fELF lzo"),
    ]
    for name, text in DESKTOP_FILES.items():
        members.append((f"usr/share/applications/{name}", text.encode()))
    for share in ("clover-mcp", "clover-ui", "kachikachi", "legal", "locale", "reed-libs"):
        members.append((f"usr/share/{share}/README", f"{share}\n".encode()))
    members.append(("usr/share/locale/en/", None))
    for code in sorted(USA_EUR_GAMES):
        base = f"usr/share/games/nes/kachikachi/{code}"
        members.append((f"{base}/{code}.desktop", GAME_DESKTOP.format(code=code).encode()))
        members.append((f"{base}/{code}.nes", b"NES\x1a"))
    return members


@pytest.fixture
def nesc_dump(tmp_path, build_tar_gz) -> Path:
    """
    Fixture providing a NES Classic v1.0.2 dump in ``tmp_path/dump``.

    Returns:
        Path to the dump archive, named as the real release archive.
    """
    dump_dir = tmp_path / "dump"
    dump_dir.mkdir()
    dump_path = dump_dir / ProfileId.NES_102.token
    dump_path.write_bytes(build_tar_gz(nesc_members(ProfileId.NES_102)))
    return dump_path


@pytest.fixture
def hmod_dir(tmp_path) -> Path:
    """Fixture providing an HMOD directory holding the bundled scaffold."""
    root = tmp_path / "nesc_hybrid_system.hmod"
    for relative in BUNDLED_HMOD_FILES:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"bundled")
    return root


@pytest.fixture
def launcher_dir(tmp_path) -> Path:
    """Fixture providing a directory holding the CLV-S-00NES launcher."""
    root = tmp_path / "launcher"
    for relative in BUNDLED_LAUNCHER_FILES:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"bundled")
    return root


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def temp_settings_file(tmp_path) -> Path:
    """
    Fixture providing a temporary settings file path.

    Args:
        tmp_path: pytest's built-in temporary directory fixture.

    Returns:
        Path to a temporary settings file.
    """
    settings_dir = tmp_path / ".config" / "hybrid-hmod"
    settings_dir.mkdir(parents=True, exist_ok=True)
    return settings_dir / "settings.json"


@pytest.fixture(autouse=True)
def reset_logging():
    """
    Auto-use fixture that drops loguru sinks added during a test.

    Sinks point at per-test temporary directories and must not outlive them.
    """
    yield
    logger.remove()
