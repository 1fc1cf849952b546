"""Unpack a decoded archive onto disk."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from hybrid_hmod.assembly.filesystem import DiskFilesystem
from hybrid_hmod.domain import Archive
from hybrid_hmod.logging import LoggerFactory


def extract_archive(archive: Archive, destination: Union[str, Path]) -> int:
    """Write every entry of ``archive`` below ``destination``.

    Directories are created, files are written byte for byte. Paths that
    would land outside ``destination`` raise UnsafePathError.

    Returns:
        Number of entries written
    """
    log = LoggerFactory.for_archive()
    filesystem = DiskFilesystem(destination)
    Path(destination).mkdir(parents=True, exist_ok=True)
    written = 0
    for path in sorted(archive):
        entry = archive.get(path)
        if entry.is_dir:
            filesystem.make_dirs(path)
        else:
            filesystem.write_bytes(path, entry.content)
        log.trace(f"Extracted {filesystem.describe(path)}")
        written += 1
    return written
