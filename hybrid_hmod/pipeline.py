"""End-to-end build: dump archive in, populated HMOD directory out."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from hybrid_hmod.archive import open_archive
from hybrid_hmod.assembly import (
    COPY_SPEC,
    AssemblyResult,
    Filesystem,
    ImageAssembler,
    build_text_patch_spec,
)
from hybrid_hmod.profiles import ProfileId, VersionProfile, resolve_profile


def build_hmod(
    dump_path: Union[str, Path],
    profile: Union[VersionProfile, ProfileId, str],
    hmod_dir: Union[str, Path],
    filesystem: Optional[Filesystem] = None,
) -> AssemblyResult:
    """Read ``dump_path`` and assemble it into ``hmod_dir``.

    The profile is resolved before the dump is opened, so an unknown identity
    fails without touching the filesystem. The HMOD scaffold (install scripts
    and the like) is expected to already be in ``hmod_dir``.

    Raises:
        UnknownVersionError: If ``profile`` is not recognized
        ArchiveFormatError: If the dump is malformed
        ArchiveTruncatedError: If the dump is incomplete
    """
    if not isinstance(profile, VersionProfile):
        profile = resolve_profile(profile)
    archive = open_archive(dump_path)
    assembler = ImageAssembler(hmod_dir, filesystem=filesystem)
    return assembler.assemble(archive, profile, COPY_SPEC, build_text_patch_spec(profile))
