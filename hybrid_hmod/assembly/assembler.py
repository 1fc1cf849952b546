"""Image assembly pipeline: copy, then text patch, then binary patch."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional, Union

from hybrid_hmod.domain import Archive
from hybrid_hmod.logging import LoggerFactory
from hybrid_hmod.profiles import ProfileId, VersionProfile, resolve_profile

from .binary_patch import patch_binary_files
from .copy import copy_entries
from .filesystem import DiskFilesystem, Filesystem
from .layout import BINARY_TARGETS, build_binary_patch_spec
from .models import AssemblyResult, CopyRule, Stage, StageResult, TextPatch
from .text_patch import patch_text_files


class ImageAssembler:
    """Builds one image tree from one decoded archive.

    Stages run strictly in order and each reads what the previous one
    wrote. Inside a stage every target is attempted even if an earlier one
    failed, but a stage with any failure stops the pipeline before the next
    stage starts. Nothing is rolled back.

    One assembler owns its destination; running two against the same tree at
    the same time is not supported.
    """

    def __init__(
        self,
        destination: Union[str, Path],
        filesystem: Optional[Filesystem] = None,
        binary_targets: Mapping[str, str] = BINARY_TARGETS,
    ) -> None:
        self.destination = Path(destination)
        self.filesystem = filesystem if filesystem is not None else DiskFilesystem(destination)
        self.binary_targets = binary_targets

    def assemble(
        self,
        archive: Archive,
        profile: Union[VersionProfile, ProfileId, str],
        copy_spec: Iterable[CopyRule],
        text_patch_spec: Iterable[TextPatch],
    ) -> AssemblyResult:
        """Run the copy, text patch and binary patch stages.

        Args:
            archive: Decoded dump archive
            profile: Profile (or its id or token) selecting the binary patches
            copy_spec: Copy rules, applied in order
            text_patch_spec: Text patches, applied in order

        Returns:
            AssemblyResult with one StageResult per stage that ran

        Raises:
            UnknownVersionError: If ``profile`` is not a known identity; this
                is raised before anything is written
        """
        if not isinstance(profile, VersionProfile):
            profile = resolve_profile(profile)
        binary_patch_spec = build_binary_patch_spec(profile, self.binary_targets)
        copy_rules = tuple(copy_spec)
        text_patches = tuple(text_patch_spec)
        log = LoggerFactory.for_assembly(profile=profile.id.name)

        stages: list[tuple[Stage, Callable[[], StageResult]]] = [
            (Stage.COPY, lambda: copy_entries(archive, copy_rules, self.filesystem)),
            (Stage.TEXT_PATCH, lambda: patch_text_files(text_patches, self.filesystem)),
            (
                Stage.BINARY_PATCH,
                lambda: patch_binary_files(binary_patch_spec, self.filesystem),
            ),
        ]

        results: list[StageResult] = []
        for stage, run in stages:
            log.debug(f"Stage {stage.value} started")
            result = run()
            results.append(result)
            if not result.ok:
                log.debug(
                    f"Stage {stage.value} failed with {len(result.errors)} error(s), "
                    "halting assembly"
                )
                break
            log.debug(f"Stage {stage.value} finished: {len(result.changes)} changes")

        return AssemblyResult(profile, self.destination, tuple(results))


def assemble(
    archive: Archive,
    profile: Union[VersionProfile, ProfileId, str],
    copy_spec: Iterable[CopyRule],
    text_patch_spec: Iterable[TextPatch],
    destination: Union[str, Path],
    *,
    filesystem: Optional[Filesystem] = None,
    binary_targets: Mapping[str, str] = BINARY_TARGETS,
) -> AssemblyResult:
    """Assemble ``archive`` into ``destination``; see ImageAssembler.assemble."""
    assembler = ImageAssembler(destination, filesystem=filesystem, binary_targets=binary_targets)
    return assembler.assemble(archive, profile, copy_spec, text_patch_spec)
