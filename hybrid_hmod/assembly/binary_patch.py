"""Binary patch stage: fixed-offset overwrites in copied executables."""

from __future__ import annotations

import os
from typing import Iterable

from hybrid_hmod.exceptions import (
    AssemblyError,
    ImageIOError,
    OffsetOutOfRangeError,
    TargetMissingError,
)
from hybrid_hmod.logging import LoggerFactory

from .filesystem import Filesystem
from .models import BinaryPatchTarget, ChangeAction, FileChange, Stage, StageResult


def patch_binary_file(target: BinaryPatchTarget, filesystem: Filesystem) -> list[FileChange]:
    """Overwrite each patch's bytes in place through one open handle.

    Every patch is range checked before the first write, so a bad table
    leaves the file untouched. File length never changes.

    Raises:
        TargetMissingError: If the file is not in the image
        OffsetOutOfRangeError: If a patch would write past the end of the file
    """
    if not filesystem.is_file(target.path):
        raise TargetMissingError(target.path, Stage.BINARY_PATCH.value)

    changes: list[FileChange] = []
    with filesystem.open_rw(target.path) as handle:
        size = handle.seek(0, os.SEEK_END)
        for patch in target.patches:
            if patch.end > size:
                raise OffsetOutOfRangeError(
                    target.path, patch.offset, len(patch.replacement), size
                )
        for patch in target.patches:
            handle.seek(patch.offset)
            handle.write(patch.replacement)
            changes.append(
                FileChange(
                    Stage.BINARY_PATCH,
                    target.path,
                    ChangeAction.PATCH,
                    f"{patch.offset:#x}: {patch.replacement.hex(' ')}",
                )
            )
    return changes


def patch_binary_files(
    binary_patch_spec: Iterable[BinaryPatchTarget], filesystem: Filesystem
) -> StageResult:
    """Apply every binary patch target; a failing target does not stop the others."""
    log = LoggerFactory.for_assembly()
    targets = list(binary_patch_spec)
    paths = [target.path for target in targets]
    duplicates = sorted({path for path in paths if paths.count(path) > 1})
    if duplicates:
        raise ValueError(f"Binary patch targets listed more than once: {duplicates}")

    changes: list[FileChange] = []
    errors: list[AssemblyError] = []
    for target in targets:
        try:
            applied = patch_binary_file(target, filesystem)
        except OSError as os_error:
            error = ImageIOError(target.path, Stage.BINARY_PATCH.value, os_error)
            log.debug(f"Binary patch of {target.path} failed: {error}")
            errors.append(error)
            continue
        except AssemblyError as error:
            log.debug(f"Binary patch of {target.path} failed: {error}")
            errors.append(error)
            continue
        log.trace(f"Patched {filesystem.describe(target.path)} at {len(applied)} offsets")
        changes.extend(applied)
    return StageResult(Stage.BINARY_PATCH, tuple(changes), tuple(errors))
