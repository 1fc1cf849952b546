"""Text patch stage: rewrite paths inside scripts and .desktop files."""

from __future__ import annotations

import re
from typing import Iterable

from hybrid_hmod.exceptions import AssemblyError, ImageIOError, TargetMissingError
from hybrid_hmod.logging import LoggerFactory

from .filesystem import Filesystem
from .models import ChangeAction, FileChange, Stage, StageResult, TextPatch, TextSubstitution

# Undecodable bytes survive a decode/encode round trip untouched
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"


def apply_substitutions(
    text: str, substitutions: Iterable[TextSubstitution]
) -> tuple[str, int]:
    """Apply substitutions in order, each one to the previous one's output.

    A later pattern can therefore match text introduced by an earlier
    replacement.

    Returns:
        (new_text, total number of replacements made)
    """
    total = 0
    for substitution in substitutions:
        if substitution.regex:
            text, count = re.subn(substitution.pattern, substitution.replacement, text)
        else:
            count = text.count(substitution.pattern)
            text = text.replace(substitution.pattern, substitution.replacement)
        total += count
    return text, total


def patch_text_file(patch: TextPatch, filesystem: Filesystem) -> FileChange:
    """Rewrite one image file in place.

    Raises:
        TargetMissingError: If the file is not in the image
    """
    if not filesystem.is_file(patch.path):
        raise TargetMissingError(patch.path, Stage.TEXT_PATCH.value)
    text = filesystem.read_bytes(patch.path).decode(TEXT_ENCODING, TEXT_ERRORS)
    patched, count = apply_substitutions(text, patch.substitutions)
    filesystem.write_bytes(patch.path, patched.encode(TEXT_ENCODING, TEXT_ERRORS))
    return FileChange(
        Stage.TEXT_PATCH, patch.path, ChangeAction.SUBSTITUTE, f"{count} replacements"
    )


def patch_text_files(
    text_patch_spec: Iterable[TextPatch], filesystem: Filesystem
) -> StageResult:
    """Apply every text patch; a missing target does not stop the others."""
    log = LoggerFactory.for_assembly()
    changes: list[FileChange] = []
    errors: list[AssemblyError] = []
    for patch in text_patch_spec:
        try:
            change = patch_text_file(patch, filesystem)
        except OSError as os_error:
            error = ImageIOError(patch.path, Stage.TEXT_PATCH.value, os_error)
            log.debug(f"Text patch of {patch.path} failed: {error}")
            errors.append(error)
            continue
        except AssemblyError as error:
            log.debug(f"Text patch of {patch.path} failed: {error}")
            errors.append(error)
            continue
        log.trace(f"Patched {filesystem.describe(patch.path)}: {change.detail}")
        changes.append(change)
    return StageResult(Stage.TEXT_PATCH, tuple(changes), tuple(errors))
