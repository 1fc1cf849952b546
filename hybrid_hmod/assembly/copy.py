"""Copy stage: place archive entries into the image tree."""

from __future__ import annotations

import posixpath
from typing import Iterable

from hybrid_hmod.archive.headers import normalize_member_name
from hybrid_hmod.domain import Archive
from hybrid_hmod.exceptions import AssemblyError, ImageIOError, SourceMissingError
from hybrid_hmod.logging import LoggerFactory

from .filesystem import Filesystem, normalize_image_path
from .models import ChangeAction, CopyRule, FileChange, Stage, StageResult


def copy_rule(archive: Archive, rule: CopyRule, filesystem: Filesystem) -> list[FileChange]:
    """Copy one file or one subtree from the archive into the image.

    A source naming a file entry is written to ``rule.destination``.
    Otherwise the source is treated as a directory: every entry below it is
    written under the destination with its relative path preserved, and
    directory entries become (possibly empty) directories.

    Raises:
        SourceMissingError: If nothing in the archive matches the source
    """
    source = normalize_member_name(rule.source)
    destination = normalize_image_path(rule.destination)
    entry = archive.get(source)

    if entry is not None and entry.is_file:
        filesystem.write_bytes(destination, entry.content)
        return [FileChange(Stage.COPY, destination, ChangeAction.WRITE, source)]

    entries = archive.subtree(source)
    if not entries and entry is None:
        raise SourceMissingError(rule.source, rule.destination)

    filesystem.make_dirs(destination)
    changes = [FileChange(Stage.COPY, destination, ChangeAction.MKDIR, source)]
    lead = len(source) + 1 if source else 0
    for child in entries:
        target = posixpath.join(destination, child.path[lead:])
        if child.is_dir:
            filesystem.make_dirs(target)
            changes.append(FileChange(Stage.COPY, target, ChangeAction.MKDIR, child.path))
        else:
            filesystem.write_bytes(target, child.content)
            changes.append(FileChange(Stage.COPY, target, ChangeAction.WRITE, child.path))
    return changes


def copy_entries(
    archive: Archive, copy_spec: Iterable[CopyRule], filesystem: Filesystem
) -> StageResult:
    """Run every copy rule; a failing rule does not stop the others."""
    log = LoggerFactory.for_assembly()
    changes: list[FileChange] = []
    errors: list[AssemblyError] = []
    for rule in copy_spec:
        try:
            placed = copy_rule(archive, rule, filesystem)
        except OSError as os_error:
            error = ImageIOError(rule.destination, Stage.COPY.value, os_error)
            log.debug(f"Copy {rule.source} -> {rule.destination} failed: {error}")
            errors.append(error)
            continue
        except AssemblyError as error:
            log.debug(f"Copy {rule.source} -> {rule.destination} failed: {error}")
            errors.append(error)
            continue
        log.trace(f"Copied {rule.source} -> {rule.destination} ({len(placed)} paths)")
        changes.extend(placed)
    return StageResult(Stage.COPY, tuple(changes), tuple(errors))
