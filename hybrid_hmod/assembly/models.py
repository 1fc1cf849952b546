"""Data models for image assembly."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from hybrid_hmod.exceptions import AssemblyError
from hybrid_hmod.profiles import BinaryPatch, VersionProfile


class Stage(Enum):
    COPY = "copy"
    TEXT_PATCH = "text-patch"
    BINARY_PATCH = "binary-patch"


class ChangeAction(Enum):
    WRITE = "write"
    MKDIR = "mkdir"
    SUBSTITUTE = "substitute"
    PATCH = "patch"


@dataclass(frozen=True)
class CopyRule:
    """Copy an archive file, or every entry below an archive directory."""

    source: str
    destination: str


@dataclass(frozen=True)
class TextSubstitution:
    """Replace every match of ``pattern``; literal unless ``regex`` is set."""

    pattern: str
    replacement: str
    regex: bool = False

    def __post_init__(self) -> None:
        if not self.pattern:
            raise ValueError("Substitution pattern cannot be empty")


@dataclass(frozen=True)
class TextPatch:
    """Substitutions applied in order, each to the output of the previous one."""

    path: str
    substitutions: tuple[TextSubstitution, ...]


@dataclass(frozen=True)
class BinaryPatchTarget:
    path: str
    patches: tuple[BinaryPatch, ...]

    def __post_init__(self) -> None:
        offsets = [patch.offset for patch in self.patches]
        if len(offsets) != len(set(offsets)):
            raise ValueError(f"Duplicate patch offset for {self.path}")


@dataclass(frozen=True)
class FileChange:
    stage: Stage
    path: str
    action: ChangeAction
    detail: str = ""


@dataclass(frozen=True)
class StageResult:
    stage: Stage
    changes: tuple[FileChange, ...] = ()
    errors: tuple[AssemblyError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class AssemblyResult:
    profile: VersionProfile
    destination: Path
    stages: tuple[StageResult, ...] = field(default_factory=tuple)

    @property
    def failed_stage(self) -> Optional[Stage]:
        for result in self.stages:
            if not result.ok:
                return result.stage
        return None

    @property
    def ok(self) -> bool:
        return self.failed_stage is None and len(self.stages) == len(Stage)

    @property
    def changes(self) -> tuple[FileChange, ...]:
        return tuple(change for result in self.stages for change in result.changes)

    @property
    def errors(self) -> tuple[AssemblyError, ...]:
        return tuple(error for result in self.stages for error in result.errors)

    def raise_on_error(self) -> None:
        """Raise the first recorded error, if any."""
        errors = self.errors
        if errors:
            raise errors[0]
