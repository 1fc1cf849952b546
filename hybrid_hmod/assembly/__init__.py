"""HMOD image assembly from a decoded dump archive.

Main Functions:
    - assemble(): Run copy, text patch and binary patch stages in order
    - copy_entries(): Copy stage
    - patch_text_files(): Text patch stage
    - patch_binary_files(): Binary patch stage
    - build_text_patch_spec(): Script and game .desktop patches for a profile
    - build_binary_patch_spec(): Binary patch targets for a profile

Filesystems:
    - DiskFilesystem: Destination directory on disk
    - MemoryFilesystem: In-memory tree for tests

Data Models:
    - CopyRule, TextPatch, TextSubstitution, BinaryPatchTarget
    - FileChange, StageResult, AssemblyResult
"""

from .assembler import ImageAssembler, assemble
from .binary_patch import patch_binary_file, patch_binary_files
from .copy import copy_entries, copy_rule
from .filesystem import DiskFilesystem, Filesystem, MemoryFilesystem
from .layout import (
    BINARY_TARGETS,
    COPY_SPEC,
    SCRIPT_TEXT_PATCHES,
    build_binary_patch_spec,
    build_text_patch_spec,
)
from .models import (
    AssemblyResult,
    BinaryPatchTarget,
    ChangeAction,
    CopyRule,
    FileChange,
    Stage,
    StageResult,
    TextPatch,
    TextSubstitution,
)
from .text_patch import apply_substitutions, patch_text_file, patch_text_files

__all__ = [
    # Main functions
    "ImageAssembler",
    "assemble",
    "copy_entries",
    "copy_rule",
    "patch_text_files",
    "patch_text_file",
    "apply_substitutions",
    "patch_binary_files",
    "patch_binary_file",
    "build_text_patch_spec",
    "build_binary_patch_spec",
    # Layout
    "BINARY_TARGETS",
    "COPY_SPEC",
    "SCRIPT_TEXT_PATCHES",
    # Filesystems
    "Filesystem",
    "DiskFilesystem",
    "MemoryFilesystem",
    # Data models
    "AssemblyResult",
    "BinaryPatchTarget",
    "ChangeAction",
    "CopyRule",
    "FileChange",
    "Stage",
    "StageResult",
    "TextPatch",
    "TextSubstitution",
]
