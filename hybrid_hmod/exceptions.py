"""Custom exceptions for archive reading and HMOD assembly.

This module defines a hierarchy of exceptions for the build pipeline so callers
can tell a broken dump apart from a misconfigured layout or a missing asset.

Exception Hierarchy:
    HmodError (base)
        ├── ArchiveError
        │   ├── ArchiveFormatError
        │   └── ArchiveTruncatedError
        ├── UnknownVersionError
        ├── AssemblyError
        │   ├── SourceMissingError
        │   ├── TargetMissingError
        │   ├── OffsetOutOfRangeError
        │   ├── UnsafePathError
        │   └── ImageIOError
        └── BundleError
            ├── BundledAssetMissingError
            └── DumpNotFoundError

Usage:
    from hybrid_hmod.exceptions import OffsetOutOfRangeError

    if offset + len(replacement) > size:
        raise OffsetOutOfRangeError(path, offset, len(replacement), size)
"""

from __future__ import annotations

from typing import Optional


class HmodError(Exception):
    """Base exception for all build pipeline errors."""


class ArchiveError(HmodError):
    """Base exception for errors decoding a dump archive."""


class ArchiveFormatError(ArchiveError):
    """The gzip container or a tar header is malformed."""

    def __init__(self, message: str, offset: Optional[int] = None):
        self.offset = offset
        if offset is not None:
            message = f"{message} (at byte {offset:#x} of tar stream)"
        super().__init__(message)


class ArchiveTruncatedError(ArchiveError):
    """The stream ended inside a header or before an entry's content."""

    def __init__(
        self,
        message: str,
        offset: Optional[int] = None,
        path: Optional[str] = None,
    ):
        self.offset = offset
        self.path = path
        if path:
            message = f"{message}: {path}"
        if offset is not None:
            message = f"{message} (at byte {offset:#x} of tar stream)"
        super().__init__(message)


class UnknownVersionError(HmodError):
    """The dump identity is not one of the recognized profiles."""

    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(f"Unknown dump version: {identity!r}")


class AssemblyError(HmodError):
    """Base exception for errors while assembling the image tree."""

    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(message)


class SourceMissingError(AssemblyError):
    """A copy rule references a path with no matching archive entries."""

    def __init__(self, source: str, destination: str = ""):
        self.source = source
        self.destination = destination
        msg = f"Source not found in archive: {source}"
        if destination:
            msg += f" (wanted for {destination})"
        super().__init__(msg, source)


class TargetMissingError(AssemblyError):
    """A patch targets a file that is not present in the image."""

    def __init__(self, path: str, stage: str = ""):
        self.stage = stage
        msg = f"Patch target not found in image: {path}"
        if stage:
            msg = f"{stage}: {msg}"
        super().__init__(msg, path)


class OffsetOutOfRangeError(AssemblyError):
    """A binary patch would write past the end of its target file."""

    def __init__(self, path: str, offset: int, length: int, file_size: int):
        self.offset = offset
        self.length = length
        self.file_size = file_size
        super().__init__(
            f"Patch at {offset:#x} ({length} bytes) exceeds size of {path} "
            f"({file_size} bytes)",
            path,
        )


class UnsafePathError(AssemblyError):
    """A path would resolve outside the destination root."""

    def __init__(self, path: str, root: str):
        self.root = root
        super().__init__(f"Path {path!r} escapes destination root {root}", path)


class ImageIOError(AssemblyError):
    """Reading or writing an image path failed at the operating system level."""

    def __init__(self, path: str, stage: str, error: OSError):
        self.stage = stage
        self.error = error
        super().__init__(f"{stage}: I/O error on {path}: {error}", path)


class BundleError(HmodError):
    """Base exception for problems with the files shipped alongside the tool."""


class BundledAssetMissingError(BundleError):
    """A file shipped with the tool has been removed."""

    def __init__(self, path: str, location: str):
        self.path = path
        self.location = location
        super().__init__(
            f"'{path}' not found within {location}, please redownload the application"
        )


class DumpNotFoundError(BundleError):
    """None of the recognized dump archives are present."""

    def __init__(self, dump_dir: str, candidates: Optional[list[str]] = None):
        self.dump_dir = dump_dir
        self.candidates = list(candidates or [])
        super().__init__(f"No valid dump files found in {dump_dir}")
