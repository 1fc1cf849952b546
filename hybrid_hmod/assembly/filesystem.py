"""Filesystem backends for the assembly stages.

Stages never touch ``pathlib`` directly; they go through one of these so the
same stage code can run against a real destination directory or against an
in-memory tree in tests. All paths are image-relative, forward-slash
separated.
"""

from __future__ import annotations

import io
import posixpath
from pathlib import Path
from typing import BinaryIO, Protocol, Union

from hybrid_hmod.exceptions import UnsafePathError


class Filesystem(Protocol):
    """Operations the assembly stages need from a destination tree."""

    def is_file(self, path: str) -> bool: ...

    def make_dirs(self, path: str) -> None: ...

    def write_bytes(self, path: str, data: bytes) -> None: ...

    def read_bytes(self, path: str) -> bytes: ...

    def open_rw(self, path: str) -> BinaryIO: ...

    def describe(self, path: str) -> str: ...


def normalize_image_path(path: str, root: str = "<image>") -> str:
    """Normalize an image-relative path, rejecting anything that escapes it."""
    if path.startswith("/"):
        raise UnsafePathError(path, root)
    normalized = posixpath.normpath(path)
    if normalized == ".":
        return ""
    if normalized == ".." or normalized.startswith("../"):
        raise UnsafePathError(path, root)
    return normalized


class DiskFilesystem:
    """Destination tree rooted at a directory on disk."""

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        relative = normalize_image_path(path, str(self.root))
        root = self.root.resolve()
        candidate = (root / relative).resolve() if relative else root
        if candidate != root and root not in candidate.parents:
            raise UnsafePathError(path, str(self.root))
        return candidate

    def is_file(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def make_dirs(self, path: str) -> None:
        self._resolve(path).mkdir(parents=True, exist_ok=True)

    def write_bytes(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    def read_bytes(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def open_rw(self, path: str) -> BinaryIO:
        return self._resolve(path).open("r+b")

    def describe(self, path: str) -> str:
        return str(self.root / path)


class _MemoryHandle(io.BytesIO):
    """Read/write handle that stores its buffer back on close."""

    def __init__(self, filesystem: MemoryFilesystem, path: str, data: bytes) -> None:
        super().__init__(data)
        self._filesystem = filesystem
        self._path = path
        filesystem.open_handles += 1

    def close(self) -> None:
        if not self.closed:
            self._filesystem.files[self._path] = self.getvalue()
            self._filesystem.open_handles -= 1
        super().close()


class MemoryFilesystem:
    """In-memory destination tree, used to unit test stages without disk I/O."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.directories: set[str] = set()
        self.open_handles = 0

    def _normalize(self, path: str) -> str:
        return normalize_image_path(path)

    def _add_parents(self, path: str) -> None:
        parent = posixpath.dirname(path)
        while parent:
            if parent in self.files:
                raise NotADirectoryError(f"Not a directory: {parent}")
            self.directories.add(parent)
            parent = posixpath.dirname(parent)

    def is_file(self, path: str) -> bool:
        return self._normalize(path) in self.files

    def make_dirs(self, path: str) -> None:
        key = self._normalize(path)
        if not key:
            return
        if key in self.files:
            raise FileExistsError(f"File exists: {key}")
        self._add_parents(key)
        self.directories.add(key)

    def write_bytes(self, path: str, data: bytes) -> None:
        key = self._normalize(path)
        if key in self.directories:
            raise IsADirectoryError(f"Is a directory: {key}")
        self._add_parents(key)
        self.files[key] = bytes(data)

    def read_bytes(self, path: str) -> bytes:
        key = self._normalize(path)
        if key not in self.files:
            raise FileNotFoundError(f"No such file: {key}")
        return self.files[key]

    def open_rw(self, path: str) -> BinaryIO:
        key = self._normalize(path)
        return _MemoryHandle(self, key, self.read_bytes(key))

    def describe(self, path: str) -> str:
        return f"memory:{path}"
