"""Domain model for decoded dump archives.

These objects are shared by the archive reader, which produces them, and the
assembly stages, which only ever read them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional


# ==============================================================================
# Archive Entry Domain
# ==============================================================================


class EntryKind(Enum):
    """Kind of record decoded from a tar header."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class ArchiveEntry:
    """One file or directory record from a dump archive.

    Directory entries never carry content, so an empty file and a directory
    stay distinguishable.
    """

    path: str  # e.g., "usr/bin/clover-ui"
    kind: EntryKind
    content: Optional[bytes] = None

    def __post_init__(self) -> None:
        if self.kind is EntryKind.DIRECTORY and self.content is not None:
            raise ValueError(f"Directory entry {self.path} cannot carry content")
        if self.kind is EntryKind.FILE and self.content is None:
            object.__setattr__(self, "content", b"")

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @property
    def size(self) -> int:
        """Content length in bytes (0 for directories)."""
        return len(self.content) if self.content is not None else 0

    @classmethod
    def file(cls, path: str, content: bytes) -> ArchiveEntry:
        return cls(path=path, kind=EntryKind.FILE, content=bytes(content))

    @classmethod
    def directory(cls, path: str) -> ArchiveEntry:
        return cls(path=path, kind=EntryKind.DIRECTORY)


# ==============================================================================
# Archive Domain
# ==============================================================================


@dataclass(frozen=True)
class Archive:
    """Fully decoded archive: a read-only mapping of path to entry.

    Build one with ``Archive.from_entries()``; later entries for the same
    path replace earlier ones.
    """

    entries: Mapping[str, ArchiveEntry] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def from_entries(cls, entries: Iterable[ArchiveEntry]) -> Archive:
        table: dict[str, ArchiveEntry] = {}
        for entry in entries:
            table[entry.path] = entry
        return cls(entries=MappingProxyType(table))

    def __contains__(self, path: object) -> bool:
        return path in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, path: str) -> Optional[ArchiveEntry]:
        return self.entries.get(path)

    def content(self, path: str) -> Optional[bytes]:
        """Content of the file at ``path``, or None if absent or a directory."""
        entry = self.entries.get(path)
        if entry is None or entry.is_dir:
            return None
        return entry.content

    @property
    def files(self) -> list[str]:
        return sorted(p for p, e in self.entries.items() if e.is_file)

    @property
    def directories(self) -> list[str]:
        return sorted(p for p, e in self.entries.items() if e.is_dir)

    def subtree(self, prefix: str) -> list[ArchiveEntry]:
        """Entries strictly below ``prefix``, matched on whole path segments.

        ``subtree("usr/share")`` matches ``usr/share/x`` but not
        ``usr/shared/x`` and not the ``usr/share`` entry itself.
        """
        base = prefix.strip("/")
        if not base:
            return [self.entries[p] for p in sorted(self.entries)]
        lead = base + "/"
        return [self.entries[p] for p in sorted(self.entries) if p.startswith(lead)]
