"""Domain models shared by the archive reader and the assembly stages."""

from __future__ import annotations

from .models import Archive, ArchiveEntry, EntryKind


__all__ = [
    "Archive",
    "ArchiveEntry",
    "EntryKind",
]
