"""Reading NES Classic dump archives (.tar.gz).

Main Functions:
    - open_archive(): Read a dump archive from a path
    - read_archive(): Read a dump archive from a binary stream
    - iter_entries(): Lazily decode entries in a single forward pass
    - extract_archive(): Write a decoded archive to a directory
"""

from .extract import extract_archive
from .gzip_stream import GzipStream
from .reader import iter_entries, open_archive, read_archive

__all__ = [
    "GzipStream",
    "extract_archive",
    "iter_entries",
    "open_archive",
    "read_archive",
]
