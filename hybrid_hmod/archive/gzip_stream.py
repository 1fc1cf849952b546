"""Incremental gzip decoding over a binary stream."""

from __future__ import annotations

import zlib
from typing import BinaryIO

from hybrid_hmod.exceptions import ArchiveFormatError, ArchiveTruncatedError
from hybrid_hmod.logging import LoggerFactory


GZIP_MAGIC = b"\x1f\x8b"

# zlib window bits for a gzip wrapped deflate stream
GZIP_WBITS = 16 + zlib.MAX_WBITS

DEFAULT_CHUNK_SIZE = 64 * 1024


class GzipStream:
    """File-like reader yielding the decompressed bytes of a gzip stream.

    Concatenated members are decoded back to back, and zero padding between
    or after members is skipped. Anything else after a complete member is
    ignored with a warning, matching what ``gunzip`` accepts.
    """

    def __init__(self, fileobj: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._fileobj = fileobj
        self._chunk_size = chunk_size
        self._decompressor = None
        self._pending = b""
        self._buffer = bytearray()
        self._members = 0
        self._eof = False
        self.position = 0  # decompressed bytes handed out so far

    def read(self, size: int) -> bytes:
        """Read up to ``size`` decompressed bytes.

        Returns fewer bytes only at a clean end of the gzip stream.

        Raises:
            ArchiveFormatError: If the gzip header or deflate data is invalid
            ArchiveTruncatedError: If the stream ends inside a member
        """
        while len(self._buffer) < size and self._fill():
            pass
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        self.position += len(data)
        return data

    def _read_raw(self) -> bytes:
        if self._pending:
            data, self._pending = self._pending, b""
            return data
        return self._fileobj.read(self._chunk_size)

    def _start_member(self) -> bool:
        data = self._read_raw()
        if self._members == 0:
            if not data:
                raise ArchiveFormatError("Empty stream, expected gzip header")
            if not GZIP_MAGIC.startswith(data[:2]):
                raise ArchiveFormatError(
                    f"Not a gzip stream (magic {data[:2].hex()}, expected {GZIP_MAGIC.hex()})"
                )
        else:
            data = data.lstrip(b"\x00")
            while not data:
                chunk = self._fileobj.read(self._chunk_size)
                if not chunk:
                    self._eof = True
                    return False
                data = chunk.lstrip(b"\x00")
            if not GZIP_MAGIC.startswith(data[:2]):
                LoggerFactory.for_archive().warning(
                    f"Ignoring trailing data after gzip member {self._members}"
                )
                self._eof = True
                return False
        self._pending = data
        self._decompressor = zlib.decompressobj(wbits=GZIP_WBITS)
        return True

    def _fill(self) -> bool:
        """Decompress more data into the buffer; False at clean end of stream."""
        while not self._eof:
            if self._decompressor is None and not self._start_member():
                return False

            data = self._read_raw()
            if not data:
                raise ArchiveTruncatedError(
                    "Gzip stream ended before the end-of-stream marker was reached"
                )
            try:
                out = self._decompressor.decompress(data)
            except zlib.error as error:
                raise ArchiveFormatError(f"Corrupt gzip data: {error}") from error

            if self._decompressor.eof:
                self._pending = self._decompressor.unused_data
                self._decompressor = None
                self._members += 1

            if out:
                self._buffer += out
                return True
        return False
