"""Dump archive (.tar.gz) reader."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from hybrid_hmod.domain import Archive, ArchiveEntry
from hybrid_hmod.exceptions import ArchiveFormatError, ArchiveTruncatedError
from hybrid_hmod.logging import LoggerFactory

from .gzip_stream import GzipStream
from .headers import (
    BLOCK_SIZE,
    GNUTYPE_LONGNAME,
    XGLTYPE,
    XHDTYPE,
    ZERO_BLOCK,
    TarHeader,
    decode_string,
    normalize_member_name,
    parse_header,
    parse_pax_records,
)


def _read_exact(stream: GzipStream, size: int, what: str, path: Optional[str] = None) -> bytes:
    start = stream.position
    data = stream.read(size)
    if len(data) < size:
        raise ArchiveTruncatedError(
            f"Stream ended after {len(data)} of {size} bytes of {what}",
            offset=start,
            path=path,
        )
    return data


def _read_header_block(stream: GzipStream) -> Optional[bytes]:
    """Next header record, or None at the end-of-archive marker or stream end."""
    offset = stream.position
    block = stream.read(BLOCK_SIZE)
    if not block:
        return None
    if len(block) < BLOCK_SIZE:
        raise ArchiveTruncatedError("Stream ended mid-header", offset=offset)
    if block != ZERO_BLOCK:
        return block

    offset = stream.position
    block = stream.read(BLOCK_SIZE)
    if not block or block == ZERO_BLOCK:
        return None
    if len(block) < BLOCK_SIZE:
        raise ArchiveTruncatedError("Stream ended mid-header", offset=offset)
    return block


def _iter_headers(stream: GzipStream) -> Iterator[tuple[TarHeader, bytes]]:
    """Yield (header, content) for every real member, resolving long names.

    GNU long-name records and pax extended headers are folded into the member
    that follows them; pax global headers are skipped.
    """
    long_name: Optional[str] = None
    pax: dict[str, str] = {}

    while True:
        block = _read_header_block(stream)
        if block is None:
            break
        header = parse_header(block, stream.position - BLOCK_SIZE)

        if header.is_meta:
            data = _read_exact(stream, header.size, "extended header", header.name)
            _read_exact(stream, header.padding, "padding", header.name)
            if header.typeflag == GNUTYPE_LONGNAME:
                long_name = decode_string(data)
            elif header.typeflag == XHDTYPE:
                pax.update(parse_pax_records(data, header.offset))
            elif header.typeflag == XGLTYPE:
                parse_pax_records(data, header.offset)
            continue

        name = header.name
        size = header.size
        if long_name is not None:
            name = long_name
        if "path" in pax:
            name = pax["path"]
        if "size" in pax:
            try:
                size = int(pax["size"])
            except ValueError as error:
                raise ArchiveFormatError(
                    f"Invalid pax size {pax['size']!r}", header.offset
                ) from error
        long_name = None
        pax = {}

        if name != header.name or size != header.size:
            header = TarHeader(
                name=name,
                mode=header.mode,
                size=size,
                mtime=header.mtime,
                typeflag=header.typeflag,
                linkname=header.linkname,
                offset=header.offset,
            )

        content = _read_exact(stream, header.size, "member content", header.name)
        _read_exact(stream, header.padding, "padding", header.name)
        yield header, content

    if long_name is not None or pax:
        raise ArchiveTruncatedError(
            "Archive ended after an extended header with no member",
            offset=stream.position,
        )


def iter_entries(fileobj: BinaryIO) -> Iterator[ArchiveEntry]:
    """Lazily decode a .tar.gz stream into archive entries.

    Entries are produced in stream order in a single forward pass; to read
    them again, reopen the stream.

    Args:
        fileobj: Binary stream positioned at the gzip header

    Yields:
        ArchiveEntry for each file or directory member

    Raises:
        ArchiveFormatError: If the gzip data or a tar header is malformed
        ArchiveTruncatedError: If the stream ends mid-header or mid-content
    """
    log = LoggerFactory.for_archive()
    stream = GzipStream(fileobj)
    for header, content in _iter_headers(stream):
        path = normalize_member_name(header.name)
        if not path:
            continue
        if header.is_dir:
            log.trace(f"Directory entry {path}")
            yield ArchiveEntry.directory(path)
        else:
            log.trace(f"File entry {path} ({len(content)} bytes)")
            yield ArchiveEntry.file(path, content)


def read_archive(fileobj: BinaryIO) -> Archive:
    """Decode a .tar.gz stream fully into an Archive.

    Nothing is returned unless the whole stream decodes; any error leaves
    no partial archive behind.
    """
    archive = Archive.from_entries(iter_entries(fileobj))
    LoggerFactory.for_archive().debug(
        f"Decoded archive: {len(archive.files)} files, "
        f"{len(archive.directories)} directories"
    )
    return archive


def open_archive(path: Union[str, Path]) -> Archive:
    """Read the .tar.gz dump at ``path``.

    Raises:
        FileNotFoundError: If the dump does not exist
        ArchiveFormatError: If the dump is malformed
        ArchiveTruncatedError: If the dump is incomplete
    """
    dump_path = Path(path)
    if not dump_path.exists():
        raise FileNotFoundError(f"Couldn't find dump archive {dump_path.resolve()}")
    LoggerFactory.for_archive().debug(f"Reading dump archive {dump_path}")
    with dump_path.open("rb") as handle:
        return read_archive(handle)
