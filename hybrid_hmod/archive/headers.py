"""Tar header decoding.

A tar stream is a sequence of 512-byte records. Each member starts with a
header record whose fixed-width fields are NUL-terminated ASCII, numbers
being octal (or GNU base-256 when the top bit of the first byte is set).
Member content follows, padded with zeros to the next record boundary.

Header layout (ustar):
    0    name       100
    100  mode       8
    108  uid        8
    116  gid        8
    124  size       12
    136  mtime      12
    148  chksum     8
    156  typeflag   1
    157  linkname   100
    257  magic      6
    263  version    2
    265  uname      32
    297  gname      32
    329  devmajor   8
    337  devminor   8
    345  prefix     155
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Optional

from hybrid_hmod.exceptions import ArchiveFormatError


BLOCK_SIZE = 512
ZERO_BLOCK = bytes(BLOCK_SIZE)

POSIX_MAGIC = b"ustar\x00"

# Type flags
REGTYPE = b"0"
AREGTYPE = b"\x00"
LNKTYPE = b"1"
SYMTYPE = b"2"
CHRTYPE = b"3"
BLKTYPE = b"4"
DIRTYPE = b"5"
FIFOTYPE = b"6"
CONTTYPE = b"7"
GNUTYPE_LONGNAME = b"L"
GNUTYPE_LONGLINK = b"K"
XHDTYPE = b"x"
XGLTYPE = b"g"
SOLARIS_XHDTYPE = b"X"

# Headers that describe the next member instead of being one
META_TYPES = (
    GNUTYPE_LONGNAME,
    GNUTYPE_LONGLINK,
    XHDTYPE,
    XGLTYPE,
    SOLARIS_XHDTYPE,
)

_CHKSUM_FIELD = slice(148, 156)
_SIGNED_LAYOUT = struct.Struct("148b8x356b")


@dataclass(frozen=True)
class TarHeader:
    name: str
    mode: int
    size: int
    mtime: int
    typeflag: bytes
    linkname: str
    offset: int  # position of the header record in the tar stream

    @property
    def is_meta(self) -> bool:
        return self.typeflag in META_TYPES

    @property
    def is_dir(self) -> bool:
        if self.typeflag == DIRTYPE:
            return True
        return self.typeflag in (REGTYPE, AREGTYPE) and self.name.endswith("/")

    @property
    def padding(self) -> int:
        """Zero bytes between the end of content and the next header."""
        return -self.size % BLOCK_SIZE


def decode_string(raw: bytes) -> str:
    """Decode a NUL-terminated header string field."""
    end = raw.find(b"\x00")
    if end != -1:
        raw = raw[:end]
    return raw.decode("utf-8", "surrogateescape")


def decode_number(raw: bytes, field: str = "numeric", offset: Optional[int] = None) -> int:
    """Decode an octal or GNU base-256 header number."""
    if raw and raw[0] in (0o200, 0o377):
        value = 0
        for byte in raw[1:]:
            value = (value << 8) + byte
        if raw[0] == 0o377:
            value = -(256 ** (len(raw) - 1) - value)
        return value
    text = raw.split(b"\x00", 1)[0].strip()
    if not text:
        return 0
    try:
        return int(text, 8)
    except ValueError as error:
        raise ArchiveFormatError(
            f"Invalid {field} field {raw!r} in tar header", offset
        ) from error


def calc_checksums(block: bytes) -> tuple[int, int]:
    """Unsigned and signed header sums with the checksum field read as spaces.

    Historic tar implementations summed signed chars, so both are accepted.
    """
    unsigned = sum(block[:148]) + 256 + sum(block[156:])
    signed = sum(_SIGNED_LAYOUT.unpack_from(block)) + 256
    return unsigned, signed


def parse_header(block: bytes, offset: int) -> TarHeader:
    """Decode one 512-byte header record.

    Raises:
        ArchiveFormatError: If the checksum does not match or a number field
            is not parsable
    """
    if len(block) != BLOCK_SIZE:
        raise ValueError(f"Header record must be {BLOCK_SIZE} bytes, got {len(block)}")

    stored = decode_number(block[_CHKSUM_FIELD], "chksum", offset)
    if stored not in calc_checksums(block):
        raise ArchiveFormatError(
            f"Tar header checksum mismatch (stored {stored:#o})", offset
        )

    size = decode_number(block[124:136], "size", offset)
    if size < 0:
        raise ArchiveFormatError(f"Negative member size {size}", offset)

    name = decode_string(block[0:100])
    typeflag = block[156:157]
    if block[257:263] == POSIX_MAGIC and typeflag not in META_TYPES:
        prefix = decode_string(block[345:500])
        if prefix:
            name = f"{prefix}/{name}"

    return TarHeader(
        name=name,
        mode=decode_number(block[100:108], "mode", offset),
        size=size,
        mtime=decode_number(block[136:148], "mtime", offset),
        typeflag=typeflag,
        linkname=decode_string(block[157:257]),
        offset=offset,
    )


def parse_pax_records(data: bytes, offset: Optional[int] = None) -> dict[str, str]:
    """Parse pax extended header records (``"<len> <key>=<value>\\n"``)."""
    records: dict[str, str] = {}
    pos = 0
    while pos < len(data):
        if data[pos:].strip(b"\x00") == b"":
            break
        space = data.find(b" ", pos)
        if space == -1:
            raise ArchiveFormatError("Malformed pax record (no length)", offset)
        try:
            length = int(data[pos:space])
        except ValueError as error:
            raise ArchiveFormatError("Malformed pax record length", offset) from error
        if length <= 0 or pos + length > len(data):
            raise ArchiveFormatError("Pax record length out of range", offset)
        record = data[space + 1 : pos + length]
        if not record.endswith(b"\n") or b"=" not in record:
            raise ArchiveFormatError("Malformed pax record", offset)
        key, value = record[:-1].split(b"=", 1)
        records[key.decode("utf-8", "surrogateescape")] = value.decode(
            "utf-8", "surrogateescape"
        )
        pos += length
    return records


def normalize_member_name(name: str) -> str:
    """Strip ``./`` and ``/`` prefixes and any trailing slash.

    Returns an empty string for the archive root entry.
    """
    while name.startswith("./"):
        name = name[2:]
    name = name.lstrip("/").rstrip("/")
    if name == ".":
        return ""
    return name
