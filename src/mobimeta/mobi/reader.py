"""
Binary Layout Primitives
========================

Low-level readers shared by the header decoder and the cover resolver.

All multi-byte integers in a MOBI container are big-endian; there is no
little-endian variant of the format.

PDB Record Table
----------------
The Palm database header ends with a table of 8-byte entries starting at
absolute offset 78:

    Offset  Size    Description
    ------  ----    -----------
    0       4       Record data offset (absolute, big-endian)
    4       1       Record attributes
    5       3       Unique ID

The format has no per-record length. A record runs from its own offset
to the next record's offset, which is only meaningful because records
are stored contiguously in ascending offset order.

EXTH Table
----------
    Offset  Size    Description
    ------  ----    -----------
    0       4       "EXTH"
    4       4       Header length (including padding)
    8       4       Record count
    12      ...     Records: type (4), total length incl. 8-byte header (4),
                    payload (total length - 8)
"""

from typing import Iterator, Optional, Tuple
import logging
import struct

from mobimeta.errors import (
    InvalidContainerError,
    InvalidRecordIndexError,
    magic_not_found,
)
from mobimeta.source import ByteSource

logger = logging.getLogger(__name__)


# Involved addresses in the PDB database header
PDB_TYPE_CREATOR = 60
PDB_RECORD_COUNT = 76
PDB_RECORD_TABLE = 78
PDB_RECORD_ENTRY_SIZE = 8

BOOKMOBI_MAGIC = b"BOOKMOBI"
MOBI_MAGIC = b"MOBI"
EXTH_MAGIC = b"EXTH"

# Size of an EXTH record header (type + total length)
EXTH_RECORD_HEADER_SIZE = 8


def read_uint32(source: ByteSource, offset: int) -> int:
    """Read a big-endian unsigned 32-bit integer at ``offset``."""
    value, = struct.unpack(">L", source.read(offset, 4))
    return value


def read_uint16(source: ByteSource, offset: int) -> int:
    """Read a big-endian unsigned 16-bit integer at ``offset``."""
    value, = struct.unpack(">H", source.read(offset, 2))
    return value


def has_magic(source: ByteSource, magic: bytes, offset: int) -> bool:
    """Check for ``magic`` at ``offset`` without raising on short sources."""
    if offset < 0 or offset + len(magic) > source.size:
        return False
    return source.read(offset, len(magic)) == magic


def ensure_magic(source: ByteSource, magic: bytes, offset: int) -> None:
    """Raise InvalidContainerError unless ``magic`` is found at ``offset``."""
    if not has_magic(source, magic, offset):
        raise magic_not_found(magic, offset)


# =============================================================================
# PDB Record Table
# =============================================================================

def record_offset(source: ByteSource, index: int) -> int:
    """
    Return the absolute offset where PDB record ``index`` starts.

    The index is not checked against the record count. Callers must keep
    it within [0, record_count); anything else reads whatever bytes sit
    at that table position, or fails with OutOfRangeError past the end
    of the source.
    """
    return read_uint32(source, PDB_RECORD_TABLE + PDB_RECORD_ENTRY_SIZE * index)


def record_count(source: ByteSource) -> int:
    """Return the number of records declared in the PDB header."""
    return read_uint16(source, PDB_RECORD_COUNT)


def checked_record_offset(source: ByteSource, index: int) -> int:
    """
    Return the start offset of record ``index`` after a bounds check.

    Raises:
        InvalidRecordIndexError: If index is outside [0, record_count)
    """
    count = record_count(source)
    if not 0 <= index < count:
        raise InvalidRecordIndexError(
            index,
            count,
            PDB_RECORD_TABLE + PDB_RECORD_ENTRY_SIZE * index,
            PDB_RECORD_TABLE + PDB_RECORD_ENTRY_SIZE * count,
        )
    return record_offset(source, index)


def record_range(
    source: ByteSource, index: int, checked: bool = False
) -> Tuple[int, int]:
    """
    Return the ``(start, end)`` byte range of record ``index``.

    The end is the start of record ``index + 1``. Records must be stored
    contiguously with strictly ascending offsets.

    With ``checked`` the index is validated against the record count and
    the last record of the table ends at the end of the source.
    """
    if not checked:
        return record_offset(source, index), record_offset(source, index + 1)

    start = checked_record_offset(source, index)
    if index + 1 == record_count(source):
        return start, source.size
    return start, record_offset(source, index + 1)


# =============================================================================
# EXTH Records
# =============================================================================

def iter_exth_records(
    source: ByteSource, exth_offset: int
) -> Iterator[Tuple[int, int, int]]:
    """
    Walk the EXTH record table whose "EXTH" magic sits at ``exth_offset``.

    Yields ``(record_type, payload_offset, payload_length)`` tuples in
    table order. The magic itself is not checked here.

    Raises:
        InvalidContainerError: If a record declares a total length shorter
            than its own 8-byte header
        OutOfRangeError: If the table runs past the end of the source
    """
    offset = exth_offset + 8
    count = read_uint32(source, offset)
    offset += 4

    for _ in range(count):
        found_type = read_uint32(source, offset)
        total_length = read_uint32(source, offset + 4)
        if total_length < EXTH_RECORD_HEADER_SIZE:
            raise InvalidContainerError(
                f"EXTH record type {found_type} at offset {offset} declares "
                f"length {total_length}, shorter than its header",
                offset=offset,
            )
        payload_length = total_length - EXTH_RECORD_HEADER_SIZE
        offset += EXTH_RECORD_HEADER_SIZE
        yield found_type, offset, payload_length
        offset += payload_length


def find_exth_record(
    source: ByteSource, exth_offset: int, record_type: int
) -> Optional[Tuple[int, int]]:
    """
    Locate the first EXTH record of ``record_type``.

    Returns:
        ``(payload_offset, payload_length)`` or None if no record matches
    """
    for found_type, payload_offset, payload_length in iter_exth_records(
        source, exth_offset
    ):
        if found_type == record_type:
            return payload_offset, payload_length
    logger.debug(f"No EXTH record of type {record_type} at offset {exth_offset}")
    return None
