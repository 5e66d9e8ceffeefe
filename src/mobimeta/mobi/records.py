"""
MOBI Header Structures
======================

This module defines the data structures decoded from a MOBI container.

Container Layout Overview
-------------------------
A MOBI file is a Palm database (PDB):
1. PDB Header (78 bytes): database name, type "BOOK", creator "MOBI",
   record count
2. Record table: 8 bytes per record, starting at offset 78
3. Records. Record zero holds, relative to its own start:
   - PalmDOC Header (16 bytes at offset 0)
   - MOBI Header (at offset 16, self-declared length)
   - EXTH Table (at offset 16 + MOBI header length, optional)
   - Full book name (at a MOBI-header-declared offset)

Header fields are read through ByteSource objects, so the decoded
structures never hold a reference to more data than they need.

Reference
---------
- MobileRead wiki: https://wiki.mobileread.com/wiki/MOBI
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, Optional
import logging
import struct

from mobimeta.config import TEXT_ENCODINGS
from mobimeta.mobi.reader import (
    EXTH_MAGIC,
    has_magic,
    iter_exth_records,
    read_uint32,
)
from mobimeta.source import ByteSource

logger = logging.getLogger(__name__)


# =============================================================================
# Enumeration Types
# =============================================================================

class ExthType(IntEnum):
    """
    Well-known EXTH record type codes.

    This is the closed table behind the named metadata accessors on
    Metadata. COVEROFFSET and THUMBOFFSET store an index relative to the
    first image record, not a byte offset.
    """
    AUTHOR = 100
    PUBLISHER = 101
    IMPRINT = 102
    DESCRIPTION = 103
    ISBN = 104
    SUBJECT = 105
    PUBLISHED_AT = 106
    REVIEW = 107
    CONTRIBUTOR = 108
    RIGHTS = 109
    SUBJECT_CODE = 110
    TYPE = 111
    SOURCE = 112
    ASIN = 113
    VERSION = 114
    ADULT = 117
    COVEROFFSET = 201
    THUMBOFFSET = 202

    @property
    def field_name(self) -> str:
        """Name of the matching Metadata accessor (e.g. "published_at")."""
        return self.name.lower()

    @classmethod
    def is_numeric(cls, record_type: int) -> bool:
        """Check if a record type carries a big-endian integer payload."""
        return record_type in (cls.COVEROFFSET, cls.THUMBOFFSET)

    @classmethod
    def get_name(cls, record_type: int) -> str:
        """Get a human-readable name for an EXTH record type."""
        try:
            return cls(record_type).field_name
        except ValueError:
            return f"unknown ({record_type})"


# PalmDOC compression schemes (record0 + 0)
COMPRESSION_NAMES = {
    1: "none",
    2: "PalmDOC",
    17480: "HUFF/CDIC",
}

# PalmDOC encryption schemes (record0 + 12)
ENCRYPTION_NAMES = {
    0: "none",
    1: "old Mobipocket",
    2: "Mobipocket",
}

# MOBI book types (record0 + 24)
MOBI_TYPE_NAMES = {
    2: "Mobipocket Book",
    3: "PalmDoc Book",
    4: "Audio",
    232: "mobipocket? generated by kindlegen1.2",
    248: "KF8: generated by kindlegen2",
    257: "News",
    258: "News_Feed",
    259: "News_Magazine",
    513: "PICS",
    514: "WORD",
    515: "XLS",
    516: "PPT",
    517: "TEXT",
    518: "HTML",
}


# =============================================================================
# PDB Header
# =============================================================================

@dataclass(frozen=True)
class PdbHeader:
    """
    Palm database header (first 78 bytes of the file).

    Structure:
        Offset  Size    Description
        ------  ----    -----------
        0       32      Database name (NUL padded)
        32      2       Attributes
        34      2       Version
        36      24      Creation/modification/backup dates, mod number,
                        app info and sort info ids
        60      4       Type ("BOOK")
        64      4       Creator ("MOBI")
        68      8       Unique id seed, next record list id
        76      2       Number of records
    """
    name: bytes
    attributes: int
    version: int
    type: bytes
    creator: bytes
    record_count: int
    HEADER_SIZE = 78

    @classmethod
    def from_bytes(cls, data: bytes) -> "PdbHeader":
        """Deserialize a PDB header from at least 78 bytes."""
        if len(data) < cls.HEADER_SIZE:
            raise ValueError(
                f"PDB header too short: need {cls.HEADER_SIZE} bytes, got {len(data)}"
            )
        (name, attributes, version, _, _, _, _, _, _,
         db_type, creator, _, _, count) = struct.unpack_from(
            ">32sHHLLLLLL4s4sLLH", data
        )
        return cls(
            name=name.split(b"\0", 1)[0],
            attributes=attributes,
            version=version,
            type=db_type,
            creator=creator,
            record_count=count,
        )


# =============================================================================
# PalmDOC Header
# =============================================================================

@dataclass(frozen=True)
class PalmDocHeader:
    """
    PalmDOC header (record zero, bytes 0-15).

    Structure:
        Offset  Size    Description
        ------  ----    -----------
        0       2       Compression (1 none, 2 PalmDOC, 17480 HUFF/CDIC)
        2       2       Unused
        4       4       Uncompressed text length
        8       2       Number of text records
        10      2       Maximum text record size
        12      2       Encryption type
        14      2       Unknown
    """
    compression: int
    text_length: int
    record_count: int
    record_size: int
    encryption_type: int
    HEADER_SIZE = 16

    @classmethod
    def from_bytes(cls, data: bytes) -> "PalmDocHeader":
        """Deserialize a PalmDOC header from at least 16 bytes."""
        if len(data) < cls.HEADER_SIZE:
            raise ValueError(
                f"PalmDOC header too short: need 16 bytes, got {len(data)}"
            )
        (compression, _, text_length, record_count, record_size,
         encryption_type, _) = struct.unpack_from(">HHLHHHH", data)
        return cls(
            compression=compression,
            text_length=text_length,
            record_count=record_count,
            record_size=record_size,
            encryption_type=encryption_type,
        )

    @property
    def compression_name(self) -> str:
        return COMPRESSION_NAMES.get(self.compression, f"unknown ({self.compression})")

    @property
    def encryption_name(self) -> str:
        return ENCRYPTION_NAMES.get(
            self.encryption_type, f"unknown ({self.encryption_type})"
        )


# =============================================================================
# MOBI Header
# =============================================================================

# Field layout, offsets relative to the start of record zero
MOBI_HEADER_FIELDS = {
    "identifier": (16, "4s"),
    "header_length": (20, ">L"),
    "mobi_type": (24, ">L"),
    "text_encoding": (28, ">L"),
    "unique_id": (32, ">L"),
    "file_version": (36, ">L"),
    "first_non_book_index": (80, ">L"),
    "full_name_offset": (84, ">L"),
    "full_name_length": (88, ">L"),
    "locale": (92, ">L"),
    "input_language": (96, ">L"),
    "output_language": (100, ">L"),
    "min_version": (104, ">L"),
    "first_image_record_index": (108, ">L"),
    "huffman_record_offset": (112, ">L"),
    "huffman_record_count": (116, ">L"),
    "exth_flags": (128, ">L"),
}

MOBI_HEADER_OFFSET = 16

# Bytes of the MOBI header covered by the recognized fields
MOBI_KNOWN_LENGTH = 132 - MOBI_HEADER_OFFSET

# Bit in exth_flags announcing an EXTH table
EXTH_FLAG = 0x40


@dataclass(frozen=True)
class MobiHeader:
    """
    MOBI header, starting at byte 16 of record zero.

    The header declares its own length. Newer format revisions append
    fields this class does not know about, so a longer header is fine;
    recognized fields lying beyond a shorter declared length decode as 0.

    Attributes:
        header_length: Declared MOBI header length; the EXTH table starts
            at record0 + 16 + header_length
        full_name_offset: Offset of the title within record zero
        full_name_length: Length of the title in bytes
        first_image_record_index: PDB index of the first image record
        exth_flags: Bit 0x40 set when an EXTH table follows the header
    """
    identifier: bytes
    header_length: int
    mobi_type: int = 0
    text_encoding: int = 0
    unique_id: int = 0
    file_version: int = 0
    first_non_book_index: int = 0
    full_name_offset: int = 0
    full_name_length: int = 0
    locale: int = 0
    input_language: int = 0
    output_language: int = 0
    min_version: int = 0
    first_image_record_index: int = 0
    huffman_record_offset: int = 0
    huffman_record_count: int = 0
    exth_flags: int = 0

    @classmethod
    def from_source(cls, record_zero: ByteSource) -> "MobiHeader":
        """
        Decode the MOBI header from the record-zero stream.

        Args:
            record_zero: ByteSource whose offset 0 is the start of record zero

        Raises:
            OutOfRangeError: If record zero is too short for the header
        """
        header_length = read_uint32(record_zero, MOBI_HEADER_OFFSET + 4)
        available = min(max(header_length, 8), MOBI_KNOWN_LENGTH)
        raw = record_zero.read(MOBI_HEADER_OFFSET, available)
        raw = raw.ljust(MOBI_KNOWN_LENGTH, b"\0")

        if header_length < MOBI_KNOWN_LENGTH:
            logger.debug(
                f"MOBI header length {header_length} shorter than "
                f"{MOBI_KNOWN_LENGTH}, missing fields decode as 0"
            )

        limit = max(header_length, 8)
        values = {}
        for name, (offset, fmt) in MOBI_HEADER_FIELDS.items():
            start = offset - MOBI_HEADER_OFFSET
            # Fields cut by the declared length are treated as absent
            if start + struct.calcsize(fmt) > limit:
                continue
            values[name], = struct.unpack_from(fmt, raw, start)
        return cls(**values)

    @property
    def has_exth(self) -> bool:
        """True if the EXTH flag bit (0x40) is set."""
        return bool(self.exth_flags & EXTH_FLAG)

    @property
    def encoding(self) -> Optional[str]:
        """Python codec for the declared text encoding, if recognized."""
        return TEXT_ENCODINGS.get(self.text_encoding)

    @property
    def exth_offset(self) -> int:
        """Offset of the EXTH table within record zero."""
        return MOBI_HEADER_OFFSET + self.header_length

    def get_type_name(self) -> str:
        return MOBI_TYPE_NAMES.get(self.mobi_type, f"unknown ({self.mobi_type})")


# =============================================================================
# EXTH Table
# =============================================================================

@dataclass(frozen=True)
class ExthRecord:
    """One EXTH record: a numeric type and its raw payload."""
    type: int
    payload: bytes

    def get_type_name(self) -> str:
        return ExthType.get_name(self.type)

    def as_int(self) -> int:
        """Payload as a big-endian unsigned integer (first 4 bytes)."""
        return int.from_bytes(self.payload[:4], "big")


@dataclass(frozen=True)
class ExthTable:
    """
    Decoded EXTH table.

    Record types are not unique; lookups return the first record of a
    type in table order.

    Attributes:
        identifier: The table magic ("EXTH"), empty for a missing table
        header_length: Declared table length
        record_count: Declared number of records
        records: Records in table order
    """
    identifier: bytes = b""
    header_length: int = 0
    record_count: int = 0
    records: tuple[ExthRecord, ...] = field(default_factory=tuple)

    @classmethod
    def from_source(cls, source: ByteSource, offset: int) -> "ExthTable":
        """
        Decode the EXTH table whose magic sits at ``offset``.

        A missing "EXTH" magic yields an empty table.

        Raises:
            InvalidContainerError: If a record is shorter than its header
            OutOfRangeError: If the table runs past the end of the source
        """
        if not has_magic(source, EXTH_MAGIC, offset):
            logger.debug(f"No EXTH table at offset {offset}")
            return cls()

        header_length = read_uint32(source, offset + 4)
        record_count = read_uint32(source, offset + 8)
        records = tuple(
            ExthRecord(record_type, source.read(payload_offset, payload_length))
            for record_type, payload_offset, payload_length
            in iter_exth_records(source, offset)
        )
        logger.debug(f"Decoded {len(records)} EXTH records at offset {offset}")

        return cls(
            identifier=EXTH_MAGIC,
            header_length=header_length,
            record_count=record_count,
            records=records,
        )

    def lookup(self, record_type: int) -> Optional[bytes]:
        """Return the payload of the first record of ``record_type``, or None."""
        for record in self.records:
            if record.type == record_type:
                return record.payload
        return None

    def find_all(self, record_type: int) -> list[bytes]:
        """Return the payloads of every record of ``record_type``."""
        return [r.payload for r in self.records if r.type == record_type]

    def __iter__(self) -> Iterator[ExthRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)
