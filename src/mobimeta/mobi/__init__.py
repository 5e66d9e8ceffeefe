"""
MOBI Container Handling
=======================

This module reads structural metadata from MOBI ebook containers
(Palm database files with type "BOOK" and creator "MOBI").

This module provides:
- **Metadata**: Validate a container and decode its headers
- **Header types**: PdbHeader, PalmDocHeader, MobiHeader, ExthTable
- **ExthType**: The well-known EXTH record type codes
- **Cover resolution**: extract_cover / extract_thumbnail over raw bytes
- **Primitives**: big-endian readers and the PDB record table

Quick Start
-----------
    >>> from mobimeta.mobi import Metadata, ExthType
    >>> meta = Metadata.from_file("sherlock.mobi")
    >>> meta.title
    b'The Adventures of Sherlock Holmes'
    >>> meta.exth_lookup(ExthType.PUBLISHER)
    b'Project Gutenberg'
    >>> meta.save_cover("cover.jpg")
    True

Reference
---------
- MobileRead wiki: https://wiki.mobileread.com/wiki/MOBI
- PDB format: https://wiki.mobileread.com/wiki/PDB
"""

# =============================================================================
# Public API Exports
# =============================================================================

# Header structures and record types
from mobimeta.mobi.records import (
    ExthType,
    PdbHeader,
    PalmDocHeader,
    MobiHeader,
    ExthRecord,
    ExthTable,
    EXTH_FLAG,
)

# Binary layout primitives
from mobimeta.mobi.reader import (
    read_uint16,
    read_uint32,
    record_offset,
    record_count,
    checked_record_offset,
    record_range,
    iter_exth_records,
    find_exth_record,
    ensure_magic,
)

# Cover resolution
from mobimeta.mobi.cover import (
    find_image_record,
    extract_image,
    extract_cover,
    extract_thumbnail,
)

# Decoder
from mobimeta.mobi.parser import (
    Metadata,
    decode,
    decode_file,
)

__all__ = [
    # Records
    "ExthType",
    "PdbHeader",
    "PalmDocHeader",
    "MobiHeader",
    "ExthRecord",
    "ExthTable",
    "EXTH_FLAG",
    # Primitives
    "read_uint16",
    "read_uint32",
    "record_offset",
    "record_count",
    "checked_record_offset",
    "record_range",
    "iter_exth_records",
    "find_exth_record",
    "ensure_magic",
    # Cover resolution
    "find_image_record",
    "extract_image",
    "extract_cover",
    "extract_thumbnail",
    # Decoder
    "Metadata",
    "decode",
    "decode_file",
]
