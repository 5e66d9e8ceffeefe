"""
mobimeta Error Hierarchy
========================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from MobiError, allowing callers to catch every
decoding failure with a single except clause if desired.

Exception Hierarchy
-------------------
MobiError (base)
├── InvalidContainerError - magic signature missing or malformed structure
└── OutOfRangeError - read past the end of the byte source
    └── InvalidRecordIndexError - PDB record index outside the record table

Absent metadata (no EXTH table, no cover record, unknown EXTH type) is
never an error: those lookups return None.
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class MobiError(Exception):
    """
    Base exception for all mobimeta errors.

        try:
            meta = Metadata.from_file("book.mobi")
        except MobiError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Container Format Exceptions
# =============================================================================

class InvalidContainerError(MobiError):
    """
    The byte source is not a MOBI container this package can read.

    Raised when:
    - The "BOOKMOBI" type/creator signature at offset 60 is missing
    - The "MOBI" or "EXTH" magic is missing while resolving the cover
    - An EXTH record declares a length shorter than its own header

    Attributes:
        offset: Absolute offset where the check failed (optional)
    """

    def __init__(self, message: str, offset: Optional[int] = None):
        self.offset = offset
        super().__init__(message)


def magic_not_found(magic: bytes, offset: int) -> InvalidContainerError:
    """Build the error raised when a magic string is missing."""
    return InvalidContainerError(
        f"Invalid file format. Magic string {magic.decode('ascii')!r} "
        f"not found at offset {offset}",
        offset=offset,
    )


# =============================================================================
# Range Exceptions
# =============================================================================

class OutOfRangeError(MobiError, IndexError):
    """
    A read request extends past the end of the byte source.

    Reads are never truncated or wrapped: asking for bytes the source
    does not hold always raises this error.

    Attributes:
        offset: Requested start offset
        length: Requested byte count
        size: Total size of the source
    """

    def __init__(
        self,
        offset: int,
        length: int,
        size: int,
        message: Optional[str] = None,
    ):
        self.offset = offset
        self.length = length
        self.size = size
        super().__init__(
            message
            or f"read of {length} bytes at offset {offset} exceeds "
            f"source size {size}"
        )


class InvalidRecordIndexError(OutOfRangeError):
    """
    A PDB record index outside [0, record_count) was requested.

    Only raised by the checked record-table lookups; the unchecked
    variant mirrors the container and returns whatever the table holds.
    """

    def __init__(
        self, index: int, record_count: int, entry_offset: int, table_end: int
    ):
        self.index = index
        self.record_count = record_count
        super().__init__(
            entry_offset,
            8,
            table_end,
            message=(
                f"PDB record index {index} outside record table "
                f"(record count {record_count})"
            ),
        )
