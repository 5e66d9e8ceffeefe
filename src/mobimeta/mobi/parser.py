"""
MOBI Metadata Decoder
=====================

This module provides the Metadata class, the entry point for reading a
MOBI container.

Metadata
--------
Constructing a Metadata validates the "BOOKMOBI" signature and decodes
the PDB, PalmDOC, MOBI and EXTH headers. It is the only validation gate:
every query afterwards assumes a validated container, and the object is
never mutated after construction.

Usage Examples
--------------
Reading a file:
    >>> from mobimeta.mobi import Metadata
    >>> meta = Metadata.from_file("sherlock.mobi")
    >>> print(meta.title_text)
    >>> print(meta.author)
    b'Arthur Conan Doyle'

Saving the cover:
    >>> if meta.save_cover("sherlock.jpg"):
    ...     print("cover written")

Any ByteSource works:
    >>> from mobimeta.source import FileSource
    >>> with open("sherlock.mobi", "rb") as f:
    ...     meta = Metadata(FileSource(f))
    ...     image = meta.extract_cover()
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
import logging

from mobimeta.config import ReaderConfig
from mobimeta.errors import InvalidContainerError
from mobimeta.mobi.cover import extract_cover, extract_thumbnail
from mobimeta.mobi.reader import (
    BOOKMOBI_MAGIC,
    PDB_TYPE_CREATOR,
    has_magic,
    record_offset,
)
from mobimeta.mobi.records import (
    ExthTable,
    ExthType,
    MobiHeader,
    PalmDocHeader,
    PdbHeader,
)
from mobimeta.source import ByteSource, BytesSource, SliceSource

logger = logging.getLogger(__name__)


# =============================================================================
# Metadata
# =============================================================================

@dataclass
class Metadata:
    """
    Decoded metadata of one MOBI container.

    Attributes:
        data: The raw container bytes
        config: Decoding options
        pdb_header: Palm database header
        palm_doc_header: PalmDOC header from record zero
        mobi_header: MOBI header from record zero
        exth_header: EXTH table (empty when the container has none)

    Example:
        >>> meta = Metadata(BytesSource(data))
        >>> meta.exth_lookup(ExthType.ISBN)
        b'9780141034355'
    """
    # Raw container data (not exposed in repr)
    data: ByteSource = field(repr=False)

    config: ReaderConfig = field(default_factory=ReaderConfig)

    pdb_header: PdbHeader = field(init=False)
    palm_doc_header: PalmDocHeader = field(init=False)
    mobi_header: MobiHeader = field(init=False)
    exth_header: ExthTable = field(init=False)

    # Stream starting at record zero; header offsets are relative to it
    record_zero: SliceSource = field(init=False, repr=False)

    _title: Optional[bytes] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate the container and decode its headers."""
        if not self.is_bookmobi(self.data):
            raise InvalidContainerError(
                "The supplied file is not in a valid mobi format",
                offset=PDB_TYPE_CREATOR,
            )

        self.pdb_header = PdbHeader.from_bytes(
            self.data.read(0, PdbHeader.HEADER_SIZE)
        )
        self.record_zero = SliceSource(self.data, record_offset(self.data, 0))
        logger.debug(
            f"PDB {self.pdb_header.name!r}: {self.pdb_header.record_count} records, "
            f"record zero at {self.record_zero.start}"
        )

        self.palm_doc_header = PalmDocHeader.from_bytes(
            self.record_zero.read(0, PalmDocHeader.HEADER_SIZE)
        )
        self.mobi_header = MobiHeader.from_source(self.record_zero)

        self.exth_header = ExthTable.from_source(
            self.record_zero, self.mobi_header.exth_offset
        )
        if self.mobi_header.has_exth and not self.exth_header.identifier:
            logger.warning(
                "EXTH flag set but no EXTH table found at record zero "
                f"offset {self.mobi_header.exth_offset}"
            )

    @classmethod
    def from_file(
        cls, filepath: Union[str, Path], config: Optional[ReaderConfig] = None
    ) -> "Metadata":
        """
        Read a MOBI file from disk and decode it.

        Raises:
            FileNotFoundError: If the file doesn't exist
            InvalidContainerError: If the file is not a MOBI container
        """
        data = Path(filepath).read_bytes()
        return cls.from_bytes(data, config)

    @classmethod
    def from_bytes(
        cls, data: bytes, config: Optional[ReaderConfig] = None
    ) -> "Metadata":
        """Decode a MOBI container held in memory."""
        return cls(data=BytesSource(data), config=config or ReaderConfig())

    @staticmethod
    def is_bookmobi(source: ByteSource) -> bool:
        """Check for the "BOOKMOBI" type/creator signature at offset 60."""
        return has_magic(source, BOOKMOBI_MAGIC, PDB_TYPE_CREATOR)

    # =========================================================================
    # Title
    # =========================================================================

    @property
    def title(self) -> bytes:
        """
        Full book name as stored in record zero.

        Computed on first access; recomputing always yields the same
        value, so concurrent first accesses are harmless.
        """
        if self._title is None:
            self._title = self.record_zero.read(
                self.mobi_header.full_name_offset,
                self.mobi_header.full_name_length,
            )
        return self._title

    @property
    def title_text(self) -> str:
        """The title decoded with the container's text encoding."""
        return self.decode_text(self.title)

    @property
    def encoding(self) -> str:
        """Codec for text fields, falling back to the configured default."""
        return self.mobi_header.encoding or self.config.fallback_encoding

    def decode_text(self, value: bytes) -> str:
        return value.decode(self.encoding, errors="replace")

    # =========================================================================
    # EXTH Records
    # =========================================================================

    def exth_lookup(self, record_type: int) -> Optional[bytes]:
        """
        Return the payload of the first EXTH record of ``record_type``.

        Returns None when the table carries no such record, which is a
        normal outcome (many books have no ISBN, for instance).
        """
        return self.exth_header.lookup(record_type)

    def exth_text(self, record_type: int) -> Optional[str]:
        """Like exth_lookup, decoded to text."""
        value = self.exth_lookup(record_type)
        if value is None:
            return None
        return self.decode_text(value)

    def exth_fields(self) -> dict[str, bytes]:
        """Return the well-known EXTH fields present in this container."""
        fields = {}
        for exth_type in ExthType:
            value = self.exth_lookup(exth_type)
            if value is not None:
                fields[exth_type.field_name] = value
        return fields

    @property
    def author(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.AUTHOR)

    @property
    def publisher(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.PUBLISHER)

    @property
    def imprint(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.IMPRINT)

    @property
    def description(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.DESCRIPTION)

    @property
    def isbn(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.ISBN)

    @property
    def subject(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.SUBJECT)

    @property
    def published_at(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.PUBLISHED_AT)

    @property
    def review(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.REVIEW)

    @property
    def contributor(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.CONTRIBUTOR)

    @property
    def rights(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.RIGHTS)

    @property
    def subject_code(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.SUBJECT_CODE)

    @property
    def type(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.TYPE)

    @property
    def source(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.SOURCE)

    @property
    def asin(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.ASIN)

    @property
    def version(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.VERSION)

    @property
    def adult(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.ADULT)

    @property
    def coveroffset(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.COVEROFFSET)

    @property
    def thumboffset(self) -> Optional[bytes]:
        return self.exth_lookup(ExthType.THUMBOFFSET)

    # =========================================================================
    # Images
    # =========================================================================

    def extract_cover(self) -> Optional[bytes]:
        """
        Return the cover image bytes, or None if the book has no cover.

        Raises:
            InvalidContainerError: If the MOBI or EXTH magic is missing
            OutOfRangeError: If the image record lies outside the file
        """
        return extract_cover(self.data, checked=self.config.checked_record_index)

    def extract_thumbnail(self) -> Optional[bytes]:
        """Return the thumbnail image bytes, or None if there is none."""
        return extract_thumbnail(self.data, checked=self.config.checked_record_index)

    def save_cover(self, filepath: Union[str, Path]) -> bool:
        """
        Write the cover image to ``filepath``.

        Returns:
            True if a cover was written, False if the book has none (no
            file is created in that case)
        """
        return _save(self.extract_cover(), filepath)

    def save_thumbnail(self, filepath: Union[str, Path]) -> bool:
        """Write the thumbnail image to ``filepath``; False if there is none."""
        return _save(self.extract_thumbnail(), filepath)


def _save(image: Optional[bytes], filepath: Union[str, Path]) -> bool:
    if image is None:
        logger.debug(f"No image to write to {filepath}")
        return False
    Path(filepath).write_bytes(image)
    return True


# =============================================================================
# Convenience Functions
# =============================================================================

def decode(source: ByteSource, config: Optional[ReaderConfig] = None) -> Metadata:
    """
    Decode the metadata of a MOBI container.

    Raises:
        InvalidContainerError: If the "BOOKMOBI" signature is missing
        OutOfRangeError: If a header lies outside the source
    """
    return Metadata(data=source, config=config or ReaderConfig())


def decode_file(
    filepath: Union[str, Path], config: Optional[ReaderConfig] = None
) -> Metadata:
    """Read and decode a MOBI file from disk."""
    return Metadata.from_file(filepath, config)
