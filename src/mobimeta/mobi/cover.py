"""
Cover Image Resolution
======================

Locates the embedded cover (or thumbnail) image of a MOBI container.

This path re-reads every header field it needs straight from the raw
byte source instead of using the decoded header objects, so it works
from nothing more than a ByteSource:

1. Record zero offset from the PDB record table
2. "MOBI" magic at record0 + 16
3. MOBI header length (record0 + 20), first image record index
   (record0 + 108) and EXTH flags (record0 + 128)
4. No EXTH flag (0x40): no cover
5. "EXTH" magic right after the MOBI header
6. EXTH record 201 (cover) or 202 (thumbnail): an index relative to the
   first image record; missing record means no cover
7. The image is the whole PDB record at first_image + relative index;
   its length is the gap to the next record's offset

Usage Examples
--------------
    >>> from mobimeta.source import BytesSource
    >>> from mobimeta.mobi.cover import extract_cover
    >>> image = extract_cover(BytesSource(data))
    >>> if image is not None:
    ...     Path("cover.jpg").write_bytes(image)
"""

from typing import Optional
import logging

from mobimeta.mobi.reader import (
    EXTH_MAGIC,
    MOBI_MAGIC,
    ensure_magic,
    find_exth_record,
    read_uint32,
    record_offset,
    record_range,
)
from mobimeta.mobi.records import EXTH_FLAG, ExthType
from mobimeta.source import ByteSource

logger = logging.getLogger(__name__)


# Involved addresses relative to record zero
MOBI_HEADER = 16
MOBI_HEADER_LENGTH = 20
FIRST_IMAGE_RECORD = 108
EXTH_FLAGS = 128


def find_image_record(source: ByteSource, exth_type: int) -> Optional[int]:
    """
    Resolve the absolute PDB record index named by an EXTH image record.

    Args:
        source: The whole container
        exth_type: EXTH type holding a relative image index (201 or 202)

    Returns:
        The PDB record index, or None when the container has no EXTH
        table, no record of ``exth_type``, or one whose payload is
        shorter than 4 bytes

    Raises:
        InvalidContainerError: If the "MOBI" or "EXTH" magic is missing
        OutOfRangeError: If any offset points outside the source
    """
    first_record_offset = record_offset(source, 0)
    mobi_header_offset = first_record_offset + MOBI_HEADER

    ensure_magic(source, MOBI_MAGIC, mobi_header_offset)

    mobi_header_length = read_uint32(source, first_record_offset + MOBI_HEADER_LENGTH)
    first_image_record_index = read_uint32(source, first_record_offset + FIRST_IMAGE_RECORD)
    exth_flags = read_uint32(source, first_record_offset + EXTH_FLAGS)

    if exth_flags & EXTH_FLAG == 0:
        logger.debug("EXTH flag not set, container has no image records")
        return None

    exth_offset = mobi_header_offset + mobi_header_length

    ensure_magic(source, EXTH_MAGIC, exth_offset)

    found = find_exth_record(source, exth_offset, exth_type)
    if found is None:
        return None

    payload_offset, payload_length = found
    if payload_length < 4:
        logger.debug(
            f"{ExthType.get_name(exth_type)} payload is {payload_length} bytes, "
            f"too short for a record index"
        )
        return None

    relative_index = read_uint32(source, payload_offset)

    # A relative index of 0 is the first image record itself
    return first_image_record_index + relative_index


def extract_image(
    source: ByteSource, exth_type: int, checked: bool = False
) -> Optional[bytes]:
    """
    Return the bytes of the image record named by ``exth_type``.

    Args:
        source: The whole container
        exth_type: ExthType.COVEROFFSET or ExthType.THUMBOFFSET
        checked: Validate record indices against the PDB record count

    Returns:
        The image bytes, or None when the container carries no such image
    """
    index = find_image_record(source, exth_type)
    if index is None:
        return None

    start, end = record_range(source, index, checked=checked)
    logger.debug(
        f"{ExthType.get_name(exth_type)}: record {index}, "
        f"{end - start} bytes at offset {start}"
    )
    return source.read(start, end - start)


def extract_cover(source: ByteSource, checked: bool = False) -> Optional[bytes]:
    """Return the cover image bytes, or None if the container has none."""
    return extract_image(source, ExthType.COVEROFFSET, checked=checked)


def extract_thumbnail(source: ByteSource, checked: bool = False) -> Optional[bytes]:
    """Return the thumbnail image bytes, or None if the container has none."""
    return extract_image(source, ExthType.THUMBOFFSET, checked=checked)
