"""
mobimeta Test Configuration
===========================

Shared fixtures for building synthetic MOBI containers.

build_mobi() lays out a minimal but well-formed file:

    PDB header (78) | record table (8 per record) | gap |
    record 0: PalmDOC header | MOBI header | EXTH table | title |
    text records | image records | EOF record
"""

from dataclasses import dataclass, field
import struct

import pytest


EOF_RECORD = b"\xe9\x8e\r\n"

# Offsets inside the MOBI header (record0 offset - 16)
MOBI_FULL_NAME_OFFSET = 84 - 16
MOBI_FULL_NAME_LENGTH = 88 - 16
MOBI_FIRST_IMAGE = 108 - 16
MOBI_EXTH_FLAGS = 128 - 16


@dataclass
class MobiLayout:
    """A built container plus the offsets the tests check against."""
    data: bytes
    record_offsets: list[int]
    first_image_record_index: int
    exth_offset: int
    title_offset: int
    images: list[bytes] = field(default_factory=list)


def build_exth(records: list[tuple[int, bytes]]) -> bytes:
    """Build an EXTH table: magic, header length, count, records, padding."""
    body = b"".join(
        struct.pack(">LL", record_type, len(payload) + 8) + payload
        for record_type, payload in records
    )
    length = 12 + len(body)
    table = b"EXTH" + struct.pack(">LL", length, len(records)) + body
    padding = (4 - len(table) % 4) % 4
    return table + b"\0" * padding


def build_mobi(
    title: bytes = b"The Adventures of Sherlock Holmes",
    exth_records: list[tuple[int, bytes]] | None = None,
    exth_flags: int = 0x50,
    include_exth: bool = True,
    header_length: int = 232,
    text_encoding: int = 65001,
    text_records: list[bytes] | None = None,
    images: list[bytes] | None = None,
    gap: int = 2,
    name: bytes = b"Sherlock_Holmes",
) -> MobiLayout:
    """
    Build a synthetic MOBI container.

    Args:
        title: Full book name stored after the EXTH table
        exth_records: (type, payload) pairs, in table order
        exth_flags: Value of the MOBI header EXTH flags field
        include_exth: Whether an EXTH table follows the MOBI header
        header_length: Declared MOBI header length (at least 116)
        text_encoding: 65001 (UTF-8) or 1252
        text_records: Text record payloads
        images: Image record payloads, stored after the text records
        gap: Padding bytes between the record table and record zero
        name: PDB database name
    """
    exth_records = exth_records if exth_records is not None else []
    text_records = text_records if text_records is not None else [b"<html>text</html>"]
    images = images if images is not None else []

    exth = build_exth(exth_records) if include_exth else b""
    first_image = 1 + len(text_records)

    palmdoc = struct.pack(
        ">HHLHHHH", 1, 0, sum(len(t) for t in text_records),
        len(text_records), 4096, 0, 0,
    )

    mobi = bytearray(header_length)
    mobi[0:4] = b"MOBI"
    struct.pack_into(">LLLLL", mobi, 4, header_length, 2, text_encoding, 0x1234, 6)
    title_offset = 16 + header_length + len(exth)
    struct.pack_into(">L", mobi, 64, first_image)
    struct.pack_into(">LL", mobi, MOBI_FULL_NAME_OFFSET, title_offset, len(title))
    struct.pack_into(">L", mobi, MOBI_FIRST_IMAGE, first_image)
    struct.pack_into(">L", mobi, MOBI_EXTH_FLAGS, exth_flags)

    record_zero = palmdoc + bytes(mobi) + exth + title + b"\0\0"
    records = [record_zero, *text_records, *images, EOF_RECORD]

    offsets = []
    position = 78 + 8 * len(records) + gap
    for record in records:
        offsets.append(position)
        position += len(record)

    header = struct.pack(
        ">32sHHLLLLLL4s4sLLH",
        name, 0, 0, 0, 0, 0, 0, 0, 0, b"BOOK", b"MOBI", 0, 0, len(records),
    )
    table = b"".join(
        struct.pack(">LL", offset, 2 * index)
        for index, offset in enumerate(offsets)
    )
    data = header + table + b"\0" * gap + b"".join(records)

    return MobiLayout(
        data=data,
        record_offsets=offsets,
        first_image_record_index=first_image,
        exth_offset=offsets[0] + 16 + header_length,
        title_offset=title_offset,
        images=images,
    )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def cover_image() -> bytes:
    """Fake JPEG payload used as the cover."""
    return b"\xff\xd8\xff\xe0" + b"COVER" * 20 + b"\xff\xd9"


@pytest.fixture
def thumbnail_image() -> bytes:
    """Fake JPEG payload used as the thumbnail."""
    return b"\xff\xd8\xff\xe0" + b"THUMB" * 4 + b"\xff\xd9"


@pytest.fixture
def sherlock(cover_image: bytes, thumbnail_image: bytes) -> MobiLayout:
    """
    A complete container: author, publisher, two ISBN records, and a
    cover (relative index 1) plus thumbnail (relative index 2).
    """
    return build_mobi(
        exth_records=[
            (100, b"Arthur Conan Doyle"),
            (101, b"Project Gutenberg"),
            (104, b"9780141034355"),
            (104, b"0000000000000"),
            (201, struct.pack(">L", 1)),
            (202, struct.pack(">L", 2)),
        ],
        images=[b"\x89PNG first image", cover_image, thumbnail_image],
    )


@pytest.fixture
def sherlock_file(tmp_path, sherlock: MobiLayout):
    """The sherlock container written to disk."""
    path = tmp_path / "sherlock.mobi"
    path.write_bytes(sherlock.data)
    return path
