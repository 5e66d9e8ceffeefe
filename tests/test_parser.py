"""
Metadata Decoder Tests
======================

Tests for container validation, title lookup, EXTH lookup and the
named metadata accessors.
"""

import struct

import pytest

from conftest import build_mobi
from mobimeta import (
    ExthType,
    InvalidContainerError,
    Metadata,
    OutOfRangeError,
    ReaderConfig,
    decode,
    decode_file,
)
from mobimeta.source import BytesSource, FileSource


class TestValidation:
    """Tests for the BOOKMOBI construction gate."""

    def test_valid_container(self, sherlock):
        meta = Metadata(BytesSource(sherlock.data))
        assert meta.pdb_header.creator == b"MOBI"

    def test_wrong_magic(self, sherlock):
        data = bytearray(sherlock.data)
        data[60:68] = b"TEXtREAd"
        with pytest.raises(InvalidContainerError):
            Metadata(BytesSource(bytes(data)))

    def test_single_byte_difference(self, sherlock):
        data = bytearray(sherlock.data)
        data[67] = ord("o")
        with pytest.raises(InvalidContainerError):
            decode(BytesSource(bytes(data)))

    def test_too_short_for_magic(self):
        """A source ending before byte 68 is not a container, not a range error."""
        with pytest.raises(InvalidContainerError):
            Metadata(BytesSource(b"\0" * 60 + b"BOOKMO"))

    def test_empty_source(self):
        with pytest.raises(InvalidContainerError):
            Metadata.from_bytes(b"")

    def test_truncated_record_zero(self, sherlock):
        data = sherlock.data[:sherlock.record_offsets[0] + 40]
        with pytest.raises(OutOfRangeError):
            Metadata.from_bytes(data)

    def test_is_bookmobi(self, sherlock):
        assert Metadata.is_bookmobi(BytesSource(sherlock.data))
        assert not Metadata.is_bookmobi(BytesSource(b"BOOKMOBI"))


class TestHeaders:
    """Tests for the decoded headers exposed by Metadata."""

    def test_palm_doc_header(self, sherlock):
        meta = Metadata.from_bytes(sherlock.data)
        assert meta.palm_doc_header.compression == 1
        assert meta.palm_doc_header.record_count == 1

    def test_mobi_header(self, sherlock):
        meta = Metadata.from_bytes(sherlock.data)
        assert meta.mobi_header.header_length == 232
        assert meta.mobi_header.first_image_record_index == 2

    def test_record_zero_stream(self, sherlock):
        meta = Metadata.from_bytes(sherlock.data)
        assert meta.record_zero.start == sherlock.record_offsets[0]


class TestTitle:
    """Tests for title lookup."""

    def test_title_bytes(self, sherlock):
        meta = Metadata.from_bytes(sherlock.data)
        assert meta.title == b"The Adventures of Sherlock Holmes"

    def test_title_is_window_of_record_zero(self, sherlock):
        meta = Metadata.from_bytes(sherlock.data)
        start = sherlock.record_offsets[0] + meta.mobi_header.full_name_offset
        end = start + meta.mobi_header.full_name_length
        assert meta.title == sherlock.data[start:end]

    def test_title_is_stable(self, sherlock):
        meta = Metadata.from_bytes(sherlock.data)
        first = meta.title
        assert meta.title is first
        assert meta.title == first

    def test_title_text_utf8(self):
        layout = build_mobi(title="Les Misérables".encode("utf-8"))
        assert Metadata.from_bytes(layout.data).title_text == "Les Misérables"

    def test_title_text_cp1252(self):
        layout = build_mobi(title="Les Misérables".encode("cp1252"), text_encoding=1252)
        meta = Metadata.from_bytes(layout.data)
        assert meta.encoding == "cp1252"
        assert meta.title_text == "Les Misérables"

    def test_unknown_encoding_uses_fallback(self):
        layout = build_mobi(title="Señor".encode("latin-1"), text_encoding=1200)
        config = ReaderConfig(fallback_encoding="latin-1")
        meta = Metadata.from_bytes(layout.data, config)
        assert meta.encoding == "latin-1"
        assert meta.title_text == "Señor"

    def test_title_out_of_range(self, sherlock):
        data = bytearray(sherlock.data)
        # full_name_length at record0 + 88
        struct.pack_into(">L", data, sherlock.record_offsets[0] + 88, 1_000_000)
        meta = Metadata.from_bytes(bytes(data))
        with pytest.raises(OutOfRangeError):
            meta.title


class TestExthLookup:
    """Tests for EXTH lookup and the named accessors."""

    def test_lookup(self, sherlock):
        meta = Metadata.from_bytes(sherlock.data)
        assert meta.exth_lookup(100) == b"Arthur Conan Doyle"
        assert meta.exth_lookup(ExthType.PUBLISHER) == b"Project Gutenberg"

    def test_lookup_returns_first_match(self, sherlock):
        meta = Metadata.from_bytes(sherlock.data)
        assert meta.exth_lookup(ExthType.ISBN) == b"9780141034355"

    def test_lookup_absent(self, sherlock):
        meta = Metadata.from_bytes(sherlock.data)
        assert meta.exth_lookup(ExthType.ASIN) is None
        assert meta.exth_lookup(0xFFFFFFFF) is None

    def test_named_accessors(self, sherlock):
        meta = Metadata.from_bytes(sherlock.data)
        assert meta.author == b"Arthur Conan Doyle"
        assert meta.publisher == b"Project Gutenberg"
        assert meta.isbn == b"9780141034355"
        assert meta.coveroffset == b"\x00\x00\x00\x01"
        assert meta.thumboffset == b"\x00\x00\x00\x02"
        assert meta.imprint is None
        assert meta.description is None
        assert meta.asin is None

    def test_every_named_accessor_maps_to_its_code(self):
        records = [(t.value, f"value {t.value}".encode()) for t in ExthType]
        meta = Metadata.from_bytes(build_mobi(exth_records=records).data)
        for exth_type in ExthType:
            assert getattr(meta, exth_type.field_name) == f"value {exth_type.value}".encode()

    def test_exth_text(self):
        layout = build_mobi(exth_records=[(100, "Émile Zola".encode("utf-8"))])
        meta = Metadata.from_bytes(layout.data)
        assert meta.exth_text(ExthType.AUTHOR) == "Émile Zola"
        assert meta.exth_text(ExthType.ISBN) is None

    def test_exth_fields(self, sherlock):
        fields = Metadata.from_bytes(sherlock.data).exth_fields()
        assert fields["author"] == b"Arthur Conan Doyle"
        assert fields["isbn"] == b"9780141034355"
        assert "asin" not in fields

    def test_no_exth_table(self):
        layout = build_mobi(exth_flags=0, include_exth=False)
        meta = Metadata.from_bytes(layout.data)
        assert len(meta.exth_header) == 0
        assert meta.author is None
        assert meta.title == b"The Adventures of Sherlock Holmes"

    def test_flag_set_without_table_is_empty(self, caplog):
        layout = build_mobi(exth_flags=0x40, include_exth=False)
        meta = Metadata.from_bytes(layout.data)
        assert meta.exth_lookup(100) is None
        assert "EXTH flag set" in caplog.text

    def test_byte_layout_scenario(self):
        """Record zero at 100, MOBI at 116, header length 232, EXTH at 348."""
        layout = build_mobi(
            exth_records=[(100, b"Conan Doyle"[:8])],
            text_records=[],
            gap=6,
        )
        data = layout.data
        assert data[60:68] == b"BOOKMOBI"
        assert struct.unpack_from(">L", data, 78)[0] == 100
        assert data[116:120] == b"MOBI"
        assert data[348:352] == b"EXTH"
        meta = Metadata.from_bytes(data)
        assert meta.exth_header.record_count == 1
        assert meta.exth_lookup(100) == b"Conan Do"


class TestConstructors:
    """Tests for the file and source entry points."""

    def test_from_file(self, sherlock_file):
        meta = Metadata.from_file(sherlock_file)
        assert meta.author == b"Arthur Conan Doyle"

    def test_decode_file(self, sherlock_file):
        assert decode_file(str(sherlock_file)).title == b"The Adventures of Sherlock Holmes"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Metadata.from_file(tmp_path / "missing.mobi")

    def test_file_source(self, sherlock_file, cover_image):
        with open(sherlock_file, "rb") as f:
            meta = Metadata(FileSource(f))
            assert meta.title == b"The Adventures of Sherlock Holmes"
            assert meta.extract_cover() == cover_image

    def test_decode_with_config(self, sherlock):
        config = ReaderConfig(checked_record_index=True)
        meta = decode(BytesSource(sherlock.data), config)
        assert meta.config is config
