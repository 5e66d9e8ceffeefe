"""
mobimeta - MOBI Ebook Metadata Reader
=====================================

This package reads structural metadata from MOBI ebook containers without
rendering or decompressing the book text.

A MOBI file is a Palm database (PDB). Its first record ("record zero")
holds the PalmDOC header, the MOBI header, the optional EXTH table of
tagged metadata records and the full book name. Images, including the
cover, live in their own PDB records after the text.

Main Components
---------------
- **source**: Random-access byte sources (in-memory, file object, slice)
- **mobi**: Header decoding, EXTH lookup and cover resolution
- **config**: Decoding options (ReaderConfig)
- **cli**: The ``mobimeta`` command-line tool

Quick Start
-----------
    >>> from mobimeta import Metadata
    >>> meta = Metadata.from_file("sherlock.mobi")
    >>> meta.title_text
    'The Adventures of Sherlock Holmes'
    >>> meta.author
    b'Arthur Conan Doyle'
    >>> meta.save_cover("sherlock.jpg")
    True

Or use the command-line tool:
    $ mobimeta info sherlock.mobi
    $ mobimeta cover sherlock.mobi -o sherlock.jpg

Version History
---------------
1.0.0 - Initial release: header decoding, EXTH lookup, cover and thumbnail
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from mobimeta.errors import (
    MobiError,
    InvalidContainerError,
    OutOfRangeError,
    InvalidRecordIndexError,
)
from mobimeta.config import ReaderConfig
from mobimeta.source import (
    ByteSource,
    BytesSource,
    FileSource,
    SliceSource,
)
from mobimeta.mobi import (
    Metadata,
    ExthType,
    PdbHeader,
    PalmDocHeader,
    MobiHeader,
    ExthRecord,
    ExthTable,
    decode,
    decode_file,
    extract_cover,
    extract_thumbnail,
)

__all__ = [
    # Version info
    "__version__",
    # Exception hierarchy
    "MobiError",
    "InvalidContainerError",
    "OutOfRangeError",
    "InvalidRecordIndexError",
    # Configuration
    "ReaderConfig",
    # Byte sources
    "ByteSource",
    "BytesSource",
    "FileSource",
    "SliceSource",
    # Decoder
    "Metadata",
    "ExthType",
    "PdbHeader",
    "PalmDocHeader",
    "MobiHeader",
    "ExthRecord",
    "ExthTable",
    "decode",
    "decode_file",
    "extract_cover",
    "extract_thumbnail",
]
