"""
Random-Access Byte Sources
==========================

The decoders in this package never touch files directly. They read
through a ByteSource: anything with a ``size`` and a ``read(offset,
length)`` method that returns exactly ``length`` bytes or raises
OutOfRangeError.

Implementations
---------------
- **BytesSource**: in-memory bytes, bytearray or memoryview
- **FileSource**: an open binary file object (the caller owns the handle)
- **SliceSource**: a view that rebases offset 0 onto a parent offset;
  used for the "record zero" stream that MOBI header fields are
  relative to

Example:
    >>> source = BytesSource(b"BOOKMOBI")
    >>> source.read(4, 4)
    b'MOBI'
"""

import os
from typing import BinaryIO, Protocol, Union, runtime_checkable

from mobimeta.errors import OutOfRangeError


@runtime_checkable
class ByteSource(Protocol):
    """Read-only random access over a finite byte sequence."""

    @property
    def size(self) -> int:
        ...

    def read(self, offset: int, length: int) -> bytes:
        ...


def check_window(offset: int, length: int, size: int) -> None:
    """Raise OutOfRangeError unless [offset, offset+length) fits in size."""
    if offset < 0 or length < 0 or offset + length > size:
        raise OutOfRangeError(offset, length, size)


class BytesSource:
    """
    ByteSource over an in-memory buffer.

    The buffer is wrapped in a read-only memoryview so slicing never
    copies more than the requested window.
    """

    def __init__(self, data: Union[bytes, bytearray, memoryview]):
        self._view = memoryview(data).toreadonly()

    @property
    def size(self) -> int:
        return self._view.nbytes

    def read(self, offset: int, length: int) -> bytes:
        check_window(offset, length, self.size)
        return self._view[offset:offset + length].tobytes()

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return f"BytesSource(size={self.size})"


class FileSource:
    """
    ByteSource over an open, seekable binary file object.

    The size is taken once at construction. The file handle is not
    closed by this class; its lifetime belongs to the caller. Reads
    seek and read, so one FileSource must not be shared between threads.
    """

    def __init__(self, fileobj: BinaryIO):
        self._file = fileobj
        self._size = fileobj.seek(0, os.SEEK_END)

    @property
    def size(self) -> int:
        return self._size

    def read(self, offset: int, length: int) -> bytes:
        check_window(offset, length, self._size)
        self._file.seek(offset)
        data = self._file.read(length)
        # The file shrank underneath us
        if len(data) != length:
            raise OutOfRangeError(offset, length, offset + len(data))
        return data

    def __repr__(self) -> str:
        name = getattr(self._file, "name", "<stream>")
        return f"FileSource({name!r}, size={self._size})"


class SliceSource:
    """
    A ByteSource whose offset 0 is ``start`` in a parent source.

    The slice runs to the end of the parent. Out-of-range errors are
    reported by the parent, in absolute parent offsets.
    """

    def __init__(self, parent: ByteSource, start: int):
        if start < 0 or start > parent.size:
            raise OutOfRangeError(start, 0, parent.size)
        self.parent = parent
        self.start = start

    @property
    def size(self) -> int:
        return self.parent.size - self.start

    def read(self, offset: int, length: int) -> bytes:
        if offset < 0:
            raise OutOfRangeError(self.start + offset, length, self.parent.size)
        return self.parent.read(self.start + offset, length)

    def __repr__(self) -> str:
        return f"SliceSource(start={self.start}, size={self.size})"
