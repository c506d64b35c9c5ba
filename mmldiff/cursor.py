"""Sequential big-endian reader over bytes or a binary stream."""

from __future__ import annotations

import io
import os
import struct
from pathlib import Path
from typing import BinaryIO, Union

from .errors import Truncated


class ByteCursor:
    """Seekable reader that raises :class:`Truncated` instead of returning short reads."""

    def __init__(self, source: bytes | bytearray | memoryview | BinaryIO):
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        self._stream = source

    @property
    def offset(self) -> int:
        return self._stream.tell()

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """Move to ``offset``; ``whence`` follows :func:`io.IOBase.seek`."""
        if whence == os.SEEK_SET and offset < 0:
            raise Truncated(f"seek to negative offset {offset}", offset=offset)
        return self._stream.seek(offset, whence)

    def skip(self, count: int) -> None:
        self.read_exact(count)

    def read_exact(self, count: int) -> bytes:
        start = self.offset
        data = self._stream.read(count)
        if len(data) != count:
            raise Truncated(
                f"needed {count} bytes at offset {start}, got {len(data)}",
                offset=start,
            )
        return data

    def read_upto(self, count: int) -> bytes:
        """Read at most ``count`` bytes; a short or empty result marks end of stream."""
        return self._stream.read(count)

    def _unpack(self, fmt: str) -> int:
        size = struct.calcsize(fmt)
        return struct.unpack(fmt, self.read_exact(size))[0]

    def read_u8(self) -> int:
        return self._unpack(">B")

    def read_u16be(self) -> int:
        return self._unpack(">H")

    def read_i16be(self) -> int:
        return self._unpack(">h")

    def read_u32be(self) -> int:
        return self._unpack(">I")

    def read_i32be(self) -> int:
        return self._unpack(">i")


Source = Union[bytes, bytearray, memoryview, str, "os.PathLike[str]", BinaryIO, ByteCursor]


def as_cursor(source: Source) -> ByteCursor:
    """Wrap bytes, a filesystem path, or an open binary stream."""
    if isinstance(source, ByteCursor):
        return source
    if isinstance(source, (str, os.PathLike)):
        return ByteCursor(Path(source).read_bytes())
    return ByteCursor(source)
