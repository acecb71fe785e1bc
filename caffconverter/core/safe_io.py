"""Bounds-checked read/copy primitives and an overflow-checked byte counter.

Every length in a CIFF/CAFF file comes from untrusted input, so reads go
through these helpers instead of touching the stream directly. Integers are
little-endian.
"""

from __future__ import annotations

import struct
from typing import BinaryIO, Optional, Union

from .errors import DecodeError, ErrorKind

U64_MAX = 0xFFFF_FFFF_FFFF_FFFF
CHUNK_SIZE = 64 * 1024

_U16 = struct.Struct("<H")
_U64 = struct.Struct("<Q")


def safe_read(
    destination: Optional[bytearray],
    capacity: int,
    element_size: int,
    element_count: int,
    source: Optional[BinaryIO],
) -> int:
    """Read ``element_size * element_count`` bytes from ``source`` into ``destination``.

    Returns the number of bytes actually read, which is short at end of stream.
    """

    if destination is None or source is None:
        raise DecodeError(ErrorKind.INVALID_HANDLE, "read target or source is missing")
    requested = element_size * element_count
    if requested > capacity or capacity > len(destination):
        raise DecodeError(
            ErrorKind.CAPACITY_EXCEEDED,
            f"read of {requested} bytes into a {min(capacity, len(destination))}-byte buffer",
        )
    if requested == 0:
        return 0

    view = memoryview(destination)[:requested]
    total = 0
    try:
        while total < requested:
            count = source.readinto(view[total:])
            if not count:
                break
            total += count
    except OSError as exc:
        raise DecodeError(ErrorKind.IO_FAILURE, str(exc)) from exc
    finally:
        view.release()
    return total


def safe_copy(
    destination: Optional[Union[bytearray, memoryview]],
    capacity: int,
    source: Optional[Union[bytes, bytearray, memoryview]],
    byte_count: int,
) -> None:
    """Copy ``byte_count`` bytes from ``source`` to the start of ``destination``."""

    if destination is None or source is None:
        raise DecodeError(ErrorKind.INVALID_HANDLE, "copy target or source is missing")
    if byte_count > capacity or capacity > len(destination) or byte_count > len(source):
        raise DecodeError(
            ErrorKind.CAPACITY_EXCEEDED,
            f"copy of {byte_count} bytes into a {min(capacity, len(destination))}-byte buffer",
        )
    destination[:byte_count] = source[:byte_count]


def checked_add(accumulator: int, delta: int) -> int:
    """Add ``delta`` to an unsigned 64-bit counter, refusing to wrap around."""

    if delta > U64_MAX - accumulator:
        raise DecodeError(ErrorKind.COUNTER_OVERFLOW, f"{accumulator} + {delta} exceeds 64 bits")
    return accumulator + delta


class ByteCounter:
    """Reads from a binary stream while keeping an overflow-checked byte count."""

    def __init__(self, source: Optional[BinaryIO], start: int = 0):
        if source is None:
            raise DecodeError(ErrorKind.INVALID_HANDLE, "input stream is missing")
        self.source = source
        self.count = start

    def read_into(self, destination: bytearray, size: int) -> int:
        read = safe_read(destination, len(destination), 1, size, self.source)
        self.count = checked_add(self.count, read)
        return read

    def read_exact(self, size: int, what: str = "data") -> bytes:
        buffer = bytearray(size)
        read = self.read_into(buffer, size)
        if read != size:
            raise DecodeError(ErrorKind.IO_FAILURE, f"unexpected end of stream while reading {what}")
        return bytes(buffer)

    def read_plane(self, size: int, what: str = "pixel data") -> bytearray:
        """Read exactly ``size`` bytes in chunks into a freshly allocated buffer."""

        plane = bytearray(size)
        chunk = bytearray(min(size, CHUNK_SIZE))
        offset = 0
        with memoryview(plane) as view:
            while offset < size:
                wanted = min(len(chunk), size - offset)
                read = self.read_into(chunk, wanted)
                if read != wanted:
                    raise DecodeError(
                        ErrorKind.IO_FAILURE,
                        f"unexpected end of stream while reading {what} ({offset + read} of {size} bytes)",
                    )
                safe_copy(view[offset:], size - offset, chunk, read)
                offset += read
        return plane

    def read_byte(self, what: str = "byte") -> int:
        return self.read_exact(1, what)[0]

    def read_u8(self, what: str = "u8") -> int:
        return self.read_byte(what)

    def read_u16(self, what: str = "u16") -> int:
        return _U16.unpack(self.read_exact(_U16.size, what))[0]

    def read_u64(self, what: str = "u64") -> int:
        return _U64.unpack(self.read_exact(_U64.size, what))[0]
