"""Binary codec primitives shared by every format reader and writer.

Provides:
    - Sign extension for 7/8/12/16-bit fields
    - ``ByteReader``: little-endian reads over a binary stream that raise
      ``ParseError`` on truncation instead of returning short data
    - ``ByteWriter``: little-endian writes with seek/tell for
      back-patching block lengths
    - ``StitchBudget``: the decode-loop guard every reader uses

Decode loops must be bounded: malformed or adversarial input must not be
able to force unbounded memory growth.  Every reader counts the records
it decodes against ``MAX_STITCHES`` and raises ``ParseError`` (naming the
limit and the observed value) when the count is exceeded.

Errors from the underlying stream (``OSError``) propagate unchanged.
"""

from __future__ import annotations

import struct
from typing import BinaryIO

MAX_STITCHES = 1_000_000


class CodecError(Exception):
    """Base class for embroidery format errors."""

    pass


class ParseError(CodecError):
    """Raised when input is malformed, truncated or exceeds a size limit."""

    pass


class EncodingError(CodecError):
    """Raised when a pattern cannot be represented in the target format."""

    pass


class UnsupportedFormatError(CodecError):
    """Raised when no codec is registered for a format name or extension."""

    pass


# ---------------------------------------------------------------------------
# Sign extension
# ---------------------------------------------------------------------------


def signed7(b: int) -> int:
    """Decode a 7-bit two's-complement field: values above 63 are negative."""
    b &= 0x7F
    return b - 128 if b > 63 else b


def signed8(b: int) -> int:
    b &= 0xFF
    return b - 256 if b > 127 else b


def signed12(b: int) -> int:
    """Decode a 12-bit two's-complement field (mask, then sign-extend)."""
    b &= 0xFFF
    return b - 0x1000 if b > 0x7FF else b


def signed16(v: int) -> int:
    v &= 0xFFFF
    return v - 0x10000 if v > 0x7FFF else v


# ---------------------------------------------------------------------------
# Bounded decoding
# ---------------------------------------------------------------------------


class StitchBudget:
    """Counts decoded records and fails once ``limit`` is exceeded.

    Parameters
    ----------
    fmt : str
        Format name used in the error message.
    limit : int
        Maximum number of records, default ``MAX_STITCHES``.
    """

    __slots__ = ("fmt", "limit", "count")

    def __init__(self, fmt: str, limit: int = MAX_STITCHES) -> None:
        self.fmt = fmt
        self.limit = limit
        self.count = 0

    def consume(self, n: int = 1) -> None:
        """Record ``n`` decoded records.

        Raises
        ------
        ParseError
            When the running count exceeds the limit.
        """
        self.count += n
        if self.count > self.limit:
            raise ParseError(
                f"{self.fmt}: stitch count exceeds limit of {self.limit} "
                f"(read {self.count})"
            )


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


class ByteReader:
    """Little-endian reader over a seekable binary stream.

    Every fixed-size read raises ``ParseError`` on short data, so format
    code never has to check for ``None``.
    """

    def __init__(self, stream: BinaryIO, fmt: str = "binary") -> None:
        self.stream = stream
        self.fmt = fmt

    def tell(self) -> int:
        return self.stream.tell()

    def seek(self, offset: int, whence: int = 0) -> None:
        self.stream.seek(offset, whence)

    def size(self) -> int:
        """Total stream length; the read position is left unchanged."""
        here = self.stream.tell()
        end = self.stream.seek(0, 2)
        self.stream.seek(here)
        return end

    def read_bytes(self, n: int) -> bytes:
        data = self.stream.read(n)
        if data is None or len(data) < n:
            got = 0 if data is None else len(data)
            raise ParseError(
                f"{self.fmt}: unexpected end of data at offset {self.tell()} "
                f"(wanted {n} bytes, got {got})"
            )
        return data

    def skip(self, n: int) -> None:
        self.read_bytes(n)

    def read_u8(self) -> int:
        return self.read_bytes(1)[0]

    def read_i8(self) -> int:
        return signed8(self.read_u8())

    def read_u16le(self) -> int:
        return struct.unpack("<H", self.read_bytes(2))[0]

    def read_i16le(self) -> int:
        return struct.unpack("<h", self.read_bytes(2))[0]

    def read_u24le(self) -> int:
        b = self.read_bytes(3)
        return b[0] | (b[1] << 8) | (b[2] << 16)

    def read_i32le(self) -> int:
        return struct.unpack("<i", self.read_bytes(4))[0]

    def read_u32le(self) -> int:
        return struct.unpack("<I", self.read_bytes(4))[0]


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------


class ByteWriter:
    """Little-endian writer; integers are masked to their field width."""

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream

    def tell(self) -> int:
        return self.stream.tell()

    def seek(self, offset: int, whence: int = 0) -> None:
        self.stream.seek(offset, whence)

    def write_bytes(self, data: bytes) -> None:
        self.stream.write(data)

    def write_u8(self, v: int) -> None:
        self.stream.write(bytes((int(v) & 0xFF,)))

    def write_i8(self, v: int) -> None:
        self.write_u8(v)

    def write_u16le(self, v: int) -> None:
        self.stream.write(struct.pack("<H", int(v) & 0xFFFF))

    def write_i16le(self, v: int) -> None:
        self.write_u16le(v)

    def write_u24le(self, v: int) -> None:
        v = int(v)
        self.stream.write(bytes((v & 0xFF, (v >> 8) & 0xFF, (v >> 16) & 0xFF)))

    def write_i32le(self, v: int) -> None:
        self.stream.write(struct.pack("<I", int(v) & 0xFFFFFFFF))
