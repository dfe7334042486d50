"""Tests for the binary codec primitives.

Validates sign extension at the field boundaries, little-endian
reader/writer symmetry, truncation errors and the stitch budget.
"""

from __future__ import annotations

import io

import pytest

from embroidery.codecs.primitives import (
    MAX_STITCHES,
    ByteReader,
    ByteWriter,
    CodecError,
    ParseError,
    StitchBudget,
    signed7,
    signed8,
    signed12,
    signed16,
)


class TestSignExtension:
    @pytest.mark.parametrize(
        "raw, expected",
        [(0, 0), (63, 63), (64, -64), (127, -1), (0xC0, -64)],
    )
    def test_signed7(self, raw: int, expected: int) -> None:
        assert signed7(raw) == expected

    @pytest.mark.parametrize(
        "raw, expected",
        [(0x7FF, 2047), (0x800, -2048), (0xFFF, -1), (0x8064, 100)],
    )
    def test_signed12(self, raw: int, expected: int) -> None:
        assert signed12(raw) == expected

    def test_signed8_and_16(self) -> None:
        assert signed8(0x80) == -128
        assert signed8(0x7F) == 127
        assert signed16(0xFFFF) == -1
        assert signed16(0x8000) == -32768


class TestByteReaderWriter:
    def test_little_endian_layout(self) -> None:
        buf = io.BytesIO()
        w = ByteWriter(buf)
        w.write_u8(0xAB)
        w.write_i16le(-2)
        w.write_u24le(0x123456)
        w.write_i32le(-1)
        assert buf.getvalue() == b"\xab\xfe\xff\x56\x34\x12\xff\xff\xff\xff"

    def test_reader_decodes_writer_output(self) -> None:
        buf = io.BytesIO()
        w = ByteWriter(buf)
        w.write_i8(-5)
        w.write_u16le(0xBEEF)
        w.write_i16le(-300)
        w.write_i32le(-123456)
        buf.seek(0)
        r = ByteReader(buf, "TEST")
        assert r.read_i8() == -5
        assert r.read_u16le() == 0xBEEF
        assert r.read_i16le() == -300
        assert r.read_i32le() == -123456

    def test_backpatch(self) -> None:
        buf = io.BytesIO()
        w = ByteWriter(buf)
        w.write_u24le(0)
        w.write_bytes(b"abc")
        end = w.tell()
        w.seek(0)
        w.write_u24le(end)
        assert buf.getvalue()[:3] == b"\x06\x00\x00"

    def test_truncated_read_raises(self) -> None:
        r = ByteReader(io.BytesIO(b"\x01\x02"), "TEST")
        with pytest.raises(ParseError, match=r"TEST: unexpected end of data .*wanted 4 bytes, got 2"):
            r.read_u32le()

    def test_size_keeps_position(self) -> None:
        r = ByteReader(io.BytesIO(b"\x01\x02\x03\x04\x05"))
        r.read_u8()
        assert r.size() == 5
        assert r.tell() == 1

    def test_parse_error_is_codec_error(self) -> None:
        assert issubclass(ParseError, CodecError)


class TestStitchBudget:
    def test_default_limit(self) -> None:
        assert MAX_STITCHES == 1_000_000
        assert StitchBudget("X").limit == MAX_STITCHES

    def test_exceeding_limit_names_values(self) -> None:
        budget = StitchBudget("PEC", limit=3)
        budget.consume(3)
        with pytest.raises(ParseError, match=r"exceeds limit of 3 \(read 4\)"):
            budget.consume()
