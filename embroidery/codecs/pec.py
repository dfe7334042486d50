"""Brother PEC codec -- 7/12-bit escape delta scheme.

Stitch encoding:
    A coordinate delta in [-64, 63] is one byte (7-bit two's complement,
    high bit clear).  Anything else, and every jump, is a 12-bit two's
    complement value over two bytes with the high bit of the first byte
    set; ``JUMP_CODE`` (0x10) or ``TRIM_CODE`` (0x20) in that byte mark a
    move rather than a stitch.  X and Y are encoded independently.

Markers:
    ``FE B0 xx``  color change, ``xx`` alternating 02/01
    ``FF``        end of stitches (the reader stops on ``FF 00``)

File layout::

    "#PEC0001"
    "LA:" label(16) "\\r" 12*0x20 FF 00 stride height 12*0x20
    color_count-1, color indices, 0x20 padding (463 bytes from count)
    00 00 <block length:24> 31 FF F0 width height 01E0 01B0 <stitches>
    preview icons: whole design + one per color block
"""

from __future__ import annotations

import io
import logging
from typing import BinaryIO, Optional

from embroidery.codecs import pec_graphics
from embroidery.codecs.primitives import (
    MAX_STITCHES,
    ByteReader,
    ByteWriter,
    ParseError,
    StitchBudget,
    signed7,
    signed12,
)
from embroidery.palettes.pec_threads import PEC_THREADS
from embroidery.palettes.quantizer import build_unique_palette
from embroidery.pattern_ir.commands import (
    COLOR_CHANGE,
    COMMAND_MASK,
    END,
    JUMP,
    STITCH,
)
from embroidery.pattern_ir.pattern import EmbPattern
from embroidery.pattern_ir.thread import EmbThread
from embroidery.transcoder.encoder import Transcoder
from embroidery.transcoder.settings import EncoderSettings

logger = logging.getLogger(__name__)

MAGIC = b"#PEC0001"
FLAG_LONG = 0x80
JUMP_CODE = 0x10
TRIM_CODE = 0x20
COLOR_TABLE_SIZE = 463
LABEL_LENGTH = 8


# ---------------------------------------------------------------------------
# Delta encoding
# ---------------------------------------------------------------------------


def encode_value(value: int, long: bool = False, flag: int = 0) -> bytes:
    """Encode one coordinate delta.

    Parameters
    ----------
    value : int
        Delta in 0.1 mm, within [-2048, 2047].
    long : bool
        Force the 2-byte form (always used for jumps).
    flag : int
        ``JUMP_CODE`` or ``TRIM_CODE`` for the 2-byte form.
    """
    if not long and -64 <= value <= 63:
        return bytes((value & 0x7F,))
    packed = (value & 0x0FFF) | 0x8000 | (flag << 8)
    return bytes(((packed >> 8) & 0xFF, packed & 0xFF))


def encode_stitch(dx: int, dy: int) -> bytes:
    return encode_value(dx) + encode_value(dy)


def encode_jump(dx: int, dy: int) -> bytes:
    return encode_value(dx, True, JUMP_CODE) + encode_value(dy, True, JUMP_CODE)


def encode_trimjump(dx: int, dy: int) -> bytes:
    return encode_value(dx, True, TRIM_CODE) + encode_value(dy, True, TRIM_CODE)


def pec_encode(pattern: EmbPattern) -> bytes:
    """Encode the stitch stream of an already-transcoded pattern.

    STOP and TRIM have no PEC encoding: a trim is implied by every jump
    after the first one.
    """
    out = bytearray()
    color_two = True
    jumping = True
    init = True
    xx = yy = 0
    for stitch in pattern.stitches:
        kind = stitch.command & COMMAND_MASK
        if kind == END:
            out.append(0xFF)
            break
        if kind in (STITCH, JUMP):
            dx = int(round(stitch.x - xx))
            dy = int(round(stitch.y - yy))
            xx += dx
            yy += dy
            if kind == STITCH:
                if jumping:
                    if dx != 0 and dy != 0:
                        out += encode_stitch(0, 0)
                    jumping = False
                out += encode_stitch(dx, dy)
            else:
                jumping = True
                out += encode_jump(dx, dy) if init else encode_trimjump(dx, dy)
        elif kind == COLOR_CHANGE:
            if jumping:
                out += encode_stitch(0, 0)
                jumping = False
            out += b"\xfe\xb0"
            out.append(0x02 if color_two else 0x01)
            color_two = not color_two
        init = False
    return bytes(out)


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------


def _color_indices(pattern: EmbPattern) -> list[int]:
    threads = pattern.threads or [EmbThread(0x000000)]
    # index 0 is the placeholder "Unknown" slot
    indices = build_unique_palette(PEC_THREADS, threads, reserved=(0,))
    return [index if index is not None else 0 for index in indices]


def write_pec_header(writer: ByteWriter, pattern: EmbPattern) -> list[int]:
    """Write label, icon geometry and the color table.  Returns the indices."""
    name = (pattern.get_metadata("name") or "Untitled")[:LABEL_LENGTH]
    writer.write_bytes(f"LA:{name:<16}\r".encode("ascii", "replace"))
    writer.write_bytes(b"\x20" * 12)
    writer.write_bytes(b"\xff\x00")
    writer.write_u8(pec_graphics.ICON_STRIDE)
    writer.write_u8(pec_graphics.ICON_HEIGHT)
    writer.write_bytes(b"\x20" * 12)

    indices = _color_indices(pattern)
    if len(indices) > 256:
        logger.warning("PEC stores at most 256 colors, truncating %d", len(indices))
        indices = indices[:256]
    writer.write_u8(len(indices) - 1)
    writer.write_bytes(bytes(indices))
    writer.write_bytes(b"\x20" * (COLOR_TABLE_SIZE - len(indices)))
    return indices


def write_pec_graphics(writer: ByteWriter, pattern: EmbPattern) -> None:
    bounds = pattern.bounds()
    points = [(s.x, s.y) for s in pattern.stitches if s.kind == STITCH]
    writer.write_bytes(pec_graphics.pack_icon(pec_graphics.draw_scaled(bounds, points, 4)))
    for block, _thread in pattern.get_as_colorblocks():
        icon = pec_graphics.draw_scaled(bounds, block, 5)
        writer.write_bytes(pec_graphics.pack_icon(icon))


def write_pec_block(writer: ByteWriter, pattern: EmbPattern) -> None:
    """Write the stitch block and back-patch its 24-bit length."""
    min_x, min_y, max_x, max_y = pattern.bounds()
    start = writer.tell()
    writer.write_bytes(b"\x00\x00")
    writer.write_u24le(0)
    writer.write_bytes(b"\x31\xff\xf0")
    writer.write_i16le(int(round(max_x - min_x)))
    writer.write_i16le(int(round(max_y - min_y)))
    writer.write_i16le(0x1E0)
    writer.write_i16le(0x1B0)
    writer.write_bytes(pec_encode(pattern))
    end = writer.tell()
    writer.seek(start + 2)
    writer.write_u24le(end - start)
    writer.seek(end)


def write_pec_section(writer: ByteWriter, pattern: EmbPattern) -> None:
    write_pec_header(writer, pattern)
    write_pec_block(writer, pattern)
    write_pec_graphics(writer, pattern)


def write(
    pattern: EmbPattern,
    stream: BinaryIO,
    settings: Optional[EncoderSettings] = None,
) -> None:
    """Transcode ``pattern`` for PEC limits and write it to ``stream``.

    The stream must be seekable (the block length is back-patched); a
    non-seekable sink is written through an in-memory buffer.
    """
    if settings is None:
        from embroidery.configs.loader import get_writer_settings

        settings = get_writer_settings("pec")
    encoded = Transcoder(settings).transcode(pattern)
    encoded.ensure_end()

    buf = io.BytesIO()
    writer = ByteWriter(buf)
    writer.write_bytes(MAGIC)
    write_pec_section(writer, encoded)
    stream.write(buf.getvalue())
    logger.debug(
        "Wrote PEC: %d records, %d threads, %d bytes",
        len(encoded.stitches),
        len(encoded.threads),
        buf.tell(),
    )


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


def read_pec_stitches(
    reader: ByteReader, pattern: EmbPattern, max_stitches: int = MAX_STITCHES
) -> int:
    """Decode stitches up to the ``FF 00`` terminator.

    Returns
    -------
    int
        Offset of the terminator's ``FF`` byte.

    Raises
    ------
    ParseError
        If the data ends before the terminator or part-way through a
        record, or more than ``max_stitches`` records are decoded.
    """
    budget = StitchBudget("PEC", max_stitches)
    while True:
        val1, val2 = reader.read_bytes(2)
        if val1 == 0xFF and val2 == 0x00:
            return reader.tell() - 2
        budget.consume()
        if val1 == 0xFE and val2 == 0xB0:
            reader.skip(1)
            pattern.color_change(0, 0)
            continue

        jump = trim = False
        if val1 & FLAG_LONG:
            trim = bool(val1 & TRIM_CODE)
            jump = bool(val1 & JUMP_CODE)
            x = signed12((val1 << 8) | val2)
            val2 = reader.read_u8()
        else:
            x = signed7(val1)

        if val2 & FLAG_LONG:
            trim = trim or bool(val2 & TRIM_CODE)
            jump = jump or bool(val2 & JUMP_CODE)
            y = signed12((val2 << 8) | reader.read_u8())
        else:
            y = signed7(val2)

        if jump:
            pattern.jump(x, y)
        elif trim:
            pattern.trim()
            pattern.jump(x, y)
        else:
            pattern.stitch(x, y)


def read_pec_section(
    reader: ByteReader, pattern: EmbPattern, max_stitches: int = MAX_STITCHES
) -> None:
    """Read a PEC section starting at its ``LA:`` label.

    Raises
    ------
    ParseError
        If the stitch terminator lies outside the declared block length.
    """
    reader.skip(3)
    label = reader.read_bytes(16).decode("ascii", "replace").strip()
    if label:
        pattern.add_metadata("name", label)
    reader.skip(0x0F)
    stride = reader.read_u8()
    icon_height = reader.read_u8()
    reader.skip(0x0C)
    color_changes = reader.read_u8()
    color_bytes = reader.read_bytes(color_changes + 1)
    for byte in color_bytes:
        pattern.add_thread(PEC_THREADS[byte % len(PEC_THREADS)].copy())
    reader.skip(0x1D0 - color_changes)

    block_length = reader.read_u24le()
    # the length counts from two bytes before the field just read
    block_end = block_length - 5 + reader.tell()
    reader.skip(0x0B)
    terminator = read_pec_stitches(reader, pattern, max_stitches)
    if terminator >= block_end:
        raise ParseError(
            f"PEC: end of stitches at offset {terminator} outside the declared "
            f"block (length {block_length}, ends at {block_end})"
        )
    logger.debug(
        "PEC block: %d colors, icon %dx%d, %d bytes",
        len(color_bytes),
        stride * 8,
        icon_height,
        block_length,
    )
    pattern.interpolate_duplicate_color_as_stop()
    pattern.ensure_end()


def read(stream: BinaryIO, max_stitches: int = MAX_STITCHES) -> EmbPattern:
    """Read a standalone ``.pec`` file.

    Raises
    ------
    ParseError
        On a bad magic string, truncated data, a block length that does
        not cover the stitches, or too many stitches.
    """
    reader = ByteReader(stream, "PEC")
    magic = reader.read_bytes(len(MAGIC))
    if magic != MAGIC:
        raise ParseError(f"PEC: bad magic {magic!r}, expected {MAGIC!r}")
    pattern = EmbPattern()
    read_pec_section(reader, pattern, max_stitches)
    return pattern
