"""Janome JEF codec -- signed-byte deltas with an ``0x80`` escape.

Stitch encoding:
    Each record is ``dx, -dy`` as signed bytes (JEF's Y axis points up).
    ``0x80`` introduces a control record ``80 ctrl dx -dy``:

    ``80 01``  color change (or stop, once the thread list is used up)
    ``80 02``  jump
    ``80 10``  end of design

Header (0x74 bytes, then the color table)::

    i32 stitch_offset      0x74 + 8 * color_count
    i32 0x14               flags
    14 bytes date, 2 zero bytes
    i32 color_count, i32 point_count, i32 hoop code
    i32 x4 design half-extents
    i32 x16 distances to the edges of four reference hoops
    i32 palette index x color_count, i32 0x0D x color_count
"""

from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import BinaryIO, Optional

from embroidery.codecs.primitives import (
    MAX_STITCHES,
    ByteReader,
    ByteWriter,
    ParseError,
    StitchBudget,
    signed8,
)
from embroidery.palettes.jef_threads import JEF_THREADS
from embroidery.palettes.quantizer import build_nonrepeat_palette
from embroidery.pattern_ir.commands import (
    COLOR_CHANGE,
    END,
    JUMP,
    STITCH,
    STOP,
    TRIM,
)
from embroidery.pattern_ir.pattern import EmbPattern
from embroidery.transcoder.encoder import Transcoder
from embroidery.transcoder.settings import EncoderSettings

logger = logging.getLogger(__name__)

HEADER_SIZE = 0x74
MAX_COLORS = 256
DATE_FORMAT = "%Y%m%d%H%M%S"

ESCAPE = 0x80
CTRL_COLOR = 0x01
CTRL_JUMP = 0x02
CTRL_END = 0x10

# Hoop codes
HOOP_110X110 = 0
HOOP_50X50 = 1
HOOP_140X200 = 2
HOOP_126X110 = 3
HOOP_200X200 = 4

# (x, y) half-sizes of the reference hoops written into the header
_REFERENCE_HOOPS = ((550, 550), (250, 250), (700, 1000), (700, 1000))


# ---------------------------------------------------------------------------
# Header helpers
# ---------------------------------------------------------------------------


def get_jef_hoop_size(width: int, height: int) -> int:
    """Smallest hoop code that fits a design of ``width`` x ``height``."""
    if width < 500 and height < 500:
        return HOOP_50X50
    if width < 1260 and height < 1100:
        return HOOP_126X110
    if width < 1400 and height < 2000:
        return HOOP_140X200
    if width < 2000 and height < 2000:
        return HOOP_200X200
    return HOOP_110X110


def _write_hoop_edge_distance(writer: ByteWriter, x_edge: int, y_edge: int) -> None:
    if min(x_edge, y_edge) >= 0:
        for value in (x_edge, y_edge, x_edge, y_edge):
            writer.write_i32le(value)
    else:
        for _ in range(4):
            writer.write_i32le(-1)


def build_jef_palette(pattern: EmbPattern) -> list[int]:
    """Color table entries in stitch order.

    Each thread in use gets its slot from the non-repeating quantizer.  A
    STOP toggles between the placeholder entry 0 and the current slot so
    the machine pauses without changing color.
    """
    assigned = build_nonrepeat_palette(JEF_THREADS, pattern.threads)
    palette: list[int] = []
    thread_index = 0
    last_index = 0
    toggled = False
    for stitch in pattern.stitches:
        kind = stitch.kind
        if (kind == COLOR_CHANGE or thread_index == 0) and thread_index < len(assigned):
            last_index = assigned[thread_index] or 0
            palette.append(last_index)
            thread_index += 1
            toggled = False
        if kind == STOP:
            toggled = not toggled
            palette.append(0 if toggled else last_index)
    return palette


def count_points(pattern: EmbPattern, trims: bool = False, trim_at: int = 3) -> int:
    """Number of 2-byte records the stitch section will hold, END included."""
    points = 1
    for stitch in pattern.stitches:
        kind = stitch.kind
        if kind == STITCH:
            points += 1
        elif kind in (JUMP, COLOR_CHANGE, STOP):
            points += 2
        elif kind == TRIM and trims:
            points += 2 * trim_at
        elif kind == END:
            break
    return points


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------


def _delta_bytes(dx: int, dy: int) -> bytes:
    return bytes((dx & 0xFF, -dy & 0xFF))


def write(
    pattern: EmbPattern,
    stream: BinaryIO,
    settings: Optional[EncoderSettings] = None,
    trims: bool = False,
    trim_at: int = 3,
    date: Optional[str] = None,
) -> None:
    """Transcode ``pattern`` for JEF limits and write it to ``stream``.

    Parameters
    ----------
    pattern : EmbPattern
        Source pattern, left untouched.
    stream : BinaryIO
        Binary sink.
    settings : EncoderSettings, optional
        Override for the configured JEF writer profile.
    trims : bool
        Encode TRIM as ``trim_at`` zero-length jumps.
    trim_at : int
        Jumps per encoded trim.
    date : str, optional
        14-character ``YYYYMMDDHHMMSS`` stamp; defaults to now.
    """
    if settings is None:
        from embroidery.configs.loader import get_writer_settings

        settings = get_writer_settings("jef")
    encoded = Transcoder(settings).transcode(pattern)
    encoded.ensure_end()

    palette = build_jef_palette(encoded)
    color_count = len(palette)
    min_x, min_y, max_x, max_y = encoded.bounds()
    width = int(round(max_x - min_x))
    height = int(round(max_y - min_y))
    half_width = width // 2
    half_height = height // 2

    buf = io.BytesIO()
    writer = ByteWriter(buf)
    writer.write_i32le(HEADER_SIZE + color_count * 8)
    writer.write_i32le(0x14)
    stamp = (date or datetime.now().strftime(DATE_FORMAT)).encode("ascii")[:14]
    writer.write_bytes(stamp.ljust(14, b"\x00"))
    writer.write_bytes(b"\x00\x00")
    writer.write_i32le(color_count)
    writer.write_i32le(count_points(encoded, trims, trim_at))
    writer.write_i32le(get_jef_hoop_size(width, height))

    for value in (half_width, half_height, half_width, half_height):
        writer.write_i32le(value)
    for hoop_x, hoop_y in _REFERENCE_HOOPS:
        _write_hoop_edge_distance(writer, hoop_x - half_width, hoop_y - half_height)

    for index in palette:
        writer.write_i32le(index)
    for _ in palette:
        writer.write_i32le(0x0D)

    xx = yy = 0
    for stitch in encoded.stitches:
        kind = stitch.kind
        dx = int(round(stitch.x - xx))
        dy = int(round(stitch.y - yy))
        xx += dx
        yy += dy
        if kind == STITCH:
            writer.write_bytes(_delta_bytes(dx, dy))
        elif kind in (COLOR_CHANGE, STOP):
            writer.write_bytes(bytes((ESCAPE, CTRL_COLOR)) + _delta_bytes(dx, dy))
        elif kind == JUMP:
            writer.write_bytes(bytes((ESCAPE, CTRL_JUMP)) + _delta_bytes(dx, dy))
        elif kind == TRIM and trims:
            writer.write_bytes(bytes((ESCAPE, CTRL_JUMP, 0, 0)) * trim_at)
        elif kind == END:
            break
    writer.write_bytes(bytes((ESCAPE, CTRL_END)))

    stream.write(buf.getvalue())
    logger.debug(
        "Wrote JEF: %d colors, %d records, %d bytes",
        color_count,
        len(encoded.stitches),
        buf.tell(),
    )


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


def read(
    stream: BinaryIO,
    max_stitches: int = MAX_STITCHES,
    trims: bool = False,
    trim_at: Optional[int] = None,
    trim_distance: float = 3.0,
    clipping: bool = True,
) -> EmbPattern:
    """Read a ``.jef`` file.

    Parameters
    ----------
    stream : BinaryIO
        Seekable binary source.
    max_stitches : int
        Decode-loop cap.
    trims : bool
        Convert runs of jumps into TRIM (``trim_at`` defaults to 3).
    trim_at : int, optional
        Jumps that make up one trim; setting it enables trim detection.
    trim_distance : float
        Minimum run length in mm for a jump run to count as a trim.
    clipping : bool
        Drop the jumps replaced by a detected trim.

    Raises
    ------
    ParseError
        On a truncated header, a bad stitch offset or too many stitches.
    """
    reader = ByteReader(stream, "JEF")
    pattern = EmbPattern()
    stitch_offset = reader.read_i32le()
    reader.skip(20)
    color_count = reader.read_i32le()
    if not 0 <= color_count <= MAX_COLORS:
        raise ParseError(
            f"JEF: color count {color_count} outside 0..{MAX_COLORS}"
        )
    table_end = HEADER_SIZE + 8 * color_count
    size = reader.size()
    if stitch_offset < table_end:
        raise ParseError(
            f"JEF: stitch offset {stitch_offset} inside the header "
            f"(color table ends at {table_end})"
        )
    if stitch_offset > size:
        raise ParseError(
            f"JEF: stitch offset {stitch_offset} beyond end of data (size {size})"
        )
    reader.skip(88)
    for _ in range(color_count):
        index = abs(reader.read_i32le())
        if index == 0:
            # placeholder entry written for a STOP
            continue
        thread = JEF_THREADS[index % len(JEF_THREADS)]
        if thread is not None:
            pattern.add_thread(thread.copy())

    reader.seek(stitch_offset)
    _read_stitches(reader, pattern, max_stitches)

    if trims and trim_at is None:
        trim_at = 3
    if trim_at is not None:
        pattern.interpolate_trims(trim_at, trim_distance * 10.0, clipping)
    logger.debug(
        "Read JEF: %d threads, %d records", len(pattern.threads), len(pattern.stitches)
    )
    return pattern


def _read_stitches(reader: ByteReader, pattern: EmbPattern, max_stitches: int) -> None:
    """Decode records up to the ``80 10`` end marker.

    Running out of data before the marker, or inside a record, is a
    ``ParseError``.
    """
    budget = StitchBudget("JEF", max_stitches)
    color_index = 1
    while True:
        record = reader.read_bytes(2)
        budget.consume()
        if record[0] != ESCAPE:
            pattern.stitch(signed8(record[0]), -signed8(record[1]))
            continue
        ctrl = record[1]
        if ctrl == CTRL_END:
            break
        delta = reader.read_bytes(2)
        dx = signed8(delta[0])
        dy = -signed8(delta[1])
        if ctrl == CTRL_JUMP:
            pattern.jump(dx, dy)
        elif ctrl == CTRL_COLOR:
            if color_index < len(pattern.threads):
                pattern.color_change()
                color_index += 1
            else:
                pattern.stop()
        else:
            logger.warning("JEF: unknown control byte %#04x, stopping", ctrl)
            break
    pattern.end()
