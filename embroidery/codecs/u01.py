"""Barudan U01 codec -- 3-byte records with a 5-bit control field.

Record layout::

    ctrl  |dy|  |dx|

``ctrl`` always has bit 0x80 set.  0x20 marks a non-positive X delta and
0x40 a non-negative pattern Y delta (the machine's Y axis points up).
The low five bits select the command:

    0x00        stitch
    0x01        jump
    0x02/0x03   fast, then stitch/jump
    0x04/0x05   slow, then stitch/jump
    0x06/0x07   trim
    0x08        stop
    0x09-0x17   needle 0-14
    0x18        end (written as ``F8 00 00``)

The 256-byte header holds 0x80 ASCII ``'0'`` bytes, the extents, the
record count and the last position.  No colors are stored: a reader
gets one placeholder thread per needle change.
"""

from __future__ import annotations

import io
import logging
from typing import BinaryIO, Optional

from embroidery.codecs.primitives import (
    MAX_STITCHES,
    ByteReader,
    ByteWriter,
    EncodingError,
    StitchBudget,
)
from embroidery.pattern_ir.commands import (
    END,
    FAST,
    JUMP,
    NEEDLE_SET,
    SLOW,
    STITCH,
    STOP,
    TRIM,
    decode_embroidery_command,
)
from embroidery.pattern_ir.pattern import EmbPattern
from embroidery.transcoder.encoder import Transcoder
from embroidery.transcoder.settings import EncoderSettings

logger = logging.getLogger(__name__)

HEADER_SIZE = 0x100
PREAMBLE = b"0" * 0x80
END_RECORD = b"\xf8\x00\x00"

FLAG_X_NEGATIVE = 0x20
FLAG_Y_POSITIVE = 0x40
NEEDLE_BASE = 0x09
NEEDLE_COUNT = 15
CTRL_END = 0x18


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------


def _record(ctrl: int, dx: int, dy: int) -> bytes:
    if abs(dx) > 0xFF or abs(dy) > 0xFF:
        raise EncodingError(
            f"U01: delta ({dx}, {dy}) exceeds 255 units; transcode with max_jump <= 255"
        )
    return bytes((ctrl, abs(dy), abs(dx)))


def write(
    pattern: EmbPattern,
    stream: BinaryIO,
    settings: Optional[EncoderSettings] = None,
) -> None:
    """Transcode ``pattern`` for U01 limits and write it to ``stream``.

    Raises
    ------
    EncodingError
        If a record delta does not fit in a byte, which only happens with
        a settings override looser than the U01 profile.
    """
    if settings is None:
        from embroidery.configs.loader import get_writer_settings

        settings = get_writer_settings("u01")
    encoded = Transcoder(settings).transcode(pattern)
    encoded.ensure_end()
    stitches = encoded.stitches

    buf = io.BytesIO()
    writer = ByteWriter(buf)
    writer.write_bytes(PREAMBLE)
    min_x, min_y, max_x, max_y = encoded.bounds()
    writer.write_i16le(int(min_x))
    writer.write_i16le(-int(max_y))
    writer.write_i16le(int(max_x))
    writer.write_i16le(-int(min_y))
    writer.write_i32le(0)
    writer.write_i32le(len(stitches) + 1)
    last = stitches[-1]
    writer.write_i16le(int(last.x))
    writer.write_i16le(-int(last.y))
    writer.write_bytes(b"\x00" * (HEADER_SIZE - writer.tell()))

    xx = yy = 0
    trigger_fast = trigger_slow = False
    for stitch in stitches:
        kind = stitch.kind
        dx = int(round(stitch.x - xx))
        dy = int(round(stitch.y - yy))
        xx += dx
        yy += dy
        if kind == SLOW:
            trigger_slow = True
            continue
        if kind == FAST:
            trigger_fast = True
            continue
        if kind == END:
            break

        ctrl = 0x80
        if dy >= 0:
            ctrl |= FLAG_Y_POSITIVE
        if dx <= 0:
            ctrl |= FLAG_X_NEGATIVE

        if kind in (STITCH, JUMP):
            if trigger_fast:
                ctrl |= 0x02
                trigger_fast = False
            if trigger_slow:
                ctrl |= 0x04
                trigger_slow = False
            if kind == JUMP:
                ctrl |= 0x01
        elif kind == STOP:
            ctrl |= 0x08
        elif kind == TRIM:
            ctrl |= 0x07
        elif kind == NEEDLE_SET:
            _, _, needle, _ = decode_embroidery_command(stitch.command)
            ctrl |= NEEDLE_BASE + (needle or 0) % NEEDLE_COUNT
        else:
            continue
        writer.write_bytes(_record(ctrl, dx, dy))
    writer.write_bytes(END_RECORD)

    stream.write(buf.getvalue())
    logger.debug("Wrote U01: %d records, %d bytes", len(stitches), buf.tell())


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


def read(stream: BinaryIO, max_stitches: int = MAX_STITCHES) -> EmbPattern:
    """Read a ``.u01`` file.

    Raises
    ------
    ParseError
        If the 256-byte header is truncated, the data ends before the
        ``F8`` end record or part-way through a record, or too many
        records are decoded.
    """
    reader = ByteReader(stream, "U01")
    reader.skip(HEADER_SIZE)
    pattern = EmbPattern()
    budget = StitchBudget("U01", max_stitches)

    while True:
        record = reader.read_bytes(3)
        budget.consume()
        ctrl, dy, dx = record
        if ctrl & FLAG_X_NEGATIVE:
            dx = -dx
        if ctrl & FLAG_Y_POSITIVE:
            dy = -dy
        dy = -dy
        command = ctrl & 0x1F
        moved = dx != 0 or dy != 0

        if command == 0x00:
            pattern.stitch(dx, dy)
        elif command == 0x01:
            pattern.jump(dx, dy)
        elif command in (0x02, 0x03, 0x04, 0x05):
            pattern.add_stitch_relative(FAST if command < 0x04 else SLOW)
            if moved:
                if command & 0x01:
                    pattern.jump(dx, dy)
                else:
                    pattern.stitch(dx, dy)
        elif command in (0x06, 0x07):
            pattern.trim()
            if moved:
                pattern.jump(dx, dy)
        elif command == 0x08:
            pattern.stop()
            if moved:
                pattern.jump(dx, dy)
        elif NEEDLE_BASE <= command < CTRL_END:
            pattern.needle_change(command - NEEDLE_BASE)
            pattern.add_thread(pattern.get_thread_or_filler(len(pattern.threads)))
            if moved:
                pattern.jump(dx, dy)
        else:
            if command != CTRL_END:
                logger.warning("U01: unknown control %#04x, stopping", ctrl)
            break

    pattern.end()
    logger.debug(
        "Read U01: %d records, %d needle changes", len(pattern.stitches), len(pattern.threads)
    )
    return pattern
