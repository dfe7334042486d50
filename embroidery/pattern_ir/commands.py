"""Stitch command vocabulary -- the closed set every codec speaks.

A stitch command is a packed 32-bit integer.  The low byte selects the
command *kind*; the upper three bytes optionally carry a thread index, a
needle index and an order index (each stored as ``index + 1`` so that 0
means "not set")::

    [order:8][needle:8][thread:8][command:8]

Codecs must branch on ``command_of(value)``, never on the raw value,
otherwise a ``NEEDLE_SET`` carrying a needle number would be missed.

Contingency enums describe how the transcoder rewrites commands a target
format cannot represent (see ``embroidery.transcoder``).
"""

from __future__ import annotations

from enum import Enum

# ---------------------------------------------------------------------------
# Command kinds (low byte)
# ---------------------------------------------------------------------------

STITCH = 0x00
JUMP = 0x01
TRIM = 0x02
STOP = 0x03
END = 0x04
COLOR_CHANGE = 0x05
SEQUIN_MODE = 0x06
SEQUIN_EJECT = 0x07
NEEDLE_SET = 0x09
SLOW = 0x0B
FAST = 0x0C

# ---------------------------------------------------------------------------
# Masks
# ---------------------------------------------------------------------------

COMMAND_MASK = 0x000000FF
THREAD_MASK = 0x0000FF00
NEEDLE_MASK = 0x00FF0000
ORDER_MASK = 0xFF000000

COMMAND_NAMES: dict[int, str] = {
    STITCH: "STITCH",
    JUMP: "JUMP",
    TRIM: "TRIM",
    STOP: "STOP",
    END: "END",
    COLOR_CHANGE: "COLOR_CHANGE",
    SEQUIN_MODE: "SEQUIN_MODE",
    SEQUIN_EJECT: "SEQUIN_EJECT",
    NEEDLE_SET: "NEEDLE_SET",
    SLOW: "SLOW",
    FAST: "FAST",
}


# ---------------------------------------------------------------------------
# Contingency policies
# ---------------------------------------------------------------------------


class LongStitchContingency(Enum):
    """Policy for a stitch longer than the target's ``max_stitch``."""

    NONE = 0xF0
    JUMP_NEEDLE = 0xF1
    SEW_TO = 0xF2


class SequinContingency(Enum):
    """Policy for sequin commands on a target without a sequin device."""

    UTILIZE = 0xF5
    JUMP = 0xF6
    STITCH = 0xF7
    REMOVE = 0xF8


class TieOnContingency(Enum):
    """Tie-on policy.  Only ``NONE`` exists; other values are reserved."""

    NONE = 0xD3


class TieOffContingency(Enum):
    """Tie-off policy.  Only ``NONE`` exists; other values are reserved."""

    NONE = 0xD4


# ---------------------------------------------------------------------------
# Packing helpers
# ---------------------------------------------------------------------------


def command_of(value: int) -> int:
    """Return the command kind (low byte) of a packed command."""
    return value & COMMAND_MASK


def command_name(value: int) -> str:
    """Human-readable name of the command kind, ``"UNKNOWN"`` otherwise."""
    return COMMAND_NAMES.get(value & COMMAND_MASK, "UNKNOWN")


def encode_thread_change(
    command: int,
    thread: int | None = None,
    needle: int | None = None,
    order: int | None = None,
) -> int:
    """Pack a command kind with optional thread/needle/order indices.

    Parameters
    ----------
    command : int
        Command kind; only the low byte is kept.
    thread, needle, order : int | None
        Zero-based indices in ``[0, 254]``.  ``None`` leaves the field
        empty.

    Returns
    -------
    int
        Packed 32-bit command.

    Raises
    ------
    ValueError
        If an index does not fit in its byte.
    """
    packed = command & COMMAND_MASK
    for shift, name, index in (
        (8, "thread", thread),
        (16, "needle", needle),
        (24, "order", order),
    ):
        if index is None:
            continue
        if not 0 <= index <= 0xFE:
            raise ValueError(f"{name} index must be in [0, 254], got {index}")
        packed |= (index + 1) << shift
    return packed


def decode_embroidery_command(
    value: int,
) -> tuple[int, int | None, int | None, int | None]:
    """Unpack ``(command, thread, needle, order)`` from a packed command."""
    command = value & COMMAND_MASK
    thread = (value & THREAD_MASK) >> 8
    needle = (value & NEEDLE_MASK) >> 16
    order = (value & ORDER_MASK) >> 24
    return (
        command,
        thread - 1 if thread else None,
        needle - 1 if needle else None,
        order - 1 if order else None,
    )
