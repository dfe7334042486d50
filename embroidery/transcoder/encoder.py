"""Transcoder -- rewrites an idealized stitch stream for a target machine.

Given a source ``EmbPattern`` and an ``EncoderSettings``, produces a new
pattern whose stitches respect ``max_stitch`` / ``max_jump`` and whose
special commands (sequins, speeds, color changes) are legal for the
target.  The source is never modified.

Per source record, in order:
    1. Apply the settings matrix (skipped when identity).
    2. Round to whole units if ``settings.round``.
    3. Dispatch on command kind and apply the matching contingency.

Failure semantics:
    Geometry never raises.  A non-finite stitch distance is passed
    through without splitting; singular matrices are the caller's
    problem and simply produce the transformed (possibly degenerate)
    coordinates.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from embroidery.pattern_ir.commands import (
    COLOR_CHANGE,
    COMMAND_MASK,
    FAST,
    JUMP,
    NEEDLE_SET,
    SEQUIN_EJECT,
    SEQUIN_MODE,
    SLOW,
    STITCH,
    TRIM,
    LongStitchContingency,
    SequinContingency,
    encode_thread_change,
)
from embroidery.pattern_ir.matrix import Matrix
from embroidery.pattern_ir.pattern import EmbPattern
from embroidery.transcoder.settings import EncoderSettings

logger = logging.getLogger(__name__)

MAX_SEW_TO_STEPS = 10_000


class Transcoder:
    """Stateful single-pass rewriter.

    Parameters
    ----------
    settings : EncoderSettings, optional
        Target limits.  Defaults to ``EncoderSettings()`` (unlimited).

    Notes
    -----
    Position state lives on the instance only for the duration of one
    ``transcode`` call and is reset at its start, so one instance can be
    reused sequentially.  Instances are not shared between threads.
    """

    def __init__(self, settings: Optional[EncoderSettings] = None) -> None:
        self.settings = settings if settings is not None else EncoderSettings()
        self._matrix: Optional[Matrix] = None
        self._dst: EmbPattern = EmbPattern()
        self._x = 0.0
        self._y = 0.0
        self._needle = 0
        self._color_index = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def transcode(self, source: EmbPattern, destination: Optional[EmbPattern] = None) -> EmbPattern:
        """Rewrite ``source`` into ``destination`` (a new pattern by default).

        Parameters
        ----------
        source : EmbPattern
            Pattern to read.  Left untouched.
        destination : EmbPattern, optional
            Pattern to append to.

        Returns
        -------
        EmbPattern
            The destination pattern.
        """
        self._reset_state(destination)
        dst = self._dst
        for key, value in source.extras.items():
            dst.add_metadata(key, value)
        for thread in source.threads:
            dst.add_thread(thread.copy())

        matrix = self.settings.matrix
        self._matrix = matrix if matrix is not None and not matrix.is_identity() else None
        needs_initial_needle = (
            self.settings.thread_change_command == NEEDLE_SET and bool(source.threads)
        )

        for stitch in source.stitches:
            x, y = stitch.x, stitch.y
            if self._matrix is not None:
                x, y = self._matrix.transform_point(x, y)
            if self.settings.round:
                x, y = float(round(x)), float(round(y))

            kind = stitch.command & COMMAND_MASK
            if needs_initial_needle and kind in (STITCH, JUMP):
                dst.add_command(encode_thread_change(NEEDLE_SET, 0, 0), self._x, self._y)
                needs_initial_needle = False
            self._dispatch(stitch.command, kind, x, y)

        logger.debug(
            "Transcoded %d records into %d (max_stitch=%s, max_jump=%s)",
            len(source.stitches),
            len(dst.stitches),
            self.settings.max_stitch,
            self.settings.max_jump,
        )
        return dst

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _reset_state(self, destination: Optional[EmbPattern]) -> None:
        self._dst = destination if destination is not None else EmbPattern()
        self._x = 0.0
        self._y = 0.0
        self._needle = 0
        self._color_index = 0

    def _dispatch(self, command: int, kind: int, x: float, y: float) -> None:
        if kind == STITCH:
            self._handle_stitch(x, y)
        elif kind == JUMP:
            self._handle_move(x, y)
        elif kind == COLOR_CHANGE:
            self._handle_color_change(command, x, y)
        elif kind in (SEQUIN_MODE, SEQUIN_EJECT):
            self._handle_sequin(command, kind, x, y)
        elif kind in (SLOW, FAST):
            if self.settings.writes_speeds:
                self._dst.add_command(command, x, y)
                self._x, self._y = x, y
        else:
            # NEEDLE_SET, STOP, TRIM, END and unknown kinds
            self._dst.add_command(command, x, y)
            self._x, self._y = x, y

    def _handle_stitch(self, x: float, y: float) -> None:
        dst = self._dst
        distance = math.hypot(x - self._x, y - self._y)
        if not math.isfinite(distance):
            dst.add_stitch_absolute(STITCH, x, y)
        elif distance > self.settings.max_stitch and distance > 0:
            policy = self.settings.long_stitch_contingency
            if policy is LongStitchContingency.JUMP_NEEDLE:
                self._handle_move(x, y)
                dst.add_stitch_absolute(STITCH, x, y)
            elif policy is LongStitchContingency.SEW_TO:
                self._sew_to(x, y, distance)
            else:
                dst.add_stitch_absolute(STITCH, x, y)
        else:
            dst.add_stitch_absolute(STITCH, x, y)
        self._x, self._y = x, y

    def _handle_move(self, x: float, y: float) -> None:
        """Jump to ``(x, y)``, split into equal segments over ``max_jump``."""
        dst = self._dst
        dx = x - self._x
        dy = y - self._y
        distance = math.hypot(dx, dy)
        if not math.isfinite(distance):
            dst.add_stitch_absolute(JUMP, x, y)
        elif distance > self.settings.max_jump and distance > 0:
            steps = math.ceil(distance / self.settings.max_jump)
            for i in range(1, steps):
                dst.add_stitch_absolute(
                    JUMP, self._x + dx * i / steps, self._y + dy * i / steps
                )
            dst.add_stitch_absolute(JUMP, x, y)
        else:
            dst.add_stitch_absolute(JUMP, x, y)
        self._x, self._y = x, y

    def _sew_to(self, x: float, y: float, distance: float) -> None:
        """Walk to ``(x, y)`` in equal stitches no longer than ``max_stitch``."""
        dst = self._dst
        steps = math.ceil(distance / self.settings.max_stitch)
        steps = min(max(steps, 1), MAX_SEW_TO_STEPS)
        dx = x - self._x
        dy = y - self._y
        for i in range(1, steps):
            dst.add_stitch_absolute(STITCH, self._x + dx * i / steps, self._y + dy * i / steps)
        # last step lands exactly on target
        dst.add_stitch_absolute(STITCH, x, y)

    def _handle_color_change(self, command: int, x: float, y: float) -> None:
        dst = self._dst
        if self.settings.explicit_trim:
            dst.add_command(TRIM, self._x, self._y)
        self._color_index += 1
        if self.settings.thread_change_command == NEEDLE_SET:
            self._needle = (self._needle + 1) % self.settings.needle_count
            dst.add_command(
                encode_thread_change(NEEDLE_SET, self._thread_param(), self._needle), x, y
            )
        else:
            dst.add_command(command, x, y)
        self._x, self._y = x, y

    def _thread_param(self) -> Optional[int]:
        # the packed thread field holds indices up to 254
        return self._color_index if self._color_index <= 0xFE else None

    def _handle_sequin(self, command: int, kind: int, x: float, y: float) -> None:
        dst = self._dst
        policy = self.settings.sequin_contingency
        if policy is SequinContingency.UTILIZE:
            dst.add_command(command, x, y)
        elif policy is SequinContingency.JUMP:
            if kind == SEQUIN_EJECT:
                dst.add_command(TRIM, x, y)
        elif policy is SequinContingency.STITCH:
            if kind == SEQUIN_EJECT:
                dst.add_stitch_absolute(STITCH, x, y)
        # SequinContingency.REMOVE drops the command
        self._x, self._y = x, y


def transcode(source: EmbPattern, settings: Optional[EncoderSettings] = None) -> EmbPattern:
    """Convenience wrapper: ``Transcoder(settings).transcode(source)``."""
    return Transcoder(settings).transcode(source)
