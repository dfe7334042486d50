"""Pattern IR -- the canonical stitch-command stream.

Every reader populates an ``EmbPattern`` through the append-only API
(``add_stitch_absolute``, ``add_thread``, ``add_metadata``) and every
writer consumes it read-only (``stitches``, ``threads``, ``bounds()``,
``extras``).  Coordinates are absolute, in **0.1 mm** units; formats with
other native units convert at their own reader/writer edge.

Derived values (bounds, counts, stitch lengths) are pure functions of the
stitch list and are recomputed on every call; nothing is cached across
mutation.

Color mapping
-------------
The Nth ``COLOR_CHANGE`` advances to thread N+1, positionally.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterator, Optional

from embroidery.pattern_ir.commands import (
    COLOR_CHANGE,
    COMMAND_MASK,
    END,
    JUMP,
    NEEDLE_SET,
    STITCH,
    STOP,
    TRIM,
    encode_thread_change,
)
from embroidery.pattern_ir.matrix import Matrix
from embroidery.pattern_ir.thread import EmbThread

logger = logging.getLogger(__name__)


class PatternError(Exception):
    """Raised when a pattern operation receives invalid arguments."""

    pass


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Stitch:
    """One coordinate-tagged command.

    Parameters
    ----------
    x, y : float
        Absolute position in 0.1 mm.
    command : int
        Packed command (see ``embroidery.pattern_ir.commands``).
    """

    x: float
    y: float
    command: int = STITCH

    @property
    def kind(self) -> int:
        return self.command & COMMAND_MASK

    def as_tuple(self) -> tuple[float, float, int]:
        return (self.x, self.y, self.command)


@dataclass(frozen=True, slots=True)
class ThreadUsage:
    """Stitch count and sewn length for one thread."""

    thread: EmbThread
    length_mm: float
    stitch_count: int


@dataclass(frozen=True, slots=True)
class PatternStatistics:
    """Summary returned by ``EmbPattern.calculate_statistics``.

    Lengths are in mm, density in stitches per cm^2, time in minutes.
    """

    stitch_count: int
    jump_count: int
    trim_count: int
    color_change_count: int
    total_length_mm: float
    total_length_inches: float
    estimated_time_minutes: float
    density: float
    width_mm: float
    height_mm: float
    avg_stitch_length_mm: float
    max_stitch_length_mm: float
    thread_usage: tuple[ThreadUsage, ...] = field(default_factory=tuple)


def _filler_thread(index: int) -> EmbThread:
    """Deterministic stand-in color for a block past the end of the thread list."""
    return EmbThread.from_rgb((index * 37) % 256, (index * 91) % 256, (index * 173) % 256)


# ---------------------------------------------------------------------------
# Pattern
# ---------------------------------------------------------------------------


class EmbPattern:
    """Ordered stitch stream, ordered thread list and metadata map.

    Parameters
    ----------
    stitches : list[Stitch], optional
        Initial stitch list (taken over, not copied).
    threads : list[EmbThread], optional
        Initial thread list.
    """

    def __init__(
        self,
        stitches: Optional[list[Stitch]] = None,
        threads: Optional[list[EmbThread]] = None,
    ) -> None:
        self.stitches: list[Stitch] = stitches if stitches is not None else []
        self.threads: list[EmbThread] = threads if threads is not None else []
        self.extras: dict[str, str] = {}
        self._previous_x = 0.0
        self._previous_y = 0.0
        if self.stitches:
            self._previous_x = self.stitches[-1].x
            self._previous_y = self.stitches[-1].y

    def __len__(self) -> int:
        return len(self.stitches)

    def __iter__(self) -> Iterator[Stitch]:
        return iter(self.stitches)

    def __repr__(self) -> str:
        return (
            f"EmbPattern(stitches={len(self.stitches)}, "
            f"threads={len(self.threads)}, extras={len(self.extras)})"
        )

    def copy(self) -> EmbPattern:
        """Deep-enough copy: new stitch/thread lists and metadata map."""
        other = EmbPattern(
            [Stitch(s.x, s.y, s.command) for s in self.stitches],
            [t.copy() for t in self.threads],
        )
        other.extras = dict(self.extras)
        other._previous_x = self._previous_x
        other._previous_y = self._previous_y
        return other

    # ------------------------------------------------------------------
    # Append-only construction
    # ------------------------------------------------------------------

    def add_stitch_absolute(self, command: int, x: float = 0.0, y: float = 0.0) -> None:
        """Append a command at an absolute position and move there."""
        self.stitches.append(Stitch(x, y, command))
        self._previous_x = x
        self._previous_y = y

    def add_stitch_relative(self, command: int, dx: float = 0.0, dy: float = 0.0) -> None:
        """Append a command offset from the previous position."""
        self.add_stitch_absolute(command, self._previous_x + dx, self._previous_y + dy)

    def add_command(self, command: int, x: float = 0.0, y: float = 0.0) -> None:
        """Append a command without touching the previous position."""
        self.stitches.append(Stitch(x, y, command))

    def add_thread(self, thread: EmbThread | int | str) -> None:
        if isinstance(thread, EmbThread):
            self.threads.append(thread)
        elif isinstance(thread, int):
            self.threads.append(EmbThread(thread))
        else:
            self.threads.append(EmbThread.from_string(thread))

    def add_metadata(self, key: str, value: str) -> None:
        self.extras[key] = value

    def get_metadata(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.extras.get(key, default)

    # Builder helpers --------------------------------------------------

    def stitch(self, dx: float = 0.0, dy: float = 0.0) -> None:
        self.add_stitch_relative(STITCH, dx, dy)

    def stitch_abs(self, x: float, y: float) -> None:
        self.add_stitch_absolute(STITCH, x, y)

    def jump(self, dx: float = 0.0, dy: float = 0.0) -> None:
        self.add_stitch_relative(JUMP, dx, dy)

    def jump_abs(self, x: float, y: float) -> None:
        self.add_stitch_absolute(JUMP, x, y)

    def trim(self) -> None:
        self.add_stitch_relative(TRIM)

    def color_change(self, dx: float = 0.0, dy: float = 0.0) -> None:
        self.add_stitch_relative(COLOR_CHANGE, dx, dy)

    def needle_change(self, needle: int = 0) -> None:
        self.add_stitch_relative(encode_thread_change(NEEDLE_SET, None, needle))

    def stop(self) -> None:
        self.add_stitch_relative(STOP)

    def end(self) -> None:
        self.add_stitch_relative(END)

    def ensure_end(self) -> None:
        """Guarantee the stream ends with exactly one END.

        Trailing duplicate ENDs are collapsed; a missing one is appended
        at the last position.  An empty pattern gets a single END at the
        origin.
        """
        while (
            len(self.stitches) >= 2
            and self.stitches[-1].kind == END
            and self.stitches[-2].kind == END
        ):
            self.stitches.pop()
        if not self.stitches or self.stitches[-1].kind != END:
            self.end()

    # ------------------------------------------------------------------
    # Derived queries
    # ------------------------------------------------------------------

    def bounds(self) -> tuple[float, float, float, float]:
        """``(min_x, min_y, max_x, max_y)`` over every finite coordinate.

        Jumps, trims and other commands count toward the extents.
        Returns zeros for an empty pattern or when no coordinate is
        finite.
        """
        min_x = min_y = math.inf
        max_x = max_y = -math.inf
        for s in self.stitches:
            if not (math.isfinite(s.x) and math.isfinite(s.y)):
                continue
            if s.x < min_x:
                min_x = s.x
            if s.x > max_x:
                max_x = s.x
            if s.y < min_y:
                min_y = s.y
            if s.y > max_y:
                max_y = s.y
        if not math.isfinite(min_x):
            return (0.0, 0.0, 0.0, 0.0)
        return (min_x, min_y, max_x, max_y)

    def width(self) -> float:
        min_x, _, max_x, _ = self.bounds()
        return max_x - min_x

    def height(self) -> float:
        _, min_y, _, max_y = self.bounds()
        return max_y - min_y

    def _count(self, kind: int) -> int:
        return sum(1 for s in self.stitches if s.kind == kind)

    def count_stitches(self) -> int:
        return self._count(STITCH)

    def count_jumps(self) -> int:
        return self._count(JUMP)

    def count_trims(self) -> int:
        return self._count(TRIM)

    def count_color_changes(self) -> int:
        return self._count(COLOR_CHANGE)

    def count_threads(self) -> int:
        return len(self.threads)

    def _stitch_lengths(self) -> Iterator[float]:
        """Length of every STITCH, previous position tracked across all commands."""
        prev_x = prev_y = 0.0
        for s in self.stitches:
            if s.kind == STITCH:
                yield math.hypot(s.x - prev_x, s.y - prev_y)
            prev_x, prev_y = s.x, s.y

    def total_stitch_length(self) -> float:
        return sum(self._stitch_lengths())

    def max_stitch_length(self) -> float:
        return max(self._stitch_lengths(), default=0.0)

    def avg_stitch_length(self) -> float:
        count = self.count_stitches()
        if count == 0:
            return 0.0
        return self.total_stitch_length() / count

    def get_thread_or_filler(self, index: int) -> EmbThread:
        if 0 <= index < len(self.threads):
            return self.threads[index]
        return _filler_thread(index)

    def get_as_stitchblocks(self) -> list[tuple[list[tuple[float, float]], EmbThread]]:
        """Group consecutive STITCH runs with the thread active for them."""
        blocks: list[tuple[list[tuple[float, float]], EmbThread]] = []
        current: list[tuple[float, float]] = []
        thread_index = 0
        for s in self.stitches:
            kind = s.kind
            if kind == STITCH:
                current.append((s.x, s.y))
                continue
            if current:
                blocks.append((current, self.get_thread_or_filler(thread_index)))
                current = []
            if kind == COLOR_CHANGE:
                thread_index += 1
        if current:
            blocks.append((current, self.get_thread_or_filler(thread_index)))
        return blocks

    def get_as_colorblocks(self) -> list[tuple[list[tuple[float, float]], EmbThread]]:
        """STITCH positions per color, split on COLOR_CHANGE and END only."""
        blocks: list[tuple[list[tuple[float, float]], EmbThread]] = []
        current: list[tuple[float, float]] = []
        thread_index = 0
        for s in self.stitches:
            kind = s.kind
            if kind == STITCH:
                current.append((s.x, s.y))
            elif kind in (COLOR_CHANGE, END):
                if current:
                    blocks.append((current, self.get_thread_or_filler(thread_index)))
                    current = []
                if kind == END:
                    break
                thread_index += 1
        if current:
            blocks.append((current, self.get_thread_or_filler(thread_index)))
        return blocks

    def calculate_thread_usage(self) -> list[ThreadUsage]:
        """Per-thread stitch count and length, ordered by thread index."""
        usage: dict[int, list[float]] = {}
        thread_index = 0
        prev_x = prev_y = 0.0
        for s in self.stitches:
            kind = s.kind
            if kind == COLOR_CHANGE:
                thread_index += 1
            elif kind == STITCH:
                entry = usage.setdefault(thread_index, [0, 0.0])
                entry[0] += 1
                entry[1] += math.hypot(s.x - prev_x, s.y - prev_y)
            prev_x, prev_y = s.x, s.y
        return [
            ThreadUsage(
                thread=self.get_thread_or_filler(idx),
                length_mm=length / 10.0,
                stitch_count=int(count),
            )
            for idx, (count, length) in sorted(usage.items())
        ]

    def calculate_statistics(self, machine_speed_spm: float = 800.0) -> PatternStatistics:
        """Summarize the pattern.

        Parameters
        ----------
        machine_speed_spm : float
            Machine speed in stitches per minute used for the time
            estimate.  Non-positive values give a zero estimate.

        Returns
        -------
        PatternStatistics
        """
        stitch_count = self.count_stitches()
        total_mm = self.total_stitch_length() / 10.0
        width_mm = self.width() / 10.0
        height_mm = self.height() / 10.0
        area_cm2 = (width_mm / 10.0) * (height_mm / 10.0)
        return PatternStatistics(
            stitch_count=stitch_count,
            jump_count=self.count_jumps(),
            trim_count=self.count_trims(),
            color_change_count=self.count_color_changes(),
            total_length_mm=total_mm,
            total_length_inches=total_mm / 25.4,
            estimated_time_minutes=(
                stitch_count / machine_speed_spm if machine_speed_spm > 0 else 0.0
            ),
            density=stitch_count / area_cm2 if area_cm2 > 0 else 0.0,
            width_mm=width_mm,
            height_mm=height_mm,
            avg_stitch_length_mm=self.avg_stitch_length() / 10.0,
            max_stitch_length_mm=self.max_stitch_length() / 10.0,
            thread_usage=tuple(self.calculate_thread_usage()),
        )

    # ------------------------------------------------------------------
    # In-place transforms
    # ------------------------------------------------------------------

    def translate(self, dx: float, dy: float) -> None:
        """Shift every coordinate; non-finite offsets are ignored."""
        if not (math.isfinite(dx) and math.isfinite(dy)):
            return
        for s in self.stitches:
            s.x += dx
            s.y += dy
        self._previous_x += dx
        self._previous_y += dy

    def move_center_to_origin(self) -> None:
        min_x, min_y, max_x, max_y = self.bounds()
        cx = round((max_x + min_x) / 2.0)
        cy = round((max_y + min_y) / 2.0)
        self.translate(-cx, -cy)

    def apply_matrix(self, matrix: Matrix) -> None:
        for s in self.stitches:
            s.x, s.y = matrix.transform_point(s.x, s.y)
        self._previous_x, self._previous_y = matrix.transform_point(
            self._previous_x, self._previous_y
        )

    def split_long_stitches(self, max_length: float) -> None:
        """Break every STITCH longer than ``max_length`` into equal parts.

        Raises
        ------
        PatternError
            If ``max_length`` is not a positive finite number.
        """
        if not math.isfinite(max_length) or max_length <= 0:
            raise PatternError(f"Invalid max_length: {max_length}")
        result: list[Stitch] = []
        prev_x = prev_y = 0.0
        for s in self.stitches:
            dx = s.x - prev_x
            dy = s.y - prev_y
            length = math.hypot(dx, dy)
            if s.kind == STITCH and length > max_length:
                segments = math.ceil(length / max_length)
                for i in range(1, segments):
                    result.append(
                        Stitch(prev_x + dx * i / segments, prev_y + dy * i / segments, s.command)
                    )
            result.append(s)
            prev_x, prev_y = s.x, s.y
        if len(result) != len(self.stitches):
            logger.debug(
                "Split long stitches at %.1f: %d -> %d records",
                max_length, len(self.stitches), len(result),
            )
        self.stitches = result

    def remove_duplicates(self) -> None:
        """Drop STITCH records that repeat the previous record's position."""
        if not self.stitches:
            return
        result = [self.stitches[0]]
        for prev, cur in zip(self.stitches, self.stitches[1:]):
            if cur.x != prev.x or cur.y != prev.y or cur.kind != STITCH:
                result.append(cur)
        self.stitches = result
        self._previous_x = result[-1].x
        self._previous_y = result[-1].y

    def interpolate_trims(
        self,
        trim_at: int = 3,
        trim_distance: Optional[float] = None,
        clipping: bool = True,
    ) -> None:
        """Replace runs of consecutive jumps with a TRIM.

        Formats without a trim command signal a cut with several jumps in
        a row.  After ``trim_at`` consecutive jumps (optionally only when
        the run covers at least ``trim_distance``) a TRIM is inserted at
        the landing position.

        ``clipping`` drops the jumps that made up the run, keeping only
        the final move; otherwise they are kept ahead of the TRIM.
        """
        if not self.stitches or trim_at <= 0:
            return
        result: list[Stitch] = []
        run: list[Stitch] = []
        run_start: Optional[tuple[float, float]] = None
        prev = (0.0, 0.0)

        def flush() -> None:
            result.extend(run)
            run.clear()

        for s in self.stitches:
            if s.kind != JUMP:
                flush()
                result.append(s)
                prev = (s.x, s.y)
                continue
            if not run:
                run_start = prev
            run.append(s)
            prev = (s.x, s.y)
            if len(run) < trim_at:
                continue
            if trim_distance is not None and run_start is not None:
                if math.hypot(s.x - run_start[0], s.y - run_start[1]) < trim_distance:
                    continue
            if clipping:
                run[:] = [run[-1]]
            flush()
            result.append(Stitch(s.x, s.y, TRIM))
        flush()
        self.stitches = result

    def interpolate_duplicate_color_as_stop(self) -> None:
        """Turn the first of two back-to-back color changes into a STOP.

        Formats that log one color per stop use a repeated color entry to
        mean "pause here" (applique placement).
        """
        for prev, cur in zip(self.stitches, self.stitches[1:]):
            if prev.kind == COLOR_CHANGE and cur.kind == COLOR_CHANGE:
                prev.command = STOP
