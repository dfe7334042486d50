"""Palette quantizer -- map arbitrary thread colors onto machine palettes.

Three assignment strategies, all linear argmin scans by Euclidean RGB
distance over the fixed machine table:

``build_palette``
    Nearest slot per thread, collisions allowed.
``build_unique_palette``
    Each distinct source color claims its own slot, so two different
    colors never share an index (PEC color log).
``build_nonrepeat_palette``
    Greedy with local repair (JEF): if the nearest slot equals the slot
    just given to the immediately preceding *different* thread, that slot
    is masked, the search is redone, and the slot is restored.  Only one
    step back is examined; the assignment is never globally re-optimized.

Tables are never mutated: masking happens on a per-call working copy.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from embroidery.palettes.jef_threads import JEF_THREADS
from embroidery.palettes.pec_threads import PEC_THREADS
from embroidery.pattern_ir.pattern import EmbPattern
from embroidery.pattern_ir.thread import EmbThread

logger = logging.getLogger(__name__)

Table = Sequence[Optional[EmbThread]]


class PaletteError(Exception):
    """Raised when a palette cannot be used for quantization."""

    pass


def _working_copy(table: Table, reserved: Iterable[int]) -> list[Optional[EmbThread]]:
    work = list(table)
    for index in reserved:
        if 0 <= index < len(work):
            work[index] = None
    return work


def build_palette(
    table: Table, threads: Sequence[EmbThread], reserved: Iterable[int] = ()
) -> list[Optional[int]]:
    """Nearest table index for each thread (``None`` if the table is empty)."""
    work = _working_copy(table, reserved)
    return [thread.find_nearest_color_index(work) for thread in threads]


def build_unique_palette(
    table: Table, threads: Sequence[EmbThread], reserved: Iterable[int] = ()
) -> list[Optional[int]]:
    """Assign every distinct color its own slot.

    Distinct colors claim slots in order of first appearance.  Once the
    table runs out, remaining colors fall back to their nearest claimed
    slot.

    Returns
    -------
    list[int | None]
        One table index per entry of ``threads``.
    """
    work = _working_copy(table, reserved)
    claimed: list[Optional[EmbThread]] = [None] * len(work)
    seen: set[int] = set()
    for thread in threads:
        if thread.color in seen:
            continue
        seen.add(thread.color)
        index = thread.find_nearest_color_index(work)
        if index is None:
            logger.warning(
                "Palette exhausted after %d unique colors; reusing slots", len(seen) - 1
            )
            break
        work[index] = None
        claimed[index] = thread
    return [thread.find_nearest_color_index(claimed) for thread in threads]


def build_nonrepeat_palette(
    table: Table, threads: Sequence[EmbThread], reserved: Iterable[int] = ()
) -> list[Optional[int]]:
    """Nearest slot per thread, repaired so adjacent distinct threads differ.

    Parameters
    ----------
    table : sequence of EmbThread | None
        Machine palette; ``None`` entries are never chosen.
    threads : sequence of EmbThread
        Source threads in color-change order.
    reserved : iterable of int
        Extra indices to treat as unavailable.

    Returns
    -------
    list[int | None]
        One table index per source thread.
    """
    work = _working_copy(table, reserved)
    palette: list[Optional[int]] = []
    last_index: Optional[int] = None
    last_thread: Optional[EmbThread] = None
    for thread in threads:
        index = thread.find_nearest_color_index(work)
        if index is not None and index == last_index and thread != last_thread:
            repeated = work[index]
            work[index] = None
            second = thread.find_nearest_color_index(work)
            work[index] = repeated
            if second is not None:
                index = second
        palette.append(index)
        last_index = index
        last_thread = thread
    return palette


# ---------------------------------------------------------------------------
# Named palettes
# ---------------------------------------------------------------------------


class ThreadPalette:
    """A named, ordered list of threads used to quantize whole patterns.

    Parameters
    ----------
    name : str
        Display name.
    threads : sequence of EmbThread | None
        Palette entries; ``None`` placeholders are kept for index
        alignment but never matched.
    """

    def __init__(self, name: str, threads: Table = ()) -> None:
        self.name = name
        self.threads: list[Optional[EmbThread]] = list(threads)

    def __len__(self) -> int:
        return sum(1 for t in self.threads if t is not None)

    def __repr__(self) -> str:
        return f"ThreadPalette({self.name!r}, {len(self)} threads)"

    def add_thread(self, thread: EmbThread) -> None:
        self.threads.append(thread)

    def find_closest_index(self, color: int | EmbThread) -> Optional[int]:
        target = color if isinstance(color, EmbThread) else EmbThread(color)
        return target.find_nearest_color_index(self.threads)

    def find_closest(self, color: int | EmbThread) -> Optional[EmbThread]:
        index = self.find_closest_index(color)
        return self.threads[index] if index is not None else None

    def quantize_pattern(self, pattern: EmbPattern) -> EmbPattern:
        """Replace every thread of ``pattern`` with its nearest palette thread.

        The replacement is positional: thread N stays thread N, so the
        color-change mapping of the stitch stream is unchanged.  Stitches
        and metadata are untouched.

        Returns
        -------
        EmbPattern
            ``pattern`` itself, for chaining.

        Raises
        ------
        PaletteError
            If the palette has no usable entries.
        """
        if len(self) == 0:
            raise PaletteError(f"Cannot quantize with empty palette {self.name!r}")
        quantized = []
        for thread in pattern.threads:
            nearest = self.find_closest(thread)
            quantized.append(nearest.copy())
        pattern.threads[:] = quantized
        logger.debug("Quantized %d threads to palette %s", len(quantized), self.name)
        return pattern


class PaletteLibrary:
    """Built-in machine palettes."""

    @staticmethod
    def brother_pec() -> ThreadPalette:
        return ThreadPalette("Brother PEC", [None, *PEC_THREADS[1:]])

    @staticmethod
    def janome_jef() -> ThreadPalette:
        return ThreadPalette("Janome JEF", JEF_THREADS)

    @classmethod
    def all_palettes(cls) -> list[ThreadPalette]:
        return [cls.brother_pec(), cls.janome_jef()]

    @classmethod
    def get_by_name(cls, name: str) -> Optional[ThreadPalette]:
        key = name.strip().lower()
        aliases = {
            "pec": cls.brother_pec,
            "pes": cls.brother_pec,
            "brother": cls.brother_pec,
            "brother pec": cls.brother_pec,
            "jef": cls.janome_jef,
            "janome": cls.janome_jef,
            "janome jef": cls.janome_jef,
        }
        factory = aliases.get(key)
        return factory() if factory is not None else None
