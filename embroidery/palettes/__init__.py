"""
Machine thread palettes and the palette quantizer.

The PEC and JEF tables are process-wide immutable constants; quantizers
work on per-call copies and never mutate them.
"""

from embroidery.palettes.jef_threads import JEF_THREADS
from embroidery.palettes.pec_threads import PEC_THREADS
from embroidery.palettes.quantizer import (
    PaletteError,
    PaletteLibrary,
    ThreadPalette,
    build_nonrepeat_palette,
    build_palette,
    build_unique_palette,
)

__all__ = [
    "JEF_THREADS",
    "PEC_THREADS",
    "PaletteError",
    "PaletteLibrary",
    "ThreadPalette",
    "build_nonrepeat_palette",
    "build_palette",
    "build_unique_palette",
]
