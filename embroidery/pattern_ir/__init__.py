"""
Pattern intermediate representation.

Defines the stitch command vocabulary, thread colors, the affine matrix
used to reposition designs, and ``EmbPattern``, the canonical stream
that every reader fills and every writer consumes.

All coordinates are absolute, in 0.1 mm units.
"""

from embroidery.pattern_ir import commands
from embroidery.pattern_ir.matrix import Matrix
from embroidery.pattern_ir.pattern import (
    EmbPattern,
    PatternError,
    PatternStatistics,
    Stitch,
    ThreadUsage,
)
from embroidery.pattern_ir.thread import (
    ColorError,
    EmbThread,
    parse_color_hex,
    parse_color_string,
)

__all__ = [
    "commands",
    "Matrix",
    "EmbPattern",
    "PatternError",
    "PatternStatistics",
    "Stitch",
    "ThreadUsage",
    "ColorError",
    "EmbThread",
    "parse_color_hex",
    "parse_color_string",
]
