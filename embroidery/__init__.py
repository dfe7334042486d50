"""Embroidery converter: stitch IR, contingency transcoder and codecs.

Subpackages:
    pattern_ir   stitch commands, threads, matrix, ``EmbPattern``
    transcoder   rewrites a pattern for a target machine's limits
    codecs       PEC, JEF and U01 readers/writers and the format registry
    palettes     machine thread tables and palette quantization
    configs      per-format writer profiles (formats.yaml)

Usage::

    from embroidery import codecs
    pattern = codecs.read("design.jef")
    codecs.write(pattern, "design.pec")
"""

__version__ = "0.4.0"
