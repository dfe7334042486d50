"""Shared utility layer for the embroidery converter.

Architecture layers (strict one-way dependency):
    embroidery/{codecs,transcoder,palettes,configs}/ → embroidery/pattern_ir/ → src/utils/

Key invariants:
    - Coordinates in 0.1 mm end-to-end
    - Colors are packed 0xRRGGBB integers unless explicitly noted
    - YAML-only configs, validated before use
"""

__version__ = "0.4.0"
