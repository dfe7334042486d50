"""Thread colors -- the palette half of the Pattern IR.

Threads are ordered.  The Nth ``COLOR_CHANGE`` in a stitch stream
advances to thread N+1 of the pattern's thread list; the mapping is
positional, never by identity, and every writer must preserve it.

Two threads compare equal when their 24-bit RGB colors match.  Catalog
metadata (description, brand, chart ...) is carried along but does not
take part in equality, so two differently-labelled threads of the same
shade are the same color change for the purpose of palette assignment.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Sequence

from src.utils import color as color_engine


class ColorError(ValueError):
    """Raised when a color string cannot be parsed."""

    pass


@dataclass(eq=False, slots=True)
class EmbThread:
    """One thread color plus optional catalog information.

    Parameters
    ----------
    color : int
        Packed ``0xRRGGBB``; alpha bits are discarded.
    description : str | None
        Display name (``"Prussian Blue"``).
    catalog_number : str | None
        Manufacturer catalog code.
    brand, chart : str | None
        Manufacturer and color chart the catalog number belongs to.
    details, weight : str | None
        Free-form extras kept for round-tripping.
    """

    color: int = 0x000000
    description: Optional[str] = None
    catalog_number: Optional[str] = None
    brand: Optional[str] = None
    chart: Optional[str] = None
    details: Optional[str] = None
    weight: Optional[str] = None

    def __post_init__(self) -> None:
        self.color = int(self.color) & 0xFFFFFF

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EmbThread):
            return NotImplemented
        return self.color == other.color

    def __hash__(self) -> int:
        return hash(self.color)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_rgb(cls, r: int, g: int, b: int, **kwargs) -> EmbThread:
        return cls(color_engine.pack_rgb(r, g, b), **kwargs)

    @classmethod
    def from_string(cls, value: str, **kwargs) -> EmbThread:
        """Build a thread from a hex string or a named color."""
        return cls(parse_color_string(value), **kwargs)

    def copy(self) -> EmbThread:
        return EmbThread(
            self.color,
            self.description,
            self.catalog_number,
            self.brand,
            self.chart,
            self.details,
            self.weight,
        )

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @property
    def red(self) -> int:
        return (self.color >> 16) & 0xFF

    @property
    def green(self) -> int:
        return (self.color >> 8) & 0xFF

    @property
    def blue(self) -> int:
        return self.color & 0xFF

    @property
    def opaque_color(self) -> int:
        return 0xFF000000 | self.color

    def hex_color(self) -> str:
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"

    def set_hex_color(self, value: str) -> None:
        self.color = parse_color_hex(value)

    # ------------------------------------------------------------------
    # Color science
    # ------------------------------------------------------------------

    def color_distance(self, other: int | EmbThread) -> float:
        """Flat Euclidean RGB distance to another color or thread."""
        other_color = other.color if isinstance(other, EmbThread) else other
        return color_engine.color_distance_rgb(self.color, other_color)

    def delta_e(self, other: int | EmbThread) -> float:
        """CIE76 ΔE to another color or thread."""
        other_color = other.color if isinstance(other, EmbThread) else other
        return color_engine.delta_e76(self.color, other_color)

    def find_nearest_color_index(
        self, palette: Sequence[Optional[EmbThread]]
    ) -> Optional[int]:
        """Index of the nearest palette thread by RGB distance.

        ``None`` entries are skipped (used to mask slots temporarily).
        Returns ``None`` when no entry is available.
        """
        index = color_engine.find_nearest_in_palette(
            self.color, [t.color if t is not None else None for t in palette]
        )
        return index if index >= 0 else None

    def find_closest_delta_e_index(
        self, palette: Sequence[Optional[EmbThread]]
    ) -> Optional[int]:
        """Like ``find_nearest_color_index`` but ranked by ΔE76."""
        index = color_engine.find_closest_delta_e(
            self.color, [t.color if t is not None else None for t in palette]
        )
        return index if index >= 0 else None


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def parse_color_hex(value: str) -> int:
    """Parse ``#rgb``, ``#rgba``, ``#rrggbb`` or ``#rrggbbaa``.

    The leading ``#`` is optional.  Alpha digits are dropped.

    Raises
    ------
    ColorError
        On a bad length or a non-hex digit.
    """
    h = value.strip().lstrip("#")
    if not h or not set(h) <= _HEX_DIGITS:
        raise ColorError(f"Invalid hex color: {value!r}")
    if len(h) in (6, 8):
        return int(h[:6], 16)
    if len(h) in (3, 4):
        return int(h[0] * 2 + h[1] * 2 + h[2] * 2, 16)
    raise ColorError(f"Invalid hex color length: {value!r}")


def parse_color_string(value: str) -> int:
    """Parse a hex color, a named color, or ``"random"``."""
    text = value.strip()
    if text.lower() == "random":
        return random.randint(0, 0xFFFFFF)
    if text.startswith("#"):
        return parse_color_hex(text)
    if len(text) in (3, 6) and set(text) <= _HEX_DIGITS:
        return parse_color_hex(text)
    try:
        return NAMED_COLORS[text.lower().replace(" ", "")]
    except KeyError:
        raise ColorError(f"Unknown color name: {value!r}") from None


# CSS/X11 color names
NAMED_COLORS: dict[str, int] = {
    "aliceblue": 0xF0F8FF,
    "antiquewhite": 0xFAEBD7,
    "aqua": 0x00FFFF,
    "aquamarine": 0x7FFFD4,
    "azure": 0xF0FFFF,
    "beige": 0xF5F5DC,
    "bisque": 0xFFE4C4,
    "black": 0x000000,
    "blanchedalmond": 0xFFEBCD,
    "blue": 0x0000FF,
    "blueviolet": 0x8A2BE2,
    "brown": 0xA52A2A,
    "burlywood": 0xDEB887,
    "cadetblue": 0x5F9EA0,
    "chartreuse": 0x7FFF00,
    "chocolate": 0xD2691E,
    "coral": 0xFF7F50,
    "cornflowerblue": 0x6495ED,
    "cornsilk": 0xFFF8DC,
    "crimson": 0xDC143C,
    "cyan": 0x00FFFF,
    "darkblue": 0x00008B,
    "darkcyan": 0x008B8B,
    "darkgoldenrod": 0xB8860B,
    "darkgray": 0xA9A9A9,
    "darkgreen": 0x006400,
    "darkgrey": 0xA9A9A9,
    "darkkhaki": 0xBDB76B,
    "darkmagenta": 0x8B008B,
    "darkolivegreen": 0x556B2F,
    "darkorange": 0xFF8C00,
    "darkorchid": 0x9932CC,
    "darkred": 0x8B0000,
    "darksalmon": 0xE9967A,
    "darkseagreen": 0x8FBC8F,
    "darkslateblue": 0x483D8B,
    "darkslategray": 0x2F4F4F,
    "darkslategrey": 0x2F4F4F,
    "darkturquoise": 0x00CED1,
    "darkviolet": 0x9400D3,
    "deeppink": 0xFF1493,
    "deepskyblue": 0x00BFFF,
    "dimgray": 0x696969,
    "dimgrey": 0x696969,
    "dodgerblue": 0x1E90FF,
    "firebrick": 0xB22222,
    "floralwhite": 0xFFFAF0,
    "forestgreen": 0x228B22,
    "fuchsia": 0xFF00FF,
    "gainsboro": 0xDCDCDC,
    "ghostwhite": 0xF8F8FF,
    "gold": 0xFFD700,
    "goldenrod": 0xDAA520,
    "gray": 0x808080,
    "grey": 0x808080,
    "green": 0x008000,
    "greenyellow": 0xADFF2F,
    "honeydew": 0xF0FFF0,
    "hotpink": 0xFF69B4,
    "indianred": 0xCD5C5C,
    "indigo": 0x4B0082,
    "ivory": 0xFFFFF0,
    "khaki": 0xF0E68C,
    "lavender": 0xE6E6FA,
    "lavenderblush": 0xFFF0F5,
    "lawngreen": 0x7CFC00,
    "lemonchiffon": 0xFFFACD,
    "lightblue": 0xADD8E6,
    "lightcoral": 0xF08080,
    "lightcyan": 0xE0FFFF,
    "lightgoldenrodyellow": 0xFAFAD2,
    "lightgray": 0xD3D3D3,
    "lightgreen": 0x90EE90,
    "lightgrey": 0xD3D3D3,
    "lightpink": 0xFFB6C1,
    "lightsalmon": 0xFFA07A,
    "lightseagreen": 0x20B2AA,
    "lightskyblue": 0x87CEFA,
    "lightslategray": 0x778899,
    "lightslategrey": 0x778899,
    "lightsteelblue": 0xB0C4DE,
    "lightyellow": 0xFFFFE0,
    "lime": 0x00FF00,
    "limegreen": 0x32CD32,
    "linen": 0xFAF0E6,
    "magenta": 0xFF00FF,
    "maroon": 0x800000,
    "mediumaquamarine": 0x66CDAA,
    "mediumblue": 0x0000CD,
    "mediumorchid": 0xBA55D3,
    "mediumpurple": 0x9370DB,
    "mediumseagreen": 0x3CB371,
    "mediumslateblue": 0x7B68EE,
    "mediumspringgreen": 0x00FA9A,
    "mediumturquoise": 0x48D1CC,
    "mediumvioletred": 0xC71585,
    "midnightblue": 0x191970,
    "mintcream": 0xF5FFFA,
    "mistyrose": 0xFFE4E1,
    "moccasin": 0xFFE4B5,
    "navajowhite": 0xFFDEAD,
    "navy": 0x000080,
    "oldlace": 0xFDF5E6,
    "olive": 0x808000,
    "olivedrab": 0x6B8E23,
    "orange": 0xFFA500,
    "orangered": 0xFF4500,
    "orchid": 0xDA70D6,
    "palegoldenrod": 0xEEE8AA,
    "palegreen": 0x98FB98,
    "paleturquoise": 0xAFEEEE,
    "palevioletred": 0xDB7093,
    "papayawhip": 0xFFEFD5,
    "peachpuff": 0xFFDAB9,
    "peru": 0xCD853F,
    "pink": 0xFFC0CB,
    "plum": 0xDDA0DD,
    "powderblue": 0xB0E0E6,
    "purple": 0x800080,
    "red": 0xFF0000,
    "rosybrown": 0xBC8F8F,
    "royalblue": 0x4169E1,
    "saddlebrown": 0x8B4513,
    "salmon": 0xFA8072,
    "sandybrown": 0xF4A460,
    "seagreen": 0x2E8B57,
    "seashell": 0xFFF5EE,
    "sienna": 0xA0522D,
    "silver": 0xC0C0C0,
    "skyblue": 0x87CEEB,
    "slateblue": 0x6A5ACD,
    "slategray": 0x708090,
    "slategrey": 0x708090,
    "snow": 0xFFFAFA,
    "springgreen": 0x00FF7F,
    "steelblue": 0x4682B4,
    "tan": 0xD2B48C,
    "teal": 0x008080,
    "thistle": 0xD8BFD8,
    "tomato": 0xFF6347,
    "turquoise": 0x40E0D0,
    "violet": 0xEE82EE,
    "wheat": 0xF5DEB3,
    "white": 0xFFFFFF,
    "whitesmoke": 0xF5F5F5,
    "yellow": 0xFFFF00,
    "yellowgreen": 0x9ACD32,
}
