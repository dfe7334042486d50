"""Janome JEF machine palette.

Slot 0 is ``None``: a JEF palette entry of 0 means "no color" and
readers skip it.  Indices written to a file are positions in this tuple.
"""

from __future__ import annotations

from typing import Optional

from embroidery.pattern_ir.thread import EmbThread


def _jef(color: int, description: str, catalog: str) -> EmbThread:
    return EmbThread(
        color, description=description, catalog_number=catalog,
        brand="Janome", chart="Janome",
    )


JEF_THREADS: tuple[Optional[EmbThread], ...] = (
    None,
    _jef(0x000000, "Black", "002"),
    _jef(0xFFFFFF, "White", "001"),
    _jef(0xFFFF17, "Yellow", "204"),
    _jef(0xFF6600, "Orange", "203"),
    _jef(0x2F5933, "Olive Green", "219"),
    _jef(0x237336, "Green", "226"),
    _jef(0x65C2C8, "Sky", "217"),
    _jef(0xAB5A96, "Purple", "208"),
    _jef(0xF669A0, "Pink", "201"),
    _jef(0xFF0000, "Red", "225"),
    _jef(0xB1704E, "Brown", "214"),
    _jef(0x0B2F84, "Blue", "207"),
    _jef(0xE4C35D, "Gold", "003"),
    _jef(0x481A05, "Dark Brown", "205"),
    _jef(0xAC9CC7, "Pale Violet", "209"),
    _jef(0xFCF294, "Pale Yellow", "210"),
    _jef(0xF999B7, "Pale Pink", "211"),
    _jef(0xFAB381, "Peach", "212"),
    _jef(0xC9A480, "Beige", "213"),
    _jef(0x970533, "Wine Red", "215"),
    _jef(0xA0B8CC, "Pale Sky", "216"),
    _jef(0x7FC21C, "Yellow Green", "218"),
    _jef(0xE5E5E5, "Silver Gray", "220"),
    _jef(0x889B9B, "Gray", "221"),
    _jef(0x98D6BD, "Pale Aqua", "227"),
    _jef(0xB2E1E3, "Baby Blue", "228"),
    _jef(0x368BA0, "Powder Blue", "229"),
    _jef(0x4FB4E5, "Bright Blue", "230"),
    _jef(0x386A91, "Slate Blue", "231"),
    _jef(0x071650, "Navy Blue", "232"),
    _jef(0xF999A2, "Salmon Pink", "233"),
    _jef(0xF9676B, "Coral", "234"),
    _jef(0xE3311F, "Burnt Orange", "235"),
    _jef(0xE2A188, "Cinnamon", "236"),
    _jef(0xB59474, "Umber", "237"),
    _jef(0xE4CF99, "Blond", "238"),
    _jef(0xFFCB00, "Sunflower", "239"),
    _jef(0xE1ADD4, "Orchid Pink", "240"),
    _jef(0xC3007E, "Peony Purple", "241"),
    _jef(0x80004B, "Burgundy", "242"),
    _jef(0x540571, "Royal Purple", "243"),
    _jef(0xB10525, "Cardinal Red", "244"),
    _jef(0xCAE0C0, "Opal Green", "245"),
    _jef(0x899856, "Moss Green", "246"),
    _jef(0x5C941A, "Meadow Green", "247"),
    _jef(0x003114, "Dark Green", "248"),
    _jef(0x5DAE94, "Aquamarine", "249"),
    _jef(0x4CBF8F, "Emerald Green", "250"),
    _jef(0x007772, "Peacock Green", "251"),
    _jef(0x595B61, "Dark Gray", "252"),
    _jef(0xFFFFF2, "Ivory White", "253"),
    _jef(0xB15818, "Hazel", "254"),
    _jef(0xCB8A07, "Toast", "255"),
    _jef(0x986C80, "Salmon", "256"),
    _jef(0x98692D, "Cocoa Brown", "257"),
    _jef(0x4D3419, "Sienna", "258"),
    _jef(0x4C330B, "Sepia", "259"),
    _jef(0x33200A, "Dark Sepia", "260"),
    _jef(0x523A97, "Violet Blue", "261"),
    _jef(0x0D217E, "Blue Ink", "262"),
    _jef(0x1E77AC, "Sola Blue", "263"),
    _jef(0xB2DD53, "Green Dust", "264"),
    _jef(0xF33689, "Crimson", "265"),
    _jef(0xDE649E, "Floral Pink", "266"),
    _jef(0x984161, "Wine", "267"),
    _jef(0x4C5612, "Olive Drab", "268"),
    _jef(0x4C881F, "Meadow", "269"),
    _jef(0xE4DE79, "Mustard", "270"),
    _jef(0xCB8A1A, "Yellow Ocher", "271"),
    _jef(0xCBA21C, "Old Gold", "272"),
    _jef(0xFF9805, "Honey Dew", "273"),
    _jef(0xFCB257, "Tangerine", "274"),
    _jef(0xFFE505, "Canary Yellow", "275"),
    _jef(0xF0331F, "Vermilion", "202"),
    _jef(0x1A842D, "Bright Green", "206"),
    _jef(0x386CAE, "Ocean Blue", "222"),
    _jef(0xE3C4B4, "Beige Gray", "223"),
    _jef(0xE3AC81, "Bamboo", "224"),
)
