"""Brother PEC machine palette.

Index 0 is a placeholder the machine never selects; it stays in the
table so file indices map directly onto tuple positions, and quantizers
mask it out.  The table is an immutable module constant shared by every
conversion.
"""

from __future__ import annotations

from embroidery.pattern_ir.thread import EmbThread


def _pec(r: int, g: int, b: int, description: str, catalog: str) -> EmbThread:
    return EmbThread.from_rgb(
        r, g, b, description=description, catalog_number=catalog,
        brand="Brother", chart="Brother PEC",
    )


PEC_THREADS: tuple[EmbThread, ...] = (
    _pec(0, 0, 0, "Unknown", "0"),
    _pec(14, 31, 124, "Prussian Blue", "1"),
    _pec(10, 85, 163, "Blue", "2"),
    _pec(0, 135, 119, "Teal Green", "3"),
    _pec(75, 107, 175, "Cornflower Blue", "4"),
    _pec(237, 23, 31, "Red", "5"),
    _pec(209, 92, 0, "Reddish Brown", "6"),
    _pec(145, 54, 151, "Magenta", "7"),
    _pec(228, 154, 203, "Light Lilac", "8"),
    _pec(145, 95, 172, "Lilac", "9"),
    _pec(158, 214, 125, "Mint Green", "10"),
    _pec(232, 169, 0, "Deep Gold", "11"),
    _pec(254, 186, 53, "Orange", "12"),
    _pec(255, 255, 0, "Yellow", "13"),
    _pec(112, 188, 31, "Lime Green", "14"),
    _pec(186, 152, 0, "Brass", "15"),
    _pec(168, 168, 168, "Silver", "16"),
    _pec(125, 111, 0, "Russet Brown", "17"),
    _pec(255, 255, 179, "Cream Brown", "18"),
    _pec(79, 85, 86, "Pewter", "19"),
    _pec(0, 0, 0, "Black", "20"),
    _pec(11, 61, 145, "Ultramarine", "21"),
    _pec(119, 1, 118, "Royal Purple", "22"),
    _pec(41, 49, 51, "Dark Gray", "23"),
    _pec(42, 19, 1, "Dark Brown", "24"),
    _pec(246, 74, 138, "Deep Rose", "25"),
    _pec(178, 118, 36, "Light Brown", "26"),
    _pec(252, 187, 197, "Salmon Pink", "27"),
    _pec(254, 55, 15, "Vermilion", "28"),
    _pec(240, 240, 240, "White", "29"),
    _pec(106, 28, 138, "Violet", "30"),
    _pec(168, 221, 196, "Seacrest", "31"),
    _pec(37, 132, 187, "Sky Blue", "32"),
    _pec(254, 179, 67, "Pumpkin", "33"),
    _pec(255, 243, 107, "Cream Yellow", "34"),
    _pec(208, 166, 96, "Khaki", "35"),
    _pec(209, 84, 0, "Clay Brown", "36"),
    _pec(102, 186, 73, "Leaf Green", "37"),
    _pec(19, 74, 70, "Peacock Blue", "38"),
    _pec(135, 135, 135, "Gray", "39"),
    _pec(216, 204, 198, "Warm Gray", "40"),
    _pec(67, 86, 7, "Dark Olive", "41"),
    _pec(253, 217, 222, "Flesh Pink", "42"),
    _pec(249, 147, 188, "Pink", "43"),
    _pec(0, 56, 34, "Deep Green", "44"),
    _pec(178, 175, 212, "Lavender", "45"),
    _pec(104, 106, 176, "Wisteria Violet", "46"),
    _pec(239, 227, 185, "Beige", "47"),
    _pec(247, 56, 102, "Carmine", "48"),
    _pec(181, 75, 100, "Amber Red", "49"),
    _pec(19, 43, 26, "Olive Green", "50"),
    _pec(199, 1, 86, "Dark Fuchsia", "51"),
    _pec(254, 158, 50, "Tangerine", "52"),
    _pec(168, 222, 235, "Light Blue", "53"),
    _pec(0, 103, 62, "Emerald Green", "54"),
    _pec(78, 41, 144, "Purple", "55"),
    _pec(47, 126, 32, "Moss Green", "56"),
    _pec(255, 204, 204, "Flesh Pink", "57"),
    _pec(255, 217, 17, "Harvest Gold", "58"),
    _pec(9, 91, 166, "Electric Blue", "59"),
    _pec(240, 249, 112, "Lemon Yellow", "60"),
    _pec(227, 243, 91, "Fresh Green", "61"),
    _pec(255, 153, 0, "Orange", "62"),
    _pec(255, 240, 141, "Cream Yellow", "63"),
    _pec(255, 200, 200, "Applique", "64"),
)
