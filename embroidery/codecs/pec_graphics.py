"""PEC preview icons -- 48x38 monochrome bitmaps shown on the machine LCD.

Each icon is stored row-major, 6 bytes per row, least significant bit
first.  The writer emits one icon for the whole design followed by one
per color block, each drawn inside a rounded frame.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

ICON_WIDTH = 48
ICON_HEIGHT = 38
ICON_STRIDE = ICON_WIDTH // 8


def _frame() -> np.ndarray:
    frame = np.zeros((ICON_HEIGHT, ICON_WIDTH), dtype=bool)
    last = ICON_HEIGHT - 1
    # horizontal edges
    frame[1, 4:44] = True
    frame[last - 1, 4:44] = True
    # rounded corners
    for row, inset in ((2, 3), (3, 2)):
        for r in (row, last - row):
            frame[r, inset] = True
            frame[r, ICON_WIDTH - 1 - inset] = True
    # vertical edges
    frame[4:last - 3, 1] = True
    frame[4:last - 3, ICON_WIDTH - 2] = True
    return frame


BLANK_FRAME = _frame()
BLANK_FRAME.setflags(write=False)


def pack_icon(pixels: np.ndarray) -> bytes:
    """Pack a (38, 48) bool array into 228 LSB-first bytes."""
    return np.packbits(pixels, axis=1, bitorder="little").tobytes()


def unpack_icon(data: bytes) -> np.ndarray:
    """Inverse of ``pack_icon``."""
    raw = np.frombuffer(data, dtype=np.uint8).reshape(ICON_HEIGHT, ICON_STRIDE)
    return np.unpackbits(raw, axis=1, bitorder="little").astype(bool)


def draw_scaled(
    bounds: tuple[float, float, float, float],
    points: Sequence[tuple[float, float]],
    buffer: int = 4,
) -> np.ndarray:
    """Plot ``points`` into a framed icon, scaled to fit ``bounds``.

    Parameters
    ----------
    bounds : (min_x, min_y, max_x, max_y)
        Extents of the whole design, so every per-color icon shares the
        same scale.
    points : sequence of (x, y)
        Stitch positions in 0.1 mm.
    buffer : int
        Margin in pixels kept free inside the icon.

    Returns
    -------
    np.ndarray
        (38, 48) bool array.
    """
    icon = BLANK_FRAME.copy()
    if len(points) == 0:
        return icon
    left, top, right, bottom = bounds
    width = (right - left) or 1.0
    height = (bottom - top) or 1.0
    scale = min((ICON_WIDTH - buffer) / width, (ICON_HEIGHT - buffer) / height)
    cx = (right + left) / 2.0
    cy = (bottom + top) / 2.0

    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    pts = pts[np.all(np.isfinite(pts), axis=1)]
    px = np.floor((pts[:, 0] - cx) * scale + ICON_WIDTH / 2.0).astype(int)
    py = np.floor((pts[:, 1] - cy) * scale + ICON_HEIGHT / 2.0).astype(int)
    inside = (px >= 0) & (px < ICON_WIDTH) & (py >= 0) & (py < ICON_HEIGHT)
    icon[py[inside], px[inside]] = True
    return icon
