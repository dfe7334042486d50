"""Color space conversions and palette distance metrics.

Provides:
    - Packed 0xRRGGBB ↔ (r, g, b) byte triples
    - sRGB bytes → normalized floats, sRGB ↔ linear RGB
    - RGB ↔ HSL
    - RGB → CIE L*a*b* via XYZ (D65 illuminant)
    - Flat Euclidean RGB distance (bulk palette snapping)
    - Redmean-weighted RGB distance (cheap perceptual approximation)
    - ΔE76 (CIE76) perceptual distance
    - Linear argmin palette searches

Used by:
    - Thread matching: EmbThread.find_nearest_color_index
    - Palette quantizer: JEF/PEC slot assignment
    - Pattern statistics: color similarity queries

Conversions accept either a packed int or a numpy array of shape (..., 3)
holding byte values [0, 255].  Array functions preserve the leading shape.

Invariants:
    - Alpha bits above 0xFFFFFF are ignored
    - Lab coordinates: L[0,100], a,b approximately [-128,127]
    - Palette searches return the *first* index among equal distances
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union

import numpy as np

ColorLike = Union[int, Sequence[int], np.ndarray]

# sRGB → XYZ matrix (D65)
_RGB_TO_XYZ = np.array([
    [0.4124564, 0.3575761, 0.1804375],
    [0.2126729, 0.7151522, 0.0721750],
    [0.0193339, 0.1191920, 0.9503041],
], dtype=np.float64)

_WHITE_POINTS = {
    "D65": np.array([0.95047, 1.0, 1.08883], dtype=np.float64),
    "D50": np.array([0.96422, 1.0, 0.82521], dtype=np.float64),
}


def unpack_rgb(color: int) -> Tuple[int, int, int]:
    """Split a packed 0xRRGGBB integer into byte components."""
    return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF


def pack_rgb(r: int, g: int, b: int) -> int:
    """Pack byte components into 0xRRGGBB."""
    return ((int(r) & 0xFF) << 16) | ((int(g) & 0xFF) << 8) | (int(b) & 0xFF)


def as_rgb_array(color: ColorLike) -> np.ndarray:
    """Coerce a packed int or (..., 3) byte array to float64 (..., 3).

    Parameters
    ----------
    color : int | sequence | np.ndarray
        Packed 0xRRGGBB, or byte triples.

    Returns
    -------
    np.ndarray
        float64 array with values in [0, 255].
    """
    if isinstance(color, (int, np.integer)):
        return np.array(unpack_rgb(int(color)), dtype=np.float64)
    arr = np.asarray(color, dtype=np.float64)
    if arr.shape[-1] != 3:
        raise ValueError(f"Expected shape (..., 3), got {arr.shape}")
    return arr


def rgb_to_srgb_float(color: ColorLike) -> np.ndarray:
    """Convert RGB bytes to normalized sRGB floats in [0, 1]."""
    return as_rgb_array(color) / 255.0


def srgb_to_linear(srgb: np.ndarray) -> np.ndarray:
    """Convert sRGB [0,1] to linear RGB [0,1].

    Notes
    -----
    Uses exact sRGB transfer function (not gamma 2.2 approximation):
        - Linear region for small values: x / 12.92
        - Power region: ((x + 0.055) / 1.055)^2.4
    """
    srgb = np.clip(srgb, 0.0, 1.0)
    return np.where(srgb <= 0.04045, srgb / 12.92, ((srgb + 0.055) / 1.055) ** 2.4)


def linear_to_srgb(linear: np.ndarray) -> np.ndarray:
    """Convert linear RGB [0,1] to sRGB [0,1] (inverse of ``srgb_to_linear``)."""
    linear = np.clip(linear, 0.0, 1.0)
    return np.where(
        linear <= 0.0031308,
        linear * 12.92,
        1.055 * np.power(linear, 1.0 / 2.4) - 0.055,
    )


# ---------------------------------------------------------------------------
# HSL
# ---------------------------------------------------------------------------


def rgb_to_hsl(color: ColorLike) -> np.ndarray:
    """Convert RGB bytes to HSL.

    Parameters
    ----------
    color : int | np.ndarray
        Packed color or (..., 3) byte array.

    Returns
    -------
    np.ndarray
        (..., 3) array: hue in degrees [0, 360), saturation and
        lightness in [0, 1].  Achromatic colors have hue 0.
    """
    rgb = rgb_to_srgb_float(color)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    cmax = np.max(rgb, axis=-1)
    cmin = np.min(rgb, axis=-1)
    delta = cmax - cmin
    light = (cmax + cmin) / 2.0

    with np.errstate(divide="ignore", invalid="ignore"):
        sat = np.where(
            delta == 0.0, 0.0, delta / (1.0 - np.abs(2.0 * light - 1.0))
        )
        safe = np.where(delta == 0.0, 1.0, delta)
        hue = np.where(
            cmax == r,
            ((g - b) / safe) % 6.0,
            np.where(cmax == g, (b - r) / safe + 2.0, (r - g) / safe + 4.0),
        )
    hue = np.where(delta == 0.0, 0.0, hue * 60.0) % 360.0
    return np.stack([hue, np.clip(sat, 0.0, 1.0), light], axis=-1)


def hsl_to_rgb(hsl: np.ndarray) -> np.ndarray:
    """Convert HSL (degrees, [0,1], [0,1]) back to RGB bytes as float64."""
    hsl = np.asarray(hsl, dtype=np.float64)
    h, s, l = hsl[..., 0] % 360.0, hsl[..., 1], hsl[..., 2]
    c = (1.0 - np.abs(2.0 * l - 1.0)) * s
    hp = h / 60.0
    x = c * (1.0 - np.abs(hp % 2.0 - 1.0))
    zero = np.zeros_like(c)
    sector = np.floor(hp).astype(int) % 6
    choices_r = [c, x, zero, zero, x, c]
    choices_g = [x, c, c, x, zero, zero]
    choices_b = [zero, zero, x, c, c, x]
    r = np.choose(sector, choices_r)
    g = np.choose(sector, choices_g)
    b = np.choose(sector, choices_b)
    m = l - c / 2.0
    return np.round(np.stack([r + m, g + m, b + m], axis=-1) * 255.0)


# ---------------------------------------------------------------------------
# XYZ / Lab
# ---------------------------------------------------------------------------


def rgb_to_xyz(color: ColorLike) -> np.ndarray:
    """Convert RGB bytes to CIE XYZ (D65 illuminant).

    Notes
    -----
    Linearizes sRGB first, then applies the sRGB → XYZ matrix (D65):
    [[0.4124564, 0.3575761, 0.1804375],
     [0.2126729, 0.7151522, 0.0721750],
     [0.0193339, 0.1191920, 0.9503041]]
    """
    linear = srgb_to_linear(rgb_to_srgb_float(color))
    return linear @ _RGB_TO_XYZ.T


def xyz_to_lab(xyz: np.ndarray, white_point: str = "D65") -> np.ndarray:
    """Convert XYZ to CIE L*a*b*.

    Parameters
    ----------
    xyz : np.ndarray
        XYZ coordinates, shape (..., 3)
    white_point : str
        Reference white point, "D65" (default) or "D50"

    Returns
    -------
    np.ndarray
        Lab coordinates, same shape

    Notes
    -----
    D65 white point: X=0.95047, Y=1.0, Z=1.08883
    Uses CIE standard transform with 6/29 threshold.
    """
    if white_point not in _WHITE_POINTS:
        raise ValueError(f"Unknown white_point: {white_point}. Use 'D65' or 'D50'.")
    xyz_norm = np.asarray(xyz, dtype=np.float64) / _WHITE_POINTS[white_point]

    delta = 6.0 / 29.0
    delta_sq = delta * delta
    f = np.where(
        xyz_norm <= delta_sq * delta,
        xyz_norm / (3.0 * delta_sq) + (4.0 / 29.0),
        np.cbrt(xyz_norm),
    )
    fx, fy, fz = f[..., 0], f[..., 1], f[..., 2]
    return np.stack(
        [116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz)], axis=-1
    )


def rgb_to_lab(color: ColorLike, white_point: str = "D65") -> np.ndarray:
    """Convert RGB bytes to CIE L*a*b* (composite of the two steps above)."""
    return xyz_to_lab(rgb_to_xyz(color), white_point=white_point)


# ---------------------------------------------------------------------------
# Distances
# ---------------------------------------------------------------------------


def color_distance_rgb_squared(a: ColorLike, b: ColorLike) -> np.ndarray:
    """Squared Euclidean RGB distance (ordering-equivalent, no sqrt)."""
    diff = as_rgb_array(a) - as_rgb_array(b)
    return np.sum(diff * diff, axis=-1)


def color_distance_rgb(a: ColorLike, b: ColorLike) -> float:
    """Flat Euclidean RGB distance between two colors."""
    return float(np.sqrt(color_distance_rgb_squared(a, b)))


def color_distance_redmean(a: int, b: int) -> int:
    """Redmean-weighted squared RGB distance (integer arithmetic).

    Cheaper than ΔE and closer to perception than flat Euclidean for
    saturated reds and blues.
    """
    r1, g1, b1 = unpack_rgb(a)
    r2, g2, b2 = unpack_rgb(b)
    rmean = (r1 + r2) // 2
    r = r1 - r2
    g = g1 - g2
    bl = b1 - b2
    return (((512 + rmean) * r * r) >> 8) + 4 * g * g + (((767 - rmean) * bl * bl) >> 8)


def delta_e76(a: ColorLike, b: ColorLike) -> float:
    """CIE76 ΔE: Euclidean distance in L*a*b*.

    Returns
    -------
    float
        ΔE, where ~2.3 is a just-noticeable difference.
    """
    diff = rgb_to_lab(a) - rgb_to_lab(b)
    return float(np.sqrt(np.sum(diff * diff, axis=-1)))


# ---------------------------------------------------------------------------
# Palette search
# ---------------------------------------------------------------------------


def _palette_array(palette: Sequence[Optional[int]]) -> Tuple[np.ndarray, np.ndarray]:
    """Return (rgb array, availability mask) for a palette with holes."""
    mask = np.array([c is not None for c in palette], dtype=bool)
    packed = [c if c is not None else 0 for c in palette]
    rgb = np.array([unpack_rgb(int(c)) for c in packed], dtype=np.float64).reshape(-1, 3)
    return rgb, mask


def find_nearest_in_palette(color: int, palette: Sequence[Optional[int]]) -> int:
    """Index of the palette entry with the smallest Euclidean RGB distance.

    Parameters
    ----------
    color : int
        Packed 0xRRGGBB query color.
    palette : sequence of int | None
        Candidate colors; ``None`` marks an unavailable slot.

    Returns
    -------
    int
        Index of the nearest available entry, or -1 if none is available.
    """
    if len(palette) == 0:
        return -1
    rgb, mask = _palette_array(palette)
    if not mask.any():
        return -1
    dist = color_distance_rgb_squared(rgb, color)
    dist = np.where(mask, dist, np.inf)
    return int(np.argmin(dist))


def find_closest_delta_e(color: int, palette: Sequence[Optional[int]]) -> int:
    """Index of the palette entry with the smallest ΔE76, -1 if none."""
    if len(palette) == 0:
        return -1
    rgb, mask = _palette_array(palette)
    if not mask.any():
        return -1
    diff = rgb_to_lab(rgb) - rgb_to_lab(color)
    dist = np.where(mask, np.sum(diff * diff, axis=-1), np.inf)
    return int(np.argmin(dist))
