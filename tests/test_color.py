"""Test color space conversions and palette distance metrics.

Tests for src.utils.color:
    - Packed int ↔ byte triple helpers
    - sRGB ↔ linear RGB roundtrip
    - RGB → Lab known values (D65, 2° observer)
    - RGB ↔ HSL
    - Euclidean, redmean and ΔE76 distances
    - Palette argmin searches (holes, ties, empty palettes)

Known values:
    - RGB(255,255,255) → Lab(100, 0, 0)
    - RGB(0,0,0) → Lab(0, 0, 0)
    - RGB(255,0,0) → Lab(~53.2, ~80.1, ~67.2)

Run:
    pytest tests/test_color.py -v
"""

import numpy as np
import pytest

from src.utils import color


# ============================================================================
# PACKING
# ============================================================================

def test_pack_unpack_roundtrip():
    """Test packed 0xRRGGBB ↔ byte triple."""
    assert color.unpack_rgb(0x12ABEF) == (0x12, 0xAB, 0xEF)
    assert color.pack_rgb(0x12, 0xAB, 0xEF) == 0x12ABEF


def test_unpack_ignores_alpha():
    """Test alpha bits above 0xFFFFFF are dropped."""
    assert color.unpack_rgb(0xFF102030) == (0x10, 0x20, 0x30)


def test_as_rgb_array_invalid_shape():
    """Test arrays without a trailing RGB axis are rejected."""
    with pytest.raises(ValueError, match="Expected shape"):
        color.as_rgb_array(np.zeros((4, 2)))


# ============================================================================
# TRANSFER FUNCTIONS
# ============================================================================

def test_srgb_linear_roundtrip():
    """Test sRGB ↔ linear color space conversion."""
    rng = np.random.default_rng(123)
    srgb = rng.random((10, 10, 3))
    back = color.linear_to_srgb(color.srgb_to_linear(srgb))
    np.testing.assert_allclose(back, srgb, atol=1e-9)


def test_srgb_to_linear_linear_region():
    """Test sRGB to linear in linear region (small values)."""
    small = np.array([0.01, 0.02, 0.03, 0.04])
    np.testing.assert_allclose(color.srgb_to_linear(small), small / 12.92)


def test_srgb_to_linear_power_region():
    """Test sRGB to linear in power region."""
    assert color.srgb_to_linear(np.array(0.5)) == pytest.approx(0.21404, abs=1e-5)


# ============================================================================
# LAB
# ============================================================================

@pytest.mark.parametrize("rgb, expected", [
    (0xFFFFFF, (100.0, 0.0, 0.0)),
    (0x000000, (0.0, 0.0, 0.0)),
    (0xFF0000, (53.24, 80.09, 67.20)),
])
def test_rgb_to_lab_known_values(rgb, expected):
    """Test RGB → Lab against reference values."""
    np.testing.assert_allclose(color.rgb_to_lab(rgb), expected, atol=0.05)


def test_rgb_to_lab_batched():
    """Test Lab conversion preserves leading shape."""
    pixels = np.full((4, 5, 3), 128.0)
    lab = color.rgb_to_lab(pixels)
    assert lab.shape == (4, 5, 3)
    np.testing.assert_allclose(lab[..., 0], lab[0, 0, 0])


def test_xyz_to_lab_d50():
    """Test D50 white maps to L=100."""
    lab = color.xyz_to_lab(np.array([0.96422, 1.0, 0.82521]), white_point="D50")
    np.testing.assert_allclose(lab, [100.0, 0.0, 0.0], atol=1e-6)


def test_xyz_to_lab_invalid_white_point():
    """Test unknown white points are rejected."""
    with pytest.raises(ValueError, match="Unknown white_point"):
        color.xyz_to_lab(np.ones(3), white_point="A")


# ============================================================================
# HSL
# ============================================================================

def test_rgb_to_hsl_primaries():
    """Test hue angles of the primaries."""
    hsl = color.rgb_to_hsl(np.array([[255, 0, 0], [0, 255, 0], [0, 0, 255]]))
    np.testing.assert_allclose(hsl[:, 0], [0.0, 120.0, 240.0])
    np.testing.assert_allclose(hsl[:, 1], 1.0)
    np.testing.assert_allclose(hsl[:, 2], 0.5)


def test_rgb_to_hsl_gray_has_no_hue():
    """Test achromatic colors get hue 0 and saturation 0."""
    h, s, l = color.rgb_to_hsl(0x808080)
    assert (h, s) == (0.0, 0.0)
    assert l == pytest.approx(128 / 255)


@pytest.mark.parametrize("packed", [0x12ABEF, 0xFF6600, 0x2F5933, 0xFFFFFF, 0x000000])
def test_hsl_roundtrip(packed):
    """Test RGB → HSL → RGB returns the original bytes."""
    rgb = color.hsl_to_rgb(color.rgb_to_hsl(packed))
    assert color.pack_rgb(*rgb) == packed


# ============================================================================
# DISTANCES
# ============================================================================

def test_color_distance_rgb():
    """Test flat Euclidean RGB distance."""
    assert color.color_distance_rgb(0xFF0000, 0x000000) == pytest.approx(255.0)
    assert color.color_distance_rgb(0x123456, 0x123456) == 0.0


def test_color_distance_redmean_symmetric():
    """Test redmean distance is zero on identity and symmetric."""
    assert color.color_distance_redmean(0xABCDEF, 0xABCDEF) == 0
    a, b = 0xFF2010, 0x1020FF
    assert color.color_distance_redmean(a, b) == color.color_distance_redmean(b, a)


def test_delta_e76():
    """Test ΔE76 on identical and extreme colors."""
    assert color.delta_e76(0x336699, 0x336699) == 0.0
    assert color.delta_e76(0xFFFFFF, 0x000000) == pytest.approx(100.0, abs=0.05)


# ============================================================================
# PALETTE SEARCH
# ============================================================================

def test_find_nearest_first_index_on_tie():
    """Test equal distances resolve to the first index."""
    assert color.find_nearest_in_palette(0x000000, [0x000010, 0x100000]) == 0


def test_find_nearest_skips_holes():
    """Test None entries are never chosen."""
    assert color.find_nearest_in_palette(0xFF0000, [None, 0x00FF00, None, 0xEE0000]) == 3


def test_find_nearest_empty():
    """Test -1 when nothing is available."""
    assert color.find_nearest_in_palette(0xFF0000, []) == -1
    assert color.find_nearest_in_palette(0xFF0000, [None, None]) == -1


def test_find_closest_delta_e():
    """Test ΔE palette search."""
    assert color.find_closest_delta_e(0x1010F0, [0x0000FF, 0xFFFF00]) == 0
    assert color.find_closest_delta_e(0x1010F0, [None]) == -1
