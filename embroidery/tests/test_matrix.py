"""Tests for the 3x3 affine matrix.

Validates that:
    - A new matrix is the identity and leaves every point unchanged
    - inverse() round-trips within 1e-9 and M . M^-1 is the identity
    - A singular matrix is left bit-for-bit unchanged by inverse()
    - Scale and rotation about a pivot keep the pivot fixed
"""

from __future__ import annotations

import math

import pytest

from embroidery.pattern_ir.matrix import Matrix, multiply


def _assert_close(a: list[float], b: list[float], tol: float = 1e-9) -> None:
    assert len(a) == len(b)
    for x, y in zip(a, b):
        assert x == pytest.approx(y, abs=tol)


@pytest.fixture()
def affine() -> Matrix:
    m = Matrix()
    m.post_scale(2.0, 0.5)
    m.post_rotate(33.0)
    m.post_translate(12.5, -7.25)
    return m


class TestIdentity:
    @pytest.mark.parametrize(
        "x, y",
        [(0.0, 0.0), (1.5, -2.25), (-1e6, 3e5), (123456.789, -0.001)],
    )
    def test_new_matrix_leaves_points_unchanged(self, x: float, y: float) -> None:
        assert Matrix().transform_point(x, y) == (x, y)

    def test_is_identity(self) -> None:
        m = Matrix()
        assert m.is_identity()
        m.post_translate(1.0, 0.0)
        assert not m.is_identity()
        m.reset()
        assert m.is_identity()

    def test_wrong_length_rejected(self) -> None:
        with pytest.raises(ValueError, match="9 values"):
            Matrix([1.0, 0.0])


class TestInverse:
    def test_double_inverse_round_trips(self, affine: Matrix) -> None:
        original = affine.copy()
        affine.inverse()
        affine.inverse()
        _assert_close(affine.m, original.m)

    def test_product_with_inverse_is_identity(self, affine: Matrix) -> None:
        inv = affine.copy()
        inv.inverse()
        _assert_close(multiply(affine.m, inv.m), Matrix().m)

    def test_inverse_undoes_transform(self, affine: Matrix) -> None:
        x, y = affine.transform_point(40.0, -15.0)
        inv = affine.copy()
        inv.inverse()
        rx, ry = inv.transform_point(x, y)
        assert rx == pytest.approx(40.0, abs=1e-9)
        assert ry == pytest.approx(-15.0, abs=1e-9)

    def test_singular_matrix_unchanged(self) -> None:
        m = Matrix()
        m.post_scale(0.0, 3.0)
        before = list(m.m)
        assert m.determinant() == 0.0
        m.inverse()
        assert m.m == before

    def test_non_finite_matrix_unchanged(self) -> None:
        m = Matrix([math.inf, 0, 0, 0, 1, 0, 0, 0, 1])
        before = list(m.m)
        m.inverse()
        assert m.m == before


class TestComposition:
    def test_post_operations_apply_in_order(self) -> None:
        m = Matrix()
        m.post_translate(10.0, 0.0)
        m.post_scale(2.0)
        # translate first, then scale
        assert m.transform_point(1.0, 1.0) == pytest.approx((22.0, 2.0))

    def test_rotate_quarter_turn(self) -> None:
        m = Matrix()
        m.post_rotate(90.0)
        x, y = m.transform_point(10.0, 0.0)
        assert x == pytest.approx(0.0, abs=1e-12)
        assert y == pytest.approx(10.0)

    def test_rotate_about_pivot_keeps_pivot(self) -> None:
        m = Matrix()
        m.post_rotate(45.0, 50.0, 20.0)
        assert m.transform_point(50.0, 20.0) == pytest.approx((50.0, 20.0))

    def test_scale_about_pivot(self) -> None:
        m = Matrix()
        m.post_scale(2.0, 2.0, 10.0, 10.0)
        assert m.transform_point(10.0, 10.0) == pytest.approx((10.0, 10.0))
        assert m.transform_point(20.0, 10.0) == pytest.approx((30.0, 10.0))

    def test_copy_is_independent(self, affine: Matrix) -> None:
        clone = affine.copy()
        clone.post_translate(1.0, 1.0)
        assert clone != affine
