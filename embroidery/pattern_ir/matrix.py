"""3x3 affine transform used to reposition stitch coordinates.

Row-vector convention: a point is transformed as ``[x y 1] . M`` with
``M`` stored row-major in nine floats::

    | m0 m1 0 |
    | m3 m4 0 |
    | m6 m7 1 |

``post_*`` operations right-multiply, so the most recently added operation
is applied *last* to a point.  Rotation is in degrees, positive values
turn +X toward +Y.

Degenerate input never raises: a singular matrix is left unchanged by
``inverse()``, matching the transcoder's fail-safe behaviour.
"""

from __future__ import annotations

import math

IDENTITY: tuple[float, ...] = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0)
EPSILON = 1e-10


class Matrix:
    """Mutable 3x3 affine matrix, identity by default.

    Parameters
    ----------
    m : sequence of float, optional
        Nine row-major values.  ``None`` creates the identity.
    """

    __slots__ = ("m",)

    def __init__(self, m=None) -> None:
        if m is None:
            self.m = list(IDENTITY)
        else:
            if len(m) != 9:
                raise ValueError(f"Matrix needs 9 values, got {len(m)}")
            self.m = [float(v) for v in m]

    def __repr__(self) -> str:
        return f"Matrix({self.m!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.m == other.m

    def copy(self) -> Matrix:
        return Matrix(self.m)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_identity(self) -> bool:
        """True when every element is within ``1e-10`` of the identity."""
        return all(abs(a - b) < EPSILON for a, b in zip(self.m, IDENTITY))

    def determinant(self) -> float:
        m = self.m
        return (
            m[0] * (m[4] * m[8] - m[5] * m[7])
            - m[1] * (m[3] * m[8] - m[5] * m[6])
            + m[2] * (m[3] * m[7] - m[4] * m[6])
        )

    def transform_point(self, x: float, y: float) -> tuple[float, float]:
        """Apply the transform to a single point."""
        m = self.m
        return (
            x * m[0] + y * m[3] + m[6],
            x * m[1] + y * m[4] + m[7],
        )

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return self.transform_point(x, y)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def reset(self) -> None:
        self.m = list(IDENTITY)

    def inverse(self) -> None:
        """Invert in place using the adjugate.

        Leaves the matrix untouched when ``|det| < 1e-10`` or the
        determinant is not finite.
        """
        m = self.m
        det = self.determinant()
        if not math.isfinite(det) or abs(det) < EPSILON:
            return
        inv_det = 1.0 / det
        self.m = [
            (m[4] * m[8] - m[5] * m[7]) * inv_det,
            (m[2] * m[7] - m[1] * m[8]) * inv_det,
            (m[1] * m[5] - m[2] * m[4]) * inv_det,
            (m[5] * m[6] - m[3] * m[8]) * inv_det,
            (m[0] * m[8] - m[2] * m[6]) * inv_det,
            (m[2] * m[3] - m[0] * m[5]) * inv_det,
            (m[3] * m[7] - m[4] * m[6]) * inv_det,
            (m[1] * m[6] - m[0] * m[7]) * inv_det,
            (m[0] * m[4] - m[1] * m[3]) * inv_det,
        ]

    def post_cat(self, other: Matrix | list[float]) -> None:
        """Right-multiply by ``other``."""
        values = other.m if isinstance(other, Matrix) else other
        self.m = multiply(self.m, values)

    def post_translate(self, tx: float, ty: float) -> None:
        self.post_cat(get_translate(tx, ty))

    def post_scale(
        self,
        sx: float,
        sy: float | None = None,
        px: float = 0.0,
        py: float = 0.0,
    ) -> None:
        """Scale about ``(px, py)``; ``sy`` defaults to ``sx``."""
        if sy is None:
            sy = sx
        if px == 0.0 and py == 0.0:
            self.post_cat(get_scale(sx, sy))
            return
        self.post_translate(-px, -py)
        self.post_cat(get_scale(sx, sy))
        self.post_translate(px, py)

    def post_rotate(self, degrees: float, px: float = 0.0, py: float = 0.0) -> None:
        """Rotate by ``degrees`` about ``(px, py)``."""
        if px == 0.0 and py == 0.0:
            self.post_cat(get_rotate(degrees))
            return
        self.post_translate(-px, -py)
        self.post_cat(get_rotate(degrees))
        self.post_translate(px, py)


# ---------------------------------------------------------------------------
# Elementary matrices
# ---------------------------------------------------------------------------


def get_translate(tx: float, ty: float) -> list[float]:
    return [1.0, 0.0, 0.0, 0.0, 1.0, 0.0, float(tx), float(ty), 1.0]


def get_scale(sx: float, sy: float | None = None) -> list[float]:
    if sy is None:
        sy = sx
    return [float(sx), 0.0, 0.0, 0.0, float(sy), 0.0, 0.0, 0.0, 1.0]


def get_rotate(degrees: float) -> list[float]:
    theta = math.radians(degrees)
    ct = math.cos(theta)
    st = math.sin(theta)
    return [ct, st, 0.0, -st, ct, 0.0, 0.0, 0.0, 1.0]


def multiply(a: list[float], b: list[float]) -> list[float]:
    """Row-major 3x3 product ``a . b``."""
    return [
        a[0] * b[0] + a[1] * b[3] + a[2] * b[6],
        a[0] * b[1] + a[1] * b[4] + a[2] * b[7],
        a[0] * b[2] + a[1] * b[5] + a[2] * b[8],
        a[3] * b[0] + a[4] * b[3] + a[5] * b[6],
        a[3] * b[1] + a[4] * b[4] + a[5] * b[7],
        a[3] * b[2] + a[4] * b[5] + a[5] * b[8],
        a[6] * b[0] + a[7] * b[3] + a[8] * b[6],
        a[6] * b[1] + a[7] * b[4] + a[8] * b[7],
        a[6] * b[2] + a[7] * b[5] + a[8] * b[8],
    ]
