"""
Barycentric parametrization of 2D triangles.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


class ParametrizedTriangle:
    """Triangle expressed in the basis of its two edges leaving ``p0``.

    A point is written as ``p0 + u * (p1 - p0) + v * (p2 - p0)``, so the
    barycentric weights of ``(p0, p1, p2)`` are ``(1 - u - v, u, v)``.
    All methods accept stacked inputs with the coordinates on the last axis.
    """

    def __init__(self, p0: ArrayLike, p1: ArrayLike, p2: ArrayLike) -> None:
        self.update_vertices(p0, p1, p2)

    def update_vertices(self, p0: ArrayLike, p1: ArrayLike, p2: ArrayLike) -> None:
        """Replace the vertices, reusing this triangle for another set of points.

        Args:
            p0: Origin vertex, shape (2,)
            p1: Vertex reached at ``(u, v) = (1, 0)``, shape (2,)
            p2: Vertex reached at ``(u, v) = (0, 1)``, shape (2,)
        """
        self.p0 = np.asarray(p0, dtype=float)
        self.e1 = np.asarray(p1, dtype=float) - self.p0
        self.e2 = np.asarray(p2, dtype=float) - self.p0
        self.det = self.e1[0] * self.e2[1] - self.e1[1] * self.e2[0]

    def bary_at(self, points: ArrayLike) -> NDArray[np.floating]:
        """Solve for the ``(u, v)`` coordinates of points.

        Degenerate triangles have a zero determinant; the result is then
        NaN or infinite, which :meth:`is_bary_inside` rejects.

        Args:
            points: Points, shape (..., 2)

        Returns:
            Barycentric coordinates, shape (..., 2)
        """
        d = np.asarray(points, dtype=float) - self.p0
        with np.errstate(divide="ignore", invalid="ignore"):
            u = (d[..., 0] * self.e2[1] - d[..., 1] * self.e2[0]) / self.det
            v = (self.e1[0] * d[..., 1] - self.e1[1] * d[..., 0]) / self.det
        return np.stack((u, v), axis=-1)

    @staticmethod
    def is_bary_inside(bary: ArrayLike) -> NDArray[np.bool_]:
        """Test whether coordinates lie in the closed triangle (edges included)."""
        bary = np.asarray(bary, dtype=float)
        u = bary[..., 0]
        v = bary[..., 1]
        with np.errstate(invalid="ignore"):
            return (u >= 0) & (v >= 0) & (u + v <= 1)

    def point_at(self, bary: ArrayLike) -> NDArray[np.floating]:
        """Map ``(u, v)`` coordinates back to points, shape (..., 2)."""
        bary = np.asarray(bary, dtype=float)
        return (
            self.p0
            + bary[..., 0:1] * self.e1
            + bary[..., 1:2] * self.e2
        )
