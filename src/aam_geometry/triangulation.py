"""
Triangulation of landmark shapes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from scipy.spatial import Delaunay

from aam_geometry.shapes import as_points

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


def delaunay_triangulation(shape: ArrayLike) -> NDArray[np.intp]:
    """Triangulate a shape's landmarks with a Delaunay triangulation.

    Usually computed once on the mean shape and then shared by every
    instance of the shape family.

    Args:
        shape: Interleaved row (2 * n_points,) or points (n_points, 2)

    Returns:
        Flat vertex indices, shape (3 * n_triangles,)

    Raises:
        ValueError: If the shape has fewer than 3 points
    """
    points = as_points(shape)
    if points.shape[0] < 3:
        raise ValueError(
            f"Triangulation needs at least 3 points, got {points.shape[0]}"
        )

    tri = Delaunay(points)
    return np.asarray(tri.simplices, dtype=np.intp).reshape(-1)
