"""
Shape, triangulation and sample-list containers.

Shapes are stored as interleaved rows ``(x0, y0, x1, y1, ...)`` so that a
whole set of shapes fits into a single 2D array with one shape per row. The
helpers in this module convert between that layout and the separated
``(n_points, 2)`` point matrix used by the geometric code, and check the
preconditions shared by the alignment and rasterization functions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


def to_separated(shape: NDArray[np.floating]) -> NDArray[np.floating]:
    """View an interleaved shape row as an ``(n_points, 2)`` point matrix.

    For a contiguous input the result is a view, so writing to it writes
    through to the shape.

    Args:
        shape: Interleaved coordinates, shape (2 * n_points,)

    Returns:
        Point matrix, shape (n_points, 2)
    """
    return shape.reshape(-1, 2)


def to_interleaved(points: NDArray[np.floating]) -> NDArray[np.floating]:
    """Flatten an ``(n_points, 2)`` point matrix into an interleaved row."""
    return points.reshape(-1)


def as_points(shape: ArrayLike) -> NDArray[np.floating]:
    """Coerce a shape into a float ``(n_points, 2)`` point matrix.

    Accepts either an interleaved row of ``2 * n_points`` values or an
    already separated ``(n_points, 2)`` array.

    Raises:
        ValueError: If the input cannot be read as 2D landmarks
    """
    arr = np.asarray(shape, dtype=float)
    if arr.ndim == 1:
        if arr.size % 2 != 0:
            raise ValueError(
                f"Interleaved shape must have an even number of values, got {arr.size}"
            )
        return to_separated(arr)
    if arr.ndim == 2 and arr.shape[1] == 2:
        return arr
    raise ValueError(
        f"Expected an interleaved row or an (n_points, 2) array, got shape {arr.shape}"
    )


def check_pair(
    reference: NDArray[np.floating],
    target: NDArray[np.floating],
) -> None:
    """Check that two point matrices can be aligned to each other."""
    if reference.shape != target.shape:
        raise ValueError(
            f"Shapes have different point counts: {reference.shape[0]} and {target.shape[0]}"
        )
    if reference.shape[0] < 2:
        raise ValueError(
            f"Alignment needs at least 2 points, got {reference.shape[0]}"
        )


def as_shape_set(shapes: ArrayLike) -> NDArray[np.floating]:
    """Validate a shape set, one interleaved shape per row.

    Arrays that are already float 2D arrays are returned as is (not copied),
    so that callers can mutate the caller's rows.

    Raises:
        ValueError: If the set is empty or rows are not interleaved 2D shapes
    """
    arr = np.asarray(shapes)
    if arr.ndim != 2:
        raise ValueError(
            f"Shape set must be a 2D array (n_shapes, 2 * n_points), got {arr.ndim}D"
        )
    if arr.shape[0] == 0:
        raise ValueError("Shape set is empty")
    if arr.shape[1] % 2 != 0 or arr.shape[1] < 4:
        raise ValueError(
            f"Shape rows must hold at least 2 interleaved points, got {arr.shape[1]} values"
        )
    if not np.issubdtype(arr.dtype, np.floating):
        arr = arr.astype(float)
    return arr


def as_triangulation(triangulation: ArrayLike, n_points: int) -> NDArray[np.intp]:
    """Coerce a triangulation into an ``(n_triangles, 3)`` index array.

    Args:
        triangulation: Flat sequence of 3 * n_triangles point indices,
            or an array of shape (n_triangles, 3)
        n_points: Number of points in the shape the indices refer to

    Returns:
        Vertex indices, shape (n_triangles, 3)

    Raises:
        ValueError: If the length is not a multiple of 3 or an index is out of range
    """
    flat = np.asarray(triangulation).reshape(-1)
    if flat.size % 3 != 0:
        raise ValueError(
            f"Triangulation length must be a multiple of 3, got {flat.size}"
        )
    if flat.size and not np.issubdtype(flat.dtype, np.integer):
        raise ValueError(f"Triangulation indices must be integers, got {flat.dtype}")
    flat = flat.astype(np.intp)
    if flat.size and (flat.min() < 0 or flat.max() >= n_points):
        raise ValueError(
            f"Triangulation index out of range [0, {n_points}): "
            f"min {flat.min()}, max {flat.max()}"
        )
    return flat.reshape(-1, 3)


def as_samples(samples: ArrayLike, n_triangles: int) -> NDArray[np.floating]:
    """Validate a barycentric sample list of ``(triangle id, u, v)`` rows.

    Raises:
        ValueError: If the array is not (n_samples, 3) or a triangle id is out of range
    """
    arr = np.asarray(samples, dtype=float)
    if arr.size == 0:
        return arr.reshape(0, 3)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(
            f"Samples must have shape (n_samples, 3), got {arr.shape}"
        )
    ids = arr[:, 0]
    if ids.min() < 0 or ids.max() >= n_triangles:
        raise ValueError(
            f"Sample triangle id out of range [0, {n_triangles}): "
            f"min {int(ids.min())}, max {int(ids.max())}"
        )
    return arr
