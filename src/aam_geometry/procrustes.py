"""
Procrustes alignment of 2D landmark shapes.

This module provides pairwise similarity alignment of shapes (translation,
scale and rotation, never reflection) and Generalized Procrustes Analysis
(GPA) of a whole shape set towards its converged mean.

Shapes are interleaved rows ``(x0, y0, x1, y1, ...)``; a shape set is a 2D
array with one shape per row. Alignment overwrites the coordinates in place.

Based on Stegmann and Gomez (2002) "A Brief Introduction to Statistical
Shape Analysis".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import scipy.linalg as sp

from aam_geometry.shapes import as_points, as_shape_set, check_pair, to_separated

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 10


@dataclass
class ProcrustesFit:
    """Optimal similarity transform mapping a target shape onto a reference.

    Attributes:
        rotation: Proper 2x2 rotation, applied to row vectors (``points @ rotation``)
        scale: Scale factor between the unit-norm shapes (trace of the SVD)
        distance: Procrustes residual ``1 - scale**2`` in unit-norm space
        reference_centroid: Centroid of the reference, shape (2,)
        reference_norm: Frobenius norm of the centered reference
        target_centroid: Centroid of the target, shape (2,)
        target_norm: Frobenius norm of the centered target
    """

    rotation: NDArray[np.floating]
    scale: float
    distance: float
    reference_centroid: NDArray[np.floating]
    reference_norm: float
    target_centroid: NDArray[np.floating]
    target_norm: float

    def apply(self, points: NDArray[np.floating]) -> NDArray[np.floating]:
        """Map points from the target frame into the reference frame.

        Args:
            points: Points in the target's coordinate frame, shape (n_points, 2)

        Returns:
            Points expressed in the reference's (unnormalized) frame
        """
        with np.errstate(divide="ignore", invalid="ignore"):
            normalized = (points - self.target_centroid) / self.target_norm
            return (
                np.dot(normalized, self.rotation) * self.scale * self.reference_norm
                + self.reference_centroid
            )


@dataclass
class GPAResult:
    """Result of Generalized Procrustes Analysis.

    Attributes:
        aligned: Aligned shapes, shape (n_shapes, 2 * n_points)
        mean_shape: Mean of the aligned shapes after the last pass, shape (2 * n_points,)
        centroid_sizes: Centroid size of each shape before alignment
        iterations: Number of alignment passes performed
        distance: Distance between the last mean and the reference it was aligned to
    """

    aligned: NDArray[np.floating]
    mean_shape: NDArray[np.floating]
    centroid_sizes: NDArray[np.floating]
    iterations: int
    distance: float


def center(points: NDArray[np.floating]) -> NDArray[np.floating]:
    """Center a shape by subtracting the centroid.

    Args:
        points: Landmark coordinates, shape (n_points, 2)

    Returns:
        Centered points with centroid at origin
    """
    return points - points.mean(axis=0)


def scale(points: NDArray[np.floating]) -> NDArray[np.floating]:
    """Scale a shape to unit Frobenius norm.

    Args:
        points: Landmark coordinates, shape (n_points, 2)

    Returns:
        Scaled points with unit norm, or the input unchanged if its norm is zero
    """
    norm = np.linalg.norm(points)
    if norm == 0:
        return points
    return points / norm


def centroid_size(shape: ArrayLike) -> float:
    """Compute the centroid size of a shape.

    Centroid size is the square root of the sum of squared distances
    from each landmark to the centroid.

    Args:
        shape: Interleaved row (2 * n_points,) or points (n_points, 2)

    Returns:
        Centroid size (scalar)
    """
    return float(np.linalg.norm(center(as_points(shape))))


def mean_shape(shapes: ArrayLike) -> NDArray[np.floating]:
    """Compute the mean shape of a shape set.

    Args:
        shapes: Shape set, shape (n_shapes, 2 * n_points)

    Returns:
        Mean shape, shape (2 * n_points,)
    """
    return as_shape_set(shapes).mean(axis=0)


def procrustes_fit(reference: ArrayLike, target: ArrayLike) -> ProcrustesFit:
    """Find the similarity transform that best maps ``target`` onto ``reference``.

    Both shapes are centered and scaled to unit norm. The optimal rotation
    follows from the SVD of their 2x2 cross-covariance; if that rotation
    would be a reflection, the last singular direction is flipped so that
    the result is always a proper rotation.

    Args:
        reference: Reference shape, interleaved row or (n_points, 2)
        target: Shape to be mapped, same point count as the reference

    Returns:
        ProcrustesFit describing the transform and the residual

    Raises:
        ValueError: If the point counts differ, there are fewer than 2 points,
            or a shape has all its points at the same position
    """
    ref_points = as_points(reference)
    target_points = as_points(target)
    check_pair(ref_points, target_points)
    _check_spread(ref_points)
    _check_spread(target_points)
    return _fit(ref_points, target_points)


def align_pair(reference: ArrayLike, target: NDArray[np.floating]) -> float:
    """Align a shape to a reference shape in place.

    The target is rotated, scaled and translated into the reference's own
    coordinate frame: after the call it has the reference's centroid and
    the reference's scale times the fitted scale factor.

    Args:
        reference: Reference shape, interleaved row or (n_points, 2)
        target: Float array holding the shape to align; overwritten in place

    Returns:
        Procrustes distance ``1 - trace**2`` between the unit-norm shapes

    Raises:
        ValueError: If the target is not a writable float array, or for any
            precondition of :func:`procrustes_fit`
    """
    _check_writable(target)
    fit = procrustes_fit(reference, target)
    return _apply_in_place(fit, target)


def align_set(
    shapes: NDArray[np.floating],
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> NDArray[np.floating]:
    """Align a set of shapes to their mean with Generalized Procrustes Analysis.

    The first shape is taken as the initial reference. Each pass aligns every
    shape to the current reference, computes the mean of the aligned shapes
    and measures the Euclidean distance between mean and reference. The loop
    stops as soon as that distance grows compared to the previous pass, or
    once more than ``max_iterations`` non-growing passes have run; otherwise
    the mean becomes the new reference.

    The input shapes are validated before any row is touched. Later passes
    are not checked: the mean shrinks a little on every pass, and if it
    collapses numerically the remaining passes produce NaN coordinates
    until the pass limit ends the loop.

    Args:
        shapes: Float shape set, shape (n_shapes, 2 * n_points). Modified in place.
        max_iterations: Pass limit; at most ``max_iterations + 1`` passes run

    Returns:
        The same ``shapes`` array, now aligned

    Raises:
        ValueError: If the set is not a float array of valid shapes, or a
            shape has all its points at the same position
    """
    _check_writable(shapes)
    _generalized_procrustes(_checked_shape_set(shapes), max_iterations)
    return shapes


def generalized_procrustes(
    shapes: ArrayLike,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> GPAResult:
    """Perform Generalized Procrustes Analysis without modifying the input.

    Same algorithm as :func:`align_set`, run on a copy of the shapes.

    Args:
        shapes: Shape set, shape (n_shapes, 2 * n_points). Will be copied.
        max_iterations: Pass limit, see :func:`align_set`

    Returns:
        GPAResult containing aligned shapes, mean shape, centroid sizes
        and convergence information
    """
    # Work on a copy
    aligned = _checked_shape_set(np.array(shapes, dtype=float))

    # Compute centroid sizes before any transformations
    centroid_sizes = np.array([centroid_size(row) for row in aligned])

    mean, iterations, distance = _generalized_procrustes(aligned, max_iterations)

    return GPAResult(
        aligned=aligned,
        mean_shape=mean,
        centroid_sizes=centroid_sizes,
        iterations=iterations,
        distance=distance,
    )


def _generalized_procrustes(
    shapes: NDArray[np.floating],
    max_iterations: int,
) -> tuple[NDArray[np.floating], int, float]:
    """Run GPA passes over ``shapes`` in place; returns (mean, passes, distance)."""
    n_shapes = shapes.shape[0]

    reference = shapes[0].copy()
    reference_points = to_separated(reference)
    last_distance = np.finfo(float).max
    iterations = 0
    passes = 0

    while True:
        for i in range(n_shapes):
            _apply_in_place(_fit(reference_points, to_separated(shapes[i])), shapes[i])
        passes += 1

        current_mean = mean_shape(shapes)
        distance = float(np.linalg.norm(current_mean - reference))
        logger.debug(f"GPA pass {passes}: mean moved by {distance:.6g}")

        # The iteration counter is only advanced while the distance keeps shrinking
        done = False
        if distance > last_distance:
            logger.debug(f"GPA stopped after {passes} passes: distance increased")
            done = True
        else:
            iterations += 1
            if iterations > max_iterations:
                logger.debug(f"GPA stopped after {passes} passes: iteration limit reached")
                done = True

        last_distance = distance
        reference = current_mean
        reference_points = to_separated(reference)

        if done:
            return current_mean, passes, distance


def _fit(
    ref_points: NDArray[np.floating],
    target_points: NDArray[np.floating],
) -> ProcrustesFit:
    """Unchecked core of :func:`procrustes_fit`; collapsed shapes give a NaN fit."""
    ref_centered = center(ref_points)
    target_centered = center(target_points)

    ref_norm = float(np.linalg.norm(ref_centered))
    target_norm = float(np.linalg.norm(target_centered))

    if not (0 < ref_norm < np.inf and 0 < target_norm < np.inf):
        return ProcrustesFit(
            rotation=np.full((2, 2), np.nan),
            scale=np.nan,
            distance=np.nan,
            reference_centroid=ref_points.mean(axis=0),
            reference_norm=ref_norm,
            target_centroid=target_points.mean(axis=0),
            target_norm=target_norm,
        )

    ref_centered = scale(ref_centered)
    target_centered = scale(target_centered)

    u, s, vt = sp.svd(np.dot(ref_centered.T, target_centered), full_matrices=False)
    v = vt.T
    rotation = np.dot(v, u.T)

    # Flip the weakest direction instead of reflecting
    if np.linalg.det(rotation) < 0:
        v[:, -1] *= -1
        s[-1] *= -1
        rotation = np.dot(v, u.T)

    trace = float(s.sum())

    return ProcrustesFit(
        rotation=rotation,
        scale=trace,
        distance=1.0 - trace * trace,
        reference_centroid=ref_points.mean(axis=0),
        reference_norm=ref_norm,
        target_centroid=target_points.mean(axis=0),
        target_norm=target_norm,
    )


def _apply_in_place(fit: ProcrustesFit, target: NDArray[np.floating]) -> float:
    aligned = fit.apply(as_points(target))
    target[...] = aligned.reshape(target.shape)
    return fit.distance


def _check_writable(array: NDArray[np.floating]) -> None:
    if not isinstance(array, np.ndarray) or not np.issubdtype(array.dtype, np.floating):
        raise ValueError("Shapes must be a float numpy array to be aligned in place")


def _check_spread(points: NDArray[np.floating]) -> None:
    if np.linalg.norm(center(points)) == 0:
        raise ValueError("Cannot align a shape whose points all coincide")


def _checked_shape_set(shapes: NDArray[np.floating]) -> NDArray[np.floating]:
    """Validate every shape of a set before any of them is aligned."""
    shapes = as_shape_set(shapes)
    for i in range(shapes.shape[0]):
        try:
            _check_spread(to_separated(shapes[i]))
        except ValueError as e:
            raise ValueError(f"Shape {i}: {e}") from e
    return shapes
