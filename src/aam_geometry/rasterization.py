"""
Triangle rasterization and barycentric texture sampling.

A triangulated reference shape (typically the mean shape) is rasterized
once into a list of barycentric samples, one ``(triangle id, u, v)`` row per
covered pixel. Because barycentric coordinates are invariant under the
piecewise affine warp between shape instances, the same sample list can
then be used to read the texture of any instance from its image, or to
write a texture back into an image at the instance's pixel positions.

Example usage:
    >>> samples = rasterize_shape(mean, triangulation, 64, 64)
    >>> texture = read_shape_image(instance, triangulation, samples, 1.0, image)
    >>> write_shape_image(mean, triangulation, samples, 1.0, texture, canvas)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from aam_geometry.sampling import bilinear, cast_like
from aam_geometry.shapes import as_points, as_samples, as_triangulation
from aam_geometry.triangle import ParametrizedTriangle

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)


def rasterize_shape(
    shape: ArrayLike,
    triangulation: ArrayLike,
    width: int,
    height: int,
    scale: float = 1.0,
) -> NDArray[np.floating]:
    """Enumerate the raster pixels covered by each triangle of a shape.

    Every pixel center ``(x + 0.5, y + 0.5)`` of a ``width x height`` raster
    is tested against every triangle of the scaled shape. Samples are
    ordered by triangle, then by row, then by column. Pixels on an edge
    shared by two triangles are emitted once for each of them.

    Args:
        shape: Interleaved row (2 * n_points,) or points (n_points, 2)
        triangulation: Flat vertex indices (3 * n_triangles,) or (n_triangles, 3)
        width: Raster width in pixels
        height: Raster height in pixels
        scale: Factor applied to the shape coordinates before rasterizing

    Returns:
        Samples as (triangle id, u, v) rows, shape (n_samples, 3)

    Raises:
        ValueError: If the raster size is negative or the triangulation is invalid
    """
    points = as_points(shape) * scale
    triangles = as_triangulation(triangulation, points.shape[0])
    if int(width) != width or int(height) != height or width < 0 or height < 0:
        raise ValueError(
            f"Raster size must be non-negative integers, got {width}x{height}"
        )
    width, height = int(width), int(height)

    # Pixel centers in row-major order
    ys, xs = np.mgrid[0:height, 0:width]
    centers = np.column_stack((xs.ravel() + 0.5, ys.ravel() + 0.5))

    chunks = [np.empty((0, 3))]
    for tri_id, (i0, i1, i2) in enumerate(triangles):
        triangle = ParametrizedTriangle(points[i0], points[i1], points[i2])
        bary = triangle.bary_at(centers)
        hits = bary[triangle.is_bary_inside(bary)]
        chunks.append(np.column_stack((np.full(hits.shape[0], float(tri_id)), hits)))

    samples = np.concatenate(chunks)
    logger.debug(
        f"Rasterized {triangles.shape[0]} triangles at {width}x{height}: "
        f"{samples.shape[0]} samples"
    )
    return samples


def sample_positions(
    shape: ArrayLike,
    triangulation: ArrayLike,
    samples: ArrayLike,
    scale: float = 1.0,
) -> NDArray[np.floating]:
    """Evaluate barycentric samples on the triangles of a shape instance.

    Triangle vertices are only looked up again when the triangle id changes
    from one sample to the next, so sample lists grouped by triangle (as
    produced by :func:`rasterize_shape`) need one lookup per triangle.
    Ungrouped lists give the same positions, just with more lookups.

    Args:
        shape: Interleaved row (2 * n_points,) or points (n_points, 2)
        triangulation: Flat vertex indices (3 * n_triangles,) or (n_triangles, 3)
        samples: (triangle id, u, v) rows, shape (n_samples, 3)
        scale: Factor applied to the shape coordinates

    Returns:
        Positions as (x, y), shape (n_samples, 2)
    """
    points = as_points(shape) * scale
    triangles = as_triangulation(triangulation, points.shape[0])
    samples = as_samples(samples, triangles.shape[0])

    n_samples = samples.shape[0]
    positions = np.empty((n_samples, 2))
    if n_samples == 0:
        return positions

    tri_ids = samples[:, 0].astype(np.intp)
    bounds = np.concatenate(([0], np.flatnonzero(np.diff(tri_ids)) + 1, [n_samples]))

    triangle = None
    for start, stop in zip(bounds[:-1], bounds[1:]):
        i0, i1, i2 = triangles[tri_ids[start]]
        if triangle is None:
            triangle = ParametrizedTriangle(points[i0], points[i1], points[i2])
        else:
            triangle.update_vertices(points[i0], points[i1], points[i2])
        positions[start:stop] = triangle.point_at(samples[start:stop, 1:])

    return positions


def write_shape_image(
    shape: ArrayLike,
    triangulation: ArrayLike,
    samples: ArrayLike,
    scale: float,
    colors: ArrayLike,
    dest: NDArray,
) -> NDArray:
    """Write per-sample colors into an image at a shape instance's pixels.

    Each sample is evaluated on the instance; the pixel index is obtained by
    subtracting 0.5 and truncating towards zero. Pixels outside ``dest`` are
    skipped. Where several samples land on the same pixel, the one that
    comes last in the sample list wins.

    Args:
        shape: Interleaved row (2 * n_points,) or points (n_points, 2)
        triangulation: Flat vertex indices (3 * n_triangles,) or (n_triangles, 3)
        samples: (triangle id, u, v) rows, shape (n_samples, 3)
        scale: Factor applied to the shape coordinates
        colors: One color per sample, shape (n_samples,) + dest.shape[2:]
        dest: Image written in place, shape (height, width) or (height, width, channels)

    Returns:
        ``dest``

    Raises:
        ValueError: If ``dest`` is not an image array or the color count does not match
    """
    if not isinstance(dest, np.ndarray) or dest.ndim < 2:
        raise ValueError("Destination must be a numpy image array of at least 2 dimensions")

    positions = sample_positions(shape, triangulation, samples, scale)
    n_samples = positions.shape[0]

    colors = np.asarray(colors)
    channel_shape = dest.shape[2:]
    if colors.size != n_samples * int(np.prod(channel_shape)):
        raise ValueError(
            f"Expected {n_samples} colors of shape {channel_shape}, got array of shape {colors.shape}"
        )
    colors = colors.reshape((n_samples,) + channel_shape)

    height, width = dest.shape[:2]
    pixels = np.trunc(positions - 0.5)
    with np.errstate(invalid="ignore"):
        in_bounds = (
            (pixels >= 0).all(axis=1) & (pixels[:, 0] < width) & (pixels[:, 1] < height)
        )
    index = np.flatnonzero(in_bounds)
    xs = pixels[index, 0].astype(np.intp)
    ys = pixels[index, 1].astype(np.intp)

    # Keep only the last sample hitting each pixel
    flat = ys * width + xs
    _, first_from_end = np.unique(flat[::-1], return_index=True)
    keep = np.sort(flat.shape[0] - 1 - first_from_end)

    dest[ys[keep], xs[keep]] = colors[index[keep]]

    if index.shape[0] < n_samples:
        logger.debug(f"Skipped {n_samples - index.shape[0]} samples outside the destination image")
    return dest


def read_shape_image(
    shape: ArrayLike,
    triangulation: ArrayLike,
    samples: ArrayLike,
    scale: float,
    image: ArrayLike,
) -> NDArray:
    """Read the colors of an image at a shape instance's sample positions.

    Positions are generally fractional, so colors are bilinearly
    interpolated; positions beyond the border replicate the edge pixels.

    Args:
        shape: Interleaved row (2 * n_points,) or points (n_points, 2)
        triangulation: Flat vertex indices (3 * n_triangles,) or (n_triangles, 3)
        samples: (triangle id, u, v) rows, shape (n_samples, 3)
        scale: Factor applied to the shape coordinates
        image: Source image, shape (height, width) or (height, width, channels)

    Returns:
        Colors with the image's dtype, shape (n_samples,) + image.shape[2:]
    """
    image = np.asarray(image)
    if image.ndim < 2:
        raise ValueError(f"Source must be an image of at least 2 dimensions, got {image.ndim}D")

    positions = sample_positions(shape, triangulation, samples, scale)
    if positions.shape[0] == 0:
        return np.empty((0,) + image.shape[2:], dtype=image.dtype)

    return cast_like(bilinear(image, positions), image.dtype)


def warp_shape_image(
    samples: ArrayLike,
    triangulation: ArrayLike,
    source_shape: ArrayLike,
    source_image: ArrayLike,
    dest_shape: ArrayLike,
    dest_image: NDArray,
    source_scale: float = 1.0,
    dest_scale: float = 1.0,
) -> NDArray:
    """Piecewise affine warp of one shape instance's texture onto another.

    Reads the texture under ``source_shape`` and writes it under
    ``dest_shape``, triangle by triangle.

    Returns:
        ``dest_image``
    """
    colors = read_shape_image(source_shape, triangulation, samples, source_scale, source_image)
    return write_shape_image(dest_shape, triangulation, samples, dest_scale, colors, dest_image)
