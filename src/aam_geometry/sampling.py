"""
Sub-pixel image sampling.

Images are numpy arrays indexed ``image[y, x]``, either single channel
``(height, width)`` or multi channel ``(height, width, channels)``. Pixel
``(x, y)`` covers the unit square starting at ``(x, y)``, so its center lies
at ``(x + 0.5, y + 0.5)``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from scipy import ndimage

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


def bilinear(image: ArrayLike, points: ArrayLike) -> NDArray[np.floating]:
    """Bilinearly interpolate an image at continuous positions.

    Positions outside the image are answered by replicating the border
    pixels, so any finite position gives a well defined value.

    Args:
        image: Image, shape (height, width) or (height, width, channels)
        points: Positions as (x, y) pairs, shape (n_points, 2)

    Returns:
        Interpolated values as float64, shape (n_points,) + image.shape[2:]
    """
    image = np.asarray(image)
    points = np.asarray(points, dtype=float).reshape(-1, 2)

    # map_coordinates addresses pixel centers by (row, col) index
    coordinates = np.vstack((points[:, 1] - 0.5, points[:, 0] - 0.5))

    if image.ndim == 2:
        return ndimage.map_coordinates(
            image.astype(float), coordinates, order=1, mode="nearest"
        )

    channels = image.reshape(image.shape[0], image.shape[1], -1)
    values = np.empty((points.shape[0], channels.shape[2]))
    for c in range(channels.shape[2]):
        values[:, c] = ndimage.map_coordinates(
            channels[:, :, c].astype(float), coordinates, order=1, mode="nearest"
        )
    return values.reshape((points.shape[0],) + image.shape[2:])


def cast_like(values: NDArray[np.floating], dtype: np.dtype) -> NDArray:
    """Convert interpolated values to an image dtype, rounding and clipping integers."""
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        return np.clip(np.rint(values), info.min, info.max).astype(dtype)
    if dtype == np.bool_:
        return values >= 0.5
    return values.astype(dtype)
