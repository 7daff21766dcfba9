"""
AAM Geometry - shape alignment and triangle sampling for appearance models.

A small library providing the geometric backbone of Active Appearance Model
pipelines on 2D landmarked shapes: Procrustes alignment of shapes (pairwise
and Generalized Procrustes Analysis) and barycentric rasterization of
triangulated shapes for warping textures between shape instances.

Example usage:
    >>> import aam_geometry as aam
    >>>
    >>> # Align a set of shapes (one interleaved shape per row) in place
    >>> aam.align_set(shapes, max_iterations=10)
    >>> mean = aam.mean_shape(shapes)
    >>>
    >>> # Rasterize the mean shape once
    >>> triangulation = aam.delaunay_triangulation(mean)
    >>> samples = aam.rasterize_shape(mean, triangulation, 128, 128)
    >>>
    >>> # Sample an instance's texture in the mean shape frame
    >>> texture = aam.read_shape_image(shapes[3], triangulation, samples, 1.0, image)
"""

from aam_geometry.logging_config import setup_logging
from aam_geometry.procrustes import (
    DEFAULT_MAX_ITERATIONS,
    GPAResult,
    ProcrustesFit,
    align_pair,
    align_set,
    center,
    centroid_size,
    generalized_procrustes,
    mean_shape,
    procrustes_fit,
    scale,
)
from aam_geometry.rasterization import (
    rasterize_shape,
    read_shape_image,
    sample_positions,
    warp_shape_image,
    write_shape_image,
)
from aam_geometry.sampling import bilinear
from aam_geometry.shapes import to_interleaved, to_separated
from aam_geometry.triangle import ParametrizedTriangle
from aam_geometry.triangulation import delaunay_triangulation

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Alignment
    "DEFAULT_MAX_ITERATIONS",
    "GPAResult",
    "ProcrustesFit",
    "align_pair",
    "align_set",
    "generalized_procrustes",
    "procrustes_fit",
    "center",
    "scale",
    "centroid_size",
    "mean_shape",
    # Rasterization and sampling
    "ParametrizedTriangle",
    "rasterize_shape",
    "sample_positions",
    "write_shape_image",
    "read_shape_image",
    "warp_shape_image",
    "bilinear",
    "delaunay_triangulation",
    # Shape layout
    "to_interleaved",
    "to_separated",
    # Logging
    "setup_logging",
]
