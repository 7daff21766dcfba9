"""Tests for triangulation module."""

import numpy as np
import pytest

from aam_geometry import delaunay_triangulation, rasterize_shape, sample_positions

# Square with an off-center interior point, avoiding co-circular points
SHAPE = np.array([0.0, 0.0, 8.0, 0.0, 8.0, 8.0, 0.0, 8.0, 4.0, 3.0])


class TestDelaunayTriangulation:
    def test_returns_flat_index_list(self):
        triangulation = delaunay_triangulation(SHAPE)

        assert triangulation.ndim == 1
        assert triangulation.size == 12
        assert triangulation.min() >= 0
        assert triangulation.max() < 5

    def test_accepts_point_matrix(self):
        np.testing.assert_array_equal(
            delaunay_triangulation(SHAPE.reshape(-1, 2)), delaunay_triangulation(SHAPE)
        )

    def test_triangulation_covers_convex_hull(self):
        triangulation = delaunay_triangulation(SHAPE)

        samples = rasterize_shape(SHAPE, triangulation, 8, 8)

        positions = sample_positions(SHAPE, triangulation, samples)
        covered = np.unique(np.round(positions - 0.5).astype(int), axis=0)
        assert covered.shape[0] == 64

    def test_rejects_too_few_points(self):
        with pytest.raises(ValueError, match="at least 3 points"):
            delaunay_triangulation([0.0, 0.0, 1.0, 1.0])
