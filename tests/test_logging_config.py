"""Tests for logging configuration."""

import io
import logging

import numpy as np
import pytest

from aam_geometry import align_set, rasterize_shape, setup_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger("aam_geometry")
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


class TestSetupLogging:
    def test_configures_package_logger(self, package_logger):
        logger = setup_logging(logging.INFO)

        assert logger is package_logger
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1

    def test_repeated_setup_replaces_handler(self, package_logger):
        first = io.StringIO()
        second = io.StringIO()
        setup_logging(stream=first)
        setup_logging(stream=second)

        rasterize_shape([0.0, 0.0, 4.0, 0.0, 0.0, 4.0], [0, 1, 2], 4, 4)

        assert len(package_logger.handlers) == 1
        assert first.getvalue() == ""
        assert "10 samples" in second.getvalue()

    def test_alignment_diagnostics_reach_stream(self, package_logger):
        stream = io.StringIO()
        setup_logging(logging.DEBUG, stream=stream)

        shapes = np.array([[0.0, 0.0, 2.0, 0.0, 1.0, 1.5], [1.0, 1.0, 1.0, 3.0, -0.5, 2.0]])
        align_set(shapes, max_iterations=1)

        output = stream.getvalue()
        assert "aam_geometry.procrustes - DEBUG - GPA pass 1" in output
        assert "GPA stopped" in output

    def test_level_filters_debug_records(self, package_logger):
        stream = io.StringIO()
        setup_logging(logging.INFO, stream=stream)

        rasterize_shape([0.0, 0.0, 4.0, 0.0, 0.0, 4.0], [0, 1, 2], 4, 4)

        assert stream.getvalue() == ""
