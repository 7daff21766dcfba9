"""
Logging setup for the aam_geometry diagnostics.

Modules log through ``logging.getLogger(__name__)`` and only at DEBUG level
(GPA pass distances and stop reason, rasterized sample counts, skipped
writes). Nothing is configured on import.
"""

from __future__ import annotations

import logging
from typing import IO

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int = logging.DEBUG, stream: IO[str] | None = None) -> logging.Logger:
    """Route the package's log records to a single stream handler.

    Calling it again replaces the previous handler.

    Args:
        level: Threshold for the ``aam_geometry`` logger
        stream: Text stream to write to; stderr if None

    Returns:
        The package logger
    """
    logger = logging.getLogger(__package__)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    return logger
