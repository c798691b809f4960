"""
Spatial helper functions for planar point sets.
"""
from typing import Optional
import numpy as np
import logging

logger = logging.getLogger(__name__)


def coordinates_array(coordinates: list[tuple[float, float]]) -> np.ndarray:
    """
    Convert (x, y) tuples to an (n, 2) float array.

    An empty list gives an array of shape (0, 2).
    """
    if not coordinates:
        return np.empty((0, 2), dtype=float)
    return np.asarray(coordinates, dtype=float).reshape(-1, 2)


def within_bounds_mask(
    coordinates: np.ndarray,
    xmin: float,
    xmax: float,
    ymin: float,
    ymax: float,
) -> np.ndarray:
    """
    Boolean mask of points inside a rectangle, edges included.

    Args:
        coordinates: (n, 2) array of x, y
        xmin, xmax, ymin, ymax: Rectangle bounds

    Returns:
        Boolean array of length n
    """
    x = coordinates[:, 0]
    y = coordinates[:, 1]
    return (x >= xmin) & (x <= xmax) & (y >= ymin) & (y <= ymax)


def bounding_box(
    coordinates: np.ndarray,
) -> Optional[tuple[float, float, float, float]]:
    """
    Bounding box of a point array.

    Returns:
        (xmin, xmax, ymin, ymax), or None for an empty array
    """
    if len(coordinates) == 0:
        return None
    xmin, ymin = coordinates.min(axis=0)
    xmax, ymax = coordinates.max(axis=0)
    logger.debug(f"Bounding box: x=[{xmin:.2f}, {xmax:.2f}], y=[{ymin:.2f}, {ymax:.2f}]")
    return float(xmin), float(xmax), float(ymin), float(ymax)
