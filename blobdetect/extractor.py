"""
Single-level extraction: one binary image in, one list of Centers out.

Every contour is traced, measured, and pushed through the filter pipeline.
Survivors get a location (the moment centroid unless a filter supplied one)
and a radius (median distance from that location to the contour points).
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from .center import Center
from .filters import Filter, apply_filters
from .geometry import contour_moments, describe_contour, find_contours, median_radius
from .utils.logging import get_logger

logger = get_logger(__name__)


def find_centers(gray: np.ndarray, binary: np.ndarray, filters: Sequence[Filter]) -> List[Center]:
    """Return one ``Center`` per contour of ``binary`` that passes ``filters``."""
    centers: List[Center] = []
    contours = find_contours(binary)
    for contour in contours:
        moments = contour_moments(contour)
        if moments.m00 == 0.0:
            continue
        shape = describe_contour(contour, moments)
        outcome = apply_filters(filters, gray, binary, shape)
        if outcome.rejected:
            continue
        location = outcome.location if outcome.location is not None else moments.centroid
        center = Center(
            location=(float(location[0]), float(location[1])),
            radius=median_radius(location, shape.points),
            confidence=1.0 if outcome.confidence is None else float(outcome.confidence),
        )
        centers.append(center)
    logger.debug("kept %d of %d contours", len(centers), len(contours))
    return centers
