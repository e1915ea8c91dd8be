"""
Contour and moment provider.

Thin layer over OpenCV: trace a flat list of contours in a binary image and
summarize each one as a ``ShapeDescriptor``. Filters and the extractor only
ever see descriptors, so tests can hand-build them without an image.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import cv2
import numpy as np

from .center import Moments, ShapeDescriptor


def find_contours(binary: np.ndarray) -> List[np.ndarray]:
    """Trace every contour in ``binary`` without hierarchy and without point compression."""
    mask = np.ascontiguousarray(binary, dtype=np.uint8)
    contours, _hierarchy = cv2.findContours(mask, cv2.RETR_LIST, cv2.CHAIN_APPROX_NONE)
    return list(contours)


def contour_moments(contour: np.ndarray) -> Moments:
    return Moments.from_mapping(cv2.moments(_as_cv_contour(contour)))


def describe_contour(contour: np.ndarray, moments: Optional[Moments] = None) -> ShapeDescriptor:
    """Compute moments, closed arc length and convex hull area for one contour."""
    pts = _as_cv_contour(contour)
    if moments is None:
        moments = Moments.from_mapping(cv2.moments(pts))
    perimeter = float(cv2.arcLength(pts, True))
    hull = cv2.convexHull(pts)
    hull_area = float(cv2.contourArea(hull))
    return ShapeDescriptor(contour=pts, moments=moments, perimeter=perimeter, hull_area=hull_area)


def mask_bounding_box(binary: np.ndarray) -> Tuple[int, int, int, int]:
    """Bounding box ``(x, y, w, h)`` of the non-zero pixels of a binary image."""
    mask = np.ascontiguousarray(binary, dtype=np.uint8)
    x, y, w, h = cv2.boundingRect(mask)
    return int(x), int(y), int(w), int(h)


def median_radius(location: Tuple[float, float], points: np.ndarray) -> float:
    """Median distance from ``location`` to the contour points.

    For an even count this is the mean of the two middle distances.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if pts.shape[0] == 0:
        return 0.0
    dists = np.sort(np.hypot(pts[:, 0] - location[0], pts[:, 1] - location[1]))
    n = dists.shape[0]
    return float((dists[(n - 1) // 2] + dists[n // 2]) / 2.0)


def _as_cv_contour(contour: np.ndarray) -> np.ndarray:
    pts = np.asarray(contour)
    if pts.dtype not in (np.int32, np.float32):
        pts = pts.astype(np.float32 if np.issubdtype(pts.dtype, np.floating) else np.int32)
    return pts.reshape(-1, 1, 2)
