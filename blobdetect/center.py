"""
Geometric records shared by the filters, the extractor and the detector.

``ShapeDescriptor`` is the read-only summary of one traced contour.
``Center`` is the working record built for an accepted contour at one
threshold level. ``DetectedObject`` is what ``ObjectDetector.detect()``
returns: one per cluster of Centers that recurred often enough.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

import cv2
import numpy as np

Point = Tuple[float, float]


@dataclass(frozen=True)
class Moments:
    """Raw and central moments of a contour (the subset the filters need)."""

    m00: float
    m10: float
    m01: float
    mu11: float = 0.0
    mu20: float = 0.0
    mu02: float = 0.0

    @classmethod
    def from_mapping(cls, moments: Mapping[str, float]) -> "Moments":
        """Build from the dict returned by ``cv2.moments``."""
        return cls(
            m00=float(moments["m00"]),
            m10=float(moments["m10"]),
            m01=float(moments["m01"]),
            mu11=float(moments.get("mu11", 0.0)),
            mu20=float(moments.get("mu20", 0.0)),
            mu02=float(moments.get("mu02", 0.0)),
        )

    @property
    def centroid(self) -> Point:
        if self.m00 == 0.0:
            raise ZeroDivisionError("centroid of a zero-area contour is undefined")
        return (self.m10 / self.m00, self.m01 / self.m00)


@dataclass(frozen=True)
class ShapeDescriptor:
    """Everything the filters may look at for one contour."""

    contour: np.ndarray
    moments: Moments
    perimeter: float
    hull_area: float

    @property
    def area(self) -> float:
        return self.moments.m00

    @property
    def points(self) -> np.ndarray:
        """Contour as an (N, 2) float array of x, y coordinates."""
        return np.asarray(self.contour, dtype=np.float64).reshape(-1, 2)


@dataclass
class Center:
    """Candidate object found at one threshold level."""

    location: Point = (0.0, 0.0)
    radius: float = 0.0
    confidence: float = 1.0


@dataclass(frozen=True)
class DetectedObject:
    """Final fused object: weighted location plus the size of the median member."""

    x: float
    y: float
    size: float
    repeatability: int = 1
    response: float = 1.0

    @property
    def location(self) -> Point:
        return (self.x, self.y)

    def to_dict(self) -> Dict[str, float]:
        return {
            "x": float(self.x),
            "y": float(self.y),
            "size": float(self.size),
            "repeatability": int(self.repeatability),
            "response": float(self.response),
        }

    def as_keypoint(self):
        """Return an OpenCV ``KeyPoint`` so results can go straight into ``cv2.drawKeypoints``."""
        return cv2.KeyPoint(float(self.x), float(self.y), float(self.size), -1, float(self.response))
