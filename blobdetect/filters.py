"""
Shape filters applied to every contour traced at a threshold level.

Each filter looks at one ``ShapeDescriptor`` (plus the grayscale and binary
images it came from) and answers with a ``FilterOutcome``: rejected or not,
and optionally a location or confidence the final ``Center`` should carry.
Filters hold nothing but their bounds, so one instance can serve any number
of ``detect()`` calls.

Bounds are inclusive. A filter built with ``min > max`` raises
``ConfigurationError`` immediately.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Mapping, Optional, Sequence

import numpy as np

from .center import Point, ShapeDescriptor
from .errors import ConfigurationError
from .geometry import mask_bounding_box

INERTIA_EPS = 1e-2


@dataclass(frozen=True)
class FilterOutcome:
    """Verdict of one filter, or of a whole pipeline once merged."""

    rejected: bool
    location: Optional[Point] = None
    confidence: Optional[float] = None


ACCEPT = FilterOutcome(rejected=False)
REJECT = FilterOutcome(rejected=True)


class Filter(ABC):
    """A predicate over one contour."""

    type_name: ClassVar[str] = ""

    @abstractmethod
    def test(self, gray: np.ndarray, binary: np.ndarray, shape: ShapeDescriptor) -> FilterOutcome:
        ...

    def rejects(self, gray: np.ndarray, binary: np.ndarray, shape: ShapeDescriptor) -> bool:
        return self.test(gray, binary, shape).rejected

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class RangeFilter(Filter):
    """Filter that rejects when a scalar measure falls outside ``[min_value, max_value]``."""

    min_value: float = 0.0
    max_value: float = 0.0

    def __post_init__(self) -> None:
        try:
            lo = float(self.min_value)
            hi = float(self.max_value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"{type(self).__name__}: bounds must be numeric, got min={self.min_value!r} max={self.max_value!r}"
            ) from exc
        if math.isnan(lo) or math.isnan(hi):
            raise ConfigurationError(f"{type(self).__name__}: bounds must not be NaN")
        if lo > hi:
            raise ConfigurationError(f"{type(self).__name__}: min ({lo}) must not exceed max ({hi})")
        object.__setattr__(self, "min_value", lo)
        object.__setattr__(self, "max_value", hi)

    def in_range(self, value: float) -> bool:
        return self.min_value <= value <= self.max_value

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name, "min": self.min_value, "max": self.max_value}

    @classmethod
    def from_dict(cls, node: Mapping[str, Any]) -> "RangeFilter":
        try:
            lo, hi = float(node["min"]), float(node["max"])
        except KeyError as exc:
            raise ConfigurationError(f"{cls.type_name} filter is missing '{exc.args[0]}'") from exc
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"{cls.type_name} filter has non-numeric bounds: {dict(node)}") from exc
        return cls(lo, hi)


@dataclass(frozen=True)
class AreaFilter(RangeFilter):
    """Area (raw moment m00) within bounds."""

    type_name: ClassVar[str] = "Area"

    def test(self, gray, binary, shape):
        return ACCEPT if self.in_range(shape.area) else REJECT


@dataclass(frozen=True)
class CircularityFilter(RangeFilter):
    """``4*pi*area / perimeter**2`` within bounds (1.0 for a perfect disk)."""

    type_name: ClassVar[str] = "Circularity"

    def test(self, gray, binary, shape):
        return ACCEPT if self.in_range(circularity(shape)) else REJECT


@dataclass(frozen=True)
class ConvexityFilter(RangeFilter):
    """Ratio of contour area to convex hull area within bounds."""

    type_name: ClassVar[str] = "Convexity"

    def test(self, gray, binary, shape):
        return ACCEPT if self.in_range(convexity(shape)) else REJECT


@dataclass(frozen=True)
class InertiaFilter(RangeFilter):
    """Minor/major inertia ratio within bounds.

    Always reports ``confidence = ratio**2`` so elongated shapes weigh less
    in the final weighted location.
    """

    type_name: ClassVar[str] = "Inertia"

    def test(self, gray, binary, shape):
        ratio = inertia_ratio(shape)
        return FilterOutcome(rejected=not self.in_range(ratio), confidence=ratio * ratio)


@dataclass(frozen=True)
class ColorFilter(RangeFilter):
    """Grayscale intensity at the moment centroid within bounds.

    Reports the centroid as the location of the Center.
    """

    type_name: ClassVar[str] = "Color"

    def __post_init__(self) -> None:
        super().__post_init__()
        for bound in (self.min_value, self.max_value):
            if not 0 <= bound <= 255 or float(bound) != int(bound):
                raise ConfigurationError(
                    f"Color filter bounds must be 8-bit intensities (0..255), got {self.min_value}..{self.max_value}"
                )

    def test(self, gray, binary, shape):
        if shape.area == 0.0:
            return REJECT
        location = shape.moments.centroid
        value = pixel_at(gray, location)
        return FilterOutcome(rejected=not self.in_range(value), location=location)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name, "min": int(self.min_value), "max": int(self.max_value)}

    @classmethod
    def from_dict(cls, node: Mapping[str, Any]) -> "ColorFilter":
        try:
            lo, hi = int(node["min"]), int(node["max"])
        except KeyError as exc:
            raise ConfigurationError(f"Color filter is missing '{exc.args[0]}'") from exc
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Color filter has non-integer bounds: {dict(node)}") from exc
        return cls(lo, hi)


@dataclass(frozen=True)
class ExtentFilter(RangeFilter):
    """Contour area over the bounding box area of the whole binary image."""

    type_name: ClassVar[str] = "Extent"

    def test(self, gray, binary, shape):
        _x, _y, w, h = mask_bounding_box(binary)
        box_area = float(w * h)
        extent = shape.area / box_area if box_area > 0 else 1.0
        return ACCEPT if self.in_range(extent) else REJECT


FILTER_TYPES = (AreaFilter, CircularityFilter, ConvexityFilter, InertiaFilter, ColorFilter, ExtentFilter)


def apply_filters(
    filters: Sequence[Filter],
    gray: np.ndarray,
    binary: np.ndarray,
    shape: ShapeDescriptor,
) -> FilterOutcome:
    """Run ``filters`` in order and merge what they report.

    Stops at the first rejection; nothing reported by earlier filters is
    kept in that case. Otherwise later overrides replace earlier ones.
    """
    location: Optional[Point] = None
    confidence: Optional[float] = None
    for flt in filters:
        outcome = flt.test(gray, binary, shape)
        if outcome.rejected:
            return REJECT
        if outcome.location is not None:
            location = outcome.location
        if outcome.confidence is not None:
            confidence = outcome.confidence
    return FilterOutcome(rejected=False, location=location, confidence=confidence)


# ---------------------------------------------------------------------------
# Shape measures
# ---------------------------------------------------------------------------

def circularity(shape: ShapeDescriptor) -> float:
    perimeter = shape.perimeter
    if perimeter <= 0.0:
        return 0.0
    return float(4.0 * math.pi * shape.area / (perimeter * perimeter))


def convexity(shape: ShapeDescriptor) -> float:
    if shape.hull_area <= 0.0:
        return 1.0
    return float(shape.area / shape.hull_area)


def inertia_ratio(shape: ShapeDescriptor) -> float:
    """Ratio of the smallest to the largest second moment about the centroid.

    1.0 for rotationally symmetric shapes, tending to 0 for a line.
    """
    m = shape.moments
    denominator = math.sqrt((2.0 * m.mu11) ** 2 + (m.mu20 - m.mu02) ** 2)
    if denominator <= INERTIA_EPS:
        return 1.0
    cosmin = (m.mu20 - m.mu02) / denominator
    sinmin = 2.0 * m.mu11 / denominator
    half_trace = 0.5 * (m.mu20 + m.mu02)
    imin = half_trace - 0.5 * (m.mu20 - m.mu02) * cosmin - m.mu11 * sinmin
    imax = half_trace + 0.5 * (m.mu20 - m.mu02) * cosmin + m.mu11 * sinmin
    if imax == 0.0:
        return 1.0
    return float(imin / imax)


def pixel_at(gray: np.ndarray, location: Point) -> float:
    """Intensity of the pixel nearest ``location`` (x, y), clamped to the image."""
    height, width = gray.shape[:2]
    col = min(max(int(np.rint(location[0])), 0), width - 1)
    row = min(max(int(np.rint(location[1])), 0), height - 1)
    return float(gray[row, col])
