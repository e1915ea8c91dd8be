"""
Multi-threshold object detector.

``ObjectDetector.detect()`` binarizes the image at every level of its
threshold policy, extracts filtered Centers per level, clusters them across
levels and returns one ``DetectedObject`` per cluster that recurred at
least ``min_repeatability`` times.

Levels are independent until the clustering fold, so extraction may run on
a thread pool (``max_workers``); the fold itself always runs in level order
on the calling thread, which keeps the result identical to a sequential run.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from .center import Center, DetectedObject
from .clustering import cluster_levels, fuse_clusters
from .errors import PreconditionError
from .extractor import find_centers
from .filters import Filter
from .threshold import ThresholdPolicy
from .utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MIN_DIST_BETWEEN_OBJECTS = 10.0


class ObjectDetector:
    """Detect blobs that persist across several threshold levels."""

    def __init__(
        self,
        threshold_policy: Optional[ThresholdPolicy] = None,
        min_dist_between_objects: float = DEFAULT_MIN_DIST_BETWEEN_OBJECTS,
        filters: Optional[Iterable[Filter]] = None,
    ):
        """Initialize detector.

        Args:
            threshold_policy: Source of binary images and of ``min_repeatability``.
                May be set later, but must be set before ``detect()``.
            min_dist_between_objects: Candidates closer than this (pixels) to a
                cluster's representative join that cluster.
            filters: Ordered filter pipeline; first rejection wins.
        """
        self._threshold_policy = threshold_policy
        self._min_dist_between_objects = float(min_dist_between_objects)
        self._filters: List[Filter] = list(filters or [])

    @classmethod
    def from_parameters(cls, params) -> "ObjectDetector":
        """Build from a ``persistence.Parameters`` record."""
        return cls(
            threshold_policy=params.threshold_policy,
            min_dist_between_objects=params.min_dist_between_objects,
            filters=params.filters,
        )

    @property
    def filters(self) -> Tuple[Filter, ...]:
        return tuple(self._filters)

    @property
    def threshold_policy(self) -> Optional[ThresholdPolicy]:
        return self._threshold_policy

    @property
    def min_dist_between_objects(self) -> float:
        return self._min_dist_between_objects

    def add_filter(self, flt: Filter) -> None:
        self._filters.append(flt)

    def set_filters(self, filters: Iterable[Filter]) -> None:
        self._filters = list(filters)

    def set_threshold_policy(self, policy: ThresholdPolicy) -> None:
        self._threshold_policy = policy

    def set_min_dist_between_objects(self, distance: float) -> None:
        self._min_dist_between_objects = float(distance)

    def detect(self, image: np.ndarray, max_workers: Optional[int] = None) -> List[DetectedObject]:
        """Detect objects in an 8-bit grayscale, BGR or BGRA image.

        Raises:
            PreconditionError: empty image, no threshold policy, or an
                unsupported depth / channel count.
        """
        gray = self._prepare(image)
        policy = self._threshold_policy
        binaries = policy.binary_images(gray)
        levels = self._extract_levels(gray, binaries, max_workers)
        clusters = cluster_levels(levels, self._min_dist_between_objects)
        objects = fuse_clusters(clusters, int(policy.min_repeatability))
        logger.debug(
            "%d levels, %d clusters, %d objects (min_repeatability=%d)",
            len(binaries),
            len(clusters),
            len(objects),
            policy.min_repeatability,
        )
        return objects

    def find_level_centers(self, image: np.ndarray) -> List[List[Center]]:
        """Per-level Centers before clustering, mostly useful for tuning filters."""
        gray = self._prepare(image)
        return self._extract_levels(gray, self._threshold_policy.binary_images(gray), None)

    def _prepare(self, image: Optional[np.ndarray]) -> np.ndarray:
        if image is None or getattr(image, "size", 0) == 0:
            raise PreconditionError("detect() needs an image with data")
        if self._threshold_policy is None:
            raise PreconditionError("a threshold policy must be set before calling detect()")
        return to_gray(image)

    def _extract_levels(
        self,
        gray: np.ndarray,
        binaries: Sequence[np.ndarray],
        max_workers: Optional[int],
    ) -> List[List[Center]]:
        filters = tuple(self._filters)
        if max_workers is not None and max_workers > 1 and len(binaries) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                levels = list(pool.map(lambda binary: find_centers(gray, binary, filters), binaries))
        else:
            levels = [find_centers(gray, binary, filters) for binary in binaries]
        for index, centers in enumerate(levels):
            logger.debug("level %d: %d candidates", index, len(centers))
        return levels


def to_gray(image: np.ndarray) -> np.ndarray:
    """Return a contiguous 8-bit single-channel view/copy of ``image``.

    Three- and four-channel images are taken as BGR/BGRA, the OpenCV order.
    """
    image = np.asarray(image)
    if image.dtype != np.uint8:
        raise PreconditionError(f"only 8-bit images are supported, got dtype {image.dtype}")
    if image.ndim == 2:
        gray = image
    elif image.ndim == 3 and image.shape[2] == 1:
        gray = image[:, :, 0]
    elif image.ndim == 3 and image.shape[2] == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    elif image.ndim == 3 and image.shape[2] == 4:
        gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    else:
        raise PreconditionError(f"unsupported image shape {image.shape}; expected 1, 3 or 4 channels")
    return np.ascontiguousarray(gray)
