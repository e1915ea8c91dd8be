"""
Preset detector parameters selectable by name.

``otsu_round`` looks for large round blobs at a single Otsu level;
``range_blobs`` sweeps thresholds and keeps compact blobs seen at two or more
levels. ``init-config`` writes a profile out as a configuration document to
edit, and an explicit ``--config`` file is used instead of any profile.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .filters import AreaFilter, CircularityFilter, ConvexityFilter, InertiaFilter
from .persistence import Parameters
from .threshold import OtsuThreshold, ThresholdRange


@dataclass(frozen=True)
class DetectorProfile:
    name: str
    notes: str
    factory: Callable[[], Parameters]

    def parameters(self) -> Parameters:
        return self.factory()


OTSU_ROUND = DetectorProfile(
    name="otsu_round",
    notes=(
        "Single Otsu level with area and circularity gates. Fast, but every "
        "object is taken from one binarization, so repeatability is 1."
    ),
    factory=lambda: Parameters(
        threshold_policy=OtsuThreshold(),
        min_dist_between_objects=10.0,
        filters=[AreaFilter(2000.0, 20000.0), CircularityFilter(0.8, 1.0)],
    ),
)

RANGE_BLOBS = DetectorProfile(
    name="range_blobs",
    notes=(
        "Levels 50..220 in steps of 10; an object must appear at 2 levels. "
        "Shape gates are loose so the inertia ratio mostly acts as a weight."
    ),
    factory=lambda: Parameters(
        threshold_policy=ThresholdRange(min_level=50, max_level=220, step=10, min_repeatability=2),
        min_dist_between_objects=10.0,
        filters=[
            AreaFilter(25.0, 5000.0),
            CircularityFilter(0.8, 1.0),
            InertiaFilter(0.1, 1.0),
            ConvexityFilter(0.95, 1.0),
        ],
    ),
)

PROFILES: Dict[str, DetectorProfile] = {p.name: p for p in (OTSU_ROUND, RANGE_BLOBS)}
DEFAULT_PROFILE = RANGE_BLOBS


def get_profile(name: Optional[str]) -> DetectorProfile:
    if name is None:
        return DEFAULT_PROFILE
    try:
        return PROFILES[name]
    except KeyError:
        raise KeyError(f"Unknown profile {name!r}; choose from {', '.join(sorted(PROFILES))}") from None


def as_policy_dict() -> Dict[str, object]:
    """Small block describing the available profiles, embeddable in summary outputs."""
    return {
        "detector": {
            "default_profile": DEFAULT_PROFILE.name,
            "profiles": {
                name: {"notes": p.notes, "parameters": p.parameters().to_dict()}
                for name, p in sorted(PROFILES.items())
            },
        }
    }
