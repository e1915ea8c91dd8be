"""Multi-threshold blob detection with configurable shape filters."""

__version__ = "0.1.0"

from .center import Center, DetectedObject, Moments, ShapeDescriptor  # noqa: F401
from .detector import ObjectDetector  # noqa: F401
from .errors import ConfigurationError, PreconditionError  # noqa: F401
from .filters import (  # noqa: F401
    AreaFilter,
    CircularityFilter,
    ColorFilter,
    ConvexityFilter,
    ExtentFilter,
    Filter,
    FilterOutcome,
    InertiaFilter,
)
from .persistence import Parameters, Registry, default_registry, load_parameters, save_parameters  # noqa: F401
from .threshold import FixedThreshold, OtsuThreshold, ThresholdPolicy, ThresholdRange  # noqa: F401

__all__ = [
    "AreaFilter",
    "Center",
    "CircularityFilter",
    "ColorFilter",
    "ConfigurationError",
    "ConvexityFilter",
    "DetectedObject",
    "ExtentFilter",
    "Filter",
    "FilterOutcome",
    "FixedThreshold",
    "InertiaFilter",
    "Moments",
    "ObjectDetector",
    "OtsuThreshold",
    "Parameters",
    "PreconditionError",
    "Registry",
    "ShapeDescriptor",
    "ThresholdPolicy",
    "ThresholdRange",
    "default_registry",
    "load_parameters",
    "save_parameters",
]
