"""
Detector configuration documents (JSON).

A document names the threshold policy, the minimum distance between objects
and the ordered filter list::

    {
      "schema_version": "1",
      "threshold": {"type": "Range", "min": 40, "max": 120, "step": 10, "minRepeatability": 2},
      "minDistBetweenObjects": 10.0,
      "filters": [{"type": "Area", "min": 2000, "max": 20000}]
    }

Type names are resolved through an explicit ``Registry`` handed to the
loader, so callers can add their own filters without touching module state.
Every problem with a document is raised as ``ConfigurationError`` at load
time, never later during detection.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Type

from .errors import ConfigurationError
from .filters import FILTER_TYPES, Filter
from .threshold import THRESHOLD_TYPES, ThresholdPolicy
from .utils.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = "1"
NODE_THRESHOLD = "threshold"
NODE_FILTERS = "filters"
NODE_MIN_DIST_BETWEEN_OBJECTS = "minDistBetweenObjects"


@dataclass(frozen=True)
class Registry:
    """Type name -> class lookup used when loading documents."""

    filters: Mapping[str, Type[Filter]] = field(default_factory=dict)
    thresholds: Mapping[str, Type[ThresholdPolicy]] = field(default_factory=dict)

    def with_filter(self, cls: Type[Filter]) -> "Registry":
        return Registry(filters={**self.filters, cls.type_name: cls}, thresholds=dict(self.thresholds))

    def with_threshold(self, cls: Type[ThresholdPolicy]) -> "Registry":
        return Registry(filters=dict(self.filters), thresholds={**self.thresholds, cls.type_name: cls})


def default_registry() -> Registry:
    """Registry with the built-in filters and threshold policies."""
    return Registry(
        filters={cls.type_name: cls for cls in FILTER_TYPES},
        thresholds={cls.type_name: cls for cls in THRESHOLD_TYPES},
    )


@dataclass
class Parameters:
    """Everything ``ObjectDetector`` needs besides the image."""

    threshold_policy: ThresholdPolicy
    min_dist_between_objects: float = 10.0
    filters: List[Filter] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            NODE_THRESHOLD: self.threshold_policy.to_dict(),
            NODE_MIN_DIST_BETWEEN_OBJECTS: float(self.min_dist_between_objects),
            NODE_FILTERS: [flt.to_dict() for flt in self.filters],
        }


def parameters_from_dict(obj: Mapping[str, Any], registry: Registry) -> Parameters:
    if not isinstance(obj, Mapping):
        raise ConfigurationError("Configuration document must be a JSON object")

    version = str(obj.get("schema_version", SCHEMA_VERSION))
    if version != SCHEMA_VERSION:
        raise ConfigurationError(f"Unsupported schema_version {version!r} (expected {SCHEMA_VERSION!r})")

    threshold_node = obj.get(NODE_THRESHOLD)
    if not isinstance(threshold_node, Mapping):
        raise ConfigurationError(f"Missing '{NODE_THRESHOLD}' section")
    policy = _build(threshold_node, registry.thresholds, kind="threshold policy")

    try:
        min_dist = float(obj.get(NODE_MIN_DIST_BETWEEN_OBJECTS, 10.0))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{NODE_MIN_DIST_BETWEEN_OBJECTS}' must be a number") from exc
    if min_dist < 0:
        raise ConfigurationError(f"'{NODE_MIN_DIST_BETWEEN_OBJECTS}' must be >= 0, got {min_dist}")

    filter_nodes = obj.get(NODE_FILTERS, [])
    if not isinstance(filter_nodes, list):
        raise ConfigurationError(f"'{NODE_FILTERS}' must be a list")
    filters = [_build(node, registry.filters, kind="filter") for node in filter_nodes]

    return Parameters(threshold_policy=policy, min_dist_between_objects=min_dist, filters=filters)


def load_parameters(path: Path, registry: Optional[Registry] = None) -> Parameters:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing configuration file: {path}")
    try:
        obj = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{path} is not valid JSON: {exc}") from exc
    params = parameters_from_dict(obj, registry or default_registry())
    logger.info(
        "Loaded %s: threshold=%s filters=%s",
        path,
        params.threshold_policy.type_name,
        [flt.type_name for flt in params.filters],
    )
    return params


def save_parameters(params: Parameters, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(params.to_dict(), indent=2))
    return path


def _build(node: Any, table: Mapping[str, type], kind: str):
    if not isinstance(node, Mapping):
        raise ConfigurationError(f"Each {kind} entry must be an object, got {node!r}")
    type_name = node.get("type")
    if type_name is None:
        raise ConfigurationError(f"{kind} entry has no 'type': {dict(node)}")
    cls = table.get(str(type_name))
    if cls is None:
        known = ", ".join(sorted(table)) or "none registered"
        raise ConfigurationError(f"Unknown {kind} type {type_name!r} (known: {known})")
    return cls.from_dict(node)
