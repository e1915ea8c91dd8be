"""
Detection stage: one image file in, one summary JSON out.

Parameters come from a configuration document when ``config_path`` is
given, otherwise from a named profile. The summary carries the output
contract, the parameters actually used and the detections; an optional CSV
holds the same detections in tabular form. Provenance and timings are
written next to the summary.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import cv2
import numpy as np
import pandas as pd

from .center import DetectedObject
from .contracts import OBJECT_DETECTIONS_CONTRACT
from .detector import ObjectDetector, to_gray
from .errors import PreconditionError
from .persistence import Parameters, Registry, load_parameters
from .profiles import get_profile
from .threshold import OtsuThreshold
from .utils.logging import get_logger
from .utils.provenance import append_timings, write_provenance

logger = get_logger(__name__)

CSV_COLUMNS = ["id", "x", "y", "size", "repeatability", "response"]


@dataclass
class DetectionParams:
    """Inputs and outputs of one detection run."""

    image_path: Path
    out_path: Path
    config_path: Optional[Path] = None
    profile: Optional[str] = None
    emit_csv: bool = False
    csv_path: Optional[Path] = None
    max_workers: Optional[int] = None
    registry: Optional[Registry] = None


def run(params: DetectionParams) -> Path:
    """Detect objects in ``params.image_path`` and write the summary JSON."""

    t0 = time.perf_counter()
    parameters = resolve_parameters(params)
    image = load_image(params.image_path)
    t_load = time.perf_counter()

    detector = ObjectDetector.from_parameters(parameters)
    objects = detector.detect(image, max_workers=params.max_workers)
    t_detect = time.perf_counter()

    summary = build_summary(
        image_path=params.image_path,
        image=image,
        parameters=parameters,
        objects=objects,
    )
    timings = {"load_s": round(t_load - t0, 4), "detect_s": round(t_detect - t_load, 4)}
    summary["timings"] = timings

    out_path = Path(params.out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(summary, indent=2))
    logger.info("%s: %d objects -> %s", params.image_path, len(objects), out_path)

    if params.emit_csv:
        csv_path = params.csv_path or out_path.with_suffix(".csv")
        write_csv(summary["detections"], csv_path)

    write_provenance(
        out_path.parent,
        extra={
            "inputs": {
                "image": str(params.image_path),
                "config": str(params.config_path) if params.config_path else None,
                "profile": params.profile,
            },
            "parameters": parameters.to_dict(),
        },
    )
    append_timings(out_path.parent, component="detect", timings=timings, extra={"image": str(params.image_path)})
    return out_path


def resolve_parameters(params: DetectionParams) -> Parameters:
    if params.config_path is not None:
        return load_parameters(params.config_path, params.registry)
    return get_profile(params.profile).parameters()


def load_image(path: Path) -> np.ndarray:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing image: {path}")
    image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise PreconditionError(f"Could not decode image: {path}")
    return image


def build_summary(
    *,
    image_path: Path,
    image: np.ndarray,
    parameters: Parameters,
    objects: List[DetectedObject],
) -> Dict[str, Any]:
    detections = [{"id": i, **obj.to_dict()} for i, obj in enumerate(objects)]
    summary: Dict[str, Any] = {
        **OBJECT_DETECTIONS_CONTRACT,
        "image": {"path": str(image_path), "shape": [int(v) for v in image.shape]},
        "parameters": parameters.to_dict(),
        "count": len(detections),
        "detections": detections,
    }
    if isinstance(parameters.threshold_policy, OtsuThreshold):
        summary["otsu_level"] = parameters.threshold_policy.level_for(to_gray(image))
    return summary


def write_csv(detections: List[Dict[str, Any]], csv_path: Path) -> Path:
    csv_path = Path(csv_path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(detections, columns=CSV_COLUMNS).to_csv(csv_path, index=False)
    return csv_path
