"""
What a detection summary means.

``detection.build_summary`` copies ``OBJECT_DETECTIONS_CONTRACT`` into every
summary JSON it writes, so a reader of the file knows the coordinate frame
and what ``size`` measures without this package installed.
"""

from __future__ import annotations

from typing import Dict


OBJECT_DETECTIONS_PURPOSE = "object_detections"
OBJECT_DETECTIONS_SEMANTICS = (
    "Each detection is the confidence-weighted centroid of a cluster of contour centers "
    "that recurred across threshold levels. 'size' is the diameter of the cluster's "
    "median-radius member; it is not refit from the fused location."
)

OBJECT_DETECTIONS_CONTRACT: Dict[str, object] = {
    "schema_version": "1",
    "purpose": OBJECT_DETECTIONS_PURPOSE,
    "semantic_unit": "object",
    "represents": "multi_level_blob",
    "coordinates": "pixel_xy",
    "notes": OBJECT_DETECTIONS_SEMANTICS,
}
