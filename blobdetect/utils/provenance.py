from __future__ import annotations

import json
import os
import platform
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from .logging import get_logger

logger = get_logger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _library_versions() -> Dict[str, str]:
    import cv2
    import numpy as np

    return {"numpy": np.__version__, "opencv": cv2.__version__}


def write_provenance(out_dir: Path, filename: str = "provenance.json", extra: Dict[str, Any] | None = None) -> Path | None:
    """Write a small provenance record to ``out_dir/filename``.

    Records timestamp, Python/platform, numpy/OpenCV versions, the optional
    GIT_SHA env var and any ``extra`` fields (inputs, parameters). A failure
    to write is logged, not raised: provenance never fails a detection run.
    """
    payload: Dict[str, Any] = {
        "timestamp": _now_iso(),
        "python": sys.version.split()[0],
        "platform": platform.platform(),
        "libraries": _library_versions(),
        "git_sha": os.environ.get("GIT_SHA") or None,
    }
    if extra:
        payload.update(extra)
    path = Path(out_dir) / filename
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, default=str))
    except OSError as exc:
        logger.warning("Could not write provenance to %s: %s", path, exc)
        return None
    return path


def append_timings(
    out_dir: Path,
    *,
    component: str,
    timings: Dict[str, Any],
    extra: Dict[str, Any] | None = None,
    filename: str = "timings.json",
) -> Path | None:
    """Append ``{"timestamp", "component", "timings", **extra}`` to a JSON list.

    A malformed existing file is replaced by a fresh list.
    """
    path = Path(out_dir) / filename
    entries: list[dict] = []
    if path.exists():
        try:
            current = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError):
            current = None
        if isinstance(current, list):
            entries = current
    entry: Dict[str, Any] = {"timestamp": _now_iso(), "component": component, "timings": timings}
    if extra:
        entry.update(extra)
    entries.append(entry)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(entries, indent=2))
    except OSError as exc:
        logger.warning("Could not write timings to %s: %s", path, exc)
        return None
    return path
