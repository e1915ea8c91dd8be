import json
from pathlib import Path

import cv2
import numpy as np
import pandas as pd
import pytest

from blobdetect.detection import DetectionParams, load_image, run
from blobdetect.errors import PreconditionError
from blobdetect.filters import AreaFilter
from blobdetect.persistence import Parameters, save_parameters
from blobdetect.threshold import ThresholdRange


def _write_scene(path: Path) -> Path:
    img = np.zeros((160, 160), dtype=np.uint8)
    cv2.circle(img, (40, 40), 14, 210, -1)
    cv2.circle(img, (110, 100), 20, 210, -1)
    cv2.circle(img, (120, 30), 3, 210, -1)  # too small for the area filter
    path.parent.mkdir(parents=True, exist_ok=True)
    assert cv2.imwrite(str(path), img)
    return path


def _write_config(path: Path) -> Path:
    params = Parameters(
        threshold_policy=ThresholdRange(60, 180, 40, min_repeatability=2),
        min_dist_between_objects=10.0,
        filters=[AreaFilter(100, 5000)],
    )
    return save_parameters(params, path)


def test_run_writes_summary_with_contract(tmp_path: Path) -> None:
    image = _write_scene(tmp_path / "scene.png")
    config = _write_config(tmp_path / "detector.json")
    out = tmp_path / "out" / "scene.json"

    run(DetectionParams(image_path=image, out_path=out, config_path=config))

    summary = json.loads(out.read_text())
    assert summary["purpose"] == "object_detections"
    assert summary["semantic_unit"] == "object"
    assert summary["count"] == 2
    assert summary["image"]["shape"] == [160, 160]
    assert summary["parameters"]["threshold"]["type"] == "Range"
    xs = sorted(round(d["x"]) for d in summary["detections"])
    assert xs == [40, 110]
    assert all(d["repeatability"] == 4 for d in summary["detections"])
    assert "detect_s" in summary["timings"]

    assert (out.parent / "provenance.json").exists()
    timings = json.loads((out.parent / "timings.json").read_text())
    assert timings[-1]["component"] == "detect"


def test_run_with_profile_and_csv(tmp_path: Path) -> None:
    image = _write_scene(tmp_path / "scene.png")
    out = tmp_path / "scene.json"

    run(DetectionParams(image_path=image, out_path=out, profile="otsu_round", emit_csv=True))

    summary = json.loads(out.read_text())
    assert "otsu_level" in summary
    df = pd.read_csv(out.with_suffix(".csv"))
    assert list(df.columns) == ["id", "x", "y", "size", "repeatability", "response"]
    assert len(df) == summary["count"]


def test_missing_image(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Missing image"):
        run(DetectionParams(image_path=tmp_path / "nope.png", out_path=tmp_path / "out.json"))


def test_undecodable_image(tmp_path: Path) -> None:
    path = tmp_path / "garbage.png"
    path.write_bytes(b"not an image")
    with pytest.raises(PreconditionError, match="decode"):
        load_image(path)
