import json
import subprocess
import sys
from pathlib import Path

import cv2
import numpy as np

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "run_object_detection.py"


def _run(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run([sys.executable, str(SCRIPT), *args], capture_output=True, text=True, check=False)


def test_init_config_then_detect(tmp_path: Path):
    config = tmp_path / "detector.json"
    image = tmp_path / "scene.png"
    out = tmp_path / "scene.json"

    img = np.zeros((120, 120), dtype=np.uint8)
    cv2.circle(img, (60, 60), 25, 200, -1)
    cv2.imwrite(str(image), img)

    result = _run("init-config", "--profile", "range_blobs", "--out", str(config))
    assert result.returncode == 0, f"stdout:\n{result.stdout}\nstderr:\n{result.stderr}"
    assert json.loads(config.read_text())["threshold"]["type"] == "Range"

    result = _run("detect", "--image", str(image), "--config", str(config), "--out", str(out))
    assert result.returncode == 0, f"stdout:\n{result.stdout}\nstderr:\n{result.stderr}"
    assert json.loads(result.stdout)["count"] == 1
    assert json.loads(out.read_text())["count"] == 1


def test_init_config_refuses_to_overwrite(tmp_path: Path):
    config = tmp_path / "detector.json"
    config.write_text("{}")
    result = _run("init-config", "--out", str(config))
    assert result.returncode == 1
    assert "exists" in result.stderr
    assert config.read_text() == "{}"


def test_bad_config_reports_error(tmp_path: Path):
    config = tmp_path / "detector.json"
    config.write_text(json.dumps({"threshold": {"type": "Magic"}}))
    image = tmp_path / "scene.png"
    cv2.imwrite(str(image), np.zeros((10, 10), dtype=np.uint8))

    result = _run("detect", "--image", str(image), "--config", str(config), "--out", str(tmp_path / "o.json"))
    assert result.returncode == 1
    assert "Unknown threshold policy type" in result.stderr


def test_show_profiles():
    result = _run("show-profiles")
    assert result.returncode == 0
    assert "range_blobs" in json.loads(result.stdout)["detector"]["profiles"]
