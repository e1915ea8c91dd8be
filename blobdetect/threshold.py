"""
Threshold policies: how a grayscale image becomes one or more binary images.

A policy also states how many of its levels an object must show up in
(``min_repeatability``). Single-level policies always use 1.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Mapping

import cv2
import numpy as np

from .errors import ConfigurationError


class ThresholdPolicy(ABC):
    type_name: ClassVar[str] = ""
    min_repeatability: int = 1

    @abstractmethod
    def binary_images(self, gray: np.ndarray) -> List[np.ndarray]:
        """Return binary images (uint8, values 0/255), one per level, lowest level first."""

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        ...


def _binarize(gray: np.ndarray, level: float, flags: int = cv2.THRESH_BINARY) -> np.ndarray:
    _retval, binary = cv2.threshold(gray, level, 255, flags)
    return binary


def _check_int(name: str, value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc
    if number != value:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    return number


def _check_level(name: str, value: Any) -> int:
    level = _check_int(name, value)
    if not 0 <= level <= 255:
        raise ConfigurationError(f"{name} must be within 0..255, got {level}")
    return level


@dataclass(frozen=True)
class FixedThreshold(ThresholdPolicy):
    threshold: int = 127

    type_name: ClassVar[str] = "Fixed"

    def __post_init__(self) -> None:
        object.__setattr__(self, "threshold", _check_level("threshold", self.threshold))

    def binary_images(self, gray):
        return [_binarize(gray, self.threshold)]

    def levels(self):
        return [int(self.threshold)]

    def to_dict(self):
        return {"type": self.type_name, "threshold": int(self.threshold), "minRepeatability": 1}

    @classmethod
    def from_dict(cls, node: Mapping[str, Any]) -> "FixedThreshold":
        if "threshold" not in node:
            raise ConfigurationError("Fixed threshold is missing 'threshold'")
        return cls(_check_level("threshold", node["threshold"]))


@dataclass(frozen=True)
class ThresholdRange(ThresholdPolicy):
    """Levels ``min, min + step, ...`` up to and including ``max`` when it lands on a step."""

    min_level: int = 50
    max_level: int = 220
    step: int = 10
    min_repeatability: int = 2

    type_name: ClassVar[str] = "Range"

    def __post_init__(self) -> None:
        lo = _check_level("min", self.min_level)
        hi = _check_level("max", self.max_level)
        if lo > hi:
            raise ConfigurationError(f"Range threshold: min ({lo}) must not exceed max ({hi})")
        step = _check_int("step", self.step)
        if step < 1:
            raise ConfigurationError(f"Range threshold: step must be >= 1, got {self.step}")
        min_repeatability = _check_int("minRepeatability", self.min_repeatability)
        if min_repeatability < 1:
            raise ConfigurationError(f"minRepeatability must be >= 1, got {self.min_repeatability}")
        object.__setattr__(self, "min_level", lo)
        object.__setattr__(self, "max_level", hi)
        object.__setattr__(self, "step", step)
        object.__setattr__(self, "min_repeatability", min_repeatability)

    def binary_images(self, gray):
        return [_binarize(gray, level) for level in self.levels()]

    def levels(self):
        return list(range(self.min_level, self.max_level + 1, self.step))

    def to_dict(self):
        return {
            "type": self.type_name,
            "min": self.min_level,
            "max": self.max_level,
            "step": self.step,
            "minRepeatability": self.min_repeatability,
        }

    @classmethod
    def from_dict(cls, node: Mapping[str, Any]) -> "ThresholdRange":
        missing = [key for key in ("min", "max", "step") if key not in node]
        if missing:
            raise ConfigurationError(f"Range threshold is missing {', '.join(missing)}")
        return cls(
            min_level=node["min"],
            max_level=node["max"],
            step=node["step"],
            min_repeatability=node.get("minRepeatability", 2),
        )


@dataclass(frozen=True)
class OtsuThreshold(ThresholdPolicy):
    """Single level picked per image by Otsu's method."""

    type_name: ClassVar[str] = "Otsu"

    def binary_images(self, gray):
        return [_binarize(gray, 0, cv2.THRESH_BINARY | cv2.THRESH_OTSU)]

    def level_for(self, gray: np.ndarray) -> int:
        retval, _binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY | cv2.THRESH_OTSU)
        return int(retval)

    def to_dict(self):
        return {"type": self.type_name, "minRepeatability": 1}

    @classmethod
    def from_dict(cls, node: Mapping[str, Any]) -> "OtsuThreshold":
        return cls()


THRESHOLD_TYPES = (FixedThreshold, ThresholdRange, OtsuThreshold)
