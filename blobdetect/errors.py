"""
Error taxonomy for the detector.

Two failure classes surface to callers. Degenerate geometry (zero-area
contours, zero denominators) is handled where it occurs and never raised.
"""

from __future__ import annotations


class PreconditionError(ValueError):
    """Input that ``detect()`` refuses to work on (no image, no threshold policy, bad depth)."""


class ConfigurationError(ValueError):
    """Invalid filter/threshold parameters or an unreadable configuration document."""
