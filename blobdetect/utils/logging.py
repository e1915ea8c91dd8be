"""Logging helpers for the blob detector."""

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under ``blobdetect``.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance for the module
    """
    if name.startswith("blobdetect."):
        name = name[len("blobdetect."):]
    return logging.getLogger(f"blobdetect.{name}")
