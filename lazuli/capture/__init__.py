"""
Capture package for lazuli.
Handles scenario screenshots.
"""

from .screenshot import CaptureResult, ScreenshotManager

__all__ = [
    "CaptureResult",
    "ScreenshotManager",
]
