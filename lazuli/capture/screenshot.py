# lazuli/capture/screenshot.py
from __future__ import annotations

"""Screenshot utilities
----------------------
Names and writes scenario screenshots. Capturing is fire-and-forget: a failed
capture is logged and reported as None, never raised.
"""

import random
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from playwright.sync_api import Page

from lazuli.utils.config import ScreenshotScheme
from lazuli.utils.logger import get_logger
from lazuli.utils.timing import measure

if TYPE_CHECKING:
    from lazuli.world import Scenario


@dataclass
class CaptureResult:
    path: Path
    url: str
    ts: str              # ISO timestamp


def sanitize(name: str) -> str:
    """Strip directories, replace anything but word chars, dots and dashes, squeeze underscores."""
    base = name.replace("\\", "/").rsplit("/", 1)[-1]
    safe = "".join(ch if ch.isalnum() or ch in ("_", ".", "-") else "_" for ch in base)
    while "__" in safe:
        safe = safe.replace("__", "_")
    return safe


class ScreenshotManager:
    """
    Produces file names following the configured scheme:
      old: <timestamp>_<scenario name>.png
      new: <iso_short>-<scenario id>-<random>.png
    """

    def __init__(
        self,
        directory: Path,
        scheme: ScreenshotScheme = ScreenshotScheme.old,
        full_page: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.directory = Path(directory)
        self.scheme = ScreenshotScheme(scheme)
        self.full_page = full_page
        self.rng = rng or random.Random()
        self.log = get_logger(__name__)

    def name_for(self, scenario: "Scenario", suffix: str = "") -> Path:
        if self.scheme == ScreenshotScheme.new:
            name = f"{scenario.time['iso_short']}-{scenario.id}-{self.rng.randrange(10000)}"
        else:
            name = f"{scenario.time['timestamp']}_{sanitize(scenario.name)}"
        if suffix:
            name = f"{name}_{sanitize(suffix)}"
        return self.directory / f"{name}.png"

    @measure("take_screenshot")
    def capture(self, page: Page, scenario: "Scenario", suffix: str = "") -> Optional[CaptureResult]:
        """Write a PNG of the page; returns None when the browser refused."""
        out_path = self.name_for(scenario, suffix)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            page.screenshot(path=str(out_path), full_page=self.full_page)
        except Exception as e:
            self.log.debug(f"Failed to save screenshot to '{out_path}'. Error message {e}")
            return None
        self.log.debug(f"Screenshot saved: {out_path}")
        return CaptureResult(path=out_path, url=page.url, ts=self._ts())

    @staticmethod
    def _ts() -> str:
        return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
