from datetime import datetime
from pathlib import Path

from lazuli.capture.screenshot import ScreenshotManager, sanitize
from lazuli.utils.config import ScreenshotScheme
from lazuli.world import Scenario


class FixedRng:
    def randrange(self, n: int) -> int:
        return 42


class ShotPage:
    url = "https://www.example.com/"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.paths = []

    def screenshot(self, path: str, full_page: bool = True):
        if self.fail:
            raise RuntimeError("Target closed")
        self.paths.append(path)
        Path(path).write_bytes(b"png")


SCENARIO = Scenario(name="Add to cart", feature="Shop / Basket", started=datetime(2024, 1, 2, 3, 4, 5))


def test_sanitize():
    assert sanitize("a/b/Hello World?.png") == "Hello_World_.png"
    assert sanitize("x  y") == "x_y"


def test_old_scheme_name(tmp_path):
    mgr = ScreenshotManager(tmp_path, ScreenshotScheme.old)
    assert mgr.name_for(SCENARIO) == tmp_path / "240102_030405_Add_to_cart.png"
    assert mgr.name_for(SCENARIO, "timeout").name == "240102_030405_Add_to_cart_timeout.png"


def test_new_scheme_name(tmp_path):
    mgr = ScreenshotManager(tmp_path, "new", rng=FixedRng())
    assert mgr.name_for(SCENARIO).name == f"240102T030405-{SCENARIO.id}-42.png"


def test_capture_writes_file(tmp_path):
    page = ShotPage()
    mgr = ScreenshotManager(tmp_path / "shots")
    result = mgr.capture(page, SCENARIO, "error")
    assert result is not None
    assert result.path.exists()
    assert result.url == "https://www.example.com/"
    assert result.ts.endswith("Z")


def test_capture_failure_is_none(tmp_path):
    assert ScreenshotManager(tmp_path).capture(ShotPage(fail=True), SCENARIO) is None


def test_capture_when_directory_cannot_be_created(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory", encoding="utf-8")
    page = ShotPage()
    assert ScreenshotManager(blocker / "shots").capture(page, SCENARIO) is None
    assert page.paths == []
