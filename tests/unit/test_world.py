import textwrap
from datetime import datetime
from pathlib import Path

import pytest

from lazuli.errors import LazuliError, NotFound
from lazuli.utils.config import Settings, load_config_file
from lazuli.world import Scenario, World


class StubBrowser:
    def __init__(self, has_error: bool = False):
        self._has_error = has_error
        self.shots = []
        self.closed_for = []

    def take_screenshot(self, suffix: str = ""):
        self.shots.append(suffix)
        return Path(f"/tmp/{suffix}.png")

    def has_error(self) -> bool:
        return self._has_error

    def close_after_scenario(self, scenario) -> None:
        self.closed_for.append(scenario.name)


def write_config(tmp_path: Path) -> Path:
    p = tmp_path / "config.yml"
    p.write_text(
        textwrap.dedent(
            """
            base_url: https://shop.example.com
            timeouts:
              login: 15
            error_strings:
              - Stack trace
            """
        ),
        encoding="utf-8",
    )
    return p


@pytest.fixture
def world(tmp_path):
    return World(Settings(CONFIG_FILE=write_config(tmp_path)))


def test_config_reads_yaml_with_dotted_keys(world):
    assert world.config("base_url") == "https://shop.example.com"
    assert world.config("timeouts.login") == 15
    assert world.has_config("timeouts.login")
    assert not world.has_config("timeouts.logout")


def test_config_falls_back_to_settings(world):
    assert world.config("wait_timeout") == 10
    assert world.config("missing", "dflt") == "dflt"
    with pytest.raises(KeyError):
        world.config("missing")


def test_env_wins_over_config(world, monkeypatch):
    assert world.env_or_config("base_url") == "https://shop.example.com"
    monkeypatch.setenv("BASE_URL", "https://staging.example.com")
    assert world.env_or_config("base_url") == "https://staging.example.com"
    assert world.has_env_or_config("base_url")
    assert not world.has_env_or_config("nothing_here")


def test_config_file_must_be_mapping(tmp_path):
    p = tmp_path / "list.yml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config_file(p)
    with pytest.raises(FileNotFoundError):
        load_config_file(tmp_path / "nope.yml")
    assert load_config_file(None) == {}


def test_scenario_identity():
    s = Scenario(name="Pay by card!", feature="Checkout", started=datetime(2024, 3, 5, 14, 7, 9))
    assert s.id == "checkout-pay_by_card"
    assert s.time["timestamp"] == "240305_140709"
    assert s.time["iso_short"] == "240305T140709"


def test_error_takes_screenshot_and_raises(world):
    stub = StubBrowser()
    world.browser = stub
    with pytest.raises(NotFound) as exc:
        world.error("Login button missing", groups=["login"], error_class=NotFound)
    assert exc.value.groups == ["login"]
    assert exc.value.screenshot == Path("/tmp/error.png")
    assert stub.shots == ["error"]


def test_error_without_screenshot(world):
    stub = StubBrowser()
    world.browser = stub
    cause = ValueError("boom")
    with pytest.raises(LazuliError) as exc:
        world.error("Broken", screenshot=False, exception=cause)
    assert exc.value.screenshot is None
    assert exc.value.__cause__ is cause
    assert stub.shots == []


def test_report_returns_error(world):
    err = NotFound("nope")
    assert world.report(err) is err
    assert err.to_dict()["groups"] == ["find"]


def test_end_scenario_fails_on_page_errors_and_still_closes(world):
    stub = StubBrowser(has_error=True)
    world.browser = stub
    world.start_scenario("Checkout")
    with pytest.raises(LazuliError):
        world.end_scenario()
    assert stub.closed_for == ["Checkout"]


def test_end_scenario_can_skip_error_check(world):
    stub = StubBrowser(has_error=True)
    world.browser = stub
    world.start_scenario("Expected failure").check_browser_errors = False
    world.end_scenario()
    assert stub.closed_for == ["Expected failure"]
