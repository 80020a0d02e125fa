import json

import pytest
from click.testing import CliRunner

import lazuli.cli as cli_mod
from lazuli.cli import cli
from conftest import FakeDocument
from lazuli.browser import Browser
from lazuli.core.wait_request import WaitOutcome
from lazuli.errors import WaitTimeout


class FakeElement:
    def __init__(self, tag, text):
        self.tag, self._text = tag, text

    def text(self):
        return self._text

    def tag_name(self):
        return self.tag


class FakeBrowser:
    def __init__(self, found=None, wait_error=None):
        self.found = found or []
        self.wait_error = wait_error
        self.calls = []
        self.closed = False

    def find_all_present(self, settings):
        self.calls.append(("present", settings))
        return self.found

    def find_all(self, settings):
        self.calls.append(("all", settings))
        return self.found

    def wait_outcome(self, **options):
        self.calls.append(("wait", options["list"][0], options))
        if self.wait_error:
            raise self.wait_error
        return WaitOutcome(matched=self.found[:1])

    def close(self):
        self.closed = True


@pytest.fixture
def fake_open(monkeypatch):
    holder = {}

    def install(browser):
        def _open(world, url, browser_name):
            world.browser = browser
            holder["url"] = url
            holder["browser_name"] = browser_name
            return browser

        monkeypatch.setattr(cli_mod, "_open", _open)
        return holder

    return install


def test_cli_config_prints_settings():
    result = CliRunner().invoke(cli, ["config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["WAIT_TIMEOUT"] == 10
    assert data["BROWSER"] == "firefox"


def test_cli_find_lists_elements(fake_open):
    browser = FakeBrowser(found=[FakeElement("a", "More   information...")])
    opened = fake_open(browser)

    result = CliRunner().invoke(
        cli, ["find", "https://www.example.com", "a", "--like-attr", "href", "--like-include", "iana"]
    )

    assert result.exit_code == 0
    assert "Found 1 element(s)" in result.output
    assert "<a> More information..." in result.output
    assert browser.calls == [("present", {"like": {"element": "a", "attribute": "href", "include": "iana"}})]
    assert opened["url"] == "https://www.example.com"
    assert browser.closed


def test_cli_find_all_with_key_value(fake_open):
    browser = FakeBrowser()
    fake_open(browser)
    result = CliRunner().invoke(cli, ["find", "https://www.example.com", "link=Sign in", "--all"])
    assert result.exit_code == 0
    assert browser.calls == [("all", {"link": "Sign in"})]


def test_cli_wait_needs_target():
    result = CliRunner().invoke(cli, ["wait", "https://www.example.com"])
    assert result.exit_code == 2


def test_cli_wait_ok(fake_open):
    browser = FakeBrowser(found=[FakeElement("h1", "Example Domain")])
    fake_open(browser)
    result = CliRunner().invoke(cli, ["wait", "https://www.example.com", "--tag", "h1", "--timeout", "2"])
    assert result.exit_code == 0
    assert "OK" in result.output
    _, settings, options = browser.calls[0]
    assert settings == {"like": "h1"}
    assert options["timeout"] == 2
    assert options["condition"] == "until"


def test_cli_wait_timeout_exits_1(fake_open):
    browser = FakeBrowser(wait_error=WaitTimeout("Timed out after 1 s"))
    fake_open(browser)
    result = CliRunner().invoke(cli, ["wait", "https://www.example.com", "--text", "Welcome", "--disappear"])
    assert result.exit_code == 1
    assert "ERR Timed out after 1 s" in result.output
    assert browser.calls[0][2]["condition"] == "while"
    assert browser.closed


class StaticPage:
    url = "https://www.example.com/"


@pytest.fixture
def page_with_text(monkeypatch):
    """Run the real Browser against an in-memory document with the given text."""

    def install(text):
        doc = FakeDocument(text=text)
        monkeypatch.setattr(Browser, "document", property(lambda self: doc))

        def _open(world, url, browser_name):
            world.browser = Browser(world, page=StaticPage())
            return world.browser

        monkeypatch.setattr(cli_mod, "_open", _open)
        return doc

    return install


def test_cli_wait_disappear_exits_1_when_text_stays(page_with_text):
    page_with_text("Welcome back")
    result = CliRunner().invoke(
        cli, ["wait", "https://www.example.com", "--text", "Welcome", "--disappear", "--timeout", "0.2"]
    )
    assert result.exit_code == 1
    assert "ERR Still present after 0.2 s" in result.output


def test_cli_wait_disappear_ok_when_text_goes(page_with_text):
    texts = iter(["Loading...", "Loading..."])
    page_with_text(lambda: next(texts, "Done"))
    result = CliRunner().invoke(
        cli, ["wait", "https://www.example.com", "--text", "Loading", "--disappear", "--timeout", "2"]
    )
    assert result.exit_code == 0
    assert "OK" in result.output


def test_cli_wait_until_text_on_real_browser(page_with_text):
    page_with_text("Example Domain")
    result = CliRunner().invoke(cli, ["wait", "https://www.example.com", "--text", "Example", "--timeout", "0.5"])
    assert result.exit_code == 0
    assert "OK  Example" in result.output
