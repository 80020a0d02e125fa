# lazuli/browser/browser.py
from __future__ import annotations

"""Browser facade
-----------------
The object step definitions talk to: starts and stops a Playwright browser,
finds elements from loose settings, waits for one or many elements, inspects
the page for errors and takes screenshots.
"""

import copy
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator, Mapping, Optional

from playwright.sync_api import Browser as PWBrowser
from playwright.sync_api import BrowserContext, Page, Playwright, sync_playwright

from lazuli.browser.document import PlaywrightDocument
from lazuli.capture.screenshot import ScreenshotManager
from lazuli.core.engine import WaitEngine
from lazuli.core.wait_request import DEFAULT_TIMEOUT, WaitOutcome, build_wait_request
from lazuli.dom import Element
from lazuli.errors import BrowserConfigError, InvalidRequest, NotFound, UnsupportedOperation
from lazuli.selectors.models import SelectorSpec
from lazuli.selectors.parse import parse_find_settings, parse_single
from lazuli.selectors.resolver import SelectorResolver
from lazuli.utils.config import CloseBrowserAfter, ScreenshotScheme
from lazuli.utils.logger import get_logger

if TYPE_CHECKING:
    from lazuli.world import Scenario, World

_UNSET: Any = object()

# Options `wait` takes out of its settings before the rest becomes the descriptor
_WAIT_OPTIONS = ("timeout", "condition", "groups", "screenshot")

_JS_ERRORS = """() => {
  try { return lapis_lazuli.errors; } catch (err) { return null; }
}"""

_HTTP_STATUS = """() => {
  try { return lapis_lazuli.http.statusCode; } catch (err) { return null; }
}"""


def _string_list(raw: str) -> list[str]:
    """
    An env value for a list setting: a JSON array as pydantic-settings reads
    it ('["Oops", "500"]'), otherwise the whole string as one entry.
    """
    text = raw.strip()
    if text.startswith("["):
        try:
            value = json.loads(text)
        except json.JSONDecodeError:
            return [raw]
        if isinstance(value, list):
            return [str(v) for v in value]
    return [raw]


def engine_for(browser_wanted: Any) -> tuple[str, dict]:
    """
    Map a browser name to a Playwright engine plus launch extras.

    Raises:
        BrowserConfigError for ie off Windows and ios off macOS.
    """
    name = str(browser_wanted or "firefox").lower()
    if name in ("chrome", "chromium"):
        return "chromium", {}
    if name in ("safari", "webkit"):
        return "webkit", {}
    if name == "ie":
        if not sys.platform.startswith(("win", "cygwin")):
            raise BrowserConfigError("You can't run IE tests on non-Windows machine")
        return "chromium", {"channel": "msedge"}
    if name == "ios":
        if sys.platform != "darwin":
            raise BrowserConfigError("You can't run IOS tests on non-mac machine")
        return "webkit", {"device": "iPhone 13"}
    return "firefox", {}


class Browser:
    """
    Wraps one Playwright page.

    Pass `page=` to wrap a page owned by someone else; otherwise a browser is
    launched from `browser_wanted` (or the BROWSER setting) and the launch
    options, which are kept for `restart()`.
    """

    def __init__(
        self,
        world: "World",
        browser_wanted: Any = _UNSET,
        optional_data: Any = _UNSET,
        *,
        page: Optional[Page] = None,
        resolver: Optional[SelectorResolver] = None,
    ) -> None:
        self.world = world
        self.log = get_logger(__name__)
        self.resolver = resolver or SelectorResolver()
        self.engine = WaitEngine(self.resolver, interval_ms=world.settings.POLL_INTERVAL_MS)

        self._cached_browser_wanted: Any = None
        self._cached_optional_data: Optional[dict] = None
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[PWBrowser] = None
        self._context: Optional[BrowserContext] = None

        if page is not None:
            self.page = page
        else:
            self.page = self.init(browser_wanted, optional_data)

    # ---------- Lifecycle ----------

    def init(self, browser_wanted: Any = _UNSET, optional_data: Any = _UNSET) -> Page:
        """
        Start a browser. Arguments left out fall back to the ones cached by a
        previous call, so a restart reuses the original configuration.
        """
        if optional_data is _UNSET:
            optional_data = copy.deepcopy(self._cached_optional_data) if self._cached_optional_data else {}
        elif optional_data is None:
            optional_data = {}
        else:
            # snapshot: callers may keep mutating their dict
            self._cached_optional_data = copy.deepcopy(dict(optional_data))
            optional_data = copy.deepcopy(self._cached_optional_data)

        if browser_wanted is _UNSET:
            browser_wanted = self._cached_browser_wanted
        else:
            self._cached_browser_wanted = browser_wanted

        return self.create(browser_wanted, optional_data)

    def create(self, browser_wanted: Any = None, optional_data: Optional[dict] = None) -> Page:
        s = self.world.settings
        if browser_wanted is None:
            browser_wanted = self.world.env_or_config("browser", s.BROWSER.value)
        engine, extras = engine_for(getattr(browser_wanted, "value", browser_wanted))

        launch_kwargs = s.playwright_launch_kwargs()
        context_kwargs = s.playwright_context_kwargs()
        device = extras.pop("device", None)
        launch_kwargs.update(extras)
        launch_kwargs.update(optional_data or {})

        self._playwright = sync_playwright().start()
        if device:
            context_kwargs.update(self._playwright.devices[device])
        self._browser = getattr(self._playwright, engine).launch(**launch_kwargs)
        self._context = self._browser.new_context(**context_kwargs)
        page = self._context.new_page()
        page.set_default_timeout(s.PAGE_LOAD_TIMEOUT)
        self.log.debug(f"Started {engine} browser ({browser_wanted})")
        return page

    def restart(self) -> None:
        self.log.debug("Restarting browser")
        self._shutdown()
        self.page = self.init()

    def close(self) -> None:
        """Close the browser and tell the world a new one is needed next time."""
        self.log.debug("Closing browser")
        self._shutdown()
        self.world.browser = None

    def quit(self) -> None:
        self.close()

    def _shutdown(self) -> None:
        if self._context is not None:
            self._context.close()
        if self._browser is not None:
            self._browser.close()
        if self._playwright is not None:
            self._playwright.stop()
        self._context = self._browser = self._playwright = None

    def close_after_scenario(self, scenario: "Scenario") -> None:
        """
        Close according to CLOSE_BROWSER_AFTER: every scenario, never, or
        (default) after the last scenario of a feature.
        """
        policy = CloseBrowserAfter(
            self.world.env_or_config("close_browser_after", self.world.settings.CLOSE_BROWSER_AFTER.value)
        )
        if policy == CloseBrowserAfter.scenario:
            self.close()
        elif policy == CloseBrowserAfter.feature and scenario.last_in_feature:
            self.close()

    # ---------- Finding ----------

    @property
    def document(self) -> PlaywrightDocument:
        return PlaywrightDocument(self.page)

    def find_all(self, settings: Any) -> list[Element]:
        """
        Every element matching the settings, visible or not. Never raises
        for an empty result.

        Examples:
            find_all({"like": ("a", "href", "account/login")})
            find_all({"text_field": {"name": "test"}})
            find_all({"text_field": "test"})   # name, id or text
            find_all({"tag_name": "a", "text": re.compile("foo")})
        """
        spec = self._single(settings)
        return self.resolver.resolve(spec.model_copy(update={"only_present": False, "error_on_miss": False}), self.document)

    def find_all_present(self, settings: Any) -> list[Element]:
        spec = self._single(settings)
        return self.resolver.resolve(spec.model_copy(update={"only_present": True, "error_on_miss": False}), self.document)

    def find_randomized(self, settings: Any) -> Iterator[Element]:
        """
        Iterator over the matches in random order; next() raises
        StopIteration once every element was handed out.
        """
        spec = self._single(settings)
        found = self.find_all_present(spec) if spec.only_present else self.find_all(spec)
        return iter(self.resolver.shuffled(found))

    def find(self, settings: Any) -> Optional[Element]:
        """
        The first present element (or the one chosen by `pick`). Lists are
        alternatives: misses are only reported for the last one.

        Raises:
            NotFound unless the settings carry error=False.
        """
        parsed = parse_find_settings(settings)
        if isinstance(parsed, list):
            result = None
            for i, spec in enumerate(parsed):
                if i != len(parsed) - 1:
                    spec = spec.model_copy(update={"error_on_miss": False})
                result = self._find_one(spec)
                if result is not None:
                    break
            return result
        return self._find_one(parsed)

    def _find_one(self, spec: SelectorSpec) -> Optional[Element]:
        try:
            return self.resolver.resolve_one(spec, self.document)
        except NotFound as e:
            raise self.world.report(e)

    def _single(self, settings: Any) -> SelectorSpec:
        try:
            return parse_single(settings)
        except InvalidRequest as e:
            raise self.world.report(e)

    # ---------- Waiting ----------

    def wait_multiple(self, *args: Any, **options: Any) -> list[Element]:
        """
        Wait for several elements, each given as find settings plus:
          wait_for - element check to wait for ("present" by default, or
                     "exists", another element method, or a callable)
          text     - literal or pattern the element text (or HTML) must match
          html     - same as text

        Options (keywords, or a single mapping holding them plus "list"):
          timeout   - seconds, default 10
          operator  - "one_of" (default) or "all_of"
          condition - "until" (default) or "while"
          screenshot - capture a screenshot when the wait fails

        Returns the elements satisfied after the wait, in the given order.

        Raises:
            WaitTimeout when the wait timed out and nothing is satisfied.
        """
        return self.wait_outcome(*args, **options).matched

    def wait_outcome(self, *args: Any, **options: Any) -> WaitOutcome:
        """`wait_multiple`, but returns the full outcome including `timed_out`."""
        request = build_wait_request(*args, **options)
        try:
            return self.engine.wait_for(request, self.document, screenshot=self._timeout_screenshot)
        except Exception as e:
            raise self.world.report(e)

    def wait(self, settings: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Optional[Element]:
        """
        Single element wait.

        Examples:
            wait(timeout=5, text="Hello World")
            wait(timeout=5, text=re.compile("hello world", re.I))
            wait(timeout=10, html="<span>", condition="while")
        """
        settings = dict(settings or {})
        settings.update(kwargs)
        options = {k: settings.pop(k) for k in _WAIT_OPTIONS if k in settings}
        options.setdefault("timeout", DEFAULT_TIMEOUT)
        elems = self.wait_multiple(list=[settings], **options)
        return elems[0] if elems else None

    def _timeout_screenshot(self) -> Optional[Path]:
        return self.take_screenshot("timeout")

    # ---------- Page errors ----------

    def has_error(self) -> bool:
        """Configured error strings in the HTML, page-side JS errors, or an HTTP status above 299."""
        errors: list[Any] = list(self.get_html_errors())
        js_errors = self.get_js_errors()
        if js_errors:
            errors.extend(js_errors)

        status = self.get_http_status()
        if errors or (status is not None and int(status) > 299):
            for error in errors:
                if isinstance(error, dict):
                    self.log.debug(
                        f"{error.get('message')} {error.get('url')} {error.get('line')} "
                        f"{error.get('column')}\n{error.get('stack')}"
                    )
                else:
                    self.log.debug(f"{error}")
            return True
        return False

    def get_html_errors(self) -> list[str]:
        error_strings = self.world.env_or_config("error_strings", self.world.settings.ERROR_STRINGS)
        if not error_strings:
            return []
        if isinstance(error_strings, str):
            error_strings = _string_list(error_strings)
        try:
            page_text = self.page.content()
        except Exception as err:
            self.log.debug(f"Cannot read the html for page {self.page.url}: {err}")
            return []
        return [error for error in error_strings if error in page_text]

    def get_js_errors(self) -> Optional[list]:
        return self.page.evaluate(_JS_ERRORS)

    def get_http_status(self) -> Optional[int]:
        return self.page.evaluate(_HTTP_STATUS)

    # ---------- Screenshots ----------

    def screenshots(self) -> ScreenshotManager:
        s = self.world.settings
        return ScreenshotManager(
            Path(self.world.env_or_config("screenshot_dir", s.SCREENSHOT_DIR)),
            ScreenshotScheme(self.world.env_or_config("screenshot_scheme", s.SCREENSHOT_SCHEME.value)),
            full_page=s.FULL_PAGE_SCREENSHOT,
        )

    def screenshot_name(self, suffix: str = "") -> Path:
        """The path take_screenshot would write to right now."""
        return self.screenshots().name_for(self.world.scenario, suffix)

    def take_screenshot(self, suffix: str = "") -> Optional[Path]:
        result = self.screenshots().capture(self.page, self.world.scenario, suffix)
        return result.path if result else None

    # ---------- Delegation ----------

    def forward(self, operation: str, *args: Any, **kwargs: Any) -> Any:
        """
        Run a Playwright page operation by name, e.g.
        forward("goto", "https://www.example.com") or forward("url").

        Raises:
            UnsupportedOperation when the page has no such attribute.
        """
        if operation.startswith("_") or not hasattr(self.page, operation):
            raise self.world.report(
                UnsupportedOperation(f"Browser Method Missing: {operation}", settings=operation)
            )
        target = getattr(self.page, operation)
        if callable(target):
            return target(*args, **kwargs)
        if args or kwargs:
            raise self.world.report(
                UnsupportedOperation(f"Browser attribute {operation} takes no arguments", settings=operation)
            )
        return target

    def goto(self, url: str, **kwargs: Any) -> Any:
        return self.page.goto(url, **kwargs)

    @property
    def url(self) -> str:
        return self.page.url


__all__ = ["Browser", "engine_for"]
