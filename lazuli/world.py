# lazuli/world.py
from __future__ import annotations

"""World
--------
Per test-run state shared by step definitions: settings and config lookup,
the current scenario's identity and start time, the lazily started browser,
and the error reporting hook.
"""

import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence

from lazuli.errors import LazuliError
from lazuli.utils.config import Settings, get_settings, load_config_file
from lazuli.utils.logger import bind, get_logger, log_with_context, unbind

_MISSING: Any = object()


@dataclass
class Scenario:
    name: str
    feature: str = ""
    last_in_feature: bool = False
    started: datetime = field(default_factory=datetime.now)
    check_browser_errors: bool = True
    storage: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        """File-name friendly scenario identifier."""
        ident = re.sub(r"[^\w\-]+", "_", f"{self.feature}-{self.name}" if self.feature else self.name)
        return re.sub(r"_+", "_", ident).strip("_").lower()

    @property
    def time(self) -> dict[str, Any]:
        return {
            "timestamp": self.started.strftime("%y%m%d_%H%M%S"),
            "iso_short": self.started.strftime("%y%m%dT%H%M%S"),
            "epoch": int(self.started.timestamp()),
        }


class World:
    """
    Usage from a step module:

        world = World()
        world.start_scenario("Login works", feature="account")
        world.browser.goto("https://www.example.com")
        world.browser.find({"like": ("a", "href", "account/login")})
        world.end_scenario()
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.log = get_logger(__name__)
        self._config: dict[str, Any] = load_config_file(self.settings.CONFIG_FILE)
        self._browser: Any = None
        self.scenario = Scenario(name="default")

    # ---------- Configuration ----------

    def config(self, key: str, default: Any = _MISSING) -> Any:
        """
        Value from the YAML config file; dotted keys walk nested mappings
        ("timeouts.login"). Falls back to the Settings field of the same
        (upper-cased) name.
        """
        node: Any = self._config
        for part in key.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                node = _MISSING
                break
        if node is not _MISSING:
            return node

        attr = key.replace(".", "_").upper()
        if attr in Settings.model_fields:
            return getattr(self.settings, attr)
        if default is _MISSING:
            raise KeyError(f"No configuration value for '{key}'")
        return default

    def has_config(self, key: str) -> bool:
        return self.config(key, None) is not None

    def env(self, key: str, default: Any = None) -> Any:
        return os.environ.get(key.replace(".", "_").upper(), default)

    def env_or_config(self, key: str, default: Any = None) -> Any:
        value = self.env(key)
        if value is not None:
            return value
        return self.config(key, default)

    def has_env_or_config(self, key: str) -> bool:
        return self.env_or_config(key) is not None

    # ---------- Browser ----------

    @property
    def browser(self):
        """The current browser, started on first use."""
        if self._browser is None:
            from lazuli.browser import Browser  # circular import
            self._browser = Browser(self)
        return self._browser

    @browser.setter
    def browser(self, value: Any) -> None:
        self._browser = value

    @property
    def has_browser(self) -> bool:
        return self._browser is not None

    # ---------- Scenario lifecycle ----------

    def start_scenario(self, name: str, feature: str = "", last_in_feature: bool = False) -> Scenario:
        self.scenario = Scenario(name=name, feature=feature, last_in_feature=last_in_feature)
        bind(scenario=self.scenario.name, scenario_id=self.scenario.id)
        self.log.debug(f"Starting scenario: {name}")
        return self.scenario

    def end_scenario(self) -> None:
        """
        Fail on page errors (unless the scenario opted out) and apply the
        close-browser policy.
        """
        try:
            if self.has_browser and self.scenario.check_browser_errors and self._browser.has_error():
                self.error("Page has errors", groups=["error"])
        finally:
            if self.has_browser:
                self._browser.close_after_scenario(self.scenario)
            unbind("scenario", "scenario_id")

    # ---------- Errors ----------

    def report(self, err: LazuliError | BaseException) -> BaseException:
        """Log a failure with its groups and hand it back for raising."""
        groups = getattr(err, "groups", None) or []
        log = log_with_context(self.log, groups=groups)
        log.error(f"{err}")
        return err

    def error(
        self,
        message: str,
        *,
        groups: Optional[Sequence[str]] = None,
        exception: Optional[BaseException] = None,
        screenshot: Optional[bool] = None,
        settings: Any = None,
        error_class: type[LazuliError] = LazuliError,
    ) -> None:
        """
        Report a test failure and raise it. Takes a screenshot first when
        asked to, or by default when SCREENSHOT_ON_FAILURE is set and a
        browser is open.
        """
        take = self.settings.SCREENSHOT_ON_FAILURE if screenshot is None else screenshot
        shot = None
        if take and self.has_browser:
            shot = self._browser.take_screenshot("error")
        err = error_class(message, groups=groups, cause=exception, screenshot=shot, settings=settings)
        raise self.report(err)


__all__ = ["World", "Scenario"]
