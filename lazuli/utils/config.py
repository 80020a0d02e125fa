# lazuli/utils/config.py
from __future__ import annotations

import functools
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------- Enums ----------

class BrowserName(str, Enum):
    firefox = "firefox"
    chrome = "chrome"
    chromium = "chromium"
    safari = "safari"
    webkit = "webkit"
    ie = "ie"
    ios = "ios"


class ScreenshotScheme(str, Enum):
    old = "old"
    new = "new"


class CloseBrowserAfter(str, Enum):
    feature = "feature"
    scenario = "scenario"
    never = "never"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ---------- Settings ----------

class Settings(BaseSettings):
    """
    Central configuration for lazuli.

    Values load in this order of precedence:
      1) Environment variables
      2) .env file in project root
      3) Defaults below

    Keys that are not declared here (project specific values used by step
    definitions) are looked up in the optional YAML file named by CONFIG_FILE,
    see `World.env_or_config`.
    """

    # ---- Browser ----
    BROWSER: BrowserName = Field(default=BrowserName.firefox, description="Browser to start when none is requested")
    HEADLESS: bool = Field(default=True)
    SLOW_MO: int = Field(default=0, ge=0, description="Slow down actions (ms) for debugging")
    VIEWPORT_WIDTH: int = Field(default=1366, ge=320, le=7680)
    VIEWPORT_HEIGHT: int = Field(default=768, ge=320, le=4320)
    PAGE_LOAD_TIMEOUT: int = Field(default=60000, ge=1000)
    CLOSE_BROWSER_AFTER: CloseBrowserAfter = Field(default=CloseBrowserAfter.feature)

    # ---- Waiting ----
    WAIT_TIMEOUT: int = Field(default=10, ge=0, description="Default wait timeout in seconds")
    POLL_INTERVAL_MS: int = Field(default=100, ge=1)

    # ---- Screenshots ----
    SCREENSHOT_DIR: Path = Field(default=Path("./screenshots"))
    SCREENSHOT_SCHEME: ScreenshotScheme = Field(default=ScreenshotScheme.old)
    SCREENSHOT_ON_FAILURE: bool = Field(default=True)
    FULL_PAGE_SCREENSHOT: bool = Field(default=True)

    # ---- Page error detection ----
    ERROR_STRINGS: list[str] = Field(default_factory=list, description="Strings whose presence in the HTML marks an error page")

    # ---- Extra configuration file ----
    CONFIG_FILE: Optional[Path] = Field(default=None, description="YAML file with project specific settings")

    # ---- Logging ----
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO)
    LOG_TO_FILE: bool = Field(default=False)
    LOG_FILE: Path = Field(default=Path("./lazuli.log"))
    COLORIZED_OUTPUT: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("SCREENSHOT_DIR", "LOG_FILE", mode="after")
    @classmethod
    def _absolutize(cls, v: Path):
        return v if v.is_absolute() else Path.cwd() / v

    @field_validator("BROWSER", mode="before")
    @classmethod
    def _lower_browser(cls, v):
        return v.lower() if isinstance(v, str) else v

    def playwright_launch_kwargs(self) -> dict:
        return {"headless": self.HEADLESS, "slow_mo": self.SLOW_MO}

    def playwright_context_kwargs(self) -> dict:
        return {"viewport": {"width": self.VIEWPORT_WIDTH, "height": self.VIEWPORT_HEIGHT}}


# --------- Public accessor (memoized) ---------

@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache settings once per process.
    Call `get_settings.cache_clear()` if you need to reload after changing env.
    """
    return Settings()


def load_config_file(path: Optional[Path]) -> dict[str, Any]:
    """Read the optional YAML config file; a missing path yields an empty mapping."""
    if path is None:
        return {}
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {p}")
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as ye:
        raise ValueError(f"YAML parse error in {p}: {ye}") from ye
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {p} must define a mapping at the top level.")
    return data
