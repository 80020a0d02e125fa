# lazuli/errors.py
from __future__ import annotations

"""Error taxonomy
-----------------
Every failure raised by lazuli is a LazuliError carrying a message, the
reporting groups it belongs to and, where relevant, the settings that were
being processed, the underlying cause and a screenshot path.
"""

from pathlib import Path
from typing import Any, Optional, Sequence


class LazuliError(RuntimeError):
    """Base class for structured lazuli failures."""

    default_groups: tuple[str, ...] = ()

    def __init__(
        self,
        message: str,
        *,
        groups: Optional[Sequence[str]] = None,
        settings: Any = None,
        cause: Optional[BaseException] = None,
        screenshot: Optional[Path] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.groups = list(groups) if groups else list(self.default_groups)
        self.settings = settings
        self.cause = cause
        self.screenshot = screenshot
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict:
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "groups": self.groups,
            "cause": repr(self.cause) if self.cause is not None else None,
            "screenshot": str(self.screenshot) if self.screenshot else None,
        }


class NotFound(LazuliError):
    """Resolution produced no element where one was required."""
    default_groups = ("find",)


class WaitTimeout(LazuliError):
    """A wait expired without any descriptor being satisfied."""
    default_groups = ("wait",)


class InvalidRequest(LazuliError):
    """Malformed find settings or wait options."""
    default_groups = ("request",)


class UnsupportedOperation(LazuliError):
    """An operation was forwarded to a browser object that does not provide it."""
    default_groups = ("browser",)


class BrowserConfigError(LazuliError):
    """The requested browser cannot run on this platform."""
    default_groups = ("browser",)


__all__ = [
    "LazuliError",
    "NotFound",
    "WaitTimeout",
    "InvalidRequest",
    "UnsupportedOperation",
    "BrowserConfigError",
]
