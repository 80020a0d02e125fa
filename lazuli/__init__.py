"""
lazuli
------
Browser helpers for behaviour-driven acceptance tests: declarative element
finders, multi-element waits, screenshots and error reporting on top of
Playwright.
"""

from lazuli.browser import Browser
from lazuli.errors import InvalidRequest, LazuliError, NotFound, WaitTimeout
from lazuli.selectors import Tag, like
from lazuli.world import World

__version__ = "0.4.0"

__all__ = [
    "Browser",
    "World",
    "Tag",
    "like",
    "LazuliError",
    "NotFound",
    "WaitTimeout",
    "InvalidRequest",
    "__version__",
]
