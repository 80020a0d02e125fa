"""
Browser package
---------------
The Browser facade and the Playwright implementation of the document
protocols it resolves selectors against.
"""

from .browser import Browser, engine_for
from .document import PlaywrightDocument, PlaywrightElement

__all__ = [
    "Browser",
    "engine_for",
    "PlaywrightDocument",
    "PlaywrightElement",
]
