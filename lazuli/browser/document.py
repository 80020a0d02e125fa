# lazuli/browser/document.py
from __future__ import annotations

"""Playwright documents
-----------------------
Implements the Document/Element protocols over a Playwright Page or
Locator. Every query goes through XPath; attribute filters are applied in
Python so patterns work the same as for the generic resolver.
"""

from typing import Any, Mapping, Optional, Union

from playwright.sync_api import Locator, Page

from lazuli.errors import InvalidRequest
from lazuli.selectors.filters import apply_filters
from lazuli.selectors.models import ElementType

Root = Union[Page, Locator]


class PlaywrightElement:
    """One DOM node, addressed by a Playwright Locator."""

    def __init__(self, locator: Locator, page: Page) -> None:
        self.locator = locator
        self.page = page

    def is_present(self) -> bool:
        return self.locator.is_visible()

    def exists(self) -> bool:
        return self.locator.count() > 0

    def text(self) -> str:
        return self.locator.inner_text()

    def markup(self) -> str:
        return self.locator.evaluate("e => e.outerHTML")

    def attribute(self, name: str) -> Optional[str]:
        return self.locator.get_attribute(name)

    def tag_name(self) -> str:
        return self.locator.evaluate("e => e.tagName.toLowerCase()")

    def as_document(self) -> "PlaywrightDocument":
        return PlaywrightDocument(self.locator, self.page)

    # convenience passthroughs used by step definitions
    def click(self, **kwargs: Any) -> None:
        self.locator.click(**kwargs)

    def fill(self, value: str, **kwargs: Any) -> None:
        self.locator.fill(value, **kwargs)

    def is_enabled(self) -> bool:
        return self.locator.is_enabled()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PlaywrightElement):
            return NotImplemented
        if other.locator is self.locator:
            return True
        try:
            mine = self.locator.element_handle(timeout=0)
            theirs = other.locator.element_handle(timeout=0)
            return bool(self.page.evaluate("([a, b]) => a === b", [mine, theirs]))
        except Exception:
            return False

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"PlaywrightElement({self.locator!r})"


class PlaywrightDocument:
    """
    A page, or the subtree below a locator when used as a find context.
    """

    def __init__(self, root: Root, page: Optional[Page] = None) -> None:
        self.root = root
        self.page: Page = page if page is not None else root  # type: ignore[assignment]
        self.scoped = page is not None and root is not page

    def query_by_path(self, path: str) -> list[PlaywrightElement]:
        loc = self.root.locator(f"xpath={path}")
        return [PlaywrightElement(item, self.page) for item in loc.all()]

    def query_by_type(self, type_name: str, filters: Mapping[str, Any]) -> list[PlaywrightElement]:
        etype = ElementType.lookup(type_name)
        if etype is None:
            raise InvalidRequest(f"Unknown element type '{type_name}'", groups=["find-by-method"], settings=filters)

        tag = filters.get("tag_name")
        tag = tag if isinstance(tag, str) else None
        base = filters.get("xpath")
        if base:
            xpath = f"({base})[{etype.predicate}]"
        else:
            xpath = f"{'.' if self.scoped else ''}//{tag or '*'}[{etype.predicate}]"
        return apply_filters(self.query_by_path(xpath), filters)

    def text(self) -> str:
        if self.scoped:
            return self.root.inner_text()
        return self.page.inner_text("body")

    def markup(self) -> str:
        if self.scoped:
            return self.root.evaluate("e => e.outerHTML")
        return self.page.content()


__all__ = ["PlaywrightElement", "PlaywrightDocument"]
