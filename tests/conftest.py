from typing import Any, Callable, Mapping, Optional

import pytest

from lazuli.selectors.filters import apply_filters
from lazuli.utils.config import get_settings


class FakeElement:
    """In-memory element; `visible` may be a bool or a zero-arg callable."""

    def __init__(
        self,
        tag: str = "div",
        text: str = "",
        attrs: Optional[dict] = None,
        visible: Any = True,
        attached: bool = True,
        html: Optional[str] = None,
        children: Optional["FakeDocument"] = None,
        enabled: bool = True,
    ):
        self.tag = tag
        self._text = text
        self.attrs = attrs or {}
        self.visible = visible
        self.attached = attached
        self._html = html
        self.children = children or FakeDocument()
        self.enabled = enabled

    def is_present(self) -> bool:
        return bool(self.visible() if callable(self.visible) else self.visible)

    def exists(self) -> bool:
        return self.attached

    def text(self) -> str:
        return self._text

    def markup(self) -> str:
        if self._html is not None:
            return self._html
        return f"<{self.tag}>{self._text}</{self.tag}>"

    def attribute(self, name: str) -> Optional[str]:
        return self.attrs.get(name)

    def tag_name(self) -> str:
        return self.tag

    def as_document(self) -> "FakeDocument":
        return self.children

    def is_enabled(self) -> bool:
        return self.enabled

    def __repr__(self) -> str:
        return f"FakeElement({self.tag!r}, {self._text!r})"


class FakeDocument:
    """
    Answers path queries from `by_path` (exact xpath → elements) and typed
    queries from `by_type` (type name → elements, then attribute filters).
    Every query is recorded in `queries`.
    """

    def __init__(
        self,
        by_path: Optional[Mapping[str, list]] = None,
        by_type: Optional[Mapping[str, list]] = None,
        text: str = "",
        html: str = "",
        fail_with: Optional[Exception] = None,
    ):
        self.by_path = dict(by_path or {})
        self.by_type = dict(by_type or {})
        self._text = text
        self._html = html
        self.fail_with = fail_with
        self.queries: list = []

    def query_by_path(self, path: str) -> list:
        self.queries.append(("path", path))
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.by_path.get(path, []))

    def query_by_type(self, type_name: str, filters: Mapping[str, Any]) -> list:
        self.queries.append(("type", type_name, dict(filters)))
        if self.fail_with is not None:
            raise self.fail_with
        return apply_filters(self.by_type.get(type_name, []), filters)

    def text(self) -> str:
        return self._text() if callable(self._text) else self._text

    def markup(self) -> str:
        return self._html


def appears_after(calls: int) -> Callable[[], bool]:
    """Visibility that turns true on the `calls`-th check."""
    state = {"n": 0}

    def visible() -> bool:
        state["n"] += 1
        return state["n"] >= calls

    return visible


def disappears_after(calls: int) -> Callable[[], bool]:
    state = {"n": 0}

    def visible() -> bool:
        state["n"] += 1
        return state["n"] < calls

    return visible


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Fresh settings per test, resolved against an empty working directory."""
    monkeypatch.chdir(tmp_path)
    for var in ("BROWSER", "CONFIG_FILE", "ERROR_STRINGS", "CLOSE_BROWSER_AFTER", "SCREENSHOT_DIR", "SCREENSHOT_SCHEME"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
