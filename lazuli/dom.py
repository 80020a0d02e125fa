# lazuli/dom.py
from __future__ import annotations

"""Document and element protocols
---------------------------------
The narrow surface the selector resolver and wait engine need from a browser.
`lazuli.browser.document` implements it over Playwright; tests implement it
with in-memory fakes.
"""

from typing import Any, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class Element(Protocol):
    def is_present(self) -> bool:
        """Exists in the DOM and is visible."""
        ...

    def exists(self) -> bool:
        ...

    def text(self) -> str:
        ...

    def markup(self) -> str:
        ...

    def attribute(self, name: str) -> Optional[str]:
        ...

    def tag_name(self) -> str:
        ...

    def as_document(self) -> "Document":
        """A document rooted at this element, used for context scoped queries."""
        ...


@runtime_checkable
class Document(Protocol):
    def query_by_path(self, path: str) -> list[Element]:
        ...

    def query_by_type(self, type_name: str, filters: Mapping[str, Any]) -> list[Element]:
        ...

    def text(self) -> str:
        ...

    def markup(self) -> str:
        ...


__all__ = ["Element", "Document"]
