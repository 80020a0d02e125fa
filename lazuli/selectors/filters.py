# lazuli/selectors/filters.py
from __future__ import annotations

"""Attribute filters
--------------------
Python-side matching of filter mappings such as {"class": re.compile("foo"),
"id": "bar"} against resolved elements. Used by the generic path resolver and
by document implementations for their native typed finders.
"""

import re
from typing import Any, Iterable, Mapping, Optional

from lazuli.dom import Element

# Keys that steer the query itself rather than filter its results
QUERY_KEYS = frozenset({"xpath", "index"})


def value_matches(actual: Optional[str], expected: Any) -> bool:
    """Pattern → search, anything else → string equality."""
    if actual is None:
        return False
    if isinstance(expected, re.Pattern):
        return expected.search(actual) is not None
    return actual == str(expected)


def content_matches(actual: Optional[str], expected: Any) -> bool:
    """Like value_matches, but a literal only needs to be contained."""
    if actual is None:
        return False
    if isinstance(expected, re.Pattern):
        return expected.search(actual) is not None
    return str(expected) in actual


def attribute_name(key: str) -> str:
    """Map python-friendly keys to HTML attribute names (data_id → data-id)."""
    if key.startswith(("data_", "aria_")):
        return key.replace("_", "-")
    if key == "class_name":
        return "class"
    return key


def element_matches(element: Element, filters: Mapping[str, Any]) -> bool:
    for key, expected in filters.items():
        if key in QUERY_KEYS:
            continue
        if key == "tag_name":
            tag = element.tag_name() or ""
            if isinstance(expected, re.Pattern):
                if not expected.search(tag):
                    return False
            elif tag.lower() != str(expected).lower():
                return False
        elif key == "text":
            if not value_matches((element.text() or "").strip(), expected):
                return False
        elif key == "html":
            if not content_matches(element.markup(), expected):
                return False
        else:
            name = attribute_name(key)
            actual = element.attribute(name)
            if name == "class" and not isinstance(expected, re.Pattern):
                # a literal class matches one token of the class list
                if str(expected) not in (actual or "").split():
                    return False
            elif not value_matches(actual, expected):
                return False
    return True


def apply_filters(elements: Iterable[Element], filters: Mapping[str, Any]) -> list[Element]:
    """Keep elements matching every filter, then honour an `index` key."""
    kept = [e for e in elements if element_matches(e, filters)]
    index = filters.get("index")
    if index is None:
        return kept
    index = int(index)
    if -len(kept) <= index < len(kept):
        return [kept[index]]
    return []


__all__ = ["value_matches", "content_matches", "attribute_name", "element_matches", "apply_filters", "QUERY_KEYS"]
