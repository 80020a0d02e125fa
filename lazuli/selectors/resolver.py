# lazuli/selectors/resolver.py
from __future__ import annotations

"""Selector resolution
----------------------
Resolves a SelectorSpec against a Document: like queries become XPath,
known element types go to the document's native finder, unknown tags fall
back to a generic XPath query with Python-side filtering. Pick policies
select a single element out of the result.
"""

import random
from typing import Callable, Optional, Sequence

from lazuli.dom import Document, Element
from lazuli.errors import NotFound
from lazuli.selectors.filters import apply_filters, value_matches
from lazuli.selectors.models import ElementType, PickPolicy, Pick, QueryKind, SelectorSpec
from lazuli.selectors.xpath import descendant_path, xp_contains, xp_literal, xp_or
from lazuli.utils.logger import get_logger

log = get_logger(__name__)

Finder = Callable[[SelectorSpec, Document, bool], list[Element]]


def like_xpath(spec: SelectorSpec) -> str:
    """XPath for a like query; relative to the context when one is set."""
    query = spec.like
    xpath = descendant_path(query.element, spec.has_context)
    if query.has_filter:
        node = "text()" if query.matches_text else f"@{query.attribute}"
        xpath = f"{xpath}[{xp_contains(node, query.include or '', '')}]"
    return xpath


def name_id_text_xpath(value: str, relative: bool) -> str:
    lit = xp_literal(value)
    cond = xp_or(f"@name={lit}", f"@id={lit}", f"text()={lit}")
    return f"{descendant_path('*', relative)}[{cond}]"


def group_for(spec: SelectorSpec) -> str:
    if spec.kind == QueryKind.like:
        return "find-by-like"
    if spec.uses_tag_name:
        return "find-by-tag"
    return "find-by-method"


class SelectorResolver:
    """
    Stateless apart from the random source used by pick="random".

    Usage:
        resolver = SelectorResolver()
        links = resolver.resolve(parse_single({"link": {"class": "nav"}}), document)
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()
        native: Finder = self._find_native
        self._type_finders: dict[ElementType, Finder] = {t: native for t in ElementType}

    # ---------- Resolution ----------

    def resolve(self, spec: SelectorSpec, document: Document) -> list[Element]:
        """
        All elements matching `spec`, filtered to present ones when
        `spec.only_present`.

        Raises:
            NotFound when the result is empty and `spec.error_on_miss`.
        """
        relative = spec.has_context
        root: Document = spec.context.as_document() if relative else document

        try:
            elements = self._dispatch(spec)(spec, root, relative)
        except NotFound:
            raise
        except Exception as e:
            if spec.error_on_miss:
                raise NotFound(
                    f"Incorrect settings for find: {spec.describe()} ({e})",
                    groups=spec.groups or [group_for(spec)],
                    settings=spec,
                    cause=e,
                ) from e
            log.debug(f"Find failed for {spec.describe()}: {e!r}")
            return []

        if spec.text_match is not None:
            elements = [e for e in elements if value_matches((e.text() or "").strip(), spec.text_match)]
        if spec.only_present:
            elements = [e for e in elements if _present(e)]

        if not elements and spec.error_on_miss:
            raise NotFound(
                f"Could not find element with settings: {spec.describe()}",
                groups=spec.groups or [group_for(spec)],
                settings=spec,
            )
        return elements

    def resolve_one(self, spec: SelectorSpec, document: Document) -> Optional[Element]:
        """Resolve and apply the pick policy. None on a miss without error_on_miss."""
        elements = self.resolve(spec, document)
        element = self.pick(elements, spec.pick)
        if element is None and spec.error_on_miss:
            raise NotFound(
                f"Could not find element with settings: {spec.describe()} (pick={_pick_name(spec.pick)})",
                groups=spec.groups or ["find"],
                settings=spec,
            )
        return element

    def pick(self, elements: Sequence[Element], policy: Pick = PickPolicy.first) -> Optional[Element]:
        if not elements:
            return None
        if policy == PickPolicy.last:
            return elements[-1]
        if policy == PickPolicy.random:
            return elements[self.rng.randrange(len(elements))]
        if isinstance(policy, int) and not isinstance(policy, PickPolicy):
            if -len(elements) <= policy < len(elements):
                return elements[policy]
            return None
        return elements[0]

    def shuffled(self, elements: Sequence[Element]) -> list[Element]:
        out = list(elements)
        self.rng.shuffle(out)
        return out

    # ---------- Finders ----------

    def _dispatch(self, spec: SelectorSpec) -> Finder:
        if spec.kind == QueryKind.like:
            return self._find_like
        etype = spec.element_type
        if etype is None:
            return self._find_by_path
        return self._type_finders[etype]

    def _find_like(self, spec: SelectorSpec, root: Document, relative: bool) -> list[Element]:
        return list(root.query_by_path(like_xpath(spec)))

    def _find_native(self, spec: SelectorSpec, root: Document, relative: bool) -> list[Element]:
        filters = dict(spec.filters)
        if spec.value is not None:
            filters = {"xpath": name_id_text_xpath(spec.value, relative)}
        elif relative and "xpath" not in filters:
            tag = filters.get("tag_name")
            filters["xpath"] = descendant_path(tag if isinstance(tag, str) else "*", True)
        return list(root.query_by_type(spec.element, filters))

    def _find_by_path(self, spec: SelectorSpec, root: Document, relative: bool) -> list[Element]:
        if spec.value is not None:
            lit = xp_literal(spec.value)
            cond = xp_or(f"@name={lit}", f"@id={lit}", f"text()={lit}")
            xpath = f"{descendant_path(spec.element, relative)}[{cond}]"
        else:
            xpath = spec.filters.get("xpath") or descendant_path(spec.element, relative)
        return apply_filters(root.query_by_path(xpath), spec.filters)


def _present(element: Element) -> bool:
    try:
        return bool(element.is_present())
    except Exception:
        return False


def _pick_name(policy: Pick) -> str:
    return policy.value if isinstance(policy, PickPolicy) else str(policy)


__all__ = ["SelectorResolver", "like_xpath", "name_id_text_xpath", "group_for"]
