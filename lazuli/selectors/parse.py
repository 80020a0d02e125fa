# lazuli/selectors/parse.py
from __future__ import annotations

"""Find settings normalization
------------------------------
Turns the loose settings accepted by `find`/`find_all` into SelectorSpec
objects:

    "login"                              → element named/id'd/texted "login"
    Tag("a")                             → like query on <a>
    ["a", Tag("button")]                 → alternatives, tried in order
    {"like": ("a", "href", "login")}     → like query, positional form
    {"text_field": {"name": "q"}}        → typed query with filters
    {"tag_name": "span", "class": re}    → typed query on any tag
"""

from collections.abc import Mapping, Sequence
from typing import Any, Union

from pydantic import ValidationError

from lazuli.errors import InvalidRequest
from lazuli.selectors.models import ElementType, LikeQuery, QueryKind, SelectorSpec, Tag

# Settings keys that configure the find rather than describe the element
OPTION_KEYS = ("context", "present", "pick", "error", "groups", "message")

Parsed = Union[SelectorSpec, list[SelectorSpec]]


def parse_find_settings(settings: Any) -> Parsed:
    """
    Normalize find settings. Lists become a list of specs (alternatives);
    everything else becomes a single SelectorSpec.

    Raises:
        InvalidRequest for settings that describe no element.
    """
    if isinstance(settings, SelectorSpec):
        return settings
    if isinstance(settings, Tag):
        return _from_mapping({"like": settings})
    if isinstance(settings, ElementType):
        return _from_mapping({settings.value: {}})
    if isinstance(settings, str):
        return _from_mapping({"element": settings})
    if isinstance(settings, Mapping):
        return _from_mapping(settings)
    if isinstance(settings, Sequence):
        if not settings:
            raise InvalidRequest("Empty list of find alternatives", groups=["find"], settings=settings)
        specs: list[SelectorSpec] = []
        for item in settings:
            parsed = parse_find_settings(item)
            if isinstance(parsed, list):
                specs.extend(parsed)
            else:
                specs.append(parsed)
        return specs
    raise InvalidRequest(f"Incorrect settings for find: {settings!r}", groups=["find"], settings=settings)


def parse_single(settings: Any) -> SelectorSpec:
    parsed = parse_find_settings(settings)
    if isinstance(parsed, list):
        raise InvalidRequest("A list of alternatives is not allowed here", groups=["find"], settings=settings)
    return parsed


def parse_like(like_opts: Any) -> LikeQuery:
    """Accepts a mapping, a (element, attribute, include) triple or a bare tag."""
    if isinstance(like_opts, LikeQuery):
        return like_opts
    if isinstance(like_opts, Mapping):
        if "element" not in like_opts:
            raise InvalidRequest("Incorrect settings for find", groups=["find-by-like"], settings=like_opts)
        return LikeQuery(
            element=like_opts["element"],
            attribute=like_opts.get("attribute"),
            include=like_opts.get("include"),
        )
    if isinstance(like_opts, str):
        return LikeQuery(element=like_opts)
    if isinstance(like_opts, Sequence) and len(like_opts) == 3:
        element, attribute, include = like_opts
        return LikeQuery(element=element, attribute=attribute, include=include)
    raise InvalidRequest("Incorrect settings for find", groups=["find-by-like"], settings=like_opts)


def _from_mapping(settings: Mapping[str, Any]) -> SelectorSpec:
    opts = {str(k): v for k, v in settings.items()}

    common: dict[str, Any] = {
        "context": opts.pop("context", None),
        "only_present": _flag(opts.pop("present", True)),
        "pick": opts.pop("pick", None),
        "error_on_miss": _flag(opts.pop("error", True)),
        "groups": _groups(opts.pop("groups", None)),
    }
    opts.pop("message", None)

    try:
        if "like" in opts:
            query = parse_like(opts.pop("like"))
            return SelectorSpec(kind=QueryKind.like, element=query.element, like=query, **common)

        if "tag_name" in opts:
            text = opts.pop("text", None)
            return SelectorSpec(
                kind=QueryKind.typed,
                element=ElementType.element.value,
                filters=opts,
                text_match=text,
                **common,
            )

        if not opts:
            raise InvalidRequest(f"Incorrect settings for find {dict(settings)!r}", groups=["find"], settings=settings)
        if len(opts) > 1:
            raise InvalidRequest(
                f"Find settings name more than one element type: {sorted(opts)}",
                groups=["find"],
                settings=settings,
            )

        key, value = next(iter(opts.items()))
        etype = ElementType.lookup(key)
        kind = QueryKind.typed if etype is not None else QueryKind.path
        element = etype.value if etype is not None else key.strip()

        if isinstance(value, Mapping):
            filters = dict(value)
            text = filters.pop("text", None)
            return SelectorSpec(kind=kind, element=element, filters=filters, text_match=text, **common)
        if value is None:
            return SelectorSpec(kind=kind, element=element, **common)
        return SelectorSpec(kind=kind, element=element, value=str(value), **common)
    except ValidationError as ve:
        lines = ["Incorrect settings for find:"]
        for e in ve.errors():
            loc = ".".join(str(p) for p in e.get("loc", []))
            lines.append(f"  - {loc}: {e.get('msg', 'invalid value')}")
        raise InvalidRequest("\n".join(lines), groups=["find"], settings=settings, cause=ve) from ve


def _flag(v: Any) -> bool:
    return bool(v) if v is not None else True


def _groups(v: Any) -> Any:
    if v is None:
        return None
    if isinstance(v, str):
        return [v]
    return list(v)


__all__ = ["parse_find_settings", "parse_single", "parse_like", "OPTION_KEYS"]
