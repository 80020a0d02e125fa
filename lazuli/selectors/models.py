# lazuli/selectors/models.py
from __future__ import annotations

"""Selector schema
------------------
Canonical, immutable description of "what to find". Built by
`lazuli.selectors.parse` from the loose settings step definitions pass in.
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Tag(str):
    """
    A bare tag name. `find(Tag("a"))` is a like query for every <a>, where a
    plain string would be looked up by name, id or text.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Tag({str.__repr__(self)})"


class QueryKind(str, Enum):
    typed = "typed"   # known element type, resolved by the document's native finder
    like = "like"     # fuzzy attribute/text containment
    path = "path"     # unknown tag, generic XPath + attribute filtering


class PickPolicy(str, Enum):
    first = "first"
    last = "last"
    random = "random"


class ElementType(str, Enum):
    """Element families the document knows how to find natively."""

    element = "element"
    link = "link"
    button = "button"
    text_field = "text_field"
    textarea = "textarea"
    checkbox = "checkbox"
    radio = "radio"
    select_list = "select_list"
    option = "option"
    image = "image"
    file_field = "file_field"
    hidden = "hidden"
    form = "form"
    label = "label"
    div = "div"
    span = "span"
    p = "p"
    li = "li"
    ul = "ul"
    ol = "ol"
    table = "table"
    row = "row"
    cell = "cell"
    h1 = "h1"
    h2 = "h2"
    h3 = "h3"
    h4 = "h4"
    h5 = "h5"
    h6 = "h6"

    @classmethod
    def lookup(cls, name: Any) -> Optional["ElementType"]:
        """Map a settings key ("text field", "Text_Field", ElementType.link) to a member."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower().replace(" ", "_").replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            return None

    @property
    def predicate(self) -> str:
        """XPath test on the context node (self::...) selecting this family."""
        return _TYPE_PREDICATES.get(self, f"self::{self.value}")


def _input_of(*types: str) -> str:
    tests = " or ".join(f"@type='{t}'" for t in types)
    return f"self::input[{tests}]"


_TYPE_PREDICATES: dict[ElementType, str] = {
    ElementType.element: "true()",
    ElementType.link: "self::a",
    ElementType.button: f"self::button or {_input_of('button', 'submit', 'reset', 'image')}",
    ElementType.text_field: (
        "self::input[not(@type) or @type='' or @type='text' or @type='password' or @type='email'"
        " or @type='search' or @type='tel' or @type='url' or @type='number' or @type='date']"
    ),
    ElementType.checkbox: _input_of("checkbox"),
    ElementType.radio: _input_of("radio"),
    ElementType.select_list: "self::select",
    ElementType.image: "self::img",
    ElementType.file_field: _input_of("file"),
    ElementType.hidden: _input_of("hidden"),
    ElementType.row: "self::tr",
    ElementType.cell: "self::td or self::th",
}


Pick = Union[PickPolicy, int]


class LikeQuery(BaseModel):
    """Fuzzy match: every `element` whose `attribute` (or text) contains `include`."""

    model_config = ConfigDict(frozen=True)

    element: str
    attribute: Optional[str] = None
    include: Optional[str] = None

    @field_validator("element", "attribute", mode="before")
    @classmethod
    def _stringify(cls, v):
        return str(v) if v is not None else v

    @property
    def has_filter(self) -> bool:
        return self.attribute is not None and self.include is not None

    @property
    def matches_text(self) -> bool:
        return self.attribute is not None and self.attribute.lower() == "text"


class SelectorSpec(BaseModel):
    """
    Canonical find request.

    Exactly one of the typed/path form (`element` + `filters`/`value`) or the
    like form (`like`) is populated.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: QueryKind
    element: str
    filters: dict[str, Any] = Field(default_factory=dict)
    value: Optional[str] = None
    like: Optional[LikeQuery] = None
    text_match: Any = None
    context: Any = None
    only_present: bool = True
    pick: Pick = PickPolicy.first
    error_on_miss: bool = True
    groups: Optional[list[str]] = None

    @field_validator("pick", mode="before")
    @classmethod
    def _coerce_pick(cls, v):
        if v is None:
            return PickPolicy.first
        if isinstance(v, bool):
            raise ValueError("pick must be first, last, random or an index")
        if isinstance(v, int):
            return v
        if isinstance(v, str) and v.lstrip("-").isdigit():
            return int(v)
        return PickPolicy(str(v).lower())

    @model_validator(mode="after")
    def _one_form(self) -> "SelectorSpec":
        if (self.kind == QueryKind.like) != (self.like is not None):
            raise ValueError("like queries need a LikeQuery and only like queries may carry one")
        if self.like is not None and (self.filters or self.value is not None):
            raise ValueError("a like query cannot also carry attribute filters")
        return self

    @property
    def has_context(self) -> bool:
        return self.context is not None

    @property
    def uses_tag_name(self) -> bool:
        return "tag_name" in self.filters

    @property
    def element_type(self) -> Optional[ElementType]:
        if self.kind != QueryKind.typed:
            return None
        return ElementType.lookup(self.element)

    def describe(self) -> str:
        """Human readable summary used in error messages."""
        if self.like is not None:
            s = f"like {self.like.element}"
            if self.like.has_filter:
                s += f" with {self.like.attribute} containing {self.like.include!r}"
        else:
            s = self.element
            if self.value is not None:
                s += f" with name, id or text equal to {self.value!r}"
            elif self.filters:
                s += " " + ", ".join(f"{k}={_show(v)}" for k, v in self.filters.items())
        if self.text_match is not None:
            s += f" and text {_show(self.text_match)}"
        if self.has_context:
            s += " (within context)"
        return s


def _show(v: Any) -> str:
    pattern = getattr(v, "pattern", None)
    return f"/{pattern}/" if pattern is not None else repr(v)


def like(element: str, attribute: Optional[str] = None, include: Optional[str] = None, **options: Any) -> dict:
    """Build like-query settings: `find(like("a", "href", "account/login"))`."""
    settings: dict[str, Any] = {"like": {"element": element}}
    if attribute is not None:
        settings["like"]["attribute"] = attribute
    if include is not None:
        settings["like"]["include"] = include
    settings.update(options)
    return settings


__all__ = [
    "Tag",
    "QueryKind",
    "PickPolicy",
    "ElementType",
    "LikeQuery",
    "SelectorSpec",
    "Pick",
    "like",
]
