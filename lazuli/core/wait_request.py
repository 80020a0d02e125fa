# lazuli/core/wait_request.py
from __future__ import annotations

"""Wait request schema
----------------------
Pydantic models for multi-element waits and the normalization of the option
styles step definitions use:

    wait_multiple({"tag_name": "a", "class": re.compile("foo")},
                  {"tag_name": "div", "id": "bar", "wait_for": "exists"})

    wait_multiple({"timeout": 3, "operator": "all_of", "list": [...]})

    wait_multiple(*descriptors, timeout=3, condition="while")
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from lazuli.dom import Element
from lazuli.errors import InvalidRequest
from lazuli.selectors.models import SelectorSpec
from lazuli.selectors.parse import parse_single

DEFAULT_TIMEOUT = 10

# Option names of the single-mapping form; the element list lives under "list"
OPTION_KEYS = ("timeout", "condition", "operator", "list", "screenshot", "groups")


class WaitCondition(str, Enum):
    until = "until"
    while_ = "while"


class WaitOperator(str, Enum):
    one_of = "one_of"
    all_of = "all_of"


Check = Union[str, Callable[[Element], Any]]


class WaitDescriptor(BaseModel):
    """One selector + condition pair. A None selector means the whole document."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    selector: Optional[SelectorSpec] = None
    satisfied_when: Check = "present"
    content_match: Any = None

    @field_validator("satisfied_when", mode="before")
    @classmethod
    def _check_name(cls, v):
        if v is None:
            return "present"
        if callable(v):
            return v
        name = str(v).strip().rstrip("?")
        if not name:
            raise ValueError("wait_for must name an element check")
        return name

    @property
    def whole_document(self) -> bool:
        return self.selector is None


class WaitRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    descriptors: tuple[WaitDescriptor, ...]
    timeout: float = Field(default=DEFAULT_TIMEOUT, ge=0)
    condition: WaitCondition = WaitCondition.until
    operator: WaitOperator = WaitOperator.one_of
    screenshot: bool = False
    groups: Optional[list[str]] = None

    @field_validator("condition", mode="before")
    @classmethod
    def _condition(cls, v):
        if isinstance(v, WaitCondition):
            return v
        name = str(v).strip().lower()
        return "while" if name == "while_" else name

    @field_validator("operator", mode="before")
    @classmethod
    def _operator(cls, v):
        return v if isinstance(v, WaitOperator) else str(v).strip().lower()

    @field_validator("groups", mode="before")
    @classmethod
    def _groups(cls, v):
        if v is None:
            return None
        return [v] if isinstance(v, str) else list(v)

    @property
    def timeout_ms(self) -> int:
        return int(self.timeout * 1000)


@dataclass
class WaitOutcome:
    matched: list[Element] = field(default_factory=list)
    timed_out: bool = False
    cause: Optional[BaseException] = None


# ---------- Normalization ----------


def build_descriptor(settings: Any) -> WaitDescriptor:
    """
    Split descriptor settings into the selector part and the wait part
    (`wait_for`, and `text`/`html` as content match). The caller's mapping
    is copied, never modified.
    """
    if isinstance(settings, WaitDescriptor):
        return settings
    if not isinstance(settings, Mapping):
        return WaitDescriptor(selector=parse_single(settings))

    item = dict(settings)
    check = item.pop("wait_for", None)
    text = item.pop("text", None)
    html = item.pop("html", None)
    content = text if text is not None else html

    selector = parse_single(item) if item else None
    try:
        return WaitDescriptor(selector=selector, satisfied_when=check, content_match=content)
    except ValidationError as ve:
        raise InvalidRequest(_first_error(ve), groups=["wait"], settings=settings, cause=ve) from ve


def build_wait_request(*args: Any, **options: Any) -> WaitRequest:
    """
    Accepts descriptors positionally with options as keywords, or a single
    mapping that carries the options together with the descriptors under
    "list".

    Raises:
        InvalidRequest for a missing list, a bad operator or a bad condition.
    """
    opts: dict[str, Any] = {}
    items: Any = list(args)

    if len(args) == 1 and isinstance(args[0], Mapping) and any(k in args[0] for k in OPTION_KEYS):
        opts = dict(args[0])
        if "list" not in opts:
            raise InvalidRequest(
                "Need to provide a list of element selectors.",
                groups=_groups(opts.get("groups")),
                settings=args[0],
            )
        items = opts.pop("list")
    opts.update(options)
    if "list" in opts:
        items = opts.pop("list")

    if isinstance(items, (Mapping, str)) or items is None:
        items = [items] if items is not None else []

    descriptors = tuple(build_descriptor(i) for i in items)
    if not descriptors:
        raise InvalidRequest("Need to provide a list of element selectors.", groups=_groups(opts.get("groups")), settings=opts)

    unknown = set(opts) - set(OPTION_KEYS)
    if unknown:
        raise InvalidRequest(f"Unknown wait options: {sorted(unknown)}", groups=_groups(opts.get("groups")), settings=opts)

    try:
        return WaitRequest(descriptors=descriptors, **{k: v for k, v in opts.items() if v is not None})
    except ValidationError as ve:
        raise InvalidRequest(_first_error(ve), groups=_groups(opts.get("groups")), settings=opts, cause=ve) from ve


def _groups(v: Any) -> list[str]:
    if v is None:
        return ["wait"]
    return [v] if isinstance(v, str) else list(v)


def _first_error(ve: ValidationError) -> str:
    err = ve.errors()[0]
    field_name = ".".join(str(p) for p in err.get("loc", []))
    value = err.get("input")
    if field_name == "operator":
        return f"Invalid operator '{value}'."
    if field_name == "condition":
        return f"Invalid condition '{value}'."
    return f"Invalid wait options: {field_name}: {err.get('msg', 'invalid value')}"


__all__ = [
    "WaitCondition",
    "WaitOperator",
    "WaitDescriptor",
    "WaitRequest",
    "WaitOutcome",
    "build_descriptor",
    "build_wait_request",
    "DEFAULT_TIMEOUT",
]
