"""
Selectors package
-----------------
Normalizes loose find settings into SelectorSpec objects and resolves them
against a document, including like queries, context scoping and pick
policies.
"""

from .models import ElementType, LikeQuery, PickPolicy, QueryKind, SelectorSpec, Tag, like
from .parse import parse_find_settings, parse_like, parse_single
from .resolver import SelectorResolver, like_xpath
from .xpath import xp_and, xp_contains, xp_literal, xp_not, xp_or

__all__ = [
    "ElementType",
    "LikeQuery",
    "PickPolicy",
    "QueryKind",
    "SelectorSpec",
    "Tag",
    "like",
    "parse_find_settings",
    "parse_like",
    "parse_single",
    "SelectorResolver",
    "like_xpath",
    "xp_and",
    "xp_contains",
    "xp_literal",
    "xp_not",
    "xp_or",
]
