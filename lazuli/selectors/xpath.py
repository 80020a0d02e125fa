# lazuli/selectors/xpath.py
from __future__ import annotations

"""XPath building helpers
-------------------------
Small string builders for XPath 1.0 expressions used by the resolver and
available to step definitions.
"""

from typing import Iterable


def xp_literal(value: str) -> str:
    """
    Quote `value` as an XPath string literal.

    XPath 1.0 has no escape sequences, so a value containing both quote kinds
    is assembled with concat().
    """
    value = str(value)
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    parts = value.split("'")
    pieces = []
    for i, part in enumerate(parts):
        if part:
            pieces.append(f"'{part}'")
        if i < len(parts) - 1:
            pieces.append('"\'"')
    return "concat(" + ", ".join(pieces) + ")"


def xp_contains(node: str, needle: str, separator: str = " ") -> str:
    """
    Condition that `node`'s normalized string value contains `needle`.

    With the default separator this matches whole tokens (e.g. one class out
    of a class list); with separator="" it is a plain substring test.
    """
    haystack = f"concat({xp_literal(separator)}, normalize-space({node}), {xp_literal(separator)})"
    return f"contains({haystack}, {xp_literal(separator + needle + separator)})"


def xp_and(*conditions: str) -> str:
    return _join(conditions, "and")


def xp_or(*conditions: str) -> str:
    return _join(conditions, "or")


def xp_not(condition: str) -> str:
    return f"not({condition})"


def _join(conditions: Iterable[str], op: str) -> str:
    conds = [c for c in conditions if c]
    if not conds:
        return "true()"
    if len(conds) == 1:
        return conds[0]
    return "(" + f" {op} ".join(f"({c})" for c in conds) + ")"


def descendant_path(tag: str, relative: bool) -> str:
    """`//tag`, or `.//tag` when the query runs against a context element."""
    return f"{'.' if relative else ''}//{tag}"


__all__ = ["xp_literal", "xp_contains", "xp_and", "xp_or", "xp_not", "descendant_path"]
