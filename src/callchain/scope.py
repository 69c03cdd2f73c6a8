"""Guess the class a call expression targets from its receiver text.

This is a heuristic, not a type checker. The rules are tried in order and
the first match wins:

1. no receiver                  -> the caller's own class
2. ``this``                     -> the caller's own class
3. ``super``                    -> the caller's first superclass, else its own class
4. a parenthesized cast         -> the cast type (``((UserMapper) bean)`` -> ``UserMapper``)
5. dotted text (``a.b.c``)      -> the last segment
6. a field of the caller class  -> the field's declared type (injected collaborators)
7. anything else                -> the receiver text itself (static calls via a type name)

Local variables that shadow fields, or receivers that are local variables
named unlike their type, resolve wrongly; that imprecision is accepted.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from callchain.parsers.base import simplify_type

if TYPE_CHECKING:
    from callchain.index import SourceIndex

# ``((Type) expr)`` with optional whitespace; the type may be qualified or generic.
_CAST_RE = re.compile(r"^\(\s*\(\s*([\w$.]+(?:\s*<.*>)?(?:\s*\[\s*\])*)\s*\).+\)$", re.DOTALL)


def _wrapped(text: str) -> bool:
    """True when the opening parenthesis of *text* closes at its last character."""
    depth = 0
    for i, ch in enumerate(text):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i == len(text) - 1
    return False


def cast_type(receiver: str) -> str | None:
    """The simple type name of a parenthesized cast receiver, else None."""
    match = _CAST_RE.match(receiver)
    if match is None or not _wrapped(receiver):
        return None
    return simplify_type(match.group(1))


def resolve_callee_class(receiver: str | None, caller_class: str, index: SourceIndex) -> str:
    """Return the coarse class name for a call made from *caller_class*."""
    if receiver is None:
        return caller_class
    receiver = receiver.strip()
    if not receiver or receiver == "this":
        return caller_class
    if receiver == "super":
        return index.superclass_of(caller_class) or caller_class
    cast = cast_type(receiver)
    if cast is not None:
        return cast
    if "." in receiver:
        return receiver.rsplit(".", 1)[1]
    field_type = index.field_type(caller_class, receiver)
    if field_type is not None:
        return field_type
    return receiver
