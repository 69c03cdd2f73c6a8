"""Parser protocol: every backend turns Java source into a ParsedFile."""

from __future__ import annotations

import re
from typing import Protocol

from callchain.model import ParsedFile

_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "s": " "}
_DOT_SPACING_RE = re.compile(r"\s*\.\s*")


class SourceParser(Protocol):
    """Protocol for Java parser backends."""

    name: str

    def parse(self, source: bytes, path: str) -> ParsedFile:
        """Return the declarations of *source*.

        Raises :class:`callchain.errors.ParseError` when the file cannot be
        parsed.
        """
        ...


def strip_generics(type_text: str) -> str:
    """Remove (possibly nested) ``<...>`` type arguments."""
    out: list[str] = []
    depth = 0
    for ch in type_text:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth = max(depth - 1, 0)
        elif depth == 0:
            out.append(ch)
    return "".join(out)


def simplify_type(type_text: str) -> str:
    """Simplify a Java type like ``java.util.List<String>`` to ``List``.

    Array brackets are kept: ``String[]`` stays ``String[]``.
    """
    result = "".join(strip_generics(type_text).split())
    if "." in result:
        result = result.rsplit(".", 1)[1]
    return result


def simple_name(name: str) -> str:
    """``org.springframework.web.bind.annotation.GetMapping`` -> ``GetMapping``."""
    return name.strip().rsplit(".", 1)[-1]


def compact(expression: str) -> str:
    """Collapse whitespace in receiver text, e.g. ``a\\n   .b()`` -> ``a.b()``."""
    return _DOT_SPACING_RE.sub(".", " ".join(expression.split()))


def unquote_string(literal: str) -> str:
    """Turn a Java string literal (or text block) into its value."""
    if len(literal) >= 6 and literal.startswith('"""') and literal.endswith('"""'):
        body = literal[3:-3]
        if body.startswith("\n"):
            body = body[1:]
    elif len(literal) >= 2 and literal.startswith('"') and literal.endswith('"'):
        body = literal[1:-1]
    else:
        return literal
    return _ESCAPE_RE.sub(_unescape, body)


def _unescape(match: re.Match) -> str:
    code = match.group(1)
    if len(code) == 5:
        return chr(int(code[1:], 16))
    return _ESCAPES.get(code, code)
