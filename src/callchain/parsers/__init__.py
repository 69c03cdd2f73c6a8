"""Java parser backends."""

from __future__ import annotations

from callchain.errors import ConfigError
from callchain.parsers.base import SourceParser

__all__ = ["PARSER_NAMES", "SourceParser", "get_parser"]

PARSER_NAMES = ("tree-sitter", "javalang")


def get_parser(name: str) -> SourceParser:
    """Instantiate the backend registered as *name*."""
    if name == "tree-sitter":
        from callchain.parsers.treesitter_java import TreeSitterJavaParser

        return TreeSitterJavaParser()
    if name == "javalang":
        from callchain.parsers.javalang_java import JavalangJavaParser

        return JavalangJavaParser()
    raise ConfigError(f"unknown parser {name!r} (expected one of: {', '.join(PARSER_NAMES)})")
