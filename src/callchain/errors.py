"""Exceptions raised by callchain."""

from __future__ import annotations


class CallChainError(Exception):
    """Base class for all callchain errors."""


class ProjectRootError(CallChainError):
    """The project root is missing, not a directory, or unreadable.

    Fatal: raised before any index is built.
    """


class ParseError(CallChainError):
    """A single source file could not be parsed.

    Recoverable: the file is skipped and excluded from every index.
    """

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class ConfigError(CallChainError):
    """An explicitly requested configuration file or value is invalid."""
