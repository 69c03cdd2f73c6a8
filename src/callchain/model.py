"""Declaration tree and result types shared by parsers, graph and tracer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

# Methods whose enclosing class cannot be determined are filed under this name.
UNKNOWN_CLASS = "Unknown"

# A string literal, an array of element values, or None for any other expression.
ElementValue = Union[str, tuple["ElementValue", ...], None]


def coarse_key(class_name: str, method_name: str) -> str:
    """Call-graph key ``Class#method``; ignores overloads."""
    return f"{class_name}#{method_name}"


def full_identifier(class_name: str, method_name: str, param_types: tuple[str, ...]) -> str:
    """Full identifier ``Class#method#(T1,T2)``, unique per overload."""
    return f"{class_name}#{method_name}#({','.join(param_types)})"


def coarse_key_of(identifier: str) -> str:
    """Reduce a full method identifier (or a coarse key) to its coarse key."""
    parts = identifier.split("#", 2)
    return "#".join(parts[:2])


def normalize_path(path: str | None) -> str:
    """Return ``""`` or a path with one leading ``/`` and no trailing ``/``."""
    if not path:
        return ""
    path = path.rstrip("/")
    if not path:
        return ""
    if not path.startswith("/"):
        path = "/" + path
    return path


def join_paths(class_path: str | None, method_path: str | None) -> str:
    """Merge a class-level and a method-level mapping into one URL."""
    return normalize_path(class_path) + normalize_path(method_path)


class TypeKind(str, Enum):
    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    RECORD = "record"


class SearchMode(str, Enum):
    """What the search key names."""

    MAPPER = "mapper"
    METHOD = "method"
    CONSTANT = "constant"

    @classmethod
    def parse(cls, text: str) -> SearchMode:
        """Accept mode names, ``mapper-class`` and the legacy codes 0/1/2."""
        aliases = {
            "0": cls.MAPPER,
            "mapper-class": cls.MAPPER,
            "1": cls.METHOD,
            "2": cls.CONSTANT,
        }
        value = text.strip().lower()
        if value in aliases:
            return aliases[value]
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"unknown search mode {text!r} "
                f"(expected one of: mapper, method, constant, 0, 1, 2)"
            ) from None


@dataclass(frozen=True)
class Annotation:
    """An annotation usage, e.g. ``@GetMapping("/list")``.

    A single unnamed argument is stored under ``"value"``, mirroring the
    Java rule that ``@X("a")`` is shorthand for ``@X(value = "a")``.
    """

    name: str
    arguments: dict[str, ElementValue] = field(default_factory=dict)

    @property
    def is_marker(self) -> bool:
        return not self.arguments


@dataclass(frozen=True)
class FieldAccess:
    """``receiver.name`` appearing in an expression."""

    receiver: str
    name: str


@dataclass(frozen=True)
class CallSite:
    """A method invocation; *receiver* is the raw receiver text or None."""

    name: str
    receiver: str | None = None


@dataclass(frozen=True)
class MethodBody:
    names: tuple[str, ...] = ()
    field_accesses: tuple[FieldAccess, ...] = ()
    calls: tuple[CallSite, ...] = ()


@dataclass(frozen=True)
class MethodDeclaration:
    class_name: str
    name: str
    param_types: tuple[str, ...] = ()
    annotations: dict[str, Annotation] = field(default_factory=dict)
    body: MethodBody | None = None
    file_path: str = ""
    line: int | None = None

    @property
    def signature(self) -> str:
        return f"({','.join(self.param_types)})"

    @property
    def coarse_key(self) -> str:
        return coarse_key(self.class_name, self.name)

    @property
    def identifier(self) -> str:
        return full_identifier(self.class_name, self.name, self.param_types)

    @property
    def mapping_key(self) -> str:
        """Key into an interface's mapping table: ``method#(T1,T2)``."""
        return f"{self.name}#{self.signature}"


@dataclass(frozen=True)
class TypeDeclaration:
    """A class, interface, enum or record.

    For interfaces the extended interfaces are listed in *extends* and
    *implements* is empty.
    """

    name: str
    kind: TypeKind = TypeKind.CLASS
    file_path: str = ""
    annotations: dict[str, Annotation] = field(default_factory=dict)
    extends: tuple[str, ...] = ()
    implements: tuple[str, ...] = ()
    fields: dict[str, str] = field(default_factory=dict)
    methods: tuple[MethodDeclaration, ...] = ()

    @property
    def superclass(self) -> str | None:
        return self.extends[0] if self.extends else None

    @property
    def is_interface(self) -> bool:
        return self.kind is TypeKind.INTERFACE


@dataclass(frozen=True)
class ParsedFile:
    """Every type declared in one source file, nested types flattened."""

    path: str
    package: str | None = None
    types: tuple[TypeDeclaration, ...] = ()


@dataclass(frozen=True)
class ControllerEndpoint:
    """An HTTP entry point together with its raw class/method mappings."""

    identifier: str
    class_name: str
    method_name: str
    signature: str
    class_path: str = ""
    method_path: str = ""
    file_path: str = ""

    @property
    def url(self) -> str:
        return join_paths(self.class_path, self.method_path)
