"""Extract type, field, method and call declarations from Java source via javalang."""

from __future__ import annotations

import logging

import javalang
from javalang import tree

from callchain.errors import ParseError
from callchain.model import (
    Annotation,
    CallSite,
    ElementValue,
    FieldAccess,
    MethodBody,
    MethodDeclaration,
    ParsedFile,
    TypeDeclaration,
    TypeKind,
)
from callchain.parsers.base import simple_name, unquote_string

logger = logging.getLogger(__name__)

# Receiver text for selector chains hanging off an expression we do not render.
_OPAQUE_RECEIVER = "<expression>"


class JavalangJavaParser:
    """Parse Java files with javalang (Java 8 syntax)."""

    name = "javalang"

    def parse(self, source: bytes, path: str) -> ParsedFile:
        text = source.decode("utf-8", errors="replace")
        try:
            compilation_unit = javalang.parse.parse(text)
        except javalang.parser.JavaSyntaxError as e:
            raise ParseError(path, _describe_syntax_error(e)) from e
        except javalang.tokenizer.LexerError as e:
            raise ParseError(path, f"lexer error: {e}") from e
        except Exception as e:
            # javalang raises assorted internal errors on unsupported syntax.
            raise ParseError(path, f"{type(e).__name__}: {e}") from e

        types: list[TypeDeclaration] = []
        for type_decl in compilation_unit.types:
            if type_decl is not None:
                types.extend(_extract_types(type_decl, path))

        package = compilation_unit.package.name if compilation_unit.package else None
        logger.debug("javalang: %s -> %d types", path, len(types))
        return ParsedFile(path=path, package=package, types=tuple(types))


def _describe_syntax_error(error: javalang.parser.JavaSyntaxError) -> str:
    token = getattr(error, "at", None)
    position = getattr(token, "position", None)
    if position is not None:
        return f"{error.description} near line {position.line}"
    return str(error.description)


def _kind_of(node) -> TypeKind | None:
    if isinstance(node, tree.InterfaceDeclaration):
        return TypeKind.INTERFACE
    if isinstance(node, tree.EnumDeclaration):
        return TypeKind.ENUM
    if isinstance(node, tree.ClassDeclaration):
        return TypeKind.CLASS
    return None


def _type_name(type_node) -> str:
    """``java.util.List<String>`` -> ``List``; array dimensions become ``[]``."""
    if type_node is None:
        return "?"
    last = type_node
    while getattr(last, "sub_type", None) is not None:
        last = last.sub_type
    return last.name.rsplit(".", 1)[-1] + "[]" * len(type_node.dimensions or [])


def _extract_types(node, path: str) -> list[TypeDeclaration]:
    """Return the declaration for *node* followed by its nested member types."""
    kind = _kind_of(node)
    if kind is None:
        return []

    if kind is TypeKind.INTERFACE:
        extends = [_type_name(t) for t in node.extends or []]
        implements: list[str] = []
    else:
        extends = [_type_name(node.extends)] if getattr(node, "extends", None) else []
        implements = [_type_name(t) for t in node.implements or []]

    members = node.body.declarations if kind is TypeKind.ENUM else node.body
    fields: dict[str, str] = {}
    methods: list[MethodDeclaration] = []
    nested: list[TypeDeclaration] = []
    for member in members or []:
        if isinstance(member, tree.FieldDeclaration):
            type_name = _type_name(member.type).replace("[]", "")
            for declarator in member.declarators:
                fields[declarator.name] = type_name
        elif isinstance(member, tree.MethodDeclaration):
            methods.append(_extract_method(member, node.name, path))
        elif _kind_of(member) is not None:
            nested.extend(_extract_types(member, path))

    declaration = TypeDeclaration(
        name=node.name,
        kind=kind,
        file_path=path,
        annotations=_annotations(node.annotations),
        extends=tuple(extends),
        implements=tuple(implements),
        fields=fields,
        methods=tuple(methods),
    )
    return [declaration, *nested]


def _annotations(annotations) -> dict[str, Annotation]:
    result: dict[str, Annotation] = {}
    for node in annotations or []:
        annotation = _annotation(node)
        result.setdefault(annotation.name, annotation)
    return result


def _annotation(node: tree.Annotation) -> Annotation:
    arguments: dict[str, ElementValue] = {}
    element = node.element
    if isinstance(element, list):
        for pair in element:
            arguments[pair.name] = _element_value(pair.value)
    elif element is not None:
        arguments["value"] = _element_value(element)
    return Annotation(name=simple_name(node.name), arguments=arguments)


def _element_value(node) -> ElementValue:
    if isinstance(node, tree.Literal) and node.value.startswith('"'):
        return unquote_string(node.value)
    if isinstance(node, tree.ElementArrayValue):
        return tuple(_element_value(v) for v in node.values or [])
    return None


def _parameter_type(param: tree.FormalParameter) -> str:
    return _type_name(param.type) + ("..." if param.varargs else "")


def _extract_method(node: tree.MethodDeclaration, class_name: str, path: str) -> MethodDeclaration:
    return MethodDeclaration(
        class_name=class_name,
        name=node.name,
        param_types=tuple(_parameter_type(p) for p in node.parameters or []),
        annotations=_annotations(node.annotations),
        body=_method_body(node.body) if node.body is not None else None,
        file_path=path,
        line=node.position.line if node.position else None,
    )


class _BodyCollector:
    """Collect name references, field accesses and calls from statements.

    javalang flattens ``a.b().c`` into a primary with a list of selectors;
    the chain is replayed here so each selector sees the receiver text it
    would have in source.
    """

    def __init__(self) -> None:
        self.names: list[str] = []
        self.accesses: list[FieldAccess] = []
        self.calls: list[CallSite] = []
        self._selectors: set[int] = set()

    def collect(self, statements) -> MethodBody:
        for statement in statements:
            for _, node in statement:
                self._visit(node)
        return MethodBody(
            names=tuple(self.names),
            field_accesses=tuple(self.accesses),
            calls=tuple(self.calls),
        )

    def _visit(self, node) -> None:
        if id(node) in self._selectors:
            return

        if isinstance(node, tree.MethodInvocation):
            qualifier = node.qualifier or None
            self.calls.append(CallSite(name=node.member, receiver=qualifier))
            if qualifier:
                self._qualified(qualifier)
        elif isinstance(node, tree.SuperMethodInvocation):
            self.calls.append(CallSite(name=node.member, receiver="super"))
        elif isinstance(node, tree.MemberReference):
            if node.qualifier:
                self._qualified(f"{node.qualifier}.{node.member}")
            else:
                self.names.append(node.member)

        # Primaries and parenthesized casts both carry selector chains.
        if getattr(node, "selectors", None):
            self._replay_selectors(node)

    def _qualified(self, dotted: str) -> None:
        """``a.b.c`` -> name ``a``, accesses ``a.b`` and ``a.b.c``."""
        parts = dotted.split(".")
        self.names.append(parts[0])
        for i in range(1, len(parts)):
            self.accesses.append(FieldAccess(receiver=".".join(parts[:i]), name=parts[i]))

    def _replay_selectors(self, node) -> None:
        base = _primary_text(node)
        # A cast keeps its selectors outside ``attrs``, so the tree walk never reaches them.
        walked = "selectors" in node.attrs
        for selector in node.selectors:
            self._selectors.add(id(selector))
            if isinstance(selector, tree.MethodInvocation):
                self.calls.append(CallSite(name=selector.member, receiver=base))
                base = f"{base}.{selector.member}()"
            elif isinstance(selector, tree.MemberReference):
                self.accesses.append(FieldAccess(receiver=base, name=selector.member))
                base = f"{base}.{selector.member}"
            else:
                base = f"{base}[]"
            if not walked:
                for _, sub in selector:
                    self._visit(sub)


def _primary_text(node) -> str:
    qualifier = getattr(node, "qualifier", None)
    prefix = f"{qualifier}." if qualifier else ""
    if isinstance(node, tree.This):
        return f"{prefix}this"
    if isinstance(node, tree.SuperMethodInvocation):
        return f"super.{node.member}()"
    if isinstance(node, tree.MethodInvocation):
        return f"{prefix}{node.member}()"
    if isinstance(node, tree.MemberReference):
        return f"{prefix}{node.member}"
    if isinstance(node, tree.Cast):
        return f"(({_type_name(node.type)}) {_primary_text(node.expression)})"
    if isinstance(node, tree.ClassCreator):
        return f"new {_type_name(node.type)}()"
    if isinstance(node, tree.Literal):
        return node.value
    return _OPAQUE_RECEIVER


def _method_body(statements) -> MethodBody:
    return _BodyCollector().collect(statements)
