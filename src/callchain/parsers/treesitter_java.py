"""Extract type, field, method and call declarations from Java source via tree-sitter."""

from __future__ import annotations

import logging

import tree_sitter_java as tsjava
from tree_sitter import Language, Node, Parser

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
from callchain.parsers.base import compact, simple_name, simplify_type, unquote_string

logger = logging.getLogger(__name__)

# tree-sitter node types that represent Java type declarations.
_TYPE_DECL_TYPES = {
    "class_declaration": TypeKind.CLASS,
    "interface_declaration": TypeKind.INTERFACE,
    "enum_declaration": TypeKind.ENUM,
    "record_declaration": TypeKind.RECORD,
}

_FIELD_DECL_TYPES = {"field_declaration", "constant_declaration"}

_ANNOTATION_TYPES = {"marker_annotation", "annotation"}

_SUPERTYPE_CLAUSES = {"superclass", "super_interfaces", "extends_interfaces"}

_TYPE_NODE_TYPES = {"type_identifier", "scoped_type_identifier", "generic_type"}

# An identifier in one of these parent fields declares or selects, it does not reference.
_DECLARING_FIELDS = {"name", "field", "key", "parameters"}

# Identifiers directly under these nodes are not name expressions.
_NON_EXPRESSION_PARENTS = {
    "method_reference",
    "inferred_parameters",
    "labeled_statement",
    "break_statement",
    "continue_statement",
}


def _text(node: Node | None) -> str:
    if node is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _is_comment(node: Node) -> bool:
    return node.type.endswith("comment")


class TreeSitterJavaParser:
    """Parse Java files with the tree-sitter Java grammar."""

    name = "tree-sitter"

    def __init__(self) -> None:
        language = Language(tsjava.language())
        self._parser = Parser(language)

    def parse(self, source: bytes, path: str) -> ParsedFile:
        tree = self._parser.parse(source)
        root = tree.root_node
        if root.has_error:
            raise ParseError(path, f"syntax error near line {_first_error_line(root)}")

        types: list[TypeDeclaration] = []
        for node in root.children:
            if node.type in _TYPE_DECL_TYPES:
                types.extend(_extract_types(node, path))

        logger.debug("tree-sitter: %s -> %d types", path, len(types))
        return ParsedFile(path=path, package=_package_name(root), types=tuple(types))


def _first_error_line(root: Node) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        stack.extend(reversed(node.children))
    return root.start_point[0] + 1


def _package_name(root: Node) -> str | None:
    for child in root.children:
        if child.type == "package_declaration":
            for part in child.named_children:
                if part.type in ("scoped_identifier", "identifier"):
                    return _text(part)
    return None


def _extract_types(node: Node, path: str) -> list[TypeDeclaration]:
    """Return the declaration for *node* followed by its nested member types."""
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return []

    name = _text(name_node)
    kind = _TYPE_DECL_TYPES[node.type]

    extends: list[str] = []
    implements: list[str] = []
    for child in node.children:
        if child.type == "superclass" or child.type == "extends_interfaces":
            extends.extend(_type_names(child))
        elif child.type == "super_interfaces":
            implements.extend(_type_names(child))

    fields: dict[str, str] = {}
    if kind is TypeKind.RECORD:
        fields.update(_record_components(node.child_by_field_name("parameters")))

    methods: list[MethodDeclaration] = []
    nested: list[TypeDeclaration] = []
    for member in _members(node.child_by_field_name("body")):
        if member.type in _FIELD_DECL_TYPES:
            fields.update(_fields(member))
        elif member.type == "method_declaration":
            method = _extract_method(member, name, path)
            if method:
                methods.append(method)
        elif member.type in _TYPE_DECL_TYPES:
            nested.extend(_extract_types(member, path))

    declaration = TypeDeclaration(
        name=name,
        kind=kind,
        file_path=path,
        annotations=_annotations(node),
        extends=tuple(extends),
        implements=tuple(implements),
        fields=fields,
        methods=tuple(methods),
    )
    return [declaration, *nested]


def _members(body: Node | None) -> list[Node]:
    """Member declarations of a class/interface/enum body."""
    if body is None:
        return []
    members: list[Node] = []
    for child in body.named_children:
        if child.type == "enum_body_declarations":
            members.extend(child.named_children)
        else:
            members.append(child)
    return members


def _type_names(clause: Node) -> list[str]:
    """Type names listed in an extends/implements clause."""
    names: list[str] = []
    for child in clause.named_children:
        if child.type == "type_list":
            names.extend(_type_names(child))
        elif child.type in _TYPE_NODE_TYPES:
            names.append(simplify_type(_text(child)))
    return names


def _field_type(type_node: Node | None) -> str:
    return simplify_type(_text(type_node)).replace("[]", "") if type_node else "?"


def _fields(member: Node) -> dict[str, str]:
    type_name = _field_type(member.child_by_field_name("type"))
    fields: dict[str, str] = {}
    for declarator in member.children_by_field_name("declarator"):
        name_node = declarator.child_by_field_name("name")
        if name_node is not None:
            fields[_text(name_node)] = type_name
    return fields


def _record_components(params: Node | None) -> dict[str, str]:
    if params is None:
        return {}
    fields: dict[str, str] = {}
    for child in params.named_children:
        if child.type == "formal_parameter":
            name_node = child.child_by_field_name("name")
            if name_node is not None:
                fields[_text(name_node)] = _field_type(child.child_by_field_name("type"))
    return fields


def _annotations(node: Node) -> dict[str, Annotation]:
    """Annotations in the ``modifiers`` child of a declaration (first of each name wins)."""
    result: dict[str, Annotation] = {}
    for child in node.children:
        if child.type != "modifiers":
            continue
        for modifier in child.children:
            if modifier.type in _ANNOTATION_TYPES:
                annotation = _annotation(modifier)
                result.setdefault(annotation.name, annotation)
    return result


def _annotation(node: Node) -> Annotation:
    name = simple_name(_text(node.child_by_field_name("name")))
    arguments: dict[str, ElementValue] = {}
    arg_list = node.child_by_field_name("arguments")
    if arg_list is not None:
        for child in arg_list.named_children:
            if _is_comment(child):
                continue
            if child.type == "element_value_pair":
                key = _text(child.child_by_field_name("key"))
                arguments[key] = _element_value(child.child_by_field_name("value"))
            else:
                arguments["value"] = _element_value(child)
    return Annotation(name=name, arguments=arguments)


def _element_value(node: Node | None) -> ElementValue:
    if node is None:
        return None
    if node.type == "string_literal":
        return unquote_string(_text(node))
    if node.type == "element_value_array_initializer":
        return tuple(_element_value(c) for c in node.named_children if not _is_comment(c))
    return None


def _parameter_types(params_node: Node | None) -> list[str]:
    """Extract parameter type names from a formal_parameters node."""
    if params_node is None:
        return []

    param_types: list[str] = []
    for child in params_node.named_children:
        if child.type == "formal_parameter":
            type_node = child.child_by_field_name("type")
            if type_node is not None:
                param_types.append(simplify_type(_text(type_node)))
        elif child.type == "spread_parameter":
            # No field names here: the type is the first named child that is
            # neither a modifier list nor the declarator.
            for part in child.named_children:
                if part.type not in ("modifiers", "variable_declarator") and part.type not in _ANNOTATION_TYPES:
                    param_types.append(simplify_type(_text(part)) + "...")
                    break
    return param_types


def _extract_method(node: Node, class_name: str, path: str) -> MethodDeclaration | None:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None

    body_node = node.child_by_field_name("body")
    return MethodDeclaration(
        class_name=class_name,
        name=_text(name_node),
        param_types=tuple(_parameter_types(node.child_by_field_name("parameters"))),
        annotations=_annotations(node),
        body=_method_body(body_node) if body_node is not None else None,
        file_path=path,
        line=name_node.start_point[0] + 1,
    )


def _method_body(body: Node) -> MethodBody:
    """Collect name references, field accesses and calls in source order.

    Anonymous and local class bodies are part of the walk, so their
    references count toward the enclosing method.
    """
    names: list[str] = []
    accesses: list[FieldAccess] = []
    calls: list[CallSite] = []

    # (node, field name in parent, parent type)
    stack: list[tuple[Node, str | None, str | None]] = [(body, None, None)]
    while stack:
        node, field_name, parent_type = stack.pop()

        if node.type == "method_invocation":
            obj = node.child_by_field_name("object")
            calls.append(
                CallSite(
                    name=_text(node.child_by_field_name("name")),
                    receiver=compact(_text(obj)) if obj is not None else None,
                )
            )
        elif node.type == "field_access":
            accesses.append(
                FieldAccess(
                    receiver=compact(_text(node.child_by_field_name("object"))),
                    name=_text(node.child_by_field_name("field")),
                )
            )
        elif (
            node.type == "identifier"
            and field_name not in _DECLARING_FIELDS
            and parent_type not in _NON_EXPRESSION_PARENTS
        ):
            names.append(_text(node))

        children = node.children
        for i in range(len(children) - 1, -1, -1):
            stack.append((children[i], node.field_name_for_child(i), node.type))

    return MethodBody(names=tuple(names), field_accesses=tuple(accesses), calls=tuple(calls))
