"""Small builders for declaration trees, so core tests need no parser."""

from __future__ import annotations

from callchain.index import SourceIndex
from callchain.model import (
    Annotation,
    CallSite,
    FieldAccess,
    MethodBody,
    MethodDeclaration,
    ParsedFile,
    TypeDeclaration,
    TypeKind,
)


def ann(name, value=None, **members):
    """``ann("GetMapping", "/list")`` or ``ann("RequestMapping", path="/x")``."""
    arguments = dict(members)
    if value is not None:
        arguments["value"] = value
    return Annotation(name=name, arguments=arguments)


def annotations(*items):
    return {a.name: a for a in items}


def call(name, receiver=None):
    return CallSite(name=name, receiver=receiver)


def method(class_name, name, *params, annotations_=(), calls=(), names=(), accesses=(), abstract=False):
    body = None
    if not abstract:
        body = MethodBody(
            names=tuple(names),
            field_accesses=tuple(FieldAccess(r, n) for r, n in accesses),
            calls=tuple(calls),
        )
    return MethodDeclaration(
        class_name=class_name,
        name=name,
        param_types=tuple(params),
        annotations=annotations(*annotations_),
        body=body,
        file_path=f"{class_name}.java",
    )


def type_decl(name, *methods, kind=TypeKind.CLASS, annotations_=(), extends=(), implements=(), fields=None):
    return TypeDeclaration(
        name=name,
        kind=kind,
        file_path=f"{name}.java",
        annotations=annotations(*annotations_),
        extends=tuple(extends),
        implements=tuple(implements),
        fields=dict(fields or {}),
        methods=tuple(methods),
    )


def interface(name, *methods, **kwargs):
    return type_decl(name, *methods, kind=TypeKind.INTERFACE, **kwargs)


def controller(name, *methods, path=None, **kwargs):
    annotations_ = [ann("RestController")]
    if path is not None:
        annotations_.append(ann("RequestMapping", path))
    return type_decl(name, *methods, annotations_=annotations_, **kwargs)


def index_of(*types, config=None):
    files = [ParsedFile(path=t.file_path, types=(t,)) for t in types]
    return SourceIndex.from_files(files, config)
