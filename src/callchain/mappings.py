"""HTTP mapping annotations: endpoint detection and URL resolution."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from callchain.config import AnalyzerConfig
from callchain.model import (
    Annotation,
    ControllerEndpoint,
    ElementValue,
    MethodDeclaration,
    TypeDeclaration,
    join_paths,
    normalize_path,
)

__all__ = [
    "UrlResolver",
    "annotation_path",
    "element_path",
    "has_annotation",
    "join_paths",
    "mapping_path",
    "normalize_path",
]

if TYPE_CHECKING:
    from callchain.index import SourceIndex

# Annotation members that carry the route.
_PATH_MEMBERS = ("value", "path")


def element_path(value: ElementValue) -> str | None:
    """A string literal, or the first element of an array of them."""
    if isinstance(value, str):
        return value
    if isinstance(value, tuple) and value:
        return element_path(value[0])
    return None


def annotation_path(annotation: Annotation) -> str | None:
    """Extract the route from one mapping annotation.

    Marker form yields ``""``; None means the annotation is present but its
    path is not a literal (or it only sets non-path members).
    """
    if annotation.is_marker:
        return ""
    for member, value in annotation.arguments.items():
        if member in _PATH_MEMBERS:
            return element_path(value)
    return None


def mapping_path(annotations: Mapping[str, Annotation], names: Iterable[str]) -> str | None:
    """Path of the first annotation in *names* order that yields one."""
    for name in names:
        annotation = annotations.get(name)
        if annotation is None:
            continue
        path = annotation_path(annotation)
        if path is not None:
            return path
    return None


def has_annotation(annotations: Mapping[str, Annotation], names: Iterable[str]) -> bool:
    return any(name in annotations for name in names)


class UrlResolver:
    """Decide which methods are endpoints and compute their URLs.

    Mappings declared on an implemented interface are inherited by plain
    table lookups: the first implemented contract (in declaration order)
    that provides a mapping wins.
    """

    def __init__(self, index: SourceIndex, config: AnalyzerConfig | None = None) -> None:
        self.index = index
        self.config = config or AnalyzerConfig()

    def method_mapping(self, method: MethodDeclaration) -> str | None:
        return mapping_path(method.annotations, self.config.mapping_annotations)

    def is_controller(self, type_decl: TypeDeclaration) -> bool:
        if type_decl.is_interface:
            return False
        if has_annotation(type_decl.annotations, self.config.controller_annotations):
            return True
        return any(self._contract_is_mapped(name) for name in type_decl.implements)

    def is_endpoint(self, type_decl: TypeDeclaration, method: MethodDeclaration) -> bool:
        if not self.is_controller(type_decl):
            return False
        if has_annotation(method.annotations, self.config.mapping_annotations):
            return True
        return self._contract_method_mapping(type_decl, method) is not None

    def class_path(self, type_decl: TypeDeclaration) -> str:
        path = self._class_mapping(type_decl)
        if path is not None:
            return path
        if not type_decl.is_interface:
            for name in type_decl.implements:
                contract = self.index.find_type(name)
                if contract is None:
                    continue
                path = self._class_mapping(contract)
                if path is not None:
                    return path
        return ""

    def method_path(self, type_decl: TypeDeclaration, method: MethodDeclaration) -> str:
        path = self.method_mapping(method)
        if path is None:
            path = self._contract_method_mapping(type_decl, method)
        return path if path is not None else ""

    def resolve(self, type_decl: TypeDeclaration, method: MethodDeclaration) -> ControllerEndpoint:
        return ControllerEndpoint(
            identifier=method.identifier,
            class_name=method.class_name,
            method_name=method.name,
            signature=method.signature,
            class_path=self.class_path(type_decl),
            method_path=self.method_path(type_decl, method),
            file_path=method.file_path,
        )

    def _class_mapping(self, type_decl: TypeDeclaration) -> str | None:
        return mapping_path(type_decl.annotations, (self.config.class_mapping_annotation,))

    def _contract_is_mapped(self, name: str) -> bool:
        contract = self.index.find_type(name)
        return (
            contract is not None
            and self.config.class_mapping_annotation in contract.annotations
        )

    def _contract_method_mapping(
        self, type_decl: TypeDeclaration, method: MethodDeclaration
    ) -> str | None:
        if type_decl.is_interface:
            return None
        for name in type_decl.implements:
            path = self.index.interface_mapping(name, method.mapping_key)
            if path is not None:
                return path
        return None
