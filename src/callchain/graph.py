"""Bodies pass: method definitions, reverse call graph, usage sites and endpoints."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, replace
from types import MappingProxyType

from callchain.config import AnalyzerConfig
from callchain.index import SourceIndex
from callchain.mappings import UrlResolver
from callchain.model import (
    UNKNOWN_CLASS,
    ControllerEndpoint,
    MethodDeclaration,
    SearchMode,
    TypeDeclaration,
    coarse_key,
    coarse_key_of,
    full_identifier,
)
from callchain.scope import resolve_callee_class

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallGraph:
    """The read-only caches produced by :class:`GraphBuilder`.

    ``callers`` maps a callee coarse key to the coarse keys of the methods
    whose bodies call it. Edges to callees that were never declared
    (library calls, unresolved receivers) are kept; they are simply never
    traced further. ``endpoints`` is the URL table; its keys are the
    endpoint set.
    """

    mode: SearchMode
    key: str
    definitions: Mapping[str, tuple[MethodDeclaration, ...]]
    callers: Mapping[str, frozenset[str]]
    usages: Mapping[str, tuple[str, ...]]
    endpoints: Mapping[str, ControllerEndpoint]

    def is_endpoint(self, identifier: str) -> bool:
        return identifier in self.endpoints

    def url_for(self, identifier: str) -> str:
        """Resolved URL of an endpoint, or ``""`` if *identifier* is not one."""
        endpoint = self.endpoints.get(identifier)
        return endpoint.url if endpoint else ""

    def url_for_method(self, class_name: str, method_name: str, param_types: tuple[str, ...] = ()) -> str:
        return self.url_for(full_identifier(class_name, method_name, param_types))

    def callers_of(self, key: str) -> frozenset[str]:
        return self.callers.get(key, frozenset())

    def definitions_for(self, key: str) -> tuple[MethodDeclaration, ...]:
        return self.definitions.get(key, ())

    def location(self, identifier: str) -> str:
        """``path:line`` of the definition behind *identifier*, or ``""``."""
        for method in self.definitions_for(coarse_key_of(identifier)):
            if method.identifier == identifier:
                if method.line is None:
                    return method.file_path
                return f"{method.file_path}:{method.line}"
        return ""

    def all_usages(self) -> list[str]:
        """Every recorded usage site, de-duplicated, in recording order."""
        seen: dict[str, None] = {}
        for sites in self.usages.values():
            for site in sites:
                seen.setdefault(site, None)
        return list(seen)

    def stats(self) -> dict[str, int]:
        return {
            "definitions": len(self.definitions),
            "edges": sum(len(c) for c in self.callers.values()),
            "endpoints": len(self.endpoints),
            "usages": sum(len(u) for u in self.usages.values()),
        }


class GraphBuilder:
    """Walk every method body of a finished :class:`SourceIndex` once.

    The index must already hold the field and interface tables of *all*
    files: a method's endpoint status and its call targets may depend on
    declarations from other files.
    """

    def __init__(
        self,
        index: SourceIndex,
        mode: SearchMode,
        key: str,
        config: AnalyzerConfig | None = None,
    ) -> None:
        self.index = index
        self.mode = mode
        self.key = key
        self.config = config or index.config
        self.urls = UrlResolver(index, self.config)

        self._definitions: dict[str, list[MethodDeclaration]] = defaultdict(list)
        self._callers: dict[str, set[str]] = defaultdict(set)
        self._usages: dict[str, dict[str, None]] = defaultdict(dict)
        self._endpoints: dict[str, ControllerEndpoint] = {}

    def build(self) -> CallGraph:
        for type_decl in self.index.iter_types():
            for method in type_decl.methods:
                self._visit_method(type_decl, method)

        graph = CallGraph(
            mode=self.mode,
            key=self.key,
            definitions=MappingProxyType({k: tuple(v) for k, v in self._definitions.items()}),
            callers=MappingProxyType({k: frozenset(v) for k, v in self._callers.items()}),
            usages=MappingProxyType({k: tuple(v) for k, v in self._usages.items()}),
            endpoints=MappingProxyType(dict(self._endpoints)),
        )
        stats = graph.stats()
        logger.debug(
            "Cache statistics: %d method keys, %d call edges, %d endpoints, %d usage sites",
            stats["definitions"],
            stats["edges"],
            stats["endpoints"],
            stats["usages"],
        )
        return graph

    def _visit_method(self, type_decl: TypeDeclaration, method: MethodDeclaration) -> None:
        if not method.class_name:
            method = _attributed(method, UNKNOWN_CLASS)
        identifier = method.identifier
        caller_key = method.coarse_key
        self._definitions[caller_key].append(method)

        if self.urls.is_endpoint(type_decl, method):
            endpoint = self.urls.resolve(type_decl, method)
            self._endpoints[identifier] = endpoint
            logger.debug("Endpoint: %s -> %s", identifier, endpoint.url or "(empty)")

        if method.body is None:
            return

        for name in method.body.names:
            if name == self.key:
                self._record_usage(name, identifier)

        if self.mode is SearchMode.CONSTANT:
            suffix = self.config.constant_holder_suffix
            for access in method.body.field_accesses:
                if access.receiver.endswith(suffix) or access.receiver == self.key:
                    self._record_usage(access.name, identifier)

        for call in method.body.calls:
            callee_class = resolve_callee_class(call.receiver, method.class_name, self.index)
            callee_key = coarse_key(callee_class, call.name)
            self._callers[callee_key].add(caller_key)
            logger.debug("Call: %s -> %s", caller_key, callee_key)

            if (self.mode is SearchMode.MAPPER and callee_class == self.key) or (
                self.mode is SearchMode.METHOD and callee_key == self.key
            ):
                self._record_usage(callee_key, identifier)

    def _record_usage(self, lookup_key: str, identifier: str) -> None:
        if identifier not in self._usages[lookup_key]:
            logger.debug("Usage of %s in %s", lookup_key, identifier)
        self._usages[lookup_key].setdefault(identifier, None)


def _attributed(method: MethodDeclaration, class_name: str) -> MethodDeclaration:
    return replace(method, class_name=class_name)


def build_graph(
    index: SourceIndex, mode: SearchMode, key: str, config: AnalyzerConfig | None = None
) -> CallGraph:
    """Convenience wrapper around :class:`GraphBuilder`."""
    return GraphBuilder(index, mode, key, config).build()
