"""Reverse call-chain search from usage sites to HTTP endpoints."""

from __future__ import annotations

import logging

from callchain.graph import CallGraph
from callchain.model import MethodDeclaration, SearchMode, coarse_key_of

logger = logging.getLogger(__name__)

# Full method identifiers; index 0 is the usage site, the last one the endpoint.
Chain = tuple[str, ...]


class ChainTracer:
    """Enumerate every distinct caller path from a usage site to an endpoint.

    A path never revisits a coarse method key it already contains, but two
    sibling branches may each pass through the same key: the visited set
    is per path, not shared. Overloaded callers fan out into one branch per
    definition, so chains can be over-reported.
    """

    def __init__(self, graph: CallGraph) -> None:
        self.graph = graph

    def find_chains(
        self, mode: SearchMode | None = None, key: str | None = None
    ) -> dict[str, list[Chain]]:
        """Map each usage site with at least one chain to its chains.

        *mode* and *key* default to the ones the graph was built for. Usage
        sites that reach no endpoint are absent from the result.
        """
        if mode is None:
            mode = self.graph.mode
        if key is None:
            key = self.graph.key
        if mode is SearchMode.CONSTANT:
            sites = list(self.graph.usages.get(key, ()))
        else:
            sites = self.graph.all_usages()
        logger.debug("Tracing %d usage site(s) of %s", len(sites), key)

        result: dict[str, list[Chain]] = {}
        for site in sites:
            chains = self.trace(site)
            logger.debug("%s: %d chain(s)", site, len(chains))
            if chains:
                result[site] = chains
        return result

    def trace(self, identifier: str) -> list[Chain]:
        """All chains from *identifier* up to an endpoint."""
        return self._trace(identifier, frozenset())

    def _trace(self, identifier: str, visited: frozenset[str]) -> list[Chain]:
        key = coarse_key_of(identifier)
        if key in visited:
            return []
        visited = visited | {key}

        if self.graph.is_endpoint(identifier):
            return [(identifier,)]

        chains: list[Chain] = []
        for caller_key in sorted(self.graph.callers_of(key)):
            for caller in self._caller_definitions(caller_key):
                for chain in self._trace(caller.identifier, visited):
                    chains.append((identifier, *chain))
        return chains

    def _caller_definitions(self, caller_key: str) -> tuple[MethodDeclaration, ...]:
        definitions = self.graph.definitions_for(caller_key)
        if definitions:
            return definitions
        # No exact key: fall back to the first definition sharing the prefix.
        for key in sorted(self.graph.definitions):
            if key.startswith(caller_key):
                return self.graph.definitions[key]
        logger.debug("No definition for caller %s", caller_key)
        return ()
