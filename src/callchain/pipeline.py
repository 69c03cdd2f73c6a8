"""Orchestrator: index → graph → chains."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from callchain.config import AnalyzerConfig, load_config
from callchain.graph import CallGraph, GraphBuilder
from callchain.index import SourceIndex
from callchain.model import SearchMode
from callchain.tracer import Chain, ChainTracer

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Everything a report needs about one search."""

    project_root: Path
    mode: SearchMode
    key: str
    chains: dict[str, list[Chain]]
    graph: CallGraph
    skipped: tuple[str, ...] = ()
    elapsed: float = 0.0
    urls: list[str] = field(default_factory=list)

    @property
    def chain_count(self) -> int:
        return sum(len(c) for c in self.chains.values())

    def url_for(self, chain: Chain) -> str:
        """URL of the endpoint a chain ends at."""
        return self.graph.url_for(chain[-1]) if chain else ""


def _distinct_urls(graph: CallGraph, chains: dict[str, list[Chain]]) -> list[str]:
    urls = {graph.url_for(chain[-1]) for site_chains in chains.values() for chain in site_chains}
    return sorted(url for url in urls if url)


def analyze(
    project_root: Path,
    mode: SearchMode | str,
    key: str,
    *,
    config: AnalyzerConfig | None = None,
) -> AnalysisResult:
    """Run the full analysis and return its result.

    Raises :class:`~callchain.errors.ProjectRootError` if *project_root*
    cannot be read. When *config* is None it is loaded from the project's
    ``.callchain.toml``.
    """
    began = time.perf_counter()
    project_root = Path(project_root).resolve()
    if not isinstance(mode, SearchMode):
        mode = SearchMode.parse(mode)
    if config is None:
        config = load_config(project_root)

    logger.debug("Project: %s, mode: %s, key: %s", project_root, mode.value, key)

    start = time.perf_counter()
    index = SourceIndex.build(project_root, config)
    logger.debug("Parsing took %.3fs", time.perf_counter() - start)

    start = time.perf_counter()
    graph = GraphBuilder(index, mode, key, config).build()
    logger.debug("Graph build took %.3fs", time.perf_counter() - start)

    start = time.perf_counter()
    chains = ChainTracer(graph).find_chains()
    logger.debug("Tracing took %.3fs", time.perf_counter() - start)

    result = AnalysisResult(
        project_root=project_root,
        mode=mode,
        key=key,
        chains=chains,
        graph=graph,
        skipped=index.skipped,
        elapsed=time.perf_counter() - began,
        urls=_distinct_urls(graph, chains),
    )
    logger.debug(
        "Found %d chain(s) from %d usage site(s)", result.chain_count, len(chains)
    )
    return result
