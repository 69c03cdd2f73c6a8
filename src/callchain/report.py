"""Render an AnalysisResult as a text report or a JSON document."""

from __future__ import annotations

import json

from callchain.pipeline import AnalysisResult

_MODE_LABELS = {
    "mapper": "mapper class",
    "method": "method call",
    "constant": "constant",
}


def _chains_to_dict(result: AnalysisResult) -> dict:
    chains: dict = {}
    for site, site_chains in result.chains.items():
        chains[site] = [
            {"methods": list(chain), "url": result.url_for(chain)} for chain in site_chains
        ]
    return chains


def format_json(result: AnalysisResult, *, indent: int | None = 2) -> str:
    data = {
        "mode": result.mode.value,
        "key": result.key,
        "chains": _chains_to_dict(result),
        "urls": result.urls,
    }
    return json.dumps(data, indent=indent)


def format_text(result: AnalysisResult) -> str:
    """Human-readable report, one numbered block per chain."""
    lines = [
        f"Analyzing call chains for: {result.key}",
        f"Project: {result.project_root}",
        f"Search mode: {_MODE_LABELS.get(result.mode.value, result.mode.value)}",
        f"Analysis took {result.elapsed * 1000:.0f}ms",
    ]
    if result.skipped:
        lines.append(f"Skipped {len(result.skipped)} file(s) that could not be parsed")

    if not result.chains:
        lines.append("No call chains found")
        return "\n".join(lines) + "\n"

    lines.append("Found the following call chains:")
    number = 0
    for site, site_chains in result.chains.items():
        for chain in site_chains:
            number += 1
            lines.append("")
            lines.append(f"Chain #{number}")
            location = result.graph.location(site)
            lines.append(f"Start method: {site} ({location})" if location else f"Start method: {site}")
            for position, identifier in enumerate(chain, start=1):
                lines.append(f"  {position}. {identifier}")
            url = result.url_for(chain)
            lines.append(f"  URL: {url or 'not found'}")

    lines.append("")
    lines.append(f"Total: {number} call chain(s)")
    if result.urls:
        lines.append(f"{len(result.urls)} distinct URL(s): {', '.join(result.urls)}")
    return "\n".join(lines) + "\n"
