"""Prompt construction and reply sectioning for retail insights."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from src.spatial import ClusterSummary

# Fixed sections the analyst prompt asks for, in order
SECTION_HEADERS = (
    "Overall store density",
    "Cluster highlights",
    "Store type and size breakdown",
    "Suggestions for market opportunities",
)

NO_POPULATION_CONTEXT = "No population data available"

_HEADER_PATTERN = re.compile(r"^[#*\s\d.]*(?P<title>[^:#*]+?)[*\s]*:?[*\s]*$")


def compact_clusters(
    clusters: Sequence[Union[ClusterSummary, Mapping[str, Any]]],
) -> List[Dict[str, Any]]:
    """
    Project clusters onto the fields the model sees.

    Accepts summaries or already-serialized dicts (as posted by clients).
    """
    compact = []
    for cluster in clusters:
        data = cluster.to_prompt_dict() if isinstance(cluster, ClusterSummary) else dict(cluster)
        compact.append(
            {
                "id": data.get("id"),
                "centroid": data.get("centroid"),
                "storeCount": data.get("storeCount"),
                "types": data.get("types", {}),
                "sizes": data.get("sizes", {}),
            }
        )
    return compact


def build_prompt(
    address: str,
    clusters: Sequence[Union[ClusterSummary, Mapping[str, Any]]],
    population_context: Optional[str] = None,
) -> str:
    """Build the retail-analyst prompt for one location."""
    focus = "\n".join(f"- {header}" for header in SECTION_HEADERS)
    return (
        "You are a retail analyst AI.\n"
        f"Analyze the following clusters for {address}:\n"
        f"{json.dumps(compact_clusters(clusters), indent=2, ensure_ascii=False)}\n"
        "\n"
        "Population context:\n"
        f"{population_context or NO_POPULATION_CONTEXT}\n"
        "\n"
        "Focus only on:\n"
        f"{focus}\n"
        "\n"
        "Important:\n"
        '- Do NOT say "more demographic data is needed" or "insufficient data".\n'
        "- Use ONLY the clusters and population info provided above.\n"
        "- Give clear, actionable insights even if the data is limited.\n"
    )


def _match_header(line: str) -> Optional[str]:
    match = _HEADER_PATTERN.match(line)
    if not match:
        return None
    title = match.group("title").strip().lower()
    for header in SECTION_HEADERS:
        if title == header.lower():
            return header
    return None


def split_sections(text: str) -> Dict[str, str]:
    """
    Split a model reply into the fixed sections.

    Text before the first recognised header goes under ``"Summary"``.
    Sections absent from the reply are omitted.
    """
    sections: Dict[str, List[str]] = {}
    current = "Summary"
    for raw_line in text.splitlines():
        line = raw_line.strip()
        header = _match_header(line) if line else None
        if header is not None:
            current = header
            sections.setdefault(current, [])
            continue
        sections.setdefault(current, []).append(raw_line.rstrip())

    return {
        name: "\n".join(lines).strip()
        for name, lines in sections.items()
        if name != "Summary" or "\n".join(lines).strip()
    }
