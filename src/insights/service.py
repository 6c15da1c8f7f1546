"""Insight generation: prompt the model with cluster summaries for a location."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from src.spatial import ClusterSummary

from .gemini import GeminiClient
from .population import PopulationTable
from .prompt import build_prompt, split_sections

logger = logging.getLogger(__name__)


@dataclass
class Insight:
    text: str
    sections: Dict[str, str] = field(default_factory=dict)
    prompt: str = ""


async def generate_insight(
    address: str,
    clusters: Sequence[Union[ClusterSummary, Mapping[str, Any]]],
    *,
    client: GeminiClient,
    population: Optional[PopulationTable] = None,
) -> Insight:
    """Build the prompt, call the model and split its reply into sections."""
    population_context = population.context_for(address) if population is not None else None
    if population_context is None:
        logger.debug("No population context for %r", address)

    prompt = build_prompt(address, clusters, population_context)
    text = await client.generate(prompt)
    return Insight(text=text, sections=split_sections(text), prompt=prompt)
