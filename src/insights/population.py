"""
Population reference data.

The table is built once (typically at server startup) and passed to the
components that need it; it is never mutated afterwards.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

DEFAULT_POPULATION_PATH = Path(__file__).parent.parent.parent / "data" / "population.json"
POPULATION_ENV_VAR = "POPULATION_DATA"


@dataclass(frozen=True)
class PopulationTable:
    """Immutable state -> local government area -> population mapping."""

    states: Mapping[str, Mapping[str, int]] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PopulationTable":
        frozen = {
            str(state): MappingProxyType({str(lga): int(pop) for lga, pop in (lgas or {}).items()})
            for state, lgas in data.items()
        }
        return cls(states=MappingProxyType(frozen))

    @classmethod
    def from_json(cls, path: Optional[Path] = None) -> "PopulationTable":
        """
        Load the table from JSON.

        Args:
            path: JSON file; defaults to $POPULATION_DATA or data/population.json

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        if path is None:
            path = Path(os.getenv(POPULATION_ENV_VAR) or DEFAULT_POPULATION_PATH)
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_mapping(json.load(f))

    def __len__(self) -> int:
        return len(self.states)

    def match_state(self, address: Optional[str]) -> Optional[str]:
        """First state whose name occurs in ``address`` (case-insensitive)."""
        if not address:
            return None
        haystack = address.lower()
        for state in self.states:
            if state.lower() in haystack:
                return state
        return None

    def lookup(self, state: str, lga: str) -> Optional[int]:
        return self.states.get(state, {}).get(lga)

    def state_total(self, state: str) -> Optional[int]:
        lgas = self.states.get(state)
        if lgas is None:
            return None
        return sum(lgas.values())

    def context_for(self, address: Optional[str]) -> Optional[str]:
        """Prompt line with the matched state's figures, or None."""
        state = self.match_state(address)
        if state is None:
            return None
        figures = json.dumps(dict(self.states[state]), ensure_ascii=False)
        return f"Population data for {state}: {figures}"
