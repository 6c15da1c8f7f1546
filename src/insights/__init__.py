"""
src/insights: Natural-language summaries of store clusters.

Provides:
- Population reference data loaded once and passed explicitly
- The retail-analyst prompt and reply sectioning
- A Gemini client pinned to one documented response schema
"""

from .gemini import (
    GeminiClient,
    GenerateContentResponse,
    GenerationConfig,
    InsightServiceError,
    SchemaMismatchError,
    parse_generate_content,
)
from .population import PopulationTable
from .prompt import (
    SECTION_HEADERS,
    build_prompt,
    compact_clusters,
    split_sections,
)
from .service import Insight, generate_insight

__all__ = [
    "GeminiClient",
    "GenerateContentResponse",
    "GenerationConfig",
    "InsightServiceError",
    "SchemaMismatchError",
    "parse_generate_content",
    "PopulationTable",
    "SECTION_HEADERS",
    "build_prompt",
    "compact_clusters",
    "split_sections",
    "Insight",
    "generate_insight",
]
