"""Configuration helpers."""

from .config_loader import (
    ConfigLoader,
    clustering_settings,
    geocoding_settings,
    get_config,
    heatmap_settings,
    insight_settings,
    search_settings,
)

__all__ = [
    "ConfigLoader",
    "clustering_settings",
    "geocoding_settings",
    "get_config",
    "heatmap_settings",
    "insight_settings",
    "search_settings",
]
