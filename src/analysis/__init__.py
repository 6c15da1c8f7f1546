"""
src/analysis: End-to-end store analysis.

Usage:
    from src.analysis import analyze, run_analysis

    summaries = analyze(overpass_elements, eps_m=500, min_pts=3)
    result = run_analysis(overpass_elements, neighbor_index="balltree")
"""

from .pipeline import (
    DEFAULT_EPS_M,
    DEFAULT_MIN_PTS,
    RadarAnalysis,
    analyze,
    run_analysis,
)

__all__ = [
    "DEFAULT_EPS_M",
    "DEFAULT_MIN_PTS",
    "RadarAnalysis",
    "analyze",
    "run_analysis",
]
