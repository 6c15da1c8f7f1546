"""
src/spatial: Great-circle distance, density clustering and cluster summaries.

This module provides deterministic DBSCAN over haversine distances plus the
per-cluster statistics that feed maps and the insight prompt.
"""

from .distance import (
    EARTH_RADIUS_M,
    GeoPoint,
    haversine_m,
    haversine_to_many,
    pairwise_haversine,
)
from .dbscan import (
    NOISE,
    ClusterAssignment,
    ClusteringDiagnostics,
    InvalidParameterError,
    dbscan,
    diagnose,
    validate_parameters,
)
from .summary import (
    MIN_RADIUS_M,
    ClusterSummary,
    density_score,
    label_cluster,
    summarize_cluster,
    summarize_clusters,
)
from .heatmap import (
    SIZE_WEIGHTS,
    heat_points,
    hex_density,
    size_weight,
)

__all__ = [
    # Distance
    "EARTH_RADIUS_M",
    "GeoPoint",
    "haversine_m",
    "haversine_to_many",
    "pairwise_haversine",

    # Clustering
    "NOISE",
    "ClusterAssignment",
    "ClusteringDiagnostics",
    "InvalidParameterError",
    "dbscan",
    "diagnose",
    "validate_parameters",

    # Summaries
    "MIN_RADIUS_M",
    "ClusterSummary",
    "density_score",
    "label_cluster",
    "summarize_cluster",
    "summarize_clusters",

    # Heatmap
    "SIZE_WEIGHTS",
    "heat_points",
    "hex_density",
    "size_weight",
]
