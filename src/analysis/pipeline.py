"""
Store analysis pipeline: classify -> cluster -> summarize.

The pipeline is synchronous and owns all of its state, so concurrent callers
can run it side by side on their own inputs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple

import pandas as pd

from src.spatial import (
    ClusterAssignment,
    ClusteringDiagnostics,
    ClusterSummary,
    dbscan,
    diagnose,
    heat_points,
    hex_density,
    summarize_clusters,
    validate_parameters,
)
from src.spatial.heatmap import DEFAULT_H3_RES
from src.stores import StoreRecord, classify_elements

logger = logging.getLogger(__name__)

DEFAULT_EPS_M = 500.0
DEFAULT_MIN_PTS = 3


@dataclass
class RadarAnalysis:
    """Everything one analysis run produces."""

    records: List[StoreRecord]
    assignment: ClusterAssignment
    clusters: List[ClusterSummary]
    diagnostics: ClusteringDiagnostics
    heat_points: List[Tuple[float, float, float]] = field(default_factory=list)
    hex_bins: pd.DataFrame = field(default_factory=pd.DataFrame)

    @property
    def noise_records(self) -> List[StoreRecord]:
        return [self.records[i] for i in self.assignment.noise]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "storeCount": len(self.records),
            "clusters": [c.to_dict() for c in self.clusters],
            "noise": [r.id for r in self.noise_records],
            "stores": [r.to_dict() for r in self.records],
            "heatPoints": [list(p) for p in self.heat_points],
            "diagnostics": self.diagnostics.to_dict(),
        }


def analyze(
    raw_records: Iterable[Mapping[str, Any]],
    eps_m: float = DEFAULT_EPS_M,
    min_pts: int = DEFAULT_MIN_PTS,
) -> List[ClusterSummary]:
    """
    Classify raw elements, cluster them and summarize each cluster.

    Elements without a resolvable location are dropped before clustering.

    Raises:
        InvalidParameterError: If ``eps_m`` or ``min_pts`` is out of domain
    """
    validate_parameters(eps_m, min_pts)
    records = classify_elements(raw_records)
    assignment = dbscan([r.location for r in records], eps_m, min_pts)
    return summarize_clusters(records, assignment)


def run_analysis(
    raw_records: Iterable[Mapping[str, Any]],
    eps_m: float = DEFAULT_EPS_M,
    min_pts: int = DEFAULT_MIN_PTS,
    *,
    neighbor_index: str = "brute",
    heat_resolution: int = DEFAULT_H3_RES,
) -> RadarAnalysis:
    """
    Full analysis run with diagnostics and heatmap data.

    Args:
        raw_records: Overpass-style elements
        eps_m: DBSCAN neighbourhood radius in metres
        min_pts: DBSCAN minimum neighbourhood size
        neighbor_index: "brute" or "balltree"
        heat_resolution: H3 resolution for the hex bins

    Returns:
        RadarAnalysis with records, assignment, summaries and diagnostics
    """
    validate_parameters(eps_m, min_pts)
    records = classify_elements(raw_records)
    points = [r.location for r in records]

    assignment = dbscan(points, eps_m, min_pts, neighbor_index=neighbor_index)
    clusters = summarize_clusters(records, assignment)
    diagnostics = diagnose(points, assignment, eps_m, min_pts)

    logger.info(
        "Analyzed %d stores: %d clusters, %d noise",
        len(records), len(clusters), assignment.num_noise,
    )
    for suggestion in diagnostics.suggestions:
        logger.info("Clustering hint: %s", suggestion)

    return RadarAnalysis(
        records=records,
        assignment=assignment,
        clusters=clusters,
        diagnostics=diagnostics,
        heat_points=heat_points(records),
        hex_bins=hex_density(records, res=heat_resolution),
    )
