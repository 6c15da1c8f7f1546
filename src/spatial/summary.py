"""
Per-cluster summaries: geometry, density and store-mix histograms.

Summaries are read-only projections of a :class:`ClusterAssignment` over the
record list it indexes. Noise points produce no summary.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Sequence, Tuple

import pandas as pd

from .dbscan import ClusterAssignment
from .distance import GeoPoint, haversine_m

if TYPE_CHECKING:
    from src.stores.classifier import StoreRecord

logger = logging.getLogger(__name__)

MIN_RADIUS_M = 100.0
MIN_AREA_KM2 = 0.0001
DENSITY_SCORE_SCALE = 10.0
DENSITY_SCORE_MAX = 100

# Categories too generic to name a cluster after
GENERIC_CATEGORIES = {"shop", "yes", ""}


@dataclass(frozen=True)
class ClusterSummary:
    """Geometric and categorical statistics for one cluster."""

    id: int
    """0-based ordinal in cluster discovery order."""

    centroid: GeoPoint
    """Arithmetic mean of member latitudes/longitudes."""

    radius_m: float
    """Max distance centroid -> member, floored at MIN_RADIUS_M."""

    store_count: int
    """Number of member stores."""

    density_per_km2: float
    """Stores per km² of the enclosing circle."""

    density_score: int
    """Display score in [0, 100]."""

    type_histogram: Mapping[str, int] = field(default_factory=dict)
    """Category -> count, in first-appearance order."""

    size_histogram: Mapping[str, int] = field(default_factory=dict)
    """Size tier -> count, in first-appearance order."""

    member_indices: Tuple[int, ...] = ()
    """Indices into the record list the summary was built from."""

    label: str = ""
    """Human-readable label from the dominant categories."""

    def to_prompt_dict(self) -> Dict[str, Any]:
        """Compact projection sent to the summarization service."""
        return {
            "id": self.id,
            "centroid": [self.centroid.lat, self.centroid.lng],
            "storeCount": self.store_count,
            "types": dict(self.type_histogram),
            "sizes": dict(self.size_histogram),
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_prompt_dict()
        data.update(
            {
                "label": self.label,
                "radiusMeters": self.radius_m,
                "densityPerKm2": self.density_per_km2,
                "densityScore": self.density_score,
                "memberIndices": list(self.member_indices),
            }
        )
        return data


def round_half_up(value: float) -> int:
    """Round halves away from zero for non-negative input (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def density_score(density_per_km2: float) -> int:
    """Bounded [0, 100] display score: ``round(min(100, density × 10))``."""
    scaled = min(float(DENSITY_SCORE_MAX), density_per_km2 * DENSITY_SCORE_SCALE)
    return max(0, round_half_up(scaled))


def label_cluster(type_histogram: Mapping[str, int], top_n_tokens: int = 2) -> str:
    """
    Generate a deterministic, human-readable label from category counts.

    Ties are broken alphabetically so the same histogram always produces
    the same label.

    Returns:
        e.g. "Supermarket", "bakery + pharmacy" or "Mixed stores"
    """
    counts = pd.Series(dict(type_histogram), dtype=int)
    counts = counts[~counts.index.isin(GENERIC_CATEGORIES)]
    if counts.empty:
        return "Mixed stores"

    # Ties stay in alphabetical order
    ranked = counts.sort_index().sort_values(ascending=False, kind="stable")
    top_tokens = list(ranked.index[:top_n_tokens])

    if len(top_tokens) == 1:
        return top_tokens[0].replace("_", " ").title()
    return " + ".join(tok.replace("_", " ") for tok in top_tokens)


def _histogram(values: Sequence[str]) -> Dict[str, int]:
    histogram: Dict[str, int] = {}
    for value in values:
        histogram[value] = histogram.get(value, 0) + 1
    return histogram


def summarize_cluster(
    cluster_id: int,
    members: Sequence["StoreRecord"],
    member_indices: Sequence[int] = (),
    *,
    min_radius_m: float = MIN_RADIUS_M,
    min_area_km2: float = MIN_AREA_KM2,
) -> ClusterSummary:
    """Reduce one cluster's member records to a :class:`ClusterSummary`."""
    if not members:
        raise ValueError(f"Cluster {cluster_id} has no members")

    count = len(members)
    # Flat lat/lng averaging, not a geodesic centroid
    centroid = GeoPoint(
        lat=sum(m.location.lat for m in members) / count,
        lng=sum(m.location.lng for m in members) / count,
    )

    max_distance = max(haversine_m(centroid, m.location) for m in members)
    radius_m = max(max_distance, min_radius_m)
    area_km2 = math.pi * (radius_m / 1000) ** 2
    density = count / max(area_km2, min_area_km2)

    type_histogram = _histogram([m.category for m in members])
    size_histogram = _histogram([getattr(m.size_tier, "value", m.size_tier) for m in members])

    return ClusterSummary(
        id=cluster_id,
        centroid=centroid,
        radius_m=radius_m,
        store_count=count,
        density_per_km2=density,
        density_score=density_score(density),
        type_histogram=type_histogram,
        size_histogram=size_histogram,
        member_indices=tuple(member_indices),
        label=label_cluster(type_histogram),
    )


def summarize_clusters(
    records: Sequence["StoreRecord"],
    assignment: ClusterAssignment,
    *,
    min_radius_m: float = MIN_RADIUS_M,
    min_area_km2: float = MIN_AREA_KM2,
) -> List[ClusterSummary]:
    """
    Summarize every cluster of ``assignment`` in discovery order.

    Args:
        records: The classified records the assignment indexes
        assignment: Output of :func:`~src.spatial.dbscan.dbscan`
        min_radius_m: Radius floor for degenerate (tight) clusters
        min_area_km2: Area floor guarding the density division

    Returns:
        One summary per cluster, ``id`` = 0-based discovery ordinal
    """
    if assignment.num_points != len(records):
        raise ValueError(
            f"Assignment covers {assignment.num_points} points but {len(records)} records were given"
        )

    summaries: List[ClusterSummary] = []
    for cid, indices in enumerate(assignment.clusters):
        summary = summarize_cluster(
            cid,
            [records[i] for i in indices],
            indices,
            min_radius_m=min_radius_m,
            min_area_km2=min_area_km2,
        )
        summaries.append(summary)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Cluster %d '%s': %d stores, radius %.0fm, score %d",
                summary.id, summary.label, summary.store_count, summary.radius_m, summary.density_score,
            )
    return summaries
