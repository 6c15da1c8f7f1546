"""
Density-based clustering (DBSCAN) on great-circle distances.

This module provides:
1. Parameter validation that fails before any computation
2. Brute-force and ball-tree neighbourhood graphs with identical contents
3. Deterministic DBSCAN labelling (scikit-learn) over that graph: clusters
   are numbered by their first core point in input order, and border points
   go to the first cluster that reaches them
4. Diagnostics for tuning eps / min_pts (noise ratio, silhouette score)

Neighbourhoods are inclusive: ``q`` is a neighbour of ``p`` when
``haversine(p, q) <= eps_m``, and every point is its own neighbour.
"""

from __future__ import annotations

import json
import logging
import math
import numbers
import warnings
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
from scipy import sparse
from sklearn.cluster import DBSCAN
from sklearn.metrics import silhouette_score
from sklearn.neighbors import BallTree

from .distance import EARTH_RADIUS_M, GeoPoint, haversine_to_many

logger = logging.getLogger(__name__)

NOISE = -1

NEIGHBOR_INDEXES = ("brute", "balltree")

# Relative widening of the ball-tree radius; candidates are re-checked exactly
_BALLTREE_SLACK = 1e-9

# Silhouette is computed on a random sample above this many clustered points
SILHOUETTE_SAMPLE_SIZE = 2000


class InvalidParameterError(ValueError):
    """Raised for clustering parameters outside their valid domain."""


@dataclass
class ClusterAssignment:
    """
    Partition of input indices into clusters plus a noise set.

    Every index in ``range(num_points)`` appears exactly once, either in one
    cluster or in ``noise``.

    Attributes:
        clusters: Member indices per cluster (ascending), clusters in
                  discovery order
        noise: Indices not density-reachable from any core point (ascending)
        num_points: Size of the clustered input
    """
    clusters: List[List[int]] = field(default_factory=list)
    noise: List[int] = field(default_factory=list)
    num_points: int = 0

    @property
    def num_clusters(self) -> int:
        return len(self.clusters)

    @property
    def num_noise(self) -> int:
        return len(self.noise)

    @property
    def cluster_sizes(self) -> List[int]:
        return [len(members) for members in self.clusters]

    def labels(self) -> np.ndarray:
        """Per-index cluster ordinal, ``-1`` for noise."""
        labels = np.full(self.num_points, NOISE, dtype=int)
        for cid, members in enumerate(self.clusters):
            labels[members] = cid
        return labels


@dataclass
class ClusteringDiagnostics:
    """Quality summary of a clustering run, for tuning and logging."""

    num_points: int
    """Total number of points clustered."""

    num_clusters: int
    """Number of clusters found (excluding noise)."""

    num_noise: int
    """Number of noise points."""

    eps_m: float
    """Neighbourhood radius used, in metres."""

    min_pts: int
    """Minimum neighbourhood size for a core point."""

    cluster_sizes: List[int] = field(default_factory=list)
    """Size of each cluster, in discovery order."""

    silhouette_score: Optional[float] = None
    """Silhouette on haversine distances (None if fewer than 2 clusters)."""

    suggestions: List[str] = field(default_factory=list)
    """Actionable hints for adjusting parameters."""

    @property
    def noise_ratio(self) -> float:
        if self.num_points == 0:
            return 0.0
        return self.num_noise / self.num_points

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["noise_ratio"] = self.noise_ratio
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def validate_parameters(eps_m: float, min_pts: int) -> None:
    """
    Reject out-of-domain parameters instead of clamping them.

    Raises:
        InvalidParameterError: If ``eps_m`` is negative or NaN, or ``min_pts``
                               is not an integer >= 1
    """
    if isinstance(eps_m, bool) or not isinstance(eps_m, numbers.Real):
        raise InvalidParameterError(f"eps must be a number of metres, got {eps_m!r}")
    if math.isnan(eps_m) or eps_m < 0:
        raise InvalidParameterError(f"eps must be >= 0 metres, got {eps_m}")
    if isinstance(min_pts, bool) or not isinstance(min_pts, numbers.Integral):
        raise InvalidParameterError(f"min_pts must be an integer, got {min_pts!r}")
    if min_pts < 1:
        raise InvalidParameterError(f"min_pts must be >= 1, got {min_pts}")


class _NeighborIndex:
    """Exact eps-neighbourhood queries over a fixed point set."""

    def __init__(self, points: Sequence[GeoPoint], eps_m: float, method: str):
        self.points = points
        self.eps_m = float(eps_m)
        self.lats = np.array([p.lat for p in points], dtype=float)
        self.lngs = np.array([p.lng for p in points], dtype=float)
        self._tree: Optional[BallTree] = None

        if method == "balltree" and len(points) > 0:
            coords = np.radians(np.column_stack([self.lats, self.lngs]))
            self._tree = BallTree(coords, metric="haversine")
            self._radius_rad = self.eps_m * (1 + _BALLTREE_SLACK) / EARTH_RADIUS_M + 1e-12

    def query(self, i: int):
        """Indices within ``eps_m`` of point ``i`` (including ``i``) and their distances, nearest first."""
        if self._tree is None:
            candidates = np.arange(len(self.points))
        else:
            origin = np.radians([[self.lats[i], self.lngs[i]]])
            candidates = self._tree.query_radius(origin, r=self._radius_rad)[0]

        distances = haversine_to_many(self.points[i], self.lats[candidates], self.lngs[candidates])
        within = distances <= self.eps_m
        candidates, distances = candidates[within], distances[within]
        order = np.lexsort((candidates, distances))
        return candidates[order], distances[order]

    def radius_graph(self) -> sparse.csr_matrix:
        """Sparse n×n matrix holding exactly the eps-neighbourhood distances."""
        n = len(self.points)
        rows = [self.query(i) for i in range(n)]
        indptr = np.cumsum([0] + [len(indices) for indices, _ in rows])
        indices = np.concatenate([indices for indices, _ in rows]).astype(np.int64)
        data = np.concatenate([distances for _, distances in rows])
        return sparse.csr_matrix((data, indices, indptr), shape=(n, n))


def dbscan(
    points: Sequence[GeoPoint],
    eps_m: float,
    min_pts: int,
    *,
    neighbor_index: str = "brute",
) -> ClusterAssignment:
    """
    Cluster ``points`` with DBSCAN using great-circle distance.

    Neighbourhoods are computed exactly (inclusive ``<=``) and handed to
    scikit-learn's DBSCAN as a precomputed sparse graph. Clusters are numbered
    by their first core point in input order and a border point joins the
    first cluster that reaches it, so the same input always yields the same
    assignment.

    Args:
        points: Ordered coordinates to cluster
        eps_m: Neighbourhood radius in metres (>= 0)
        min_pts: Minimum neighbourhood size, self included, for a core point
        neighbor_index: "brute" (O(n²) scan) or "balltree" (scikit-learn
                        BallTree pre-filter); both give identical results

    Returns:
        ClusterAssignment partitioning ``range(len(points))``

    Raises:
        InvalidParameterError: For invalid ``eps_m``, ``min_pts`` or index name
    """
    validate_parameters(eps_m, min_pts)
    if neighbor_index not in NEIGHBOR_INDEXES:
        raise InvalidParameterError(
            f"Unknown neighbor_index {neighbor_index!r}; expected one of {', '.join(NEIGHBOR_INDEXES)}"
        )

    n = len(points)
    if n == 0:
        return ClusterAssignment(num_points=0)

    graph = _NeighborIndex(points, eps_m, neighbor_index).radius_graph()

    # The graph already holds only neighbours; sklearn needs eps > 0
    radius = max(float(eps_m), np.finfo(float).tiny)
    labels = DBSCAN(eps=radius, min_samples=int(min_pts), metric="precomputed").fit(graph).labels_

    clusters: List[List[int]] = [
        np.flatnonzero(labels == cid).tolist() for cid in range(int(labels.max()) + 1)
    ]
    noise = np.flatnonzero(labels == NOISE).tolist()

    if logger.isEnabledFor(logging.DEBUG):
        for cid, members in enumerate(clusters):
            logger.debug("Cluster %d starts at index %d with %d members", cid, members[0], len(members))

    logger.info(
        "DBSCAN (eps=%.1fm, min_pts=%d, index=%s): %d points -> %d clusters, %d noise",
        eps_m, min_pts, neighbor_index, n, len(clusters), len(noise),
    )
    return ClusterAssignment(clusters=clusters, noise=noise, num_points=n)


def _compute_cluster_quality(
    coords_rad: np.ndarray,
    labels: np.ndarray,
    num_clusters: int,
) -> Optional[float]:
    """
    Haversine silhouette score on (lat, lng) radians, ignoring noise.

    Large inputs are sampled down to SILHOUETTE_SAMPLE_SIZE points.

    Returns None if quality cannot be computed (e.g., < 2 clusters).
    """
    if num_clusters < 2:
        return None

    mask = labels != NOISE
    clustered = int(mask.sum())
    if clustered <= num_clusters:
        return None

    sample_size = SILHOUETTE_SAMPLE_SIZE if clustered > SILHOUETTE_SAMPLE_SIZE else None
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            score = silhouette_score(
                coords_rad[mask],
                labels[mask],
                metric="haversine",
                sample_size=sample_size,
                random_state=0,
            )
        return float(score)
    except ValueError:
        return None


def diagnose(
    points: Sequence[GeoPoint],
    assignment: ClusterAssignment,
    eps_m: float,
    min_pts: int,
) -> ClusteringDiagnostics:
    """Build diagnostics and tuning suggestions for a finished run."""
    suggestions: List[str] = []
    num_points = assignment.num_points

    silhouette = None
    if assignment.num_clusters >= 2:
        coords_rad = np.radians([[p.lat, p.lng] for p in points])
        silhouette = _compute_cluster_quality(coords_rad, assignment.labels(), assignment.num_clusters)

    if num_points == 0:
        suggestions.append("No stores to cluster. Consider widening the search radius.")
    elif assignment.num_clusters == 0:
        suggestions.append(
            f"No clusters found among {num_points} stores. "
            f"Consider increasing eps above {eps_m:.0f}m or reducing min_pts below {min_pts}."
        )

    if num_points and assignment.num_noise > num_points * 0.5:
        suggestions.append(
            f"High noise ratio ({assignment.num_noise}/{num_points} = "
            f"{assignment.num_noise / num_points:.1%}). Consider increasing eps."
        )

    if silhouette is not None:
        if silhouette < 0.2:
            suggestions.append(
                f"Low silhouette score ({silhouette:.3f}). Clusters may be poorly separated; "
                "consider reducing eps."
            )
        elif silhouette > 0.5:
            suggestions.append(f"Good cluster separation (silhouette={silhouette:.3f}).")

    diagnostics = ClusteringDiagnostics(
        num_points=num_points,
        num_clusters=assignment.num_clusters,
        num_noise=assignment.num_noise,
        eps_m=float(eps_m),
        min_pts=int(min_pts),
        cluster_sizes=assignment.cluster_sizes,
        silhouette_score=silhouette,
        suggestions=suggestions,
    )
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Clustering diagnostics: %s", diagnostics.to_json())
    return diagnostics
