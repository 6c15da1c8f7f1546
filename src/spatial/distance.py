"""Great-circle distance helpers on a spherical Earth."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

EARTH_RADIUS_M = 6_371_000.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees (WGS-84)."""

    lat: float
    lng: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lng)


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """
    Great-circle distance in metres between ``a`` and ``b``.

    Coordinates are not validated: NaN or out-of-range input yields NaN
    (or a meaningless number), so callers validate first.
    """
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def haversine_to_many(origin: GeoPoint, lats: np.ndarray, lngs: np.ndarray) -> np.ndarray:
    """Distances in metres from ``origin`` to every (lat, lng) pair."""
    lat1 = np.radians(origin.lat)
    lat2 = np.radians(np.asarray(lats, dtype=float))
    dlat = lat2 - lat1
    dlng = np.radians(np.asarray(lngs, dtype=float) - origin.lng)

    h = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlng / 2) ** 2
    # Rounding can push h a hair outside [0, 1]
    h = np.clip(h, 0.0, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


def pairwise_haversine(points: Sequence[GeoPoint]) -> np.ndarray:
    """Symmetric n×n distance matrix in metres."""
    n = len(points)
    matrix = np.zeros((n, n), dtype=float)
    if n == 0:
        return matrix

    lats = np.array([p.lat for p in points], dtype=float)
    lngs = np.array([p.lng for p in points], dtype=float)
    for i, origin in enumerate(points):
        matrix[i] = haversine_to_many(origin, lats, lngs)
    # Mirror the upper triangle so d(a, b) == d(b, a) exactly
    upper = np.triu(matrix)
    return upper + upper.T - np.diag(np.diag(matrix))
