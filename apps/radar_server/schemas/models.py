"""Pydantic models for the Retail Radar API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class LatLng(BaseModel):
    """Simple latitude/longitude container."""

    lat: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    lng: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")


class ClusteringParams(BaseModel):
    """DBSCAN parameters; omitted values come from the active profile.

    Range checks are left to the clustering engine so invalid values surface
    as its own error message.
    """

    eps: Optional[float] = Field(default=None, description="Neighbourhood radius in metres")
    min_pts: Optional[int] = Field(default=None, alias="minPts")
    neighbor_index: Optional[str] = Field(default=None, alias="neighborIndex")

    model_config = {"populate_by_name": True}


class ClustersRequest(ClusteringParams):
    elements: List[Dict[str, Any]] = Field(
        default_factory=list, description="Overpass-style elements with coordinates and tags"
    )


class RadarRequest(ClusteringParams):
    address: str = Field(..., min_length=1)
    radius_m: Optional[int] = Field(default=None, ge=100, le=20000, alias="radiusM")
    profile: Optional[str] = None

    @field_validator("address")
    @classmethod
    def _strip_address(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("address must not be blank")
        return value


class StoreOut(BaseModel):
    id: Any
    name: str
    lat: float
    lng: float
    type: str
    size: str


class ClusterOut(BaseModel):
    id: int
    label: str
    centroid: List[float]
    radius_meters: float = Field(alias="radiusMeters")
    store_count: int = Field(alias="storeCount")
    density_per_km2: float = Field(alias="densityPerKm2")
    density_score: int = Field(alias="densityScore")
    types: Dict[str, int]
    sizes: Dict[str, int]
    member_indices: List[int] = Field(default_factory=list, alias="memberIndices")

    model_config = {"populate_by_name": True}


class HexBin(BaseModel):
    hex_id: str = Field(..., alias="hexId")
    center: LatLng
    store_count: int = Field(..., alias="storeCount")
    weight_sum: float = Field(..., alias="weightSum")
    large_share: float = Field(..., alias="largeShare")

    model_config = {"populate_by_name": True}


class DiagnosticsOut(BaseModel):
    num_points: int = Field(alias="numPoints")
    num_clusters: int = Field(alias="numClusters")
    num_noise: int = Field(alias="numNoise")
    noise_ratio: float = Field(alias="noiseRatio")
    eps_m: float = Field(alias="epsM")
    min_pts: int = Field(alias="minPts")
    cluster_sizes: List[int] = Field(default_factory=list, alias="clusterSizes")
    silhouette_score: Optional[float] = Field(default=None, alias="silhouetteScore")
    suggestions: List[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class AnalysisResponse(BaseModel):
    center: Optional[LatLng] = None
    radius_m: Optional[int] = Field(default=None, alias="radiusM")
    stores: List[StoreOut]
    clusters: List[ClusterOut]
    noise: List[Any] = Field(default_factory=list, description="Ids of unclustered stores")
    heat_points: List[List[float]] = Field(default_factory=list, alias="heatPoints")
    hexes: List[HexBin] = Field(default_factory=list)
    diagnostics: DiagnosticsOut

    model_config = {"populate_by_name": True}


class GeocodeResponse(BaseModel):
    lat: float
    lng: float
    display_name: str = Field(alias="displayName")
    provider: str

    model_config = {"populate_by_name": True}


class LocationIn(BaseModel):
    address: str
    center: Optional[List[float]] = None
    radius_meters: Optional[int] = Field(default=None, alias="radiusMeters")

    model_config = {"populate_by_name": True}


class InsightRequest(BaseModel):
    location: LocationIn
    clusters: List[Dict[str, Any]]


class InsightResponse(BaseModel):
    insight: str
    sections: Dict[str, str] = Field(default_factory=dict)
