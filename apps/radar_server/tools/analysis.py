"""Adapters between the analysis pipeline and API response models."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

from src.analysis import RadarAnalysis, run_analysis
from src.spatial import GeoPoint
from src.tools.config_loader import clustering_settings, heatmap_settings

from ..schemas.models import (
    AnalysisResponse,
    ClusteringParams,
    ClusterOut,
    DiagnosticsOut,
    HexBin,
    LatLng,
    StoreOut,
)


def resolve_params(params: ClusteringParams, profile: Dict[str, Any]) -> Dict[str, Any]:
    """Merge request overrides onto the profile's clustering settings."""
    settings = clustering_settings(profile)
    if params.eps is not None:
        settings["eps_m"] = params.eps
    if params.min_pts is not None:
        settings["min_pts"] = params.min_pts
    if params.neighbor_index is not None:
        settings["neighbor_index"] = params.neighbor_index
    return settings


def analyze_elements(
    elements: Iterable[Mapping[str, Any]],
    params: ClusteringParams,
    profile: Dict[str, Any],
) -> RadarAnalysis:
    settings = resolve_params(params, profile)
    return run_analysis(
        elements,
        settings["eps_m"],
        settings["min_pts"],
        neighbor_index=settings["neighbor_index"],
        heat_resolution=heatmap_settings(profile)["h3_resolution"],
    )


def to_response(
    result: RadarAnalysis,
    *,
    center: Optional[GeoPoint] = None,
    radius_m: Optional[int] = None,
) -> AnalysisResponse:
    hexes = [
        HexBin(
            hex_id=row.hex,
            center=LatLng(lat=row.lat, lng=row.lng),
            store_count=int(row.store_count),
            weight_sum=float(row.weight_sum),
            large_share=float(row.large_share),
        )
        for row in result.hex_bins.itertuples(index=False)
    ]

    return AnalysisResponse(
        center=LatLng(lat=center.lat, lng=center.lng) if center is not None else None,
        radius_m=radius_m,
        stores=[StoreOut(**record.to_dict()) for record in result.records],
        clusters=[ClusterOut.model_validate(summary.to_dict()) for summary in result.clusters],
        noise=[record.id for record in result.noise_records],
        heat_points=[list(point) for point in result.heat_points],
        hexes=hexes,
        diagnostics=DiagnosticsOut.model_validate(result.diagnostics.to_dict()),
    )
