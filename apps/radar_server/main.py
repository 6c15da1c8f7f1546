"""FastAPI server exposing store clustering, geocoding and AI insights."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from src.insights import (
    GeminiClient,
    GenerationConfig,
    InsightServiceError,
    PopulationTable,
    SchemaMismatchError,
    generate_insight,
)
from src.sources import Geocoder, fetch_store_elements
from src.spatial import GeoPoint, InvalidParameterError
from src.tools.config_loader import (
    ConfigLoader,
    geocoding_settings,
    insight_settings,
    search_settings,
)

from .schemas.models import (
    AnalysisResponse,
    ClustersRequest,
    GeocodeResponse,
    InsightRequest,
    InsightResponse,
    RadarRequest,
)
from .tools.analysis import analyze_elements, to_response

load_dotenv()

logger = logging.getLogger(__name__)

_profile = ConfigLoader.load_default_or_env_profile()

app = FastAPI(title="Retail Radar API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=(_profile.get("server", {}) or {}).get("cors_origins", ["*"]),
    allow_methods=["*"],
    allow_headers=["*"],
)


@dataclass
class RadarServices:
    """Long-lived collaborators, built once per process."""

    profile: Dict[str, Any]
    population: PopulationTable
    geocoder: Geocoder
    insight_client: GeminiClient

    @classmethod
    def from_profile(cls, profile: Dict[str, Any]) -> "RadarServices":
        geo_cfg = geocoding_settings(profile)
        ai_cfg = insight_settings(profile)
        return cls(
            profile=profile,
            population=PopulationTable.from_json(),
            geocoder=Geocoder(
                country_codes=geo_cfg["country_codes"],
                prefer=geo_cfg["prefer"],
                cache_ttl_sec=geo_cfg["cache_ttl_sec"],
                user_agent=geo_cfg["user_agent"],
            ),
            insight_client=GeminiClient(
                ai_cfg["model"],
                generation=GenerationConfig(
                    temperature=ai_cfg["temperature"],
                    max_output_tokens=ai_cfg["max_output_tokens"],
                ),
            ),
        )


_services: Optional[RadarServices] = None


def get_services() -> RadarServices:
    global _services
    if _services is None:
        _services = RadarServices.from_profile(_profile)
        logger.info("Loaded population data for %d states", len(_services.population))
    return _services


def _load_profile(name: Optional[str], services: RadarServices) -> Dict[str, Any]:
    if not name:
        return services.profile
    try:
        return ConfigLoader.load_profile(name)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/health")
async def health_check() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/api/geocode")
async def geocode_action(
    q: str = Query("", description="Free-form address"),
    services: RadarServices = Depends(get_services),
) -> Dict[str, Any]:
    if not q.strip():
        raise HTTPException(status_code=400, detail="Query missing")

    result = await services.geocoder.geocode(q.strip())
    if result is None:
        raise HTTPException(status_code=404, detail=f"Location not found: {q}")
    return GeocodeResponse(**result.to_dict()).model_dump(by_alias=True)


@app.post("/api/clusters")
async def clusters_action(
    request: ClustersRequest,
    services: RadarServices = Depends(get_services),
) -> Dict[str, Any]:
    try:
        result = analyze_elements(request.elements, request, services.profile)
    except InvalidParameterError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    response: AnalysisResponse = to_response(result)
    return response.model_dump(by_alias=True)


@app.post("/api/radar")
async def radar_action(
    request: RadarRequest,
    services: RadarServices = Depends(get_services),
) -> Dict[str, Any]:
    profile = _load_profile(request.profile, services)
    search_cfg = search_settings(profile)
    radius_m = request.radius_m or search_cfg["radius_m"]

    geo = await services.geocoder.geocode(request.address)
    if geo is None:
        raise HTTPException(status_code=404, detail=f"Location not found: {request.address}")
    center = GeoPoint(lat=geo.lat, lng=geo.lng)

    try:
        elements = await fetch_store_elements(
            center,
            radius_m,
            url=search_cfg["overpass_url"],
            timeout_sec=search_cfg["timeout_sec"],
        )
    except httpx.HTTPError as exc:
        logger.exception("Overpass request failed for %r", request.address)
        raise HTTPException(status_code=502, detail=f"Store source request failed: {exc}") from exc

    try:
        result = analyze_elements(elements, request, profile)
    except InvalidParameterError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    response = to_response(result, center=center, radius_m=radius_m)
    return response.model_dump(by_alias=True)


@app.post("/api/analyze")
async def analyze_action(
    request: InsightRequest,
    services: RadarServices = Depends(get_services),
) -> Dict[str, Any]:
    try:
        insight = await generate_insight(
            request.location.address,
            request.clusters,
            client=services.insight_client,
            population=services.population,
        )
    except SchemaMismatchError as exc:
        logger.exception("Insight reply did not match the expected schema")
        raise HTTPException(status_code=502, detail={"error": "Unexpected AI response", "details": str(exc)}) from exc
    except InsightServiceError as exc:
        logger.exception("Insight service request failed")
        raise HTTPException(
            status_code=502,
            detail={"error": "AI service request failed", "status": exc.status_code, "details": exc.details},
        ) from exc
    except httpx.HTTPError as exc:
        logger.exception("Insight service unreachable")
        raise HTTPException(status_code=502, detail={"error": "AI request failed", "details": str(exc)}) from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=500, detail={"error": "AI request failed", "details": str(exc)}) from exc

    return InsightResponse(insight=insight.text, sections=insight.sections).model_dump()


__all__ = ["app", "get_services", "RadarServices"]
