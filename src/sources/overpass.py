"""Overpass API store source."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from src.spatial import GeoPoint
from src.stores import resolve_location

logger = logging.getLogger(__name__)

OVERPASS_URL = "https://overpass-api.de/api/interpreter"
DEFAULT_RADIUS_M = 5000
DEFAULT_TIMEOUT_SEC = 25


def build_overpass_query(center: GeoPoint, radius_m: int = DEFAULT_RADIUS_M, *, timeout_sec: int = DEFAULT_TIMEOUT_SEC) -> str:
    """Overpass QL for shops and marketplaces within ``radius_m`` of ``center``."""
    around = f"(around:{int(radius_m)},{center.lat},{center.lng})"
    return (
        f"[out:json][timeout:{int(timeout_sec)}];\n"
        "(\n"
        f'  node["shop"]{around};\n'
        f'  node["amenity"="marketplace"]{around};\n'
        ");\n"
        "out center tags;\n"
    )


async def _http_post_form(
    url: str,
    form: Dict[str, str],
    *,
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        response = await client.post(url, data=form)
        response.raise_for_status()
        return response.json()


async def fetch_store_elements(
    center: GeoPoint,
    radius_m: int = DEFAULT_RADIUS_M,
    *,
    url: str = OVERPASS_URL,
    timeout_sec: int = DEFAULT_TIMEOUT_SEC,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[Dict[str, Any]]:
    """
    Fetch raw store elements around ``center``.

    Only elements with resolvable coordinates are returned.

    Raises:
        httpx.HTTPError: If the Overpass request fails
    """
    query = build_overpass_query(center, radius_m, timeout_sec=timeout_sec)
    data = await _http_post_form(
        url,
        {"data": query},
        # Leave the server its own timeout before giving up client-side
        timeout=float(timeout_sec) + 5.0,
        transport=transport,
    )

    elements = data.get("elements", []) or []
    located = [el for el in elements if isinstance(el, dict) and resolve_location(el) is not None]
    logger.info(
        "Overpass returned %d elements (%d with coordinates) within %dm of (%.5f, %.5f)",
        len(elements), len(located), radius_m, center.lat, center.lng,
    )
    return located
