"""
Address geocoding with a primary and a fallback provider.

Nominatim is tried first; Photon answers when Nominatim fails or finds
nothing. Successful lookups are cached per normalized query.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx
from cachetools import TTLCache

logger = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
PHOTON_URL = "https://photon.komoot.io/api/"

DEFAULT_CACHE_TTL_SEC = 60 * 60
DEFAULT_USER_AGENT = "retail-radar"


@dataclass(frozen=True)
class GeocodeResult:
    """A resolved address."""
    lat: float
    lng: float
    display_name: str
    provider: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "displayName": self.display_name,
            "provider": self.provider,
        }


def pick_preferred(results: Sequence[Dict[str, Any]], prefer: Sequence[str]) -> Optional[Dict[str, Any]]:
    """
    First result whose display name contains a preferred term.

    Terms are tried in order, so ``["Lagos", "Nigeria"]`` favours Lagos
    matches over any Nigerian match. Falls back to the first result.
    """
    if not results:
        return None
    for term in prefer:
        for result in results:
            if term in str(result.get("display_name", "")):
                return result
    return results[0]


class Geocoder:
    """Nominatim-then-Photon geocoder with a TTL cache."""

    def __init__(
        self,
        *,
        country_codes: Optional[str] = None,
        prefer: Sequence[str] = (),
        cache_ttl_sec: int = DEFAULT_CACHE_TTL_SEC,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.country_codes = country_codes
        self.prefer = list(prefer)
        self.user_agent = user_agent
        self.timeout = timeout
        self._transport = transport
        self._cache: TTLCache = TTLCache(maxsize=512, ttl=cache_ttl_sec)

    @staticmethod
    def _cache_key(address: str) -> str:
        return " ".join(address.lower().split())

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(url, params=params, headers={"User-Agent": self.user_agent})
            response.raise_for_status()
            return response.json()

    async def _nominatim(self, address: str) -> Optional[GeocodeResult]:
        params: Dict[str, Any] = {"format": "json", "q": address, "limit": 5}
        if self.country_codes:
            params["countrycodes"] = self.country_codes

        results: List[Dict[str, Any]] = await self._get_json(NOMINATIM_URL, params) or []
        match = pick_preferred(results, self.prefer)
        if match is None:
            return None
        return GeocodeResult(
            lat=float(match["lat"]),
            lng=float(match["lon"]),
            display_name=str(match.get("display_name", address)),
            provider="nominatim",
        )

    async def _photon(self, address: str) -> Optional[GeocodeResult]:
        data = await self._get_json(PHOTON_URL, {"q": address, "limit": 5}) or {}
        features = data.get("features") or []
        if not features:
            return None
        first = features[0]
        lng, lat = first["geometry"]["coordinates"][:2]
        name = (first.get("properties") or {}).get("name") or address
        return GeocodeResult(lat=float(lat), lng=float(lng), display_name=str(name), provider="photon")

    async def geocode(self, address: str) -> Optional[GeocodeResult]:
        """
        Resolve ``address`` to coordinates.

        Returns:
            GeocodeResult, or None when no provider resolves the address
        """
        key = self._cache_key(address)
        if key in self._cache:
            return self._cache[key]

        for provider in (self._nominatim, self._photon):
            try:
                result = await provider(address)
            except (httpx.HTTPError, ValueError, KeyError, TypeError, IndexError) as exc:
                logger.warning("Geocoding via %s failed for %r: %s", provider.__name__.strip("_"), address, exc)
                continue
            if result is not None:
                self._cache[key] = result
                return result

        logger.info("No geocoding provider resolved %r", address)
        return None

    def clear_cache(self) -> None:
        self._cache.clear()
