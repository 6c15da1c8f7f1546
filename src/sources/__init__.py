"""External data sources: store elements and geocoding."""

from .geocoding import GeocodeResult, Geocoder, pick_preferred
from .overpass import OVERPASS_URL, build_overpass_query, fetch_store_elements

__all__ = [
    "GeocodeResult",
    "Geocoder",
    "pick_preferred",
    "OVERPASS_URL",
    "build_overpass_query",
    "fetch_store_elements",
]
