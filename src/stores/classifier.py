"""
Store classification for raw OpenStreetMap-style elements.

Turns heterogeneous tag bags (as returned by Overpass) into normalized
:class:`StoreRecord` objects with a category and a coarse size tier.
Classification is a total function: any tag bag, including an empty one,
produces a record with best-effort defaults.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional

from src.spatial.distance import GeoPoint

logger = logging.getLogger(__name__)


class SizeTier(str, Enum):
    """Coarse store size derived from tag keywords."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


# Tag keys checked for the category, highest priority first
CATEGORY_TAG_KEYS = ("shop", "amenity", "building", "landuse")
DEFAULT_CATEGORY = "shop"
DEFAULT_NAME = "Unnamed"

LARGE_KEYWORDS = (
    "supermarket",
    "department_store",
    "department store",
    "mall",
    "hypermarket",
)
MEDIUM_KEYWORDS = (
    "grocery",
    "chemist",
    "pharmacy",
    "bakery",
    "convenience",
    "hardware",
)

# Overpass element types with an areal footprint
AREAL_ELEMENT_TYPES = frozenset({"way", "relation"})


@dataclass(frozen=True)
class StoreRecord:
    """
    One physical point of interest after classification.

    Attributes:
        id: Opaque identifier, unique within one analysis run
        name: Display name ("Unnamed" when the source has none)
        location: Resolved coordinates
        category: Normalized category tag (e.g. "supermarket")
        size_tier: Coarse size tier
        tags: Read-only view of the raw tag bag
    """
    id: Any
    name: str
    location: GeoPoint
    category: str
    size_tier: SizeTier
    tags: Mapping[str, str] = field(default_factory=dict, compare=False, repr=False)

    @property
    def lat(self) -> float:
        return self.location.lat

    @property
    def lng(self) -> float:
        return self.location.lng

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "lat": self.location.lat,
            "lng": self.location.lng,
            "type": self.category,
            "size": self.size_tier.value,
        }


def _tag_bag(element: Mapping[str, Any]) -> Mapping[str, Any]:
    tags = element.get("tags")
    return tags if isinstance(tags, Mapping) else {}


def classify_category(tags: Mapping[str, Any]) -> str:
    """Return the first present category tag, or the ``"shop"`` sentinel."""
    for key in CATEGORY_TAG_KEYS:
        value = tags.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return DEFAULT_CATEGORY


def classify_size(tags: Mapping[str, Any], *, areal: bool = False) -> SizeTier:
    """
    Estimate a size tier from keywords anywhere in the tag values.

    Areal footprints (ways/relations) are lifted to at least medium.
    """
    haystack = " ".join(str(v) for v in tags.values() if v is not None).lower()

    if any(keyword in haystack for keyword in LARGE_KEYWORDS):
        return SizeTier.LARGE
    if any(keyword in haystack for keyword in MEDIUM_KEYWORDS):
        return SizeTier.MEDIUM
    if areal:
        return SizeTier.MEDIUM
    return SizeTier.SMALL


def _as_coordinate(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def resolve_location(element: Mapping[str, Any]) -> Optional[GeoPoint]:
    """
    Resolve coordinates from ``lat``/``lon``, falling back to ``center``.

    Overpass reports ways and relations with ``out center`` as a ``center``
    object instead of top-level coordinates.
    """
    lat = _as_coordinate(element.get("lat"))
    lng = _as_coordinate(element.get("lon", element.get("lng")))
    if lat is not None and lng is not None:
        return GeoPoint(lat=lat, lng=lng)

    center = element.get("center")
    if isinstance(center, Mapping):
        lat = _as_coordinate(center.get("lat"))
        lng = _as_coordinate(center.get("lon", center.get("lng")))
        if lat is not None and lng is not None:
            return GeoPoint(lat=lat, lng=lng)
    return None


def classify_store(
    element: Mapping[str, Any],
    *,
    location: Optional[GeoPoint] = None,
    default_id: Any = None,
) -> StoreRecord:
    """
    Classify a single raw element into a :class:`StoreRecord`.

    Args:
        element: Overpass-style mapping with optional ``type``, ``id``,
                 ``lat``/``lon``/``center`` and ``tags``
        location: Pre-resolved coordinates (resolved from ``element`` if None)
        default_id: Identifier to use when the element carries none

    Raises:
        ValueError: If no location is given and none can be resolved
    """
    if location is None:
        location = resolve_location(element)
        if location is None:
            raise ValueError(f"Element {element.get('id', default_id)!r} has no resolvable location")

    tags = _tag_bag(element)
    name = tags.get("name") or tags.get("brand") or DEFAULT_NAME
    areal = str(element.get("type", "")).lower() in AREAL_ELEMENT_TYPES
    record_id = element.get("id")

    return StoreRecord(
        id=default_id if record_id is None else record_id,
        name=str(name),
        location=location,
        category=classify_category(tags),
        size_tier=classify_size(tags, areal=areal),
        tags=MappingProxyType({str(k): v for k, v in tags.items()}),
    )


def classify_elements(elements: Iterable[Mapping[str, Any]]) -> List[StoreRecord]:
    """
    Classify elements in input order, dropping those without coordinates.

    Elements lacking an ``id`` get their input position as identifier.
    """
    records: List[StoreRecord] = []
    skipped = 0
    for position, element in enumerate(elements):
        location = resolve_location(element)
        if location is None:
            skipped += 1
            logger.debug("Skipping element %r without coordinates", element.get("id", position))
            continue
        records.append(classify_store(element, location=location, default_id=position))

    if skipped:
        logger.info("Dropped %d of %d elements without a resolvable location", skipped, skipped + len(records))
    return records
