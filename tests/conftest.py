"""
Pytest configuration and shared fixtures for retail-radar tests.

This file provides:
- Sample Overpass elements (Lagos neighbourhoods)
- Coordinate fixtures for clustering scenarios
- Population reference data on disk
- Common test utilities
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List

import pytest

from src.spatial import GeoPoint


# ==============================================================================
# Coordinates
# ==============================================================================

@pytest.fixture
def lagos_triplet() -> List[GeoPoint]:
    """Three stores roughly 20m apart in Lagos."""
    return [
        GeoPoint(6.5244, 3.3792),
        GeoPoint(6.5246, 3.3793),
        GeoPoint(6.5245, 3.3791),
    ]


@pytest.fixture
def two_distant_points() -> List[GeoPoint]:
    """Two points about 10km apart along a meridian."""
    # 10,000m / 6,371,000m in degrees of latitude
    return [GeoPoint(6.5, 3.38), GeoPoint(6.5 + 0.0899322, 3.38)]


# ==============================================================================
# Sample Overpass Elements
# ==============================================================================

def _node(node_id: int, lat: float, lon: float, **tags: str) -> Dict[str, Any]:
    return {"type": "node", "id": node_id, "lat": lat, "lon": lon, "tags": dict(tags)}


@pytest.fixture
def yaba_elements() -> List[Dict[str, Any]]:
    """
    Two store groups about 3km apart plus one isolated kiosk.

    Group A (Yaba): 4 stores within ~60m.
    Group B (Surulere): 3 stores within ~40m.
    """
    return [
        _node(101, 6.5095, 3.3711, shop="supermarket", name="Yaba Mart"),
        _node(102, 6.5097, 3.3713, shop="bakery", name="Sweet Crust"),
        _node(103, 6.5093, 3.3714, shop="convenience"),
        _node(104, 6.5096, 3.3709, shop="clothes", brand="Ankara Hub"),
        _node(201, 6.4990, 3.3490, amenity="marketplace", name="Ojuelegba Market"),
        _node(202, 6.4992, 3.3492, shop="chemist", name="HealthPlus"),
        _node(203, 6.4989, 3.3493, shop="mobile_phone"),
        _node(301, 6.5400, 3.4000, shop="kiosk"),
    ]


@pytest.fixture
def unlocated_element() -> Dict[str, Any]:
    return {"type": "node", "id": 999, "tags": {"shop": "bakery"}}


# ==============================================================================
# Population Data
# ==============================================================================

@pytest.fixture
def population_data() -> Dict[str, Dict[str, int]]:
    return {
        "Lagos": {"Ikeja": 313196, "Surulere": 503975},
        "Oyo": {"Ibadan North": 306795},
    }


@pytest.fixture
def population_file(tmp_path, population_data) -> Path:
    path = tmp_path / "population.json"
    path.write_text(json.dumps(population_data), encoding="utf-8")
    return path


# ==============================================================================
# Environment Setup
# ==============================================================================

@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Setup test environment variables."""
    # Dummy key for tests (not a real key)
    os.environ["GEMINI_API_KEY"] = "TEST_API_KEY_NOT_REAL"
    os.environ.pop("RADAR_PROFILE", None)
    yield


# ==============================================================================
# Utilities
# ==============================================================================

def assert_partition(assignment) -> None:
    """Every index appears exactly once across clusters and noise."""
    seen = [i for members in assignment.clusters for i in members] + list(assignment.noise)
    assert sorted(seen) == list(range(assignment.num_points))
