"""
API tests for the Retail Radar server (apps/radar_server/main.py)

Services are real objects wired to httpx.MockTransport, injected through
FastAPI's dependency overrides; the Overpass fetch is monkeypatched.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

import apps.radar_server.main as server
from apps.radar_server.main import RadarServices, app, get_services
from src.insights import GeminiClient, PopulationTable
from src.sources import Geocoder
from src.tools.config_loader import ConfigLoader

GEMINI_REPLY = {
    "candidates": [
        {"content": {"parts": [{"text": "Overall store density:\nDense around Yaba.\n"}]}},
    ]
}


def _geocoder(results) -> Geocoder:
    def handler(request):
        if "nominatim" in request.url.host:
            return httpx.Response(200, json=results)
        return httpx.Response(200, json={"features": []})

    return Geocoder(transport=httpx.MockTransport(handler))


def _gemini(status=200, body=None) -> GeminiClient:
    def handler(request):
        return httpx.Response(status, json=GEMINI_REPLY if body is None else body)

    return GeminiClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def services(population_data):
    return RadarServices(
        profile=ConfigLoader.load_profile("lagos"),
        population=PopulationTable.from_mapping(population_data),
        geocoder=_geocoder([{"lat": "6.5095", "lon": "3.3711", "display_name": "Yaba, Lagos, Nigeria"}]),
        insight_client=_gemini(),
    )


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def fake_overpass(monkeypatch, yaba_elements):
    calls = []

    async def fake_fetch(center, radius_m, **kwargs):
        calls.append((center, radius_m, kwargs))
        return yaba_elements

    monkeypatch.setattr(server, "fetch_store_elements", fake_fetch)
    return calls


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


# ==============================================================================
# Geocoding
# ==============================================================================

@pytest.mark.integration
class TestGeocodeEndpoint:

    def test_found(self, client):
        response = client.get("/api/geocode", params={"q": "Yaba"})

        assert response.status_code == 200
        assert response.json() == {
            "lat": 6.5095, "lng": 3.3711, "displayName": "Yaba, Lagos, Nigeria", "provider": "nominatim",
        }

    @pytest.mark.parametrize("params", [{}, {"q": "   "}])
    def test_blank_query(self, client, params):
        response = client.get("/api/geocode", params=params)

        assert response.status_code == 400
        assert response.json()["detail"] == "Query missing"

    def test_not_found(self, client, services):
        services.geocoder = _geocoder([])

        response = client.get("/api/geocode", params={"q": "Nowhere"})

        assert response.status_code == 404


# ==============================================================================
# Clustering
# ==============================================================================

@pytest.mark.integration
class TestClustersEndpoint:

    def test_clusters(self, client, yaba_elements):
        response = client.post("/api/clusters", json={"elements": yaba_elements, "eps": 500, "minPts": 3})

        assert response.status_code == 200
        data = response.json()
        assert [c["storeCount"] for c in data["clusters"]] == [4, 3]
        assert [c["id"] for c in data["clusters"]] == [0, 1]
        assert data["noise"] == [301]
        assert len(data["stores"]) == 8
        assert data["stores"][0] == {
            "id": 101, "name": "Yaba Mart", "lat": 6.5095, "lng": 3.3711, "type": "supermarket", "size": "large",
        }
        assert data["diagnostics"]["numClusters"] == 2
        assert sum(h["storeCount"] for h in data["hexes"]) == 8
        assert len(data["heatPoints"]) == 8
        assert data["center"] is None

    def test_profile_defaults(self, client, yaba_elements):
        response = client.post("/api/clusters", json={"elements": yaba_elements})

        assert response.status_code == 200
        assert response.json()["diagnostics"]["epsM"] == 500.0

    def test_balltree(self, client, yaba_elements):
        brute = client.post("/api/clusters", json={"elements": yaba_elements}).json()
        tree = client.post("/api/clusters", json={"elements": yaba_elements, "neighborIndex": "balltree"}).json()

        assert tree["clusters"] == brute["clusters"]

    def test_empty(self, client):
        response = client.post("/api/clusters", json={"elements": []})

        assert response.status_code == 200
        assert response.json()["clusters"] == []

    @pytest.mark.parametrize("overrides", [{"eps": -1}, {"minPts": 0}, {"neighborIndex": "kdtree"}])
    def test_invalid_parameters(self, client, yaba_elements, overrides):
        response = client.post("/api/clusters", json={"elements": yaba_elements, **overrides})

        assert response.status_code == 422


# ==============================================================================
# Radar (geocode -> fetch -> analyze)
# ==============================================================================

@pytest.mark.integration
class TestRadarEndpoint:

    def test_radar(self, client, fake_overpass):
        response = client.post("/api/radar", json={"address": "Yaba"})

        assert response.status_code == 200
        data = response.json()
        assert data["center"] == {"lat": 6.5095, "lng": 3.3711}
        assert data["radiusM"] == 5000
        assert len(data["clusters"]) == 2

        center, radius_m, kwargs = fake_overpass[0]
        assert (center.lat, center.lng) == (6.5095, 3.3711)
        assert radius_m == 5000
        assert kwargs["timeout_sec"] == 25

    def test_radius_and_profile(self, client, fake_overpass):
        response = client.post("/api/radar", json={"address": "Yaba", "radiusM": 1500, "profile": "dense-market"})

        assert response.status_code == 200
        data = response.json()
        assert data["radiusM"] == 1500
        # dense-market needs 8 stores within 150m
        assert data["clusters"] == []
        assert fake_overpass[0][2]["timeout_sec"] == 40

    def test_unknown_profile(self, client, fake_overpass):
        response = client.post("/api/radar", json={"address": "Yaba", "profile": "atlantis"})

        assert response.status_code == 404
        assert fake_overpass == []

    def test_location_not_found(self, client, services, fake_overpass):
        services.geocoder = _geocoder([])

        response = client.post("/api/radar", json={"address": "Nowhere"})

        assert response.status_code == 404

    def test_blank_address(self, client):
        assert client.post("/api/radar", json={"address": "   "}).status_code == 422

    def test_radius_out_of_range(self, client):
        assert client.post("/api/radar", json={"address": "Yaba", "radiusM": 50}).status_code == 422

    def test_store_source_failure(self, client, monkeypatch):
        async def failing_fetch(center, radius_m, **kwargs):
            raise httpx.ConnectError("connection refused")

        monkeypatch.setattr(server, "fetch_store_elements", failing_fetch)

        response = client.post("/api/radar", json={"address": "Yaba"})

        assert response.status_code == 502


# ==============================================================================
# Insights
# ==============================================================================

@pytest.mark.integration
class TestAnalyzeEndpoint:

    @pytest.fixture
    def payload(self):
        return {
            "location": {"address": "Yaba, Lagos", "center": [6.5095, 3.3711], "radiusMeters": 5000},
            "clusters": [{"id": 0, "storeCount": 4, "types": {"bakery": 2, "kiosk": 2}, "sizes": {"small": 4}}],
        }

    def test_insight(self, client, payload):
        response = client.post("/api/analyze", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert data["insight"].startswith("Overall store density")
        assert data["sections"] == {"Overall store density": "Dense around Yaba."}

    def test_missing_api_key(self, client, payload, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        response = client.post("/api/analyze", json=payload)

        assert response.status_code == 500
        assert "GEMINI_API_KEY" in response.json()["detail"]["details"]

    def test_upstream_error(self, client, services, payload):
        services.insight_client = _gemini(403, {"error": {"message": "API key not valid"}})

        response = client.post("/api/analyze", json=payload)

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["status"] == 403
        assert detail["details"] == {"error": {"message": "API key not valid"}}

    def test_schema_mismatch(self, client, services, payload):
        services.insight_client = _gemini(200, {"candidates": [{"output": "misplaced"}]})

        response = client.post("/api/analyze", json=payload)

        assert response.status_code == 502
        assert response.json()["detail"]["error"] == "Unexpected AI response"

    def test_missing_location(self, client):
        assert client.post("/api/analyze", json={"clusters": []}).status_code == 422
