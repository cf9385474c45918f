"""
Smoke test: end-to-end requests through the FastAPI app.

Runs against an in-memory store so no database is required. Covers the
scenarios the map and panel clients depend on:
1. Reference route returned unchanged
2. Reference route with a detour
3. Conflict zones per period
4. Statistics on a cold store
"""

import pytest
from pathlib import Path
import sys

from fastapi.testclient import TestClient

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from backend.main import app, get_service


@pytest.fixture
def client(service):
    """TestClient wired to the per-test service."""
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestRouteScenarios:
    def test_reference_route_without_detour(self, client):
        response = client.get("/od-routes", params={"origin": "FRA", "destination": "LHR"})

        assert response.status_code == 200
        assert response.json() == {
            "baselineDistance": 658,
            "duringDistance": 658,
            "detourKm": 0,
            "baselineTime": 95,
            "duringTime": 95,
            "extraFuel": 0,
            "co2Impact": 0,
        }

    def test_reference_route_with_detour(self, client):
        response = client.get("/od-routes", params={"origin": "VIE", "destination": "IST"})

        assert response.status_code == 200
        data = response.json()
        assert data["detourKm"] == 232
        assert data["duringDistance"] == 1280
        assert data["co2Impact"] == 5.1

    def test_post_body(self, client):
        response = client.post("/od-routes", json={"origin": "waw", "destination": "kbp"})

        assert response.status_code == 200
        assert 150 <= response.json()["detourKm"] < 350

    def test_missing_destination(self, client):
        response = client.get("/od-routes", params={"origin": "FRA"})

        assert response.status_code == 400
        assert response.json() == {"error": "Origin and destination are required"}

    def test_empty_post_body(self, client):
        response = client.post("/od-routes", json={})
        assert response.status_code == 400

    def test_same_airport_both_ends(self, client):
        response = client.get("/od-routes", params={"origin": "WAW", "destination": "WAW"})

        assert response.status_code == 400
        assert "WAW" in response.json()["error"]

    def test_unknown_airport(self, client):
        response = client.get("/od-routes", params={"origin": "FRA", "destination": "ZZZ"})

        assert response.status_code == 404
        assert "ZZZ" in response.json()["error"]


class TestConflictScenarios:
    def test_baseline_has_no_zones(self, client):
        response = client.get("/conflicts", params={"period": "baseline"})

        assert response.status_code == 200
        assert response.json() == {"type": "FeatureCollection", "features": []}

    def test_during_lists_high_severity_zone(self, client):
        response = client.get("/conflicts", params={"period": "during"})

        features = response.json()["features"]
        assert features[0]["properties"]["severity"] == 3
        assert features[0]["geometry"]["type"] == "Polygon"

    def test_unknown_period(self, client):
        response = client.get("/conflicts", params={"period": "postwar"})

        assert response.status_code == 400
        assert "error" in response.json()


class TestStatsScenarios:
    def test_cold_store_during(self, client):
        response = client.get("/stats", params={"period": "during"})

        assert response.status_code == 200
        data = response.json()
        assert data["totalFlights"] == 41289
        assert data["avgDetour"] == 187
        assert data["affectedRoutes"] == 78
        assert len(data["topAffectedRoutes"]) == 3

    def test_default_period(self, client):
        data = client.get("/stats").json()
        assert data["totalFlights"] == 45623
        assert "topAffectedRoutes" not in data


def test_heatmap(client, config):
    response = client.get("/heatmap", params={"period": "during"})

    assert response.status_code == 200
    features = response.json()["features"]
    assert 0 < len(features) <= len(config.corridor_anchors) * config.samples_per_anchor


def test_airports(client):
    response = client.get("/airports")

    assert response.status_code == 200
    codes = [a["iata_code"] for a in response.json()]
    assert "FRA" in codes
    assert codes == sorted(codes)


def test_root_and_metrics(client):
    assert client.get("/").json()["service"] == "FlightImpact Backend"

    client.get("/stats")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "backend_http_requests_total" in response.text
