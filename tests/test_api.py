import pytest
from fastapi.testclient import TestClient

from silonet.api.routes import health as health_routes
from silonet.main import create_app


@pytest.fixture()
def client():
    return TestClient(create_app())


def _point(lat, lon, pid=None):
    return {"latitude": lat, "longitude": lon, "id": pid}


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_osrm_health_uses_check(client, monkeypatch):
    monkeypatch.setattr(health_routes, "_get_osrm_health_check", lambda: (lambda: True))
    response = client.get("/api/health/osrm")
    assert response.json() == {"service": "osrm", "healthy": True}


def test_optimize_returns_network_and_assignment(client):
    payload = {
        "hub": _point(0.0, 0.0),
        "silos": [_point(0.0, 1.0, 1), _point(1.0, 0.0, 2)],
        "trucks": [_point(0.0, 1.1, 1), _point(1.1, 0.0, 2)],
        "use_road_network": False,
    }

    response = client.post("/api/optimize", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["distance_source"] == "geometric"
    assert len(body["network"]["edges"]) == 2
    assert body["network"]["edges"][0]["parent_role"] == "hub"
    assert body["network"]["parent_of"] == [-1, 0, 0]
    assert body["optimal_assignment"] == [0, 1]
    assert body["assignment"][1]["silo"]["id"] == 2
    assert body["metrics"]["total_optimized"] == pytest.approx(244.2)


def test_optimize_rejects_mismatched_counts(client):
    payload = {
        "hub": _point(0.0, 0.0),
        "silos": [_point(0.0, 1.0, 1), _point(1.0, 0.0, 2)],
        "trucks": [_point(0.0, 1.1, 1)],
        "use_road_network": False,
    }

    response = client.post("/api/optimize", json=payload)

    assert response.status_code == 400
    assert "must equal number of trucks" in response.json()["detail"]


def test_optimize_requires_hub(client):
    payload = {"silos": [_point(0.0, 1.0, 1)], "trucks": [_point(0.0, 1.1, 1)], "use_road_network": False}
    assert client.post("/api/optimize", json=payload).status_code == 400


def test_optimize_validates_coordinates(client):
    payload = {
        "hub": _point(95.0, 0.0),
        "silos": [_point(0.0, 1.0, 1)],
        "trucks": [_point(0.0, 1.1, 1)],
    }
    assert client.post("/api/optimize", json=payload).status_code == 422


def test_tour_orders_stops(client):
    payload = {
        "start": _point(0.0, 0.0),
        "orders": [_point(0.0, 3.0, 1), _point(0.0, 1.0, 2), _point(0.0, 2.0, 3)],
    }

    response = client.post("/api/tour", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["strategy"] == "nearest_neighbor"
    assert body["visited_sequence"] == [2, 3, 1]
    assert [stop["sequence"] for stop in body["stops"]] == [1, 2, 3]
    assert body["road"] is None
    assert body["total_distance_km"] == pytest.approx(
        sum(stop["distance_from_prev_km"] for stop in body["stops"]) + body["return_distance_km"]
    )


def test_scenarios_listing_and_lookup(client):
    listing = client.get("/api/scenarios")
    assert listing.status_code == 200
    assert [item["key"] for item in listing.json()] == ["small", "medium", "large", "asymmetric"]

    small = client.get("/api/scenarios/small").json()
    assert len(small["silos"]) == len(small["trucks"]) == 3

    assert client.get("/api/scenarios/unknown").status_code == 404


def test_scenario_optimize(client):
    response = client.post("/api/scenarios/medium/optimize", params={"use_road_network": False})
    assert response.status_code == 200
    body = response.json()
    assert len(body["optimal_assignment"]) == 5
    assert body["metrics"]["total_optimized"] <= body["metrics"]["total_baseline"] + 1e-9
