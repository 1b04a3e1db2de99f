import time
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from delivery_geo.exceptions import ProviderUnavailable
from delivery_geo.main import create_app
from delivery_geo.models.domain import Coordinate, RouteResult
from delivery_geo.services.geocoding import GeocodingProvider, GeocodingResolver
from delivery_geo.services.routing import RoutingProvider, TrackingRegistry

BANGALORE = Coordinate(12.9716, 77.5946)
DEFAULT = Coordinate(28.6139, 77.2090)

SHOP = {"latitude": 12.9716, "longitude": 77.5946}
CUSTOMER = {"latitude": 12.9352, "longitude": 77.6245}
DRIVER = {"latitude": 13.0100, "longitude": 77.5500}
SHOP_LOCATION = {"lat": 12.9716, "lng": 77.5946}


class DummyGeocoder(GeocodingProvider):
    name = "dummy"

    async def attempt(self, query: str) -> Optional[Coordinate]:
        return BANGALORE if "bengaluru" in query.lower() else None

    async def reverse(self, coordinate: Coordinate) -> Optional[str]:
        return "MG Road, Bengaluru" if coordinate == BANGALORE else None


class DummyRouter(RoutingProvider):
    name = "dummy"

    async def attempt(self, waypoints):
        return RouteResult(
            distance_meters=4200.0,
            duration_seconds=900.0,
            distance_text="4.2 km",
            duration_text="15 min",
            provider=self.name,
        )


class DownRouter(RoutingProvider):
    name = "down"

    async def attempt(self, waypoints):
        raise ProviderUnavailable(self.name, "HTTP 503")


def _app(router_cls=DummyRouter):
    resolver = GeocodingResolver([DummyGeocoder()], default=DEFAULT, country="India")
    registry = TrackingRegistry(router_cls, refresh_seconds=60)
    return create_app(resolver=resolver, registry=registry)


@pytest.fixture
def api_client():
    with TestClient(_app()) as client:
        yield client


def _poll(client: TestClient, path: str, attempts: int = 100):
    response = client.get(path)
    for _ in range(attempts):
        if response.status_code != 409:
            break
        time.sleep(0.01)
        response = client.get(path)
    return response


def test_health_endpoints(api_client: TestClient):
    assert api_client.get("/api/health").json() == {"status": "ok"}

    providers = api_client.get("/api/health/providers").json()
    assert providers == {"geocoding": [{"provider": "dummy", "available": True}], "tracked_orders": 0}


def test_osrm_health_uses_check(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from delivery_geo.services.routing import osrm_client

    async def fake_check_health(base_url=None):
        return False

    monkeypatch.setattr(osrm_client, "check_health", fake_check_health)

    assert api_client.get("/api/health/osrm").json() == {"service": "osrm", "healthy": False}


def test_distance_endpoint(api_client: TestClient):
    response = api_client.post(
        "/api/estimates/distance",
        json={"origin": {"latitude": 12.0, "longitude": 77.0}, "destination": {"latitude": 12.03, "longitude": 77.0}},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["distance_km"] == pytest.approx(3.3)
    assert body["distance_text"] == "3.3km"
    assert body["charge"] == 30


def test_distance_endpoint_rejects_bad_input(api_client: TestClient):
    invalid = api_client.post(
        "/api/estimates/distance",
        json={"origin": {"latitude": 95.0, "longitude": 77.0}, "destination": SHOP},
    )
    assert invalid.status_code == 422

    implausible = api_client.post(
        "/api/estimates/distance",
        json={"origin": {"latitude": 0.0, "longitude": 0.0}, "destination": {"latitude": 0.0, "longitude": 180.0}},
    )
    assert implausible.status_code == 400


def test_charges_endpoint_falls_back_for_missing_coordinates(api_client: TestClient):
    response = api_client.post(
        "/api/estimates/charges",
        json={
            "customer": CUSTOMER,
            "shops": [{"id": "no-location"}, {"id": "nearby", "location": SHOP_LOCATION}],
        },
    )
    assert response.status_code == 200
    estimates = response.json()["estimates"]
    assert estimates["no-location"] == {"shop_id": "no-location", "distance_km": 0.0, "charge": 30, "fallback": True}
    assert estimates["nearby"]["fallback"] is False
    assert estimates["nearby"]["charge"] == 45


def test_charges_endpoint_falls_back_for_unusable_coordinates(api_client: TestClient):
    response = api_client.post(
        "/api/estimates/charges",
        json={
            "customer": CUSTOMER,
            "shops": [
                {"id": "good", "location": SHOP_LOCATION},
                {"id": "out-of-range", "location": {"lat": 120.0, "lng": 77.5}},
                {"id": "garbled", "location": {"lat": "abc", "lng": "77.5"}},
                {"id": "not-a-mapping", "location": "12.97,77.59"},
            ],
        },
    )
    assert response.status_code == 200
    estimates = response.json()["estimates"]
    for shop_id in ("out-of-range", "garbled", "not-a-mapping"):
        assert estimates[shop_id] == {"shop_id": shop_id, "distance_km": 0.0, "charge": 30, "fallback": True}
    assert estimates["good"]["fallback"] is False
    assert estimates["good"]["distance_km"] == pytest.approx(5.2)
    assert estimates["good"]["charge"] == 45


def test_charges_endpoint_still_validates_customer(api_client: TestClient):
    response = api_client.post(
        "/api/estimates/charges",
        json={"customer": {"latitude": 120.0, "longitude": 77.5}, "shops": [{"id": "good", "location": SHOP_LOCATION}]},
    )
    assert response.status_code == 422


def test_geocode_endpoint(api_client: TestClient):
    found = api_client.post("/api/geocode", json={"address": "MG Road, Bengaluru"}).json()
    assert found["source"] == "dummy"
    assert (found["latitude"], found["longitude"]) == BANGALORE.as_tuple()

    fallback = api_client.post("/api/geocode", json={"address": "Nowhere"}).json()
    assert fallback["is_default"] is True
    assert (fallback["latitude"], fallback["longitude"]) == DEFAULT.as_tuple()
    assert fallback["attempts"] == [{"provider": "dummy", "outcome": "empty", "detail": ""}]


def test_geocode_endpoint_with_components(api_client: TestClient):
    response = api_client.post(
        "/api/geocode",
        json={"components": {"street": "Lane 5", "city": "Bengaluru", "state": "Karnataka"}},
    )
    assert response.json()["source"] == "dummy"


def test_geocode_endpoint_honours_provider_order(api_client: TestClient):
    body = api_client.post("/api/geocode", json={"address": "MG Road, Bengaluru", "providers": ["other"]}).json()
    assert body["is_default"] is True
    assert body["attempts"] == [{"provider": "other", "outcome": "skipped", "detail": "unknown provider"}]


def test_geocode_requires_address_or_components(api_client: TestClient):
    assert api_client.post("/api/geocode", json={}).status_code == 422


def test_reverse_geocode_endpoint(api_client: TestClient):
    response = api_client.get("/api/geocode/reverse", params={"latitude": 12.9716, "longitude": 77.5946})
    assert response.json()["address"] == "MG Road, Bengaluru"

    missing = api_client.get("/api/geocode/reverse", params={"latitude": 1.0, "longitude": 1.0})
    assert missing.json()["address"] is None


def test_tracking_lifecycle(api_client: TestClient):
    started = api_client.post("/api/tracking/order-1", json={"shop": SHOP, "customer": CUSTOMER})
    assert started.status_code == 202
    assert started.json()["order_id"] == "order-1"

    response = _poll(api_client, "/api/tracking/order-1")
    assert response.status_code == 200
    snapshot = response.json()["snapshot"]
    assert response.json()["state"] == "active"
    assert snapshot["origin_kind"] == "shop"
    assert snapshot["duration_text"] == "15 min"
    assert snapshot["stale"] is False

    moved = api_client.put("/api/tracking/order-1/driver", json={"driver": DRIVER})
    assert moved.status_code == 202

    for _ in range(100):
        snapshot = api_client.get("/api/tracking/order-1").json()["snapshot"]
        if snapshot["origin_kind"] == "driver":
            break
        time.sleep(0.01)
    assert snapshot["origin"] == DRIVER

    assert api_client.delete("/api/tracking/order-1").json() == {"order_id": "order-1", "state": "stopped"}
    assert api_client.get("/api/tracking/order-1").status_code == 404


def test_tracking_without_estimate_returns_conflict():
    with TestClient(_app(DownRouter)) as client:
        client.post("/api/tracking/order-2", json={"shop": SHOP, "customer": CUSTOMER})
        time.sleep(0.05)

        response = client.get("/api/tracking/order-2")

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "NoDataYet"
        assert detail["details"] == {"state": "resolving"}


def test_tracking_unknown_order_returns_404(api_client: TestClient):
    assert api_client.get("/api/tracking/ghost").status_code == 404
    assert api_client.put("/api/tracking/ghost/driver", json={"driver": DRIVER}).status_code == 404
    assert api_client.delete("/api/tracking/ghost").status_code == 404
