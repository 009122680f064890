"""Read-only HTTP surface."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api_server import create_app

VENUE = "venue-a"


@pytest.fixture
def client(hook, make_config) -> TestClient:
    hook.initialize(VENUE, make_config(), reserve0=1_000, reserve1=1_000)
    return TestClient(create_app(hook))


def test_root_and_venue_listing(client) -> None:
    assert client.get("/").json()["venues"] == 1
    assert client.get("/api/venues").json() == [VENUE]


def test_state_endpoint(client) -> None:
    body = client.get(f"/api/venues/{VENUE}/state").json()

    assert body["reserve0"] == 1_000
    assert body["total_liquidity"] == 2_000
    assert body["trade_count"] == 0


def test_config_endpoint_exposes_only_handles(client) -> None:
    body = client.get(f"/api/venues/{VENUE}/config").json()

    assert body["curve_type"] == "linear"
    assert body["coefficient_count"] == 2
    assert all(h.startswith("EncryptedUint(") for h in body["coefficient_handles"])
    assert body["risk"]["volatility_factor"] == 500


def test_health_and_cache_endpoints(client) -> None:
    health = client.get(f"/api/venues/{VENUE}/health").json()
    cache = client.get(f"/api/venues/{VENUE}/cache").json()

    assert health["score"] == 100
    assert health["is_healthy"] is True
    assert cache["entries"] == 0
    assert cache["hit_rate"] == 0.0


def test_unknown_venue_is_404(client) -> None:
    assert client.get("/api/venues/nowhere/state").status_code == 404
    assert client.get("/api/venues/nowhere/health").status_code == 404
