"""Tests de la API HTTP (FastAPI TestClient sobre el store en memoria)."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from device_monitor.alerts import NotificationRegistry
from device_monitor.core.domain import StoreUnavailable
from device_monitor.infrastructure.persistence import InMemoryMonitorStore
from device_monitor.main import create_app
from device_monitor.service import MonitoringService

from conftest import make_settings


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def store(clock):
    return InMemoryMonitorStore(clock=clock)


@pytest.fixture
def service(store, clock):
    return MonitoringService(store, sinks=[MagicMock()], registry=NotificationRegistry(), clock=clock)


@pytest.fixture
def client(service):
    app = create_app(settings=make_settings(), service=service, run_scheduler=False)
    with TestClient(app) as c:
        yield c


HOT = {
    "name": "Boiler",
    "temperature": 80,
    "humidity": 40,
    "windSpeed": 2,
    "gasLevel": 100,
    "latitude": 40.0,
    "longitude": -74.0,
}


# =============================================================================
# HEALTH
# =============================================================================

class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_ready(self, client):
        assert client.get("/ready").status_code == 200

    def test_not_ready_when_store_ping_fails(self, client, store, monkeypatch):
        monkeypatch.setattr(store, "ping", MagicMock(return_value=False))
        assert client.get("/ready").status_code == 503

    def test_metrics(self, client):
        client.post("/devices", json=HOT)
        body = client.get("/metrics").json()
        assert body["monitor"]["alerts_created"] == 1
        assert body["open_violation_keys"] == 1
        assert body["devices"] == 1


# =============================================================================
# DEVICES
# =============================================================================

class TestDevices:
    def test_add_and_list_with_metric_status(self, client):
        device_id = client.post("/devices", json=HOT).json()["id"]

        devices = client.get("/devices").json()
        assert len(devices) == 1
        device = devices[0]
        assert device["id"] == device_id
        assert device["status"] == "online"
        assert device["windSpeed"] == 2
        assert device["thresholds"]["gasLevel"] == {"min": 0, "max": 1000}
        assert device["metricStatus"]["temperature"] == "violation"
        assert device["metricStatus"]["humidity"] == "normal"
        assert "lastUpdated" in device

    def test_add_validates_payload(self, client):
        assert client.post("/devices", json={"name": ""}).status_code == 422
        assert client.post("/devices", json={"temperature": 1}).status_code == 422

    def test_patch_readings(self, client, store):
        device_id = client.post("/devices", json={"name": "a"}).json()["id"]
        r = client.patch(f"/devices/{device_id}", json={"humidity": 55.5, "gasLevel": 12})
        assert r.status_code == 200
        assert r.json()["humidity"] == 55.5
        assert store.get_devices()[0].gas_level == 12

    def test_patch_thresholds_merges_per_metric(self, client):
        device_id = client.post("/devices", json={"name": "a"}).json()["id"]
        r = client.patch(
            f"/devices/{device_id}",
            json={"thresholds": {"windSpeed": {"min": 1, "max": 20}}},
        )
        thresholds = r.json()["thresholds"]
        assert thresholds["windSpeed"] == {"min": 1, "max": 20}
        assert thresholds["temperature"] == {"min": -10, "max": 50}

    def test_put_thresholds_opens_violation(self, client, store):
        device_id = client.post("/devices", json={"name": "a", "temperature": 35}).json()["id"]
        r = client.put(
            f"/devices/{device_id}/thresholds",
            json={"temperature": {"min": 0, "max": 30}},
        )
        assert r.status_code == 200
        assert r.json()["metricStatus"]["temperature"] == "violation"
        assert len(store.get_alerts()) == 1

    def test_unknown_device_is_404(self, client):
        assert client.get("/devices/nope").status_code == 404
        assert client.patch("/devices/nope", json={"humidity": 1}).status_code == 404
        assert client.put("/devices/nope/thresholds", json={}).status_code == 404
        assert client.delete("/devices/nope").status_code == 404

    def test_delete(self, client):
        device_id = client.post("/devices", json=HOT).json()["id"]
        assert client.delete(f"/devices/{device_id}").status_code == 204
        assert client.get("/devices").json() == []
        # alerts are kept
        assert client.get("/alerts").json()["counts"]["total"] == 1

    def test_store_unavailable_is_503(self, client, store, monkeypatch):
        monkeypatch.setattr(store, "get_devices", MagicMock(side_effect=StoreUnavailable("down")))
        r = client.get("/devices")
        assert r.status_code == 503
        assert r.json()["detail"] == "store unavailable"


# =============================================================================
# ALERTS
# =============================================================================

class TestAlerts:
    def test_alert_wire_format(self, client):
        client.post("/devices", json=HOT)
        body = client.get("/alerts").json()

        assert body["counts"] == {"total": 1, "unacknowledged": 1, "acknowledged": 0}
        alert = body["alerts"][0]
        assert alert["type"] == "temperature"
        assert alert["deviceName"] == "Boiler"
        assert alert["value"] == 80
        assert alert["threshold"] == 50
        assert alert["message"] == "Temperature exceeded maximum threshold of 50°C"
        assert alert["acknowledgedAt"] is None

    def test_acknowledge_and_clear(self, client, clock):
        client.post("/devices", json=HOT)
        alert_id = client.get("/alerts").json()["alerts"][0]["id"]

        clock.advance(seconds=5)
        r = client.post(f"/alerts/{alert_id}/acknowledge")
        assert r.status_code == 200
        assert r.json()["counts"]["acknowledged"] == 1

        r = client.post("/alerts/clear-acknowledged")
        assert r.json() == {"ids": [alert_id], "count": 1}
        assert client.get("/alerts").json()["alerts"] == []

    def test_acknowledge_all(self, client):
        client.post("/devices", json=HOT)
        client.post("/devices", json={**HOT, "name": "Boiler 2"})

        r = client.post("/alerts/acknowledge-all")
        assert r.json()["count"] == 2
        assert client.get("/alerts").json()["counts"]["unacknowledged"] == 0

    def test_acknowledge_unknown_is_404(self, client):
        assert client.post("/alerts/nope/acknowledge").status_code == 404

    def test_refresh(self, client):
        assert client.post("/alerts/refresh").json()["counts"]["total"] == 0


# =============================================================================
# AUTH
# =============================================================================

@pytest.fixture
def secured_client(service):
    app = create_app(settings=make_settings(api_key="s3cret"), service=service, run_scheduler=False)
    with TestClient(app) as c:
        yield c


class TestApiKey:
    def test_key_required_when_configured(self, secured_client):
        assert secured_client.get("/devices").status_code == 401
        assert secured_client.get("/devices", headers={"X-API-Key": "wrong"}).status_code == 401
        assert secured_client.get("/devices", headers={"X-API-Key": "s3cret"}).status_code == 200
        # health stays open
        assert secured_client.get("/health").status_code == 200

    def test_key_comes_from_settings_not_process_env(self, client, monkeypatch):
        monkeypatch.setenv("MONITOR_API_KEY", "s3cret")

        assert client.get("/devices").status_code == 200
