"""Shared helpers: a controllable clock and a device factory."""

from datetime import datetime, timedelta, timezone

import pytest

from common.config import Settings
from device_monitor.core.domain import Device, DeviceStatus, Thresholds


T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, minutes: float = 0) -> datetime:
        self.now = self.now + timedelta(seconds=seconds, minutes=minutes)
        return self.now


def make_device(device_id="dev-1", name="Sensor 1", **overrides) -> Device:
    values = dict(
        id=device_id,
        name=name,
        latitude=40.7128,
        longitude=-74.0060,
        temperature=22.0,
        humidity=45.0,
        wind_speed=10.0,
        gas_level=150.0,
        status=DeviceStatus.ONLINE,
        last_updated=T0,
        thresholds=Thresholds(),
    )
    values.update(overrides)
    return Device(**values)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_settings(**overrides) -> Settings:
    values = dict(
        database_url="sqlite://",
        store_backend="memory",
        liveness_interval_seconds=60,
        offline_threshold_seconds=120,
        movement_threshold_m=25,
        location_suppression="self_clearing",
        notify_window_seconds=10,
        sound_enabled=False,
        api_key=None,
        backend_url="http://backend:3000",
        internal_api_key=None,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)
