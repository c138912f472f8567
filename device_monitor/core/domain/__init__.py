"""Domain layer: devices, alerts and the store contract."""

from .alert import Alert, AlertType, NewAlert
from .device import (
    DEFAULT_THRESHOLDS,
    Device,
    DeviceStatus,
    MetricType,
    NewDevice,
    ThresholdRange,
    Thresholds,
    utc_now,
)
from .store_interface import MonitorStore, StoreUnavailable, Unsubscribe

__all__ = [
    "Alert",
    "AlertType",
    "NewAlert",
    "DEFAULT_THRESHOLDS",
    "Device",
    "DeviceStatus",
    "MetricType",
    "NewDevice",
    "ThresholdRange",
    "Thresholds",
    "utc_now",
    "MonitorStore",
    "StoreUnavailable",
    "Unsubscribe",
]
