from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List

from ...core.domain import (
    Alert,
    Device,
    MonitorStore,
    NewAlert,
    NewDevice,
    Unsubscribe,
    utc_now,
)
from ...core.domain.device import apply_update
from .subscriptions import SubscriberHub


class InMemoryMonitorStore(MonitorStore):
    """Implementación sencilla en memoria de las dos colecciones.

    - Publica el snapshot completo a los suscriptores tras cada escritura.
    - Sin persistencia: se pierde al reiniciar el proceso.
    - Pensado para tests y ejecución local.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self._devices: Dict[str, Device] = {}
        self._alerts: Dict[str, Alert] = {}
        self._device_hub: SubscriberHub[Device] = SubscriberHub("devices")
        self._alert_hub: SubscriberHub[Alert] = SubscriberHub("alerts")

    # -- subscriptions ----------------------------------------------------

    def subscribe_devices(self, callback) -> Unsubscribe:  # type: ignore[override]
        return self._device_hub.add(callback, self.get_devices())

    def subscribe_alerts(self, callback) -> Unsubscribe:  # type: ignore[override]
        return self._alert_hub.add(callback, self.get_alerts())

    # -- devices ----------------------------------------------------------

    def get_devices(self) -> List[Device]:
        return [replace(d) for d in self._devices.values()]

    def add_device(self, device: NewDevice) -> str:
        device_id = uuid.uuid4().hex
        self._devices[device_id] = device.to_device(device_id, self._clock())
        self._device_hub.publish(self.get_devices())
        return device_id

    def put_device(self, device: Device) -> None:
        """Insert or replace a device as-is (keeps its id and last_updated)."""
        self._devices[device.id] = replace(device)
        self._device_hub.publish(self.get_devices())

    def update_device(self, device_id: str, fields: Dict[str, Any]) -> None:
        current = self._devices[device_id]
        self._devices[device_id] = apply_update(current, fields, self._clock())
        self._device_hub.publish(self.get_devices())

    def delete_device(self, device_id: str) -> None:
        del self._devices[device_id]
        self._device_hub.publish(self.get_devices())

    # -- alerts -----------------------------------------------------------

    def get_alerts(self) -> List[Alert]:
        ordered = sorted(self._alerts.values(), key=lambda a: a.created_at, reverse=True)
        return [replace(a) for a in ordered]

    def add_alert(self, alert: NewAlert) -> str:
        alert_id = uuid.uuid4().hex
        self._alerts[alert_id] = Alert.from_new(alert_id, alert)
        self._alert_hub.publish(self.get_alerts())
        return alert_id

    def acknowledge_alert(self, alert_id: str, acknowledged_at: datetime) -> None:
        current = self._alerts[alert_id]
        self._alerts[alert_id] = replace(current, acknowledged=True, acknowledged_at=acknowledged_at)
        self._alert_hub.publish(self.get_alerts())

    def delete_alert(self, alert_id: str) -> None:
        del self._alerts[alert_id]
        self._alert_hub.publish(self.get_alerts())

    def ping(self) -> bool:
        return True
