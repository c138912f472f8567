"""Detector de movimiento.

Guarda las últimas coordenadas de cada dispositivo online y genera una
alerta de ubicación cuando se mueve más que el umbral espacial entre
snapshots consecutivos.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from ..alerts.alert_manager import AlertLifecycleManager
from ..core.domain import AlertType, Device, NewAlert
from ..core.geo import haversine_m
from ..core.monitoring import MonitorStats
from .violation_tracker import ViolationTracker

logger = logging.getLogger(__name__)

DEFAULT_MOVEMENT_THRESHOLD_M = 5.0


class LocationSuppression(str, Enum):
    """How long a location alert suppresses the next one."""

    SESSION = "session"              # never cleared until restart
    SELF_CLEARING = "self_clearing"  # cleared by a later small move


@dataclass(frozen=True)
class LastLocation:
    lat: float
    lon: float


class MovementDetector:
    """Distance-based movement detection for online devices.

    Offline devices are skipped entirely: neither checked nor cached.
    The cached location is updated on every online snapshot, whether or
    not an alert fired.
    """

    def __init__(
        self,
        tracker: ViolationTracker,
        alerts: AlertLifecycleManager,
        stats: MonitorStats,
        threshold_m: float = DEFAULT_MOVEMENT_THRESHOLD_M,
        suppression: LocationSuppression = LocationSuppression.SESSION,
    ) -> None:
        self._tracker = tracker
        self._alerts = alerts
        self._stats = stats
        self._threshold_m = float(threshold_m)
        self._suppression = LocationSuppression(suppression)
        self._last: Dict[str, LastLocation] = {}

    @property
    def threshold_m(self) -> float:
        return self._threshold_m

    def last_location(self, device_id: str) -> Optional[LastLocation]:
        return self._last.get(device_id)

    def forget_device(self, device_id: str) -> None:
        self._last.pop(device_id, None)

    def check_device(self, device: Device, now: datetime) -> Optional[str]:
        """Returns the id of the location alert created, if any."""
        if not device.is_online:
            return None

        alert_id = None
        prev = self._last.get(device.id)
        if prev is not None:
            distance = haversine_m(prev.lat, prev.lon, device.latitude, device.longitude)
            if distance > self._threshold_m:
                if not self._tracker.is_open(device.id, AlertType.LOCATION):
                    alert_id = self._issue(device, distance, now)
            elif self._suppression == LocationSuppression.SELF_CLEARING:
                self._tracker.clear(device.id, AlertType.LOCATION)

        self._last[device.id] = LastLocation(device.latitude, device.longitude)
        return alert_id

    def _issue(self, device: Device, distance: float, now: datetime) -> Optional[str]:
        alert = NewAlert(
            device_id=device.id,
            device_name=device.name,
            type=AlertType.LOCATION,
            value=distance,
            threshold=self._threshold_m,
            message=f"Device moved {distance:.2f} meters from its previous location",
            created_at=now,
        )
        try:
            alert_id = self._alerts.create(alert)
        except Exception:
            self._stats.alert_failures += 1
            logger.exception("[MOVE] Error creating location alert for device %s", device.name)
            return None

        self._tracker.mark_open(device.id, AlertType.LOCATION)
        self._stats.alerts_created += 1
        logger.info("[MOVE] Device %s moved %.2fm", device.name, distance)
        return alert_id
