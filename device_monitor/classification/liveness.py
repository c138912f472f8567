"""Evaluador de conectividad.

Infiere online/offline según la antigüedad de ``last_updated`` y escribe
las transiciones de estado en el store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from ..core.domain import Device, DeviceStatus, MonitorStore
from ..core.monitoring import MonitorStats

logger = logging.getLogger(__name__)

DEFAULT_OFFLINE_THRESHOLD = timedelta(minutes=5)


@dataclass(frozen=True)
class StatusTransition:
    device_id: str
    from_status: DeviceStatus
    to_status: DeviceStatus


def infer_status(device: Device, now: datetime, offline_threshold: timedelta) -> Optional[DeviceStatus]:
    """Target status for ``device``, or None when no transition applies.

    online  and age >  threshold -> offline
    offline and age <= threshold -> online
    """
    age = now - device.last_updated
    if device.status == DeviceStatus.ONLINE and age > offline_threshold:
        return DeviceStatus.OFFLINE
    if device.status == DeviceStatus.OFFLINE and age <= offline_threshold:
        return DeviceStatus.ONLINE
    return None


class LivenessEvaluator:
    """Writes status transitions for stale/revived devices.

    A failed write is logged and skipped; the next tick re-evaluates.
    Status writes do not refresh ``last_updated`` in the store, so a
    transition never looks like fresh sensor data.
    """

    def __init__(
        self,
        store: MonitorStore,
        stats: MonitorStats,
        offline_threshold: timedelta = DEFAULT_OFFLINE_THRESHOLD,
    ) -> None:
        self._store = store
        self._stats = stats
        self._offline_threshold = offline_threshold

    @property
    def offline_threshold(self) -> timedelta:
        return self._offline_threshold

    def evaluate(self, devices: Iterable[Device], now: datetime) -> List[StatusTransition]:
        """Run one liveness pass over ``devices``.

        Returns:
            Transitions that were written successfully.
        """
        self._stats.liveness_ticks += 1
        written: List[StatusTransition] = []
        for device in devices:
            target = infer_status(device, now, self._offline_threshold)
            if target is None:
                continue
            try:
                self._store.update_device(device.id, {"status": target.value})
            except Exception:
                self._stats.status_failures += 1
                logger.exception("[LIVENESS] Error updating status for device %s", device.id)
                continue

            self._stats.status_transitions += 1
            written.append(StatusTransition(device.id, device.status, target))
            logger.info(
                "[LIVENESS] device=%s %s -> %s (last_updated=%s)",
                device.id,
                device.status.value,
                target.value,
                device.last_updated.isoformat(),
            )
        return written
