"""Detector de violaciones de umbral.

Por snapshot de dispositivo y por métrica: decide si hay violación y
emite como máximo una alerta por episodio.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from ..alerts.alert_manager import AlertLifecycleManager
from ..core.domain import Device, NewAlert
from ..core.monitoring import MonitorStats
from .metrics import METRIC_SPECS, Breach, evaluate
from .violation_tracker import ViolationTracker

logger = logging.getLogger(__name__)


class ThresholdViolationDetector:
    """Evaluates the four metrics of a device against its thresholds.

    Rules:
    - breached and no open key  -> create alert, open key on success
    - breached and key open     -> suppress (same episode)
    - back in range             -> clear key so a later breach re-alerts

    Data-driven: called once per device per snapshot, never on a timer.
    """

    def __init__(
        self,
        tracker: ViolationTracker,
        alerts: AlertLifecycleManager,
        stats: MonitorStats,
    ) -> None:
        self._tracker = tracker
        self._alerts = alerts
        self._stats = stats

    def check_device(self, device: Device, now: datetime) -> List[str]:
        """Evaluate every metric of ``device``.

        Returns:
            Ids of the alerts created in this pass.
        """
        created: List[str] = []
        for spec in METRIC_SPECS:
            value = device.metric_value(spec.metric)
            breach = evaluate(spec, value, device.thresholds.for_metric(spec.metric))

            if breach is None:
                if self._tracker.clear(device.id, spec.alert_type):
                    logger.info(
                        "[THRESHOLD] Recovered device=%s metric=%s value=%s",
                        device.id,
                        spec.metric.value,
                        value,
                    )
                continue

            if self._tracker.is_open(device.id, spec.alert_type):
                continue

            alert_id = self._issue(device, breach, now)
            if alert_id is not None:
                created.append(alert_id)
        return created

    def _issue(self, device: Device, breach: Breach, now: datetime) -> str | None:
        alert = NewAlert(
            device_id=device.id,
            device_name=device.name,
            type=breach.spec.alert_type,
            value=breach.value,
            threshold=breach.threshold,
            message=breach.message,
            created_at=now,
        )
        try:
            alert_id = self._alerts.create(alert)
        except Exception:
            # Key stays closed: the next snapshot retries the write.
            self._stats.alert_failures += 1
            logger.exception(
                "[THRESHOLD] Error creating %s alert for device %s",
                breach.spec.metric.value,
                device.name,
            )
            return None

        self._tracker.mark_open(device.id, breach.spec.alert_type)
        self._stats.alerts_created += 1
        logger.info(
            "[THRESHOLD] Created %s alert for device %s (%s %s)",
            breach.spec.metric.value,
            device.name,
            breach.bound.value,
            breach.threshold,
        )
        return alert_id
