"""Servicio de monitoreo.

Dueño del estado efímero del monitoreo (claves de violación, caché de
ubicaciones, última alerta notificada). Conecta las dos fuentes de eventos:

- snapshots de dispositivos del store -> detección de umbrales y
  movimiento, luego una pasada de conectividad
- el timer de conectividad (ver ``scheduling.liveness_scheduler``)

Los snapshots de alertas alimentan el modelo de lectura de alertas, que a
su vez dispara el fan-out de notificaciones.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from common.config import Settings

from .alerts import (
    AlertLifecycleManager,
    AlertsView,
    LogSink,
    NotificationFanout,
    NotificationRegistry,
    PushSink,
)
from .alerts.notification_service import DEFAULT_RECENCY_WINDOW, NotificationSink
from .classification import (
    LivenessEvaluator,
    LocationSuppression,
    MovementDetector,
    StatusTransition,
    ThresholdViolationDetector,
    ViolationTracker,
)
from .classification.liveness import DEFAULT_OFFLINE_THRESHOLD
from .classification.movement_detector import DEFAULT_MOVEMENT_THRESHOLD_M
from .core.domain import (
    Device,
    MetricType,
    MonitorStore,
    NewDevice,
    ThresholdRange,
    Unsubscribe,
    utc_now,
)
from .core.monitoring import MonitorStats

logger = logging.getLogger(__name__)


class MonitoringService:
    """Single owner of the monitoring pipeline for one process.

    Snapshot processing is non-reentrant: a device snapshot delivered
    while a pass is running (for example by a liveness write made by that
    pass) is kept as pending, replacing any older pending one, and is
    processed right after the current pass.
    """

    def __init__(
        self,
        store: MonitorStore,
        *,
        offline_threshold: timedelta = DEFAULT_OFFLINE_THRESHOLD,
        movement_threshold_m: float = DEFAULT_MOVEMENT_THRESHOLD_M,
        location_suppression: LocationSuppression = LocationSuppression.SESSION,
        recency_window: timedelta = DEFAULT_RECENCY_WINDOW,
        sound_enabled: bool = True,
        sinks: Optional[List[NotificationSink]] = None,
        registry: Optional[NotificationRegistry] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._clock = clock
        self.stats = MonitorStats()
        self.sound_enabled = sound_enabled

        self.tracker = ViolationTracker()
        self.alerts = AlertLifecycleManager(store, clock=clock)
        self.thresholds = ThresholdViolationDetector(self.tracker, self.alerts, self.stats)
        self.movement = MovementDetector(
            self.tracker,
            self.alerts,
            self.stats,
            threshold_m=movement_threshold_m,
            suppression=location_suppression,
        )
        self.liveness = LivenessEvaluator(store, self.stats, offline_threshold=offline_threshold)
        self.fanout = NotificationFanout(
            sinks if sinks is not None else [LogSink()],
            self.stats,
            sound_enabled=lambda: self.sound_enabled,
            recency_window=recency_window,
            registry=registry,
            clock=clock,
        )
        self.alerts.add_listener(self.fanout.on_alerts)

        self._devices: List[Device] = []
        self._known_ids: set = set()
        self._processing = False
        self._pending: Optional[List[Device]] = None
        self._unsubscribers: List[Unsubscribe] = []

    @classmethod
    def from_settings(
        cls,
        store: MonitorStore,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
    ) -> "MonitoringService":
        sinks: List[NotificationSink] = [LogSink()]
        if settings.internal_api_key:
            sinks.append(PushSink(settings.backend_url, settings.internal_api_key))
        return cls(
            store,
            offline_threshold=timedelta(seconds=settings.offline_threshold_seconds),
            movement_threshold_m=settings.movement_threshold_m,
            location_suppression=LocationSuppression(settings.location_suppression),
            recency_window=timedelta(seconds=settings.notify_window_seconds),
            sound_enabled=settings.sound_enabled,
            sinks=sinks,
            clock=clock,
        )

    # -- lifecycle --------------------------------------------------------

    @property
    def store(self) -> MonitorStore:
        return self._store

    @property
    def running(self) -> bool:
        return bool(self._unsubscribers)

    def start(self) -> None:
        """Subscribe to both collections. The first devices snapshot
        arrives immediately and doubles as the start-up liveness pass."""
        if self.running:
            return
        self._unsubscribers.append(self._store.subscribe_alerts(self.alerts.on_alerts))
        self._unsubscribers.append(self._store.subscribe_devices(self.on_devices))
        logger.info("[MONITOR] Started (devices=%d)", len(self._devices))

    def stop(self) -> None:
        for unsubscribe in self._unsubscribers:
            try:
                unsubscribe()
            except Exception:
                logger.exception("[MONITOR] Error unsubscribing")
        self._unsubscribers = []
        logger.info("[MONITOR] Stopped. %s", self.stats)

    # -- snapshot handling ------------------------------------------------

    @property
    def devices(self) -> List[Device]:
        """Latest device snapshot, in store order."""
        return list(self._devices)

    def on_devices(self, devices: List[Device]) -> None:
        """Store callback for the devices collection."""
        if self._processing:
            if self._pending is not None:
                self.stats.snapshots_coalesced += 1
            self._pending = list(devices)
            return

        batch = list(devices)
        self._guarded(lambda: self._process(batch))

    def _guarded(self, work: Callable[[], Any]) -> Any:
        """Run ``work`` with processing marked busy, then drain pending snapshots."""
        self._processing = True
        try:
            result = work()
            while self._pending is not None:
                batch, self._pending = self._pending, None
                self._process(batch)
            return result
        finally:
            self._processing = False
            self._pending = None

    def _process(self, devices: List[Device]) -> None:
        now = self._clock()
        self._devices = devices
        self.stats.snapshots_processed += 1
        self.stats.last_snapshot_at = time.time()

        current_ids = {d.id for d in devices}
        for gone in self._known_ids - current_ids:
            self._forget_device(gone)
        self._known_ids = current_ids

        for device in devices:
            try:
                self.thresholds.check_device(device, now)
                self.movement.check_device(device, now)
            except Exception:
                logger.exception("[MONITOR] Error checking device %s", device.id)

        self._evaluate_liveness(devices, now)

    def _forget_device(self, device_id: str) -> None:
        self.movement.forget_device(device_id)
        cleared = self.tracker.forget_device(device_id)
        logger.info("[MONITOR] Device %s removed (cleared_keys=%s)", device_id, cleared)

    def _evaluate_liveness(self, devices: List[Device], now: datetime) -> List[StatusTransition]:
        try:
            return self.liveness.evaluate(devices, now)
        except Exception:
            logger.exception("[LIVENESS] Liveness pass failed")
            return []

    def run_liveness_check(self, now: Optional[datetime] = None) -> List[StatusTransition]:
        """Timer entry point: one liveness pass over the latest snapshot.

        Snapshots published by its own status writes are held as pending
        and processed once the pass is over.
        """
        if self._processing:
            # The running pass ends with its own liveness evaluation.
            return []
        when = now or self._clock()
        return self._guarded(lambda: self._evaluate_liveness(self.devices, when))

    # -- device operations ------------------------------------------------

    def get_device(self, device_id: str) -> Device:
        for device in self._store.get_devices():
            if device.id == device_id:
                return device
        raise KeyError(device_id)

    def add_device(self, device: NewDevice) -> str:
        device_id = self._store.add_device(device)
        logger.info("[MONITOR] Device added id=%s name=%s", device_id, device.name)
        return device_id

    def update_device(self, device_id: str, fields: Dict[str, Any]) -> None:
        self._store.update_device(device_id, fields)

    def update_thresholds(self, device_id: str, changes: Dict[MetricType, ThresholdRange]) -> Device:
        """Replace the threshold pair of each metric in ``changes``.

        Metrics not listed keep their current pair.
        """
        thresholds = self.get_device(device_id).thresholds
        for metric, rng in changes.items():
            thresholds = thresholds.with_metric(metric, rng)
        self._store.update_device(device_id, {"thresholds": thresholds})
        logger.info(
            "[MONITOR] Thresholds updated device=%s metrics=%s",
            device_id,
            [m.value for m in changes],
        )
        return self.get_device(device_id)

    def delete_device(self, device_id: str) -> None:
        """Delete the device record; its alerts are kept."""
        self._store.delete_device(device_id)
        # The snapshot push normally does this already.
        if device_id in self._known_ids:
            self._known_ids.discard(device_id)
            self._forget_device(device_id)

    # -- alert operations -------------------------------------------------

    @property
    def alerts_view(self) -> AlertsView:
        return self.alerts.view

    def acknowledge(self, alert_id: str) -> None:
        self.alerts.acknowledge(alert_id)

    def acknowledge_all(self) -> List[str]:
        return self.alerts.acknowledge_all()

    def clear_acknowledged(self) -> List[str]:
        return self.alerts.clear_acknowledged()

    def refresh_alerts(self) -> AlertsView:
        return self.alerts.refresh()
