"""Ciclo de vida de alertas.

Dueño de los registros de alertas: creación, reconocimiento (individual
y masivo), borrado de las reconocidas y el modelo de lectura en vivo que
consumen la UI y el fan-out de notificaciones.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from ..core.domain import Alert, MonitorStore, NewAlert, utc_now

logger = logging.getLogger(__name__)

AlertsListener = Callable[[List[Alert]], None]


@dataclass
class AlertsView:
    """Alert list with its acknowledged/unacknowledged partition."""

    alerts: List[Alert] = field(default_factory=list)

    @property
    def unacknowledged(self) -> List[Alert]:
        return [a for a in self.alerts if not a.acknowledged]

    @property
    def acknowledged(self) -> List[Alert]:
        return [a for a in self.alerts if a.acknowledged]

    def counts(self) -> dict:
        unack = len(self.unacknowledged)
        return {
            "total": len(self.alerts),
            "unacknowledged": unack,
            "acknowledged": len(self.alerts) - unack,
        }


class AlertLifecycleManager:
    """Single entry point for alert writes and the alert read model.

    Writes go straight to the store; the read model is refreshed by the
    store's alert subscription (``on_alerts``) or by ``refresh()``.
    None of the bulk operations is transactional.
    """

    def __init__(
        self,
        store: MonitorStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._clock = clock
        self._view = AlertsView()
        self._listeners: List[AlertsListener] = []

    # -- read model -------------------------------------------------------

    @property
    def view(self) -> AlertsView:
        return self._view

    def add_listener(self, listener: AlertsListener) -> None:
        self._listeners.append(listener)

    def on_alerts(self, alerts: List[Alert]) -> None:
        """Store callback: replace the read model and notify listeners."""
        ordered = sorted(alerts, key=lambda a: a.created_at, reverse=True)
        self._view = AlertsView(alerts=ordered)
        for listener in list(self._listeners):
            try:
                listener(ordered)
            except Exception:
                logger.exception("[ALERT] Listener failed on alerts update")

    def refresh(self) -> AlertsView:
        """One-shot re-fetch from the store."""
        self.on_alerts(self._store.get_alerts())
        return self._view

    # -- writes -----------------------------------------------------------

    def create(self, alert: NewAlert) -> str:
        """Persist a new, unacknowledged alert and return its id.

        Raises:
            ValueError: if a required field is empty.
        """
        missing = [
            name
            for name in ("device_id", "type", "message")
            if not getattr(alert, name)
        ]
        if missing:
            raise ValueError(f"Alert is missing required fields: {missing}")

        alert_id = self._store.add_alert(alert)
        logger.info(
            "[ALERT] Created id=%s device=%s type=%s value=%s threshold=%s",
            alert_id,
            alert.device_id,
            alert.type.value,
            alert.value,
            alert.threshold,
        )
        return alert_id

    def acknowledge(self, alert_id: str) -> None:
        """Mark one alert acknowledged. Acknowledging twice only re-stamps."""
        self._store.acknowledge_alert(alert_id, self._clock())
        logger.info("[ALERT] Acknowledged id=%s", alert_id)

    def acknowledge_all(self, alerts: Optional[Iterable[Alert]] = None) -> List[str]:
        """Acknowledge every unacknowledged alert of ``alerts``.

        Defaults to the current read model. Runs one by one: a failure is
        logged and skipped, so the result can be partial.

        Returns:
            Ids that were acknowledged.
        """
        subset = self._view.unacknowledged if alerts is None else [
            a for a in alerts if not a.acknowledged
        ]
        done: List[str] = []
        for alert in subset:
            try:
                self.acknowledge(alert.id)
                done.append(alert.id)
            except Exception:
                logger.exception("[ALERT] Failed to acknowledge id=%s", alert.id)
        logger.info("[ALERT] Bulk acknowledge: %d/%d", len(done), len(subset))
        return done

    def clear_acknowledged(self) -> List[str]:
        """Delete every acknowledged alert in the store.

        Fetches the full list first, then deletes one by one. A failure
        stops the sequence and propagates; earlier deletions stay done.

        Returns:
            Ids that were deleted.
        """
        deleted: List[str] = []
        for alert in self._store.get_alerts():
            if not alert.acknowledged:
                continue
            try:
                self._store.delete_alert(alert.id)
            except Exception:
                logger.exception(
                    "[ALERT] Clear acknowledged stopped at id=%s (deleted=%d)",
                    alert.id,
                    len(deleted),
                )
                raise
            deleted.append(alert.id)
        logger.info("[ALERT] Cleared %d acknowledged alerts", len(deleted))
        return deleted
