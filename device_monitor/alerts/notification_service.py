"""Servicio de notificaciones para alertas nuevas.

Emite exactamente una señal al usuario (toast + sonido opcional) por cada
alerta sin reconocer recién observada. Las alertas viejas sin reconocer
(por ejemplo al arrancar) no notifican.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Protocol

import requests

from ..core.domain import Alert, AlertType, utc_now
from ..core.monitoring import MonitorStats

logger = logging.getLogger(__name__)

DEFAULT_RECENCY_WINDOW = timedelta(seconds=10)

_ICONS = {
    AlertType.TEMPERATURE: "🌡️",
    AlertType.HUMIDITY: "💧",
    AlertType.WIND_SPEED: "💨",
    AlertType.GAS_LEVEL: "⚡",
}


@dataclass(frozen=True)
class Notification:
    alert_id: str
    title: str
    device_name: str
    message: str
    sound: bool
    created_at: datetime


class NotificationSink(Protocol):
    def deliver(self, notification: Notification) -> None:
        ...


class LogSink:
    """Writes the toast to the log."""

    def deliver(self, notification: Notification) -> None:
        logger.warning(
            "[NOTIFY] %s | %s | %s%s",
            notification.title,
            notification.device_name,
            notification.message,
            " (sound)" if notification.sound else "",
        )


class PushSink:
    """Dispara push notification via backend.

    Calls the backend's internal endpoint. Never raises: failures are logged.
    """

    def __init__(self, backend_url: str, internal_key: Optional[str], timeout: float = 5) -> None:
        self._backend_url = backend_url.rstrip("/")
        self._internal_key = internal_key
        self._timeout = timeout

    def deliver(self, notification: Notification) -> None:
        if not self._internal_key:
            logger.warning("[PUSH] INTERNAL_API_KEY not configured - skipping push trigger")
            return

        try:
            response = requests.post(
                f"{self._backend_url}/notifications/internal/trigger-push",
                json={
                    "type": "alert",
                    "alertId": notification.alert_id,
                    "title": notification.title,
                    "message": notification.message,
                    "sound": notification.sound,
                },
                headers={
                    "X-Internal-Key": self._internal_key,
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
            )
            if response.ok:
                logger.info("[PUSH] Alert push triggered for alertId=%s", notification.alert_id)
            else:
                logger.warning("[PUSH] Failed to trigger push: %s %s", response.status_code, response.text)
        except Exception as e:
            logger.error("[PUSH] Error triggering push notification: %s", e)


class NotificationRegistry:
    """Process-wide record of the last alert acted upon.

    Shared by every fan-out instance of the process so a duplicated
    subscriber does not double-fire.
    """

    def __init__(self) -> None:
        self.last_alert_id: Optional[str] = None

    def claim(self, alert_id: str) -> bool:
        """Record ``alert_id``; False if it was already the last one."""
        if alert_id == self.last_alert_id:
            return False
        self.last_alert_id = alert_id
        return True


_registry = NotificationRegistry()


def get_registry() -> NotificationRegistry:
    return _registry


def _title(alert_type: AlertType) -> str:
    return f"{_ICONS.get(alert_type, '⚠️')} THRESHOLD ALERT"


class NotificationFanout:
    """Reacts to alert list updates with at most one notification per alert."""

    def __init__(
        self,
        sinks: List[NotificationSink],
        stats: MonitorStats,
        sound_enabled: Callable[[], bool] = lambda: True,
        recency_window: timedelta = DEFAULT_RECENCY_WINDOW,
        registry: Optional[NotificationRegistry] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._sinks = list(sinks)
        self._stats = stats
        self._sound_enabled = sound_enabled
        self._recency_window = recency_window
        self._registry = registry or get_registry()
        self._clock = clock

    def on_alerts(self, alerts: List[Alert]) -> Optional[Notification]:
        """Alert-list callback (newest first).

        Returns:
            The notification fired, or None.
        """
        latest = next((a for a in alerts if not a.acknowledged), None)
        if latest is None or latest.id == self._registry.last_alert_id:
            return None

        age = self._clock() - latest.created_at
        if age >= self._recency_window:
            return None

        if not self._registry.claim(latest.id):
            return None

        notification = Notification(
            alert_id=latest.id,
            title=_title(latest.type),
            device_name=latest.device_name,
            message=latest.message,
            sound=self._sound_enabled(),
            created_at=latest.created_at,
        )
        for sink in self._sinks:
            try:
                sink.deliver(notification)
            except Exception:
                logger.exception("[NOTIFY] Sink %s failed", type(sink).__name__)
        self._stats.notifications_fired += 1
        return notification
