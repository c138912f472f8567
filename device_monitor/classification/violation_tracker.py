"""Tracker de violaciones abiertas.

Rastrea qué pares (dispositivo, tipo) ya tienen una alerta abierta para
evitar inundar el store mientras el valor sigue fuera de rango.
"""

from __future__ import annotations

from typing import Set

from ..core.domain import AlertType


class ViolationTracker:
    """Set of open violation keys ``"{deviceId}-{type}"``.

    Rules:
    - A key is opened only after the alert write succeeded.
    - While the key is open, the same breach never re-alerts.
    - Clearing an absent key is a no-op.

    Process-local and not persisted: every MonitoringService owns one.
    """

    def __init__(self):
        self._open: Set[str] = set()

    @staticmethod
    def key(device_id: str, alert_type: AlertType) -> str:
        return f"{device_id}-{alert_type.value}"

    def is_open(self, device_id: str, alert_type: AlertType) -> bool:
        return self.key(device_id, alert_type) in self._open

    def mark_open(self, device_id: str, alert_type: AlertType) -> None:
        self._open.add(self.key(device_id, alert_type))

    def clear(self, device_id: str, alert_type: AlertType) -> bool:
        """Clear a key. Returns True if it was open."""
        key = self.key(device_id, alert_type)
        if key in self._open:
            self._open.discard(key)
            return True
        return False

    def forget_device(self, device_id: str) -> int:
        """Drop every key of a removed device. Returns how many were open."""
        keys = {self.key(device_id, t) for t in AlertType}
        dropped = len(keys & self._open)
        self._open -= keys
        return dropped

    def open_keys(self) -> Set[str]:
        return set(self._open)

    def __len__(self) -> int:
        return len(self._open)
