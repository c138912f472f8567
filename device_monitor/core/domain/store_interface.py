"""Abstract interface for the device/alert document store.

This decouples the monitoring core from the backing store.
Any store implementation (SQL, in-memory, a hosted document DB) can
implement this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List

from .alert import Alert, NewAlert
from .device import Device, NewDevice

DevicesCallback = Callable[[List[Device]], None]
AlertsCallback = Callable[[List[Alert]], None]
Unsubscribe = Callable[[], None]


class StoreUnavailable(Exception):
    """The store could not complete an operation (after its own retries)."""


class MonitorStore(ABC):
    """Abstract interface for the devices and alerts collections.

    Implementations:
    - InMemoryMonitorStore: dict-backed, for tests and local runs
    - SqlMonitorStore: SQLAlchemy-backed, retries writes with backoff

    Subscriptions behave like a live query: the callback receives the full
    current list right away and again after every change. Alerts are always
    delivered ordered by ``created_at`` descending. Unknown ids raise
    ``KeyError``.
    """

    @abstractmethod
    def subscribe_devices(self, callback: DevicesCallback) -> Unsubscribe:
        pass

    @abstractmethod
    def subscribe_alerts(self, callback: AlertsCallback) -> Unsubscribe:
        pass

    @abstractmethod
    def get_devices(self) -> List[Device]:
        pass

    @abstractmethod
    def add_device(self, device: NewDevice) -> str:
        """Persist a new device and return its id."""
        pass

    @abstractmethod
    def update_device(self, device_id: str, fields: Dict[str, Any]) -> None:
        """Apply a partial update.

        ``last_updated`` is refreshed only when readings or position change.
        """
        pass

    @abstractmethod
    def delete_device(self, device_id: str) -> None:
        pass

    @abstractmethod
    def get_alerts(self) -> List[Alert]:
        """One-shot fetch, newest first."""
        pass

    @abstractmethod
    def add_alert(self, alert: NewAlert) -> str:
        pass

    @abstractmethod
    def acknowledge_alert(self, alert_id: str, acknowledged_at: datetime) -> None:
        """Set acknowledged=True and stamp acknowledged_at. Idempotent."""
        pass

    @abstractmethod
    def delete_alert(self, alert_id: str) -> None:
        pass

    @abstractmethod
    def ping(self) -> bool:
        """Check if the store is reachable."""
        pass
