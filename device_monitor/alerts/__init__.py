"""Alert lifecycle and notification fan-out."""

from .alert_manager import AlertLifecycleManager, AlertsView
from .notification_service import (
    LogSink,
    Notification,
    NotificationFanout,
    NotificationRegistry,
    PushSink,
    get_registry,
)

__all__ = [
    "AlertLifecycleManager",
    "AlertsView",
    "LogSink",
    "Notification",
    "NotificationFanout",
    "NotificationRegistry",
    "PushSink",
    "get_registry",
]
