"""Estadísticas del ciclo de monitoreo."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class MonitorStats:
    """Counters for snapshot passes, liveness ticks and notifications."""

    snapshots_processed: int = 0
    snapshots_coalesced: int = 0
    alerts_created: int = 0
    alert_failures: int = 0
    liveness_ticks: int = 0
    status_transitions: int = 0
    status_failures: int = 0
    notifications_fired: int = 0
    last_snapshot_at: float = 0
    started_at: datetime = field(default_factory=_now)

    def __str__(self) -> str:
        return (
            f"Stats: snapshots={self.snapshots_processed} alerts={self.alerts_created} "
            f"failures={self.alert_failures} ticks={self.liveness_ticks}"
        )

    def to_dict(self) -> dict:
        return {
            "snapshots_processed": self.snapshots_processed,
            "snapshots_coalesced": self.snapshots_coalesced,
            "alerts_created": self.alerts_created,
            "alert_failures": self.alert_failures,
            "liveness_ticks": self.liveness_ticks,
            "status_transitions": self.status_transitions,
            "status_failures": self.status_failures,
            "notifications_fired": self.notifications_fired,
            "last_snapshot_at": self.last_snapshot_at,
            "started_at": self.started_at.isoformat(),
            "alert_success_rate": self._alert_success_rate(),
        }

    def _alert_success_rate(self) -> float:
        total = self.alerts_created + self.alert_failures
        if total == 0:
            return 1.0
        return self.alerts_created / total
