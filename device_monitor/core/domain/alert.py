"""Alert domain model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .device import MetricType


class AlertType(str, Enum):
    """Kinds of alert: one per metric plus movement."""

    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    WIND_SPEED = "windSpeed"
    GAS_LEVEL = "gasLevel"
    LOCATION = "location"

    @classmethod
    def for_metric(cls, metric: MetricType) -> "AlertType":
        return cls(metric.value)


@dataclass(frozen=True)
class NewAlert:
    """Alert payload before the store assigns an id.

    ``acknowledged`` is not part of it: the lifecycle manager always
    creates alerts unacknowledged.
    """

    device_id: str
    device_name: str
    type: AlertType
    value: float
    threshold: float
    message: str
    created_at: datetime


@dataclass
class Alert:
    """Snapshot of one document of the alerts collection."""

    id: str
    device_id: str
    device_name: str
    type: AlertType
    value: float
    threshold: float
    message: str
    created_at: datetime
    acknowledged: bool = False
    acknowledged_at: Optional[datetime] = None

    @classmethod
    def from_new(cls, alert_id: str, new: NewAlert) -> "Alert":
        return cls(
            id=alert_id,
            device_id=new.device_id,
            device_name=new.device_name,
            type=new.type,
            value=new.value,
            threshold=new.threshold,
            message=new.message,
            created_at=new.created_at,
            acknowledged=False,
        )
