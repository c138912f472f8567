from __future__ import annotations

import math
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .alerts import AlertsView
from .classification import device_metric_statuses
from .core.domain import (
    Alert,
    AlertType,
    Device,
    DeviceStatus,
    MetricType,
    NewDevice,
    ThresholdRange,
    Thresholds,
)


def _finite(v: Optional[float]) -> Optional[float]:
    if v is None:
        return v
    if math.isnan(v) or math.isinf(v):
        raise ValueError("Value must be a finite number")
    return v


class _CamelModel(BaseModel):
    # Accept both the camelCase wire names and the Python names.
    model_config = ConfigDict(populate_by_name=True)


class ThresholdRangeIO(BaseModel):
    # min > max is accepted as-is.
    min: float
    max: float

    @field_validator("min", "max")
    @classmethod
    def validate_bound(cls, v):
        return _finite(v)

    def to_domain(self) -> ThresholdRange:
        return ThresholdRange(min=self.min, max=self.max)


class ThresholdsIO(_CamelModel):
    temperature: ThresholdRangeIO
    humidity: ThresholdRangeIO
    wind_speed: ThresholdRangeIO = Field(..., alias="windSpeed")
    gas_level: ThresholdRangeIO = Field(..., alias="gasLevel")

    @classmethod
    def from_domain(cls, thresholds: Thresholds) -> "ThresholdsIO":
        def io(metric: MetricType) -> ThresholdRangeIO:
            rng = thresholds.for_metric(metric)
            return ThresholdRangeIO(min=rng.min, max=rng.max)

        return cls(
            temperature=io(MetricType.TEMPERATURE),
            humidity=io(MetricType.HUMIDITY),
            wind_speed=io(MetricType.WIND_SPEED),
            gas_level=io(MetricType.GAS_LEVEL),
        )


class ThresholdsPatch(_CamelModel):
    """Partial threshold edit: only the listed metrics change."""

    temperature: Optional[ThresholdRangeIO] = None
    humidity: Optional[ThresholdRangeIO] = None
    wind_speed: Optional[ThresholdRangeIO] = Field(default=None, alias="windSpeed")
    gas_level: Optional[ThresholdRangeIO] = Field(default=None, alias="gasLevel")

    def changes(self) -> Dict[MetricType, ThresholdRange]:
        pairs = {
            MetricType.TEMPERATURE: self.temperature,
            MetricType.HUMIDITY: self.humidity,
            MetricType.WIND_SPEED: self.wind_speed,
            MetricType.GAS_LEVEL: self.gas_level,
        }
        return {m: rng.to_domain() for m, rng in pairs.items() if rng is not None}

    def apply_to(self, base: Thresholds) -> Thresholds:
        for metric, rng in self.changes().items():
            base = base.with_metric(metric, rng)
        return base


class DeviceIn(_CamelModel):
    name: str = Field(..., min_length=1)
    latitude: float = 0.0
    longitude: float = 0.0
    temperature: float = 0.0
    humidity: float = 0.0
    wind_speed: float = Field(default=0.0, alias="windSpeed")
    gas_level: float = Field(default=0.0, alias="gasLevel")
    status: DeviceStatus = DeviceStatus.ONLINE
    thresholds: Optional[ThresholdsPatch] = None

    @field_validator("latitude", "longitude", "temperature", "humidity", "wind_speed", "gas_level")
    @classmethod
    def validate_value(cls, v):
        return _finite(v)

    def to_domain(self) -> NewDevice:
        thresholds = Thresholds()
        if self.thresholds is not None:
            thresholds = self.thresholds.apply_to(thresholds)
        return NewDevice(
            name=self.name,
            latitude=self.latitude,
            longitude=self.longitude,
            temperature=self.temperature,
            humidity=self.humidity,
            wind_speed=self.wind_speed,
            gas_level=self.gas_level,
            status=self.status,
            thresholds=thresholds,
        )


class DevicePatch(_CamelModel):
    """Sensor readings, position, name and/or thresholds."""

    name: Optional[str] = Field(default=None, min_length=1)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    wind_speed: Optional[float] = Field(default=None, alias="windSpeed")
    gas_level: Optional[float] = Field(default=None, alias="gasLevel")
    thresholds: Optional[ThresholdsPatch] = None

    @field_validator("latitude", "longitude", "temperature", "humidity", "wind_speed", "gas_level")
    @classmethod
    def validate_value(cls, v):
        return _finite(v)

    def update_fields(self) -> dict:
        """Set fields other than thresholds, keyed by Device attribute."""
        return {
            k: v
            for k, v in self.model_dump(exclude_unset=True, exclude={"thresholds"}).items()
            if v is not None
        }


class DeviceOut(_CamelModel):
    id: str
    name: str
    latitude: float
    longitude: float
    temperature: float
    humidity: float
    wind_speed: float = Field(..., alias="windSpeed")
    gas_level: float = Field(..., alias="gasLevel")
    status: DeviceStatus
    last_updated: datetime = Field(..., alias="lastUpdated")
    thresholds: ThresholdsIO
    metric_status: Dict[str, str] = Field(default_factory=dict, alias="metricStatus")

    @classmethod
    def from_domain(cls, device: Device) -> "DeviceOut":
        return cls(
            id=device.id,
            name=device.name,
            latitude=device.latitude,
            longitude=device.longitude,
            temperature=device.temperature,
            humidity=device.humidity,
            wind_speed=device.wind_speed,
            gas_level=device.gas_level,
            status=device.status,
            last_updated=device.last_updated,
            thresholds=ThresholdsIO.from_domain(device.thresholds),
            metric_status=device_metric_statuses(device),
        )


class DeviceCreated(BaseModel):
    id: str


class AlertOut(_CamelModel):
    id: str
    device_id: str = Field(..., alias="deviceId")
    device_name: str = Field(..., alias="deviceName")
    type: AlertType
    value: float
    threshold: float
    message: str
    created_at: datetime = Field(..., alias="createdAt")
    acknowledged: bool = False
    acknowledged_at: Optional[datetime] = Field(default=None, alias="acknowledgedAt")

    @classmethod
    def from_domain(cls, alert: Alert) -> "AlertOut":
        return cls(
            id=alert.id,
            device_id=alert.device_id,
            device_name=alert.device_name,
            type=alert.type,
            value=alert.value,
            threshold=alert.threshold,
            message=alert.message,
            created_at=alert.created_at,
            acknowledged=alert.acknowledged,
            acknowledged_at=alert.acknowledged_at,
        )


class AlertCounts(BaseModel):
    total: int
    unacknowledged: int
    acknowledged: int


class AlertsOut(BaseModel):
    alerts: List[AlertOut] = Field(default_factory=list)
    unacknowledged: List[AlertOut] = Field(default_factory=list)
    acknowledged: List[AlertOut] = Field(default_factory=list)
    counts: AlertCounts

    @classmethod
    def from_view(cls, view: AlertsView) -> "AlertsOut":
        return cls(
            alerts=[AlertOut.from_domain(a) for a in view.alerts],
            unacknowledged=[AlertOut.from_domain(a) for a in view.unacknowledged],
            acknowledged=[AlertOut.from_domain(a) for a in view.acknowledged],
            counts=AlertCounts(**view.counts()),
        )


class BulkResult(BaseModel):
    ids: List[str] = Field(default_factory=list)
    count: int = 0
