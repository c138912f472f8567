"""Device domain model.

Dataclasses for the devices collection: sensor readings, position,
connectivity status and the per-metric threshold pairs.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class DeviceStatus(str, Enum):
    """Connectivity status inferred from update recency."""

    ONLINE = "online"
    OFFLINE = "offline"


class MetricType(str, Enum):
    """Scalar metrics carried by every device.

    Values are the wire names used by the store and by alert ``type``.
    """

    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    WIND_SPEED = "windSpeed"
    GAS_LEVEL = "gasLevel"


@dataclass(frozen=True)
class ThresholdRange:
    """Allowed ``[min, max]`` band for one metric.

    No ``min <= max`` validation: a misconfigured pair is evaluated as-is.
    """

    min: float
    max: float

    def to_dict(self) -> dict:
        return {"min": self.min, "max": self.max}


DEFAULT_THRESHOLDS: Dict[MetricType, ThresholdRange] = {
    MetricType.TEMPERATURE: ThresholdRange(min=-10.0, max=50.0),
    MetricType.HUMIDITY: ThresholdRange(min=0.0, max=100.0),
    MetricType.WIND_SPEED: ThresholdRange(min=0.0, max=30.0),
    MetricType.GAS_LEVEL: ThresholdRange(min=0.0, max=1000.0),
}


@dataclass(frozen=True)
class Thresholds:
    """One threshold pair per metric."""

    temperature: ThresholdRange = DEFAULT_THRESHOLDS[MetricType.TEMPERATURE]
    humidity: ThresholdRange = DEFAULT_THRESHOLDS[MetricType.HUMIDITY]
    wind_speed: ThresholdRange = DEFAULT_THRESHOLDS[MetricType.WIND_SPEED]
    gas_level: ThresholdRange = DEFAULT_THRESHOLDS[MetricType.GAS_LEVEL]

    _ATTRS = {
        MetricType.TEMPERATURE: "temperature",
        MetricType.HUMIDITY: "humidity",
        MetricType.WIND_SPEED: "wind_speed",
        MetricType.GAS_LEVEL: "gas_level",
    }

    def for_metric(self, metric: MetricType) -> ThresholdRange:
        return getattr(self, self._ATTRS[metric])

    def with_metric(self, metric: MetricType, rng: ThresholdRange) -> "Thresholds":
        """Copy with one pair replaced; the other three stay untouched."""
        return replace(self, **{self._ATTRS[metric]: rng})

    def to_dict(self) -> dict:
        return {m.value: self.for_metric(m).to_dict() for m in MetricType}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Thresholds":
        """Build from ``{"temperature": {"min":.., "max":..}, ...}``.

        Missing metrics (or missing bounds) fall back to the defaults.
        """
        data = data or {}
        kwargs = {}
        for metric, attr in cls._ATTRS.items():
            default = DEFAULT_THRESHOLDS[metric]
            raw = data.get(metric.value) or data.get(attr) or {}
            kwargs[attr] = ThresholdRange(
                min=float(raw.get("min", default.min)),
                max=float(raw.get("max", default.max)),
            )
        return cls(**kwargs)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Device:
    """Snapshot of one document of the devices collection."""

    id: str
    name: str
    latitude: float
    longitude: float
    temperature: float
    humidity: float
    wind_speed: float
    gas_level: float
    status: DeviceStatus = DeviceStatus.ONLINE
    last_updated: datetime = field(default_factory=utc_now)
    thresholds: Thresholds = field(default_factory=Thresholds)

    _METRIC_ATTRS = {
        MetricType.TEMPERATURE: "temperature",
        MetricType.HUMIDITY: "humidity",
        MetricType.WIND_SPEED: "wind_speed",
        MetricType.GAS_LEVEL: "gas_level",
    }

    @property
    def is_online(self) -> bool:
        return self.status == DeviceStatus.ONLINE

    def metric_value(self, metric: MetricType) -> float:
        return float(getattr(self, self._METRIC_ATTRS[metric]))


@dataclass
class NewDevice:
    """Device payload before the store assigns an id."""

    name: str
    latitude: float = 0.0
    longitude: float = 0.0
    temperature: float = 0.0
    humidity: float = 0.0
    wind_speed: float = 0.0
    gas_level: float = 0.0
    status: DeviceStatus = DeviceStatus.ONLINE
    thresholds: Thresholds = field(default_factory=Thresholds)

    def to_device(self, device_id: str, last_updated: datetime) -> Device:
        return Device(
            id=device_id,
            name=self.name,
            latitude=self.latitude,
            longitude=self.longitude,
            temperature=self.temperature,
            humidity=self.humidity,
            wind_speed=self.wind_speed,
            gas_level=self.gas_level,
            status=self.status,
            last_updated=last_updated,
            thresholds=self.thresholds,
        )


# Fields whose change means "the device reported": they refresh last_updated.
READING_FIELDS = frozenset(
    {"temperature", "humidity", "wind_speed", "gas_level", "latitude", "longitude"}
)

UPDATABLE_FIELDS = READING_FIELDS | {"name", "status", "thresholds"}


def apply_update(device: Device, fields: Dict[str, Any], now: datetime) -> Device:
    """Return a copy of ``device`` with ``fields`` applied.

    ``last_updated`` only moves when a reading or the position changes.
    Status, name and threshold edits leave it alone, so a liveness write
    never looks like fresh sensor data.
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown device fields: {sorted(unknown)}")

    changes = dict(fields)
    if "status" in changes:
        changes["status"] = DeviceStatus(changes["status"])
    if "thresholds" in changes and not isinstance(changes["thresholds"], Thresholds):
        changes["thresholds"] = Thresholds.from_dict(changes["thresholds"])
    if READING_FIELDS & set(changes):
        changes["last_updated"] = now
    return replace(device, **changes)
