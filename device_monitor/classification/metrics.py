"""Tabla de métricas y evaluación contra umbrales.

Una sola rutina evalúa cualquier métrica contra su par ``[min, max]``;
lo que cambia por métrica (etiqueta, unidad) vive en ``METRIC_SPECS``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..core.domain import AlertType, Device, MetricType, ThresholdRange


class Bound(str, Enum):
    """Which side of the band was crossed."""

    MAX = "max"
    MIN = "min"


class MetricStatus(str, Enum):
    """Per-metric status shown next to each reading."""

    NORMAL = "normal"
    VIOLATION = "violation"


@dataclass(frozen=True)
class MetricSpec:
    """Presentation data for one metric."""

    metric: MetricType
    label: str
    unit: str

    @property
    def alert_type(self) -> AlertType:
        return AlertType.for_metric(self.metric)


# Evaluation order is fixed: temperature, humidity, windSpeed, gasLevel.
METRIC_SPECS: Tuple[MetricSpec, ...] = (
    MetricSpec(MetricType.TEMPERATURE, "Temperature", "°C"),
    MetricSpec(MetricType.HUMIDITY, "Humidity", "%"),
    MetricSpec(MetricType.WIND_SPEED, "Wind speed", " m/s"),
    MetricSpec(MetricType.GAS_LEVEL, "Gas level", " ppm"),
)


@dataclass(frozen=True)
class Breach:
    """A reading outside its band."""

    spec: MetricSpec
    value: float
    bound: Bound
    threshold: float

    @property
    def message(self) -> str:
        limit = format_number(self.threshold)
        if self.bound == Bound.MAX:
            return f"{self.spec.label} exceeded maximum threshold of {limit}{self.spec.unit}"
        return f"{self.spec.label} below minimum threshold of {limit}{self.spec.unit}"


def format_number(value: float) -> str:
    """30.0 -> '30', 30.5 -> '30.5'."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def evaluate(spec: MetricSpec, value: float, rng: ThresholdRange) -> Optional[Breach]:
    """Evaluate one reading against its band.

    The max bound is checked first, so a misconfigured pair (min > max)
    always reports the max side.
    """
    if math.isnan(value):
        return None
    if value > rng.max:
        return Breach(spec=spec, value=value, bound=Bound.MAX, threshold=rng.max)
    if value < rng.min:
        return Breach(spec=spec, value=value, bound=Bound.MIN, threshold=rng.min)
    return None


def metric_status(value: float, rng: ThresholdRange) -> MetricStatus:
    if value < rng.min or value > rng.max:
        return MetricStatus.VIOLATION
    return MetricStatus.NORMAL


def device_metric_statuses(device: Device) -> dict:
    """``{"temperature": "normal", "windSpeed": "violation", ...}``."""
    return {
        spec.metric.value: metric_status(
            device.metric_value(spec.metric),
            device.thresholds.for_metric(spec.metric),
        ).value
        for spec in METRIC_SPECS
    }
