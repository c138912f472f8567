"""Detección sobre snapshots de dispositivos.

Estructura modular:
- metrics.py: Tabla de métricas y evaluación contra [min, max]
- violation_tracker.py: Claves de violación abiertas (dedup de alertas)
- threshold_detector.py: Detector de violaciones de umbral
- movement_detector.py: Detector de movimiento (> 5 m)
- liveness.py: Inferencia online/offline por recencia
"""

from .liveness import LivenessEvaluator, StatusTransition, infer_status
from .metrics import (
    METRIC_SPECS,
    Bound,
    Breach,
    MetricSpec,
    MetricStatus,
    device_metric_statuses,
    evaluate,
    metric_status,
)
from .movement_detector import LocationSuppression, MovementDetector
from .threshold_detector import ThresholdViolationDetector
from .violation_tracker import ViolationTracker

__all__ = [
    "LivenessEvaluator",
    "StatusTransition",
    "infer_status",
    "METRIC_SPECS",
    "Bound",
    "Breach",
    "MetricSpec",
    "MetricStatus",
    "device_metric_statuses",
    "evaluate",
    "metric_status",
    "LocationSuppression",
    "MovementDetector",
    "ThresholdViolationDetector",
    "ViolationTracker",
]
