"""Timers for the monitoring service."""

from .liveness_scheduler import LivenessScheduler

__all__ = ["LivenessScheduler"]
