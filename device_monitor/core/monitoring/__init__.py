from .stats import MonitorStats

__all__ = ["MonitorStats"]
