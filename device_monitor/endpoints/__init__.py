"""Módulo de endpoints HTTP.

Contiene los endpoints del servicio de monitoreo organizados por función.
"""

from .alerts import router as alerts_router
from .devices import router as devices_router
from .health import router as health_router

__all__ = [
    "alerts_router",
    "devices_router",
    "health_router",
]
