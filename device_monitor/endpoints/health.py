"""Health, readiness and metrics endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..service import MonitoringService
from .dependencies import get_service

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    """Liveness probe: always ok while the process is running."""
    return {"status": "ok"}


@router.get("/ready")
async def ready(service: MonitoringService = Depends(get_service)):
    """Readiness probe: pings the store."""
    try:
        ok = service.store.ping()
    except Exception:
        logging.getLogger(__name__).exception("Readiness check failed")
        ok = False
    if not ok:
        raise HTTPException(status_code=503, detail="not ready")
    return {"status": "ready"}


@router.get("/metrics")
async def metrics(service: MonitoringService = Depends(get_service)):
    """Processing counters plus the current open-key and alert counts."""
    return {
        "monitor": service.stats.to_dict(),
        "open_violation_keys": len(service.tracker),
        "alerts": service.alerts_view.counts(),
        "devices": len(service.devices),
    }
