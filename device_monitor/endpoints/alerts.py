"""Alert endpoints: read model, acknowledgement and cleanup."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..schemas import AlertsOut, BulkResult
from ..service import MonitoringService
from .auth import require_api_key
from .dependencies import get_service, store_errors

router = APIRouter(tags=["alerts"], dependencies=[Depends(require_api_key)])


@router.get("/alerts", response_model=AlertsOut)
async def list_alerts(service: MonitoringService = Depends(get_service)):
    return AlertsOut.from_view(service.alerts_view)


@router.post("/alerts/acknowledge-all", response_model=BulkResult)
async def acknowledge_all(service: MonitoringService = Depends(get_service)):
    ids = service.acknowledge_all()
    return BulkResult(ids=ids, count=len(ids))


@router.post("/alerts/clear-acknowledged", response_model=BulkResult)
async def clear_acknowledged(service: MonitoringService = Depends(get_service)):
    with store_errors("alerts"):
        ids = service.clear_acknowledged()
    return BulkResult(ids=ids, count=len(ids))


@router.post("/alerts/refresh", response_model=AlertsOut)
async def refresh_alerts(service: MonitoringService = Depends(get_service)):
    with store_errors("alerts"):
        view = service.refresh_alerts()
    return AlertsOut.from_view(view)


@router.post("/alerts/{alert_id}/acknowledge", response_model=AlertsOut)
async def acknowledge(alert_id: str, service: MonitoringService = Depends(get_service)):
    with store_errors("alert", alert_id):
        service.acknowledge(alert_id)
    return AlertsOut.from_view(service.alerts_view)
