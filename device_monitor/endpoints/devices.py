"""Device endpoints: list with per-metric status, add, edit, delete."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Response

from ..schemas import DeviceCreated, DeviceIn, DeviceOut, DevicePatch, ThresholdsPatch
from ..service import MonitoringService
from .auth import require_api_key
from .dependencies import get_service, store_errors

logger = logging.getLogger(__name__)

router = APIRouter(tags=["devices"], dependencies=[Depends(require_api_key)])


@router.get("/devices", response_model=List[DeviceOut])
async def list_devices(service: MonitoringService = Depends(get_service)):
    with store_errors("devices"):
        devices = service.store.get_devices()
    return [DeviceOut.from_domain(d) for d in devices]


@router.post("/devices", response_model=DeviceCreated, status_code=201)
async def add_device(payload: DeviceIn, service: MonitoringService = Depends(get_service)):
    with store_errors("device"):
        device_id = service.add_device(payload.to_domain())
    return DeviceCreated(id=device_id)


@router.get("/devices/{device_id}", response_model=DeviceOut)
async def get_device(device_id: str, service: MonitoringService = Depends(get_service)):
    with store_errors("device", device_id):
        device = service.get_device(device_id)
    return DeviceOut.from_domain(device)


@router.patch("/devices/{device_id}", response_model=DeviceOut)
async def update_device(
    device_id: str,
    payload: DevicePatch,
    service: MonitoringService = Depends(get_service),
):
    """Readings, position and name in one write; thresholds merged per metric."""
    fields = payload.update_fields()
    with store_errors("device", device_id):
        if fields:
            service.update_device(device_id, fields)
        if payload.thresholds is not None and payload.thresholds.changes():
            service.update_thresholds(device_id, payload.thresholds.changes())
        device = service.get_device(device_id)
    return DeviceOut.from_domain(device)


@router.put("/devices/{device_id}/thresholds", response_model=DeviceOut)
async def update_thresholds(
    device_id: str,
    payload: ThresholdsPatch,
    service: MonitoringService = Depends(get_service),
):
    with store_errors("device", device_id):
        device = service.update_thresholds(device_id, payload.changes())
    return DeviceOut.from_domain(device)


@router.delete("/devices/{device_id}", status_code=204)
async def delete_device(device_id: str, service: MonitoringService = Depends(get_service)):
    with store_errors("device", device_id):
        service.delete_device(device_id)
    return Response(status_code=204)
