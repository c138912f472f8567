"""Shared request dependencies and error mapping."""

from __future__ import annotations

import logging
from contextlib import contextmanager

from fastapi import HTTPException, Request

from ..core.domain import StoreUnavailable
from ..service import MonitoringService

logger = logging.getLogger(__name__)


def get_service(request: Request) -> MonitoringService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="service not ready")
    return service


@contextmanager
def store_errors(resource: str, resource_id: str | None = None):
    """Map store failures to HTTP errors without leaking internals."""
    try:
        yield
    except KeyError:
        raise HTTPException(status_code=404, detail=f"{resource} not found")
    except StoreUnavailable:
        logger.exception("[API] Store unavailable (%s %s)", resource, resource_id)
        raise HTTPException(status_code=503, detail="store unavailable")
