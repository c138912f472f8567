"""Autenticación por API Key.

Si ``Settings.api_key`` (MONITOR_API_KEY) no está definida, se permiten
todas las requests (modo dev).
"""

from __future__ import annotations

import logging

from fastapi import Header, HTTPException, Request

logger = logging.getLogger(__name__)


def require_api_key(
    request: Request,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> None:
    settings = getattr(request.app.state, "settings", None)
    expected = settings.api_key if settings is not None else None
    if not expected:
        return

    if not x_api_key:
        raise HTTPException(status_code=401, detail="API key required")

    if x_api_key != expected:
        logger.warning("Invalid API key attempt from request")
        raise HTTPException(status_code=401, detail="Invalid API key")
