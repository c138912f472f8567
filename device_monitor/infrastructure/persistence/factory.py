"""Factory para crear el store configurado.

MONITOR_STORE elige el backend:
- memory: InMemoryMonitorStore (por defecto, ejecución local y tests)
- sql: SqlMonitorStore sobre DATABASE_URL
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from common.config import Settings, get_settings
from common.db import get_engine

from ...core.domain import MonitorStore, utc_now
from .memory_store import InMemoryMonitorStore
from .sql_store import SqlMonitorStore

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("memory", "sql")


def create_store(
    settings: Optional[Settings] = None,
    clock: Callable[[], datetime] = utc_now,
) -> MonitorStore:
    """Build the store selected by ``settings.store_backend``.

    Raises:
        ValueError: unknown backend name.
    """
    settings = settings or get_settings()
    backend = settings.store_backend

    if backend == "memory":
        logger.info("[STORE_FACTORY] Using in-memory store")
        return InMemoryMonitorStore(clock=clock)

    if backend == "sql":
        logger.info("[STORE_FACTORY] Using SQL store")
        return SqlMonitorStore(get_engine(settings), clock=clock)

    raise ValueError(f"Unknown MONITOR_STORE={backend!r}, expected one of {STORE_BACKENDS}")
