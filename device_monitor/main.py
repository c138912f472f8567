from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from common.config import Settings, get_settings

from .core.domain import MonitorStore
from .endpoints import alerts_router, devices_router, health_router
from .infrastructure.persistence import create_store
from .scheduling import LivenessScheduler
from .service import MonitoringService

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[MonitorStore] = None,
    service: Optional[MonitoringService] = None,
    run_scheduler: bool = True,
) -> FastAPI:
    """Build the application.

    ``store``/``service`` let tests inject their own collaborators; by
    default both are built from ``settings`` at start-up.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        svc = service or MonitoringService.from_settings(
            store or create_store(settings), settings
        )
        svc.start()
        app.state.service = svc

        scheduler: Optional[LivenessScheduler] = None
        if run_scheduler:
            scheduler = LivenessScheduler(
                svc,
                interval_seconds=settings.liveness_interval_seconds,
                run_on_start=False,  # start() already ran the first pass
            )
            await scheduler.start()
        logger.info(
            "[MONITOR] Application ready store=%s liveness_interval=%.0fs",
            settings.store_backend,
            settings.liveness_interval_seconds,
        )
        try:
            yield
        finally:
            if scheduler is not None:
                await scheduler.stop()
            svc.stop()
            app.state.service = None

    app = FastAPI(title="IoT Device Monitor", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.include_router(health_router)
    app.include_router(devices_router)
    app.include_router(alerts_router)
    return app


def _configure_logging() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


_configure_logging()
app = create_app()
